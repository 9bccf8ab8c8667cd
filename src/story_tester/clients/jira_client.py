"""
Jira API Client
Validates credentials, searches stories and fetches a single story's detail
against the Jira Cloud REST API v3.

Every operation makes exactly one HTTP request. There is no retry, no
backoff and no caching; each call carries its own credentials.
"""

import base64
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from story_tester.config import Settings
from story_tester.core.errors import (
    AuthError,
    NotFoundError,
    TrackerError,
    TransportError,
)
from story_tester.core.models import (
    Credentials,
    StoryDetail,
    StorySummary,
    parse_issue_key,
)
from story_tester.core.normalizer import normalize_issue

logger = logging.getLogger(__name__)

API_PREFIX = "/rest/api/3"
SEARCH_FIELDS = ["key", "summary"]


def build_auth_header(creds: Credentials) -> str:
    """
    Build the value of a Basic Authorization header.

    Args:
        creds: Validated credentials

    Returns:
        ``"Basic <base64(email:api_token)>"``
    """
    token = base64.b64encode(f"{creds.email}:{creds.api_token}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


def _is_success(status_code: int) -> bool:
    return 200 <= status_code < 300


def _read_body(response: requests.Response) -> str:
    """Best-effort body text of a failed response"""
    try:
        return response.text or ""
    except Exception as e:
        logger.debug(f"Could not read Jira response body: {e}")
        return ""


class JiraClient:
    """Client for the Jira REST API, bound to one set of credentials."""

    def __init__(
        self,
        credentials: Credentials,
        settings: Optional[Settings] = None,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize Jira client.

        Args:
            credentials: Validated Jira credentials
            settings: Runtime settings (timeout, search defaults, field mapping)
            session: Optional requests session to reuse; when omitted a fresh
                session is opened and closed for every call
        """
        self.credentials = credentials
        self.base_url = credentials.base_url.rstrip("/")
        self.settings = settings or Settings()
        self._session = session

    def url_for(self, path: str) -> str:
        """Absolute URL for a path below /rest/api/3"""
        return f"{self.base_url}{API_PREFIX}/{path.lstrip('/')}"

    def _headers(self, with_body: bool = False) -> Dict[str, str]:
        headers = {
            "Authorization": build_auth_header(self.credentials),
            "Accept": "application/json",
        }
        if with_body:
            headers["Content-Type"] = "application/json"
        return headers

    def _request(
        self,
        method: str,
        url: str,
        timeout: Optional[float] = None,
        json_body: Optional[Dict[str, Any]] = None
    ) -> requests.Response:
        """Send one request; network failures become TransportError."""
        session = self._session or requests.Session()
        timeout = timeout if timeout is not None else self.settings.request_timeout
        logger.debug(f"Jira {method} {url}")
        try:
            kwargs: Dict[str, Any] = {
                "headers": self._headers(with_body=json_body is not None),
                "timeout": timeout,
            }
            if json_body is not None:
                kwargs["json"] = json_body
            response = session.request(method, url, **kwargs)
        except requests.RequestException as e:
            logger.error(f"Jira {method} {url} failed: {type(e).__name__}: {e}")
            raise TransportError(cause=e) from e
        finally:
            if self._session is None:
                session.close()
        logger.debug(f"Jira {method} {url} -> {response.status_code}")
        return response

    def _json(self, response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            body = _read_body(response)
            logger.warning(f"Jira returned non-JSON body (status {response.status_code})")
            raise TrackerError(
                "Jira returned an unreadable response",
                status_code=response.status_code,
                body=body,
            ) from e

    def _tracker_error(self, response: requests.Response, message: str) -> TrackerError:
        body = _read_body(response)
        logger.warning(f"{message} (status {response.status_code}): {body[:500]}")
        return TrackerError(message, status_code=response.status_code, body=body)

    def validate_credentials(self, timeout: Optional[float] = None) -> None:
        """
        Check the credentials against /myself.

        Raises:
            AuthError: On 401/403
            TrackerError: On any other non-2xx status or a network failure
        """
        response = self._request("GET", self.url_for("myself"), timeout=timeout)
        try:
            if _is_success(response.status_code):
                return
            if response.status_code in (401, 403):
                logger.info(f"Jira rejected credentials for {self.credentials.email}")
                raise AuthError("Invalid credentials")
            raise self._tracker_error(response, "Jira credential check failed")
        finally:
            response.close()

    def search_stories(
        self,
        jql: Optional[str] = None,
        timeout: Optional[float] = None
    ) -> List[StorySummary]:
        """
        Search stories with JQL.

        Args:
            jql: JQL query (default: ``issuetype=Story``)
            timeout: Per-call timeout in seconds

        Returns:
            Stories in the order Jira returned them; empty when the response
            has no ``issues`` collection
        """
        payload = {
            "jql": jql if jql is not None else self.settings.default_jql,
            "fields": list(SEARCH_FIELDS),
            "maxResults": self.settings.max_results,
        }
        response = self._request("POST", self.url_for("search/jql"), timeout=timeout, json_body=payload)
        try:
            if not _is_success(response.status_code):
                raise self._tracker_error(response, "Failed to fetch stories")
            data = self._json(response)
        finally:
            response.close()

        issues = data.get("issues") if isinstance(data, dict) else None
        if not issues:
            return []
        if not isinstance(issues, list):
            logger.warning(f"Jira search returned non-list issues ({type(issues).__name__}); ignoring")
            return []

        stories = []
        for idx, issue in enumerate(issues):
            if not isinstance(issue, dict):
                logger.warning(f"Skipping malformed Jira search entry #{idx}: {type(issue).__name__}")
                continue
            fields = issue.get("fields") or {}
            summary = fields.get("summary") if isinstance(fields, dict) else None
            key = issue.get("key")
            stories.append(StorySummary(
                key=key if isinstance(key, str) else "",
                summary=summary if isinstance(summary, str) else "",
            ))
        logger.info(f"Fetched {len(stories)} stories from {self.base_url}")
        return stories

    def fetch_story_detail(self, issue_key: str, timeout: Optional[float] = None) -> StoryDetail:
        """
        Fetch a single story and normalize it.

        Args:
            issue_key: Issue key (e.g., 'PROJ-123'); percent-encoded in the path

        Raises:
            ValidationError: If the key is empty
            NotFoundError: On 404
            TrackerError: On any other non-2xx status or a network failure
        """
        issue_key = parse_issue_key(issue_key)
        url = self.url_for(f"issue/{quote(issue_key, safe='')}")
        response = self._request("GET", url, timeout=timeout)
        try:
            if response.status_code == 404:
                logger.info(f"Jira story {issue_key} not found")
                raise NotFoundError(issue_key)
            if not _is_success(response.status_code):
                raise self._tracker_error(response, "Failed to fetch story detail")
            data = self._json(response)
        finally:
            response.close()

        return normalize_issue(data, self.settings.acceptance_criteria_field_id)


# ============================================================================
# Entry points for the API layer
# ============================================================================

def validate_credentials(
    creds: Credentials,
    settings: Optional[Settings] = None,
    session: Optional[requests.Session] = None,
    timeout: Optional[float] = None
) -> None:
    """Raise AuthError/TrackerError unless Jira accepts the credentials."""
    JiraClient(creds, settings=settings, session=session).validate_credentials(timeout=timeout)


def fetch_stories(
    creds: Credentials,
    jql: Optional[str] = None,
    settings: Optional[Settings] = None,
    session: Optional[requests.Session] = None,
    timeout: Optional[float] = None
) -> List[StorySummary]:
    """Search stories (default JQL ``issuetype=Story``)."""
    client = JiraClient(creds, settings=settings, session=session)
    return client.search_stories(jql=jql, timeout=timeout)


def fetch_story_detail(
    creds: Credentials,
    issue_key: str,
    settings: Optional[Settings] = None,
    session: Optional[requests.Session] = None,
    timeout: Optional[float] = None
) -> StoryDetail:
    """Fetch and normalize one story."""
    client = JiraClient(creds, settings=settings, session=session)
    return client.fetch_story_detail(issue_key, timeout=timeout)
