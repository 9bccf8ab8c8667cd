"""
Error taxonomy for the Jira bridge and the generation service.

The core raises these and never decides an HTTP status; the API layer maps
them to responses.
"""
from typing import Any, Dict, List, Optional


class StoryTesterError(Exception):
    """Base class for all errors raised by story_tester"""


class ValidationError(StoryTesterError):
    """Malformed input detected before any network call"""

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or []

    def fields(self) -> List[str]:
        """Names of the fields that failed validation"""
        return [err["field"] for err in self.errors if err.get("field")]


class AuthError(StoryTesterError):
    """Tracker rejected the credentials (401/403)"""

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)
        self.message = message


class NotFoundError(StoryTesterError):
    """Requested story does not exist (404)"""

    def __init__(self, issue_key: str, message: str = "Story not found"):
        super().__init__(message)
        self.issue_key = issue_key
        self.message = message


class TrackerError(StoryTesterError):
    """
    Any other non-2xx response from the tracker.

    Carries the HTTP status code and a best-effort copy of the response body
    for diagnostics.
    """

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.body = body

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message
        return f"{self.message} (status {self.status_code})"


class TransportError(TrackerError):
    """Network-level failure below HTTP (DNS, TLS, timeout). Has no status code."""

    def __init__(self, message: str = "Could not reach Jira", cause: Optional[BaseException] = None):
        super().__init__(message, status_code=None, body="")
        self.cause = cause


class GenerationError(StoryTesterError):
    """The AI generation service failed or returned something unusable"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
