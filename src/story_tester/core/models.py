"""
Core data models for Story Tester.

Credentials are validated with pydantic and handed around as frozen
dataclasses; stories and generated test cases are plain dataclasses with
``to_dict`` helpers for the wire format.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from pydantic import AnyHttpUrl, BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from story_tester.core.errors import ValidationError


# ============================================================================
# Credentials
# ============================================================================

@dataclass(frozen=True)
class Credentials:
    """Jira Cloud credentials for a single operation"""
    base_url: str
    email: str
    api_token: str = field(repr=False)

    def masked(self) -> Dict[str, str]:
        """Loggable view with the token hidden"""
        return {
            "base_url": self.base_url,
            "email": self.email,
            "api_token": f"<{len(self.api_token)} chars>",
        }


class CredentialsPayload(BaseModel):
    """Inbound credential shape (camelCase on the wire, snake_case accepted)"""
    model_config = ConfigDict(populate_by_name=True)

    base_url: AnyHttpUrl = Field(alias="baseUrl")
    email: EmailStr
    # Token is sent exactly as given; only URL and email are trimmed
    api_token: str = Field(alias="apiToken", min_length=1)

    @field_validator("base_url", "email", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value


_FIELD_MESSAGES = {
    "base_url": "Base URL must be a valid URL",
    "email": "Email must be valid",
    "api_token": "API token is required",
    "issue_key": "Issue key is required",
}


def _collect_errors(exc: PydanticValidationError, aliases: Mapping[str, str]) -> List[Dict[str, Any]]:
    """Flatten pydantic errors to one entry per violated field"""
    errors: List[Dict[str, Any]] = []
    seen = set()
    for err in exc.errors():
        loc = err.get("loc") or ("",)
        name = aliases.get(str(loc[0]), str(loc[0]))
        if name in seen:
            continue
        seen.add(name)
        errors.append({
            "field": name,
            "message": _FIELD_MESSAGES.get(name, err.get("msg", "Invalid value")),
            "detail": err.get("msg", ""),
        })
    return errors


_CREDENTIAL_ALIASES = {
    "baseUrl": "base_url",
    "apiToken": "api_token",
    "issueKey": "issue_key",
}


def parse_credentials(data: Mapping[str, Any]) -> Credentials:
    """
    Validate an arbitrary mapping into Credentials.

    No network access happens here. Every violated field constraint is
    reported, not just the first.

    Raises:
        ValidationError: with one entry per invalid field in ``errors``
    """
    if not isinstance(data, Mapping):
        raise ValidationError(
            "Validation error: credentials must be an object",
            [{"field": "", "message": "Expected an object", "detail": type(data).__name__}],
        )
    try:
        payload = CredentialsPayload.model_validate(dict(data))
    except PydanticValidationError as e:
        errors = _collect_errors(e, _CREDENTIAL_ALIASES)
        summary = "; ".join(f"{err['field']}: {err['message']}" for err in errors)
        raise ValidationError(f"Validation error: {summary}", errors) from e

    return Credentials(
        base_url=str(payload.base_url),
        email=str(payload.email),
        api_token=payload.api_token,
    )


def parse_issue_key(value: Any) -> str:
    """Return the issue key or raise ValidationError when missing/blank"""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(
            "Validation error: issue_key: Issue key is required",
            [{"field": "issue_key", "message": _FIELD_MESSAGES["issue_key"], "detail": ""}],
        )
    return value


# ============================================================================
# Stories
# ============================================================================

@dataclass(frozen=True)
class StorySummary:
    """Search result entry"""
    key: str
    summary: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"key": self.key, "summary": self.summary}


@dataclass(frozen=True)
class StoryDetail:
    """Normalized single story"""
    key: str
    title: str = ""
    description: str = ""
    acceptance_criteria: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Wire format; acceptanceCriteria is omitted when absent"""
        result = {
            "key": self.key,
            "title": self.title,
            "description": self.description,
        }
        if self.acceptance_criteria is not None:
            result["acceptanceCriteria"] = self.acceptance_criteria
        return result


# ============================================================================
# Generation
# ============================================================================

@dataclass
class GenerateRequest:
    """A story submitted for test case generation"""
    story_title: str
    acceptance_criteria: str
    description: Optional[str] = None
    additional_info: Optional[str] = None

    def __post_init__(self):
        if not self.story_title or not self.story_title.strip():
            raise ValueError("Story title is required")
        if not self.acceptance_criteria or not self.acceptance_criteria.strip():
            raise ValueError("Acceptance criteria is required")


@dataclass
class GeneratedTestCase:
    """A single AI-generated test case"""
    id: str
    title: str
    steps: List[str] = field(default_factory=list)
    expected_result: str = ""
    category: str = ""
    test_data: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GeneratedTestCase":
        steps = data.get("steps") or []
        if isinstance(steps, str):
            steps = [steps]
        elif not isinstance(steps, list):
            steps = []
        test_data = data.get("testData", data.get("test_data"))
        return cls(
            id=str(data.get("id") or ""),
            title=str(data.get("title") or ""),
            steps=[str(s) for s in steps if s is not None],
            expected_result=str(data.get("expectedResult") or data.get("expected_result") or ""),
            category=str(data.get("category") or ""),
            test_data=str(test_data) if test_data not in (None, "") else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "id": self.id,
            "title": self.title,
            "steps": list(self.steps),
            "expectedResult": self.expected_result,
            "category": self.category,
        }
        if self.test_data is not None:
            result["testData"] = self.test_data
        return result


@dataclass
class GenerateResponse:
    """Generated cases plus model usage"""
    cases: List[GeneratedTestCase] = field(default_factory=list)
    model: Optional[str] = None
    prompt_tokens: int = 0
    completion_tokens: int = 0

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "cases": [c.to_dict() for c in self.cases],
            "promptTokens": self.prompt_tokens,
            "completionTokens": self.completion_tokens,
        }
        if self.model:
            result["model"] = self.model
        return result
