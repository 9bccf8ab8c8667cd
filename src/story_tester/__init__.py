"""Story Tester: Jira story import and AI test case generation"""

__version__ = "1.0.0"

from .core.errors import (
    StoryTesterError,
    ValidationError,
    AuthError,
    NotFoundError,
    TrackerError,
    TransportError,
    GenerationError,
)
from .core.models import (
    Credentials,
    StorySummary,
    StoryDetail,
    GenerateRequest,
    GenerateResponse,
    GeneratedTestCase,
    parse_credentials,
)
from .core.normalizer import normalize_issue
from .clients.jira_client import (
    JiraClient,
    build_auth_header,
    validate_credentials,
    fetch_stories,
    fetch_story_detail,
)
from .clients.llm_client import LLMClient

__all__ = [
    'StoryTesterError',
    'ValidationError',
    'AuthError',
    'NotFoundError',
    'TrackerError',
    'TransportError',
    'GenerationError',
    'Credentials',
    'StorySummary',
    'StoryDetail',
    'GenerateRequest',
    'GenerateResponse',
    'GeneratedTestCase',
    'parse_credentials',
    'normalize_issue',
    'JiraClient',
    'build_auth_header',
    'validate_credentials',
    'fetch_stories',
    'fetch_story_detail',
    'LLMClient',
]
