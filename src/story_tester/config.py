"""
Runtime configuration.

Values come from environment variables; a ``.env`` file in the working
directory is loaded first, as the API does on startup.
"""
import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv


DEFAULT_JQL = "issuetype=Story"
DEFAULT_MAX_RESULTS = 1000
DEFAULT_TIMEOUT = 30.0
DEFAULT_CORS_ORIGINS = ["http://localhost:5173", "http://localhost:3000"]


@dataclass
class Settings:
    """Application settings"""
    acceptance_criteria_field_id: Optional[str] = None
    request_timeout: float = DEFAULT_TIMEOUT
    default_jql: str = DEFAULT_JQL
    max_results: int = DEFAULT_MAX_RESULTS
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    api_host: str = "127.0.0.1"
    port: int = 8091
    cors_origins: List[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    log_level: str = "INFO"

    def __post_init__(self):
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be positive")
        if self.max_results < 1:
            raise ValueError("max_results must be at least 1")


def _env_number(name: str, default, cast):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw.strip())
    except ValueError:
        raise ValueError(f"Invalid value for {name}: {raw!r}")


def load_settings(dotenv: bool = True) -> Settings:
    """
    Build Settings from the environment.

    Args:
        dotenv: Whether to load a .env file first

    Raises:
        ValueError: If a numeric variable cannot be parsed
    """
    if dotenv:
        load_dotenv()

    origins = os.getenv("CORS_ORIGINS")
    cors_origins = (
        [o.strip() for o in origins.split(",") if o.strip()]
        if origins else list(DEFAULT_CORS_ORIGINS)
    )

    return Settings(
        acceptance_criteria_field_id=os.getenv("JIRA_ACCEPTANCE_CRITERIA_FIELD_ID") or None,
        request_timeout=_env_number("JIRA_REQUEST_TIMEOUT", DEFAULT_TIMEOUT, float),
        default_jql=os.getenv("JIRA_DEFAULT_JQL") or DEFAULT_JQL,
        max_results=_env_number("JIRA_MAX_RESULTS", DEFAULT_MAX_RESULTS, int),
        openai_api_key=os.getenv("OPENAI_API_KEY") or None,
        openai_model=os.getenv("OPENAI_MODEL") or "gpt-4o-mini",
        api_host=os.getenv("API_HOST", "127.0.0.1"),
        port=_env_number("PORT", 8091, int),
        cors_origins=cors_origins,
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
    )


def configure_logging(level: str = "INFO") -> None:
    """Set up root logging for the API process"""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
