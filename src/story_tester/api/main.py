"""
FastAPI backend for Story Tester.
Exposes the Jira bridge, test case generation and export to the web UI.
"""
import logging
from datetime import datetime
from functools import lru_cache
from typing import Any, Dict, List, Optional

from fastapi import Body, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, ConfigDict, Field

from story_tester import __version__
from story_tester.clients import jira_client
from story_tester.clients.llm_client import LLMClient
from story_tester.config import Settings, configure_logging, load_settings
from story_tester.core.errors import (
    AuthError,
    GenerationError,
    NotFoundError,
    TrackerError,
    TransportError,
    ValidationError,
)
from story_tester.core.models import (
    GenerateRequest,
    GenerateResponse,
    GeneratedTestCase,
    parse_credentials,
    parse_issue_key,
)
from story_tester.utils.exporters import MEDIA_TYPES, export
from story_tester.utils.formatters import export_filename
from story_tester.utils.test_case_generator import generate_test_cases

logger = logging.getLogger(__name__)


@lru_cache()
def get_settings() -> Settings:
    return load_settings()


def get_llm_client(settings: Settings = Depends(get_settings)) -> LLMClient:
    return LLMClient(settings=settings)


settings = get_settings()
configure_logging(settings.log_level)

app = FastAPI(
    title="Story Tester API",
    description="Import user stories from Jira and generate test cases for them",
    version=__version__
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# Error Mapping
# ============================================================================

def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    messages = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        messages.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    logger.info(f"Rejected request to {request.url.path}: {messages}")
    return _error(400, f"Validation error: {'; '.join(messages)}")


@app.exception_handler(ValidationError)
async def validation_handler(request: Request, exc: ValidationError):
    logger.info(f"Rejected request to {request.url.path}: {exc.message}")
    return _error(400, exc.message)


@app.exception_handler(AuthError)
async def auth_handler(request: Request, exc: AuthError):
    return _error(401, exc.message)


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return _error(404, exc.message)


@app.exception_handler(TrackerError)
async def tracker_handler(request: Request, exc: TrackerError):
    if isinstance(exc, TransportError):
        logger.error(f"Jira unreachable on {request.url.path}: {exc.cause!r}")
        return _error(502, "Could not reach Jira")
    logger.error(f"Jira error on {request.url.path}: {exc} body={exc.body[:500]!r}")
    return _error(502, str(exc))


@app.exception_handler(GenerationError)
async def generation_handler(request: Request, exc: GenerationError):
    logger.error(f"Generation failed: {exc.message}")
    return _error(502, exc.message)


@app.exception_handler(Exception)
async def unexpected_handler(request: Request, exc: Exception):
    logger.exception(f"Unexpected error in {request.url.path}")
    return _error(500, "Internal server error")


# ============================================================================
# Request Models
# ============================================================================

class GenerateRequestBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    story_title: str = Field(alias="storyTitle", min_length=1)
    acceptance_criteria: str = Field(alias="acceptanceCriteria", min_length=1)
    description: Optional[str] = None
    additional_info: Optional[str] = Field(default=None, alias="additionalInfo")


class ExportCase(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = ""
    title: str = ""
    steps: List[str] = Field(default_factory=list)
    expected_result: str = Field(alias="expectedResult", default="")
    category: str = ""
    test_data: Optional[str] = Field(alias="testData", default=None)


class ExportResults(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    cases: List[ExportCase] = Field(default_factory=list)
    model: Optional[str] = None
    prompt_tokens: int = Field(alias="promptTokens", default=0)
    completion_tokens: int = Field(alias="completionTokens", default=0)

    def to_response(self) -> GenerateResponse:
        return GenerateResponse(
            cases=[
                GeneratedTestCase(
                    id=case.id,
                    title=case.title,
                    steps=list(case.steps),
                    expected_result=case.expected_result,
                    category=case.category,
                    test_data=case.test_data or None,
                )
                for case in self.cases
            ],
            model=self.model,
            prompt_tokens=self.prompt_tokens,
            completion_tokens=self.completion_tokens,
        )


class ExportRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    format: str
    story_title: str = Field(alias="storyTitle", default="test_cases")
    results: ExportResults


# ============================================================================
# Jira Bridge
# ============================================================================

@app.post("/api/jira/connect")
def jira_connect(
    payload: Dict[str, Any] = Body(...),
    settings: Settings = Depends(get_settings)
):
    """Validate Jira credentials."""
    creds = parse_credentials(payload)
    logger.info(f"Validating Jira credentials: {creds.masked()}")
    jira_client.validate_credentials(creds, settings=settings)
    return {"ok": True}


@app.post("/api/jira/stories")
def jira_stories(
    payload: Dict[str, Any] = Body(...),
    settings: Settings = Depends(get_settings)
) -> List[Dict[str, Any]]:
    """List stories visible to the credentials."""
    creds = parse_credentials(payload)
    jql = payload.get("jql")
    if jql is not None and (not isinstance(jql, str) or not jql.strip()):
        raise ValidationError("Validation error: jql must be a non-empty string",
                              [{"field": "jql", "message": "JQL must be a non-empty string", "detail": ""}])
    stories = jira_client.fetch_stories(creds, jql=jql, settings=settings)
    return [story.to_dict() for story in stories]


@app.post("/api/jira/story")
def jira_story(
    payload: Dict[str, Any] = Body(...),
    settings: Settings = Depends(get_settings)
) -> Dict[str, Any]:
    """Fetch one story's detail."""
    try:
        creds = parse_credentials({k: v for k, v in payload.items() if k not in ("issueKey", "issue_key")})
        errors = []
    except ValidationError as e:
        creds, errors = None, list(e.errors)
    issue_key = payload.get("issueKey", payload.get("issue_key"))
    try:
        issue_key = parse_issue_key(issue_key)
    except ValidationError as e:
        errors.extend(e.errors)
    if errors:
        summary = "; ".join(f"{err['field']}: {err['message']}" for err in errors)
        raise ValidationError(f"Validation error: {summary}", errors)

    detail = jira_client.fetch_story_detail(creds, issue_key, settings=settings)
    return detail.to_dict()


# ============================================================================
# Generation & Export
# ============================================================================

@app.post("/api/generate-tests")
def generate_tests(
    body: GenerateRequestBody,
    llm: LLMClient = Depends(get_llm_client)
) -> Dict[str, Any]:
    """Generate test cases for a story."""
    try:
        request = GenerateRequest(
            story_title=body.story_title,
            acceptance_criteria=body.acceptance_criteria,
            description=body.description,
            additional_info=body.additional_info,
        )
    except ValueError as e:
        raise ValidationError(f"Validation error: {e}")
    return generate_test_cases(request, llm).to_dict()


@app.post("/api/test-cases/export")
def export_test_cases(body: ExportRequest):
    """Export generated test cases as JSON, CSV or Excel."""
    fmt = body.format.lower()
    if fmt not in MEDIA_TYPES:
        raise ValidationError(
            f"Validation error: format must be one of {', '.join(MEDIA_TYPES)}",
            [{"field": "format", "message": "Unsupported export format", "detail": body.format}],
        )
    content = export(body.results.to_response(), fmt)
    filename = export_filename(body.story_title, fmt)
    return Response(
        content=content,
        media_type=MEDIA_TYPES[fmt],
        headers={"Content-Disposition": f"attachment; filename={filename}"}
    )


# ============================================================================
# Health Check
# ============================================================================

@app.get("/api/health")
def health_check(llm: LLMClient = Depends(get_llm_client)):
    """Detailed health check."""
    return {
        "status": "healthy",
        "version": __version__,
        "ai": llm.status_label(),
        "timestamp": datetime.now().isoformat()
    }


def run():
    """Console entry point"""
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.port)


if __name__ == "__main__":
    run()
