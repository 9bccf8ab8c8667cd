"""
Pytest configuration and shared fixtures.

This file is automatically discovered by pytest and provides
fixtures that can be used across all test files.
"""
import json
from unittest.mock import Mock

import pytest
import requests

from story_tester.config import Settings
from story_tester.core.models import Credentials


# ===== Test Data Fixtures =====

@pytest.fixture
def credentials():
    """Fixture providing valid Jira credentials"""
    return Credentials(
        base_url="https://example.atlassian.net",
        email="qa@example.com",
        api_token="secret-token"
    )


@pytest.fixture
def credentials_payload():
    """Fixture providing a valid camelCase credentials body"""
    return {
        "baseUrl": "https://example.atlassian.net",
        "email": "qa@example.com",
        "apiToken": "secret-token"
    }


@pytest.fixture
def sample_issue():
    """Fixture providing a raw Jira issue"""
    return {
        "key": "PROJ-1",
        "fields": {
            "summary": "Login",
            "description": "desc",
            "Acceptance Criteria (custom)": "AC text"
        }
    }


@pytest.fixture
def settings():
    """Fixture providing default settings"""
    return Settings()


# ===== Mock Fixtures =====

def make_response(status_code=200, payload=None, text=None):
    """Build a mock requests.Response"""
    response = Mock(spec=requests.Response)
    response.status_code = status_code
    if payload is not None:
        response.json.return_value = payload
        response.text = json.dumps(payload)
    else:
        response.json.side_effect = ValueError("No JSON")
        response.text = text or ""
    return response


@pytest.fixture
def response_factory():
    """Fixture providing the make_response helper"""
    return make_response


@pytest.fixture
def mock_session():
    """Fixture providing a mocked requests.Session"""
    session = Mock(spec=requests.Session)
    session.request.return_value = make_response(200, {})
    return session


@pytest.fixture
def mock_llm_client():
    """Fixture providing a mocked LLM client"""
    from story_tester.clients.llm_client import Usage

    mock = Mock()
    mock.model = "gpt-4o-mini"
    mock.status_label.return_value = "AI: ON (gpt-4o-mini)"
    mock.complete_json.return_value = (
        json.dumps({
            "cases": [
                {
                    "id": "TC-001",
                    "title": "Valid login",
                    "steps": ["Open login page", "Submit valid credentials"],
                    "expectedResult": "User sees dashboard",
                    "category": "Positive"
                }
            ]
        }),
        Usage(prompt_tokens=120, completion_tokens=80)
    )
    return mock


# ===== Pytest Configuration =====

def pytest_configure(config):
    """Pytest configuration hook"""
    config.addinivalue_line(
        "markers",
        "unit: Unit tests (fast, isolated)"
    )
    config.addinivalue_line(
        "markers",
        "integration: Integration tests (exercise the HTTP API)"
    )
