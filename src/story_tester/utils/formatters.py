"""String formatting utilities"""
import json
import re
from datetime import date
from typing import Optional


def safe_filename(text: str) -> str:
    """
    Turn a story title into a filename stem.

    Every character outside ``[a-z0-9]`` (case-insensitive) becomes ``_``,
    then the result is lowercased.

    Example:
        >>> safe_filename("User Login!")
        'user_login_'
    """
    if not text:
        return ""
    return re.sub(r"[^a-z0-9]", "_", text, flags=re.IGNORECASE).lower()


def export_filename(story_title: str, fmt: str, today: Optional[date] = None) -> str:
    """
    Build the download filename for exported test cases.

    Example:
        >>> export_filename("Login Page", "csv", date(2025, 1, 31))
        'login_page_testcases_2025-01-31.csv'
    """
    today = today or date.today()
    return f"{safe_filename(story_title)}_testcases_{today.isoformat()}.{fmt}"


def safe_json_extract(text: str) -> Optional[dict]:
    """
    Extract JSON from text that might contain markdown or other formatting.

    Args:
        text: Text that contains JSON (possibly with markdown code blocks)

    Returns:
        Extracted JSON as dictionary, or None if no valid JSON found

    Example:
        >>> safe_json_extract('```json\\n{"key": "value"}\\n```')
        {'key': 'value'}
    """
    if not text:
        return None

    text = re.sub(r"^\s*```(?:json)?\s*|\s*```\s*$", "", text, flags=re.IGNORECASE)
    text = text.strip()

    try:
        result = json.loads(text)
        return result if isinstance(result, dict) else None
    except (json.JSONDecodeError, ValueError):
        pass

    # Fall back to the outermost {...} block
    match = re.search(r"(\{.*\})", text, re.DOTALL)
    if match:
        try:
            result = json.loads(match.group(1))
            return result if isinstance(result, dict) else None
        except (json.JSONDecodeError, ValueError):
            pass

    return None
