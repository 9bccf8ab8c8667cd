"""
Map raw Jira issue JSON to StoryDetail.

Acceptance criteria live in a custom field whose id differs per Jira
instance. When an explicit field id is configured it is used; otherwise the
first field whose *name* contains "acceptance" (case-insensitive) and holds a
string wins. That fallback only works when the instance exposes a readable
alias for the custom field (e.g. ``"Acceptance Criteria"``); plain
``customfield_10042`` ids never match. It also depends on the order Jira
returns fields in, which is not guaranteed to be stable across instances.
"""
from typing import Any, Dict, Mapping, Optional

from story_tester.core.models import StoryDetail


ACCEPTANCE_MARKER = "acceptance"


def _string_or_empty(value: Any) -> str:
    return value if isinstance(value, str) else ""


def find_acceptance_criteria(
    fields: Mapping[str, Any],
    field_id: Optional[str] = None
) -> Optional[str]:
    """
    Locate the acceptance criteria text in an issue's field map.

    Args:
        fields: The issue ``fields`` mapping
        field_id: Explicit custom field id (e.g. ``customfield_10042``)

    Returns:
        The acceptance criteria string, or None when nothing matches
    """
    if field_id:
        value = fields.get(field_id)
        if isinstance(value, str):
            return value

    for name, value in fields.items():
        if ACCEPTANCE_MARKER in str(name).lower() and isinstance(value, str):
            return value
    return None


def normalize_issue(
    raw: Mapping[str, Any],
    acceptance_criteria_field_id: Optional[str] = None
) -> StoryDetail:
    """
    Convert a Jira issue into a StoryDetail.

    Never raises on JSON-shaped input: non-string summary/description become
    empty strings, missing acceptance criteria stay None.
    """
    raw = raw if isinstance(raw, Mapping) else {}
    fields: Dict[str, Any] = raw.get("fields") or {}
    if not isinstance(fields, Mapping):
        fields = {}

    key = raw.get("key")
    return StoryDetail(
        key=key if isinstance(key, str) else "",
        title=_string_or_empty(fields.get("summary")),
        description=_string_or_empty(fields.get("description")),
        acceptance_criteria=find_acceptance_criteria(fields, acceptance_criteria_field_id),
    )
