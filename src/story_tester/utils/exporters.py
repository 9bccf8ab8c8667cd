"""
Test case export: JSON, CSV and Excel (xlsx).
"""

import csv
import io
import json
from typing import List

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill

from story_tester.core.models import GenerateResponse, GeneratedTestCase


EXPORT_HEADERS = ["Test Case ID", "Title", "Category", "Expected Result", "Steps", "Test Data"]

MEDIA_TYPES = {
    "json": "application/json",
    "csv": "text/csv",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}


def _row(case: GeneratedTestCase, step_separator: str) -> List[str]:
    return [
        case.id,
        case.title,
        case.category,
        case.expected_result,
        step_separator.join(case.steps),
        case.test_data or "N/A",
    ]


def to_json(response: GenerateResponse) -> str:
    """Pretty-printed generate response"""
    return json.dumps(response.to_dict(), indent=2)


def to_csv(cases: List[GeneratedTestCase]) -> str:
    """One row per test case, steps joined with ' | '"""
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(EXPORT_HEADERS)
    for case in cases:
        writer.writerow(_row(case, " | "))
    return output.getvalue()


def to_xlsx(cases: List[GeneratedTestCase]) -> bytes:
    """Excel workbook with a single 'Test Cases' sheet"""
    wb = Workbook()
    ws = wb.active
    ws.title = "Test Cases"
    ws.append(EXPORT_HEADERS)

    header_fill = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")
    header_font = Font(bold=True, color="FFFFFF")
    for cell in ws[1]:
        cell.fill = header_fill
        cell.font = header_font
        cell.alignment = Alignment(horizontal="center", vertical="center")

    for case in cases:
        ws.append(_row(case, "\n"))

    # Auto-size columns (max width 50)
    for column in ws.columns:
        longest = max(
            (len(line) for cell in column if cell.value for line in str(cell.value).split("\n")),
            default=0
        )
        ws.column_dimensions[column[0].column_letter].width = min(longest + 2, 50)

    output = io.BytesIO()
    wb.save(output)
    return output.getvalue()


def export(response: GenerateResponse, fmt: str) -> bytes:
    """
    Render a generate response in the requested format.

    Raises:
        ValueError: For an unknown format
    """
    fmt = fmt.lower()
    if fmt == "json":
        return to_json(response).encode("utf-8")
    if fmt == "csv":
        return to_csv(response.cases).encode("utf-8")
    if fmt == "xlsx":
        return to_xlsx(response.cases)
    raise ValueError(f"Unsupported export format: '{fmt}'. Use one of: {', '.join(MEDIA_TYPES)}")
