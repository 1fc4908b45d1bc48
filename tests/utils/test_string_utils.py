from __future__ import annotations

import pytest

from utils.string_utils import StringUtils


@pytest.mark.parametrize(
    ("selection", "expected"),
    [
        ("  hello   world \n\n again\t", "hello world again"),
        ("line one\r\nline two", "line one line two"),
        ({"text": "  from text  "}, "from text"),
        ({"content": "from content"}, "from content"),
        ({"selected_text": "from selected_text"}, "from selected_text"),
        ({"text": "", "content": "fallback"}, "fallback"),
        ({"pos0": 1}, ""),
        (None, ""),
        (42, ""),
        ("Café", "Café"),
    ],
)
def test_clean_selection(selection: object, expected: str) -> None:
    assert StringUtils.clean_selection(selection) == expected


def test_clean_selection_warns_for_non_string(caplog: pytest.LogCaptureFixture) -> None:
    StringUtils.clean_selection(["a", "list"])

    assert any("not a string" in rec.message for rec in caplog.records)


def test_truncate_appends_ellipsis_only_when_cut() -> None:
    assert StringUtils.truncate("short", 10) == "short"
    assert StringUtils.truncate("a longer sentence", 8) == "a longer..."


def test_preview_is_single_line() -> None:
    assert StringUtils.preview("first\nsecond", length=100) == "first second"
    assert StringUtils.preview(None) == ""


def test_ensure_str() -> None:
    assert StringUtils.ensure_str(None) == ""
    assert StringUtils.ensure_str("x") == "x"
