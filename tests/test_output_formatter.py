"""Tests for output formatting."""

import json
import re
from io import StringIO

from rich.console import Console

from grocery_voice.output_formatter import OutputFormatter


def strip_ansi(text: str) -> str:
    """Remove ANSI escape codes from text."""
    ansi_escape = re.compile(r"\x1b\[[0-9;]*m")
    return ansi_escape.sub("", text)


def rich_formatter() -> OutputFormatter:
    """Formatter writing Rich output into a buffer."""
    formatter = OutputFormatter(json_mode=False)
    formatter.console = Console(file=StringIO(), force_terminal=True, width=120)
    return formatter


class TestOutputFormatterJSON:
    """Tests for JSON output mode."""

    def test_json_mode_output(self, capsys):
        formatter = OutputFormatter(json_mode=True)
        formatter.output({"success": True, "data": {"categories": []}})
        data = json.loads(capsys.readouterr().out)
        assert data["data"]["categories"] == []

    def test_json_error(self, capsys):
        formatter = OutputFormatter(json_mode=True)
        formatter.error("Something went wrong", error_code="TEST_ERROR")
        data = json.loads(capsys.readouterr().out)
        assert data["success"] is False
        assert data["error"] == "Something went wrong"
        assert data["error_code"] == "TEST_ERROR"

    def test_json_warning(self, capsys):
        formatter = OutputFormatter(json_mode=True)
        formatter.warning("This is a warning")
        assert json.loads(capsys.readouterr().out)["warning"] == "This is a warning"


class TestOutputFormatterRich:
    """Tests for Rich output mode."""

    def test_categories_table(self):
        formatter = rich_formatter()
        formatter.output(
            {"data": {"categories": [{"id": "c1", "name": "Dairy", "image_url": ""}]}}
        )
        output = strip_ansi(formatter.console.file.getvalue())
        assert "Dairy" in output
        assert "Total categories: 1" in output

    def test_items_table(self):
        formatter = rich_formatter()
        formatter.output(
            {
                "data": {
                    "category": {"id": "c1", "name": "Produce"},
                    "items": [{"id": "i1", "name": "Apples", "quantity": 3}],
                }
            }
        )
        output = strip_ansi(formatter.console.file.getvalue())
        assert "Produce" in output
        assert "Apples" in output
        assert "Total items: 1" in output

    def test_empty_items(self):
        formatter = rich_formatter()
        formatter.output({"data": {"category": {"id": "c1", "name": "Produce"}, "items": []}})
        assert "No items in Produce" in strip_ansi(formatter.console.file.getvalue())

    def test_degraded_warning(self):
        formatter = rich_formatter()
        formatter.output({"degraded": True, "data": {}}, "Added category: Dairy")
        output = strip_ansi(formatter.console.file.getvalue())
        assert "Added category: Dairy" in output
        assert "remote store unavailable" in output

    def test_degraded_read_warning(self):
        formatter = rich_formatter()
        formatter.output({"degraded": True, "data": {"categories": []}})
        output = strip_ansi(formatter.console.file.getvalue())
        assert "Served from local cache" in output
        assert "Saved locally" not in output

    def test_rich_error_output(self):
        formatter = rich_formatter()
        formatter.error("Test error message")
        assert "Test error message" in strip_ansi(formatter.console.file.getvalue())
