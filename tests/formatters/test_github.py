"""Tests for the GitHub annotation formatter."""

from claws.formatters.github import escape_message, format_as_github
from claws.models.violation import Violation


def violation(**kwargs) -> Violation:
    values = {"line": 8, "description": "Bulk grant", "file": ".github/workflows/ci.yml"}
    values.update(kwargs)
    return Violation(rule_name="BulkPermissions", **values)


class TestGithubFormatter:
    def test_single_violation(self):
        """Each violation becomes one ::error command."""
        output = format_as_github([violation()])
        assert output == "::error file=.github/workflows/ci.yml,line=8::Bulk grant\n"

    def test_newlines_are_encoded(self):
        """Multi-line descriptions stay on one line."""
        output = format_as_github([violation(description="first\n\nsecond")])
        assert output == "::error file=.github/workflows/ci.yml,line=8::first%0A%0Asecond\n"
        assert output.count("\n") == 1

    def test_order_and_count(self):
        output = format_as_github([violation(line=1), violation(line=2)])
        assert [line.split("::")[1] for line in output.splitlines()] == [
            "error file=.github/workflows/ci.yml,line=1",
            "error file=.github/workflows/ci.yml,line=2",
        ]

    def test_document_level_line(self):
        """Line 0 is passed through unchanged."""
        assert "line=0::" in format_as_github([violation(line=0)])

    def test_empty(self):
        assert format_as_github([]) == ""

    def test_escape_message(self):
        assert escape_message("a\nb") == "a%0Ab"
