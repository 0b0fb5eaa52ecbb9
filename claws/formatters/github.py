"""GitHub Actions workflow-command formatter.

Each violation becomes an ``::error`` annotation that the Actions runner
attaches to the file and line in the pull request view.
"""

from collections.abc import Iterable

from claws.models.violation import Violation

SEVERITY = "error"


def escape_message(message: str) -> str:
    """Workflow commands are single-line; newlines are URL-encoded."""
    return message.replace("\n", "%0A")


def format_violation(violation: Violation) -> str:
    return (
        f"::{SEVERITY} file={violation.file},line={violation.line}::"
        f"{escape_message(violation.description)}"
    )


def format_as_github(violations: Iterable[Violation]) -> str:
    """Format violations as GitHub annotations, one per line."""
    return "".join(f"{format_violation(violation)}\n" for violation in violations)
