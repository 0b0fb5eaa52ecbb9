"""Human-readable console output."""

from collections.abc import Iterable

from rich.console import Console
from rich.markup import escape

from claws.models.violation import Violation


def display_violation(console: Console, violation: Violation) -> None:
    console.print(
        f"[bold red]Violation: {escape(str(violation.rule_name))} on "
        f"{escape(str(violation.file))}:{violation.line}[/bold red]",
        soft_wrap=True,
    )
    console.print(violation.description, markup=False, highlight=False, soft_wrap=True)
    if violation.snippet is not None:
        console.print(violation.snippet.rstrip("\n"), markup=False, highlight=False, soft_wrap=True)
    console.print()


def display_violations(console: Console, violations: Iterable[Violation]) -> int:
    """Print every violation and return how many were printed."""
    count = 0
    for violation in violations:
        display_violation(console, violation)
        count += 1
    return count
