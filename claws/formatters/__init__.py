"""Output formatters for claws results."""

from claws.formatters.github import format_as_github
from claws.formatters.sarif import format_as_sarif
from claws.formatters.stdout import display_violations

__all__ = ["display_violations", "format_as_github", "format_as_sarif"]
