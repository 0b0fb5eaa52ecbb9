"""Ignore-comment suppression and source snippets for violations."""

import logging
import re
from collections.abc import Mapping, Sequence

from claws.models.violation import Violation

logger = logging.getLogger(__name__)

IGNORE_PATTERN = re.compile(r"^\s*#.*ignore:\s*(.*)")
SNIPPET_CONTEXT = 3
FOCUS_MARKER = ">>> "
CONTEXT_MARKER = "    "


def get_snippet(lines: Sequence[str], line: int, context: int = SNIPPET_CONTEXT) -> str:
    """Return the lines around a 1-indexed line, marking the line itself.

    The window is clipped to the file; line 0 (document level) yields the
    first ``context`` lines.
    """
    start = max(1, line - context)
    end = min(len(lines), line + context)

    snippet = []
    for number in range(start, end + 1):
        text = lines[number - 1]
        if not text.endswith("\n"):
            text += "\n"
        marker = FOCUS_MARKER if number == line else CONTEXT_MARKER
        snippet.append(f"{marker}{text}")
    return "".join(snippet)


def find_ignores(lines: Sequence[str]) -> dict[int, frozenset[str]]:
    """Map each ignore comment's 1-indexed line to the rule names it lists."""
    ignores: dict[int, frozenset[str]] = {}
    for number, text in enumerate(lines, start=1):
        match = IGNORE_PATTERN.match(text)
        if not match:
            continue
        names = frozenset(name.strip() for name in match.group(1).split(",") if name.strip())
        if names:
            ignores[number] = names
    return ignores


def is_suppressed(violation: Violation, ignores: Mapping[int, frozenset[str]]) -> bool:
    """An ignore comment applies to the line directly below it."""
    names = ignores.get(max(1, violation.line - 1), frozenset())
    return violation.rule_name in names


def apply_suppressions(
    violations: Sequence[Violation], lines: Sequence[str]
) -> list[Violation]:
    """Attach snippets and drop violations named by an ignore comment."""
    ignores = find_ignores(lines)
    kept = []
    for violation in violations:
        if is_suppressed(violation, ignores):
            logger.debug("Suppressed %s by ignore comment", violation)
            continue
        kept.append(violation.model_copy(update={"snippet": get_snippet(lines, violation.line)}))
    return kept
