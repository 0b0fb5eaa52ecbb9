"""Violation model handed to formatters."""

from pydantic import BaseModel, ConfigDict, Field


class Violation(BaseModel):
    """A single finding produced by a rule.

    Violations are immutable: the engine attributes them (``file``,
    ``rule_name``) and attaches snippets with ``model_copy``.
    """

    model_config = ConfigDict(frozen=True)

    line: int = Field(ge=0, description="Line number (1-indexed, 0 for the whole document)")
    description: str = Field(description="Human-readable explanation of the finding")
    file: str | None = Field(default=None, description="File the violation was found in")
    rule_name: str | None = Field(default=None, description="Name of the rule that produced it")
    snippet: str | None = Field(default=None, description="Source lines around the violation")

    def __str__(self) -> str:
        """Format as human-readable string."""
        return f"{self.rule_name} at {self.file}:{self.line}"
