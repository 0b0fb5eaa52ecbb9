"""SARIF (Static Analysis Results Interchange Format) formatter for claws.

SARIF is a standard format for static analysis tool output, and the format
GitHub code scanning ingests.
Specification: https://docs.oasis-open.org/sarif/sarif/v2.1.0/sarif-v2.1.0.html
"""

from sarif_pydantic import (  # type: ignore[import-untyped]
    ArtifactLocation,
    Level,
    Location,
    Message,
    PhysicalLocation,
    Region,
    ReportingDescriptor,
    Result,
    Run,
    Sarif,
    Tool,
    ToolDriver,
)

from claws import __version__
from claws.models.violation import Violation
from claws.pipeline.pipeline import AnalysisResult
from claws.rules import RULES


def format_as_sarif(result: AnalysisResult, *, pretty: bool = True) -> str:
    """Format analysis results as SARIF JSON.

    Args:
        result: The analysis result to format
        pretty: If True, format with indentation for readability

    Returns:
        SARIF-formatted JSON string
    """
    sarif_log = _create_sarif_log(result)

    if pretty:
        json_output: str = sarif_log.model_dump_json(indent=2, exclude_none=True, by_alias=True)
        return json_output
    json_output = sarif_log.model_dump_json(exclude_none=True, by_alias=True)
    return json_output


def _create_sarif_log(result: AnalysisResult) -> Sarif:
    """Create a SARIF log object from analysis results."""
    return Sarif(
        version="2.1.0",
        schema_uri="https://json.schemastore.org/sarif-2.1.0.json",
        runs=[_create_run(result)],
    )


def _create_run(result: AnalysisResult) -> Run:
    """Create a SARIF run object."""
    return Run(
        tool=_create_tool(),
        results=[_create_result(violation) for violation in result.violations],
    )


def _short_description(description: str) -> str:
    return description.strip().splitlines()[0] if description.strip() else ""


def _create_tool() -> Tool:
    """Create the SARIF tool descriptor with one entry per known rule."""
    return Tool(
        driver=ToolDriver(
            name="claws",
            informationUri="https://github.com/betterment/claws",
            version=__version__,
            semanticVersion=__version__,
            rules=[
                ReportingDescriptor(
                    id=name,
                    name=name,
                    shortDescription=Message(text=_short_description(rule.description)),
                    fullDescription=Message(text=rule.description),
                    defaultConfiguration={"level": "error"},
                    properties={"tags": ["security", "github-actions"]},
                )
                for name, rule in RULES.items()
            ],
        )
    )


def _create_result(violation: Violation) -> Result:
    """Create a SARIF result from a violation.

    Document-level violations (line 0) are anchored to line 1, since SARIF
    regions are 1-indexed.
    """
    return Result(
        ruleId=violation.rule_name,
        level=Level.ERROR,
        message=Message(text=violation.description),
        locations=[
            Location(
                physicalLocation=PhysicalLocation(
                    artifactLocation=ArtifactLocation(
                        uri=str(violation.file),
                        uriBaseId="%SRCROOT%",
                    ),
                    region=Region(
                        startLine=max(1, violation.line),
                        startColumn=1,
                    ),
                )
            )
        ],
    )
