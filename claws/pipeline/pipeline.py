"""Top-level pipeline orchestration.

Collect workflow files → load the rule engine → analyze each file
(parse → normalize → evaluate rules → suppress).
"""

import logging
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from pydantic import BaseModel, Field

from claws.config import ClawsSettings, get_settings
from claws.models.violation import Violation
from claws.pipeline.parse import ParseError
from claws.pipeline.rules import RuleEngine
from claws.pipeline.rules_factory import build_rule_engine

logger = logging.getLogger(__name__)

DEFAULT_PATH = Path(".github/workflows")
WORKFLOW_SUFFIXES = (".yml", ".yaml")


class FileResult(BaseModel):
    """Outcome of analyzing one file."""

    path: Path = Field(description="Analyzed file")
    violations: list[Violation] = Field(default_factory=list)
    error: str | None = Field(default=None, description="Why the file could not be analyzed")


class AnalysisResult(BaseModel):
    """Result of analyzing a set of workflow files."""

    violations: list[Violation] = Field(
        default_factory=list, description="Violations across all files, in file order"
    )
    failed_files: dict[Path, str] = Field(
        default_factory=dict, description="Files that could not be parsed"
    )
    files_analyzed: int = Field(default=0, description="Number of files successfully analyzed")

    @property
    def has_violations(self) -> bool:
        return bool(self.violations)


def collect_workflow_files(paths: Iterable[Path]) -> list[Path]:
    """Expand directories into their workflow files.

    Explicit files are kept regardless of suffix; directories contribute
    their ``*.yml`` / ``*.yaml`` files in sorted order.
    """
    files: list[Path] = []
    for path in paths:
        if path.is_dir():
            found = sorted(
                child for child in path.iterdir()
                if child.is_file() and child.suffix.lower() in WORKFLOW_SUFFIXES
            )
            logger.debug("Found %d workflow file(s) in %s", len(found), path)
            files.extend(found)
        elif path.is_file():
            files.append(path)
        else:
            raise FileNotFoundError(f"No such file or directory: {path}")
    return files


def analyze_file(engine: RuleEngine, path: Path) -> FileResult:
    """Analyze one file; parse failures are captured, not raised."""
    try:
        raw_text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Failed to read %s: %s", path, e)
        return FileResult(path=path, error=str(e))

    try:
        violations = engine.analyze(str(path), raw_text)
    except ParseError as e:
        logger.warning("Failed to parse %s: %s", path, e)
        return FileResult(path=path, error=str(e))

    logger.debug("%s: %d violation(s)", path, len(violations))
    return FileResult(path=path, violations=violations)


def _run_analysis_stage(engine: RuleEngine, files: list[Path], workers: int) -> list[FileResult]:
    """Analyze files, concurrently when more than one worker is configured."""
    logger.info("Analyzing %d file(s) with %d worker(s)...", len(files), workers)
    if workers <= 1 or len(files) <= 1:
        return [analyze_file(engine, path) for path in files]

    with ThreadPoolExecutor(max_workers=workers) as executor:
        # map keeps input order and re-raises the first worker exception
        return list(executor.map(lambda path: analyze_file(engine, path), files))


def run_pipeline(
    paths: Sequence[Path] | None = None, settings: ClawsSettings | None = None
) -> AnalysisResult:
    """Run the full analysis over files and directories.

    Args:
        paths: Files or directories to analyze (default: .github/workflows)
        settings: Settings to use (default: global settings)

    Returns:
        AnalysisResult with violations and failed files

    Raises:
        MissingExternalTool: If a rule's external tool is unavailable
        ConfigError: If the rule configuration is invalid
    """
    settings = settings or get_settings()
    files = collect_workflow_files(paths or [DEFAULT_PATH])
    engine = build_rule_engine(settings)

    result = AnalysisResult()
    for file_result in _run_analysis_stage(engine, files, settings.workers):
        if file_result.error is not None:
            result.failed_files[file_result.path] = file_result.error
            continue
        result.files_analyzed += 1
        result.violations.extend(file_result.violations)

    logger.info(
        "Analysis complete: %d file(s) analyzed, %d failed, %d violation(s)",
        result.files_analyzed,
        len(result.failed_files),
        len(result.violations),
    )
    return result
