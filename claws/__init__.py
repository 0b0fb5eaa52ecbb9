"""Static analysis for GitHub Actions workflows."""

__version__ = "0.1.0"

from claws.models.violation import Violation  # noqa: E402
from claws.pipeline.normalize import load_workflow  # noqa: E402
from claws.pipeline.pipeline import AnalysisResult, run_pipeline  # noqa: E402
from claws.pipeline.rules import Rule, RuleEngine  # noqa: E402

__all__ = [
    "AnalysisResult",
    "Rule",
    "RuleEngine",
    "Violation",
    "__version__",
    "load_workflow",
    "run_pipeline",
]
