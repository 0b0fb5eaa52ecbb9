from textwrap import dedent
from typing import Any, Callable, Optional

import pytest

from claws.config import ClawsSettings, set_settings
from claws.models.violation import Violation
from claws.pipeline.normalize import load_workflow
from claws.pipeline.rules import Rule, RuleEngine

WORKFLOW_FILENAME = "workflow.yml"


def workflow_from(text: str):
    """Normalize a dedented workflow document."""
    return load_workflow(dedent(text))


def run_rule(
    rule_class: type[Rule], text: str, configuration: Optional[dict[str, Any]] = None
) -> list[Violation]:
    """Analyze a dedented document with a one-rule engine."""
    engine = RuleEngine([rule_class(configuration)])
    return engine.analyze(WORKFLOW_FILENAME, dedent(text))


@pytest.fixture
def analyze() -> Callable[..., list[Violation]]:
    """Build a one-rule engine and analyze a document with it."""
    return run_rule


@pytest.fixture
def load() -> Callable[[str], Any]:
    """Normalize a dedented workflow document."""
    return workflow_from


@pytest.fixture(autouse=True)
def default_settings():
    """Reset global settings around every test."""
    set_settings(ClawsSettings())
    yield
    set_settings(ClawsSettings())
