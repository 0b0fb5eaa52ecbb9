"""Rule engine for evaluating rules against a normalized workflow."""

import logging
from collections.abc import Sequence
from typing import Any, Callable, Optional, Union

from claws.models.node import Key, MappingNode
from claws.models.violation import Violation
from claws.models.workflow import Job, Step, Workflow
from claws.pipeline.expressions import evaluate, is_truthy
from claws.pipeline.normalize import load_workflow
from claws.pipeline.suppression import apply_suppressions

from .models import DeclarativeHook, DynamicHook, Hook, HookScope, Rule, TraceRecord

logger = logging.getLogger(__name__)

Target = Union[Workflow, Job, Step]
Tracer = Callable[[TraceRecord], None]


def log_trace(record: TraceRecord) -> None:
    """Default tracer: one DEBUG line per evaluated expression."""
    logger.debug(
        "[%s] %s hook %s => %r",
        record.rule_name,
        record.scope.value,
        " ".join(record.expression.split()),
        record.result,
    )


def find_nearest_key(node: MappingNode, path: str) -> Optional[Key]:
    """Walk a dotted path and return the deepest key that exists.

    Returns None when the first segment is already missing.
    """
    found: Optional[Key] = None
    current: Any = node
    for segment in path.split("."):
        if not isinstance(current, MappingNode):
            break
        key = current.key(segment)
        if key is None:
            break
        found = key
        current = current.get(segment)
    return found


def resolve_line(target: Target, highlight: Optional[str]) -> int:
    """Line for a finding on ``target``, preferring the highlighted key."""
    if highlight:
        key = find_nearest_key(target.node, highlight)
        if key is not None:
            return key.line
    return target.line


class RuleEngine:
    """Engine that runs every loaded rule across workflow, job and step scopes."""

    def __init__(
        self,
        rules: Sequence[Rule],
        tracer: Optional[Tracer] = None,
        trace: bool = False,
    ):
        """Initialize the rule engine with an immutable list of rules."""
        self.rules = tuple(rules)
        self.tracer = tracer or log_trace
        self.trace = trace

    def analyze(self, filename: str, raw_text: str) -> list[Violation]:
        """Parse, normalize and evaluate one workflow document.

        Raises:
            ParseError: If the document is not valid YAML
        """
        workflow = load_workflow(raw_text)
        return self.analyze_workflow(filename, workflow)

    def analyze_workflow(self, filename: str, workflow: Workflow) -> list[Violation]:
        """Evaluate every rule against an already normalized workflow.

        Dispatch is scope by scope: every rule's workflow hooks, then for each
        job every rule's job hooks followed by every rule's step hooks.
        """
        loaded = [(rule, rule.data()) for rule in self.rules]
        found: list[tuple[Rule, Violation]] = []

        for rule, data in loaded:
            for hook in rule.hooks.workflow:
                self._collect(found, rule, hook, HookScope.WORKFLOW, data, workflow)

        for job in workflow.jobs.values():
            for rule, data in loaded:
                for hook in rule.hooks.job:
                    self._collect(found, rule, hook, HookScope.JOB, data, workflow, job)

            for step in job.steps:
                for rule, data in loaded:
                    for hook in rule.hooks.step:
                        self._collect(found, rule, hook, HookScope.STEP, data, workflow, job, step)

        logger.debug("Found %d violation(s) in %s", len(found), filename)
        violations = [
            violation.model_copy(update={"file": filename, "rule_name": rule.name})
            for rule, violation in found
        ]
        return apply_suppressions(violations, workflow.lines)

    def _collect(
        self,
        found: list[tuple[Rule, Violation]],
        rule: Rule,
        hook: Hook,
        scope: HookScope,
        data: dict[str, Any],
        workflow: Workflow,
        job: Optional[Job] = None,
        step: Optional[Step] = None,
    ) -> None:
        if isinstance(hook, DeclarativeHook):
            violation = self._run_declarative(rule, hook, scope, data, workflow, job, step)
        elif isinstance(hook, DynamicHook):
            violation = hook.function(workflow, job, step)
        else:
            raise TypeError(f"Unknown hook type: {type(hook).__name__}")

        if violation is not None:
            found.append((rule, violation))

    def _run_declarative(
        self,
        rule: Rule,
        hook: DeclarativeHook,
        scope: HookScope,
        data: dict[str, Any],
        workflow: Workflow,
        job: Optional[Job],
        step: Optional[Step],
    ) -> Optional[Violation]:
        context: dict[str, Any] = {"data": data, "workflow": workflow, "job": job, "step": step}
        result = evaluate(hook.expression, context)

        if hook.debug or self.trace:
            self.tracer(
                TraceRecord(
                    rule_name=rule.name,
                    scope=scope,
                    expression=hook.expression.text,
                    result=result,
                    context=context,
                )
            )

        if not is_truthy(result):
            return None

        target: Target = step or job or workflow
        return Violation(line=resolve_line(target, hook.highlight), description=rule.description)
