"""Rule contract: hooks, the hook builder and the Rule base class."""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Optional, Union

from claws.models.violation import Violation
from claws.models.workflow import Job, Step, Workflow
from claws.pipeline.expressions import CompiledExpression, compile_expression


class HookScope(Enum):
    """Nesting level a hook is evaluated at."""

    WORKFLOW = "workflow"
    JOB = "job"
    STEP = "step"


class MissingExternalTool(Exception):
    """Raised when a rule's external dependency (e.g. shellcheck) is unavailable.

    This aborts the whole run rather than producing a violation.
    """

    def __init__(self, tool: str, path: str, remediation: str):
        self.tool = tool
        self.path = path
        self.remediation = remediation
        super().__init__(f"Couldn't find {tool} binary ({path}). {remediation}")


DynamicFunction = Callable[[Workflow, Optional[Job], Optional[Step]], Optional[Violation]]


@dataclass(frozen=True)
class DeclarativeHook:
    """An expression; a truthy result produces a violation."""

    expression: CompiledExpression
    highlight: Optional[str] = None
    debug: bool = False


@dataclass(frozen=True)
class DynamicHook:
    """A function that builds its own violation (or returns None)."""

    function: DynamicFunction

    @property
    def name(self) -> str:
        return getattr(self.function, "__name__", repr(self.function))


Hook = Union[DeclarativeHook, DynamicHook]


@dataclass(frozen=True)
class HookSet:
    """Immutable hooks of one rule, grouped by scope."""

    workflow: tuple[Hook, ...] = ()
    job: tuple[Hook, ...] = ()
    step: tuple[Hook, ...] = ()

    def for_scope(self, scope: HookScope) -> tuple[Hook, ...]:
        return getattr(self, scope.value)

    def __len__(self) -> int:
        return len(self.workflow) + len(self.job) + len(self.step)


@dataclass
class HookBuilder:
    """Collects a rule's hooks during registration.

    Expressions are compiled here, so a malformed expression fails when the
    rule is loaded, never while a document is analyzed.
    """

    hooks: dict[HookScope, list[Hook]] = field(
        default_factory=lambda: {scope: [] for scope in HookScope}
    )

    def _add(
        self,
        scope: HookScope,
        hook: Union[str, DynamicFunction],
        highlight: Optional[str],
        debug: bool,
    ) -> None:
        if isinstance(hook, str):
            self.hooks[scope].append(
                DeclarativeHook(compile_expression(hook), highlight=highlight, debug=debug)
            )
        elif callable(hook):
            self.hooks[scope].append(DynamicHook(hook))
        else:
            raise TypeError(
                f"Hook must be an expression string or a callable, not: {type(hook).__name__}"
            )

    def on_workflow(
        self, hook: Union[str, DynamicFunction], highlight: Optional[str] = None, debug: bool = False
    ) -> None:
        self._add(HookScope.WORKFLOW, hook, highlight, debug)

    def on_job(
        self, hook: Union[str, DynamicFunction], highlight: Optional[str] = None, debug: bool = False
    ) -> None:
        self._add(HookScope.JOB, hook, highlight, debug)

    def on_step(
        self, hook: Union[str, DynamicFunction], highlight: Optional[str] = None, debug: bool = False
    ) -> None:
        self._add(HookScope.STEP, hook, highlight, debug)

    def build(self) -> HookSet:
        return HookSet(
            workflow=tuple(self.hooks[HookScope.WORKFLOW]),
            job=tuple(self.hooks[HookScope.JOB]),
            step=tuple(self.hooks[HookScope.STEP]),
        )


class Rule(ABC):
    """Base class for a detection.

    Subclasses set ``description``, register their hooks in ``register`` and
    may expose supplementary values (visible as ``$data``) through ``data``.
    """

    description: str = ""

    def __init__(self, configuration: Optional[Mapping[str, Any]] = None):
        self.configuration: Mapping[str, Any] = MappingProxyType(dict(configuration or {}))
        builder = HookBuilder()
        self.register(builder)
        self.hooks = builder.build()

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    def register(self, hooks: HookBuilder) -> None:
        """Register the rule's hooks."""
        pass

    def data(self) -> dict[str, Any]:
        return {}

    def __repr__(self) -> str:
        return (
            f"<Rule {self.name} ({len(self.hooks.workflow)} Workflow Rules; "
            f"{len(self.hooks.job)} Job Rules; {len(self.hooks.step)} Step Rules)>"
        )


@dataclass(frozen=True)
class TraceRecord:
    """One evaluated declarative hook, for offline inspection."""

    rule_name: str
    scope: HookScope
    expression: str
    result: Any
    context: Mapping[str, Any]
