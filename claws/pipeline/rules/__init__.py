"""Rule contract and dispatch engine."""

from .engine import RuleEngine, find_nearest_key, log_trace, resolve_line
from .models import (
    DeclarativeHook,
    DynamicHook,
    HookBuilder,
    HookScope,
    HookSet,
    MissingExternalTool,
    Rule,
    TraceRecord,
)

__all__ = [
    "DeclarativeHook",
    "DynamicHook",
    "HookBuilder",
    "HookScope",
    "HookSet",
    "MissingExternalTool",
    "Rule",
    "RuleEngine",
    "TraceRecord",
    "find_nearest_key",
    "log_trace",
    "resolve_line",
]
