"""Data models for claws."""

from claws.models.node import Key, MappingNode, Node, ScalarNode, SequenceNode, unwrap
from claws.models.violation import Violation
from claws.models.workflow import ActionRef, ContainerRef, Job, PermissionScope, Step, Workflow

__all__ = [
    "ActionRef",
    "ContainerRef",
    "Job",
    "Key",
    "MappingNode",
    "Node",
    "PermissionScope",
    "ScalarNode",
    "SequenceNode",
    "Step",
    "Violation",
    "Workflow",
    "unwrap",
]
