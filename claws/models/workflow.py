"""Normalized workflow model.

The model is built once by :mod:`claws.pipeline.normalize` and is read-only
afterwards. Expressions reach into it through ``get_field``: the structured
attributes listed in each class's ``_fields`` take precedence, anything else
falls back to the normalized raw mapping.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from claws.models.node import MappingNode, Node


@dataclass(frozen=True)
class PermissionScope:
    """Permissions requested by a workflow or a job."""

    read: frozenset[str] = frozenset()
    write: frozenset[str] = frozenset()
    none: frozenset[str] = frozenset()
    read_all: bool = False
    write_all: bool = False


@dataclass(frozen=True)
class ActionRef:
    """A reusable action referenced by ``uses``."""

    name: str
    author: str
    version: Optional[str]
    local: bool
    type: str = "action"


@dataclass(frozen=True)
class ContainerRef:
    """A container image, either ``uses: docker://...`` or a job container."""

    image: str
    version: Optional[str]
    type: str = "container"

    @property
    def full(self) -> str:
        return f"{self.image}:{self.version or ''}"


Reference = Union[ActionRef, ContainerRef]


def _raw_field(node: MappingNode, name: str) -> Optional[Node]:
    return node.get(name)


@dataclass(frozen=True)
class Step:
    node: MappingNode
    index: int
    secrets_referenced: frozenset[str] = frozenset()
    action: Optional[Reference] = None

    _fields = ("run", "uses", "with", "env", "shell", "name", "secrets_referenced", "action", "meta")

    @property
    def line(self) -> int:
        return self.node.line

    @property
    def run(self) -> Optional[str]:
        value = self.node.get_value("run")
        return None if value is None else str(value)

    @property
    def uses(self) -> Optional[str]:
        value = self.node.get_value("uses")
        return None if value is None else str(value)

    @property
    def shell(self) -> Optional[str]:
        return self.node.get_value("shell")

    @property
    def name(self) -> Optional[str]:
        return self.node.get_value("name")

    @property
    def with_(self) -> dict[str, Any]:
        value = self.node.get_value("with")
        return value if isinstance(value, dict) else {}

    @property
    def env(self) -> dict[str, Any]:
        value = self.node.get_value("env")
        return value if isinstance(value, dict) else {}

    @property
    def meta(self) -> dict[str, Any]:
        return {"secrets": sorted(self.secrets_referenced), "action": self.action}

    def get_field(self, name: str) -> Any:
        if name == "with":
            return self.with_
        if name in self._fields:
            return getattr(self, name)
        return _raw_field(self.node, name)


@dataclass(frozen=True)
class Job:
    name: str
    name_line: int
    node: MappingNode
    permissions: PermissionScope = field(default_factory=PermissionScope)
    container: Optional[ContainerRef] = None
    steps: tuple[Step, ...] = ()

    _fields = ("runs_on", "permissions", "secrets", "container", "steps", "meta")

    @property
    def line(self) -> int:
        return self.name_line

    @property
    def runs_on(self) -> Any:
        return self.node.get_value("runs_on")

    @property
    def secrets(self) -> Any:
        return self.node.get_value("secrets")

    @property
    def meta(self) -> dict[str, Any]:
        return {"container": self.container, "permissions": self.permissions}

    def get_field(self, name: str) -> Any:
        if name in self._fields:
            return getattr(self, name)
        return _raw_field(self.node, name)


@dataclass(frozen=True)
class Workflow:
    """The normalized root of one workflow document."""

    node: MappingNode
    source: str
    name: Optional[str] = None
    triggers: tuple[str, ...] = ()
    permissions: PermissionScope = field(default_factory=PermissionScope)
    jobs: Mapping[str, Job] = field(default_factory=dict)
    lines: tuple[str, ...] = ()

    _fields = ("name", "triggers", "permissions", "jobs", "meta")

    # document-level findings have no single natural source line
    line = 0

    @property
    def meta(self) -> dict[str, Any]:
        return {"triggers": list(self.triggers), "permissions": self.permissions}

    def get_field(self, name: str) -> Any:
        if name == "triggers":
            return list(self.triggers)
        if name in self._fields:
            return getattr(self, name)
        return _raw_field(self.node, name)
