"""Line-annotated document tree produced by the parser."""

from dataclasses import dataclass
from typing import Any, Iterator, Optional, Union

ScalarValue = Union[None, bool, int, float, str]


@dataclass(frozen=True)
class Node:
    """Base class for every parsed node. ``line`` is 1-indexed."""

    line: int

    def to_python(self) -> Any:
        """Convert the node (recursively) to plain Python values."""
        raise NotImplementedError


@dataclass(frozen=True)
class ScalarNode(Node):
    """A null, boolean, number or string."""

    value: ScalarValue

    @property
    def kind(self) -> str:
        if self.value is None:
            return "null"
        if isinstance(self.value, bool):
            return "bool"
        if isinstance(self.value, int):
            return "integer"
        if isinstance(self.value, float):
            return "float"
        return "string"

    def to_python(self) -> ScalarValue:
        return self.value


@dataclass(frozen=True)
class SequenceNode(Node):
    """An ordered list of nodes."""

    items: tuple[Node, ...] = ()

    def __iter__(self) -> Iterator[Node]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def to_python(self) -> list[Any]:
        return [item.to_python() for item in self.items]


@dataclass(frozen=True)
class Key:
    """A mapping key with the line it was written on.

    ``source_text`` is the key exactly as it appeared in the document, which
    differs from ``text`` once hyphens have been normalized.
    """

    text: str
    line: int
    source_text: Optional[str] = None

    @property
    def original(self) -> str:
        return self.source_text if self.source_text is not None else self.text

    def renamed(self, text: str) -> "Key":
        """Return a copy with new text, keeping the line and source text."""
        return Key(text=text, line=self.line, source_text=self.original)


@dataclass(frozen=True)
class MappingNode(Node):
    """An ordered mapping of keys to nodes. Later duplicates win on lookup."""

    entries: tuple[tuple[Key, Node], ...] = ()

    def __contains__(self, text: object) -> bool:
        return self.key(str(text)) is not None

    def __len__(self) -> int:
        return len(self.entries)

    def key(self, text: str) -> Optional[Key]:
        """Return the key object for ``text`` (for its line), if present."""
        for key, _ in reversed(self.entries):
            if key.text == text:
                return key
        return None

    def get(self, text: str) -> Optional[Node]:
        for key, value in reversed(self.entries):
            if key.text == text:
                return value
        return None

    def get_value(self, text: str, default: Any = None) -> Any:
        """Look up ``text`` and return the plain Python value."""
        node = self.get(text)
        if node is None:
            return default
        return node.to_python()

    def keys(self) -> list[Key]:
        return [key for key, _ in self.entries]

    def items(self) -> list[tuple[Key, Node]]:
        return list(self.entries)

    def to_python(self) -> dict[str, Any]:
        return {key.text: value.to_python() for key, value in self.entries}


def unwrap(value: Any) -> Any:
    """Convert parsed nodes to plain Python values, leaving anything else as is."""
    if isinstance(value, Node):
        return value.to_python()
    return value
