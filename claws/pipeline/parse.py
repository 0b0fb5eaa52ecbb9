"""Parse stage: YAML text to a line-annotated document tree."""

import logging
from dataclasses import dataclass, field
from typing import Any

import yaml

from claws.models.node import Key, MappingNode, Node, ScalarNode, SequenceNode

logger = logging.getLogger(__name__)

STR_TAG = "tag:yaml.org,2002:str"


class ParseError(Exception):
    """Raised when a document is not structurally valid YAML."""

    def __init__(self, message: str, line: int | None = None):
        self.message = message
        self.line = line
        location = f"line {line}: " if line is not None else ""
        super().__init__(f"{location}{message}")


class _LineLoader(yaml.SafeLoader):
    """Safe loader that never resolves a plain ``on`` to a boolean.

    Workflows use ``on`` as the trigger key, which YAML 1.1 reads as ``True``.
    """

    def resolve(self, kind: Any, value: Any, implicit: Any) -> str:
        if kind is yaml.ScalarNode and implicit[0] and value.lower() == "on":
            return STR_TAG
        return super().resolve(kind, value, implicit)


@dataclass(frozen=True)
class Document:
    """A parsed document together with its raw source lines."""

    root: Node
    source: str
    lines: tuple[str, ...] = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "lines", tuple(self.source.splitlines()))

    def get_line(self, line: int) -> str | None:
        """Return the source text of a 1-indexed line, or None past the end."""
        if line < 1:
            raise ValueError("Line number must be positive and one-indexed")
        if line > len(self.lines):
            return None
        return self.lines[line - 1]


def _line_of(yaml_node: yaml.Node) -> int:
    return yaml_node.start_mark.line + 1


def _build_scalar(loader: _LineLoader, yaml_node: yaml.ScalarNode) -> ScalarNode:
    value = loader.construct_object(yaml_node, deep=True)
    if value is not None and not isinstance(value, (bool, int, float, str)):
        # timestamps, binary and friends stay as written
        value = yaml_node.value
    return ScalarNode(line=_line_of(yaml_node), value=value)


def _build_key(yaml_node: yaml.Node) -> Key:
    if not isinstance(yaml_node, yaml.ScalarNode):
        raise ParseError("Complex mapping keys are not supported", _line_of(yaml_node))
    return Key(text=str(yaml_node.value), line=_line_of(yaml_node))


def _build_node(
    loader: _LineLoader, yaml_node: yaml.Node, active: frozenset[int] = frozenset()
) -> Node:
    if isinstance(yaml_node, yaml.ScalarNode):
        return _build_scalar(loader, yaml_node)

    # an alias to a collection that is still being built
    if id(yaml_node) in active:
        raise ParseError("Recursive alias", _line_of(yaml_node))
    active = active | {id(yaml_node)}

    if isinstance(yaml_node, yaml.MappingNode):
        loader.flatten_mapping(yaml_node)
        entries = tuple(
            (_build_key(key_node), _build_node(loader, value_node, active))
            for key_node, value_node in yaml_node.value
        )
        return MappingNode(line=_line_of(yaml_node), entries=entries)

    items = tuple(_build_node(loader, item, active) for item in yaml_node.value)
    return SequenceNode(line=_line_of(yaml_node), items=items)


def _error_line(error: yaml.YAMLError) -> int | None:
    mark = getattr(error, "problem_mark", None) or getattr(error, "context_mark", None)
    if mark is None:
        return None
    return mark.line + 1


def parse(raw_text: str) -> Document:
    """
    Parse a single YAML document, keeping the source line of every node.

    Args:
        raw_text: The document text

    Returns:
        Document with the annotated root node and the source lines

    Raises:
        ParseError: If the text is not a single well-formed YAML document
    """
    loader = _LineLoader(raw_text)
    try:
        yaml_root = loader.get_single_node()
        if yaml_root is None:
            logger.debug("Empty document, using an empty mapping")
            root: Node = MappingNode(line=1)
        else:
            root = _build_node(loader, yaml_root)
    except yaml.YAMLError as e:
        problem = getattr(e, "problem", None) or str(e)
        raise ParseError(str(problem), _error_line(e)) from e
    finally:
        loader.dispose()

    return Document(root=root, source=raw_text)
