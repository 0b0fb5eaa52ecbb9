"""Normalize stage: build the enriched workflow model from a parsed document.

Workflow documents come in several shapes (``on`` as a string, a list or a
mapping; permissions as a bulk string or per-scope mapping; containers as a
string or an ``image`` mapping). This stage folds them into one model.
"""

import logging
import re
from types import MappingProxyType
from typing import Optional, cast

from claws.models.node import Key, MappingNode, Node, ScalarNode, SequenceNode
from claws.models.workflow import (
    ActionRef,
    ContainerRef,
    Job,
    PermissionScope,
    Reference,
    Step,
    Workflow,
)
from claws.pipeline.parse import Document, parse

logger = logging.getLogger(__name__)

SECRET_PATTERN = re.compile(r"secrets\.([a-zA-Z0-9_]+)")
DOCKER_PREFIX = "docker://"
PERMISSION_LEVELS = ("read", "write", "none")


def normalize_keys(node: Node) -> Node:
    """Rewrite hyphenated mapping keys to underscores, recursively.

    Renamed keys keep the line of the key they replace.
    """
    if isinstance(node, MappingNode):
        entries = []
        for key, value in node.entries:
            if "-" in key.text:
                key = key.renamed(key.text.replace("-", "_"))
            entries.append((key, normalize_keys(value)))
        return MappingNode(line=node.line, entries=tuple(entries))

    if isinstance(node, SequenceNode):
        return SequenceNode(line=node.line, items=tuple(normalize_keys(item) for item in node.items))

    return node


def _scalar_text(node: Optional[Node]) -> Optional[str]:
    if not isinstance(node, ScalarNode) or node.value is None:
        return None
    return str(node.value)


def normalize_triggers(on: Optional[Node]) -> tuple[str, ...]:
    """Normalize the ``on`` field into a list of trigger names."""
    if on is None:
        return ()
    if isinstance(on, MappingNode):
        return tuple(key.original for key in on.keys())
    if isinstance(on, SequenceNode):
        return tuple(text for text in (_scalar_text(item) for item in on.items) if text is not None)

    text = _scalar_text(on)
    return () if text is None else (text,)


def normalize_permissions(permissions: Optional[Node]) -> PermissionScope:
    """Normalize a bulk (``read-all``/``write-all``) or per-scope permissions block."""
    if isinstance(permissions, ScalarNode):
        return PermissionScope(
            read_all=permissions.value == "read-all",
            write_all=permissions.value == "write-all",
        )

    if not isinstance(permissions, MappingNode):
        return PermissionScope()

    levels: dict[str, set[str]] = {level: set() for level in PERMISSION_LEVELS}
    for key, value in permissions.entries:
        level = _scalar_text(value)
        if level in levels:
            # scope names are reported as written (id-token, not id_token)
            levels[level].add(key.original)

    return PermissionScope(
        read=frozenset(levels["read"]),
        write=frozenset(levels["write"]),
        none=frozenset(levels["none"]),
    )


def parse_container(reference: str) -> ContainerRef:
    """Parse ``[docker://]image[:version]``."""
    if reference.startswith(DOCKER_PREFIX):
        reference = reference[len(DOCKER_PREFIX):]
    image, sep, version = reference.partition(":")
    return ContainerRef(image=image, version=version if sep else None)


def parse_action(uses: Optional[str]) -> Optional[Reference]:
    """Parse a step's ``uses`` into an action or container reference."""
    if uses is None:
        return None
    if uses.startswith(DOCKER_PREFIX):
        return parse_container(uses)

    name, sep, version = uses.partition("@")
    author = name.split("/", 1)[0]
    return ActionRef(
        name=name,
        author=author,
        version=version if sep else None,
        local=author == ".",
    )


def extract_secrets(env: Optional[Node]) -> frozenset[str]:
    """Collect ``secrets.NAME`` references from string values of an env block."""
    if not isinstance(env, MappingNode):
        return frozenset()

    secrets: set[str] = set()
    for _, value in env.entries:
        if isinstance(value, ScalarNode) and isinstance(value.value, str):
            secrets.update(SECRET_PATTERN.findall(value.value))
    return frozenset(secrets)


def extract_container(job: MappingNode) -> Optional[ContainerRef]:
    """Extract a job's container image from the string or ``image:`` form."""
    container = job.get("container")
    if isinstance(container, MappingNode):
        container = container.get("image")

    image = _scalar_text(container)
    if image is None:
        return None
    return parse_container(image)


def _build_step(node: MappingNode, index: int) -> Step:
    uses = node.get_value("uses")
    return Step(
        node=node,
        index=index,
        secrets_referenced=extract_secrets(node.get("env")),
        action=parse_action(None if uses is None else str(uses)),
    )


def _build_steps(steps: Optional[Node], job_name: str) -> tuple[Step, ...]:
    if not isinstance(steps, SequenceNode):
        return ()

    built = []
    for index, item in enumerate(steps.items):
        if not isinstance(item, MappingNode):
            logger.debug("Skipping non-mapping step %d in job '%s'", index, job_name)
            continue
        built.append(_build_step(item, index))
    return tuple(built)


def _build_job(key: Key, node: Node) -> Job:
    if not isinstance(node, MappingNode):
        node = MappingNode(line=key.line)

    return Job(
        name=key.original,
        name_line=key.line,
        node=node,
        permissions=normalize_permissions(node.get("permissions")),
        container=extract_container(node),
        steps=_build_steps(node.get("steps"), key.original),
    )


def _build_jobs(jobs: Optional[Node]) -> dict[str, Job]:
    if not isinstance(jobs, MappingNode):
        return {}
    return {key.original: _build_job(key, value) for key, value in jobs.entries}


def build_workflow(document: Document) -> Workflow:
    """
    Build the normalized workflow model from a parsed document.

    Never fails for a structurally valid document: missing fields normalize
    to empty values.

    Args:
        document: Parsed document

    Returns:
        Normalized Workflow
    """
    root = document.root
    if not isinstance(root, MappingNode):
        logger.warning("Workflow root is not a mapping, treating it as empty")
        root = MappingNode(line=root.line)

    root = cast(MappingNode, normalize_keys(root))

    workflow = Workflow(
        node=root,
        source=document.source,
        name=_scalar_text(root.get("name")),
        triggers=normalize_triggers(root.get("on")),
        permissions=normalize_permissions(root.get("permissions")),
        jobs=MappingProxyType(_build_jobs(root.get("jobs"))),
        lines=document.lines,
    )
    logger.debug(
        "Normalized workflow '%s': %d trigger(s), %d job(s)",
        workflow.name,
        len(workflow.triggers),
        len(workflow.jobs),
    )
    return workflow


def load_workflow(raw_text: str) -> Workflow:
    """Parse and normalize a workflow document.

    Raises:
        ParseError: If the text is not well-formed YAML
    """
    return build_workflow(parse(raw_text))
