"""Built-in functions available to rule expressions.

Functions are pure. A null first argument yields a falsy result instead of
raising, so rules can be written without guards.
"""

from collections.abc import Mapping
from typing import Any, Callable


def _includes(haystack: Any, needle: Any) -> bool:
    if isinstance(haystack, str):
        return isinstance(needle, str) and needle in haystack
    if isinstance(haystack, (Mapping, list, tuple, set, frozenset)):
        try:
            return needle in haystack
        except TypeError:
            # unhashable needle against a set/mapping
            return False
    return False


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    if isinstance(value, Mapping):
        return list(value.keys())
    return [value]


def contains(haystack: Any, needle: Any) -> bool:
    if haystack is None:
        return False
    return _includes(haystack, needle)


def contains_any(haystack: Any, needles: Any) -> bool:
    if haystack is None or needles is None:
        return False
    return any(_includes(haystack, needle) for needle in _as_list(needles))


def startswith(string: Any, prefix: Any) -> bool:
    if string is None or prefix is None:
        return False
    return str(string).startswith(str(prefix))


def endswith(string: Any, suffix: Any) -> bool:
    if string is None or suffix is None:
        return False
    return str(string).endswith(str(suffix))


def difference(first: Any, second: Any) -> list[Any]:
    """Items of ``first`` not in ``second``, in order."""
    exclude = _as_list(second)
    return [item for item in _as_list(first) if item not in exclude]


def intersection(first: Any, second: Any) -> list[Any]:
    """Items of ``first`` also in ``second``, in order and without duplicates."""
    keep = _as_list(second)
    result: list[Any] = []
    for item in _as_list(first):
        if item in keep and item not in result:
            result.append(item)
    return result


def count(collection: Any) -> int:
    if collection is None:
        return 0
    try:
        return len(collection)
    except TypeError:
        return 0


FUNCTIONS: dict[str, Callable[..., Any]] = {
    "contains": contains,
    "contains_any": contains_any,
    "startswith": startswith,
    "endswith": endswith,
    "difference": difference,
    "intersection": intersection,
    "count": count,
}

ARITY: dict[str, int] = {
    "contains": 2,
    "contains_any": 2,
    "startswith": 2,
    "endswith": 2,
    "difference": 2,
    "intersection": 2,
    "count": 1,
}
