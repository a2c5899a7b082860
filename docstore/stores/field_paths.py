"""
Dotted field-path helpers shared by the document stores.

Write bodies reach a store as nested dicts that may hold FieldValue
sentinels. Stores split them into literal values and sentinel paths,
and flatten bodies into dotted paths for merge writes.
"""

from collections.abc import Mapping
from typing import Any, Dict, Iterable, Optional, Sequence, Tuple

from ..documents.field_values import FieldValue

SEPARATOR = "."


def split_sentinels(body: Mapping, prefix: str = "") -> Tuple[Dict[str, Any], Dict[str, FieldValue]]:
    """
    Separate sentinels from literal values.

    Args:
        body: Write body
        prefix: Path of ``body`` inside the root document

    Returns:
        (body without sentinels, {dotted path: sentinel})

    Raises:
        ValueError: If a sentinel is found inside a list
    """
    literals: Dict[str, Any] = {}
    sentinels: Dict[str, FieldValue] = {}

    for key, value in body.items():
        path = f"{prefix}{key}"
        if isinstance(value, FieldValue):
            sentinels[path] = value
        elif isinstance(value, Mapping):
            nested, nested_sentinels = split_sentinels(value, path + SEPARATOR)
            literals[key] = nested
            sentinels.update(nested_sentinels)
        else:
            if isinstance(value, list):
                _reject_sentinels_in_list(value, path)
            literals[key] = value

    return literals, sentinels


def _reject_sentinels_in_list(items: list, path: str) -> None:
    for item in items:
        if isinstance(item, FieldValue):
            raise ValueError(f"{item!r} cannot be used inside an array (field '{path}')")
        if isinstance(item, list):
            _reject_sentinels_in_list(item, path)
        elif isinstance(item, Mapping):
            _reject_sentinels_in_list(list(item.values()), path)


def flatten(body: Mapping, prefix: str = "") -> Dict[str, Any]:
    """
    Flatten nested mappings into dotted paths.

    Empty mappings are kept as leaves so that merging ``{"a": {}}``
    still creates ``a``.
    """
    flat: Dict[str, Any] = {}
    for key, value in body.items():
        path = f"{prefix}{key}"
        if isinstance(value, Mapping) and value:
            flat.update(flatten(value, path + SEPARATOR))
        else:
            flat[path] = value
    return flat


def is_under(path: str, parents: Iterable[str]) -> bool:
    """True when ``path`` equals one of ``parents`` or is nested below one."""
    return any(path == parent or path.startswith(parent + SEPARATOR) for parent in parents)


def get_path(document: Mapping, path: str, default: Any = None) -> Any:
    """Read a dotted path, returning ``default`` when any segment is missing."""
    current: Any = document
    for part in path.split(SEPARATOR):
        if not isinstance(current, Mapping) or part not in current:
            return default
        current = current[part]
    return current


_MISSING = object()


def has_path(document: Mapping, path: str) -> bool:
    return get_path(document, path, _MISSING) is not _MISSING


def set_path(document: Dict[str, Any], path: str, value: Any) -> None:
    """Write a dotted path, creating (or overwriting non-dict) parents."""
    parts = path.split(SEPARATOR)
    current = document
    for part in parts[:-1]:
        child = current.get(part)
        if not isinstance(child, dict):
            child = {}
            current[part] = child
        current = child
    current[parts[-1]] = value


def select_fields(
    literals: Mapping,
    sentinels: Mapping[str, FieldValue],
    merge_fields: Optional[Sequence[str]],
) -> Tuple[Dict[str, Any], Dict[str, FieldValue]]:
    """
    Compute the (path -> value) writes of a merge.

    Without ``merge_fields`` every leaf is written (deep merge). With it,
    each listed path is written with its value taken whole from the body.

    Raises:
        ValueError: If a listed path is not present in the body
    """
    if merge_fields is None:
        return flatten(literals), dict(sentinels)

    writes: Dict[str, Any] = {}
    for path in merge_fields:
        if has_path(literals, path):
            writes[path] = get_path(literals, path)
        elif not any(is_under(sentinel_path, [path]) for sentinel_path in sentinels):
            raise ValueError(f"Field '{path}' is listed in merge_fields but missing from the data")

    selected = {p: v for p, v in sentinels.items() if is_under(p, merge_fields)}
    return writes, selected
