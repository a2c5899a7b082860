"""
Tests for docstore/stores/field_paths.py
"""

import pytest

from docstore.documents.field_values import SERVER_TIMESTAMP, increment
from docstore.stores.field_paths import (
    flatten,
    get_path,
    is_under,
    select_fields,
    set_path,
    split_sentinels,
)


def test_split_sentinels_collects_dotted_paths():
    literals, sentinels = split_sentinels({
        "name": "Ada",
        "meta": {"seen": SERVER_TIMESTAMP, "visits": increment()},
    })

    assert literals == {"name": "Ada", "meta": {}}
    assert sentinels == {"meta.seen": SERVER_TIMESTAMP, "meta.visits": increment()}


def test_split_sentinels_rejects_nested_array_sentinel():
    with pytest.raises(ValueError, match="'log'"):
        split_sentinels({"log": [{"at": SERVER_TIMESTAMP}]})


def test_flatten_keeps_empty_maps():
    assert flatten({"a": {"b": {"c": 1}, "d": {}}, "e": [1]}) == {
        "a.b.c": 1,
        "a.d": {},
        "e": [1],
    }


def test_get_and_set_path():
    document = {"a": {"b": 1}, "x": 5}

    set_path(document, "a.c", 2)
    set_path(document, "x.y", 3)

    assert document == {"a": {"b": 1, "c": 2}, "x": {"y": 3}}
    assert get_path(document, "a.c") == 2
    assert get_path(document, "a.zzz", "missing") == "missing"


def test_is_under():
    assert is_under("a.b", ["a"])
    assert is_under("a", ["a"])
    assert not is_under("ab", ["a"])


def test_select_fields_takes_whole_values():
    writes, sentinels = select_fields(
        {"a": {"b": 1, "c": 2}, "d": 3},
        {"a.t": SERVER_TIMESTAMP, "z": SERVER_TIMESTAMP},
        ["a"],
    )

    assert writes == {"a": {"b": 1, "c": 2}}
    assert sentinels == {"a.t": SERVER_TIMESTAMP}
