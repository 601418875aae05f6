"""Tests for list and map values."""

import pytest

from containers import LoxList, LoxMap
from errors import ErrorKind, LoxRuntimeError


def test_list_indexing_and_assignment(run):
    outcome = run("""
        var xs = [10, 20, 30];
        print xs[0];
        xs[2] = "last";
        print xs;
        print xs.length();
    """)
    assert outcome.lines == ["10", "[10, 20, last]", "3"]


def test_assigning_one_past_the_end_fails(run):
    outcome = run("var xs = [1, 2]; xs[2] = 3;")
    assert outcome.error.kind is ErrorKind.INDEX_OUT_OF_BOUNDS
    assert outcome.error.message == "index 2 out of bounds for list of length 2"


@pytest.mark.parametrize("index, kind", [
    ("-1", ErrorKind.INDEX_OUT_OF_BOUNDS),
    ("5", ErrorKind.INDEX_OUT_OF_BOUNDS),
    ("1.5", ErrorKind.TYPE_MISMATCH),
    ('"0"', ErrorKind.TYPE_MISMATCH),
])
def test_bad_list_indexes(run, index, kind):
    assert run(f"print [1, 2][{index}];").error.kind is kind


def test_list_methods(run):
    outcome = run("""
        var xs = [];
        xs.add(1);
        xs.add(2);
        xs.insert(0, "first");
        xs.insert(3, "end");
        print xs;
        print xs.pop();
        print xs.removeAt(0);
        print xs;
        print xs.contains(2);
        print xs.indexOf(2);
        print xs.indexOf("none");
        xs.clear();
        print xs.length();
    """)
    assert outcome.lines == [
        "[first, 1, 2, end]", "end", "first", "[1, 2]",
        "true", "1", "-1", "0",
    ]


def test_pop_from_empty_list(run):
    outcome = run("[].pop();")
    assert outcome.error.kind is ErrorKind.INDEX_OUT_OF_BOUNDS
    assert outcome.error.message == "pop from empty list"


def test_lists_are_shared_by_reference(run):
    outcome = run("""
        var a = [1];
        var b = a;
        fun push(list) { list.add(2); }
        push(b);
        print a;
        print a == b;
    """)
    assert outcome.lines == ["[1, 2]", "true"]


def test_map_literals_and_access(run):
    outcome = run("""
        var m = {name: "lox", "version": 2, 3: "three"};
        print m["name"];
        print m[3];
        m["name"] = "plox";
        m["new"] = nil;
        print m;
        print m.length();
    """)
    assert outcome.lines == [
        "lox", "three", "{name: plox, version: 2, 3: three, new: nil}", "4",
    ]


def test_missing_map_key(run):
    outcome = run('var m = {}; print m.has("k"); print m["k"];')
    assert outcome.lines == ["false"]
    assert outcome.error.kind is ErrorKind.UNDEFINED_KEY
    assert outcome.error.message == "undefined key 'k'"


def test_map_methods(run):
    outcome = run("""
        var m = {a: 1, b: 2};
        print m.get("a", 0);
        print m.get("z", 0);
        print m.keys();
        print m.values();
        print m.remove("a");
        print m.remove("a");
        print m;
        m.clear();
        print m;
    """)
    assert outcome.lines == ["1", "0", "[a, b]", "[1, 2]", "true", "false", "{b: 2}", "{}"]


@pytest.mark.parametrize("key", ["true", "nil", "[]"])
def test_invalid_map_keys(run, key):
    assert run(f"var m = {{}}; m[{key}] = 1;").error.kind is ErrorKind.TYPE_MISMATCH


def test_unknown_collection_method(run):
    outcome = run("[].push(1);")
    assert outcome.error.kind is ErrorKind.UNDEFINED_PROPERTY
    assert outcome.error.message == "undefined property 'push' on list"


def test_collections_cannot_take_fields(run):
    assert run("var xs = []; xs.size = 1;").error.kind is ErrorKind.TYPE_MISMATCH


def test_only_lists_and_maps_can_be_indexed(run):
    outcome = run('print "abc"[0];')
    assert outcome.error.kind is ErrorKind.TYPE_MISMATCH
    assert outcome.error.message == "only lists and maps can be indexed, got string"


def test_nested_collections_print(run):
    assert run('print [[1, 2], {k: [nil, true]}];').lines == ["[[1, 2], {k: [nil, true]}]"]


def test_number_keys_match_integral_values():
    m = LoxMap()
    m.set_item(1.0, "one")
    assert m.get_item(1.0) == "one"
    assert m.has(1.0)


def test_check_index_allows_end_only_for_insert():
    items = LoxList(["a"])
    items.insert(1.0, "b")
    assert items.elements == ["a", "b"]
    with pytest.raises(LoxRuntimeError):
        items.set_item(2.0, "c")
