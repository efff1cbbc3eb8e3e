import pytest

from ipldkit.core.cid import Cid
from ipldkit.core.enums import Kind
from ipldkit.errors import SegmentNotFound, TypeMismatch
from ipldkit.ipld import NULL, Ipld, ipld


def test_kinds_never_compare_across():
    assert ipld(1) != ipld(1.0)
    assert ipld(True) != ipld(1)
    assert ipld(0) != ipld(False)
    assert ipld(None) == NULL
    assert ipld("a") != ipld(b"a")


def test_map_equality_ignores_insertion_order():
    a = ipld({"a": 1, "b": [1, 2]})
    b = ipld({"b": [1, 2], "a": 1})
    assert a == b
    assert hash(a) == hash(b)


def test_float_equality_is_bitwise():
    assert ipld(0.0) != ipld(-0.0)
    nan = Ipld.of_float(float("nan"))
    assert nan == Ipld.of_float(float("nan"))
    assert hash(nan) == hash(Ipld.of_float(float("nan")))


def test_values_work_as_dict_keys():
    cid = Cid.of(b"x")
    d = {ipld({"k": [1, cid]}): "found"}
    assert d[ipld({"k": [1, cid]})] == "found"


def test_from_python_round_trip():
    cid = Cid.of(b"x")
    obj = {"n": None, "b": True, "i": -3, "f": 1.5, "s": "hé", "y": b"\x00", "l": [1, cid]}
    v = ipld(obj)
    assert v.kind == Kind.MAP
    assert v.to_python() == obj


def test_from_python_rejects_unknown_types():
    with pytest.raises(TypeError):
        ipld({1: "int key"})
    with pytest.raises(TypeError):
        ipld({1, 2})
    with pytest.raises(ValueError):
        ipld("\ud800")


def test_accessors_check_kind():
    assert ipld(5).as_int() == 5
    assert ipld([1]).as_list() == (ipld(1),)
    with pytest.raises(TypeMismatch) as info:
        ipld("x").as_int()
    assert info.value.expected == "integer"
    assert info.value.found == "string"
    with pytest.raises(TypeError):
        ipld(1).as_bool()


def test_map_view_is_read_only():
    m = ipld({"a": 1}).as_map()
    with pytest.raises(TypeError):
        m["b"] = ipld(2)


def test_get_list_and_map():
    v = ipld({"list": [10, 20], "7": "seven"})
    items = v.get("list")
    assert items.get(1) == ipld(20)
    assert items.get("0") == ipld(10)
    assert v.get(7) == ipld("seven")


def test_get_missing_segments():
    v = ipld({"list": [10]})
    with pytest.raises(SegmentNotFound):
        v.get("nope")
    with pytest.raises(SegmentNotFound):
        v.get("list").get(1)
    with pytest.raises(SegmentNotFound):
        v.get("list").get("x")
    with pytest.raises(KeyError):
        v.get("nope")


def test_get_on_scalar_is_a_type_mismatch():
    with pytest.raises(TypeMismatch):
        ipld(3).get(0)
    with pytest.raises(TypeError):
        ipld([1]).get(True)


def test_walk_is_pre_order():
    v = ipld([1, [2, 3], {"a": 4}])
    kinds = [n.kind for n in v.walk()]
    assert kinds == [
        Kind.LIST,
        Kind.INTEGER,
        Kind.LIST,
        Kind.INTEGER,
        Kind.INTEGER,
        Kind.MAP,
        Kind.INTEGER,
    ]
    assert [n.as_int() for n in v.walk() if n.kind == Kind.INTEGER] == [1, 2, 3, 4]


def test_references_are_deduplicated():
    a, b = Cid.of(b"a"), Cid.of(b"b")
    v = ipld({"x": a, "y": [a, {"z": b}], "w": "not a link"})
    assert v.references() == frozenset({a, b})
    assert ipld([1, "a"]).references() == frozenset()
