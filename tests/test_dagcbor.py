import struct

import pytest

from ipldkit.codec.dagcbor import DagCborCodec, dumps, loads
from ipldkit.core.cid import Cid
from ipldkit.core.enums import Kind
from ipldkit.core.multihash import digest
from ipldkit.errors import DecodeError, EncodeError
from ipldkit.ipld import Ipld, ipld


def test_map_keys_sorted_length_first():
    enc = dumps(ipld({"b": 1, "aa": 3, "a": 2}))
    assert enc == bytes([0xA3, 0x61, 0x61, 0x02, 0x61, 0x62, 0x01, 0x62, 0x61, 0x61, 0x03])


def test_round_trip():
    cid = Cid.of(b"leaf")
    v = ipld({"n": None, "t": True, "f": False, "i": -500, "big": 2**64 - 1, "x": 0.25, "s": "ü", "b": b"\x01", "l": [cid, []]})
    enc = dumps(v)
    assert loads(enc) == v
    assert dumps(loads(enc)) == enc


def test_encoding_is_deterministic_across_insertion_order():
    assert dumps(ipld({"a": 1, "b": 2})) == dumps(ipld({"b": 2, "a": 1}))


def test_integer_encodings():
    assert dumps(ipld(23)) == b"\x17"
    assert dumps(ipld(24)) == b"\x18\x18"
    assert dumps(ipld(-1)) == b"\x20"
    assert dumps(ipld(256)) == b"\x19\x01\x00"
    assert dumps(ipld(-(2**64))) == b"\x3b" + b"\xff" * 8


def test_integer_range():
    with pytest.raises(EncodeError):
        dumps(ipld(2**64))
    with pytest.raises(EncodeError):
        dumps(ipld(-(2**64) - 1))


def test_floats_always_64_bit():
    assert dumps(ipld(1.5)) == b"\xfb" + struct.pack(">d", 1.5)
    assert loads(dumps(ipld(1.0))).kind == Kind.FLOAT


def test_non_finite_floats_rejected():
    for f in (float("nan"), float("inf"), float("-inf")):
        with pytest.raises(EncodeError):
            dumps(Ipld.of_float(f))
    with pytest.raises(DecodeError):
        loads(b"\xfb" + struct.pack(">d", float("inf")))


def test_link_is_tag_42_with_identity_prefix():
    cid = Cid.of(b"leaf")
    enc = dumps(ipld(cid))
    raw = b"\x00" + cid.to_bytes()
    assert enc == b"\xd8\x2a\x58" + bytes([len(raw)]) + raw
    assert loads(enc).as_link() == cid


def test_unknown_codec_in_link():
    cid = Cid.build(0x300001, digest(b"leaf"))
    enc = dumps(ipld([cid]))
    with pytest.raises(DecodeError):
        DagCborCodec().decode(enc)
    assert DagCborCodec(unleashed=True).decode(enc) == ipld([cid])


@pytest.mark.parametrize(
    "data",
    [
        b"\x18\x05",  # non-minimal length
        b"\x19\x00\x10",
        b"\x9f\x01\xff",  # indefinite list
        b"\x5f\x41\x00\xff",  # indefinite bytes
        b"\xf9\x3c\x00",  # half float
        b"\xfa\x3f\x80\x00\x00",  # single float
        b"\xa2\x61\x62\x01\x61\x61\x02",  # keys out of order
        b"\xa2\x61\x61\x01\x61\x61\x02",  # duplicate key
        b"\xa1\x01\x02",  # integer key
        b"\xc1\x01",  # tag other than 42
        b"\xd8\x2a\x01",  # tag 42 around non-bytes
        b"\xd8\x2a\x41\x01",  # tag 42 without identity prefix
        b"\x62\xff\xfe",  # invalid utf-8
        b"\x62\x61",  # truncated
        b"\x01\x02",  # trailing bytes
        b"\xf7",  # undefined
        b"",
    ],
)
def test_rejects_non_canonical(data):
    with pytest.raises(DecodeError):
        loads(data)


def test_rejects_excessive_nesting():
    with pytest.raises(DecodeError):
        loads(b"\x81" * 300 + b"\x01")


def test_references_without_building_blocks():
    a, b = Cid.of(b"a"), Cid.of(b"b")
    enc = DagCborCodec().encode(ipld({"x": [a, b, a]}))
    assert DagCborCodec().references(enc) == frozenset({a, b})
