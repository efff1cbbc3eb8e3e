import logging

import pytest

from ipldkit.block import Block
from ipldkit.core.cid import Cid
from ipldkit.core.enums import HashCode, Multicodec
from ipldkit.core.multihash import Multihash
from ipldkit.errors import BlockTooLarge, UnsupportedMultihash, VerificationError
from ipldkit.ipld import ipld


def test_from_value_and_back():
    v = ipld({"hello": "world", "n": [1, 2]})
    block = Block.from_value(v)
    assert block.cid.codec == Multicodec.DAG_CBOR
    assert block.cid.multihash.code == HashCode.SHA2_256
    assert block.decode() == v
    assert Block(block.cid, block.data) == block


def test_other_codec_and_hash():
    v = ipld({"a": 1})
    block = Block.from_value(v, codec=Multicodec.DAG_JSON, hash_code=HashCode.BLAKE2B_512)
    assert block.cid.multihash.size == 64
    assert block.data == b'{"a":1}'
    assert Block.from_raw(block.cid, block.data).decode() == v


def test_identity_hash_block():
    block = Block.from_value(ipld(b"hi"), codec=Multicodec.RAW, hash_code=HashCode.IDENTITY)
    assert block.cid.multihash.digest == b"hi"


def test_flipped_bit_fails_verification(caplog):
    block = Block.from_value(ipld({"k": "v"}))
    tampered = bytearray(block.data)
    tampered[-1] ^= 0x01
    with caplog.at_level(logging.WARNING, logger="ipldkit"):
        with pytest.raises(VerificationError) as info:
            Block(block.cid, bytes(tampered))
    assert info.value.cid == block.cid
    assert "block_verify_failed" in caplog.text


def test_wrong_cid_fails_verification():
    with pytest.raises(VerificationError):
        Block(Cid.of(b"one"), b"two")


def test_unknown_hash_cannot_be_verified():
    cid = Cid.build(Multicodec.RAW, Multihash(0x99, b"ab"))
    with pytest.raises(UnsupportedMultihash):
        Block(cid, b"ab")


def test_size_limit():
    block = Block.from_value(ipld(b"12345"), codec=Multicodec.RAW)
    assert block.size == 5
    with pytest.raises(BlockTooLarge) as info:
        Block(block.cid, block.data, max_size=4)
    assert (info.value.size, info.value.limit) == (5, 4)
    with pytest.raises(BlockTooLarge):
        Block.from_value(ipld(b"12345"), codec=Multicodec.RAW, max_size=4)
    assert Block(block.cid, block.data, max_size=None) == block


def test_empty_block_is_truthy():
    block = Block.from_value(ipld(b""), codec=Multicodec.RAW)
    assert block
    assert block.size == 0


def test_references():
    a, b = Cid.of(b"a"), Cid.of(b"b")
    block = Block.from_value(ipld({"l": [a, {"x": b}]}))
    assert block.references() == frozenset({a, b})
    assert Block.from_value(ipld(b"a"), codec=Multicodec.RAW).references() == frozenset()
