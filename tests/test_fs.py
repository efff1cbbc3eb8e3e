import asyncio
import json

import pytest

from ipldkit.block import Block
from ipldkit.config import IpldConfig
from ipldkit.core.cid import Cid
from ipldkit.core.enums import Kind, Multicodec
from ipldkit.core.multihash import digest
from ipldkit.errors import NotFound, Pinned, VerificationError
from ipldkit.ipld import ipld
from ipldkit.store.fs import PINS_FILE, FsStore
from tests.helpers import raw_block


def _block_files(root):
    return [p for p in (root / "blocks").glob("*/*") if p.is_file()]


def test_blocks_survive_reopen(tmp_path):
    async def write():
        store = FsStore(tmp_path)
        async with store.flushing():
            return await store.put_value(ipld({"k": [1, 2]}))

    cid = asyncio.run(write())
    store = FsStore(tmp_path)
    assert asyncio.run(store.get_value(cid)) == ipld({"k": [1, 2]})
    assert asyncio.run(store.contains(cid))
    assert len(_block_files(tmp_path)) == 1


def test_pins_persist_after_flush(tmp_path):
    block = raw_block(b"pinned")

    async def write():
        store = FsStore(tmp_path)
        await store.insert(block)
        await store.pin(block.cid)
        await store.pin(block.cid)
        await store.flush()

    asyncio.run(write())
    pins = json.loads((tmp_path / PINS_FILE).read_text())
    assert pins == {str(block.cid): 2}
    reopened = FsStore(tmp_path)
    assert asyncio.run(reopened.pin_count(block.cid)) == 2
    assert asyncio.run(reopened.pinned()) == frozenset({block.cid})


def test_unflushed_pins_are_not_written(tmp_path):
    block = raw_block(b"pending")

    async def write():
        store = FsStore(tmp_path)
        await store.insert(block)
        await store.pin(block.cid)

    asyncio.run(write())
    assert not (tmp_path / PINS_FILE).exists()
    assert asyncio.run(FsStore(tmp_path).pinned()) == frozenset()


def test_corrupted_file_is_detected(tmp_path):
    store = FsStore(tmp_path)
    block = raw_block(b"original")
    asyncio.run(store.insert(block))
    (path,) = _block_files(tmp_path)
    path.write_bytes(b"tampered")
    with pytest.raises(VerificationError):
        asyncio.run(store.get(block.cid))


def test_missing_and_remove(tmp_path):
    store = FsStore(tmp_path)
    block = raw_block(b"gone")
    with pytest.raises(NotFound):
        asyncio.run(store.get(block.cid))
    with pytest.raises(NotFound):
        asyncio.run(store.pin(block.cid))
    asyncio.run(store.insert(block))
    asyncio.run(store.remove(block.cid))
    assert _block_files(tmp_path) == []
    asyncio.run(store.flush())


def test_no_temp_files_left(tmp_path):
    async def write():
        store = FsStore(tmp_path)
        for i in range(5):
            await store.insert(raw_block(b"block %d" % i))
        await store.flush()

    asyncio.run(write())
    names = [p.name for p in tmp_path.rglob("*") if p.is_file()]
    assert not [n for n in names if n.startswith(".tmp-")]
    assert len(_block_files(tmp_path)) == 5


def test_v0_and_v1_share_pins(tmp_path):
    data = b"dag-pb bytes"
    v0 = Cid.new_v0(digest(data))
    v1 = v0.into_v1()

    async def pin_and_remove():
        store = FsStore(tmp_path)
        await store.insert(Block(v0, data))
        await store.pin(v0)
        with pytest.raises(Pinned):
            await store.remove(v1)
        assert await store.pin_count(v1) == 1
        assert (await store.get(v0)).data == data
        await store.flush()

    asyncio.run(pin_and_remove())
    assert json.loads((tmp_path / PINS_FILE).read_text()) == {str(v1): 1}

    async def reopen():
        store = FsStore(tmp_path)
        assert await store.pin_count(v0) == 1
        with pytest.raises(Pinned):
            await store.remove(v0)
        await store.unpin(v0)
        await store.remove(v1)
        return await store.contains(v0)

    assert not asyncio.run(reopen())
    assert _block_files(tmp_path) == []


def test_pin_and_remove_race(tmp_path):
    async def main():
        store = FsStore(tmp_path)
        outcomes = []
        for i in range(20):
            block = raw_block(b"race %d" % i)
            await store.insert(block)
            results = await asyncio.gather(store.pin(block.cid), store.remove(block.cid), return_exceptions=True)
            pinned = await store.pin_count(block.cid)
            present = await store.contains(block.cid)
            outcomes.append((results, pinned, present))
        return outcomes

    for (pin_res, remove_res), pinned, present in asyncio.run(main()):
        if pin_res is None:
            assert isinstance(remove_res, Pinned)
            assert pinned == 1 and present
        else:
            assert isinstance(pin_res, NotFound)
            assert remove_res is None
            assert pinned == 0 and not present


def test_from_config(tmp_path):
    cfg = IpldConfig(unleashed=True, default_codec=int(Multicodec.DAG_JSON))
    store = FsStore.from_config(tmp_path, cfg)
    assert store.unleashed
    foreign = Block.from_value(ipld([Cid.build(0x300001, digest(b"x"))]))

    async def main():
        await store.insert(foreign)
        cid = await store.put_value(ipld({"a": 1}))
        return cid, await store.get_value(foreign.cid)

    cid, value = asyncio.run(main())
    assert cid.codec == Multicodec.DAG_JSON
    assert value.kind == Kind.LIST
