import asyncio

from ipldkit.block import Block
from ipldkit.core.enums import Multicodec
from ipldkit.ipld import ipld
from ipldkit.store.memory import MemStore


class CountingStore(MemStore):
    # records every read; delay and fail make it slow or flaky

    def __init__(self, delay: float = 0.0, **kwargs):
        super().__init__(**kwargs)
        self.delay = delay
        self.fail = 0
        self.reads = []

    @property
    def fetches(self) -> int:
        return len(self.reads)

    async def get(self, cid):
        self.reads.append(cid)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            self.fail -= 1
            raise RuntimeError("backend unavailable")
        return await super().get(cid)


def raw_block(data: bytes) -> Block:
    return Block.from_value(ipld(data), codec=Multicodec.RAW, max_size=None)
