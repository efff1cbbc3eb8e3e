import asyncio
import logging
import threading
from collections import OrderedDict
from enum import Enum
from typing import Dict, FrozenSet, Optional

from ipldkit.block import Block
from ipldkit.config import IpldConfig
from ipldkit.core.cid import Cid
from ipldkit.ipld import Ipld
from ipldkit.metrics import CacheCounters, CacheMetrics
from ipldkit.store.base import StoreBase


logger = logging.getLogger("ipldkit")


class EvictionPolicy(Enum):
    LRU = "lru"
    FIFO = "fifo"


class _Entry:
    __slots__ = ("block", "value")

    def __init__(self, block: Block, value: Optional[Ipld] = None):
        self.block = block
        self.value = value


class CachingStore(StoreBase):
    # drive each instance from one event loop; the lock is never held across an await

    def __init__(
        self,
        inner: StoreBase,
        capacity: int = 1024,
        max_bytes: Optional[int] = None,
        policy: EvictionPolicy = EvictionPolicy.LRU,
    ):
        super().__init__(inner.codecs, inner.max_block_size, inner.default_codec, inner.default_hash)
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.inner = inner
        self.capacity = capacity
        self.max_bytes = max_bytes
        self.policy = EvictionPolicy(policy)
        self.metrics = CacheMetrics()
        self._entries: "OrderedDict[Cid, _Entry]" = OrderedDict()
        self._bytes = 0
        self._inflight: Dict[Cid, asyncio.Task] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, inner: StoreBase, cfg: IpldConfig) -> "CachingStore":
        return cls(
            inner,
            capacity=cfg.cache.capacity,
            max_bytes=cfg.cache.max_bytes,
            policy=EvictionPolicy(cfg.cache.policy),
        )

    def _lookup(self, cid: Cid) -> Optional[_Entry]:
        e = self._entries.get(cid)
        if e is not None and self.policy is EvictionPolicy.LRU:
            self._entries.move_to_end(cid)
        return e

    def _admit(self, block: Block, value: Optional[Ipld] = None) -> _Entry:
        e = self._entries.get(block.cid)
        if e is not None:
            if e.value is None:
                e.value = value
            return e
        e = _Entry(block, value)
        if self.max_bytes is not None and block.size > self.max_bytes:
            return e
        self._entries[block.cid] = e
        self._bytes += block.size
        evicted = 0
        while len(self._entries) > self.capacity or (self.max_bytes is not None and self._bytes > self.max_bytes):
            old_cid, old = self._entries.popitem(last=False)
            self._bytes -= old.block.size
            evicted += 1
            logger.debug("cache_evict cid=%s", old_cid)
        if evicted:
            self.metrics.evict(evicted)
        self.metrics.set_size(len(self._entries), self._bytes)
        return e

    async def _fetch(self, cid: Cid) -> _Entry:
        self.metrics.fetch()
        logger.debug("cache_fetch cid=%s", cid)
        try:
            block = await self.inner.get(cid)
            with self._lock:
                return self._admit(block)
        finally:
            with self._lock:
                if self._inflight.get(cid) is asyncio.current_task():
                    del self._inflight[cid]

    def _settled(self, cid: Cid, task: asyncio.Task) -> None:
        with self._lock:
            if self._inflight.get(cid) is task:
                del self._inflight[cid]
        if not task.cancelled():
            # consume the result so failures nobody awaited are not reported as lost
            task.exception()

    async def _entry(self, cid: Cid) -> _Entry:
        with self._lock:
            e = self._lookup(cid)
            if e is None:
                task = self._inflight.get(cid)
                coalesced = task is not None and not task.done()
                if not coalesced:
                    task = asyncio.ensure_future(self._fetch(cid))
                    self._inflight[cid] = task
                    task.add_done_callback(lambda t, c=cid: self._settled(c, t))
        if e is not None:
            self.metrics.hit()
            return e
        self.metrics.miss(coalesced)
        if coalesced:
            logger.debug("cache_join cid=%s", cid)
        return await asyncio.shield(task)

    async def get(self, cid: Cid) -> Block:
        return (await self._entry(cid)).block

    async def get_value(self, cid: Cid) -> Ipld:
        e = await self._entry(cid)
        value = e.value
        if value is None:
            value = e.block.decode(self.codecs)
            with self._lock:
                if e.value is None:
                    e.value = value
                value = e.value
        return value

    async def insert(self, block: Block) -> None:
        await self.inner.insert(block)
        with self._lock:
            self._admit(block)

    async def contains(self, cid: Cid) -> bool:
        with self._lock:
            if cid in self._entries:
                return True
        return await self.inner.contains(cid)

    async def pin(self, cid: Cid) -> None:
        await self.inner.pin(cid)

    async def unpin(self, cid: Cid) -> None:
        await self.inner.unpin(cid)

    async def pin_count(self, cid: Cid) -> int:
        return await self.inner.pin_count(cid)

    async def pinned(self) -> FrozenSet[Cid]:
        return await self.inner.pinned()

    async def flush(self) -> None:
        await self.inner.flush()

    def cached(self, cid: Cid) -> bool:
        with self._lock:
            return cid in self._entries

    def stats(self) -> CacheCounters:
        return self.metrics.snapshot()
