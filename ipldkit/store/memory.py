import logging
import threading
from typing import Dict, FrozenSet, Optional

from ipldkit.block import Block
from ipldkit.codec import CodecRegistry
from ipldkit.config import MAX_BLOCK_SIZE, IpldConfig
from ipldkit.core.cid import Cid
from ipldkit.core.enums import HashCode, Multicodec
from ipldkit.errors import NotFound, Pinned
from ipldkit.store.base import PinTable, StoreBase


logger = logging.getLogger("ipldkit")


class MemStore(StoreBase):
    def __init__(
        self,
        codecs: Optional[CodecRegistry] = None,
        max_block_size: Optional[int] = MAX_BLOCK_SIZE,
        default_codec: int = Multicodec.DAG_CBOR,
        default_hash: int = HashCode.SHA2_256,
    ):
        super().__init__(codecs, max_block_size, default_codec, default_hash)
        self._blocks: Dict[Cid, Block] = {}
        self._pins = PinTable()
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, cfg: IpldConfig) -> "MemStore":
        return cls(**cls.config_kwargs(cfg))

    async def get(self, cid: Cid) -> Block:
        with self._lock:
            block = self._blocks.get(cid)
        if block is None:
            raise NotFound(cid)
        return block

    async def insert(self, block: Block) -> None:
        self.check_size(block)
        with self._lock:
            if block.cid in self._blocks:
                return
            self._blocks[block.cid] = block
        logger.debug("mem_insert cid=%s size=%d", block.cid, block.size)

    async def contains(self, cid: Cid) -> bool:
        with self._lock:
            return cid in self._blocks

    async def pin(self, cid: Cid) -> None:
        with self._lock:
            if cid not in self._blocks:
                raise NotFound(cid)
            self._pins.pin(cid)

    async def unpin(self, cid: Cid) -> None:
        with self._lock:
            self._pins.unpin(cid)

    async def pin_count(self, cid: Cid) -> int:
        return self._pins.count(cid)

    async def pinned(self) -> FrozenSet[Cid]:
        return self._pins.snapshot()

    async def remove(self, cid: Cid) -> None:
        with self._lock:
            if self._pins.count(cid):
                raise Pinned(cid)
            if self._blocks.pop(cid, None) is None:
                raise NotFound(cid)
        logger.debug("mem_remove cid=%s", cid)

    def cids(self) -> FrozenSet[Cid]:
        with self._lock:
            return frozenset(self._blocks)
