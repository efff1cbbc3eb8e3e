import threading
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, FrozenSet, Iterable, Optional, Tuple

from ipldkit.block import Block
from ipldkit.codec import CodecRegistry, default_registry
from ipldkit.config import MAX_BLOCK_SIZE, IpldConfig
from ipldkit.core.cid import Cid
from ipldkit.core.enums import HashCode, Multicodec
from ipldkit.errors import BlockTooLarge, NotPinned
from ipldkit.ipld import Ipld


class PinTable:
    # every change and every snapshot happens under one lock, so a mark phase
    # never sees a pinned cid with a transient zero

    def __init__(self, counts: Iterable[Tuple[Cid, int]] = ()):
        self._counts: Dict[Cid, int] = {}
        self._lock = threading.Lock()
        for cid, n in counts:
            if n > 0:
                self._counts[cid] = n

    def pin(self, cid: Cid) -> int:
        with self._lock:
            n = self._counts.get(cid, 0) + 1
            self._counts[cid] = n
            return n

    def unpin(self, cid: Cid) -> int:
        with self._lock:
            n = self._counts.get(cid, 0)
            if n == 0:
                raise NotPinned(cid)
            if n == 1:
                del self._counts[cid]
            else:
                self._counts[cid] = n - 1
            return n - 1

    def count(self, cid: Cid) -> int:
        with self._lock:
            return self._counts.get(cid, 0)

    def snapshot(self) -> FrozenSet[Cid]:
        with self._lock:
            return frozenset(self._counts)

    def items(self) -> Dict[Cid, int]:
        with self._lock:
            return dict(self._counts)


class StoreBase(ABC):
    # insert is idempotent: equal cids always carry equal bytes

    def __init__(
        self,
        codecs: Optional[CodecRegistry] = None,
        max_block_size: Optional[int] = MAX_BLOCK_SIZE,
        default_codec: int = Multicodec.DAG_CBOR,
        default_hash: int = HashCode.SHA2_256,
    ):
        self.codecs = codecs if codecs is not None else default_registry()
        self.max_block_size = max_block_size
        self.default_codec = int(default_codec)
        self.default_hash = int(default_hash)

    @staticmethod
    def config_kwargs(cfg: IpldConfig) -> Dict[str, Any]:
        return {
            "codecs": default_registry(cfg.unleashed),
            "max_block_size": cfg.max_block_size,
            "default_codec": cfg.default_codec,
            "default_hash": cfg.default_hash,
        }

    def check_size(self, block: Block) -> None:
        if self.max_block_size is not None and block.size > self.max_block_size:
            raise BlockTooLarge(block.size, self.max_block_size)

    @abstractmethod
    async def get(self, cid: Cid) -> Block:
        raise NotImplementedError

    @abstractmethod
    async def insert(self, block: Block) -> None:
        raise NotImplementedError

    @abstractmethod
    async def contains(self, cid: Cid) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def pin(self, cid: Cid) -> None:
        raise NotImplementedError

    @abstractmethod
    async def unpin(self, cid: Cid) -> None:
        raise NotImplementedError

    @abstractmethod
    async def pin_count(self, cid: Cid) -> int:
        raise NotImplementedError

    @abstractmethod
    async def pinned(self) -> FrozenSet[Cid]:
        raise NotImplementedError

    async def flush(self) -> None:
        return None

    @asynccontextmanager
    async def flushing(self) -> AsyncIterator["StoreBase"]:
        yield self
        await self.flush()

    async def get_value(self, cid: Cid) -> Ipld:
        block = await self.get(cid)
        return block.decode(self.codecs)

    async def put_value(
        self,
        value: Ipld,
        codec: Optional[int] = None,
        hash_code: Optional[int] = None,
    ) -> Cid:
        codec = self.default_codec if codec is None else codec
        hash_code = self.default_hash if hash_code is None else hash_code
        block = Block.from_value(value, codec, hash_code, self.codecs, self.max_block_size)
        await self.insert(block)
        return block.cid
