import asyncio
import json
import logging
import os
import pathlib
import tempfile
import threading
from typing import FrozenSet, Optional, Set

from ipldkit.block import Block
from ipldkit.codec import CodecRegistry, default_registry
from ipldkit.config import MAX_BLOCK_SIZE, IpldConfig
from ipldkit.core.cid import Cid
from ipldkit.core.enums import HashCode, Multicodec
from ipldkit.errors import NotFound, Pinned
from ipldkit.store.base import PinTable, StoreBase


logger = logging.getLogger("ipldkit")

PINS_FILE = "pins.json"


def _fsync_dir(path: pathlib.Path) -> None:
    fd = os.open(path, os.O_RDONLY)
    try:
        os.fsync(fd)
    finally:
        os.close(fd)


def _atomic_write(path: pathlib.Path, data: bytes, sync: bool) -> None:
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=".tmp-")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            if sync:
                f.flush()
                os.fsync(f.fileno())
        os.replace(tmp, path)
    except BaseException:
        pathlib.Path(tmp).unlink(missing_ok=True)
        raise


class FsStore(StoreBase):
    def __init__(
        self,
        root: str,
        codecs: Optional[CodecRegistry] = None,
        max_block_size: Optional[int] = MAX_BLOCK_SIZE,
        unleashed: bool = False,
        default_codec: int = Multicodec.DAG_CBOR,
        default_hash: int = HashCode.SHA2_256,
    ):
        if codecs is None:
            codecs = default_registry(unleashed)
        super().__init__(codecs, max_block_size, default_codec, default_hash)
        self.root = pathlib.Path(root)
        self.blocks_dir = self.root / "blocks"
        self.blocks_dir.mkdir(parents=True, exist_ok=True)
        self.unleashed = unleashed
        self._lock = threading.Lock()
        self._pending: Set[pathlib.Path] = set()
        self._pins = PinTable(self._load_pins())

    @classmethod
    def from_config(cls, root: str, cfg: IpldConfig) -> "FsStore":
        return cls(root, unleashed=cfg.unleashed, **cls.config_kwargs(cfg))

    def _load_pins(self):
        p = self.root / PINS_FILE
        if not p.exists():
            return []
        data = json.loads(p.read_text(encoding="utf-8"))
        return [(Cid.from_string(k, unleashed=self.unleashed).into_v1(), int(v)) for k, v in data.items()]

    def _path(self, cid: Cid) -> pathlib.Path:
        # v0 and its v1 form share one file, so pins are keyed by the v1 form too
        name = cid.into_v1().to_string()
        return self.blocks_dir / name[-2:] / name

    def _read(self, path: pathlib.Path) -> Optional[bytes]:
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None

    def _write(self, path: pathlib.Path, data: bytes) -> bool:
        if path.exists():
            return False
        path.parent.mkdir(parents=True, exist_ok=True)
        _atomic_write(path, data, sync=False)
        return True

    async def get(self, cid: Cid) -> Block:
        data = await asyncio.to_thread(self._read, self._path(cid))
        if data is None:
            raise NotFound(cid)
        return Block.from_raw(cid, data, self.max_block_size)

    async def insert(self, block: Block) -> None:
        self.check_size(block)
        path = self._path(block.cid)
        written = await asyncio.to_thread(self._write, path, block.data)
        if written:
            with self._lock:
                self._pending.add(path)
            logger.debug("fs_insert cid=%s size=%d", block.cid, block.size)

    async def contains(self, cid: Cid) -> bool:
        return await asyncio.to_thread(self._path(cid).exists)

    def _pin(self, cid: Cid) -> None:
        with self._lock:
            if not self._path(cid).exists():
                raise NotFound(cid)
            self._pins.pin(cid.into_v1())

    async def pin(self, cid: Cid) -> None:
        await asyncio.to_thread(self._pin, cid)

    async def unpin(self, cid: Cid) -> None:
        with self._lock:
            self._pins.unpin(cid.into_v1())

    async def pin_count(self, cid: Cid) -> int:
        return self._pins.count(cid.into_v1())

    async def pinned(self) -> FrozenSet[Cid]:
        return self._pins.snapshot()

    def _remove(self, cid: Cid) -> None:
        with self._lock:
            if self._pins.count(cid.into_v1()):
                raise Pinned(cid)
            path = self._path(cid)
            try:
                path.unlink()
            except FileNotFoundError:
                raise NotFound(cid) from None
            self._pending.discard(path)

    async def remove(self, cid: Cid) -> None:
        await asyncio.to_thread(self._remove, cid)
        logger.debug("fs_remove cid=%s", cid)

    def _sync(self, pending: Set[pathlib.Path], pins: bytes) -> None:
        dirs = set()
        for path in pending:
            try:
                fd = os.open(path, os.O_RDONLY)
            except FileNotFoundError:
                continue
            try:
                os.fsync(fd)
            finally:
                os.close(fd)
            dirs.add(path.parent)
        for d in dirs:
            _fsync_dir(d)
        _atomic_write(self.root / PINS_FILE, pins, sync=True)
        _fsync_dir(self.root)

    async def flush(self) -> None:
        with self._lock:
            pending = self._pending
            self._pending = set()
            pins = {str(cid): n for cid, n in self._pins.items().items()}
        payload = json.dumps(pins, sort_keys=True).encode("utf-8")
        try:
            await asyncio.to_thread(self._sync, pending, payload)
        except BaseException:
            with self._lock:
                self._pending |= pending
            raise
        logger.debug("fs_flush blocks=%d pins=%d", len(pending), len(pins))
