import logging
from typing import FrozenSet, Optional

from ipldkit.codec import CodecRegistry, default_registry
from ipldkit.config import MAX_BLOCK_SIZE
from ipldkit.core.cid import Cid
from ipldkit.core.enums import HashCode, Multicodec
from ipldkit.core.multihash import Multihash, compute_digest
from ipldkit.errors import BlockTooLarge, VerificationError
from ipldkit.ipld import Ipld


logger = logging.getLogger("ipldkit")

DEFAULT_CODECS = default_registry()


def _check_size(size: int, limit: Optional[int]) -> None:
    if limit is not None and size > limit:
        raise BlockTooLarge(size, limit)


class Block:
    # construction re-hashes data, so an instance always holds verified bytes

    __slots__ = ("_cid", "_data")

    def __init__(self, cid: Cid, data: bytes, max_size: Optional[int] = MAX_BLOCK_SIZE):
        data = bytes(data)
        _check_size(len(data), max_size)
        if compute_digest(data, cid.multihash.code) != cid.multihash.digest:
            logger.warning("block_verify_failed cid=%s size=%d", cid, len(data))
            raise VerificationError(cid)
        self._cid = cid
        self._data = data

    @classmethod
    def from_raw(cls, cid: Cid, data: bytes, max_size: Optional[int] = MAX_BLOCK_SIZE) -> "Block":
        return cls(cid, data, max_size)

    @classmethod
    def _trusted(cls, cid: Cid, data: bytes) -> "Block":
        blk = object.__new__(cls)
        blk._cid = cid
        blk._data = data
        return blk

    @classmethod
    def from_value(
        cls,
        value: Ipld,
        codec: int = Multicodec.DAG_CBOR,
        hash_code: int = HashCode.SHA2_256,
        registry: Optional[CodecRegistry] = None,
        max_size: Optional[int] = MAX_BLOCK_SIZE,
    ) -> "Block":
        reg = registry if registry is not None else DEFAULT_CODECS
        data = reg.encode(codec, value)
        _check_size(len(data), max_size)
        cid = Cid.build(codec, Multihash.digest_of(data, hash_code))
        return cls._trusted(cid, data)

    @property
    def cid(self) -> Cid:
        return self._cid

    @property
    def data(self) -> bytes:
        return self._data

    def decode(self, registry: Optional[CodecRegistry] = None) -> Ipld:
        reg = registry if registry is not None else DEFAULT_CODECS
        return reg.decode(self._cid.codec, self._data)

    def references(self, registry: Optional[CodecRegistry] = None) -> FrozenSet[Cid]:
        reg = registry if registry is not None else DEFAULT_CODECS
        return reg.get(self._cid.codec).references(self._data)

    @property
    def size(self) -> int:
        return len(self._data)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Block):
            return NotImplemented
        return self._cid == other._cid and self._data == other._data

    def __hash__(self) -> int:
        return hash(self._cid)

    def __repr__(self) -> str:
        return f"Block({self._cid}, {len(self._data)} bytes)"
