from ipldkit.core import Cid, HashCode, Kind, Multicodec, Multihash, digest
from ipldkit.ipld import Ipld, NULL, ipld
from ipldkit.block import Block
from ipldkit.codec import (
    CodecBase,
    CodecRegistry,
    DagCborCodec,
    DagJsonCodec,
    RawCodec,
    default_registry,
)
from ipldkit.store import (
    CachingStore,
    EvictionPolicy,
    FsStore,
    MemStore,
    PinTable,
    StoreBase,
)
from ipldkit.path import DagPath, Path
from ipldkit.resolver import collect_pinned, collect_reachable, resolve
from ipldkit.config import CacheConfig, IpldConfig, load_config, parse_config
from ipldkit.errors import (
    IpldError,
    FormatError,
    Unsupported,
    UnsupportedCodec,
    UnsupportedMultihash,
    DecodeError,
    EncodeError,
    VerificationError,
    BlockTooLarge,
    NotFound,
    TypeMismatch,
    SegmentNotFound,
    NotPinned,
    Pinned,
)

__all__ = [
    "Cid",
    "HashCode",
    "Kind",
    "Multicodec",
    "Multihash",
    "digest",
    "Ipld",
    "NULL",
    "ipld",
    "Block",
    "CodecBase",
    "CodecRegistry",
    "DagCborCodec",
    "DagJsonCodec",
    "RawCodec",
    "default_registry",
    "CachingStore",
    "EvictionPolicy",
    "FsStore",
    "MemStore",
    "PinTable",
    "StoreBase",
    "DagPath",
    "Path",
    "collect_pinned",
    "collect_reachable",
    "resolve",
    "CacheConfig",
    "IpldConfig",
    "load_config",
    "parse_config",
    "IpldError",
    "FormatError",
    "Unsupported",
    "UnsupportedCodec",
    "UnsupportedMultihash",
    "DecodeError",
    "EncodeError",
    "VerificationError",
    "BlockTooLarge",
    "NotFound",
    "TypeMismatch",
    "SegmentNotFound",
    "NotPinned",
    "Pinned",
]
