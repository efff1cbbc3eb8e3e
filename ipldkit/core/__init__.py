from ipldkit.core.enums import HashCode, Multicodec, Kind
from ipldkit.core.multihash import Multihash, digest
from ipldkit.core.cid import Cid

__all__ = [
    "HashCode",
    "Multicodec",
    "Kind",
    "Multihash",
    "digest",
    "Cid",
]
