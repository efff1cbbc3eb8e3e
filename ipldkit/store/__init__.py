from ipldkit.store.base import PinTable, StoreBase
from ipldkit.store.cache import CachingStore, EvictionPolicy
from ipldkit.store.fs import FsStore
from ipldkit.store.memory import MemStore

__all__ = [
    "PinTable",
    "StoreBase",
    "CachingStore",
    "EvictionPolicy",
    "FsStore",
    "MemStore",
]
