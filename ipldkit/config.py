import os
import tomllib
from dataclasses import dataclass, field
from typing import Optional

from ipldkit.core.enums import HashCode, Multicodec


MAX_BLOCK_SIZE = 1024 * 1024
EVICTION_POLICIES = ("lru", "fifo")


@dataclass
class CacheConfig:
    capacity: int = 1024
    max_bytes: Optional[int] = None
    policy: str = "lru"


@dataclass
class IpldConfig:
    unleashed: bool = False
    max_block_size: int = MAX_BLOCK_SIZE
    default_codec: int = int(Multicodec.DAG_CBOR)
    default_hash: int = int(HashCode.SHA2_256)
    cache: CacheConfig = field(default_factory=CacheConfig)


def _parse_policy(val: object) -> str:
    policy = str(val).lower().strip()
    if policy not in EVICTION_POLICIES:
        raise ValueError(f"unknown eviction policy {val!r}")
    return policy


def parse_config(data: bytes) -> IpldConfig:
    cfg = tomllib.loads(data.decode("utf-8"))
    i = cfg.get("ipld", {})
    c = cfg.get("cache", {})
    max_bytes = c.get("max_bytes")
    cache = CacheConfig(
        capacity=int(c.get("capacity", 1024)),
        max_bytes=int(max_bytes) if max_bytes is not None else None,
        policy=_parse_policy(c.get("policy", "lru")),
    )
    if cache.capacity < 1:
        raise ValueError("cache capacity must be at least 1")
    return IpldConfig(
        unleashed=bool(i.get("unleashed", False)),
        max_block_size=int(i.get("max_block_size", MAX_BLOCK_SIZE)),
        default_codec=int(i.get("default_codec", Multicodec.DAG_CBOR)),
        default_hash=int(i.get("default_hash", HashCode.SHA2_256)),
        cache=cache,
    )


def load_config(path: str) -> IpldConfig:
    with open(path, "rb") as f:
        return parse_config(f.read())


def get_unleashed_from_env() -> bool:
    val = os.environ.get("IPLDKIT_UNLEASHED", "").lower().strip()
    return val in ("1", "true", "yes", "on")


def apply_env(cfg: IpldConfig) -> IpldConfig:
    if "IPLDKIT_UNLEASHED" in os.environ:
        cfg.unleashed = get_unleashed_from_env()
    cap = os.environ.get("IPLDKIT_CACHE_CAPACITY")
    if cap:
        cfg.cache.capacity = max(1, int(cap))
    return cfg
