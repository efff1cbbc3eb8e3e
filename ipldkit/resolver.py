import asyncio
import logging
from typing import FrozenSet, Iterable, List, Optional, Set, Union

from ipldkit.core.cid import Cid
from ipldkit.core.enums import Kind
from ipldkit.ipld import Ipld, Segment
from ipldkit.path import DagPath, Path
from ipldkit.store.base import StoreBase


logger = logging.getLogger("ipldkit")

PathLike = Union[Path, str, Iterable[Segment]]


async def _follow(value: Ipld, store: StoreBase) -> Ipld:
    # links cannot form cycles: a block can never contain its own hash
    while value.kind == Kind.LINK:
        cid = value.as_link()
        logger.debug("resolve_hop cid=%s", cid)
        value = await store.get_value(cid)
    return value


async def resolve(
    root: Union[Cid, DagPath],
    path: Optional[PathLike] = None,
    store: Optional[StoreBase] = None,
    follow_last: bool = False,
) -> Ipld:
    # links before each segment are loaded through store; a link ending the
    # path is returned as is unless follow_last is set
    if store is None:
        raise TypeError("resolve() requires a store")
    if isinstance(root, DagPath):
        if path is not None:
            raise TypeError("pass either a DagPath or a root cid with a path")
        root, segments = root.root, root.path
    else:
        segments = Path.of(path if path is not None else ())
    current = await store.get_value(root)
    for seg in segments:
        current = await _follow(current, store)
        current = current.get(seg)
    if follow_last:
        current = await _follow(current, store)
    return current


async def _references(cid: Cid, store: StoreBase) -> FrozenSet[Cid]:
    value = await store.get_value(cid)
    return value.references()


async def collect_reachable(roots: Iterable[Cid], store: StoreBase) -> FrozenSet[Cid]:
    # breadth first, one gather per level, each cid fetched once; a missing
    # block raises NotFound rather than yielding a partial mark
    seen: Set[Cid] = set(roots)
    frontier: List[Cid] = sorted(seen)
    depth = 0
    while frontier:
        refs = await asyncio.gather(*(_references(cid, store) for cid in frontier))
        nxt: List[Cid] = []
        for links in refs:
            for cid in sorted(links):
                if cid not in seen:
                    seen.add(cid)
                    nxt.append(cid)
        depth += 1
        logger.debug("mark_level depth=%d visited=%d next=%d", depth, len(frontier), len(nxt))
        frontier = nxt
    return frozenset(seen)


async def collect_pinned(store: StoreBase) -> FrozenSet[Cid]:
    return await collect_reachable(await store.pinned(), store)
