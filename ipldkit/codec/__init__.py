from ipldkit.codec.base import CodecBase, CodecRegistry
from ipldkit.codec.dagcbor import DagCborCodec
from ipldkit.codec.dagjson import DagJsonCodec
from ipldkit.codec.raw import RawCodec


def default_registry(unleashed: bool = False) -> CodecRegistry:
    return CodecRegistry([DagCborCodec(unleashed), DagJsonCodec(unleashed), RawCodec()])


__all__ = [
    "CodecBase",
    "CodecRegistry",
    "DagCborCodec",
    "DagJsonCodec",
    "RawCodec",
    "default_registry",
]
