from typing import FrozenSet

from ipldkit.codec.base import CodecBase
from ipldkit.core.cid import Cid
from ipldkit.core.enums import Kind, Multicodec
from ipldkit.errors import EncodeError
from ipldkit.ipld import Ipld


class RawCodec(CodecBase):
    code = int(Multicodec.RAW)
    name = "raw"

    def encode(self, value: Ipld) -> bytes:
        if value.kind != Kind.BYTES:
            raise EncodeError(f"raw codec only encodes bytes, got {value.kind.label()}")
        return value.as_bytes()

    def decode(self, data: bytes) -> Ipld:
        return Ipld(Kind.BYTES, bytes(data))

    def references(self, data: bytes) -> FrozenSet[Cid]:
        return frozenset()
