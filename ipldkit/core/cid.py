from dataclasses import dataclass
from typing import Union

import multibase

from ipldkit.core.enums import HashCode, Multicodec
from ipldkit.core.multihash import Multihash, digest
from ipldkit.core.varint import encode_varint, decode_varint
from ipldkit.errors import FormatError, UnsupportedCodec


DEFAULT_BASE = "base32"
V0_BASE = "base58btc"
V0_SIZE = 34


def is_known_codec(code: int) -> bool:
    try:
        Multicodec(code)
    except ValueError:
        return False
    return True


@dataclass(frozen=True)
class Cid:
    version: int
    codec: int
    multihash: Multihash

    def __post_init__(self) -> None:
        if self.version not in (0, 1):
            raise FormatError(f"unsupported cid version {self.version}")
        if self.version == 0:
            if self.codec != Multicodec.DAG_PB:
                raise FormatError("cidv0 requires the dag-pb codec")
            if self.multihash.code != HashCode.SHA2_256 or self.multihash.size != 32:
                raise FormatError("cidv0 requires a 32 byte sha2-256 multihash")

    @classmethod
    def build(cls, codec: int, multihash: Multihash) -> "Cid":
        return cls(1, int(codec), multihash)

    new_v1 = build

    @classmethod
    def new_v0(cls, multihash: Multihash) -> "Cid":
        return cls(0, int(Multicodec.DAG_PB), multihash)

    @classmethod
    def of(cls, data: bytes, codec: int = Multicodec.RAW, hash_code: int = HashCode.SHA2_256) -> "Cid":
        return cls.build(codec, digest(data, hash_code))

    def into_v1(self) -> "Cid":
        if self.version == 1:
            return self
        return Cid.build(self.codec, self.multihash)

    def to_bytes(self) -> bytes:
        if self.version == 0:
            return self.multihash.to_bytes()
        return encode_varint(self.version) + encode_varint(self.codec) + self.multihash.to_bytes()

    def __bytes__(self) -> bytes:
        return self.to_bytes()

    @classmethod
    def from_bytes(cls, data: bytes, unleashed: bool = False) -> "Cid":
        data = bytes(data)
        if not data:
            raise FormatError("empty cid")
        if len(data) == V0_SIZE and data[0] == HashCode.SHA2_256 and data[1] == 32:
            return cls.new_v0(Multihash.from_bytes(data))
        version, off = decode_varint(data, 0)
        if version != 1:
            raise FormatError(f"unsupported cid version {version}")
        codec, off = decode_varint(data, off)
        if not unleashed and not is_known_codec(codec):
            raise UnsupportedCodec(codec)
        mh, end = Multihash.read(data, off, unleashed)
        if end != len(data):
            raise FormatError(f"{len(data) - end} trailing bytes after multihash")
        return cls(1, codec, mh)

    def to_string(self, base: str = DEFAULT_BASE) -> str:
        if self.version == 0:
            if base != V0_BASE:
                raise FormatError("cidv0 can only be encoded as base58btc")
            return multibase.encode(V0_BASE, self.to_bytes()).decode("ascii")[1:]
        return multibase.encode(base, self.to_bytes()).decode("ascii")

    @classmethod
    def from_string(cls, text: str, unleashed: bool = False) -> "Cid":
        if not text:
            raise FormatError("empty cid string")
        if len(text) == 46 and text.startswith("Qm"):
            text = "z" + text
        try:
            raw = multibase.decode(text)
        except (ValueError, KeyError, TypeError) as e:
            raise FormatError(f"invalid multibase string {text!r}") from e
        return cls.from_bytes(raw, unleashed)

    @classmethod
    def parse(cls, value: Union[str, bytes, "Cid"], unleashed: bool = False) -> "Cid":
        if isinstance(value, Cid):
            return value
        if isinstance(value, str):
            return cls.from_string(value, unleashed)
        if isinstance(value, (bytes, bytearray, memoryview)):
            return cls.from_bytes(bytes(value), unleashed)
        raise TypeError(f"cannot parse cid from {type(value).__name__}")

    def __str__(self) -> str:
        if self.version == 0:
            return self.to_string(V0_BASE)
        return self.to_string()

    def __repr__(self) -> str:
        return f"Cid({self})"

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Cid):
            return NotImplemented
        return self.to_bytes() < other.to_bytes()
