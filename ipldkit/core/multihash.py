from dataclasses import dataclass
from typing import Dict, Tuple

from cryptography.hazmat.primitives import hashes

from ipldkit.core.enums import HashCode
from ipldkit.core.varint import encode_varint, decode_varint
from ipldkit.errors import FormatError, UnsupportedMultihash


# identity digests above this size are refused, same bound as the digest buffer
IDENTITY_MAX_SIZE = 128

_ALGORITHMS: Dict[int, type] = {
    HashCode.SHA2_256: hashes.SHA256,
    HashCode.SHA2_384: hashes.SHA384,
    HashCode.SHA2_512: hashes.SHA512,
    HashCode.SHA3_224: hashes.SHA3_224,
    HashCode.SHA3_256: hashes.SHA3_256,
    HashCode.SHA3_384: hashes.SHA3_384,
    HashCode.SHA3_512: hashes.SHA3_512,
}


def _algorithm(code: int) -> hashes.HashAlgorithm:
    if code == HashCode.BLAKE2B_512:
        return hashes.BLAKE2b(64)
    if code == HashCode.BLAKE2S_256:
        return hashes.BLAKE2s(32)
    cls = _ALGORITHMS.get(code)
    if cls is None:
        raise UnsupportedMultihash(code)
    return cls()


def is_known_hash(code: int) -> bool:
    try:
        HashCode(code)
    except ValueError:
        return False
    return True


def compute_digest(data: bytes, code: int) -> bytes:
    if code == HashCode.IDENTITY:
        if len(data) > IDENTITY_MAX_SIZE:
            raise ValueError(f"identity digest limited to {IDENTITY_MAX_SIZE} bytes")
        return bytes(data)
    h = hashes.Hash(_algorithm(code))
    h.update(data)
    return h.finalize()


@dataclass(frozen=True)
class Multihash:
    code: int
    digest: bytes

    def __post_init__(self) -> None:
        if self.code < 0:
            raise FormatError("negative hash code")
        if not isinstance(self.digest, bytes):
            object.__setattr__(self, "digest", bytes(self.digest))

    @property
    def size(self) -> int:
        return len(self.digest)

    @classmethod
    def digest_of(cls, data: bytes, code: int = HashCode.SHA2_256) -> "Multihash":
        return cls(int(code), compute_digest(data, code))

    def matches(self, data: bytes) -> bool:
        return compute_digest(data, self.code) == self.digest

    def to_bytes(self) -> bytes:
        return encode_varint(self.code) + encode_varint(len(self.digest)) + self.digest

    @classmethod
    def read(cls, data: bytes, offset: int = 0, unleashed: bool = False) -> Tuple["Multihash", int]:
        code, offset = decode_varint(data, offset)
        size, offset = decode_varint(data, offset)
        if not unleashed and not is_known_hash(code):
            raise UnsupportedMultihash(code)
        end = offset + size
        if end > len(data):
            raise FormatError(f"digest length {size} exceeds remaining {len(data) - offset} bytes")
        return cls(code, bytes(data[offset:end])), end

    @classmethod
    def from_bytes(cls, data: bytes, unleashed: bool = False) -> "Multihash":
        mh, end = cls.read(data, 0, unleashed)
        if end != len(data):
            raise FormatError(f"digest length {mh.size} does not match remaining {len(data) - end + mh.size} bytes")
        return mh

    def __repr__(self) -> str:
        try:
            name = HashCode(self.code).name.lower()
        except ValueError:
            name = f"0x{self.code:x}"
        return f"Multihash({name}, {self.digest.hex()})"


def digest(data: bytes, code: int = HashCode.SHA2_256) -> Multihash:
    return Multihash.digest_of(data, code)
