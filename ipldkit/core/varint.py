from typing import Tuple

from ipldkit.errors import FormatError


# unsigned-varint as used by multiformats: LEB128, at most 9 bytes (63 bits)
MAX_VARINT_LEN = 9
MAX_VARINT = (1 << 63) - 1


def encode_varint(value: int) -> bytes:
    if value < 0:
        raise ValueError("value must be non-negative")
    if value > MAX_VARINT:
        raise ValueError("value too large")
    out = bytearray()
    while True:
        b = value & 0x7F
        value >>= 7
        if value:
            out.append(b | 0x80)
        else:
            out.append(b)
            return bytes(out)


def decode_varint(data: bytes, offset: int = 0) -> Tuple[int, int]:
    value = 0
    shift = 0
    i = offset
    while True:
        if i >= len(data):
            raise FormatError("buffer too short")
        if i - offset >= MAX_VARINT_LEN:
            raise FormatError("varint too long")
        b = data[i]
        i += 1
        value |= (b & 0x7F) << shift
        if not b & 0x80:
            break
        shift += 7
    # a trailing zero group means the same value fits in fewer bytes
    if b == 0 and i - offset > 1:
        raise FormatError("varint not minimally encoded")
    return value, i
