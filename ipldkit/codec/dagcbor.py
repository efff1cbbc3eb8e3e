import math
import struct
from typing import List, Tuple

from ipldkit.codec.base import CodecBase
from ipldkit.core.cid import Cid
from ipldkit.core.enums import Kind, Multicodec
from ipldkit.errors import DecodeError, EncodeError, FormatError
from ipldkit.ipld import NULL, Ipld


CID_TAG = 42
MAX_DEPTH = 256
UINT64_MAX = 0xFFFFFFFFFFFFFFFF

_FALSE = Ipld(Kind.BOOL, False)
_TRUE = Ipld(Kind.BOOL, True)


def _encode_len(major: int, length: int) -> bytes:
    if length < 0:
        raise ValueError("length must be non-negative")
    if length <= 23:
        return bytes([((major & 0x7) << 5) | length])
    if length <= 0xFF:
        return bytes([((major & 0x7) << 5) | 24, length])
    if length <= 0xFFFF:
        return bytes([((major & 0x7) << 5) | 25]) + length.to_bytes(2, "big")
    if length <= 0xFFFFFFFF:
        return bytes([((major & 0x7) << 5) | 26]) + length.to_bytes(4, "big")
    return bytes([((major & 0x7) << 5) | 27]) + length.to_bytes(8, "big")


def _encode_int(n: int) -> bytes:
    if n >= 0:
        if n > UINT64_MAX:
            raise EncodeError(f"integer {n} out of dag-cbor range")
        return _encode_len(0, n)
    val = -1 - n
    if val > UINT64_MAX:
        raise EncodeError(f"integer {n} out of dag-cbor range")
    return _encode_len(1, val)


def _encode_float(f: float) -> bytes:
    if not math.isfinite(f):
        raise EncodeError("dag-cbor cannot encode NaN or Infinity")
    return b"\xfb" + struct.pack(">d", f)


def _encode_bstr(b: bytes) -> bytes:
    return _encode_len(2, len(b)) + b


def _encode_tstr(s: str) -> bytes:
    b = s.encode("utf-8")
    return _encode_len(3, len(b)) + b


def _encode_link(cid: Cid) -> bytes:
    return _encode_len(6, CID_TAG) + _encode_bstr(b"\x00" + cid.to_bytes())


def _encode_map(value: Ipld, buf: bytearray) -> None:
    m = value.as_map()
    # canonical order: length first, then bytewise; this is plain byte order
    # of the encoded keys because the header carries the length
    keys = sorted(((_encode_tstr(k), k) for k in m), key=lambda p: p[0])
    buf.extend(_encode_len(5, len(keys)))
    for ek, k in keys:
        buf.extend(ek)
        _encode_into(m[k], buf)


def _encode_into(value: Ipld, buf: bytearray) -> None:
    kind = value.kind
    if kind == Kind.NULL:
        buf.append(0xF6)
    elif kind == Kind.BOOL:
        buf.append(0xF5 if value.as_bool() else 0xF4)
    elif kind == Kind.INTEGER:
        buf.extend(_encode_int(value.as_int()))
    elif kind == Kind.FLOAT:
        buf.extend(_encode_float(value.as_float()))
    elif kind == Kind.STRING:
        buf.extend(_encode_tstr(value.as_str()))
    elif kind == Kind.BYTES:
        buf.extend(_encode_bstr(value.as_bytes()))
    elif kind == Kind.LIST:
        items = value.as_list()
        buf.extend(_encode_len(4, len(items)))
        for item in items:
            _encode_into(item, buf)
    elif kind == Kind.MAP:
        _encode_map(value, buf)
    elif kind == Kind.LINK:
        buf.extend(_encode_link(value.as_link()))
    else:
        raise EncodeError(f"unsupported kind {kind!r}")


def dumps(value: Ipld) -> bytes:
    buf = bytearray()
    _encode_into(value, buf)
    return bytes(buf)


def _read_len(data: bytes, offset: int, ai: int) -> Tuple[int, int]:
    if ai <= 23:
        return ai, offset
    if ai == 24:
        if offset + 1 > len(data):
            raise DecodeError("truncated")
        n = data[offset]
        if n < 24:
            raise DecodeError("non-canonical length encoding")
        return n, offset + 1
    if ai == 25:
        if offset + 2 > len(data):
            raise DecodeError("truncated")
        n = int.from_bytes(data[offset : offset + 2], "big")
        if n <= 0xFF:
            raise DecodeError("non-canonical length encoding")
        return n, offset + 2
    if ai == 26:
        if offset + 4 > len(data):
            raise DecodeError("truncated")
        n = int.from_bytes(data[offset : offset + 4], "big")
        if n <= 0xFFFF:
            raise DecodeError("non-canonical length encoding")
        return n, offset + 4
    if ai == 27:
        if offset + 8 > len(data):
            raise DecodeError("truncated")
        n = int.from_bytes(data[offset : offset + 8], "big")
        if n <= 0xFFFFFFFF:
            raise DecodeError("non-canonical length encoding")
        return n, offset + 8
    if ai == 31:
        raise DecodeError("indefinite length not allowed")
    raise DecodeError(f"reserved additional info {ai}")


def _read_slice(data: bytes, offset: int, ln: int) -> Tuple[bytes, int]:
    end = offset + ln
    if end > len(data):
        raise DecodeError("truncated")
    return bytes(data[offset:end]), end


def _decode_link(data: bytes, offset: int) -> Tuple[bytes, int]:
    if offset >= len(data) or data[offset] >> 5 != 2:
        raise DecodeError("tag 42 must wrap a byte string")
    ln, offset = _read_len(data, offset + 1, data[offset] & 0x1F)
    raw, offset = _read_slice(data, offset, ln)
    if not raw or raw[0] != 0x00:
        raise DecodeError("cid in tag 42 must start with the identity multibase prefix")
    return raw, offset


def _decode_item(data: bytes, offset: int, depth: int, unleashed: bool) -> Tuple[Ipld, int]:
    if depth > MAX_DEPTH:
        raise DecodeError("nesting too deep")
    if offset >= len(data):
        raise DecodeError("truncated")
    ib = data[offset]
    offset += 1
    mt = (ib >> 5) & 0x7
    ai = ib & 0x1F
    if mt == 0:
        n, offset = _read_len(data, offset, ai)
        return Ipld(Kind.INTEGER, n), offset
    if mt == 1:
        n, offset = _read_len(data, offset, ai)
        return Ipld(Kind.INTEGER, -1 - n), offset
    if mt == 2:
        ln, offset = _read_len(data, offset, ai)
        raw, offset = _read_slice(data, offset, ln)
        return Ipld(Kind.BYTES, raw), offset
    if mt == 3:
        ln, offset = _read_len(data, offset, ai)
        raw, offset = _read_slice(data, offset, ln)
        try:
            return Ipld(Kind.STRING, raw.decode("utf-8")), offset
        except UnicodeDecodeError as e:
            raise DecodeError("invalid utf-8 in text string") from e
    if mt == 4:
        ln, offset = _read_len(data, offset, ai)
        if ln > len(data) - offset:
            raise DecodeError("truncated")
        out: List[Ipld] = []
        for _ in range(ln):
            v, offset = _decode_item(data, offset, depth + 1, unleashed)
            out.append(v)
        return Ipld(Kind.LIST, tuple(out)), offset
    if mt == 5:
        ln, offset = _read_len(data, offset, ai)
        if ln > len(data) - offset:
            raise DecodeError("truncated")
        out_map = {}
        prev = b""
        for _ in range(ln):
            start = offset
            if offset >= len(data) or data[offset] >> 5 != 3:
                raise DecodeError("map keys must be text strings")
            k, offset = _decode_item(data, offset, depth + 1, unleashed)
            ek = data[start:offset]
            if prev and ek <= prev:
                if ek == prev:
                    raise DecodeError("duplicate map key")
                raise DecodeError("map keys not in canonical order")
            prev = ek
            v, offset = _decode_item(data, offset, depth + 1, unleashed)
            out_map[k.as_str()] = v
        return Ipld(Kind.MAP, out_map), offset
    if mt == 6:
        tag, offset = _read_len(data, offset, ai)
        if tag != CID_TAG:
            raise DecodeError(f"unsupported tag {tag}")
        raw, offset = _decode_link(data, offset)
        try:
            cid = Cid.from_bytes(raw[1:], unleashed=unleashed)
        except FormatError as e:
            raise DecodeError(f"invalid cid in tag 42: {e}") from e
        return Ipld(Kind.LINK, cid), offset
    if ai == 20:
        return _FALSE, offset
    if ai == 21:
        return _TRUE, offset
    if ai == 22:
        return NULL, offset
    if ai == 27:
        raw, offset = _read_slice(data, offset, 8)
        f = struct.unpack(">d", raw)[0]
        if not math.isfinite(f):
            raise DecodeError("NaN and Infinity are not allowed")
        return Ipld(Kind.FLOAT, f), offset
    if ai in (25, 26):
        raise DecodeError("floats must be encoded as 64 bit")
    raise DecodeError(f"unsupported simple value {ai}")


def loads(data: bytes, unleashed: bool = False) -> Ipld:
    data = bytes(data)
    v, off = _decode_item(data, 0, 0, unleashed)
    if off != len(data):
        raise DecodeError("extra bytes after value")
    return v


class DagCborCodec(CodecBase):
    code = int(Multicodec.DAG_CBOR)
    name = "dag-cbor"

    def __init__(self, unleashed: bool = False):
        self.unleashed = unleashed

    def encode(self, value: Ipld) -> bytes:
        return dumps(value)

    def decode(self, data: bytes) -> Ipld:
        return loads(data, self.unleashed)
