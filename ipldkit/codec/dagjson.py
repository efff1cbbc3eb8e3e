import base64
import binascii
import json
import math
from typing import Any, Dict, List, Mapping, Tuple

from ipldkit.codec.base import CodecBase
from ipldkit.core.cid import Cid
from ipldkit.core.enums import Kind, Multicodec
from ipldkit.errors import DecodeError, EncodeError, FormatError
from ipldkit.ipld import NULL, Ipld


RESERVED_KEY = "/"


def _b64encode(b: bytes) -> str:
    return base64.b64encode(b).rstrip(b"=").decode("ascii")


def _b64decode(s: str) -> bytes:
    pad = "=" * (-len(s) % 4)
    try:
        return base64.b64decode(s + pad, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError("invalid base64 in bytes envelope") from e


# kinds whose json form is a string or an object; under a lone "/" key the
# decoder reads these as a link or bytes envelope
_RESERVED_INNER = (Kind.STRING, Kind.MAP, Kind.BYTES, Kind.LINK)


def _is_reserved(m: Mapping[str, Ipld]) -> bool:
    return len(m) == 1 and RESERVED_KEY in m and m[RESERVED_KEY].kind in _RESERVED_INNER


def _to_json(value: Ipld) -> Any:
    kind = value.kind
    if kind == Kind.NULL:
        return None
    if kind in (Kind.BOOL, Kind.INTEGER, Kind.STRING):
        return value.to_python()
    if kind == Kind.FLOAT:
        f = value.as_float()
        if not math.isfinite(f):
            raise EncodeError("dag-json cannot encode NaN or Infinity")
        return f
    if kind == Kind.BYTES:
        return {RESERVED_KEY: {"bytes": _b64encode(value.as_bytes())}}
    if kind == Kind.LINK:
        return {RESERVED_KEY: str(value.as_link())}
    if kind == Kind.LIST:
        return [_to_json(x) for x in value.as_list()]
    if kind == Kind.MAP:
        m = value.as_map()
        if _is_reserved(m):
            raise EncodeError("a map with only a '/' key holding a string or map is reserved")
        return {k: _to_json(v) for k, v in m.items()}
    raise EncodeError(f"unsupported kind {kind!r}")


def dumps(value: Ipld) -> bytes:
    # keys sorted by code point, which equals utf-8 byte order
    text = json.dumps(
        _to_json(value),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )
    return text.encode("utf-8")


def _pairs(pairs: List[Tuple[str, Any]]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for k, v in pairs:
        if k in out:
            raise DecodeError(f"duplicate map key {k!r}")
        out[k] = v
    return out


def _reject_constant(name: str) -> Any:
    raise DecodeError(f"{name} is not allowed")


def _text(s: str) -> str:
    try:
        s.encode("utf-8")
    except UnicodeEncodeError as e:
        raise DecodeError("string contains a lone surrogate") from e
    return s


def _from_json(obj: Any, unleashed: bool) -> Ipld:
    if obj is None:
        return NULL
    if isinstance(obj, bool):
        return Ipld(Kind.BOOL, obj)
    if isinstance(obj, int):
        return Ipld(Kind.INTEGER, obj)
    if isinstance(obj, float):
        return Ipld(Kind.FLOAT, obj)
    if isinstance(obj, str):
        return Ipld(Kind.STRING, _text(obj))
    if isinstance(obj, list):
        return Ipld(Kind.LIST, tuple(_from_json(x, unleashed) for x in obj))
    if RESERVED_KEY in obj and len(obj) == 1:
        inner = obj[RESERVED_KEY]
        if isinstance(inner, str):
            try:
                return Ipld(Kind.LINK, Cid.from_string(inner, unleashed=unleashed))
            except FormatError as e:
                raise DecodeError(f"invalid cid in link: {e}") from e
        if isinstance(inner, dict):
            if len(inner) == 1 and isinstance(inner.get("bytes"), str):
                return Ipld(Kind.BYTES, _b64decode(inner["bytes"]))
            raise DecodeError("malformed reserved '/' envelope")
    return Ipld(Kind.MAP, {_text(k): _from_json(v, unleashed) for k, v in obj.items()})


def loads(data: bytes, unleashed: bool = False) -> Ipld:
    try:
        text = bytes(data).decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecodeError("dag-json input is not valid utf-8") from e
    try:
        obj = json.loads(
            text,
            object_pairs_hook=_pairs,
            parse_constant=_reject_constant,
        )
        return _from_json(obj, unleashed)
    except json.JSONDecodeError as e:
        raise DecodeError(f"invalid json: {e}") from e
    except RecursionError as e:
        raise DecodeError("nesting too deep") from e


class DagJsonCodec(CodecBase):
    code = int(Multicodec.DAG_JSON)
    name = "dag-json"

    def __init__(self, unleashed: bool = False):
        self.unleashed = unleashed

    def encode(self, value: Ipld) -> bytes:
        return dumps(value)

    def decode(self, data: bytes) -> Ipld:
        return loads(data, self.unleashed)
