import struct
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterator, Mapping, Optional, Tuple, Union

from ipldkit.core.cid import Cid
from ipldkit.core.enums import Kind
from ipldkit.errors import SegmentNotFound, TypeMismatch


Segment = Union[int, str]


def _float_bits(f: float) -> int:
    return struct.unpack(">Q", struct.pack(">d", f))[0]


def _list_index(segment: Segment) -> Optional[int]:
    if isinstance(segment, int):
        return segment
    if segment.isascii() and segment.isdigit():
        return int(segment)
    return None


class Ipld:
    __slots__ = ("kind", "_value", "_hash")

    def __init__(self, kind: Kind, value: Any = None):
        self.kind = kind
        self._value = value
        self._hash: Optional[int] = None

    @classmethod
    def null(cls) -> "Ipld":
        return NULL

    @classmethod
    def of_bool(cls, value: bool) -> "Ipld":
        if not isinstance(value, bool):
            raise TypeError("bool required")
        return cls(Kind.BOOL, value)

    @classmethod
    def of_int(cls, value: int) -> "Ipld":
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError("int required")
        return cls(Kind.INTEGER, int(value))

    @classmethod
    def of_float(cls, value: float) -> "Ipld":
        if not isinstance(value, float):
            raise TypeError("float required")
        return cls(Kind.FLOAT, value)

    @classmethod
    def of_str(cls, value: str) -> "Ipld":
        if not isinstance(value, str):
            raise TypeError("str required")
        try:
            value.encode("utf-8")
        except UnicodeEncodeError as e:
            raise ValueError("string is not well-formed unicode") from e
        return cls(Kind.STRING, value)

    @classmethod
    def of_bytes(cls, value: Union[bytes, bytearray, memoryview]) -> "Ipld":
        return cls(Kind.BYTES, bytes(value))

    @classmethod
    def of_list(cls, items) -> "Ipld":
        items = tuple(items)
        for item in items:
            if not isinstance(item, Ipld):
                raise TypeError("list items must be Ipld")
        return cls(Kind.LIST, items)

    @classmethod
    def of_map(cls, entries: Mapping[str, "Ipld"]) -> "Ipld":
        m: Dict[str, Ipld] = {}
        for key, value in entries.items():
            if not isinstance(key, str):
                raise TypeError("map keys must be str")
            if not isinstance(value, Ipld):
                raise TypeError("map values must be Ipld")
            m[key] = value
        return cls(Kind.MAP, m)

    @classmethod
    def of_link(cls, cid: Cid) -> "Ipld":
        if not isinstance(cid, Cid):
            raise TypeError("Cid required")
        return cls(Kind.LINK, cid)

    @classmethod
    def from_python(cls, obj: Any) -> "Ipld":
        if isinstance(obj, Ipld):
            return obj
        if obj is None:
            return NULL
        if isinstance(obj, bool):
            return cls.of_bool(obj)
        if isinstance(obj, int):
            return cls.of_int(obj)
        if isinstance(obj, float):
            return cls.of_float(obj)
        if isinstance(obj, str):
            return cls.of_str(obj)
        if isinstance(obj, (bytes, bytearray, memoryview)):
            return cls.of_bytes(obj)
        if isinstance(obj, Cid):
            return cls.of_link(obj)
        if isinstance(obj, (list, tuple)):
            return cls.of_list(cls.from_python(x) for x in obj)
        if isinstance(obj, dict):
            for k in obj:
                if not isinstance(k, str):
                    raise TypeError(f"map keys must be str, got {type(k).__name__}")
            return cls.of_map({k: cls.from_python(v) for k, v in obj.items()})
        raise TypeError(f"cannot represent {type(obj).__name__} as ipld")

    def to_python(self) -> Any:
        if self.kind == Kind.LIST:
            return [x.to_python() for x in self._value]
        if self.kind == Kind.MAP:
            return {k: v.to_python() for k, v in self._value.items()}
        return self._value

    def _expect(self, kind: Kind) -> Any:
        if self.kind != kind:
            raise TypeMismatch(kind.label(), self.kind.label())
        return self._value

    def is_null(self) -> bool:
        return self.kind == Kind.NULL

    def as_bool(self) -> bool:
        return self._expect(Kind.BOOL)

    def as_int(self) -> int:
        return self._expect(Kind.INTEGER)

    def as_float(self) -> float:
        return self._expect(Kind.FLOAT)

    def as_str(self) -> str:
        return self._expect(Kind.STRING)

    def as_bytes(self) -> bytes:
        return self._expect(Kind.BYTES)

    def as_list(self) -> Tuple["Ipld", ...]:
        return self._expect(Kind.LIST)

    def as_map(self) -> Mapping[str, "Ipld"]:
        return MappingProxyType(self._expect(Kind.MAP))

    def as_link(self) -> Cid:
        return self._expect(Kind.LINK)

    def get(self, segment: Segment) -> "Ipld":
        if isinstance(segment, bool) or not isinstance(segment, (int, str)):
            raise TypeError("path segments must be int or str")
        if self.kind == Kind.LIST:
            idx = _list_index(segment)
            if idx is None or not 0 <= idx < len(self._value):
                raise SegmentNotFound(segment, "list")
            return self._value[idx]
        if self.kind == Kind.MAP:
            key = segment if isinstance(segment, str) else str(segment)
            try:
                return self._value[key]
            except KeyError:
                raise SegmentNotFound(segment, "map") from None
        raise TypeMismatch("list or map", self.kind.label())

    def walk(self) -> Iterator["Ipld"]:
        # pre-order, depth first
        stack = [iter((self,))]
        while stack:
            node = next(stack[-1], None)
            if node is None:
                stack.pop()
                continue
            yield node
            if node.kind == Kind.LIST:
                stack.append(iter(node._value))
            elif node.kind == Kind.MAP:
                stack.append(iter(node._value.values()))

    def references(self) -> FrozenSet[Cid]:
        return frozenset(node._value for node in self.walk() if node.kind == Kind.LINK)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Ipld):
            return NotImplemented
        if self.kind != other.kind:
            return False
        if self.kind == Kind.FLOAT:
            return _float_bits(self._value) == _float_bits(other._value)
        return self._value == other._value

    def __hash__(self) -> int:
        if self._hash is None:
            if self.kind == Kind.MAP:
                payload: Any = frozenset(self._value.items())
            elif self.kind == Kind.FLOAT:
                payload = _float_bits(self._value)
            else:
                payload = self._value
            self._hash = hash((int(self.kind), payload))
        return self._hash

    def __repr__(self) -> str:
        return f"Ipld({self.kind.label()}, {self.to_python()!r})"


NULL = Ipld(Kind.NULL, None)


def ipld(obj: Any) -> Ipld:
    return Ipld.from_python(obj)
