from abc import ABC, abstractmethod
from typing import Dict, FrozenSet, Iterable, Iterator

from ipldkit.core.cid import Cid
from ipldkit.errors import UnsupportedCodec
from ipldkit.ipld import Ipld


class CodecBase(ABC):
    # encode must be deterministic or cids are not stable

    code: int
    name: str

    @abstractmethod
    def encode(self, value: Ipld) -> bytes:
        raise NotImplementedError

    @abstractmethod
    def decode(self, data: bytes) -> Ipld:
        raise NotImplementedError

    def references(self, data: bytes) -> FrozenSet[Cid]:
        return self.decode(data).references()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name} 0x{self.code:x}>"


class CodecRegistry:
    def __init__(self, codecs: Iterable[CodecBase] = ()):
        self._by_code: Dict[int, CodecBase] = {}
        for c in codecs:
            self.register(c)

    def register(self, codec: CodecBase, replace: bool = False) -> None:
        code = int(codec.code)
        if code in self._by_code and not replace:
            raise ValueError(f"codec 0x{code:x} already registered")
        self._by_code[code] = codec

    def get(self, code: int) -> CodecBase:
        c = self._by_code.get(int(code))
        if c is None:
            raise UnsupportedCodec(int(code))
        return c

    def encode(self, code: int, value: Ipld) -> bytes:
        return self.get(code).encode(value)

    def decode(self, code: int, data: bytes) -> Ipld:
        return self.get(code).decode(data)

    def codes(self) -> FrozenSet[int]:
        return frozenset(self._by_code)

    def __contains__(self, code: object) -> bool:
        return code in self._by_code

    def __iter__(self) -> Iterator[CodecBase]:
        return iter(list(self._by_code.values()))

    def __len__(self) -> int:
        return len(self._by_code)
