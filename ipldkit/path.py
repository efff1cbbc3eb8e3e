from dataclasses import dataclass, field
from typing import Iterable, Iterator, Tuple, Union

from ipldkit.core.cid import Cid
from ipldkit.ipld import Segment


def _check_segment(seg: Segment) -> Segment:
    if isinstance(seg, bool) or not isinstance(seg, (int, str)):
        raise TypeError(f"path segment must be int or str, got {type(seg).__name__}")
    if isinstance(seg, int) and seg < 0:
        raise ValueError("list index must be non-negative")
    return seg


@dataclass(frozen=True)
class Path:
    segments: Tuple[Segment, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "segments", tuple(_check_segment(s) for s in self.segments))

    @classmethod
    def parse(cls, text: str) -> "Path":
        return cls(tuple(s for s in text.split("/") if s))

    @classmethod
    def of(cls, value: Union["Path", str, Iterable[Segment]]) -> "Path":
        if isinstance(value, Path):
            return value
        if isinstance(value, str):
            return cls.parse(value)
        return cls(tuple(value))

    def join(self, *segments: Segment) -> "Path":
        return Path(self.segments + tuple(segments))

    def __truediv__(self, seg: Segment) -> "Path":
        return self.join(seg)

    def __iter__(self) -> Iterator[Segment]:
        return iter(self.segments)

    def __len__(self) -> int:
        return len(self.segments)

    def __str__(self) -> str:
        return "/".join(str(s) for s in self.segments)


@dataclass(frozen=True)
class DagPath:
    root: Cid
    path: Path = field(default_factory=Path)

    @classmethod
    def parse(cls, text: str, unleashed: bool = False) -> "DagPath":
        head, _, rest = text.strip("/").partition("/")
        return cls(Cid.from_string(head, unleashed=unleashed), Path.parse(rest))

    def __str__(self) -> str:
        if not self.path.segments:
            return str(self.root)
        return f"{self.root}/{self.path}"
