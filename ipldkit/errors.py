from typing import Any, Optional


class IpldError(Exception):
    pass


class FormatError(IpldError, ValueError):
    pass


class Unsupported(FormatError):
    def __init__(self, code: int, what: str = "tag"):
        self.code = code
        super().__init__(f"unsupported {what} 0x{code:x}")


class UnsupportedCodec(Unsupported):
    def __init__(self, code: int):
        super().__init__(code, "codec")


class UnsupportedMultihash(Unsupported):
    def __init__(self, code: int):
        super().__init__(code, "multihash")


class DecodeError(IpldError, ValueError):
    pass


class EncodeError(IpldError, ValueError):
    pass


class VerificationError(IpldError):
    def __init__(self, cid: Any, message: str = "hash of data does not match the cid"):
        self.cid = cid
        super().__init__(f"{message}: {cid}")


class BlockTooLarge(IpldError):
    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(f"block size {size} exceeds {limit}")


class NotFound(IpldError, KeyError):
    def __init__(self, cid: Any):
        self.cid = cid
        super().__init__(f"block not found: {cid}")

    def __str__(self) -> str:
        return self.args[0]


class TypeMismatch(IpldError, TypeError):
    def __init__(self, expected: str, found: str):
        self.expected = expected
        self.found = found
        super().__init__(f"expected {expected} but found {found}")


class SegmentNotFound(IpldError, KeyError):
    def __init__(self, segment: Any, kind: Optional[str] = None):
        self.segment = segment
        self.kind = kind
        where = f" in {kind}" if kind else ""
        super().__init__(f"segment {segment!r} not found{where}")

    def __str__(self) -> str:
        return self.args[0]


class NotPinned(IpldError):
    def __init__(self, cid: Any):
        self.cid = cid
        super().__init__(f"not pinned: {cid}")


class Pinned(IpldError):
    def __init__(self, cid: Any):
        self.cid = cid
        super().__init__(f"block is pinned: {cid}")
