from enum import IntEnum


class Multicodec(IntEnum):
    IDENTITY = 0x00
    CBOR = 0x51
    RAW = 0x55
    DAG_PB = 0x70
    DAG_CBOR = 0x71
    LIBP2P_KEY = 0x72
    GIT_RAW = 0x78
    DAG_JOSE = 0x85
    DAG_COSE = 0x86
    JSON = 0x0200
    DAG_JSON = 0x0129


class HashCode(IntEnum):
    IDENTITY = 0x00
    SHA2_256 = 0x12
    SHA2_512 = 0x13
    SHA3_512 = 0x14
    SHA3_384 = 0x15
    SHA3_256 = 0x16
    SHA3_224 = 0x17
    SHA2_384 = 0x20
    BLAKE2B_512 = 0xB240
    BLAKE2S_256 = 0xB260


class Kind(IntEnum):
    NULL = 0
    BOOL = 1
    INTEGER = 2
    FLOAT = 3
    STRING = 4
    BYTES = 5
    LIST = 6
    MAP = 7
    LINK = 8

    def label(self) -> str:
        return self.name.lower()
