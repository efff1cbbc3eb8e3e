import pytest

from ipldkit.config import MAX_BLOCK_SIZE, apply_env, load_config, parse_config
from ipldkit.core.enums import HashCode, Multicodec


def test_defaults():
    cfg = parse_config(b"")
    assert cfg.unleashed is False
    assert cfg.max_block_size == MAX_BLOCK_SIZE
    assert cfg.default_codec == Multicodec.DAG_CBOR
    assert cfg.default_hash == HashCode.SHA2_256
    assert cfg.cache.capacity == 1024
    assert cfg.cache.max_bytes is None
    assert cfg.cache.policy == "lru"


def test_parse_tables():
    cfg = parse_config(
        b"[ipld]\n"
        b"unleashed = true\n"
        b"max_block_size = 2048\n"
        b"default_codec = 0x0129\n"
        b"[cache]\n"
        b"capacity = 8\n"
        b"max_bytes = 4096\n"
        b'policy = "FIFO"\n'
    )
    assert cfg.unleashed is True
    assert cfg.max_block_size == 2048
    assert cfg.default_codec == Multicodec.DAG_JSON
    assert cfg.cache.capacity == 8
    assert cfg.cache.max_bytes == 4096
    assert cfg.cache.policy == "fifo"


def test_invalid_values():
    with pytest.raises(ValueError):
        parse_config(b'[cache]\npolicy = "random"\n')
    with pytest.raises(ValueError):
        parse_config(b"[cache]\ncapacity = 0\n")


def test_load_from_file(tmp_path):
    path = tmp_path / "ipldkit.toml"
    path.write_bytes(b"[cache]\ncapacity = 16\n")
    assert load_config(str(path)).cache.capacity == 16


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("IPLDKIT_UNLEASHED", "yes")
    monkeypatch.setenv("IPLDKIT_CACHE_CAPACITY", "32")
    cfg = apply_env(parse_config(b""))
    assert cfg.unleashed is True
    assert cfg.cache.capacity == 32
