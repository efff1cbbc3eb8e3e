import pytest

from ipldkit.store.memory import MemStore
from tests.helpers import CountingStore


@pytest.fixture
def mem():
    return MemStore()


@pytest.fixture
def counting():
    return CountingStore()
