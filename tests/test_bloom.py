import logging

import pytest

from kitbox import bloom as bloom_module
from kitbox.bloom import (
    BloomFalseProbabilityNegativeError,
    BloomFalseProbabilityThanOneError,
    BloomNameEmptyError,
    BloomNameRepeatedError,
    new_bloom,
    with_expected_elements,
    with_false_positive_rate,
    with_logger,
    with_name,
    with_redis,
    with_store,
)
from kitbox.bloom_store import MemoryStore


class StoreFailure(Exception):
    pass


class FakeStore:
    def __init__(self, exist_result=True, fail=False):
        self.exist_result = exist_result
        self.fail = fail
        self.calls = []

    def exist(self, key, hashes):
        self.calls.append(("exist", key, list(hashes)))
        if self.fail:
            raise StoreFailure("boom")
        return self.exist_result

    def add(self, key, hashes):
        self.calls.append(("add", key, list(hashes)))
        if self.fail:
            raise StoreFailure("boom")


class FakeRedis:
    def __init__(self):
        self.scripts = {}
        self.bits = {}

    def script_load(self, script):
        sha = f"sha{len(self.scripts)}"
        self.scripts[sha] = script
        return sha

    def evalsha(self, sha, numkeys, *keys_and_args):
        key = keys_and_args[0]
        args = keys_and_args[numkeys:]
        bitset = self.bits.setdefault(key, set())
        if "setbit" in self.scripts[sha]:
            result = [1 if a in bitset else 0 for a in args]
            bitset.update(args)
            return result
        return [1 if a in bitset else 0 for a in args]


def make(store, name="test"):
    return new_bloom(
        with_name(name),
        with_store(store),
        with_expected_elements(1000),
        with_false_positive_rate(0.01),
    )


@pytest.mark.parametrize("result", [True, False])
def test_contain_uses_filter_name(result):
    store = FakeStore(exist_result=result)
    b = make(store)
    assert b.contain("test") is result
    assert store.calls[0][0] == "exist"
    assert store.calls[0][1] == "test"


def test_contain_store_error():
    b = make(FakeStore(fail=True))
    with pytest.raises(StoreFailure):
        b.contain("test")


def test_put_uses_filter_name():
    store = FakeStore()
    b = make(store)
    b.put("test")
    assert store.calls[0][:2] == ("add", "test")


def test_put_store_error():
    b = make(FakeStore(fail=True))
    with pytest.raises(StoreFailure):
        b.put("test")


@pytest.mark.parametrize("result", [True, False])
def test_group_contain_key(result):
    store = FakeStore(exist_result=result)
    b = make(store)
    assert b.group_contain("group1", "test") is result
    assert store.calls[0][1] == "test:group1"


def test_group_contain_store_error():
    b = make(FakeStore(fail=True))
    with pytest.raises(StoreFailure):
        b.group_contain("group1", "test")


def test_group_put_key():
    store = FakeStore()
    b = make(store)
    b.group_put("group1", "test")
    assert store.calls[0][:2] == ("add", "test:group1")


def test_group_put_store_error():
    b = make(FakeStore(fail=True))
    with pytest.raises(StoreFailure):
        b.group_put("group1", "test")


def test_sizing():
    b = make(FakeStore())
    assert b.bits == 9585
    assert b.hash_count == 7


def test_hashes_count_and_range():
    store = FakeStore()
    b = make(store)
    b.put("hello")
    positions = store.calls[0][2]
    assert len(positions) == b.hash_count
    assert all(0 <= p < b.bits for p in positions)
    assert b.hashes("hello") == positions


def test_empty_name():
    with pytest.raises(BloomNameEmptyError):
        new_bloom(with_name("   "))


def test_repeated_name():
    bloom_module.reserved_names.add("dup")
    try:
        with pytest.raises(BloomNameRepeatedError):
            new_bloom(with_name("dup"))
    finally:
        bloom_module.reserved_names.discard("dup")


def test_probability_above_one():
    with pytest.raises(BloomFalseProbabilityThanOneError):
        new_bloom(with_name("test2"), with_false_positive_rate(1.1))


def test_probability_negative():
    with pytest.raises(BloomFalseProbabilityNegativeError):
        new_bloom(with_name("test3"), with_false_positive_rate(-0.1))


def test_with_logger():
    logger = logging.getLogger("kitbox.test.bloom")
    b = new_bloom(with_name("withlogger"), with_logger(logger), with_store(MemoryStore(1000)))
    assert b.logger is logger


def test_memory_store_round_trip():
    b = make(MemoryStore(4096), name="mem")
    assert b.contain("alpha") is False
    b.put("alpha")
    assert b.contain("alpha") is True


def test_redis_store_round_trip():
    redis = FakeRedis()
    b = new_bloom(with_name("withredis"), with_redis(redis))
    assert b.contain("alpha") is False
    b.put("alpha")
    assert b.contain("alpha") is True
    assert "kit:bloom:withredis" in redis.bits
    b.group_put("g", "beta")
    assert b.group_contain("g", "beta") is True
    assert "kit:bloom:withredis:g" in redis.bits
    assert b.group_contain("other", "beta") is False