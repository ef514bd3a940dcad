import time

import pytest

from kitbox import cache_global
from kitbox.cache import NO_EXPIRY, with_max_cost


@pytest.fixture(autouse=True)
def fresh_global():
    cache_global.reset_cache()
    yield
    cache_global.reset_cache()


def test_uninitialised_operations():
    assert cache_global.get("k") == (None, False)
    assert cache_global.get_with_ttl("k") == (None, False, 0)
    assert cache_global.set("k", "v") is False
    assert cache_global.set_with_ttl("k", "v", 1) is False
    cache_global.delete("k")
    cache_global.clear()
    cache_global.close()
    assert cache_global.get("k") == (None, False)


def test_global_operations():
    cache_global.init_cache()
    assert cache_global.set("test_key", "test_value") is True
    assert cache_global.get("test_key") == ("test_value", True)
    assert cache_global.get_with_ttl("test_key") == ("test_value", True, NO_EXPIRY)
    cache_global.delete("test_key")
    assert cache_global.get("test_key") == (None, False)


def test_global_clear():
    cache_global.init_cache()
    cache_global.set("a", 1)
    cache_global.set("b", 2)
    cache_global.clear()
    assert cache_global.get("a") == (None, False)
    assert cache_global.get("b") == (None, False)


def test_global_ttl():
    cache_global.init_cache()
    assert cache_global.set_with_ttl("t", "v", 0.1)
    assert cache_global.get_with_ttl("t")[2] > 0
    time.sleep(0.2)
    assert cache_global.get("t") == (None, False)


def test_init_only_once():
    cache_global.init_cache(with_max_cost(1))
    cache_global.init_cache()
    cache_global.set("a", 1)
    cache_global.set("b", 2)
    assert cache_global.get("a") == (None, False)
    assert cache_global.get("b") == (2, True)


def test_init_error_raised_once():
    with pytest.raises(ValueError):
        cache_global.init_cache(with_max_cost(0))
    cache_global.init_cache()
    assert cache_global.set("k", "v") is False


def test_close_then_reset():
    cache_global.init_cache()
    cache_global.set("k", "v")
    cache_global.close()
    assert cache_global.get("k") == (None, False)
    cache_global.reset_cache()
    cache_global.init_cache()
    assert cache_global.set("k", "v") is True
    assert cache_global.get("k") == ("v", True)