import pytest

from sei_mcp_gateway.infra.cache import ResponseCache, build_cache_key


def test_entry_is_served_until_ttl_then_dropped(clock):
    cache = ResponseCache(30.0, clock=clock)
    key = build_cache_key("get_balance", {"address": "0xabc", "network": "sei"})
    cache.set(key, {"wei": "1"})

    clock.advance(29.0)
    assert cache.get(key) == {"wei": "1"}

    clock.advance(2.0)
    assert cache.get(key) is None
    assert key not in cache
    assert len(cache) == 0


def test_entry_at_exact_ttl_is_still_fresh(clock):
    cache = ResponseCache(10.0, clock=clock)
    cache.set("k", "v")
    clock.advance(10.0)

    assert cache.get("k") == "v"


def test_evict_and_clear(clock):
    cache = ResponseCache(10.0, clock=clock)
    cache.set("a", 1)
    cache.set("b", 2)

    assert cache.evict("a") is True
    assert cache.evict("a") is False
    assert len(cache) == 1

    cache.clear()
    assert len(cache) == 0


def test_rejects_non_positive_ttl():
    with pytest.raises(ValueError):
        ResponseCache(0)


def test_cache_key_is_order_and_case_insensitive_for_hex():
    first = build_cache_key("get_balance", {"network": "sei", "address": "0xABCDEF"})
    second = build_cache_key("get_balance", {"address": "0xabcdef", "network": "sei"})

    assert first == second


def test_cache_key_drops_none_and_separates_operations():
    assert build_cache_key("get_block", {"network": "sei", "tag": None}) == build_cache_key(
        "get_block", {"network": "sei"}
    )
    assert build_cache_key("get_balance", {"address": "0x1"}) != build_cache_key(
        "is_contract", {"address": "0x1"}
    )


def test_cache_key_keeps_non_hex_strings_verbatim():
    assert build_cache_key("op", {"symbol": "USDC"}) != build_cache_key("op", {"symbol": "usdc"})
