"""Tests for the TTL lookup cache."""

from learnbook.core.cache import DEFAULT_TTL_SECONDS, TTLCache


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


class TestTTLCache:
    """Tests for TTLCache."""

    def test_default_ttl_is_one_day(self):
        assert DEFAULT_TTL_SECONDS == 86400
        assert TTLCache().ttl_seconds == 86400

    def test_miss(self):
        assert TTLCache().get("missing") is None

    def test_hit_within_ttl(self):
        clock = FakeClock()
        cache = TTLCache(ttl_seconds=60, clock=clock)
        cache.set("k", ["Algebra"])

        clock.now += 60
        assert cache.get("k") == ["Algebra"]

    def test_expired_entry_dropped_on_read(self):
        clock = FakeClock()
        cache = TTLCache(ttl_seconds=60, clock=clock)
        cache.set("k", "v")

        clock.now += 61
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_set_refreshes_timestamp(self):
        clock = FakeClock()
        cache = TTLCache(ttl_seconds=60, clock=clock)
        cache.set("k", "old")
        clock.now += 50
        cache.set("k", "new")
        clock.now += 50

        assert cache.get("k") == "new"

    def test_clear(self):
        cache = TTLCache()
        cache.set("a", 1)
        cache.set("b", 2)
        cache.clear()
        assert len(cache) == 0


class TestMakeKey:
    """Tests for cache key normalisation."""

    def test_case_and_whitespace_insensitive(self):
        assert TTLCache.make_key("Chapters", " CBSE ", "Class 10") == TTLCache.make_key(
            "chapters", "cbse", "class 10"
        )

    def test_none_matches_blank(self):
        assert TTLCache.make_key("subjects", None) == TTLCache.make_key("subjects", "")

    def test_order_matters(self):
        assert TTLCache.make_key("a", "b") != TTLCache.make_key("b", "a")
