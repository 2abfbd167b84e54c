"""Tests for the versioned cache store."""

from src.sports.feeds.cache import CacheStore


class TestCacheStore:
    """Tests for CacheStore."""

    def test_set_stamps_entry_with_clock(self, cache, clock):
        """Test that entries record the time they were written."""
        entry = cache.set("live_soccer", {"response": []})

        assert entry.timestamp_ms == clock.now_ms
        assert entry.success is True
        assert cache.get("live_soccer").data == {"response": []}

    def test_missing_key_returns_none(self, cache):
        """Test that an unknown key is a miss."""
        assert cache.get("nothing") is None

    def test_keys_are_namespaced_by_version(self, clock):
        """Test that a version bump hides entries from older code."""
        old = CacheStore(version="v3", clock=clock)
        assert old.namespaced("odds_1") == "odds_1_v3"

        old.set("odds_1", [1, 2])
        assert "odds_1" in old
        assert len(old) == 1

    def test_freshness_window_is_chosen_by_reader(self, cache, clock):
        """Test that the same entry is fresh for one reader and stale for another."""
        cache.set("k", "payload")
        clock.advance(90)

        assert cache.get_fresh("k", freshness_window_ms=60_000) is None
        assert cache.get_fresh("k", freshness_window_ms=300_000).data == "payload"
        # Stale entries are still returned by get()
        assert cache.get("k").data == "payload"

    def test_freshness_boundary_is_exclusive(self, cache, clock):
        """Test that an entry exactly as old as the window is not fresh."""
        cache.set("k", "payload")

        clock.advance(59.999)
        assert cache.get_fresh("k", 60_000) is not None

        clock.advance(0.001)
        assert cache.get_fresh("k", 60_000) is None

    def test_failed_entries_are_never_fresh(self, cache):
        """Test that an unsuccessful entry is not served as fresh."""
        cache.set("k", None, success=False)
        assert cache.get_fresh("k", 60_000) is None

    def test_last_writer_wins(self, cache, clock):
        """Test that a second write replaces the first."""
        cache.set("k", "first")
        clock.advance(1)
        cache.set("k", "second")

        entry = cache.get("k")
        assert entry.data == "second"
        assert entry.timestamp_ms == clock.now_ms

    def test_clear_single_key(self, cache):
        """Test that clearing a key leaves the others."""
        cache.set("a", 1)
        cache.set("b", 2)

        cache.clear("a")

        assert cache.get("a") is None
        assert cache.get("b").data == 2

    def test_clear_all(self, cache):
        """Test that clearing without a key empties the store."""
        cache.set("a", 1)
        cache.set("b", 2)

        cache.clear()

        assert len(cache) == 0
