from snapshot_cache import SnapshotCache


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def test_entry_is_served_until_ttl_elapses():
    clock = FakeClock()
    cache: SnapshotCache[str] = SnapshotCache(ttl_seconds=300, clock=clock)

    cache.set("ARBOLEDAS", "snapshot")
    clock.advance(299)
    assert cache.get("ARBOLEDAS") == "snapshot"

    clock.advance(1)
    assert cache.get("ARBOLEDAS") is None


def test_entries_expire_independently_per_key():
    clock = FakeClock()
    cache: SnapshotCache[str] = SnapshotCache(ttl_seconds=10, clock=clock)

    cache.set("A", "a")
    clock.advance(6)
    cache.set("B", "b")
    clock.advance(6)

    assert cache.get("A") is None
    assert cache.get("B") == "b"


def test_invalidate_one_key_or_everything():
    cache: SnapshotCache[str] = SnapshotCache(ttl_seconds=60, clock=FakeClock())
    cache.set("A", "a")
    cache.set("B", "b")

    cache.invalidate("A")
    assert cache.get("A") is None
    assert cache.get("B") == "b"

    cache.invalidate()
    assert cache.get("B") is None
