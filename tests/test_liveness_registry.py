import threading

from monitoring.registry import AggregateStatus, LivenessRegistry

from conftest import START


def test_record_upserts_single_entry_per_identity():
    registry = LivenessRegistry()
    registry.record("10.0.0.1", START)
    registry.record("10.0.0.1", START + 60)

    assert len(registry) == 1
    record = registry.get("10.0.0.1")
    assert record.identity == "10.0.0.1"
    assert record.last_seen == START + 60


def test_empty_registry_is_offline():
    assert LivenessRegistry().status(START) == AggregateStatus.OFFLINE


def test_status_online_at_exact_offline_boundary():
    registry = LivenessRegistry(offline_timeout=300, zombie_timeout=3600)
    registry.record("10.0.0.1", START)

    assert registry.status(START + 300) == AggregateStatus.ONLINE
    assert registry.status(START + 301) == AggregateStatus.OFFLINE


def test_one_fresh_client_keeps_status_online():
    registry = LivenessRegistry(offline_timeout=300, zombie_timeout=3600)
    registry.record("10.0.0.1", START)
    registry.record("10.0.0.2", START + 4000)

    assert registry.status(START + 4000) == AggregateStatus.ONLINE


def test_zombies_survive_while_another_client_is_fresh():
    registry = LivenessRegistry(offline_timeout=300, zombie_timeout=3600)
    registry.record("10.0.0.1", START)
    registry.record("10.0.0.2", START + 5000)

    assert registry.status(START + 5000) == AggregateStatus.ONLINE
    assert registry.get("10.0.0.1") is not None


def test_offline_status_prunes_only_zombies():
    registry = LivenessRegistry(offline_timeout=300, zombie_timeout=3600)
    registry.record("10.0.0.1", START)
    registry.record("10.0.0.2", START + 3000)

    now = START + 3601
    assert registry.status(now) == AggregateStatus.OFFLINE
    assert registry.get("10.0.0.1") is None
    assert registry.get("10.0.0.2") is not None


def test_record_at_zombie_boundary_is_kept():
    registry = LivenessRegistry(offline_timeout=300, zombie_timeout=3600)
    registry.record("10.0.0.1", START)

    assert registry.status(START + 3600) == AggregateStatus.OFFLINE
    assert len(registry) == 1


def test_status_twice_is_idempotent():
    registry = LivenessRegistry(offline_timeout=300, zombie_timeout=3600)
    registry.record("10.0.0.1", START)
    registry.record("10.0.0.2", START + 1000)
    now = START + 4000

    first = registry.status(now)
    after_first = registry.snapshot()
    second = registry.status(now)
    after_second = registry.snapshot()

    assert first == second == AggregateStatus.OFFLINE
    assert after_first == after_second
    assert [r.identity for r in after_first] == ["10.0.0.2"]


def test_silent_client_goes_offline_then_gets_pruned():
    registry = LivenessRegistry(offline_timeout=300, zombie_timeout=3600)
    for beat in range(5):
        registry.record("10.0.0.1", START + beat * 60)
    last = START + 4 * 60

    assert registry.status(last + 300) == AggregateStatus.ONLINE
    assert registry.status(last + 301) == AggregateStatus.OFFLINE
    assert len(registry) == 1

    assert registry.status(last + 3601) == AggregateStatus.OFFLINE
    assert len(registry) == 0


def test_snapshot_returns_copies():
    registry = LivenessRegistry()
    registry.record("10.0.0.1", START)

    snapshot = registry.snapshot()
    snapshot[0].last_seen = 0

    assert registry.get("10.0.0.1").last_seen == START


def test_concurrent_records_keep_one_entry_per_identity():
    registry = LivenessRegistry()
    identities = [f"10.0.0.{i}" for i in range(8)]

    def worker(offset):
        for step in range(200):
            registry.record(identities[(offset + step) % len(identities)], START + step)
            registry.status(START + step)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(r.identity for r in registry.snapshot()) == sorted(identities)
