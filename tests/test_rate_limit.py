"""
Pytest tests for the process-wide RateGate (ceiling, lazy reset, thread safety).
"""

from __future__ import annotations

import threading

import pytest

from backend_bags.api_server.rate_limit import RateGate


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_ceiling_and_window_reset():
    """1000 admitted, 1001st rejected with remaining=0; after reset the next call starts at 1."""
    clock = FakeClock()
    gate = RateGate(limit=1000, window_sec=86400, clock=clock)

    assert all(gate.admit() for _ in range(1000))
    assert gate.admit() is False
    state = gate.snapshot()
    assert state.used == 1000
    assert state.remaining == 0

    clock.now += 86400 + 1
    assert gate.admit() is True
    state = gate.snapshot()
    assert state.used == 1
    assert state.reset_at == clock.now + 86400


def test_rejection_does_not_mutate_count():
    gate = RateGate(limit=2, clock=FakeClock())
    gate.admit()
    gate.admit()
    for _ in range(5):
        assert gate.admit() is False
    assert gate.snapshot().used == 2


def test_no_reset_exactly_at_reset_instant():
    """Reset happens only once now is past the stored reset instant."""
    clock = FakeClock()
    gate = RateGate(limit=1, window_sec=10, clock=clock)
    assert gate.admit()
    clock.now += 10
    assert gate.admit() is False
    clock.now += 0.5
    assert gate.admit() is True


def test_snapshot_dict_shape():
    clock = FakeClock(0.0)
    gate = RateGate(limit=1000, window_sec=86400, clock=clock)
    gate.admit()
    assert gate.snapshot().to_dict() == {
        "used": 1,
        "remaining": 999,
        "total": 1000,
        "resetTime": "1970-01-02T00:00:00.000Z",
    }


def test_concurrent_admits_never_exceed_ceiling():
    gate = RateGate(limit=100)
    admitted: list[bool] = []
    lock = threading.Lock()

    def worker():
        for _ in range(50):
            ok = gate.admit()
            with lock:
                admitted.append(ok)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sum(admitted) == 100
    assert gate.snapshot().used == 100


@pytest.mark.parametrize("kwargs", [{"limit": 0}, {"window_sec": 0}])
def test_invalid_arguments(kwargs):
    with pytest.raises(ValueError):
        RateGate(**kwargs)
