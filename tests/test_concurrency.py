"""Tests for proxies called from several threads."""

import threading
from concurrent.futures import ThreadPoolExecutor

from moxie import Embed, mockable

THREADS = 8
CALLS_PER_THREAD = 50


class Counter:
    def bump(self, worker: int, step: int) -> int:
        return step


class Gate:
    """Blocks inside the real method until released."""

    def __init__(self):
        self.entered = threading.Event()
        self.release = threading.Event()

    def wait(self) -> bool:
        self.entered.set()
        return self.release.wait(timeout=5)


@mockable(test_build=True)
class Meter:
    counter: Embed[Counter]

    def __init__(self):
        self.counter = Counter()


@mockable(test_build=True)
class Door:
    gate: Embed[Gate]

    def __init__(self):
        self.gate = Gate()


class TestConcurrentCalls:
    """Tests for the call log under concurrency."""

    def test_every_call_is_recorded(self):
        """N threads times M calls gives exactly N*M records."""
        meter = Meter()

        def work(worker):
            for step in range(CALLS_PER_THREAD):
                meter.bump(worker, step)

        with ThreadPoolExecutor(max_workers=THREADS) as pool:
            list(pool.map(work, range(THREADS)))

        calls = meter._bump_calls()
        assert len(calls) == THREADS * CALLS_PER_THREAD
        for worker in range(THREADS):
            steps = [c.step for c in calls if c.worker == worker]
            assert steps == list(range(CALLS_PER_THREAD))

    def test_reconfiguring_while_calling(self):
        """Switching modes during calls never loses a record."""
        meter = Meter()
        stop = threading.Event()

        def flip():
            while not stop.is_set():
                meter._bump_return(-1)
                meter._bump_do(lambda worker, step: step)
                meter._bump_do(None)

        flipper = threading.Thread(target=flip)
        flipper.start()
        try:
            with ThreadPoolExecutor(max_workers=THREADS) as pool:
                list(pool.map(lambda w: meter.bump(w, 0), range(THREADS * 10)))
        finally:
            stop.set()
            flipper.join()

        assert len(meter._bump_calls()) == THREADS * 10

    def test_real_call_runs_outside_the_lock(self):
        """A blocked real call does not block the control surface."""
        door = Door()
        worker = threading.Thread(target=door.wait)
        worker.start()
        try:
            assert door.gate.entered.wait(timeout=5)

            assert len(door._wait_calls()) == 1
            door._wait_return(False)
            assert door.wait() is False
        finally:
            door.gate.release.set()
            worker.join(timeout=5)

        assert len(door._wait_calls()) == 2
