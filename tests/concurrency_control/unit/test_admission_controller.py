"""Admission controller tests."""

from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest
from dynamo_load_tester.concurrency_control import (
    AdmissionCancelledError,
    AdmissionController,
    RunCancellation,
)


def test_acquire_and_release_track_in_flight_permits() -> None:
    controller = AdmissionController(2)

    first = controller.acquire()
    second = controller.acquire()
    assert controller.in_flight == 2

    first.release()
    first.release()
    assert controller.in_flight == 1
    second.release()
    assert controller.in_flight == 0
    assert controller.peak_in_flight == 2


def test_release_without_permit_is_rejected() -> None:
    with pytest.raises(RuntimeError):
        AdmissionController(1).release()


def test_capacity_must_be_positive() -> None:
    with pytest.raises(ValueError):
        AdmissionController(0)


def test_in_flight_never_exceeds_capacity_under_contention() -> None:
    controller = AdmissionController(3)
    lock = threading.Lock()
    observed: list[int] = []
    active = 0

    def _work() -> None:
        nonlocal active
        with controller.acquire():
            with lock:
                active += 1
                observed.append(active)
            time.sleep(0.002)
            with lock:
                active -= 1

    with ThreadPoolExecutor(max_workers=12) as executor:
        for _ in range(120):
            executor.submit(_work)

    assert max(observed) <= 3
    assert controller.peak_in_flight <= 3
    assert controller.in_flight == 0


def test_acquire_at_lower_level_waits_for_in_flight_to_drop() -> None:
    controller = AdmissionController(5)
    held = controller.acquire()
    admitted = threading.Event()

    def _acquire_at_level_one() -> None:
        with controller.acquire(level=1):
            admitted.set()

    thread = threading.Thread(target=_acquire_at_level_one)
    thread.start()
    assert not admitted.wait(0.1)

    held.release()
    assert admitted.wait(2.0)
    thread.join(timeout=2.0)


def test_level_above_capacity_is_clamped() -> None:
    controller = AdmissionController(2)

    permit = controller.acquire(level=50)

    assert permit.level == 2
    permit.release()


def test_cancellation_wakes_blocked_acquirers() -> None:
    cancellation = RunCancellation()
    controller = AdmissionController(1, cancellation)
    controller.acquire()
    errors: list[Exception] = []

    def _blocked_acquire() -> None:
        try:
            controller.acquire()
        except AdmissionCancelledError as exc:
            errors.append(exc)

    thread = threading.Thread(target=_blocked_acquire)
    thread.start()
    time.sleep(0.05)
    cancellation.cancel()
    thread.join(timeout=2.0)

    assert not thread.is_alive()
    assert len(errors) == 1


def test_acquire_after_cancellation_fails_immediately() -> None:
    cancellation = RunCancellation()
    cancellation.cancel()

    with pytest.raises(AdmissionCancelledError):
        AdmissionController(4, cancellation).acquire()


def test_wait_until_idle_times_out_while_permits_are_held() -> None:
    controller = AdmissionController(1)
    permit = controller.acquire()

    assert controller.wait_until_idle(0.05) is False
    permit.release()
    assert controller.wait_until_idle(0.05) is True



def test_cancellation_during_idle_wait_bounds_the_remaining_wait() -> None:
    cancellation = RunCancellation()
    controller = AdmissionController(1, cancellation)
    permit = controller.acquire()
    results: list[bool] = []
    waiter = threading.Thread(
        target=lambda: results.append(controller.wait_until_idle(cancel_grace=0.1))
    )
    waiter.start()
    time.sleep(0.1)
    assert waiter.is_alive()

    cancellation.cancel()
    waiter.join(timeout=2.0)

    assert not waiter.is_alive()
    assert results == [False]
    permit.release()


def test_idle_wait_after_cancellation_returns_once_permits_are_released() -> None:
    cancellation = RunCancellation()
    controller = AdmissionController(1, cancellation)
    permit = controller.acquire()
    cancellation.cancel()
    threading.Timer(0.05, permit.release).start()

    assert controller.wait_until_idle(cancel_grace=2.0) is True

def test_cancellation_runs_callbacks_once_and_interrupts_wait() -> None:
    cancellation = RunCancellation()
    calls: list[str] = []
    cancellation.on_cancel(lambda: calls.append("cancelled"))

    cancellation.cancel()
    cancellation.cancel()
    cancellation.on_cancel(lambda: calls.append("late"))

    assert calls == ["cancelled", "late"]
    assert cancellation.is_cancelled
    assert cancellation.wait(10.0) is True
