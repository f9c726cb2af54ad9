from __future__ import annotations

import threading

from reclaimr.domain.reconciliation import RecurringTask
from reclaimr.domain.reconciliation.scheduler import run_detached


def test_recurring_task_runs_until_stopped() -> None:
    stop = threading.Event()
    ran = threading.Event()
    calls: list[int] = []

    def action() -> None:
        calls.append(1)
        if len(calls) >= 2:
            ran.set()

    task = RecurringTask("test", 0.01, action, stop)
    task.start()
    assert ran.wait(timeout=2)

    stop.set()
    task.join(timeout=2)

    assert not task.is_alive


def test_recurring_task_survives_failures() -> None:
    stop = threading.Event()
    ran = threading.Event()
    calls: list[int] = []

    def action() -> None:
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("first run fails")
        ran.set()

    task = RecurringTask("flaky", 0.01, action, stop)
    task.start()

    assert ran.wait(timeout=2)
    stop.set()
    task.join(timeout=2)


def test_run_detached_swallows_and_logs_errors() -> None:
    def action() -> None:
        raise RuntimeError("background failure")

    thread = run_detached("test", action)
    thread.join(timeout=2)

    assert not thread.is_alive()
