import asyncio

import pytest

from gp_controller.scheduling import (
    AsyncioScheduler,
    Debouncer,
    ManualScheduler,
    SingleSlotMailbox,
)


pytestmark = pytest.mark.unit_controller


def test_manual_scheduler_runs_in_due_order() -> None:
    scheduler = ManualScheduler()
    order: list[str] = []
    scheduler.call_later(0.2, lambda: order.append("late"))
    scheduler.call_soon(lambda: order.append("soon"))
    scheduler.call_later(0.1, lambda: order.append("mid"))

    assert scheduler.advance(0.15) == 2
    assert order == ["soon", "mid"]
    assert scheduler.pending_count() == 1
    scheduler.run_until_idle()
    assert order == ["soon", "mid", "late"]
    assert scheduler.now == pytest.approx(0.2)


def test_cancelled_tasks_never_run() -> None:
    scheduler = ManualScheduler()
    ran: list[int] = []
    task = scheduler.call_soon(lambda: ran.append(1))
    assert task.cancel() is True
    assert task.cancel() is False
    scheduler.run_until_idle()
    assert ran == []
    assert task.cancelled and not task.done


def test_run_until_idle_guards_against_loops() -> None:
    scheduler = ManualScheduler()

    def again() -> None:
        scheduler.call_soon(again)

    scheduler.call_soon(again)
    with pytest.raises(RuntimeError):
        scheduler.run_until_idle(max_tasks=50)


def test_mailbox_keeps_latest() -> None:
    mailbox: SingleSlotMailbox[str] = SingleSlotMailbox()
    assert mailbox.put("a") is None
    assert mailbox.put("b") == "a"
    assert len(mailbox) == 1
    assert mailbox.peek() == "b"
    assert mailbox.take() == "b"
    assert mailbox.take() is None
    assert len(mailbox) == 0


def test_debouncer_commits_last_value_once() -> None:
    scheduler = ManualScheduler()
    committed: list[int] = []
    debouncer = Debouncer(scheduler, 0.1, committed.append)
    for value in (1, 2, 3):
        debouncer.submit(value)
        scheduler.advance(0.05)
    assert committed == []
    assert debouncer.pending
    scheduler.advance(0.1)
    assert committed == [3]
    assert not debouncer.pending


def test_debouncer_flush_and_cancel() -> None:
    scheduler = ManualScheduler()
    committed: list[str] = []
    debouncer = Debouncer(scheduler, 0.1, committed.append)
    assert debouncer.flush() is False
    debouncer.submit("x")
    assert debouncer.flush() is True
    debouncer.submit("y")
    debouncer.cancel()
    scheduler.run_until_idle()
    assert committed == ["x"]


def test_asyncio_scheduler_debounces_on_event_loop() -> None:
    committed: list[str] = []

    async def scenario() -> None:
        scheduler = AsyncioScheduler()
        debouncer = Debouncer(scheduler, 0.01, committed.append)
        debouncer.submit("first")
        debouncer.submit("second")
        cancelled = scheduler.call_soon(lambda: committed.append("never"))
        cancelled.cancel()
        await asyncio.sleep(0.05)

    asyncio.run(scenario())
    assert committed == ["second"]
