import asyncio

import pytest

from realtime_console.session.models import EventLog, ListeningState, ResponseGenerationState
from realtime_console.session.scheduler import DelayedScheduler


@pytest.mark.asyncio
async def test_scheduled_callback_runs_after_delay():
    scheduler = DelayedScheduler()
    fired = []

    scheduler.schedule(0.01, lambda: fired.append("x"), name="tick")
    assert scheduler.pending == 1

    await scheduler.drain()
    assert fired == ["x"]
    assert scheduler.pending == 0


@pytest.mark.asyncio
async def test_cancel_all_drops_pending_callbacks():
    scheduler = DelayedScheduler()
    fired = []

    scheduler.schedule(0.05, lambda: fired.append("late"))
    assert scheduler.cancel_all() == 1

    await asyncio.sleep(0.1)
    assert fired == []


@pytest.mark.asyncio
async def test_failing_callback_does_not_break_scheduler():
    scheduler = DelayedScheduler()
    fired = []

    def _boom():
        raise RuntimeError("forced")

    scheduler.schedule(0, _boom)
    scheduler.schedule(0, lambda: fired.append("ok"))
    await scheduler.drain()
    assert fired == ["ok"]


def test_listening_auto_resume_fires_once():
    listening = ListeningState()
    listening.pause(generating=True)
    assert listening.auto_resume_pending is True

    assert listening.auto_resume() is True
    assert listening.paused is False
    assert listening.auto_resume() is False


def test_manual_resume_clears_auto_resume_flag():
    listening = ListeningState()
    assert listening.toggle(generating=True) is True
    assert listening.toggle(generating=False) is False
    assert listening.paused_during_generation is False

    listening.pause(generating=False)
    assert listening.auto_resume_pending is False


def test_generation_begin_is_exclusive():
    generation = ResponseGenerationState()
    assert generation.begin() is True
    assert generation.begin() is False
    generation.finish()
    assert generation.begin() is True


def test_event_log_is_newest_first_and_bounded():
    log = EventLog(limit=2)
    log.record("outbound", {"type": "a"})
    log.record("inbound", {"type": "b"})
    log.record("inbound", {"type": "c"})

    assert len(log) == 2
    assert [item["type"] for item in log.items()] == ["c", "b"]
