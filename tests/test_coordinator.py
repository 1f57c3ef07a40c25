"""
Tests for the hint-unlock coordinator: foreground ticks and background alarms
converging, alarm cancellation, hint supply with fallback, and listeners.
"""

from __future__ import annotations

import httpx
import pytest

from cpfocus.coordinator import HintCoordinator, HintLockedError
from cpfocus.hints.cache import HintBundle
from cpfocus.hints.fallback import fallback_hint
from cpfocus.hints.supplier import HintFetchError, HttpHintSupplier


def _numbers(revealed):
    return [h.hint_number for h in revealed]


@pytest.fixture()
def received(coordinator):
    events = []
    coordinator.subscribe(events.append)
    return events


class TestLifecycle:
    def test_start_arms_one_alarm_per_hint(self, coordinator):
        session = coordinator.start_session("two-sum")
        alarms = coordinator.alarms.pending()
        assert [a.hint_number for a in alarms] == [1, 2, 3]
        assert alarms[0].fire_at == session.started_at + 20 * 60_000
        assert alarms[2].fire_at == session.started_at + 30 * 60_000

    def test_start_is_idempotent(self, coordinator, clock):
        first = coordinator.start_session("two-sum")
        clock.advance(minutes=3)
        second = coordinator.start_session("two-sum")
        assert second.started_at == first.started_at
        assert len(coordinator.alarms.pending()) == 3

    def test_stop_cancels_all_alarms(self, coordinator):
        coordinator.start_session("two-sum")
        coordinator.stop_session()
        assert coordinator.alarms.pending() == []
        assert coordinator.get_status().problem_id is None

    def test_new_problem_cancels_previous_alarms(self, coordinator, clock):
        coordinator.start_session("two-sum")
        clock.advance(minutes=2)
        coordinator.start_session("3sum")
        assert {a.problem_id for a in coordinator.alarms.pending()} == {"3sum"}
        assert coordinator.get_history()["two-sum"].ended_at == clock.now

    def test_restart_rearms_fresh_alarms(self, coordinator, clock):
        coordinator.start_session("two-sum")
        coordinator.stop_session()
        clock.advance(minutes=5)
        session = coordinator.start_session("two-sum")
        alarms = coordinator.alarms.pending()
        assert len(alarms) == 3
        assert alarms[0].fire_at == session.started_at + 20 * 60_000

    def test_record_submission(self, coordinator, clock):
        coordinator.start_session("two-sum")
        clock.advance(minutes=15)
        assert coordinator.record_submission("two-sum").total_duration_ms == 15 * 60_000
        assert coordinator.record_submission("ghost") is None

    def test_reset_problem(self, coordinator):
        coordinator.start_session("two-sum")
        coordinator.hints.put(HintBundle("two-sum", ["a", "b", "c"]))
        assert coordinator.reset_problem("two-sum") is True
        assert coordinator.get_history() == {}
        assert coordinator.hints.get("two-sum") is None
        assert coordinator.alarms.pending() == []


class TestUnlockPaths:
    async def test_no_session_ticks_nothing(self, coordinator):
        assert await coordinator.tick() == []
        assert await coordinator.fire_due_alarms() == []

    async def test_full_run_emits_each_hint_once(self, coordinator, clock, received):
        session = coordinator.start_session("two-sum")
        for minute in range(0, 40):
            clock.set_elapsed(session.started_at, minutes=minute)
            await coordinator.tick()
            await coordinator.fire_due_alarms()
        assert _numbers(received) == [1, 2, 3]

    async def test_foreground_boundary(self, coordinator, clock):
        session = coordinator.start_session("two-sum")
        clock.set_elapsed(session.started_at, minutes=19, seconds=59)
        assert await coordinator.tick() == []
        clock.set_elapsed(session.started_at, minutes=20)
        assert _numbers(await coordinator.tick()) == [1]

    async def test_alarm_then_tick_do_not_duplicate(self, coordinator, clock):
        session = coordinator.start_session("two-sum")
        clock.set_elapsed(session.started_at, minutes=20)
        assert _numbers(await coordinator.fire_due_alarms()) == [1]
        assert await coordinator.tick() == []

    async def test_tick_then_alarm_do_not_duplicate(self, coordinator, clock):
        session = coordinator.start_session("two-sum")
        clock.set_elapsed(session.started_at, minutes=25)
        assert _numbers(await coordinator.tick()) == [1, 2]
        assert await coordinator.fire_due_alarms() == []
        assert [a.hint_number for a in coordinator.alarms.pending()] == [3]

    async def test_dropped_alarm_does_not_skip_hint(self, coordinator, kv, clock):
        session = coordinator.start_session("two-sum")
        kv.delete("alarm:two-sum:1")
        clock.set_elapsed(session.started_at, minutes=25)
        assert _numbers(await coordinator.fire_due_alarms()) == [1, 2]

    async def test_stale_alarm_after_stop_reveals_nothing(self, coordinator, clock):
        session = coordinator.start_session("two-sum")
        coordinator.alarms.arm("two-sum", session.started_at, coordinator.schedule())
        coordinator.store.stop_session()  # bypasses alarm cancellation
        clock.set_elapsed(session.started_at, minutes=40)
        assert await coordinator.fire_due_alarms() == []

    async def test_cold_coordinator_resumes_from_store(self, kv, supplier, clock):
        session = HintCoordinator(kv, supplier, clock=clock).start_session("two-sum")
        clock.set_elapsed(session.started_at, minutes=21)
        cold = HintCoordinator(kv, supplier, clock=clock)
        assert _numbers(await cold.tick()) == [1]
        assert cold.get_status().elapsed_seconds == 21 * 60


class TestOffsetChanges:
    def test_invalid_offsets_are_repaired(self, coordinator):
        assert coordinator.update_offsets([10, 12, 14]) == [20, 25, 30]
        assert coordinator.schedule().offsets == (20, 25, 30)

    async def test_mid_session_change_keeps_revealed(self, coordinator, clock):
        session = coordinator.start_session("two-sum")
        clock.set_elapsed(session.started_at, minutes=26)
        await coordinator.tick()
        coordinator.update_offsets([40, 50, 60])
        assert coordinator.get_status().hints_revealed_count == 2
        alarms = coordinator.alarms.pending()
        assert [a.hint_number for a in alarms] == [3]
        assert alarms[0].fire_at == session.started_at + 60 * 60_000

    async def test_earlier_offsets_unlock_on_next_tick(self, coordinator, clock):
        coordinator.update_offsets([40, 50, 60])
        session = coordinator.start_session("two-sum")
        clock.set_elapsed(session.started_at, minutes=26)
        assert await coordinator.tick() == []
        coordinator.update_offsets([20, 25, 30])
        assert _numbers(await coordinator.tick()) == [1, 2]


class TestHintContent:
    async def test_unlock_uses_supplier_hints(self, coordinator, supplier, clock):
        session = coordinator.start_session("two-sum")
        clock.set_elapsed(session.started_at, minutes=20)
        [hint] = await coordinator.tick()
        assert hint.text == supplier.hints[0]
        assert hint.source == "supplier"

    async def test_fetch_failure_falls_back(self, coordinator, supplier, clock, received):
        supplier.error = HintFetchError("generation_failed", "model down")
        session = coordinator.start_session("two-sum")
        clock.set_elapsed(session.started_at, minutes=20)
        [hint] = await coordinator.tick()
        assert hint.source == "fallback"
        assert hint.text == fallback_hint(1)
        assert received == [hint]

    async def test_unexpected_supplier_error_still_reveals(self, coordinator, supplier, clock, received):
        supplier.error = ValueError("garbled payload")
        session = coordinator.start_session("two-sum")
        clock.set_elapsed(session.started_at, minutes=20)
        [hint] = await coordinator.tick()
        assert hint.source == "fallback"
        assert hint.text == fallback_hint(1)
        assert received == [hint]
        assert coordinator.store.load("two-sum").hints_revealed_count == 1

    async def test_html_from_hint_service_falls_back(self, kv, clock):
        def html(request):
            return httpx.Response(200, text="<html>Bad Gateway</html>")

        supplier = HttpHintSupplier("http://test", transport=httpx.MockTransport(html))
        coordinator = HintCoordinator(kv, supplier, clock=clock)
        session = coordinator.start_session("two-sum")
        clock.set_elapsed(session.started_at, minutes=20)
        [hint] = await coordinator.tick()
        assert hint.hint_number == 1
        assert hint.source == "fallback"
        assert hint.text == fallback_hint(1)

    async def test_no_supplier_falls_back(self, kv, clock):
        coordinator = HintCoordinator(kv, None, clock=clock)
        session = coordinator.start_session("two-sum")
        clock.set_elapsed(session.started_at, minutes=30)
        revealed = await coordinator.tick()
        assert [h.source for h in revealed] == ["fallback"] * 3
        assert all(h.text for h in revealed)

    async def test_complete_bundle_is_not_refetched(self, coordinator, supplier):
        await coordinator.load_hints("two-sum", {"title": "Two Sum"})
        await coordinator.load_hints("two-sum")
        hint = await coordinator.hint_content("two-sum", 3)
        assert len(supplier.calls) == 1
        assert supplier.calls[0] == ("two-sum", {"title": "Two Sum"})
        assert hint.source == "cache"

    async def test_partial_bundle_is_refetched(self, coordinator, supplier):
        supplier.hints = ["only one"]
        await coordinator.load_hints("two-sum")
        hint = await coordinator.hint_content("two-sum", 2)
        assert hint.source == "fallback"
        assert len(supplier.calls) == 2

    async def test_failed_refresh_keeps_cached_hints(self, coordinator, supplier):
        supplier.hints = ["first", "second"]
        await coordinator.load_hints("two-sum")
        supplier.error = HintFetchError("unavailable")
        bundle = await coordinator.load_hints("two-sum")
        assert bundle.hints == ["first", "second"]

    async def test_locked_hint_is_refused(self, coordinator, clock):
        session = coordinator.start_session("two-sum")
        clock.set_elapsed(session.started_at, minutes=21)
        assert (await coordinator.revealed_hint("two-sum", 1)).hint_number == 1
        with pytest.raises(HintLockedError):
            await coordinator.revealed_hint("two-sum", 2)


class TestListeners:
    async def test_failing_listener_does_not_block_others(self, coordinator, clock):
        seen = []

        def broken(hint):
            raise RuntimeError("render failed")

        coordinator.subscribe(broken)
        coordinator.subscribe(seen.append)
        session = coordinator.start_session("two-sum")
        clock.set_elapsed(session.started_at, minutes=20)
        await coordinator.tick()
        assert _numbers(seen) == [1]

    async def test_unsubscribe(self, coordinator, clock, received):
        coordinator.unsubscribe(received.append)
        session = coordinator.start_session("two-sum")
        clock.set_elapsed(session.started_at, minutes=20)
        await coordinator.tick()
        assert received == []
