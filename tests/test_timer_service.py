"""Tests for the project countdown."""
from datetime import datetime, timedelta, timezone

from briefdesk.services.timer_service import EXPIRED_LABEL, ProjectTimer, format_remaining

T0 = datetime(2026, 1, 1, 9, 0, tzinfo=timezone.utc)


class TestProjectTimer:
    def test_not_expired_one_second_before_deadline(self):
        timer = ProjectTimer(T0, 24)

        state = timer.state(T0 + timedelta(hours=23, minutes=59, seconds=59))

        assert not state.expired
        assert state.remaining_seconds == 1
        assert state.display == "0h 0m 1s"

    def test_expired_one_second_after_deadline(self):
        timer = ProjectTimer(T0, 24)

        state = timer.state(T0 + timedelta(hours=24, seconds=1))

        assert state.expired
        assert state.remaining_seconds == 0
        assert state.display == EXPIRED_LABEL

    def test_expired_exactly_at_deadline(self):
        assert ProjectTimer(T0, 24).state(T0 + timedelta(hours=24)).expired

    def test_display_at_start(self):
        assert ProjectTimer(T0, 48).state(T0).display == "48h 0m 0s"

    def test_deadline(self):
        assert ProjectTimer(T0, 6).deadline == T0 + timedelta(hours=6)


def test_format_remaining():
    assert format_remaining(3 * 3600 + 25 * 60 + 7) == "3h 25m 7s"


class TestCountdown:
    async def test_stops_after_first_expired_state(self):
        timer = ProjectTimer(T0, 1)
        ticks = iter([
            T0 + timedelta(minutes=59, seconds=58),
            T0 + timedelta(minutes=59, seconds=59),
            T0 + timedelta(hours=1),
            T0 + timedelta(hours=2),
        ])

        states = [s async for s in timer.countdown(clock=lambda: next(ticks), interval=0)]

        assert [s.expired for s in states] == [False, False, True]
        assert states[0].display == "0h 0m 2s"

    async def test_already_expired_yields_once(self):
        timer = ProjectTimer(T0, 1)

        states = [s async for s in timer.countdown(clock=lambda: T0 + timedelta(days=3), interval=0)]

        assert len(states) == 1
        assert states[0].display == EXPIRED_LABEL
