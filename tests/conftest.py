"""Shared fixtures: controllable clocks for the market feed."""

from datetime import datetime, timedelta, timezone

import pytest

# Wednesday mid-session and Saturday midday, UTC.
OPEN_TIME = datetime(2026, 10, 14, 12, 0, tzinfo=timezone.utc)
CLOSED_TIME = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


@pytest.fixture
def open_clock() -> FakeClock:
    return FakeClock(OPEN_TIME)


@pytest.fixture
def closed_clock() -> FakeClock:
    return FakeClock(CLOSED_TIME)
