"""Market-hours gate — pure function of the UTC wall clock.

The simulated forex week closes at Friday 22:00 UTC and reopens at
Sunday 22:00 UTC.
"""

from datetime import datetime, timezone

from pipdesk.market.models import MARKET_CLOSED, MARKET_OPEN

WEEKLY_CLOSE_HOUR_UTC = 22  # Friday close and Sunday reopen

_FRIDAY = 4
_SATURDAY = 5
_SUNDAY = 6


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def is_market_open(now: datetime) -> bool:
    """Return ``True`` unless *now* falls in [Fri 22:00, Sun 22:00) UTC.

    Naive datetimes are taken to be UTC.
    """
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    day = now.weekday()
    if day == _SATURDAY:
        return False
    if day == _SUNDAY and now.hour < WEEKLY_CLOSE_HOUR_UTC:
        return False
    if day == _FRIDAY and now.hour >= WEEKLY_CLOSE_HOUR_UTC:
        return False
    return True


def market_status(now: datetime) -> str:
    """``"open"`` or ``"closed"`` for *now*."""
    return MARKET_OPEN if is_market_open(now) else MARKET_CLOSED
