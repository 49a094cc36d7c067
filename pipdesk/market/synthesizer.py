"""Simulated market feed — owns the instrument set and moves prices over time.

A scheduling tick fires every ``tick_interval`` seconds; prices actually
move at most once per ``update_interval`` seconds and only while the
market is open (see ``pipdesk.market.hours``).
"""

import asyncio
import contextlib
import logging
import math
import random
from datetime import datetime
from typing import Callable, Iterable, Mapping, Optional

from pipdesk.market.hours import is_market_open, market_status, utc_now
from pipdesk.market.models import Instrument, MarketSnapshot
from pipdesk.market.seed import (
    DEFAULT_VOLATILITY,
    SEED_INSTRUMENTS,
    VOLATILITY_TABLE,
    InstrumentSeed,
    price_decimals,
    quote_increment,
)

logger = logging.getLogger("pipdesk.market")

TREND_BIAS_WIDTH = 0.3  # trend ∈ [-0.15, 0.15] × volatility
NOISE_WIDTH = 1.0  # noise ∈ [-0.5, 0.5] × volatility


class MarketDataSynthesizer:
    """Generates and advances instrument quotes without any network I/O.

    Args:
        seeds: Baseline instruments (default: the built-in catalogue).
        volatility_table: Per-symbol move magnitude in price units.
        update_interval: Minimum seconds between two price updates.
        tick_interval: Seconds between scheduling ticks in :meth:`run`.
        clock: Callable returning the current aware UTC datetime.
        rng: Random source; pass a seeded ``random.Random`` in tests.
    """

    def __init__(
        self,
        seeds: Iterable[InstrumentSeed] = SEED_INSTRUMENTS,
        volatility_table: Optional[Mapping[str, object]] = None,
        update_interval: float = 10.0,
        tick_interval: float = 1.0,
        clock: Callable[[], datetime] = utc_now,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._volatility = dict(
            VOLATILITY_TABLE if volatility_table is None else volatility_table
        )
        self._update_interval = update_interval
        self._tick_interval = tick_interval
        self._clock = clock
        self._rng = rng or random.Random()

        created_at = self._clock().isoformat()
        self._instruments: list[Instrument] = [
            self._from_seed(seed, created_at) for seed in seeds
        ]
        self._last_update: str = created_at
        self._last_tick_at: Optional[datetime] = None
        self._update_count: int = 0

        self._running: bool = False
        self._task: Optional[asyncio.Task] = None

    # ── Construction ─────────────────────────────────────────────────────

    def _jitter(self, base: float, width: float) -> float:
        return base + (self._rng.random() - 0.5) * width

    def _from_seed(self, seed: InstrumentSeed, timestamp: str) -> Instrument:
        decimals = price_decimals(seed.symbol)
        bid = round(self._jitter(seed.bid, seed.bid_jitter), decimals)
        ask = round(bid + seed.spread * quote_increment(seed.symbol), decimals)
        return Instrument(
            symbol=seed.symbol,
            name=seed.name,
            category=seed.category,
            bid=bid,
            ask=ask,
            spread=seed.spread,
            change=round(self._jitter(seed.change, seed.change_jitter), decimals),
            change_percent=round(
                self._jitter(seed.change_percent, seed.change_percent_jitter), 2
            ),
            daily_high=seed.daily_high,
            daily_low=seed.daily_low,
            volume=int(self._rng.random() * seed.volume_range) + seed.volume_min,
            last_update=timestamp,
        )

    # ── Queries ──────────────────────────────────────────────────────────

    @property
    def instruments(self) -> tuple[Instrument, ...]:
        """Current quotes, in catalogue order."""
        return tuple(self._instruments)

    @property
    def last_update(self) -> str:
        """ISO timestamp of the most recent price update (or construction)."""
        return self._last_update

    @property
    def update_count(self) -> int:
        """Number of price updates applied since construction."""
        return self._update_count

    @property
    def running(self) -> bool:
        return self._running

    def is_open(self) -> bool:
        """Whether the simulated market is open right now."""
        return is_market_open(self._clock())

    def snapshot(self) -> MarketSnapshot:
        """Immutable view of the current quotes tagged with market status."""
        now = self._clock()
        return MarketSnapshot(
            pairs=tuple(self._instruments),
            last_update=self._last_update,
            market_status=market_status(now),
            server_time=now.isoformat(),
        )

    def volatility_for(self, symbol: str) -> float:
        """Move magnitude for *symbol*; malformed entries use the default."""
        raw = self._volatility.get(symbol, DEFAULT_VOLATILITY)
        try:
            value = float(raw)
        except (TypeError, ValueError):
            logger.warning(
                "Volatility for %s is not numeric (%r) — using default %.4f",
                symbol, raw, DEFAULT_VOLATILITY,
            )
            return DEFAULT_VOLATILITY
        if not math.isfinite(value) or value <= 0:
            logger.warning(
                "Volatility for %s out of range (%r) — using default %.4f",
                symbol, raw, DEFAULT_VOLATILITY,
            )
            return DEFAULT_VOLATILITY
        return value

    # ── Mutation ─────────────────────────────────────────────────────────

    def tick(self) -> bool:
        """Run one scheduling tick.

        Skips when less than ``update_interval`` seconds have passed since
        the previous gated tick; otherwise resets the interval and moves
        prices if the market is open.

        Returns:
            ``True`` if prices were updated.
        """
        now = self._clock()
        if (
            self._last_tick_at is not None
            and (now - self._last_tick_at).total_seconds() < self._update_interval
        ):
            return False

        self._last_tick_at = now
        if not is_market_open(now):
            logger.debug("Market closed at %s — quotes frozen.", now.isoformat())
            return False

        self.advance(now)
        return True

    def advance(self, now: Optional[datetime] = None) -> None:
        """Move every instrument one step, regardless of market hours."""
        timestamp = (now or self._clock()).isoformat()
        # Built fully before assignment so readers never see a partial tick
        updated = [self._move(pair, timestamp) for pair in self._instruments]
        self._instruments = updated
        self._last_update = timestamp
        self._update_count += 1
        logger.debug("Applied price update #%d at %s", self._update_count, timestamp)

    def _move(self, pair: Instrument, timestamp: str) -> Instrument:
        volatility = self.volatility_for(pair.symbol)
        trend = (self._rng.random() - 0.5) * TREND_BIAS_WIDTH * volatility
        noise = (self._rng.random() - 0.5) * NOISE_WIDTH * volatility

        new_bid = pair.bid + trend + noise
        new_ask = new_bid + pair.spread * quote_increment(pair.symbol)
        change = new_bid - pair.bid
        change_percent = (change / pair.bid) * 100

        decimals = price_decimals(pair.symbol)
        return Instrument(
            symbol=pair.symbol,
            name=pair.name,
            category=pair.category,
            bid=round(new_bid, decimals),
            ask=round(new_ask, decimals),
            spread=pair.spread,
            change=round(change, decimals),
            change_percent=round(change_percent, 2),
            daily_high=pair.daily_high,
            daily_low=pair.daily_low,
            volume=pair.volume,
            last_update=timestamp,
        )

    # ── Timer loop ───────────────────────────────────────────────────────

    async def run(self) -> None:
        """Tick every ``tick_interval`` seconds until :meth:`stop` is called."""
        self._running = True
        await self._loop()

    async def _loop(self) -> None:
        logger.info(
            "Market feed started (%d instruments, update every %.0fs).",
            len(self._instruments), self._update_interval,
        )
        while self._running:
            self.tick()
            await asyncio.sleep(self._tick_interval)
        logger.info("Market feed stopped after %d update(s).", self._update_count)

    def start(self) -> asyncio.Task:
        """Schedule the tick loop on the running event loop (idempotent)."""
        if self._task is not None and not self._task.done():
            return self._task
        self._running = True
        self._task = asyncio.create_task(self._loop(), name="pipdesk-market-feed")
        return self._task

    def stop(self) -> None:
        """Ask the loop to exit after the current tick."""
        self._running = False

    async def shutdown(self) -> None:
        """Stop the loop and wait for its task to finish."""
        self.stop()
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
