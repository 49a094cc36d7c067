"""Tests for the simulated market feed.

Verifies seeding, the quote invariants after price moves, the 10-second
update gate, the weekend freeze, volatility fallbacks, and the async loop.
"""

import asyncio
import logging
import random
from datetime import datetime, timezone

import pytest

from pipdesk.market.models import CATEGORIES
from pipdesk.market.seed import (
    DEFAULT_VOLATILITY,
    SEED_INSTRUMENTS,
    VOLATILITY_TABLE,
    price_decimals,
    quote_increment,
)
from pipdesk.market.synthesizer import MarketDataSynthesizer


def _synth(clock, seed: int = 7, **kwargs) -> MarketDataSynthesizer:
    return MarketDataSynthesizer(clock=clock, rng=random.Random(seed), **kwargs)


def _assert_quote_invariants(instruments):
    for pair in instruments:
        tolerance = 1.5 * 10 ** -price_decimals(pair.symbol)
        nominal = pair.spread * quote_increment(pair.symbol)
        assert pair.ask >= pair.bid, pair.symbol
        assert pair.ask - pair.bid == pytest.approx(nominal, abs=tolerance), pair.symbol


# ── Seeding ──────────────────────────────────────────────────────────────


class TestSeeding:
    def test_seventeen_instruments_across_all_categories(self, open_clock):
        synth = _synth(open_clock)
        instruments = synth.instruments
        assert len(instruments) == 17
        assert {p.category for p in instruments} == set(CATEGORIES)
        assert len({p.symbol for p in instruments}) == 17

    def test_initial_quotes_respect_spread(self, open_clock):
        _assert_quote_invariants(_synth(open_clock).instruments)

    def test_jitter_stays_near_baseline(self, open_clock):
        synth = _synth(open_clock)
        for seed, pair in zip(SEED_INSTRUMENTS, synth.instruments):
            assert abs(pair.bid - seed.bid) <= seed.bid_jitter / 2 + 1e-3
            assert seed.volume_min <= pair.volume < seed.volume_min + seed.volume_range

    def test_same_rng_seed_is_reproducible(self, open_clock):
        a = _synth(open_clock, seed=42)
        b = _synth(open_clock, seed=42)
        a.advance()
        b.advance()
        assert a.instruments == b.instruments


# ── Price moves ──────────────────────────────────────────────────────────


class TestAdvance:
    def test_invariants_hold_over_many_updates(self, open_clock):
        synth = _synth(open_clock)
        for _ in range(200):
            synth.advance()
            _assert_quote_invariants(synth.instruments)

    def test_change_matches_bid_delta(self, open_clock):
        synth = _synth(open_clock)
        before = {p.symbol: p for p in synth.instruments}
        synth.advance()
        for pair in synth.instruments:
            old = before[pair.symbol]
            tolerance = 2 * 10 ** -price_decimals(pair.symbol)
            assert pair.change == pytest.approx(pair.bid - old.bid, abs=tolerance)
            expected_pct = round(pair.change / old.bid * 100, 2)
            assert pair.change_percent == pytest.approx(expected_pct, abs=0.011)

    def test_move_bounded_by_volatility(self, open_clock):
        synth = _synth(open_clock)
        before = {p.symbol: p.bid for p in synth.instruments}
        synth.advance()
        for pair in synth.instruments:
            vol = VOLATILITY_TABLE.get(pair.symbol, DEFAULT_VOLATILITY)
            # |trend| ≤ 0.15 vol, |noise| ≤ 0.5 vol
            limit = 0.65 * vol + 10 ** -price_decimals(pair.symbol)
            assert abs(pair.bid - before[pair.symbol]) <= limit

    def test_rounding_per_quote_currency(self, open_clock):
        synth = _synth(open_clock)
        synth.advance()
        by_symbol = {p.symbol: p for p in synth.instruments}
        assert round(by_symbol["USDJPY"].bid, 3) == by_symbol["USDJPY"].bid
        assert round(by_symbol["EURUSD"].bid, 5) == by_symbol["EURUSD"].bid
        assert round(by_symbol["EURUSD"].change_percent, 2) == by_symbol["EURUSD"].change_percent

    def test_daily_range_is_not_clamped(self, open_clock):
        synth = _synth(open_clock)
        pair = synth.instruments[0]
        synth.advance()
        assert synth.instruments[0].daily_high == pair.daily_high
        assert synth.instruments[0].daily_low == pair.daily_low

    def test_updates_timestamps(self, open_clock):
        synth = _synth(open_clock)
        open_clock.advance(30)
        synth.advance()
        assert synth.last_update == open_clock.now.isoformat()
        assert all(p.last_update == open_clock.now.isoformat() for p in synth.instruments)
        assert synth.update_count == 1


# ── Tick gate ────────────────────────────────────────────────────────────


class TestTick:
    def test_first_tick_updates(self, open_clock):
        synth = _synth(open_clock)
        assert synth.tick() is True
        assert synth.update_count == 1

    def test_update_interval_gate(self, open_clock):
        synth = _synth(open_clock)
        synth.tick()
        frozen = synth.instruments

        open_clock.advance(9.9)
        assert synth.tick() is False
        assert synth.instruments == frozen

        open_clock.advance(0.1)
        assert synth.tick() is True
        assert synth.instruments != frozen

    def test_snapshots_within_window_are_identical(self, open_clock):
        synth = _synth(open_clock)
        synth.tick()
        first = synth.snapshot()
        open_clock.advance(5)
        synth.tick()
        second = synth.snapshot()
        assert first.pairs == second.pairs
        assert first.last_update == second.last_update
        assert first.server_time != second.server_time

    def test_weekend_freezes_quotes(self, closed_clock):
        synth = _synth(closed_clock)
        frozen = synth.instruments
        for _ in range(5):
            assert synth.tick() is False
            closed_clock.advance(60)
        assert synth.instruments == frozen
        assert synth.snapshot().market_status == "closed"
        assert synth.is_open() is False

    def test_resumes_when_market_reopens(self, closed_clock):
        closed_clock.now = datetime(2026, 10, 18, 21, 59, 50, tzinfo=timezone.utc)
        synth = _synth(closed_clock)
        assert synth.tick() is False
        closed_clock.advance(10)  # Sunday 22:00:00
        assert synth.tick() is True
        assert synth.snapshot().market_status == "open"

    def test_closed_tick_still_resets_interval(self, closed_clock):
        closed_clock.now = datetime(2026, 10, 18, 21, 59, 55, tzinfo=timezone.utc)
        synth = _synth(closed_clock)
        assert synth.tick() is False  # closed, but the interval restarts here
        closed_clock.advance(6)  # Sunday 22:00:01, open
        assert synth.tick() is False
        closed_clock.advance(4)
        assert synth.tick() is True


# ── Volatility table ─────────────────────────────────────────────────────


class TestVolatility:
    def test_listed_and_default(self, open_clock):
        synth = _synth(open_clock)
        assert synth.volatility_for("EURUSD") == 0.0008
        assert synth.volatility_for("USDCHF") == DEFAULT_VOLATILITY

    def test_malformed_entries_fall_back(self, open_clock, caplog):
        table = {"EURUSD": "wide", "GBPUSD": -1.0, "USDJPY": float("nan"), "AUDUSD": None}
        synth = _synth(open_clock, volatility_table=table)
        with caplog.at_level(logging.WARNING, logger="pipdesk.market"):
            for symbol in table:
                assert synth.volatility_for(symbol) == DEFAULT_VOLATILITY
            assert synth.tick() is True
        assert "EURUSD" in caplog.text
        _assert_quote_invariants(synth.instruments)


# ── Async loop ───────────────────────────────────────────────────────────


class TestLoop:
    @pytest.mark.asyncio
    async def test_start_and_shutdown(self, open_clock):
        synth = _synth(open_clock, update_interval=0, tick_interval=0.01)
        task = synth.start()
        assert synth.start() is task
        await asyncio.sleep(0.05)
        assert synth.running is True
        await synth.shutdown()
        assert synth.running is False
        assert task.done()
        assert synth.update_count >= 1

    @pytest.mark.asyncio
    async def test_stop_ends_run(self, open_clock):
        synth = _synth(open_clock, update_interval=0, tick_interval=0.01)
        task = asyncio.create_task(synth.run())
        await asyncio.sleep(0.03)
        synth.stop()
        await asyncio.wait_for(task, timeout=1.0)
        assert task.done()

    @pytest.mark.asyncio
    async def test_shutdown_without_start(self, open_clock):
        synth = _synth(open_clock)
        await synth.shutdown()
        assert synth.running is False

    @pytest.mark.asyncio
    async def test_stop_before_first_step(self, open_clock):
        synth = _synth(open_clock, update_interval=0, tick_interval=0.01)
        task = synth.start()
        synth.stop()
        await asyncio.sleep(0.05)
        assert synth.running is False
        assert task.done()
        assert synth.update_count == 0
