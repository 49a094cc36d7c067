"""Tests for display formatting, CSV export, and the CLI report."""

import argparse
import random
from datetime import datetime, timezone

import pytest

from pipdesk.cli.report import print_calculation, print_snapshot
from pipdesk.config import Config
from pipdesk.errors import UnknownSymbolError
from pipdesk.formatting import format_currency, format_number, format_percent
from pipdesk.main import _run_calc
from pipdesk.market.models import Instrument, MarketSnapshot
from pipdesk.market.service import MarketDataService
from pipdesk.market.synthesizer import MarketDataSynthesizer
from pipdesk.trading.export import EXPORT_COLUMNS, export_filename, setups_to_csv
from pipdesk.trading.models import TradeCalculation, TradeParameters, TradeSetup


def _setup(symbol="EURUSD", direction="buy", created_at="2026-10-19T08:30:00+00:00") -> TradeSetup:
    return TradeSetup(
        id="s1",
        user_id="u1",
        parameters=TradeParameters(
            symbol=symbol,
            account_balance=10_000.0,
            account_currency="USD",
            risk_percentage=2.0,
            stop_loss_pips=20.0,
            take_profit_pips=40.0,
            leverage=100.0,
            direction=direction,
        ),
        calculation=TradeCalculation(
            lot_size=1.5,
            position_size=150_000.0,
            margin_required=1545.3,
            pip_value=15.0,
            risk_amount=150.0,
            potential_profit=300.004,
            potential_loss=149.996,
            risk_reward_ratio=2.0,
        ),
        created_at=created_at,
    )


# ── Formatting ───────────────────────────────────────────────────────────


class TestFormatting:
    def test_number(self):
        assert format_number(1234567.891) == "1,234,567.89"
        assert format_number(1.08456, 5) == "1.08456"
        assert format_number(150000, 0) == "150,000"

    def test_number_rejects_negative_decimals(self):
        with pytest.raises(ValueError):
            format_number(1.0, -1)

    @pytest.mark.parametrize(
        "amount, currency, expected",
        [
            (1234.5, "USD", "$1,234.50"),
            (99.999, "eur", "€100.00"),
            (-12, "USD", "-$12.00"),
            (500, "CHF", "CHF 500.00"),
            (7.1, "SEK", "SEK 7.10"),
        ],
    )
    def test_currency(self, amount, currency, expected):
        assert format_currency(amount, currency) == expected

    def test_percent(self):
        assert format_percent(0.5) == "+0.50%"
        assert format_percent(-1.234) == "-1.23%"
        assert format_percent(3, signed=False) == "3.00%"


# ── CSV export ───────────────────────────────────────────────────────────


class TestExport:
    def test_filename(self):
        assert export_filename(datetime(2026, 10, 19, tzinfo=timezone.utc)) == "forex-trades-2026-10-19.csv"

    def test_rows(self):
        text = setups_to_csv([_setup(), _setup("GBPJPY", "sell", "2026-10-18T23:59:00+00:00")])
        lines = text.split("\n")
        assert lines[0] == ",".join(EXPORT_COLUMNS)
        assert lines[1] == "2026-10-19,EURUSD,BUY,1.5,2.0,20.0,40.0,300.0,150.0"
        assert lines[2].startswith("2026-10-18,GBPJPY,SELL,")
        assert text.endswith("\n")

    def test_empty_export_has_header_only(self):
        assert setups_to_csv([]) == ",".join(EXPORT_COLUMNS) + "\n"


# ── CLI report ───────────────────────────────────────────────────────────


class TestReport:
    def test_print_calculation(self, capsys):
        setup = _setup()
        output = print_calculation(setup.parameters, setup.calculation)
        assert "EURUSD (BUY)" in output
        assert "Lot Size:        1.50" in output
        assert "Margin Required: $1,545.30" in output
        assert "Risk:Reward:     1:2.00" in output
        assert capsys.readouterr().out.strip() == output.strip()

    def test_print_snapshot(self, capsys):
        pair = Instrument(
            symbol="USDJPY",
            name="US Dollar / Japanese Yen",
            category="major",
            bid=155.123,
            ask=155.143,
            spread=2,
            change=0.12,
            change_percent=0.08,
            daily_high=155.5,
            daily_low=154.6,
            volume=120_000,
            last_update="2026-10-14T12:00:00+00:00",
        )
        snapshot = MarketSnapshot(
            pairs=(pair,),
            last_update="2026-10-14T12:00:00+00:00",
            market_status="open",
            server_time="2026-10-14T12:00:05+00:00",
        )
        output = print_snapshot(snapshot)
        assert "Market (OPEN)" in output
        assert "155.123" in output
        assert "+0.08%" in output
        assert "USDJPY" in capsys.readouterr().out

    def test_calc_mode_prices_from_snapshot(self, open_clock, capsys):
        synth = MarketDataSynthesizer(clock=open_clock, rng=random.Random(5))
        market = MarketDataService(synth, latency=0)
        config = Config(
            db_path=":memory:",
            log_level="INFO",
            api_port=8080,
            feed_tick_seconds=1.0,
            feed_update_interval_seconds=10.0,
            feed_latency_seconds=0.0,
            default_account_currency="USD",
            default_leverage=100.0,
            storage_backend="memory",
        )
        args = argparse.Namespace(
            symbol="gbpusd", balance=10_000.0, currency=None, risk=1.0,
            sl=20.0, tp=40.0, leverage=None, direction="sell",
        )
        _run_calc(market, config, args)
        out = capsys.readouterr().out
        assert "GBPUSD (SELL)" in out
        assert "Risk Amount:     $100.00" in out

    def test_calc_mode_unknown_symbol(self, open_clock):
        market = MarketDataService(MarketDataSynthesizer(clock=open_clock), latency=0)
        args = argparse.Namespace(
            symbol="ABCDEF", balance=10_000.0, currency="USD", risk=1.0,
            sl=20.0, tp=40.0, leverage=100.0, direction="buy",
        )
        with pytest.raises(UnknownSymbolError):
            _run_calc(market, None, args)
