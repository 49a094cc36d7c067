"""Static instrument catalogue for the simulated feed.

Baseline quotes, daily ranges, per-symbol volatility, and the quote
increment each spread is measured in.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class InstrumentSeed:
    """Baseline values an ``Instrument`` is built from at feed startup.

    ``*_jitter`` values are full-width ranges: the initial value is drawn
    uniformly from ``baseline ± jitter / 2``.
    """

    symbol: str
    name: str
    category: str
    bid: float
    spread: float  # pips
    change: float
    change_percent: float
    daily_high: float
    daily_low: float
    volume_min: int
    volume_range: int
    bid_jitter: float
    change_jitter: float
    change_percent_jitter: float


SEED_INSTRUMENTS: tuple[InstrumentSeed, ...] = (
    # ── Majors ──
    InstrumentSeed("EURUSD", "Euro vs US Dollar", "major",
                   1.0300, 2, 0.0015, 0.15, 1.0350, 1.0285, 500_000, 1_000_000, 0.0050, 0.005, 0.5),
    InstrumentSeed("GBPUSD", "British Pound vs US Dollar", "major",
                   1.2480, 2, -0.0032, -0.26, 1.2520, 1.2445, 400_000, 800_000, 0.0080, 0.008, 0.6),
    InstrumentSeed("USDJPY", "US Dollar vs Japanese Yen", "major",
                   155.20, 3, 0.85, 0.55, 156.80, 154.20, 350_000, 750_000, 1.50, 2.0, 1.2),
    InstrumentSeed("USDCHF", "US Dollar vs Swiss Franc", "major",
                   0.8890, 2, -0.0025, -0.28, 0.8920, 0.8865, 200_000, 400_000, 0.0040, 0.004, 0.4),
    InstrumentSeed("AUDUSD", "Australian Dollar vs US Dollar", "major",
                   0.6245, 2, 0.0042, 0.68, 0.6280, 0.6220, 250_000, 450_000, 0.0060, 0.006, 0.9),
    InstrumentSeed("USDCAD", "US Dollar vs Canadian Dollar", "major",
                   1.4420, 2, -0.0035, -0.24, 1.4465, 1.4385, 180_000, 380_000, 0.0070, 0.007, 0.5),
    InstrumentSeed("NZDUSD", "New Zealand Dollar vs US Dollar", "major",
                   0.5665, 2, 0.0028, 0.50, 0.5695, 0.5640, 150_000, 320_000, 0.0055, 0.005, 0.8),
    # ── Minors ──
    InstrumentSeed("EURGBP", "Euro vs British Pound", "minor",
                   0.8256, 3, 0.0018, 0.22, 0.8285, 0.8230, 120_000, 280_000, 0.0040, 0.004, 0.5),
    InstrumentSeed("EURJPY", "Euro vs Japanese Yen", "minor",
                   159.85, 3, 0.42, 0.26, 161.20, 158.60, 100_000, 250_000, 1.20, 1.5, 0.9),
    InstrumentSeed("GBPJPY", "British Pound vs Japanese Yen", "minor",
                   193.75, 4, -0.65, -0.33, 195.40, 192.80, 90_000, 220_000, 1.80, 2.0, 1.0),
    InstrumentSeed("EURCHF", "Euro vs Swiss Franc", "minor",
                   0.9158, 3, -0.0022, -0.24, 0.9185, 0.9140, 80_000, 180_000, 0.0045, 0.004, 0.4),
    # ── Exotics ──
    InstrumentSeed("USDSGD", "US Dollar vs Singapore Dollar", "exotic",
                   1.3685, 3, 0.0025, 0.18, 1.3720, 1.3665, 60_000, 140_000, 0.0050, 0.005, 0.4),
    InstrumentSeed("USDZAR", "US Dollar vs South African Rand", "exotic",
                   18.845, 70, 0.125, 0.66, 19.050, 18.720, 50_000, 120_000, 0.200, 0.3, 1.5),
    # ── Metals ──
    InstrumentSeed("XAUUSD", "Gold vs US Dollar", "commodity",
                   2630.50, 50, -12.50, -0.47, 2658.20, 2615.80, 300_000, 500_000, 25.0, 30.0, 1.1),
    InstrumentSeed("XAGUSD", "Silver vs US Dollar", "commodity",
                   29.85, 50, -0.65, -2.13, 30.85, 29.20, 100_000, 200_000, 1.50, 2.0, 6.0),
    # ── Crypto ──
    InstrumentSeed("BTCUSD", "Bitcoin vs US Dollar", "crypto",
                   98_500.00, 20, -1850.0, -1.84, 102_500.00, 96_200.00, 500_000, 1_000_000, 2500.0, 4000.0, 4.0),
    InstrumentSeed("ETHUSD", "Ethereum vs US Dollar", "crypto",
                   3285.50, 1.5, -125.0, -3.67, 3450.00, 3180.00, 400_000, 800_000, 150.0, 200.0, 6.0),
)


# ── Volatility ───────────────────────────────────────────────────────────

DEFAULT_VOLATILITY = 0.0005

VOLATILITY_TABLE: dict[str, float] = {
    "EURUSD": 0.0008,
    "GBPUSD": 0.0012,
    "USDJPY": 0.3,
    "EURJPY": 0.3,
    "GBPJPY": 0.4,
    "USDZAR": 0.02,
    "XAUUSD": 5.0,
    "XAGUSD": 0.15,
    "BTCUSD": 500.0,
    "ETHUSD": 50.0,
}


# ── Quote increments ─────────────────────────────────────────────────────

# Price value of one spread pip for non-currency instruments.
QUOTE_INCREMENTS: dict[str, float] = {
    "XAUUSD": 0.01,
    "XAGUSD": 0.001,
    "BTCUSD": 1.0,
    "ETHUSD": 1.0,
}


def quote_increment(symbol: str) -> float:
    """Price value of one spread pip for *symbol*."""
    code = symbol.upper()
    if code in QUOTE_INCREMENTS:
        return QUOTE_INCREMENTS[code]
    return 0.01 if code[3:6] == "JPY" else 0.0001


def price_decimals(symbol: str) -> int:
    """3 decimals for JPY-quoted pairs, 5 for everything else."""
    return 3 if symbol.upper()[3:6] == "JPY" else 5
