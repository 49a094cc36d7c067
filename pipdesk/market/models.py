"""Market data models — instrument quotes and feed snapshots."""

from dataclasses import dataclass, field

CATEGORIES = ("major", "minor", "exotic", "commodity", "crypto")

MARKET_OPEN = "open"
MARKET_CLOSED = "closed"


@dataclass(frozen=True)
class Instrument:
    """A quoted instrument (currency pair, metal, or crypto asset).

    ``spread`` is expressed in pips of the instrument's quote increment;
    ``ask`` always equals ``bid`` plus the spread in price units.
    """

    symbol: str
    name: str
    category: str  # one of CATEGORIES
    bid: float
    ask: float
    spread: float  # pips
    change: float
    change_percent: float
    daily_high: float
    daily_low: float
    volume: int
    last_update: str  # ISO-8601 UTC

    def to_dict(self) -> dict:
        """Serialise with the camelCase keys the dashboard expects."""
        return {
            "symbol": self.symbol,
            "name": self.name,
            "category": self.category,
            "bid": self.bid,
            "ask": self.ask,
            "spread": self.spread,
            "change": self.change,
            "changePercent": self.change_percent,
            "dailyHigh": self.daily_high,
            "dailyLow": self.daily_low,
            "volume": self.volume,
            "lastUpdate": self.last_update,
        }


@dataclass(frozen=True)
class MarketSnapshot:
    """All instrument quotes as of one instant."""

    pairs: tuple[Instrument, ...]
    last_update: str
    market_status: str  # "open" or "closed"
    server_time: str

    @property
    def is_open(self) -> bool:
        return self.market_status == MARKET_OPEN

    def get(self, symbol: str) -> Instrument | None:
        code = symbol.upper()
        for pair in self.pairs:
            if pair.symbol == code:
                return pair
        return None

    def to_dict(self) -> dict:
        return {
            "pairs": [p.to_dict() for p in self.pairs],
            "lastUpdate": self.last_update,
            "marketStatus": self.market_status,
            "serverTime": self.server_time,
        }


@dataclass(frozen=True)
class Sentiment:
    """Share of gaining, losing and unchanged instruments."""

    bullish_pct: int
    bearish_pct: int
    neutral_pct: int
    label: str  # "bullish", "bearish" or "neutral"
    counts: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "bullish": self.bullish_pct,
            "bearish": self.bearish_pct,
            "neutral": self.neutral_pct,
            "sentiment": self.label,
            "counts": dict(self.counts),
        }
