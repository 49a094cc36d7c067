"""MarketDataService — the single read path to the simulated feed.

Callers poll :meth:`get_snapshot`; all mutation stays inside the
synthesizer's tick.  The composition root creates exactly one service per
process and hands it to consumers.
"""

import asyncio
import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from pipdesk.errors import InvalidInputError
from pipdesk.market.models import CATEGORIES, Instrument, MarketSnapshot, Sentiment
from pipdesk.market.synthesizer import MarketDataSynthesizer

logger = logging.getLogger("pipdesk.market")


def _percent(count: int, total: int) -> int:
    """``count / total`` as a whole percentage, ties rounded up."""
    if total == 0:
        return 0
    ratio = Decimal(count * 100) / Decimal(total)
    return int(ratio.quantize(Decimal(1), rounding=ROUND_HALF_UP))


class MarketDataService:
    """Snapshot facade over a :class:`MarketDataSynthesizer`.

    Args:
        synthesizer: The feed owning the instrument set.
        latency: Simulated round-trip delay of :meth:`get_snapshot`, seconds.
    """

    def __init__(
        self,
        synthesizer: Optional[MarketDataSynthesizer] = None,
        latency: float = 0.2,
    ) -> None:
        self._synth = synthesizer or MarketDataSynthesizer()
        self._latency = latency

    @property
    def synthesizer(self) -> MarketDataSynthesizer:
        return self._synth

    # ── Lifecycle ────────────────────────────────────────────────────────

    def start(self) -> None:
        """Start the feed's recurring tick on the running loop."""
        self._synth.start()

    async def shutdown(self) -> None:
        """Stop the feed's recurring tick."""
        await self._synth.shutdown()

    # ── Snapshot access ──────────────────────────────────────────────────

    async def get_snapshot(self) -> MarketSnapshot:
        """Return the current quotes, market status and server time."""
        if self._latency > 0:
            await asyncio.sleep(self._latency)
        return self._synth.snapshot()

    def get_instrument(self, symbol: str) -> Optional[Instrument]:
        """Return the instrument quoted as *symbol*, or ``None``."""
        code = symbol.upper()
        for pair in self._synth.instruments:
            if pair.symbol == code:
                return pair
        return None

    def list_symbols(self) -> list[str]:
        """All symbols in catalogue order."""
        return [pair.symbol for pair in self._synth.instruments]

    def filter_by_category(self, category: Optional[str] = None) -> list[Instrument]:
        """Instruments in *category*; every instrument when ``None``."""
        pairs = list(self._synth.instruments)
        if category is None:
            return pairs
        if category not in CATEGORIES:
            raise InvalidInputError(
                "category", category, f"must be one of {', '.join(CATEGORIES)}"
            )
        return [p for p in pairs if p.category == category]

    # ── Aggregates ───────────────────────────────────────────────────────

    def trending(self, limit: int = 5) -> list[Instrument]:
        """Largest absolute percentage movers first, at most *limit* items."""
        if limit < 0:
            raise InvalidInputError("limit", limit, "must be non-negative")
        ranked = sorted(
            self._synth.instruments,
            key=lambda p: abs(p.change_percent),
            reverse=True,
        )
        return ranked[:limit]

    def sentiment(self) -> Sentiment:
        """Share of gainers, losers and unchanged instruments right now."""
        pairs = self._synth.instruments
        total = len(pairs)
        gainers = sum(1 for p in pairs if p.change > 0)
        losers = sum(1 for p in pairs if p.change < 0)
        unchanged = total - gainers - losers

        if gainers > losers:
            label = "bullish"
        elif losers > gainers:
            label = "bearish"
        else:
            label = "neutral"

        return Sentiment(
            bullish_pct=_percent(gainers, total),
            bearish_pct=_percent(losers, total),
            neutral_pct=_percent(unchanged, total),
            label=label,
            counts={"gainers": gainers, "losers": losers, "unchanged": unchanged},
        )
