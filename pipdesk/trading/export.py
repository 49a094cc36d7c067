"""CSV export of saved trade setups."""

import csv
import io
from datetime import datetime
from typing import Iterable

from pipdesk.trading.models import TradeSetup

EXPORT_COLUMNS = [
    "Date",
    "Pair",
    "Direction",
    "Lot Size",
    "Risk %",
    "Stop Loss",
    "Take Profit",
    "Potential Profit",
    "Potential Loss",
]


def export_filename(today: datetime) -> str:
    """``forex-trades-YYYY-MM-DD.csv`` for *today*."""
    return f"forex-trades-{today:%Y-%m-%d}.csv"


def setups_to_csv(setups: Iterable[TradeSetup]) -> str:
    """Render *setups* as CSV text, one row per setup, header first."""
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(EXPORT_COLUMNS)
    for setup in setups:
        params = setup.parameters
        calc = setup.calculation
        writer.writerow([
            datetime.fromisoformat(setup.created_at).strftime("%Y-%m-%d"),
            params.symbol,
            params.direction.upper(),
            calc.lot_size,
            params.risk_percentage,
            params.stop_loss_pips,
            params.take_profit_pips,
            round(calc.potential_profit, 2),
            round(calc.potential_loss, 2),
        ])
    return buf.getvalue()
