"""Trade economics — pure math, no I/O.

Pip value, lot sizing, margin, and the full trade breakdown used by the
calculator.  Every function is deterministic given its inputs.

Inputs the formulas cannot handle (zero or negative distances, balances,
leverage) raise ``InvalidInputError`` instead of producing NaN/Infinity.
"""

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from pipdesk.errors import InvalidInputError, UnknownSymbolError
from pipdesk.market.models import Instrument
from pipdesk.trading.models import DIRECTIONS, TradeCalculation, TradeParameters

CONTRACT_SIZE = 100_000  # base-currency units per standard lot
PIP_SIZE = 0.0001
JPY_PIP_SIZE = 0.01


def _require_positive(field: str, value: float) -> None:
    if value is None or not math.isfinite(value) or value <= 0:
        raise InvalidInputError(field, value)


def round_half_up(value: float, decimals: int = 2) -> float:
    """Round *value* to *decimals* places, ties away from zero."""
    quantum = Decimal(1).scaleb(-decimals)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def split_symbol(symbol: str) -> tuple[str, str]:
    """Return ``(base, quote)`` currency codes of a six-letter symbol."""
    if not symbol or len(symbol) < 6:
        raise InvalidInputError("symbol", symbol, "must have at least six characters")
    code = symbol.upper()
    return code[0:3], code[3:6]


def pip_size(symbol: str) -> float:
    """0.01 for JPY-quoted pairs, 0.0001 for everything else."""
    _, quote = split_symbol(symbol)
    return JPY_PIP_SIZE if quote == "JPY" else PIP_SIZE


def pip_value(
    symbol: str,
    lot_size: float,
    account_currency: str,
    reference_price: float,
) -> float:
    """Value of one pip for *lot_size* lots, in the account currency.

    Three regimes:

    * quote currency == account currency → ``pip_size × units / contract``
    * base currency == account currency → the same, divided by the price
    * cross pair → same as the first regime.  This ignores the real
      cross-rate conversion; it is an accepted approximation.
    """
    _require_positive("lot_size", lot_size)
    _require_positive("reference_price", reference_price)

    base, quote = split_symbol(symbol)
    account = account_currency.upper()
    units = lot_size * CONTRACT_SIZE
    size = pip_size(symbol)

    if quote == account:
        return (size * units) / CONTRACT_SIZE
    if base == account:
        return (size * units) / (reference_price * CONTRACT_SIZE)
    return (size * units) / CONTRACT_SIZE


def lot_size(
    account_balance: float,
    risk_percentage: float,
    stop_loss_pips: float,
    per_lot_pip_value: float,
) -> float:
    """Number of lots that risks *risk_percentage* of the balance.

    Formula::

        risk_amount = account_balance × risk_percentage / 100
        lots        = risk_amount / (stop_loss_pips × per_lot_pip_value)

    Rounded half-up to 2 decimals.
    """
    _require_positive("account_balance", account_balance)
    _require_positive("risk_percentage", risk_percentage)
    _require_positive("stop_loss_pips", stop_loss_pips)
    _require_positive("per_lot_pip_value", per_lot_pip_value)

    risk_amount = account_balance * (risk_percentage / 100.0)
    return round_half_up(risk_amount / (stop_loss_pips * per_lot_pip_value), 2)


def margin_required(
    lot_size: float,
    reference_price: float,
    leverage: float,
    symbol: str,
) -> float:
    """Margin needed to open *lot_size* lots at *reference_price*.

    JPY-quoted pairs divide by an extra factor of 100.  Rounded half-up
    to 2 decimals.
    """
    if lot_size is None or not math.isfinite(lot_size) or lot_size < 0:
        raise InvalidInputError("lot_size", lot_size, "must be non-negative")
    _require_positive("reference_price", reference_price)
    _require_positive("leverage", leverage)

    _, quote = split_symbol(symbol)
    position_size = lot_size * CONTRACT_SIZE
    if quote == "JPY":
        margin = (position_size * reference_price) / (leverage * 100)
    else:
        margin = (position_size * reference_price) / leverage
    return round_half_up(margin, 2)


def trade_details(
    symbol: str,
    instrument: Optional[Instrument],
    account_balance: float,
    account_currency: str,
    risk_percentage: float,
    stop_loss_pips: float,
    take_profit_pips: float,
    leverage: float,
    direction: str,
) -> TradeCalculation:
    """Full trade breakdown for one quoted instrument.

    Entry is priced at the ask for buys and the bid for sells, so the
    spread is paid on entry.
    """
    if instrument is None or instrument.symbol.upper() != symbol.upper():
        raise UnknownSymbolError(symbol)
    if direction not in DIRECTIONS:
        raise InvalidInputError("direction", direction, "must be 'buy' or 'sell'")
    _require_positive("take_profit_pips", take_profit_pips)
    _require_positive("leverage", leverage)

    reference_price = instrument.ask if direction == "buy" else instrument.bid

    per_lot = pip_value(symbol, 1, account_currency, reference_price)
    lots = lot_size(account_balance, risk_percentage, stop_loss_pips, per_lot)

    return TradeCalculation(
        lot_size=lots,
        position_size=lots * CONTRACT_SIZE,
        margin_required=margin_required(lots, reference_price, leverage, symbol),
        pip_value=per_lot * lots,
        risk_amount=account_balance * (risk_percentage / 100.0),
        potential_profit=take_profit_pips * per_lot * lots,
        potential_loss=stop_loss_pips * per_lot * lots,
        risk_reward_ratio=take_profit_pips / stop_loss_pips,
    )


def calculate(params: TradeParameters, instrument: Optional[Instrument]) -> TradeCalculation:
    """Run :func:`trade_details` for a ``TradeParameters`` value."""
    return trade_details(
        symbol=params.symbol,
        instrument=instrument,
        account_balance=params.account_balance,
        account_currency=params.account_currency,
        risk_percentage=params.risk_percentage,
        stop_loss_pips=params.stop_loss_pips,
        take_profit_pips=params.take_profit_pips,
        leverage=params.leverage,
        direction=params.direction,
    )
