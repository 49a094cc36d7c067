"""CLI report — prints quotes and trade calculations to the console."""

from pipdesk.formatting import format_currency, format_number, format_percent
from pipdesk.market.models import MarketSnapshot
from pipdesk.market.seed import price_decimals
from pipdesk.trading.models import TradeCalculation, TradeParameters


def print_snapshot(snapshot: MarketSnapshot) -> str:
    """Format and print every quote in *snapshot*.

    Returns:
        The formatted string (also printed to stdout).
    """
    lines = [
        f"──────────────── Market ({snapshot.market_status.upper()}) ────────────────",
        f"  {'Symbol':<8} {'Bid':>14} {'Ask':>14} {'Change':>9}",
    ]
    for pair in snapshot.pairs:
        decimals = price_decimals(pair.symbol)
        lines.append(
            f"  {pair.symbol:<8} "
            f"{format_number(pair.bid, decimals):>14} "
            f"{format_number(pair.ask, decimals):>14} "
            f"{format_percent(pair.change_percent):>9}"
        )
    lines.append(f"  Last update: {snapshot.last_update}")
    lines.append("──────────────────────────────────────────────────")
    output = "\n".join(lines)
    print(output)
    return output


def print_calculation(params: TradeParameters, calc: TradeCalculation) -> str:
    """Format and print a trade calculation.

    Returns:
        The formatted string (also printed to stdout).
    """
    ccy = params.account_currency
    lines = [
        "──────────────── Trade Calculation ────────────────",
        f"  Pair:            {params.symbol} ({params.direction.upper()})",
        f"  Lot Size:        {format_number(calc.lot_size, 2)}",
        f"  Position Size:   {format_number(calc.position_size, 0)} units",
        f"  Pip Value:       {format_currency(calc.pip_value, ccy)}",
        f"  Margin Required: {format_currency(calc.margin_required, ccy)}",
        f"  Risk Amount:     {format_currency(calc.risk_amount, ccy)}",
        f"  Potential Loss:  {format_currency(calc.potential_loss, ccy)}",
        f"  Potential Profit: {format_currency(calc.potential_profit, ccy)}",
        f"  Risk:Reward:     1:{format_number(calc.risk_reward_ratio, 2)}",
        "──────────────────────────────────────────────────",
    ]
    output = "\n".join(lines)
    print(output)
    return output
