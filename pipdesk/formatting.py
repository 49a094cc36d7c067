"""Number and currency rendering for display (en-US conventions)."""

_CURRENCY_SYMBOLS: dict[str, str] = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "AUD": "A$",
    "CAD": "CA$",
    "NZD": "NZ$",
    "CHF": "CHF ",
    "SGD": "SGD ",
    "ZAR": "ZAR ",
}


def format_number(value: float, decimals: int = 2) -> str:
    """Render *value* with thousands separators and fixed decimals.

    >>> format_number(1234567.891)
    '1,234,567.89'
    """
    if decimals < 0:
        raise ValueError(f"decimals must be non-negative, got {decimals}")
    return f"{value:,.{decimals}f}"


def format_currency(amount: float, currency: str = "USD") -> str:
    """Render *amount* as a currency string with two decimals.

    Known currencies use their symbol (``$1,234.50``); unknown codes are
    prefixed with the ISO code and a space. Negative amounts carry the
    sign before the symbol (``-$12.00``).
    """
    code = currency.upper()
    symbol = _CURRENCY_SYMBOLS.get(code, f"{code} ")
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{format_number(abs(amount), 2)}"


def format_percent(value: float, decimals: int = 2, signed: bool = True) -> str:
    """Render a percentage, with a leading ``+`` for gains when *signed*."""
    prefix = "+" if signed and value >= 0 else ""
    return f"{prefix}{value:.{decimals}f}%"
