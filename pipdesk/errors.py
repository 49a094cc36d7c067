"""Domain errors for PipDesk.

Raised from the engine, the market service, and the storage/auth adapters.
Mapped to HTTP responses in ``pipdesk.api.errors``.
"""


class PipDeskError(Exception):
    """Base error for all PipDesk failures."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)


class InvalidInputError(PipDeskError, ValueError):
    """Raised when a calculation or query receives an out-of-range input."""

    def __init__(self, field: str, value, reason: str = "must be positive") -> None:
        super().__init__(f"{field} {reason}, got {value!r}")
        self.field = field
        self.value = value


class UnknownSymbolError(PipDeskError):
    """Raised when a symbol is not part of the current instrument set."""

    def __init__(self, symbol: str) -> None:
        super().__init__(f"Unknown symbol: {symbol}")
        self.symbol = symbol


class SetupNotFoundError(PipDeskError):
    """Raised when a saved trade setup id does not exist."""

    def __init__(self, setup_id: str) -> None:
        super().__init__(f"Trade setup not found: {setup_id}")
        self.setup_id = setup_id


class PersistenceError(PipDeskError):
    """Raised when the trade-setup store fails."""


class AuthError(PipDeskError):
    """Raised when the auth backend rejects or fails a request."""
