"""Pydantic schemas for API request validation.

These schemas define the request contract only.  No business logic.
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field

from pipdesk.trading.models import TradeParameters

SYMBOL_PATTERN = r"^[A-Za-z]{6,7}$"


class CalculateRequest(BaseModel):
    """Trade parameters for one sizing calculation."""

    symbol: str = Field(..., pattern=SYMBOL_PATTERN, description="Instrument symbol, e.g. EURUSD")
    account_balance: float = Field(..., gt=0)
    account_currency: str = Field(default="USD", min_length=3, max_length=3)
    risk_percentage: float = Field(..., gt=0)
    stop_loss_pips: float = Field(..., gt=0)
    take_profit_pips: float = Field(..., gt=0)
    leverage: float = Field(..., gt=0)
    direction: Literal["buy", "sell"]
    notes: Optional[str] = Field(default=None, max_length=2000)

    def to_parameters(self) -> TradeParameters:
        return TradeParameters(
            symbol=self.symbol.upper(),
            account_balance=self.account_balance,
            account_currency=self.account_currency.upper(),
            risk_percentage=self.risk_percentage,
            stop_loss_pips=self.stop_loss_pips,
            take_profit_pips=self.take_profit_pips,
            leverage=self.leverage,
            direction=self.direction,
            notes=self.notes,
        )


class SignInRequest(BaseModel):
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)


class SignUpRequest(SignInRequest):
    display_name: str = Field(default="", max_length=200)
