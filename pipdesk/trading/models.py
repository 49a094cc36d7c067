"""Trade data models — typed inputs and outputs of the trade-economics engine."""

from dataclasses import asdict, dataclass
from typing import Optional


DIRECTIONS = ("buy", "sell")


@dataclass(frozen=True)
class TradeParameters:
    """User-supplied inputs for one trade sizing calculation."""

    symbol: str
    account_balance: float
    account_currency: str
    risk_percentage: float
    stop_loss_pips: float
    take_profit_pips: float
    leverage: float
    direction: str  # "buy" or "sell"
    notes: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class TradeCalculation:
    """Risk-quantified position sizing derived from parameters + a quote.

    ``pip_value`` is the value of one pip for the whole position
    (per-lot pip value × lot size).
    """

    lot_size: float
    position_size: float
    margin_required: float
    pip_value: float
    risk_amount: float
    potential_profit: float
    potential_loss: float
    risk_reward_ratio: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class TradeSetup:
    """A saved calculation owned by a user."""

    id: str
    user_id: str
    parameters: TradeParameters
    calculation: TradeCalculation
    created_at: str  # ISO-8601 UTC

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "parameters": self.parameters.to_dict(),
            "calculation": self.calculation.to_dict(),
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TradeSetup":
        return cls(
            id=str(data["id"]),
            user_id=str(data["user_id"]),
            parameters=TradeParameters(**data["parameters"]),
            calculation=TradeCalculation(**data["calculation"]),
            created_at=data["created_at"],
        )
