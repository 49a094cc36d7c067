"""Storage and auth capability interfaces.

Any backend (SQLite, hosted Supabase, in-memory fakes) that satisfies
these protocols can be wired in by the composition root.  Backends are
shared by every caller, so nothing caller-specific is kept on them: the
caller's access token travels with each call.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, runtime_checkable

from pipdesk.trading.models import TradeCalculation, TradeParameters, TradeSetup


@dataclass(frozen=True)
class Identity:
    """An authenticated (or pending-confirmation) user."""

    id: str
    email: str
    display_name: str = ""
    email_confirmed: bool = True

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "display_name": self.display_name,
            "email_confirmed": self.email_confirmed,
        }


@dataclass(frozen=True)
class Session:
    """The result of a sign-in or sign-up.

    ``access_token`` is ``None`` while an e-mail confirmation is pending.
    """

    identity: Identity
    access_token: Optional[str] = None

    def to_dict(self) -> dict:
        return {"identity": self.identity.to_dict(), "access_token": self.access_token}


@runtime_checkable
class TradeSetupStore(Protocol):
    """Persistence for saved trade setups.

    ``access_token`` is the caller's session token; local stores ignore it.
    """

    async def save(
        self,
        user_id: str,
        parameters: TradeParameters,
        calculation: TradeCalculation,
        created_at: Optional[str] = None,
        access_token: Optional[str] = None,
    ) -> TradeSetup:
        """Store a new setup and return it with its id."""
        ...

    async def list_for_user(
        self, user_id: str, access_token: Optional[str] = None
    ) -> list[TradeSetup]:
        """Every setup owned by *user_id*, newest first."""
        ...

    async def delete(
        self, user_id: str, setup_id: str, access_token: Optional[str] = None
    ) -> bool:
        """Delete one setup owned by *user_id*; ``False`` if there is none."""
        ...


@runtime_checkable
class AuthBackend(Protocol):
    """Sign-in / sign-up / sign-out against an identity provider."""

    async def sign_in(self, email: str, password: str) -> Session:
        ...

    async def sign_up(self, email: str, password: str, display_name: str) -> Session:
        ...

    async def sign_out(self, access_token: str) -> None:
        ...

    async def get_current_identity(self, access_token: Optional[str]) -> Optional[Identity]:
        """The identity behind *access_token*; ``None`` when absent or unknown."""
        ...
