"""In-process store and auth backends.

Used by the ``memory`` storage backend for local runs and as fakes in
tests.  State lives only as long as the object.
"""

import hashlib
import hmac
import itertools
import os
import secrets
import uuid
from datetime import datetime, timezone
from typing import Optional

from pipdesk.errors import AuthError
from pipdesk.repos.ports import Identity, Session
from pipdesk.trading.models import TradeCalculation, TradeParameters, TradeSetup

_PBKDF2_ROUNDS = 100_000


class InMemoryTradeSetupStore:
    """Dict-backed ``TradeSetupStore``."""

    def __init__(self) -> None:
        self._setups: dict[str, TradeSetup] = {}
        self._sequence: dict[str, int] = {}
        self._counter = itertools.count()

    async def save(
        self,
        user_id: str,
        parameters: TradeParameters,
        calculation: TradeCalculation,
        created_at: Optional[str] = None,
        access_token: Optional[str] = None,
    ) -> TradeSetup:
        setup = TradeSetup(
            id=uuid.uuid4().hex,
            user_id=user_id,
            parameters=parameters,
            calculation=calculation,
            created_at=created_at or datetime.now(timezone.utc).isoformat(),
        )
        self._setups[setup.id] = setup
        self._sequence[setup.id] = next(self._counter)
        return setup

    async def list_for_user(
        self, user_id: str, access_token: Optional[str] = None
    ) -> list[TradeSetup]:
        owned = [s for s in self._setups.values() if s.user_id == user_id]
        owned.sort(key=lambda s: (s.created_at, self._sequence[s.id]), reverse=True)
        return owned

    async def delete(
        self, user_id: str, setup_id: str, access_token: Optional[str] = None
    ) -> bool:
        setup = self._setups.get(setup_id)
        if setup is None or setup.user_id != user_id:
            return False
        del self._setups[setup_id]
        del self._sequence[setup_id]
        return True


class InMemoryAuthBackend:
    """``AuthBackend`` holding salted PBKDF2 password hashes in memory.

    Each sign-in issues a fresh opaque session token; any number of
    sessions may be live at once.

    Args:
        require_confirmation: When ``True`` new sign-ups are returned with
            ``email_confirmed=False`` and no token, and cannot sign in
            until :meth:`confirm_email` is called.
    """

    def __init__(self, require_confirmation: bool = False) -> None:
        self._require_confirmation = require_confirmation
        self._users: dict[str, dict] = {}  # email → record
        self._sessions: dict[str, str] = {}  # token → email

    @staticmethod
    def _hash(password: str, salt: bytes) -> bytes:
        return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, _PBKDF2_ROUNDS)

    def _open_session(self, identity: Identity) -> Session:
        token = secrets.token_urlsafe(32)
        self._sessions[token] = identity.email
        return Session(identity=identity, access_token=token)

    async def sign_up(self, email: str, password: str, display_name: str) -> Session:
        key = email.strip().lower()
        if not key or "@" not in key:
            raise AuthError("Unable to validate email address: invalid format")
        if len(password) < 6:
            raise AuthError("Password should be at least 6 characters")
        if key in self._users:
            raise AuthError("User already registered")

        salt = os.urandom(16)
        identity = Identity(
            id=uuid.uuid4().hex,
            email=key,
            display_name=display_name,
            email_confirmed=not self._require_confirmation,
        )
        self._users[key] = {
            "identity": identity,
            "salt": salt,
            "hash": self._hash(password, salt),
        }
        if not identity.email_confirmed:
            return Session(identity=identity)
        return self._open_session(identity)

    async def sign_in(self, email: str, password: str) -> Session:
        record = self._users.get(email.strip().lower())
        if record is None or not hmac.compare_digest(
            record["hash"], self._hash(password, record["salt"])
        ):
            raise AuthError("Invalid login credentials")
        identity = record["identity"]
        if not identity.email_confirmed:
            raise AuthError("Email not confirmed")
        return self._open_session(identity)

    async def sign_out(self, access_token: str) -> None:
        self._sessions.pop(access_token, None)

    async def get_current_identity(self, access_token: Optional[str]) -> Optional[Identity]:
        if access_token is None:
            return None
        email = self._sessions.get(access_token)
        if email is None:
            return None
        return self._users[email]["identity"]

    def confirm_email(self, email: str) -> None:
        """Mark a pending sign-up as confirmed."""
        record = self._users.get(email.strip().lower())
        if record is None:
            raise AuthError("User not found")
        old = record["identity"]
        record["identity"] = Identity(
            id=old.id, email=old.email,
            display_name=old.display_name, email_confirmed=True,
        )
