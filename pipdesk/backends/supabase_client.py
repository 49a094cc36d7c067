"""Supabase async client — hosted auth (GoTrue) and setup storage (PostgREST).

Implements both ``AuthBackend`` and ``TradeSetupStore`` on top of the
project's REST endpoints.  One client serves every caller, so it keeps no
session: each call carries the caller's access token, which row-level
security on ``trade_setups`` checks server-side.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

import httpx

from pipdesk.config import Config
from pipdesk.errors import AuthError, PersistenceError, PipDeskError
from pipdesk.repos.ports import Identity, Session
from pipdesk.trading.models import TradeCalculation, TradeParameters, TradeSetup

logger = logging.getLogger("pipdesk.backends")

# Retry settings
_MAX_RETRIES = 3
_RETRY_BASE_DELAY = 2.0  # seconds; doubles each attempt
_RETRYABLE_STATUS_CODES = {502, 503, 504, 429}

_TABLE = "trade_setups"


def _error_message(resp: httpx.Response) -> str:
    """Pull the human-readable message out of a Supabase error body."""
    try:
        body = resp.json()
    except ValueError:
        return resp.text or f"HTTP {resp.status_code}"
    if isinstance(body, dict):
        for key in ("msg", "message", "error_description", "error"):
            if body.get(key):
                return str(body[key])
    return f"HTTP {resp.status_code}"


def _identity_from_user(user: dict) -> Identity:
    metadata = user.get("user_metadata") or {}
    return Identity(
        id=str(user["id"]),
        email=user.get("email", ""),
        display_name=metadata.get("full_name", ""),
        email_confirmed=bool(user.get("email_confirmed_at") or user.get("confirmed_at")),
    )


def _row_to_setup(row: dict) -> TradeSetup:
    return TradeSetup(
        id=str(row["id"]),
        user_id=str(row["user_id"]),
        parameters=TradeParameters(
            symbol=row["symbol"],
            account_balance=float(row["account_balance"]),
            account_currency=row["account_currency"],
            risk_percentage=float(row["risk_percentage"]),
            stop_loss_pips=float(row["stop_loss_pips"]),
            take_profit_pips=float(row["take_profit_pips"]),
            leverage=float(row["leverage"]),
            direction=row["direction"],
            notes=row.get("notes"),
        ),
        calculation=TradeCalculation(**row["calculation"]),
        created_at=row["created_at"],
    )


class SupabaseClient:
    """Async client wrapping the Supabase auth and REST APIs.

    Args:
        config: Application config carrying the project URL and anon key.
        transport: Optional httpx transport (tests pass a ``MockTransport``).
        retry_base_delay: First backoff delay in seconds.
    """

    def __init__(
        self,
        config: Config,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        retry_base_delay: float = _RETRY_BASE_DELAY,
    ) -> None:
        self._auth_url = config.supabase_auth_url
        self._rest_url = config.supabase_rest_url
        self._anon_key = config.supabase_anon_key or ""
        self._transport = transport
        self._retry_base_delay = retry_base_delay

    def _headers(
        self, extra: Optional[dict] = None, access_token: Optional[str] = None
    ) -> dict:
        headers = {
            "apikey": self._anon_key,
            "Authorization": f"Bearer {access_token or self._anon_key}",
            "Content-Type": "application/json",
        }
        if extra:
            headers.update(extra)
        return headers

    # ── Retry helper ─────────────────────────────────────────────────────

    async def _request_with_retry(
        self,
        method: str,
        url: str,
        error_cls: type[PipDeskError],
        headers: Optional[dict] = None,
        access_token: Optional[str] = None,
        **kwargs,
    ) -> httpx.Response:
        """Execute an HTTP request with exponential-backoff retry.

        Retries on transient server errors (502, 503, 504) and rate-limits
        (429).  Any other error status raises *error_cls* immediately with
        the backend's message.
        """
        last_message = "request failed"
        last_exc: Optional[Exception] = None

        for attempt in range(_MAX_RETRIES):
            delay = self._retry_base_delay * (2 ** attempt)
            try:
                async with httpx.AsyncClient(transport=self._transport) as client:
                    resp = await client.request(
                        method,
                        url,
                        headers=self._headers(headers, access_token),
                        timeout=30.0,
                        **kwargs,
                    )
            except httpx.TransportError as exc:
                logger.warning(
                    "Supabase %s %s transport error (%s) — retry %d/%d in %.1fs",
                    method, url, exc, attempt + 1, _MAX_RETRIES, delay,
                )
                last_message, last_exc = str(exc), exc
                await asyncio.sleep(delay)
                continue

            if resp.status_code in _RETRYABLE_STATUS_CODES:
                logger.warning(
                    "Supabase %s %s returned %d — retry %d/%d in %.1fs",
                    method, url, resp.status_code, attempt + 1, _MAX_RETRIES, delay,
                )
                last_message, last_exc = _error_message(resp), None
                await asyncio.sleep(delay)
                continue

            if resp.is_error:
                raise error_cls(_error_message(resp))
            return resp

        # All retries exhausted
        raise error_cls(last_message) from last_exc

    # ── Auth ─────────────────────────────────────────────────────────────

    async def sign_up(self, email: str, password: str, display_name: str) -> Session:
        """Register a user; the session has no token while confirmation is pending."""
        resp = await self._request_with_retry(
            "POST",
            f"{self._auth_url}/signup",
            AuthError,
            json={
                "email": email,
                "password": password,
                "data": {"full_name": display_name},
            },
        )
        data = resp.json()
        identity = _identity_from_user(data.get("user") or data)
        logger.info("Signed up %s (confirmed=%s)", identity.email, identity.email_confirmed)
        return Session(identity=identity, access_token=data.get("access_token"))

    async def sign_in(self, email: str, password: str) -> Session:
        """Sign in with email + password and return the new session."""
        resp = await self._request_with_retry(
            "POST",
            f"{self._auth_url}/token",
            AuthError,
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        data = resp.json()
        return Session(
            identity=_identity_from_user(data["user"]),
            access_token=data["access_token"],
        )

    async def sign_out(self, access_token: str) -> None:
        """Revoke the session behind *access_token*."""
        await self._request_with_retry(
            "POST", f"{self._auth_url}/logout", AuthError, access_token=access_token
        )

    async def get_current_identity(self, access_token: Optional[str]) -> Optional[Identity]:
        """Return the user behind *access_token* as seen by the auth server."""
        if access_token is None:
            return None
        resp = await self._request_with_retry(
            "GET", f"{self._auth_url}/user", AuthError, access_token=access_token
        )
        return _identity_from_user(resp.json())

    # ── Trade setups ─────────────────────────────────────────────────────

    async def save(
        self,
        user_id: str,
        parameters: TradeParameters,
        calculation: TradeCalculation,
        created_at: Optional[str] = None,
        access_token: Optional[str] = None,
    ) -> TradeSetup:
        """Insert a row into ``trade_setups`` and return the stored record."""
        row = {
            **parameters.to_dict(),
            "user_id": user_id,
            "calculation": calculation.to_dict(),
            "created_at": created_at or datetime.now(timezone.utc).isoformat(),
        }
        resp = await self._request_with_retry(
            "POST",
            f"{self._rest_url}/{_TABLE}",
            PersistenceError,
            headers={"Prefer": "return=representation"},
            access_token=access_token,
            json=row,
        )
        rows = resp.json()
        if not rows:
            raise PersistenceError("Insert returned no rows")
        return _row_to_setup(rows[0])

    async def list_for_user(
        self, user_id: str, access_token: Optional[str] = None
    ) -> list[TradeSetup]:
        """All setups of *user_id*, newest first."""
        resp = await self._request_with_retry(
            "GET",
            f"{self._rest_url}/{_TABLE}",
            PersistenceError,
            access_token=access_token,
            params={
                "select": "*",
                "user_id": f"eq.{user_id}",
                "order": "created_at.desc",
            },
        )
        return [_row_to_setup(row) for row in resp.json()]

    async def delete(
        self, user_id: str, setup_id: str, access_token: Optional[str] = None
    ) -> bool:
        """Delete one setup of *user_id* by id; ``False`` when nothing matched."""
        resp = await self._request_with_retry(
            "DELETE",
            f"{self._rest_url}/{_TABLE}",
            PersistenceError,
            headers={"Prefer": "return=representation"},
            access_token=access_token,
            params={"id": f"eq.{setup_id}", "user_id": f"eq.{user_id}"},
        )
        return len(resp.json()) > 0
