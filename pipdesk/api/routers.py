"""Internal API routers — /market, /calculator, /setups and /auth endpoints.

No business logic, no DB access.  Delegates to the market service, the
trade-economics engine, and the injected store/auth backends.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import PlainTextResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from pipdesk.api.schemas import CalculateRequest, SignInRequest, SignUpRequest
from pipdesk.errors import AuthError, SetupNotFoundError, UnknownSymbolError
from pipdesk.market.service import MarketDataService
from pipdesk.repos.ports import AuthBackend, Identity, TradeSetupStore
from pipdesk.trading.economics import calculate
from pipdesk.trading.export import export_filename, setups_to_csv
from pipdesk.trading.models import TradeParameters, TradeCalculation

logger = logging.getLogger("pipdesk.api")
router = APIRouter()
_bearer = HTTPBearer(auto_error=False)

# ── Shared state (set during app startup) ────────────────────────────────

_market: Optional[MarketDataService] = None  # Set via configure_routers()
_setup_store: Optional[TradeSetupStore] = None  # Set via configure_routers()
_auth: Optional[AuthBackend] = None  # Set via configure_routers()


def configure_routers(
    market: Optional[MarketDataService] = None,
    setup_store: Optional[TradeSetupStore] = None,
    auth: Optional[AuthBackend] = None,
) -> None:
    """Inject dependencies from the application startup.

    Args:
        market: The process-wide ``MarketDataService``.
        setup_store: Any ``TradeSetupStore`` (SQLite repo, Supabase, fake).
        auth: Any ``AuthBackend``.
    """
    global _market, _setup_store, _auth  # noqa: PLW0603
    _market = market
    _setup_store = setup_store
    _auth = auth


def get_market() -> Optional[MarketDataService]:
    """The configured market service, if any (used by the app lifespan)."""
    return _market


def _require_market() -> MarketDataService:
    if _market is None:
        raise HTTPException(status_code=503, detail="Market feed not configured")
    return _market


def _require_store() -> TradeSetupStore:
    if _setup_store is None:
        raise HTTPException(status_code=503, detail="Trade setup storage not configured")
    return _setup_store


def _require_auth() -> AuthBackend:
    if _auth is None:
        raise HTTPException(status_code=503, detail="Auth backend not configured")
    return _auth


def _calculate(params: TradeParameters) -> TradeCalculation:
    """Size a trade against the live quote of ``params.symbol``."""
    instrument = _require_market().get_instrument(params.symbol)
    if instrument is None:
        raise UnknownSymbolError(params.symbol)
    return calculate(params, instrument)


# ── Caller identity (resolved per request) ───────────────────────────────


async def _access_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
) -> Optional[str]:
    """The caller's bearer token from the ``Authorization`` header, if any."""
    return credentials.credentials if credentials else None


async def _current_identity(
    token: Optional[str] = Depends(_access_token),
) -> Optional[Identity]:
    return await _require_auth().get_current_identity(token)


async def _signed_in(
    identity: Optional[Identity] = Depends(_current_identity),
) -> Identity:
    if identity is None:
        raise AuthError("Not signed in")
    return identity


# ── Market ───────────────────────────────────────────────────────────────


@router.get("/market/snapshot")
async def get_snapshot():
    """Return every quote with market status and server time."""
    snapshot = await _require_market().get_snapshot()
    return snapshot.to_dict()


@router.get("/market/symbols")
async def get_symbols():
    return {"symbols": _require_market().list_symbols()}


@router.get("/market/pairs")
async def get_pairs(category: Optional[str] = Query(default=None)):
    """Return quotes, optionally restricted to one category."""
    pairs = _require_market().filter_by_category(category)
    return {"pairs": [p.to_dict() for p in pairs]}


@router.get("/market/pairs/{symbol}")
async def get_pair(symbol: str):
    instrument = _require_market().get_instrument(symbol)
    if instrument is None:
        raise UnknownSymbolError(symbol)
    return instrument.to_dict()


@router.get("/market/trending")
async def get_trending(limit: int = Query(default=5, ge=0, le=50)):
    """Return the biggest movers by absolute percentage change."""
    return {"pairs": [p.to_dict() for p in _require_market().trending(limit)]}


@router.get("/market/sentiment")
async def get_sentiment():
    return _require_market().sentiment().to_dict()


# ── Calculator ───────────────────────────────────────────────────────────


@router.post("/calculator")
async def post_calculator(body: CalculateRequest):
    """Compute lot size, margin, and P/L for the given parameters."""
    params = body.to_parameters()
    calc = _calculate(params)
    return {"parameters": params.to_dict(), "calculation": calc.to_dict()}


# ── Trade setups ─────────────────────────────────────────────────────────


@router.post("/setups", status_code=201)
async def save_setup(
    body: CalculateRequest,
    identity: Identity = Depends(_signed_in),
    token: Optional[str] = Depends(_access_token),
):
    """Calculate against the current quote and store it for the caller."""
    params = body.to_parameters()
    calc = _calculate(params)
    setup = await _require_store().save(identity.id, params, calc, access_token=token)
    logger.info("Saved trade setup %s for user %s (%s)", setup.id, identity.id, params.symbol)
    return setup.to_dict()


@router.get("/setups")
async def list_setups(
    identity: Identity = Depends(_signed_in),
    token: Optional[str] = Depends(_access_token),
):
    """Return the caller's setups, newest first."""
    setups = await _require_store().list_for_user(identity.id, access_token=token)
    return {"setups": [s.to_dict() for s in setups], "total": len(setups)}


@router.get("/setups/export")
async def export_setups(
    identity: Identity = Depends(_signed_in),
    token: Optional[str] = Depends(_access_token),
):
    """Download the caller's setups as CSV."""
    setups = await _require_store().list_for_user(identity.id, access_token=token)
    filename = export_filename(datetime.now(timezone.utc))
    return PlainTextResponse(
        content=setups_to_csv(setups),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.delete("/setups/{setup_id}")
async def delete_setup(
    setup_id: str,
    identity: Identity = Depends(_signed_in),
    token: Optional[str] = Depends(_access_token),
):
    """Delete one of the caller's setups; other users' ids are not found."""
    if not await _require_store().delete(identity.id, setup_id, access_token=token):
        raise SetupNotFoundError(setup_id)
    logger.info("Deleted trade setup %s", setup_id)
    return {"deleted": setup_id}


# ── Auth ─────────────────────────────────────────────────────────────────


@router.post("/auth/sign-in")
async def sign_in(body: SignInRequest):
    """Return the identity and a bearer token for later requests."""
    session = await _require_auth().sign_in(body.email, body.password)
    return session.to_dict()


@router.post("/auth/sign-up", status_code=201)
async def sign_up(body: SignUpRequest):
    """Register a user; ``access_token`` is null while confirmation is pending."""
    session = await _require_auth().sign_up(body.email, body.password, body.display_name)
    return session.to_dict()


@router.post("/auth/sign-out")
async def sign_out(token: Optional[str] = Depends(_access_token)):
    if token is None:
        raise AuthError("Not signed in")
    await _require_auth().sign_out(token)
    return {"status": "signed_out"}


@router.get("/auth/me")
async def get_me(identity: Optional[Identity] = Depends(_current_identity)):
    return {"identity": identity.to_dict() if identity else None}
