"""Centralized error handlers for FastAPI.

Maps PipDesk errors to HTTP responses with a ``{"error", "detail"}`` body.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from pipdesk.errors import (
    AuthError,
    InvalidInputError,
    PersistenceError,
    PipDeskError,
    SetupNotFoundError,
    UnknownSymbolError,
)

logger = logging.getLogger("pipdesk.api")


def _error_response(status_code: int, error: str, detail: str | None = None) -> JSONResponse:
    """Build a consistent JSON error response."""
    body: dict[str, str | None] = {"error": error}
    if detail:
        body["detail"] = detail
    return JSONResponse(status_code=status_code, content=body)


def register_error_handlers(app: FastAPI) -> None:
    """Register the domain error handlers on *app*."""

    @app.exception_handler(InvalidInputError)
    async def handle_invalid_input(_request: Request, exc: InvalidInputError) -> JSONResponse:
        logger.warning("Invalid input: %s", exc.message)
        return _error_response(422, "Invalid input", exc.message)

    @app.exception_handler(UnknownSymbolError)
    async def handle_unknown_symbol(_request: Request, exc: UnknownSymbolError) -> JSONResponse:
        logger.warning("Unknown symbol: %s", exc.symbol)
        return _error_response(404, "Symbol not found", exc.message)

    @app.exception_handler(SetupNotFoundError)
    async def handle_setup_not_found(_request: Request, exc: SetupNotFoundError) -> JSONResponse:
        logger.warning("Trade setup not found: %s", exc.setup_id)
        return _error_response(404, "Trade setup not found", exc.message)

    @app.exception_handler(AuthError)
    async def handle_auth(_request: Request, exc: AuthError) -> JSONResponse:
        logger.warning("Auth failure: %s", exc.message)
        return _error_response(401, "Authentication failed", exc.message)

    @app.exception_handler(PersistenceError)
    async def handle_persistence(_request: Request, exc: PersistenceError) -> JSONResponse:
        logger.error("Persistence failure: %s", exc.message)
        return _error_response(502, "Storage unavailable", exc.message)

    @app.exception_handler(PipDeskError)
    async def handle_domain(_request: Request, exc: PipDeskError) -> JSONResponse:
        logger.error("Unhandled domain error: %s", exc.message)
        return _error_response(400, "Request failed", exc.message)
