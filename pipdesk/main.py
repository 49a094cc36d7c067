"""PipDesk — application entry point.

Builds the process-wide market feed, storage and auth backends, boots the
FastAPI server, and provides the CLI entry point for the serve, quote
and calc modes.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from pipdesk.api.errors import register_error_handlers
from pipdesk.api.routers import configure_routers, get_market, router
from pipdesk.config import Config
from pipdesk.market.service import MarketDataService
from pipdesk.market.synthesizer import MarketDataSynthesizer
from pipdesk.repos.ports import AuthBackend, TradeSetupStore

logger = logging.getLogger("pipdesk")


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Run the market feed for as long as the server is up."""
    market = get_market()
    if market is not None:
        market.start()
    try:
        yield
    finally:
        if market is not None:
            await market.shutdown()


app = FastAPI(title="PipDesk API", version="0.1.0", lifespan=lifespan)
app.include_router(router)
register_error_handlers(app)


@app.get("/health")
async def health():
    return {"status": "ok"}


# ── Composition root ─────────────────────────────────────────────────────


def build_market(config: Config) -> MarketDataService:
    """Create the single market service of this process."""
    synth = MarketDataSynthesizer(
        update_interval=config.feed_update_interval_seconds,
        tick_interval=config.feed_tick_seconds,
    )
    return MarketDataService(synth, latency=config.feed_latency_seconds)


def build_backends(config: Config) -> tuple[TradeSetupStore, AuthBackend]:
    """Return ``(setup_store, auth)`` for ``config.storage_backend``."""
    from pipdesk.repos.memory import InMemoryAuthBackend, InMemoryTradeSetupStore

    if config.storage_backend == "supabase":
        from pipdesk.backends.supabase_client import SupabaseClient

        client = SupabaseClient(config)
        return client, client
    if config.storage_backend == "memory":
        return InMemoryTradeSetupStore(), InMemoryAuthBackend()

    from pipdesk.repos.db import init_db
    from pipdesk.repos.trade_setup_repo import TradeSetupRepo

    init_db(config.db_path)
    return TradeSetupRepo(config.db_path), InMemoryAuthBackend()


# ── CLI ──────────────────────────────────────────────────────────────────


def _run_cli() -> None:
    """Parse CLI arguments and dispatch to the appropriate mode."""
    import argparse
    import asyncio

    from pipdesk.config import load_config

    parser = argparse.ArgumentParser(description="PipDesk forex trade calculator")
    parser.add_argument(
        "--mode",
        choices=["serve", "quote", "calc"],
        default="serve",
        help="serve the API, print a quote snapshot, or size one trade (default: serve)",
    )
    parser.add_argument("--symbol", default="EURUSD", help="Instrument for calc mode")
    parser.add_argument("--balance", type=float, default=10_000.0, help="Account balance")
    parser.add_argument("--currency", help="Account currency (default from config)")
    parser.add_argument("--risk", type=float, default=1.0, help="Risk per trade, percent")
    parser.add_argument("--sl", type=float, default=20.0, help="Stop loss, pips")
    parser.add_argument("--tp", type=float, default=40.0, help="Take profit, pips")
    parser.add_argument("--leverage", type=float, help="Leverage (default from config)")
    parser.add_argument("--direction", choices=["buy", "sell"], default="buy")
    args = parser.parse_args()

    config = load_config()
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    market = build_market(config)

    if args.mode == "quote":
        from pipdesk.cli.report import print_snapshot

        print_snapshot(asyncio.run(market.get_snapshot()))
    elif args.mode == "calc":
        _run_calc(market, config, args)
    else:
        setup_store, auth = build_backends(config)
        configure_routers(market=market, setup_store=setup_store, auth=auth)
        _serve(config)


def _run_calc(market: MarketDataService, config: Config, args) -> None:
    """Size one trade against a fresh snapshot of the simulated feed and print it."""
    import asyncio

    from pipdesk.cli.report import print_calculation
    from pipdesk.errors import UnknownSymbolError
    from pipdesk.trading.economics import calculate
    from pipdesk.trading.models import TradeParameters

    params = TradeParameters(
        symbol=args.symbol.upper(),
        account_balance=args.balance,
        account_currency=(args.currency or config.default_account_currency).upper(),
        risk_percentage=args.risk,
        stop_loss_pips=args.sl,
        take_profit_pips=args.tp,
        leverage=args.leverage or config.default_leverage,
        direction=args.direction,
    )
    instrument = asyncio.run(market.get_snapshot()).get(params.symbol)
    if instrument is None:
        raise UnknownSymbolError(params.symbol)
    print_calculation(params, calculate(params, instrument))


def _serve(config: Config) -> None:
    """Run the API server; the lifespan hook owns the feed task."""
    import uvicorn

    logger.info(
        "Starting PipDesk API on port %d (storage: %s).",
        config.api_port, config.storage_backend,
    )
    uvicorn.run(app, host="0.0.0.0", port=config.api_port, log_level="info")
    logger.info("PipDesk stopped.")


if __name__ == "__main__":
    _run_cli()
