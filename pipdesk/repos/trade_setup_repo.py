"""Trade setup repository — SQLite CRUD for the trade_setups table."""

import json
import logging
import sqlite3
import uuid
from datetime import datetime, timezone
from typing import Optional

from pipdesk.errors import PersistenceError
from pipdesk.repos.db import get_connection
from pipdesk.trading.models import TradeCalculation, TradeParameters, TradeSetup

logger = logging.getLogger("pipdesk.repos")


class TradeSetupRepo:
    """Data access layer for saved trade setups.

    Satisfies ``TradeSetupStore``.  SQLite errors surface as
    ``PersistenceError``.

    Args:
        db_path: Path to the SQLite database file.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    # ── Write ────────────────────────────────────────────────────────────

    async def save(
        self,
        user_id: str,
        parameters: TradeParameters,
        calculation: TradeCalculation,
        created_at: Optional[str] = None,
        access_token: Optional[str] = None,
    ) -> TradeSetup:
        """Insert a new setup and return it."""
        setup = TradeSetup(
            id=uuid.uuid4().hex,
            user_id=user_id,
            parameters=parameters,
            calculation=calculation,
            created_at=created_at or datetime.now(timezone.utc).isoformat(),
        )
        conn = get_connection(self._db_path)
        try:
            conn.execute(
                """
                INSERT INTO trade_setups
                    (id, user_id, symbol, direction, account_balance,
                     account_currency, risk_percentage, stop_loss_pips,
                     take_profit_pips, leverage, notes, calculation, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    setup.id, user_id, parameters.symbol, parameters.direction,
                    parameters.account_balance, parameters.account_currency,
                    parameters.risk_percentage, parameters.stop_loss_pips,
                    parameters.take_profit_pips, parameters.leverage,
                    parameters.notes, json.dumps(calculation.to_dict()),
                    setup.created_at,
                ),
            )
            conn.commit()
        except sqlite3.Error as exc:
            logger.error("Failed to save trade setup for %s: %s", user_id, exc)
            raise PersistenceError(f"Failed to save trade setup: {exc}") from exc
        finally:
            conn.close()
        return setup

    async def delete(
        self, user_id: str, setup_id: str, access_token: Optional[str] = None
    ) -> bool:
        """Delete *setup_id* if *user_id* owns it; ``False`` if none matched."""
        conn = get_connection(self._db_path)
        try:
            cur = conn.execute(
                "DELETE FROM trade_setups WHERE id = ? AND user_id = ?",
                (setup_id, user_id),
            )
            conn.commit()
            return cur.rowcount > 0
        except sqlite3.Error as exc:
            raise PersistenceError(f"Failed to delete trade setup: {exc}") from exc
        finally:
            conn.close()

    # ── Read ─────────────────────────────────────────────────────────────

    async def list_for_user(
        self, user_id: str, access_token: Optional[str] = None
    ) -> list[TradeSetup]:
        """Return every setup of *user_id*, newest first."""
        conn = get_connection(self._db_path)
        try:
            rows = conn.execute(
                """
                SELECT * FROM trade_setups
                WHERE user_id = ?
                ORDER BY created_at DESC, rowid DESC
                """,
                (user_id,),
            ).fetchall()
        except sqlite3.Error as exc:
            raise PersistenceError(f"Failed to load trade setups: {exc}") from exc
        finally:
            conn.close()
        return [_row_to_setup(row) for row in rows]


def _row_to_setup(row: sqlite3.Row) -> TradeSetup:
    return TradeSetup(
        id=row["id"],
        user_id=row["user_id"],
        parameters=TradeParameters(
            symbol=row["symbol"],
            account_balance=row["account_balance"],
            account_currency=row["account_currency"],
            risk_percentage=row["risk_percentage"],
            stop_loss_pips=row["stop_loss_pips"],
            take_profit_pips=row["take_profit_pips"],
            leverage=row["leverage"],
            direction=row["direction"],
            notes=row["notes"],
        ),
        calculation=TradeCalculation(**json.loads(row["calculation"])),
        created_at=row["created_at"],
    )
