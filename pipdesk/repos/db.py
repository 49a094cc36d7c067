"""Database initialization and connection management.

Runs migrations on first boot, provides connection factory.
"""

import pathlib
import sqlite3


_MIGRATION_DIR = pathlib.Path(__file__).resolve().parent / "migrations"


def init_db(db_path: str) -> None:
    """Initialize the database by running the migration scripts.

    Creates the parent directory of *db_path* when needed.  Safe to call
    on every boot: the schema uses ``IF NOT EXISTS``.

    Args:
        db_path: Path to the SQLite database file.
    """
    if db_path != ":memory:":
        pathlib.Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path)
    try:
        for migration_file in sorted(_MIGRATION_DIR.glob("*.sql")):
            conn.executescript(migration_file.read_text(encoding="utf-8"))
        conn.commit()
    finally:
        conn.close()


def get_connection(db_path: str) -> sqlite3.Connection:
    """Return a new SQLite connection with row-factory enabled.

    Callers are responsible for closing the connection.
    """
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn
