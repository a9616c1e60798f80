"""Database initialization and connection management.

Creates the progress schema on first boot, provides connection factory.
"""

import pathlib
import sqlite3

_SCHEMA = """
CREATE TABLE IF NOT EXISTS player_progress (
    id                  INTEGER PRIMARY KEY CHECK (id = 1),
    total_profit        REAL    NOT NULL DEFAULT 0,
    total_trades        INTEGER NOT NULL DEFAULT 0,
    total_sessions      INTEGER NOT NULL DEFAULT 0,
    total_wins          INTEGER NOT NULL DEFAULT 0,
    total_losses        INTEGER NOT NULL DEFAULT 0,
    best_session_pnl    REAL    NOT NULL DEFAULT 0,
    worst_session_pnl   REAL    NOT NULL DEFAULT 0,
    best_streak         INTEGER NOT NULL DEFAULT 0,
    longest_session     INTEGER NOT NULL DEFAULT 0,
    level               INTEGER NOT NULL DEFAULT 1,
    xp                  INTEGER NOT NULL DEFAULT 0,
    daily_streak        INTEGER NOT NULL DEFAULT 0,
    last_play_date      TEXT    NOT NULL DEFAULT '',
    traded_symbols      TEXT    NOT NULL DEFAULT '[]'
);

CREATE TABLE IF NOT EXISTS achievements (
    achievement_id  TEXT PRIMARY KEY,
    unlocked_at     TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS achievement_progress (
    achievement_id  TEXT PRIMARY KEY,
    value           REAL NOT NULL
);

CREATE TABLE IF NOT EXISTS session_records (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    date        TEXT    NOT NULL,
    symbol      TEXT    NOT NULL,
    pnl         REAL    NOT NULL,
    trades      INTEGER NOT NULL,
    win_rate    REAL    NOT NULL,
    max_streak  INTEGER NOT NULL,
    grade       TEXT    NOT NULL,
    xp_earned   INTEGER NOT NULL,
    duration    INTEGER NOT NULL DEFAULT 0
);
"""


def init_db(db_path: str) -> None:
    """Create the schema if it does not exist yet.

    Args:
        db_path: Path to the SQLite database file (or ``":memory:"``).
    """
    if db_path != ":memory:":
        pathlib.Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path)
    try:
        conn.executescript(_SCHEMA)
        conn.execute("INSERT OR IGNORE INTO player_progress (id) VALUES (1)")
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
