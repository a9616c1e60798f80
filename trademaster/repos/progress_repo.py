"""Player progress repository — lifetime stats, XP, and unlocked achievements.

``ProgressStore`` is the seam between the simulation core and storage:
``load()`` once when a session starts, ``save(**changes)`` after every
mutation.  ``InMemoryProgressStore`` backs tests and throwaway runs;
``SqliteProgressStore`` persists to the tables created by ``init_db``.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field, fields, replace
from typing import Protocol, runtime_checkable

from trademaster.repos.db import get_connection, init_db

RECENT_SESSIONS_LIMIT = 10


@dataclass(frozen=True)
class SessionRecord:
    """A completed session as kept in the recent-history list."""

    date: str
    symbol: str
    pnl: float
    trades: int
    win_rate: float  # percentage
    max_streak: int
    grade: str
    xp_earned: int
    duration: int = 0  # seconds


@dataclass(frozen=True)
class SavedProgress:
    """Everything that outlives a single session."""

    total_profit: float = 0.0
    total_trades: int = 0
    total_sessions: int = 0
    total_wins: int = 0
    total_losses: int = 0
    best_session_pnl: float = 0.0
    worst_session_pnl: float = 0.0
    best_streak: int = 0
    longest_session: int = 0

    level: int = 1
    xp: int = 0

    achievements: tuple[str, ...] = ()
    achievement_progress: dict[str, float] = field(default_factory=dict)

    daily_streak: int = 0
    last_play_date: str = ""  # YYYY-MM-DD
    traded_symbols: tuple[str, ...] = ()

    recent_sessions: tuple[SessionRecord, ...] = ()


_FIELD_NAMES = frozenset(f.name for f in fields(SavedProgress))
_SCALAR_COLUMNS = (
    "total_profit", "total_trades", "total_sessions", "total_wins",
    "total_losses", "best_session_pnl", "worst_session_pnl", "best_streak",
    "longest_session", "level", "xp", "daily_streak", "last_play_date",
)


def _check_fields(changes: dict) -> None:
    unknown = set(changes) - _FIELD_NAMES
    if unknown:
        raise ValueError(f"unknown progress field(s): {', '.join(sorted(unknown))}")


@runtime_checkable
class ProgressStore(Protocol):
    """Storage interface for ``SavedProgress``."""

    def load(self) -> SavedProgress:
        """Return the stored progress (defaults for a new player)."""
        ...

    def save(self, **changes) -> SavedProgress:
        """Apply *changes* to the stored progress and return the result."""
        ...


class InMemoryProgressStore:
    """Keeps progress in process memory."""

    def __init__(self, initial: SavedProgress | None = None) -> None:
        self._progress = initial or SavedProgress()

    def load(self) -> SavedProgress:
        return self._progress

    def save(self, **changes) -> SavedProgress:
        _check_fields(changes)
        self._progress = replace(self._progress, **changes)
        return self._progress


class SqliteProgressStore:
    """Progress persisted to SQLite.

    Args:
        db_path: Path to the SQLite database file.  The schema is created
                 on construction.  Each call opens its own connection, so
                 ``":memory:"`` does not persist between calls.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        init_db(db_path)

    # ── Read ─────────────────────────────────────────────────────────────

    def load(self) -> SavedProgress:
        conn = get_connection(self._db_path)
        try:
            row = dict(
                conn.execute("SELECT * FROM player_progress WHERE id = 1").fetchone()
            )
            achievements = tuple(
                r["achievement_id"]
                for r in conn.execute(
                    "SELECT achievement_id FROM achievements ORDER BY rowid"
                ).fetchall()
            )
            achievement_progress = {
                r["achievement_id"]: r["value"]
                for r in conn.execute(
                    "SELECT achievement_id, value FROM achievement_progress"
                ).fetchall()
            }
            sessions = tuple(
                SessionRecord(**{k: r[k] for k in r.keys() if k != "id"})
                for r in conn.execute(
                    "SELECT * FROM session_records ORDER BY id DESC LIMIT ?",
                    (RECENT_SESSIONS_LIMIT,),
                ).fetchall()
            )
        finally:
            conn.close()

        return SavedProgress(
            **{col: row[col] for col in _SCALAR_COLUMNS},
            achievements=achievements,
            achievement_progress=achievement_progress,
            traded_symbols=tuple(json.loads(row["traded_symbols"])),
            recent_sessions=sessions,
        )

    # ── Write ────────────────────────────────────────────────────────────

    def save(self, **changes) -> SavedProgress:
        _check_fields(changes)
        conn = get_connection(self._db_path)
        try:
            scalars = {k: v for k, v in changes.items() if k in _SCALAR_COLUMNS}
            if "traded_symbols" in changes:
                scalars["traded_symbols"] = json.dumps(list(changes["traded_symbols"]))
            if scalars:
                assignments = ", ".join(f"{col} = ?" for col in scalars)
                conn.execute(
                    f"UPDATE player_progress SET {assignments} WHERE id = 1",
                    tuple(scalars.values()),
                )

            if "achievements" in changes:
                wanted = list(dict.fromkeys(changes["achievements"]))
                conn.executemany(
                    "INSERT OR IGNORE INTO achievements (achievement_id) VALUES (?)",
                    [(a,) for a in wanted],
                )
                placeholders = ", ".join("?" for _ in wanted) or "''"
                conn.execute(
                    f"DELETE FROM achievements WHERE achievement_id NOT IN ({placeholders})",
                    tuple(wanted),
                )

            if "achievement_progress" in changes:
                conn.executemany(
                    """
                    INSERT INTO achievement_progress (achievement_id, value)
                    VALUES (?, ?)
                    ON CONFLICT(achievement_id) DO UPDATE SET value = excluded.value
                    """,
                    list(changes["achievement_progress"].items()),
                )

            if "recent_sessions" in changes:
                conn.execute("DELETE FROM session_records")
                records = list(changes["recent_sessions"])[:RECENT_SESSIONS_LIMIT]
                # Stored oldest first so ``ORDER BY id DESC`` yields newest first.
                conn.executemany(
                    """
                    INSERT INTO session_records
                        (date, symbol, pnl, trades, win_rate, max_streak,
                         grade, xp_earned, duration)
                    VALUES (:date, :symbol, :pnl, :trades, :win_rate,
                            :max_streak, :grade, :xp_earned, :duration)
                    """,
                    [asdict(r) for r in reversed(records)],
                )

            conn.commit()
        finally:
            conn.close()
        return self.load()
