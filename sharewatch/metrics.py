"""Metrics persistence to SQLite for observability."""

from __future__ import annotations

import sqlite3
from datetime import datetime
from pathlib import Path

from .coordinator import ItemOutcome, RunResult


class MetricsStore:
    def __init__(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(path)
        self.conn.row_factory = sqlite3.Row
        self._ensure_tables()

    def _ensure_tables(self) -> None:
        self.conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS runs (
                run_id TEXT PRIMARY KEY,
                started_at TEXT,
                ended_at TEXT,
                duration_s REAL,
                dry_run INTEGER,
                items_examined INTEGER,
                total_score INTEGER,
                alerts_sent INTEGER,
                state TEXT
            );
            CREATE TABLE IF NOT EXISTS fetch (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                run_id TEXT,
                item_key TEXT,
                status TEXT,
                record_count INTEGER,
                score INTEGER,
                error TEXT
            );
            CREATE TABLE IF NOT EXISTS alerts (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                run_id TEXT,
                item_key TEXT,
                score INTEGER,
                previous_score INTEGER,
                ts TEXT
            );
            """
        )

    def record_run_start(self, run_id: str, started_at: datetime, dry_run: bool) -> None:
        self.conn.execute(
            "INSERT OR REPLACE INTO runs(run_id, started_at, dry_run) VALUES (?, ?, ?)",
            (run_id, started_at.isoformat(), int(dry_run)),
        )
        self.conn.commit()

    def record_run_end(self, run_id: str, ended_at: datetime, duration_s: float, result: RunResult) -> None:
        self.conn.execute(
            """
            UPDATE runs SET ended_at = ?, duration_s = ?, items_examined = ?, total_score = ?, alerts_sent = ?, state = ?
            WHERE run_id = ?
            """,
            (
                ended_at.isoformat(),
                duration_s,
                result.items_examined,
                result.total_score,
                result.alerts_sent,
                result.state.value,
                run_id,
            ),
        )
        self.conn.commit()

    def record_outcome(self, run_id: str, outcome: ItemOutcome, timestamp: datetime) -> None:
        self.conn.execute(
            "INSERT INTO fetch(run_id, item_key, status, record_count, score, error) VALUES (?,?,?,?,?,?)",
            (run_id, outcome.key, outcome.status, outcome.record_count, outcome.score, outcome.error or ""),
        )
        if outcome.alerted:
            self.conn.execute(
                "INSERT INTO alerts(run_id, item_key, score, previous_score, ts) VALUES (?,?,?,?,?)",
                (run_id, outcome.key, outcome.score, outcome.previous_alerted_score, timestamp.isoformat()),
            )
        self.conn.commit()

    def close(self) -> None:
        self.conn.close()
