"""SQLite-backed diagnostics sink for stage attempt records."""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime
from pathlib import Path

from resume_curator.logging.models import StageAttemptRecord

DEFAULT_DB_PATH = Path.home() / ".resume-curator" / "diagnostics.db"


class DiagnosticsStore:
    """SQLite-backed store for stage attempt records with WAL mode.

    An instance is callable, so it can be passed directly as the
    orchestrator's ``on_diagnostic`` sink.
    """

    def __init__(self, db_path: str | Path = DEFAULT_DB_PATH):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def __call__(self, record: StageAttemptRecord) -> None:
        self.save_record(record)

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path))
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS stage_attempts (
                    id TEXT PRIMARY KEY,
                    run_id TEXT NOT NULL,
                    timestamp TEXT NOT NULL,
                    stage TEXT NOT NULL,
                    attempt INTEGER NOT NULL,
                    status TEXT NOT NULL,
                    tokens_in INTEGER NOT NULL DEFAULT 0,
                    tokens_out INTEGER NOT NULL DEFAULT 0,
                    cost_estimate REAL NOT NULL DEFAULT 0.0,
                    duration_ms INTEGER NOT NULL DEFAULT 0,
                    issues TEXT NOT NULL DEFAULT '[]'
                )
            """)
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_stage_attempts_run ON stage_attempts (run_id)"
            )

    def save_record(self, record: StageAttemptRecord) -> None:
        """Persist one attempt record."""
        with self._connect() as conn:
            conn.execute(
                """INSERT OR REPLACE INTO stage_attempts
                   (id, run_id, timestamp, stage, attempt, status, tokens_in,
                    tokens_out, cost_estimate, duration_ms, issues)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    record.id,
                    record.run_id,
                    record.timestamp.isoformat(),
                    record.stage,
                    record.attempt,
                    record.status,
                    record.tokens_in,
                    record.tokens_out,
                    record.cost_estimate,
                    record.duration_ms,
                    json.dumps(record.issues),
                ),
            )

    def get_records(self, run_id: str) -> list[StageAttemptRecord]:
        """All attempt records for a run, in the order they happened."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM stage_attempts WHERE run_id = ? ORDER BY timestamp, attempt",
                (run_id,),
            ).fetchall()
        return [self._row_to_record(row) for row in rows]

    def get_run_summary(self, run_id: str) -> dict:
        """Aggregated attempts, tokens and cost for one run."""
        with self._connect() as conn:
            row = conn.execute(
                """SELECT
                       COUNT(*) as attempts,
                       SUM(tokens_in) as tokens_in,
                       SUM(tokens_out) as tokens_out,
                       SUM(cost_estimate) as cost,
                       SUM(duration_ms) as duration_ms,
                       SUM(CASE WHEN status = 'failed' THEN 1 ELSE 0 END) as failures
                   FROM stage_attempts
                   WHERE run_id = ?""",
                (run_id,),
            ).fetchone()
        return {
            "run_id": run_id,
            "attempts": row[0] or 0,
            "tokens_in": row[1] or 0,
            "tokens_out": row[2] or 0,
            "cost_usd": row[3] or 0.0,
            "duration_ms": row[4] or 0,
            "failures": row[5] or 0,
        }

    def list_runs(self, limit: int = 20) -> list[str]:
        """Most recent run ids first."""
        with self._connect() as conn:
            rows = conn.execute(
                """SELECT run_id, MAX(timestamp) AS last FROM stage_attempts
                   GROUP BY run_id ORDER BY last DESC LIMIT ?""",
                (limit,),
            ).fetchall()
        return [row[0] for row in rows]

    @staticmethod
    def _row_to_record(row: tuple) -> StageAttemptRecord:
        return StageAttemptRecord(
            id=row[0],
            run_id=row[1],
            timestamp=datetime.fromisoformat(row[2]),
            stage=row[3],
            attempt=row[4],
            status=row[5],
            tokens_in=row[6],
            tokens_out=row[7],
            cost_estimate=row[8],
            duration_ms=row[9],
            issues=json.loads(row[10]),
        )
