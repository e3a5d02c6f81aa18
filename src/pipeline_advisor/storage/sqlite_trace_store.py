"""SQLite-backed analysis trace store: why each repository got its pipeline type."""

from __future__ import annotations

import json
from datetime import datetime, timezone

import aiosqlite

from pipeline_advisor.models.domain import AnalysisTrace
from pipeline_advisor.storage.migrations import initialize_trace_db


class SQLiteTraceStore:
    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    async def initialize(self) -> None:
        await initialize_trace_db(self._db_path)

    async def save_trace(self, trace: AnalysisTrace) -> None:
        async with aiosqlite.connect(self._db_path) as db:
            await db.execute(
                "INSERT OR REPLACE INTO analysis_traces "
                "(trace_id, repo, timestamp, latency_ms, project_type, chosen, "
                "classifier_status, override_status, reason_codes, spans) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    trace.trace_id,
                    trace.repo,
                    trace.timestamp.isoformat(),
                    trace.latency_ms,
                    trace.project_type,
                    json.dumps(trace.chosen),
                    trace.classifier_status,
                    trace.override_status,
                    json.dumps(trace.reason_codes),
                    json.dumps(trace.spans, default=str),
                ),
            )
            await db.commit()

    async def get_trace(self, trace_id: str) -> AnalysisTrace | None:
        async with aiosqlite.connect(self._db_path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute(
                "SELECT * FROM analysis_traces WHERE trace_id = ?", (trace_id,)
            ) as cursor:
                row = await cursor.fetchone()
                if row is None:
                    return None
                return self._row_to_trace(row)

    async def get_recent_traces(
        self, repo: str | None = None, limit: int = 100
    ) -> list[AnalysisTrace]:
        query = "SELECT * FROM analysis_traces"
        params: tuple = ()
        if repo is not None:
            query += " WHERE repo = ?"
            params = (repo,)
        query += " ORDER BY timestamp DESC LIMIT ?"
        async with aiosqlite.connect(self._db_path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute(query, (*params, limit)) as cursor:
                rows = await cursor.fetchall()
                return [self._row_to_trace(row) for row in rows]

    @staticmethod
    def _row_to_trace(row: aiosqlite.Row) -> AnalysisTrace:
        timestamp = datetime.fromisoformat(row["timestamp"])
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)
        return AnalysisTrace(
            trace_id=row["trace_id"],
            repo=row["repo"],
            timestamp=timestamp,
            latency_ms=row["latency_ms"],
            project_type=row["project_type"],
            chosen=json.loads(row["chosen"]),
            classifier_status=row["classifier_status"],
            override_status=row["override_status"],
            reason_codes=json.loads(row["reason_codes"]),
            spans=json.loads(row["spans"]),
        )
