"""Idempotent database schema creation."""

from __future__ import annotations

import aiosqlite

TRACES_TABLE = """
CREATE TABLE IF NOT EXISTS analysis_traces (
    trace_id TEXT PRIMARY KEY,
    repo TEXT NOT NULL,
    timestamp TEXT NOT NULL,
    latency_ms REAL NOT NULL,
    project_type TEXT NOT NULL,
    chosen TEXT NOT NULL DEFAULT '[]',
    classifier_status TEXT NOT NULL,
    override_status TEXT NOT NULL,
    reason_codes TEXT NOT NULL DEFAULT '[]',
    spans TEXT NOT NULL DEFAULT '[]'
)
"""

TRACES_TIMESTAMP_INDEX = """
CREATE INDEX IF NOT EXISTS idx_analysis_traces_timestamp ON analysis_traces(timestamp)
"""

TRACES_REPO_INDEX = """
CREATE INDEX IF NOT EXISTS idx_analysis_traces_repo ON analysis_traces(repo)
"""


async def initialize_trace_db(db_path: str) -> None:
    async with aiosqlite.connect(db_path) as db:
        await db.execute(TRACES_TABLE)
        await db.execute(TRACES_TIMESTAMP_INDEX)
        await db.execute(TRACES_REPO_INDEX)
        await db.commit()
