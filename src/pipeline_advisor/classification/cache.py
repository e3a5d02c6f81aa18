"""SQLite-backed classification cache keyed by a content hash of the request."""

from __future__ import annotations

import hashlib
import json

import aiosqlite

from pipeline_advisor.models.domain import ClassifierResult
from pipeline_advisor.observability.logger import get_logger

logger = get_logger("classifier_cache")

CREATE_CACHE_TABLE = """
CREATE TABLE IF NOT EXISTS classifier_cache (
    request_hash TEXT PRIMARY KEY,
    result TEXT NOT NULL
)
"""


class ClassificationCache:
    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    async def initialize(self) -> None:
        async with aiosqlite.connect(self._db_path) as db:
            await db.execute(CREATE_CACHE_TABLE)
            await db.commit()

    async def get(self, summary: str, labels: list[str], model: str) -> ClassifierResult | None:
        key = self.key(summary, labels, model)
        async with aiosqlite.connect(self._db_path) as db:
            async with db.execute(
                "SELECT result FROM classifier_cache WHERE request_hash = ?",
                (key,),
            ) as cursor:
                row = await cursor.fetchone()
        if row is None:
            return None

        # An undecodable row is a miss; the next successful call overwrites it
        try:
            data = json.loads(row[0])
            raw = data.get("raw")
            return ClassifierResult(
                model=str(data["model"]),
                labels=list(data["labels"]),
                scores=[float(s) for s in data["scores"]],
                raw=raw if isinstance(raw, dict) else {},
                source="cache",
            )
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning("classifier_cache_row_invalid", request_hash=key, error=str(e))
            return None

    async def put(
        self, summary: str, labels: list[str], model: str, result: ClassifierResult
    ) -> None:
        # Same key always maps to the same value, so REPLACE is safe under concurrent writers
        payload = {
            "model": result.model,
            "labels": result.labels,
            "scores": result.scores,
            "raw": result.raw,
        }
        async with aiosqlite.connect(self._db_path) as db:
            await db.execute(
                "INSERT OR REPLACE INTO classifier_cache (request_hash, result) VALUES (?, ?)",
                (self.key(summary, labels, model), json.dumps(payload, default=str)),
            )
            await db.commit()

    @staticmethod
    def key(summary: str, labels: list[str], model: str) -> str:
        material = json.dumps(
            {"summary": summary, "labels": sorted(set(labels)), "model": model},
            sort_keys=True,
        )
        return hashlib.sha256(material.encode("utf-8")).hexdigest()
