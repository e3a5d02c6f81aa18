"""Tests for the classifier adapter: cache, timeout and fallback behavior."""

import asyncio

import pytest

from pipeline_advisor.classification.adapter import PLACEHOLDER_SUMMARY, ClassifierAdapter
from pipeline_advisor.classification.cache import ClassificationCache
from pipeline_advisor.exceptions import ClassifierError

SUMMARY = "Dominant language: Python\nFiles: requirements.txt"
LABELS = ["python", "node", "docker"]


@pytest.fixture
async def cache(settings):
    c = ClassificationCache(settings.classifier_cache_db_path)
    await c.initialize()
    return c


async def test_no_client_is_unavailable():
    adapter = ClassifierAdapter()
    outcome = await adapter.try_classify(SUMMARY, LABELS)
    assert outcome.status == "unavailable"
    assert outcome.reason == "no-token"


async def test_no_client_falls_back_to_heuristic():
    result = await ClassifierAdapter().classify(SUMMARY, LABELS)
    assert result.source == "heuristic"
    assert result.raw["status"] == "unavailable"
    assert result.labels[0] == "python"


async def test_fallback_disabled_returns_empty():
    result = await ClassifierAdapter(heuristic_fallback=False).classify(SUMMARY, LABELS)
    assert result.is_empty
    assert result.source == "none"
    assert result.raw["status"] == "unavailable"


async def test_model_result_passes_through(fake_classifier_cls):
    client = fake_classifier_cls({"python": 0.9, "node": 0.2})
    result = await ClassifierAdapter(client=client).classify(SUMMARY, LABELS)
    assert result.source == "model"
    assert result.raw["status"] == "ok"
    assert result.as_map()["python"] == pytest.approx(0.9)
    assert set(result.labels) == set(LABELS)


async def test_short_summary_is_replaced(fake_classifier_cls):
    seen = []

    class Recording(fake_classifier_cls):
        async def classify(self, text, candidate_labels, multi_label=True):
            seen.append(text)
            return await super().classify(text, candidate_labels, multi_label)

    await ClassifierAdapter(client=Recording()).classify("  tiny ", LABELS)
    assert seen == [PLACEHOLDER_SUMMARY]


async def test_timeout_degrades_to_heuristic(fake_classifier_cls):
    client = fake_classifier_cls({"python": 0.9}, delay=1.0)
    adapter = ClassifierAdapter(client=client, timeout_s=0.05)
    result = await adapter.classify(SUMMARY, LABELS)
    assert result.source == "heuristic"
    assert result.raw["status"] == "failed"
    assert "timeout" in result.raw["error"]


async def test_client_error_degrades(fake_classifier_cls):
    client = fake_classifier_cls(error=ClassifierError("503 loading"))
    outcome = await ClassifierAdapter(client=client).try_classify(SUMMARY, LABELS)
    assert outcome.status == "failed"
    assert "503" in outcome.reason


async def test_cache_hit_skips_client(fake_classifier_cls, cache):
    client = fake_classifier_cls({"python": 0.8})
    adapter = ClassifierAdapter(client=client, cache=cache)

    first = await adapter.classify(SUMMARY, LABELS)
    second = await adapter.classify(SUMMARY, list(reversed(LABELS)))

    assert client.calls == 1
    assert first.source == "model"
    assert second.source == "cache"
    assert second.as_map() == first.as_map()


async def test_failed_call_is_not_cached(fake_classifier_cls, cache):
    failing = fake_classifier_cls(error=RuntimeError("boom"))
    await ClassifierAdapter(client=failing, cache=cache).classify(SUMMARY, LABELS)
    assert await cache.get(SUMMARY, LABELS, failing.model) is None


async def test_concurrent_calls_are_independent(fake_classifier_cls):
    adapter = ClassifierAdapter(client=fake_classifier_cls({"node": 0.7}))
    results = await asyncio.gather(
        *(adapter.classify(f"{SUMMARY} #{i}", LABELS) for i in range(5))
    )
    assert all(r.as_map()["node"] == pytest.approx(0.7) for r in results)


@pytest.mark.parametrize(
    "stored",
    ["{not json", '{"labels": ["node"]}', '["node"]', '{"model": "m", "labels": ["a"], "scores": []}'],
)
async def test_corrupt_cache_row_is_a_miss(fake_classifier_cls, cache, settings, stored):
    import aiosqlite

    client = fake_classifier_cls({"python": 0.8})
    key = ClassificationCache.key(SUMMARY, LABELS, client.model)
    async with aiosqlite.connect(settings.classifier_cache_db_path) as db:
        await db.execute(
            "INSERT OR REPLACE INTO classifier_cache (request_hash, result) VALUES (?, ?)",
            (key, stored),
        )
        await db.commit()

    assert await cache.get(SUMMARY, LABELS, client.model) is None

    result = await ClassifierAdapter(client=client, cache=cache).classify(SUMMARY, LABELS)
    assert client.calls == 1
    assert result.source == "model"
    assert (await cache.get(SUMMARY, LABELS, client.model)).source == "cache"
