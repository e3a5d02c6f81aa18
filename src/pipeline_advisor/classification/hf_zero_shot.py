"""Hugging Face Inference API zero-shot classifier over httpx."""

from __future__ import annotations

import httpx

from pipeline_advisor.exceptions import ClassifierError
from pipeline_advisor.models.domain import ClassifierResult
from pipeline_advisor.observability.logger import get_logger

logger = get_logger("hf_zero_shot")


def normalize_response(data: object) -> tuple[list[str], list[float]]:
    """Accept every response shape the inference API has been seen to return.

    - ``{"labels": [...], "scores": [...]}``
    - ``[{"labels": [...], "scores": [...]}]`` (batched)
    - ``[{"label": ..., "score": ...}, ...]``
    """
    if isinstance(data, list) and len(data) == 1 and isinstance(data[0], dict) and "labels" in data[0]:
        data = data[0]

    if isinstance(data, dict) and "labels" in data and "scores" in data:
        labels, scores = data["labels"], data["scores"]
    elif isinstance(data, list) and all(isinstance(d, dict) and "label" in d for d in data):
        labels = [d["label"] for d in data]
        scores = [d.get("score", 0.0) for d in data]
    else:
        raise ClassifierError(f"unexpected zero-shot response shape: {type(data).__name__}")

    if not isinstance(labels, list) or not isinstance(scores, list) or len(labels) != len(scores):
        raise ClassifierError("zero-shot response labels/scores are not parallel lists")
    try:
        return [str(label) for label in labels], [float(s) for s in scores]
    except (TypeError, ValueError) as e:
        raise ClassifierError(f"non-numeric zero-shot score: {e}") from e


class HuggingFaceZeroShotClassifier:
    def __init__(
        self,
        api_token: str,
        model: str = "facebook/bart-large-mnli",
        base_url: str = "https://api-inference.huggingface.co/models",
        timeout_s: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_token = api_token
        self._model = model
        self._base_url = base_url.rstrip("/")
        self._timeout = httpx.Timeout(timeout_s)
        self._transport = transport

    @property
    def model(self) -> str:
        return self._model

    async def classify(
        self,
        text: str,
        candidate_labels: list[str],
        multi_label: bool = True,
    ) -> ClassifierResult:
        payload = {
            "inputs": text,
            "parameters": {"candidate_labels": candidate_labels, "multi_label": multi_label},
        }
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(
                    f"{self._base_url}/{self._model}",
                    json=payload,
                    headers={"Authorization": f"Bearer {self._api_token}"},
                )
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            raise ClassifierError(
                f"zero-shot request failed with status {e.response.status_code}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise ClassifierError(f"zero-shot request failed: {e}") from e

        labels, scores = normalize_response(data)
        logger.info("zero_shot_classified", model=self._model, labels=labels[:5])
        return ClassifierResult(
            model=self._model,
            labels=labels,
            scores=scores,
            raw={"response": data},
            source="model",
        )
