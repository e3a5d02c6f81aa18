"""Per-run stage timing. One TraceContext per analysis run, one Span per stage."""

from __future__ import annotations

import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import uuid4

from pipeline_advisor.models.domain import AnalysisTrace


@dataclass
class Span:
    name: str
    started: float
    finished: float | None = None
    metadata: dict = field(default_factory=dict)
    error: str = ""

    @property
    def duration_ms(self) -> float:
        if self.finished is None:
            return 0.0
        return (self.finished - self.started) * 1000

    def as_dict(self, origin: float) -> dict:
        out = {
            "name": self.name,
            "offset_ms": round((self.started - origin) * 1000, 3),
            "duration_ms": round(self.duration_ms, 3),
            **self.metadata,
        }
        if self.error:
            out["error"] = self.error
        return out


class TraceContext:
    def __init__(self, trace_id: str | None = None) -> None:
        self.trace_id = trace_id or str(uuid4())
        self.started_at = datetime.now(timezone.utc)
        self.spans: list[Span] = []
        self._origin = time.perf_counter()

    @contextmanager
    def span(self, name: str, **metadata):
        """Time a stage. A stage that raises is still recorded, with its error."""
        s = Span(name=name, started=time.perf_counter(), metadata=metadata)
        self.spans.append(s)
        try:
            yield s
        except Exception as e:
            s.error = f"{type(e).__name__}: {e}"
            raise
        finally:
            s.finished = time.perf_counter()

    @property
    def last(self) -> Span | None:
        return self.spans[-1] if self.spans else None

    @property
    def elapsed_ms(self) -> float:
        return (time.perf_counter() - self._origin) * 1000

    def stage_durations(self) -> dict[str, float]:
        return {s.name: round(s.duration_ms, 3) for s in self.spans}

    def to_trace(
        self,
        repo: str,
        project_type: str,
        chosen: list[str],
        classifier_status: str,
        override_status: str,
        reason_codes: list[str],
    ) -> AnalysisTrace:
        return AnalysisTrace(
            trace_id=self.trace_id,
            repo=repo,
            timestamp=self.started_at,
            latency_ms=self.elapsed_ms,
            project_type=project_type,
            chosen=list(chosen),
            classifier_status=classifier_status,
            override_status=override_status,
            reason_codes=list(reason_codes),
            spans=[s.as_dict(self._origin) for s in self.spans],
        )
