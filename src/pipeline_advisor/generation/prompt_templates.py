"""Prompt templates for the parameter override model."""

from __future__ import annotations

import json

from pipeline_advisor.models.domain import MergeSignal

MAX_SECTION_CHARS = 2000

OVERRIDE_SYSTEM = """You are a CI/CD configuration assistant.
Respond with ONLY a single JSON object, no commentary.
Include a field ONLY if you want to override the default shown to you.
Prefer simple, safe commands (npm, pytest, mvn, gradle, docker)."""

OVERRIDE_PROMPT = """Given repository evidence and classifier hints, output a JSON object
with overrides for the CI parameters below.

Repository evidence:
{features_summary}

Classifier hints:
{signal_summary}

Current defaults:
{defaults}

Allowed top-level keys: {allowed_keys}"""


def format_signal_summary(signal: MergeSignal | None, max_labels: int = 5) -> str:
    if signal is None:
        return "none"
    lines = [f"chosen: {', '.join(signal.chosen)}"]
    for m in signal.merged[:max_labels]:
        lines.append(
            f"- {m.label}: combined={m.combined_score:.2f} "
            f"rule={m.rule_score:.2f} model={m.classifier_score:.2f}"
        )
    return "\n".join(lines)


def format_defaults(defaults: dict) -> str:
    return json.dumps(defaults, indent=2, sort_keys=True)[:MAX_SECTION_CHARS]
