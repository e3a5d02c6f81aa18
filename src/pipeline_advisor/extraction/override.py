"""Locate, validate and merge model-proposed overrides onto the deterministic document."""

from __future__ import annotations

import json

from pydantic import ValidationError

from pipeline_advisor.exceptions import GenerationError
from pipeline_advisor.models.schemas import ParameterDocument

_decoder = json.JSONDecoder()


def extract_json_object(text: str) -> dict | None:
    """Return the first well-formed JSON object embedded in free text, else None."""
    start = text.find("{")
    while start != -1:
        try:
            value, _ = _decoder.raw_decode(text, start)
        except json.JSONDecodeError:
            start = text.find("{", start + 1)
            continue
        if isinstance(value, dict):
            return value
        start = text.find("{", start + 1)
    return None


def apply_overrides(base: ParameterDocument, overrides: dict) -> ParameterDocument:
    """Scalars replace; dict-valued fields are unioned one level deep.

    Unknown keys and null values are ignored, so an override can never blank
    out a deterministic field it did not mean to touch. ``base`` is not mutated.
    """
    merged = base.model_dump()
    for key, value in overrides.items():
        if key not in ParameterDocument.model_fields or value is None:
            continue
        current = merged[key]
        if isinstance(current, dict):
            if not isinstance(value, dict):
                raise GenerationError(f"override for {key!r} must be an object")
            merged[key] = {**current, **{k: v for k, v in value.items() if v is not None}}
        else:
            merged[key] = value

    try:
        return ParameterDocument.model_validate(merged)
    except ValidationError as e:
        raise GenerationError(f"override failed validation: {e.error_count()} errors") from e
