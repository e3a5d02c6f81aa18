"""Compact, size-bounded evidence summary used as zero-shot classifier input."""

from __future__ import annotations

from pipeline_advisor.models.domain import FeaturesDocument

MAX_DESCRIPTION_CHARS = 200
MAX_SUMMARY_CHARS = 1500


def build_summary(
    doc: FeaturesDocument,
    max_files: int = 30,
    max_languages: int = 8,
) -> str:
    """Same document in, same string out: every list is ordered before truncation."""
    languages = sorted(doc.languages.items(), key=lambda kv: (-kv[1], kv[0]))[:max_languages]
    files = sorted(set(doc.detected_files), key=lambda f: (f.count("/"), f))[:max_files]
    if not files:
        files = sorted(set(doc.file_type_keys))[:max_files]

    lines = []
    if doc.description:
        lines.append(doc.description.strip()[:MAX_DESCRIPTION_CHARS])
    lines.append(f"Dominant language: {doc.dominant_language or 'unknown'}")
    lines.append("Languages: " + ", ".join(f"{name} {pct:.1f}%" for name, pct in languages))
    lines.append("Frameworks: " + ", ".join(sorted(set(doc.frameworks))))
    lines.append("Dockerfile: " + ("yes" if doc.has_dockerfile else "no"))
    if doc.recommended_templates:
        lines.append("Recommended: " + ", ".join(sorted(set(doc.recommended_templates))))
    lines.append("Files: " + ", ".join(files))
    return "\n".join(lines)[:MAX_SUMMARY_CHARS]
