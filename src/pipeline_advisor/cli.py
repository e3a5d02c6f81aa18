"""Command-line entry point: features.json in, values.json out.

Usage:
    pipeline-advisor analyze features.json [--output values.json]
    pipeline-advisor detect features.json
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from pipeline_advisor.config.settings import Settings
from pipeline_advisor.detection.rules import RuleEngine
from pipeline_advisor.exceptions import FeaturesError
from pipeline_advisor.features.normalizer import parse_features
from pipeline_advisor.observability.logger import setup_logging
from pipeline_advisor.pipeline.factory import create_pipeline

EXIT_BAD_INPUT = 2


def print_header(title: str) -> None:
    print(f"\n{'=' * 64}", file=sys.stderr)
    print(f"  {title}", file=sys.stderr)
    print(f"{'=' * 64}", file=sys.stderr)


async def run_analyze(settings: Settings, features_path: Path, output: Path | None) -> int:
    text = features_path.read_text(encoding="utf-8")
    pipeline = await create_pipeline(settings, persist_traces=settings.trace_db_path != "")
    result = await pipeline.run(text)
    values = result.to_values()

    payload = json.dumps(values, indent=2)
    if output is None:
        print(payload)
    else:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(payload, encoding="utf-8")

    print_header("ANALYSIS")
    print(f"  project_type:     {values['project_type']}", file=sys.stderr)
    print(f"  language:         {values['language']}", file=sys.stderr)
    print(f"  package_manager:  {values['package_manager'] or '-'}", file=sys.stderr)
    print(f"  chosen:           {', '.join(result.trail.chosen)}", file=sys.stderr)
    if result.trail.degraded:
        print(f"  degraded:         {'; '.join(result.trail.reasons)}", file=sys.stderr)
    if output is not None:
        print(f"\nValues written to {output}", file=sys.stderr)
    return 0


def run_detect(settings: Settings, features_path: Path) -> int:
    doc = parse_features(features_path.read_text(encoding="utf-8"))
    detection = RuleEngine(settings).detect(doc)
    print_header("RULE CANDIDATES")
    for c in detection.candidates:
        print(f"  {c.label:<16} {c.confidence:>5.2f}  {c.reason}", file=sys.stderr)
    print_header("SUMMARY")
    print(detection.summary, file=sys.stderr)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pipeline-advisor",
        description="Choose a CI/CD pipeline type and parameters from a repository features document",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    analyze = sub.add_parser("analyze", help="Run the full analysis and emit values JSON")
    analyze.add_argument("features", type=Path, help="Path to the features JSON document")
    analyze.add_argument(
        "--output", "-o", type=Path, default=None, help="Write values JSON here instead of stdout"
    )
    analyze.add_argument(
        "--multi-template",
        action="store_true",
        help="Accept every label at or above the merge threshold",
    )
    analyze.add_argument(
        "--no-traces", action="store_true", help="Do not persist the run trace to SQLite"
    )

    detect = sub.add_parser("detect", help="Show rule candidates and the evidence summary")
    detect.add_argument("features", type=Path, help="Path to the features JSON document")

    parser.add_argument("--log-level", default=None, help="Override ADVISOR_LOG_LEVEL")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    overrides: dict = {}
    if args.log_level:
        overrides["log_level"] = args.log_level
    if getattr(args, "multi_template", False):
        overrides["multi_template"] = True
    if getattr(args, "no_traces", False):
        overrides["trace_db_path"] = ""
    settings = Settings(**overrides)
    setup_logging(settings.log_level, settings.json_logs)

    try:
        if args.command == "analyze":
            return asyncio.run(run_analyze(settings, args.features, args.output))
        return run_detect(settings, args.features)
    except FeaturesError as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_BAD_INPUT
    except OSError as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_BAD_INPUT


if __name__ == "__main__":
    sys.exit(main())
