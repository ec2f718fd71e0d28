#!/usr/bin/env python3
"""Quality metrics CLI.

Usage:
    quality-metrics init-db
    quality-metrics seed
    quality-metrics collect --junit unit=report.xml --coverage unit=coverage/coverage-summary.json \\
        --lighthouse lhr.json --build-dir build
    quality-metrics latest --branch main
    quality-metrics trends --branch main
    quality-metrics stats --branch main
    quality-metrics gate --branch main --markdown
    quality-metrics serve --port 8000
"""
import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ValidationError

from .collector import CollectorInputs, collect_metrics
from .config import AppConfig, configure_logging, load_config
from .database import get_engine, get_session_factory, init_db
from .gate import evaluate_gate, format_gate_report
from .seed import seed_sample_metrics
from .service import TEST_SUITES, QualityMetricsService, build_service
from .store import QualityMetricsStore

logger = logging.getLogger(__name__)


def _dump(value) -> str:
    if isinstance(value, BaseModel):
        return value.model_dump_json(by_alias=True, indent=2)
    if isinstance(value, list):
        return json.dumps(
            [v.model_dump(by_alias=True, mode="json") for v in value], indent=2
        )
    return json.dumps(value, indent=2, default=str)


def _suite_paths(values: Optional[list[str]], option: str) -> list[tuple[str, Path]]:
    """Parse SUITE=PATH pairs."""
    pairs = []
    for value in values or []:
        suite, sep, path = value.partition("=")
        if not sep or suite not in TEST_SUITES:
            raise argparse.ArgumentTypeError(
                f"{option} expects SUITE=PATH with SUITE in {', '.join(TEST_SUITES)}, got '{value}'"
            )
        pairs.append((suite, Path(path)))
    return pairs


def _open_store(config: AppConfig) -> QualityMetricsStore:
    engine = get_engine(config.database.url, echo=config.database.echo)
    init_db(engine)
    return QualityMetricsStore(get_session_factory(engine))


def _service(config: AppConfig) -> QualityMetricsService:
    return build_service(_open_store(config), config.service)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def cmd_init_db(args, config: AppConfig) -> int:
    _open_store(config)
    print(f"✅ Database ready: {config.database.url}")
    return 0


def cmd_seed(args, config: AppConfig) -> int:
    inserted = seed_sample_metrics(_open_store(config))
    print(f"✅ Seeded {inserted} sample record(s)")
    return 0


def cmd_collect(args, config: AppConfig) -> int:
    try:
        inputs = CollectorInputs(
            lighthouse=args.lighthouse,
            axe=args.axe,
            build_dir=args.build_dir,
        )
        for suite, path in _suite_paths(args.junit, "--junit"):
            inputs.junit.setdefault(suite, []).append(path)
        for suite, path in _suite_paths(args.coverage, "--coverage"):
            inputs.coverage[suite] = path

        record = collect_metrics(inputs, commit_hash=args.commit, branch=args.branch)
    except (argparse.ArgumentTypeError, ValidationError) as e:
        print(f"❌ Invalid input: {e}", file=sys.stderr)
        return 2

    if args.dry_run:
        print("🔍 Dry run — not saving")
        print(record.model_dump_json(by_alias=True, indent=2, exclude_none=True))
        return 0

    stored = _open_store(config).save(record)
    print(f"✅ Stored {stored.id} ({stored.branch}@{stored.commit_hash[:8]})")
    return 0


def cmd_latest(args, config: AppConfig) -> int:
    latest = _service(config).get_latest(args.branch or config.service.default_branch)
    if latest is None:
        print("⚠️  No metrics recorded")
        return 0
    print(_dump(latest))
    return 0


def cmd_trends(args, config: AppConfig) -> int:
    trends = _service(config).get_trends(args.branch or config.service.default_branch)
    if not trends:
        print("⚠️  Not enough runs to compare")
        return 0

    arrows = {"up": "↑", "down": "↓", "stable": "→"}
    for t in trends:
        print(
            f"  {arrows[t.trend]} {t.metric:<24} {t.previous:g} → {t.current:g} "
            f"({t.change_percent:+.2f}%)"
        )
    return 0


def cmd_stats(args, config: AppConfig) -> int:
    stats = _service(config).get_statistics(args.branch or config.service.default_branch)
    print(_dump(stats))
    return 0


def cmd_gate(args, config: AppConfig) -> int:
    latest = _service(config).get_latest(args.branch or config.service.default_branch)
    result = evaluate_gate(latest, config.gate)
    print(format_gate_report(result) if args.markdown else _dump(result))
    return 0 if result.passed else 1


def cmd_serve(args, config: AppConfig) -> int:
    import uvicorn

    uvicorn.run(
        "quality_metrics.app:app",
        host=args.host,
        port=args.port,
        log_level=config.log_level.lower(),
    )
    return 0


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="quality-metrics",
        description="📊 CI quality metrics: collect, inspect, gate",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--config", help="YAML config file")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create tables").set_defaults(func=cmd_init_db)
    sub.add_parser("seed", help="Insert sample runs").set_defaults(func=cmd_seed)

    collect = sub.add_parser("collect", help="Collect CI artifacts into one record")
    collect.add_argument("--junit", action="append", metavar="SUITE=PATH",
                         help="JUnit XML for unit|integration|e2e (repeatable)")
    collect.add_argument("--coverage", action="append", metavar="SUITE=PATH",
                         help="Coverage summary JSON for a suite (repeatable)")
    collect.add_argument("--lighthouse", type=Path, help="Lighthouse JSON report")
    collect.add_argument("--axe", type=Path, help="axe-core JSON report")
    collect.add_argument("--build-dir", type=Path, help="Build output for bundle size")
    collect.add_argument("--commit", help="Commit hash (default: from CI env)")
    collect.add_argument("--branch", help="Branch (default: from CI env)")
    collect.add_argument("--dry-run", action="store_true", help="Print record, don't save")
    collect.set_defaults(func=cmd_collect)

    for name, func, help_text in (
        ("latest", cmd_latest, "Show newest run"),
        ("trends", cmd_trends, "Compare newest run with its predecessor"),
        ("stats", cmd_stats, "Rolling statistics"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("--branch", help="Branch (default: config default_branch)")
        p.set_defaults(func=func)

    gate = sub.add_parser("gate", help="Evaluate quality gate (exit 1 on failure)")
    gate.add_argument("--branch", help="Branch (default: config default_branch)")
    gate.add_argument("--markdown", action="store_true", help="Markdown report")
    gate.set_defaults(func=cmd_gate)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.set_defaults(func=cmd_serve)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config = load_config(args.config)

    configure_logging(config)
    return args.func(args, config)


if __name__ == "__main__":
    sys.exit(main())
