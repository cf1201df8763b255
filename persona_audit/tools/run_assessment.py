"""
persona-audit CLI: assess source files with every persona and report.

Directories are expanded to matching files in sorted order. The markdown
summary goes to stdout, logs to stderr. Report files are written when an
output directory is given (flag or PERSONA_AUDIT_OUTPUT_DIR). The first
Ctrl-C cancels between targets and still produces a partial report.

Exit status: 0 for a completed run (partial included), 1 on a configuration
error or when there is nothing to assess.

Usage:
  persona-audit src/ app.py --config persona-audit.json --output-dir reports/
  python -m persona_audit.tools.run_assessment src/ --no-notify
"""

from __future__ import annotations

import argparse
import signal
import sys
import threading
from pathlib import Path
from typing import Any, Sequence

from persona_audit.analytics.assessment_pipeline import AssessmentPipeline
from persona_audit.audit_logging import configure_logging, get_logger
from persona_audit.catalog.targets import DEFAULT_EXTENSIONS, TargetCatalog, collect_paths
from persona_audit.config.settings import build_notifier, get_settings, load_pipeline_config
from persona_audit.core.exceptions import ConfigurationError, EmptyCatalog

logger = get_logger(__name__)


def _parse_extensions(raw: str | None) -> tuple[str, ...]:
    if not raw:
        return DEFAULT_EXTENSIONS
    return tuple(e.strip() for e in raw.split(",") if e.strip())


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="persona-audit",
        description="Assess source files from several expert personas and produce a prioritized report.",
    )
    ap.add_argument("paths", nargs="+", help="Files or directories to assess")
    ap.add_argument("--config", default=None, help="JSON pipeline config (overrides PERSONA_AUDIT_CONFIG)")
    ap.add_argument("--output-dir", dest="output_dir", default=None, help="Directory for report files")
    ap.add_argument("--concurrency", type=int, default=None, help="Worker threads (default: CPU count)")
    ap.add_argument("--no-notify", dest="no_notify", action="store_true", help="Do not send the Telegram summary")
    ap.add_argument(
        "--extensions",
        default=None,
        help=f"Comma-separated extensions for directory expansion (default: {','.join(DEFAULT_EXTENSIONS)})",
    )
    ap.add_argument("--log-level", dest="log_level", default=None, help="Log level (overrides LOG_LEVEL)")
    return ap


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.log_level:
        configure_logging(level=args.log_level)
    settings = get_settings()

    config_path = Path(args.config) if args.config else settings.config_path
    output_dir = Path(args.output_dir) if args.output_dir else settings.output_dir
    concurrency = args.concurrency or settings.concurrency

    try:
        config = load_pipeline_config(config_path, output_dir=output_dir, concurrency=concurrency)
        notifier = None if args.no_notify else build_notifier(settings.notifier)
        pipeline = AssessmentPipeline.from_config(config, notifier=notifier)
    except ConfigurationError as e:
        logger.error("cli_configuration_error", error=e.message, error_type=e.code)
        print(f"persona-audit: configuration error: {e.message}", file=sys.stderr)
        return 1

    paths = collect_paths(args.paths, _parse_extensions(args.extensions))
    catalog = TargetCatalog.from_paths(paths, max_bytes=config.runner.max_content_bytes)

    cancel = threading.Event()

    def request_cancel(*_: Any) -> None:
        cancel.set()

    installed = False
    previous: Any = None
    try:
        previous = signal.signal(signal.SIGINT, request_cancel)
        installed = True
    except ValueError:
        # Not in the main thread
        pass
    try:
        result = pipeline.run(catalog, cancel)
    except EmptyCatalog as e:
        print(f"persona-audit: nothing to assess ({e.message})", file=sys.stderr)
        return 1
    finally:
        if installed:
            signal.signal(signal.SIGINT, previous if previous is not None else signal.default_int_handler)

    print(result.summary)
    if result.report_paths:
        report_path, summary_path = result.report_paths
        print(f"\nReport: {report_path}\nSummary: {summary_path}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
