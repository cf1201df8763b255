"""Persist a rendered report (JSON document + markdown summary) to a directory."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from persona_audit.audit_logging import get_logger

logger = get_logger(__name__)

REPORT_PREFIX = "persona-audit-report"
SUMMARY_PREFIX = "persona-audit-summary"


def write_report(
    document: dict[str, Any],
    summary: str,
    output_dir: str | Path,
    *,
    timestamp: datetime | None = None,
) -> tuple[Path, Path]:
    """
    Write persona-audit-report-<ts>.json and persona-audit-summary-<ts>.md.
    Creates output_dir if needed. Returns (report_path, summary_path).
    """
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    stamp = (timestamp or datetime.now(timezone.utc)).strftime("%Y%m%dT%H%M%SZ")
    report_path = out / f"{REPORT_PREFIX}-{stamp}.json"
    summary_path = out / f"{SUMMARY_PREFIX}-{stamp}.md"
    report_path.write_text(json.dumps(document, indent=2, ensure_ascii=False), encoding="utf-8")
    summary_path.write_text(summary + "\n", encoding="utf-8")
    logger.info("report_written", report_path=str(report_path), summary_path=str(summary_path))
    return report_path, summary_path
