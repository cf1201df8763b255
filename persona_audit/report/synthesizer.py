"""
Report synthesizer: structured document plus a bounded markdown summary.

render() is pure. The document is a lossless dict of the assessment; the
summary is short enough for a chat message (hard-capped at max_chars).
"""

from __future__ import annotations

from typing import Any

from persona_audit.analysis_engine.models import AggregateAssessment, SEVERITY_ORDER

DEFAULT_TOP_N = 3
# Telegram rejects messages over 4096 characters
DEFAULT_MAX_CHARS = 4000
TRUNCATION_MARKER = "\n…(truncated)"

RATING_BANDS = (
    (90.0, "Excellent"),
    (80.0, "Good"),
    (70.0, "Fair"),
    (60.0, "Needs improvement"),
)
RATING_POOR = "Poor"


def rating_description(score: float | None) -> str:
    if score is None:
        return "Not rated"
    for floor, label in RATING_BANDS:
        if score >= floor:
            return label
    return RATING_POOR


def _fmt_score(score: float | None) -> str:
    return "n/a" if score is None else f"{score:.1f}"


def _summary_lines(assessment: AggregateAssessment, top_n: int) -> list[str]:
    lines = [
        "*Persona Audit Report*",
        f"Overall: {_fmt_score(assessment.overall_score)}/100 "
        f"({rating_description(assessment.overall_score)}, risk {assessment.risk_level})",
    ]
    if assessment.consensus:
        lines.append(f"Expert consensus: {assessment.consensus}")
    if assessment.partial:
        lines.append("_Partial run: cancelled before all targets were analyzed_")
    lines.append(f"Generated: {assessment.generated_at}")

    lines.append("")
    lines.append("*Personas*")
    for s in assessment.persona_summaries:
        lines.append(
            f"- {s.persona_name}: {_fmt_score(s.mean_score)} ({s.risk_level}), "
            f"analyzed {s.analyzed_count}, skipped {s.skipped_count}"
        )

    if assessment.correlation_findings:
        lines.append("")
        lines.append("*Cross-persona findings*")
        ranked = sorted(
            assessment.correlation_findings,
            key=lambda c: SEVERITY_ORDER.index(c.severity),
        )
        for c in ranked[:top_n]:
            where = f" [{c.target_id}]" if c.target_id else ""
            lines.append(f"- [{c.severity.value}] {c.description}{where}")
        hidden = len(ranked) - top_n
        if hidden > 0:
            lines.append(f"  …and {hidden} more")

    non_empty = [p for p in assessment.prioritized_phases if p.total]
    if non_empty:
        lines.append("")
        lines.append("*Roadmap*")
        for phase in non_empty:
            lines.append(f"{phase.label}: {phase.total} item(s)")
            for rec in phase.recommendations[:top_n]:
                lines.append(f"- {rec.description}")
            hidden = phase.total - min(top_n, len(phase.recommendations))
            if hidden > 0:
                lines.append(f"  …and {hidden} more")
    return lines


def _bound(text: str, max_chars: int) -> str:
    if len(text) <= max_chars:
        return text
    if max_chars <= len(TRUNCATION_MARKER):
        return text[:max_chars]
    return text[: max_chars - len(TRUNCATION_MARKER)] + TRUNCATION_MARKER


def render(
    assessment: AggregateAssessment,
    top_n: int = DEFAULT_TOP_N,
    max_chars: int = DEFAULT_MAX_CHARS,
) -> tuple[dict[str, Any], str]:
    """Return (document, summary) for one assessment."""
    document = assessment.to_dict()
    document["rating"] = rating_description(assessment.overall_score)
    summary = _bound("\n".join(_summary_lines(assessment, max(0, top_n))), max(0, max_chars))
    return document, summary
