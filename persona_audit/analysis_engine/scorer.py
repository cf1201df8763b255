"""
Outcome scoring: rule-based deductions from findings.

Every outcome starts at BASE_SCORE and loses a fixed penalty per finding by
severity (or the finding's own penalty). Recommendations and strengths never
move the score. Fully explainable; no weighting across targets happens here.
"""

from __future__ import annotations

from typing import Iterable, Mapping

from persona_audit.analysis_engine.models import (
    SCORE_MAX,
    SCORE_MIN,
    AnalysisOutcome,
    Finding,
    Recommendation,
    Severity,
)

BASE_SCORE = 100.0

# Deductions per finding severity
SEVERITY_PENALTY: dict[Severity, float] = {
    Severity.CRITICAL: 25.0,
    Severity.HIGH: 15.0,
    Severity.MEDIUM: 8.0,
    Severity.LOW: 3.0,
}


def finding_penalty(
    finding: Finding,
    penalties: Mapping[Severity, float] | None = None,
) -> float:
    """Deduction for one finding; negative penalties are treated as zero."""
    if finding.penalty is not None:
        return max(0.0, float(finding.penalty))
    table = penalties or SEVERITY_PENALTY
    return max(0.0, float(table.get(finding.severity, 0.0)))


def compute_score(
    findings: Iterable[Finding],
    *,
    penalties: Mapping[Severity, float] | None = None,
    base_score: float = BASE_SCORE,
) -> float:
    """
    Compute an outcome score (0–100) from findings.

    Starts at base_score and subtracts each finding's penalty; clamped so the
    result is always in range.
    """
    score = base_score
    for finding in findings:
        score -= finding_penalty(finding, penalties)
    return max(SCORE_MIN, min(SCORE_MAX, score))


def build_outcome(
    persona_id: str,
    target_id: str,
    findings: Iterable[Finding] = (),
    recommendations: Iterable[Recommendation] = (),
    strengths: Iterable[str] = (),
    *,
    penalties: Mapping[Severity, float] | None = None,
) -> AnalysisOutcome:
    """Assemble an AnalysisOutcome whose score is derived only from its findings."""
    findings = tuple(findings)
    return AnalysisOutcome(
        persona_id=persona_id,
        target_id=target_id,
        score=compute_score(findings, penalties=penalties),
        findings=findings,
        recommendations=tuple(recommendations),
        strengths=tuple(strengths),
    )
