"""
Assessment records: targets, personas, findings, recommendations, outcomes.

All records are frozen dataclasses; aggregation only copies and groups them.
Every record has to_dict() for the structured report.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

SCORE_MIN = 0.0
SCORE_MAX = 100.0


class Severity(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Priority(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# Highest first; used for phase order and max-severity lookups
SEVERITY_ORDER = (Severity.CRITICAL, Severity.HIGH, Severity.MEDIUM, Severity.LOW)
PRIORITY_ORDER = (Priority.CRITICAL, Priority.HIGH, Priority.MEDIUM, Priority.LOW)


@dataclass(frozen=True)
class Target:
    """One source artifact. Content lives only for the run."""

    id: str
    display_name: str
    raw_content: str
    size_bytes: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "display_name": self.display_name,
            "size_bytes": self.size_bytes,
        }


@dataclass(frozen=True)
class Persona:
    """A named analytical viewpoint with weighted focus areas."""

    id: str
    name: str
    focus_areas: tuple[str, ...] = ()
    weight: float | None = None
    level: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "focus_areas": list(self.focus_areas),
            "weight": self.weight,
            "level": self.level,
        }


@dataclass(frozen=True)
class Finding:
    """
    Single defect or observation produced by an analyzer for one target.

    penalty overrides the severity deduction table when set.
    """

    persona_id: str
    target_id: str
    severity: Severity
    description: str
    suggested_action: str | None = None
    rule_name: str | None = None
    penalty: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "persona_id": self.persona_id,
            "target_id": self.target_id,
            "severity": self.severity.value,
            "description": self.description,
            "suggested_action": self.suggested_action,
            "rule_name": self.rule_name,
            "penalty": self.penalty,
        }


@dataclass(frozen=True)
class Recommendation:
    """Suggested remediation; priority decides its rollout phase."""

    persona_id: str
    priority: Priority
    description: str
    expected_impact: str | None = None
    implementation_hint: str | None = None
    target_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "persona_id": self.persona_id,
            "priority": self.priority.value,
            "description": self.description,
            "expected_impact": self.expected_impact,
            "implementation_hint": self.implementation_hint,
            "target_id": self.target_id,
        }


@dataclass(frozen=True)
class AnalysisOutcome:
    """
    Result of one persona analyzing one target.

    Score starts at 100 and only findings decrease it (see scorer.build_outcome).
    """

    persona_id: str
    target_id: str
    score: float
    findings: tuple[Finding, ...] = ()
    recommendations: tuple[Recommendation, ...] = ()
    strengths: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not SCORE_MIN <= self.score <= SCORE_MAX:
            raise ValueError(
                f"score {self.score} for ({self.persona_id}, {self.target_id}) outside "
                f"[{SCORE_MIN:g}, {SCORE_MAX:g}]"
            )

    @property
    def max_severity(self) -> Severity | None:
        """Highest severity among findings; None if no findings."""
        if not self.findings:
            return None
        return min(self.findings, key=lambda f: SEVERITY_ORDER.index(f.severity)).severity

    def to_dict(self) -> dict[str, Any]:
        return {
            "persona_id": self.persona_id,
            "target_id": self.target_id,
            "score": self.score,
            "findings": [f.to_dict() for f in self.findings],
            "recommendations": [r.to_dict() for r in self.recommendations],
            "strengths": list(self.strengths),
        }


@dataclass(frozen=True)
class SkippedPair:
    """Recorded skip for a (persona, target) pair; never counted as a score."""

    persona_id: str
    target_id: str
    reason: str
    error_type: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "persona_id": self.persona_id,
            "target_id": self.target_id,
            "reason": self.reason,
            "error_type": self.error_type,
        }


@dataclass(frozen=True)
class PersonaSummary:
    """Reduction of all of one persona's outcomes; derived, never hand-edited."""

    persona_id: str
    persona_name: str
    mean_score: float | None
    risk_level: str
    findings: tuple[Finding, ...] = ()
    recommendations: tuple[Recommendation, ...] = ()
    analyzed_count: int = 0
    skipped_count: int = 0
    skipped: tuple[SkippedPair, ...] = ()
    target_scores: dict[str, float] = field(default_factory=dict)
    strengths: tuple[str, ...] = ()

    @property
    def has_score(self) -> bool:
        return self.mean_score is not None

    def severity_counts(self) -> dict[str, int]:
        counts = {s.value: 0 for s in SEVERITY_ORDER}
        for f in self.findings:
            counts[f.severity.value] += 1
        return counts

    def to_dict(self) -> dict[str, Any]:
        return {
            "persona_id": self.persona_id,
            "persona_name": self.persona_name,
            "mean_score": self.mean_score,
            "risk_level": self.risk_level,
            "analyzed_count": self.analyzed_count,
            "skipped_count": self.skipped_count,
            "severity_counts": self.severity_counts(),
            "target_scores": dict(self.target_scores),
            "findings": [f.to_dict() for f in self.findings],
            "recommendations": [r.to_dict() for r in self.recommendations],
            "strengths": list(self.strengths),
            "skipped": [s.to_dict() for s in self.skipped],
        }


@dataclass(frozen=True)
class CorrelationFinding:
    """Cross-persona observation emitted by a correlation rule."""

    rule_id: str
    personas: tuple[str, ...]
    scores: tuple[float, ...]
    description: str
    severity: Severity = Severity.MEDIUM
    target_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "rule_id": self.rule_id,
            "personas": list(self.personas),
            "scores": list(self.scores),
            "description": self.description,
            "severity": self.severity.value,
            "target_id": self.target_id,
        }


@dataclass(frozen=True)
class PrioritizedPhase:
    """One rollout phase: recommendations kept under the cap plus the truncated count."""

    phase: Priority
    label: str
    recommendations: tuple[Recommendation, ...]
    total: int
    truncated_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "phase": self.phase.value,
            "label": self.label,
            "total": self.total,
            "truncated_count": self.truncated_count,
            "recommendations": [r.to_dict() for r in self.recommendations],
        }


@dataclass(frozen=True)
class AggregateAssessment:
    """Terminal artifact of a run; written once, read-only afterward."""

    overall_score: float | None
    risk_level: str
    persona_summaries: tuple[PersonaSummary, ...]
    correlation_findings: tuple[CorrelationFinding, ...]
    prioritized_phases: tuple[PrioritizedPhase, ...]
    generated_at: str
    partial: bool = False
    weighting: str = "uniform"
    consensus: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "overall_score": self.overall_score,
            "risk_level": self.risk_level,
            "weighting": self.weighting,
            "consensus": self.consensus,
            "generated_at": self.generated_at,
            "partial": self.partial,
            "persona_summaries": [s.to_dict() for s in self.persona_summaries],
            "correlation_findings": [c.to_dict() for c in self.correlation_findings],
            "prioritized_phases": [p.to_dict() for p in self.prioritized_phases],
        }
