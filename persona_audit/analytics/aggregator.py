"""
Score aggregator: per-persona summaries and the overall score.

A persona mean_score is the arithmetic mean over successful outcomes only;
skipped pairs are reported but never enter the denominator. The overall score
is the mean (uniform or weighted) of persona mean scores, never a function of
raw findings.
"""

from __future__ import annotations

import math
import statistics
from dataclasses import dataclass
from typing import Iterable, Sequence

from persona_audit.analysis_engine.models import (
    AnalysisOutcome,
    Persona,
    PersonaSummary,
    SkippedPair,
)
from persona_audit.audit_logging import get_logger
from persona_audit.core.exceptions import InvalidThresholds, InvalidWeights

logger = get_logger(__name__)

RISK_LOW = "low"
RISK_MEDIUM = "medium"
RISK_HIGH = "high"
RISK_CRITICAL = "critical"
RISK_UNKNOWN = "unknown"

WEIGHTING_UNIFORM = "uniform"
WEIGHTING_WEIGHTED = "weighted"
WEIGHT_SUM_TOLERANCE = 1e-6

CONSENSUS_STRONG = "strong"
CONSENSUS_MODERATE = "moderate"
CONSENSUS_LIMITED = "limited"
CONSENSUS_STRONG_MAX_STDEV = 10.0
CONSENSUS_MODERATE_MAX_STDEV = 20.0


@dataclass(frozen=True)
class ScoreThresholds:
    """
    Minimum score per risk band. score >= low -> "low", >= medium -> "medium",
    >= high -> "high", else "critical".
    """

    low: float = 90.0
    medium: float = 70.0
    high: float = 50.0

    def __post_init__(self) -> None:
        values = (self.low, self.medium, self.high)
        if any(not 0.0 <= v <= 100.0 for v in values):
            raise InvalidThresholds(f"Risk thresholds must lie in [0, 100]: {values}")
        if not self.low > self.medium > self.high:
            raise InvalidThresholds(
                f"Risk thresholds must be strictly descending (low > medium > high): {values}"
            )

    def risk_level(self, score: float | None) -> str:
        if score is None:
            return RISK_UNKNOWN
        if score >= self.low:
            return RISK_LOW
        if score >= self.medium:
            return RISK_MEDIUM
        if score >= self.high:
            return RISK_HIGH
        return RISK_CRITICAL

    def to_dict(self) -> dict[str, float]:
        return {"low": self.low, "medium": self.medium, "high": self.high}


def summarize(
    persona: Persona,
    outcomes: Iterable[AnalysisOutcome],
    skips: Iterable[SkippedPair] = (),
    thresholds: ScoreThresholds | None = None,
) -> PersonaSummary:
    """
    Reduce one persona's outcomes (in target order) into a PersonaSummary.

    Outcomes or skips belonging to another persona are ignored.
    """
    th = thresholds or ScoreThresholds()
    own = [o for o in outcomes if o.persona_id == persona.id]
    own_skips = tuple(s for s in skips if s.persona_id == persona.id)
    mean_score = statistics.fmean(o.score for o in own) if own else None
    strengths: list[str] = []
    for o in own:
        for s in o.strengths:
            if s not in strengths:
                strengths.append(s)
    summary = PersonaSummary(
        persona_id=persona.id,
        persona_name=persona.name,
        mean_score=mean_score,
        risk_level=th.risk_level(mean_score),
        findings=tuple(f for o in own for f in o.findings),
        recommendations=tuple(r for o in own for r in o.recommendations),
        analyzed_count=len(own),
        skipped_count=len(own_skips),
        skipped=own_skips,
        target_scores={o.target_id: o.score for o in own},
        strengths=tuple(strengths),
    )
    logger.info(
        "aggregator_persona_summarized",
        persona_id=persona.id,
        mean_score=round(mean_score, 2) if mean_score is not None else None,
        risk_level=summary.risk_level,
        analyzed=summary.analyzed_count,
        skipped=summary.skipped_count,
    )
    return summary


def validate_weights(personas: Sequence[Persona], weighting: str) -> None:
    """Weighted mode needs a non-negative weight on every persona, summing to 1."""
    if weighting == WEIGHTING_UNIFORM:
        return
    if weighting != WEIGHTING_WEIGHTED:
        raise InvalidWeights(f"Unknown weighting mode '{weighting}'")
    missing = [p.id for p in personas if p.weight is None]
    if missing:
        raise InvalidWeights(f"Weighted mode requires a weight for every persona; missing: {missing}")
    negative = [p.id for p in personas if p.weight < 0]
    if negative:
        raise InvalidWeights(f"Persona weights must be non-negative: {negative}")
    total = math.fsum(p.weight for p in personas)
    if abs(total - 1.0) > WEIGHT_SUM_TOLERANCE:
        raise InvalidWeights(f"Persona weights must sum to 1, got {total:.6f}")


def aggregate(
    summaries: Sequence[PersonaSummary],
    personas: Sequence[Persona] | None = None,
    weighting: str = WEIGHTING_UNIFORM,
) -> float | None:
    """
    Overall score from persona mean scores.

    Personas without a mean score are excluded. In weighted mode the weights of
    the remaining personas are renormalized to sum to 1. None when no persona
    has a score.
    """
    scored = [s for s in summaries if s.mean_score is not None]
    if not scored:
        return None
    if weighting == WEIGHTING_UNIFORM:
        return statistics.fmean(s.mean_score for s in scored)

    weights = {p.id: p.weight for p in (personas or ())}
    validate_weights([p for p in (personas or ())], weighting)
    pairs = [(s.mean_score, float(weights.get(s.persona_id) or 0.0)) for s in scored]
    total_weight = math.fsum(w for _, w in pairs)
    if total_weight <= 0.0:
        logger.warning("aggregator_zero_weight_fallback", scored_personas=len(scored))
        return statistics.fmean(score for score, _ in pairs)
    if len(scored) < len(summaries):
        logger.info(
            "aggregator_weights_renormalized",
            scored_personas=len(scored),
            total_personas=len(summaries),
            remaining_weight=round(total_weight, 6),
        )
    return math.fsum(score * w for score, w in pairs) / total_weight


def consensus(summaries: Iterable[PersonaSummary]) -> str | None:
    """Spread of persona mean scores: strong (<10 stdev), moderate (<20), else limited."""
    scores = [s.mean_score for s in summaries if s.mean_score is not None]
    if len(scores) < 2:
        return None
    stdev = statistics.pstdev(scores)
    if stdev < CONSENSUS_STRONG_MAX_STDEV:
        return CONSENSUS_STRONG
    if stdev < CONSENSUS_MODERATE_MAX_STDEV:
        return CONSENSUS_MODERATE
    return CONSENSUS_LIMITED
