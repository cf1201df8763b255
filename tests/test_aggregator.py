"""
Tests for the score aggregator: persona means, overall score, risk bands, weights, consensus.
"""

from __future__ import annotations

import pytest

from persona_audit.analysis_engine.models import AnalysisOutcome, Persona, PersonaSummary, SkippedPair
from persona_audit.analytics.aggregator import (
    RISK_CRITICAL,
    RISK_HIGH,
    RISK_LOW,
    RISK_MEDIUM,
    RISK_UNKNOWN,
    ScoreThresholds,
    aggregate,
    consensus,
    summarize,
    validate_weights,
)
from persona_audit.core.exceptions import InvalidThresholds, InvalidWeights

P1 = Persona(id="P1", name="Persona One", weight=0.25)
P2 = Persona(id="P2", name="Persona Two", weight=0.75)


def _outcome(persona_id: str, target_id: str, score: float) -> AnalysisOutcome:
    return AnalysisOutcome(persona_id=persona_id, target_id=target_id, score=score)


def _summary(persona_id: str, mean: float | None) -> PersonaSummary:
    return PersonaSummary(persona_id=persona_id, persona_name=persona_id, mean_score=mean, risk_level="x")


# --- Persona summaries ---


def test_mean_over_successful_outcomes():
    """P1: T1=100, T2=60 -> mean 80."""
    s = summarize(P1, [_outcome("P1", "T1", 100), _outcome("P1", "T2", 60)])
    assert s.mean_score == 80.0
    assert s.risk_level == RISK_MEDIUM
    assert s.analyzed_count == 2
    assert s.target_scores == {"T1": 100.0, "T2": 60.0}


def test_failed_pair_not_counted_as_zero():
    """P2 fails on T1 and scores T2=90 -> mean 90, one skip reported."""
    skip = SkippedPair(persona_id="P2", target_id="T1", reason="boom", error_type="analysis_failed")
    s = summarize(P2, [_outcome("P2", "T2", 90)], [skip])
    assert s.mean_score == 90.0
    assert s.analyzed_count == 1
    assert s.skipped_count == 1
    assert s.skipped == (skip,)


def test_additional_unavailable_skip_does_not_change_mean():
    outcomes = [_outcome("P1", "T1", 70), _outcome("P1", "T2", 50)]
    before = summarize(P1, outcomes).mean_score
    extra = SkippedPair(persona_id="P1", target_id="T3", reason="gone", error_type="target_unavailable")
    after = summarize(P1, outcomes, [extra]).mean_score
    assert before == after == 60.0


def test_other_personas_ignored():
    s = summarize(P1, [_outcome("P1", "T1", 40), _outcome("P2", "T1", 100)])
    assert s.mean_score == 40.0
    assert s.analyzed_count == 1


def test_persona_without_outcomes_is_unknown():
    s = summarize(P1, [], [SkippedPair("P1", "T1", "r", "analysis_failed")])
    assert s.mean_score is None
    assert not s.has_score
    assert s.risk_level == RISK_UNKNOWN


def test_strengths_deduplicated_in_order():
    outcomes = [
        AnalysisOutcome("P1", "T1", 100.0, strengths=("tidy", "typed")),
        AnalysisOutcome("P1", "T2", 100.0, strengths=("typed", "tested")),
    ]
    assert summarize(P1, outcomes).strengths == ("tidy", "typed", "tested")


# --- Overall score ---


def test_uniform_overall_is_mean_of_persona_means():
    """P1=80, P2=90 -> 85."""
    assert aggregate([_summary("P1", 80.0), _summary("P2", 90.0)]) == 85.0


def test_uniform_overall_is_order_independent():
    summaries = [_summary("a", 55.0), _summary("b", 91.0), _summary("c", 73.5)]
    assert aggregate(summaries) == pytest.approx(aggregate(list(reversed(summaries))))


def test_unscored_persona_excluded_from_overall():
    assert aggregate([_summary("P1", 80.0), _summary("P2", None)]) == 80.0


def test_no_scores_gives_none():
    assert aggregate([_summary("P1", None)]) is None
    assert aggregate([]) is None


def test_weighted_overall():
    overall = aggregate([_summary("P1", 80.0), _summary("P2", 40.0)], [P1, P2], "weighted")
    assert overall == pytest.approx(0.25 * 80 + 0.75 * 40)


def test_weighted_renormalizes_when_persona_unscored():
    third = Persona(id="P3", name="Three", weight=0.5)
    p1 = Persona(id="P1", name="One", weight=0.25)
    p2 = Persona(id="P2", name="Two", weight=0.25)
    overall = aggregate(
        [_summary("P1", 80.0), _summary("P2", 40.0), _summary("P3", None)],
        [p1, p2, third],
        "weighted",
    )
    assert overall == pytest.approx(60.0)


@pytest.mark.parametrize(
    "personas, message",
    [
        ([Persona("a", "A", weight=0.5), Persona("b", "B")], "missing"),
        ([Persona("a", "A", weight=1.5), Persona("b", "B", weight=-0.5)], "non-negative"),
        ([Persona("a", "A", weight=0.5), Persona("b", "B", weight=0.4)], "sum to 1"),
    ],
)
def test_invalid_weights(personas, message):
    with pytest.raises(InvalidWeights, match=message):
        validate_weights(personas, "weighted")


def test_weights_within_tolerance_accepted():
    validate_weights([Persona("a", "A", weight=0.3333333), Persona("b", "B", weight=0.6666667)], "weighted")
    validate_weights([Persona("a", "A")], "uniform")


def test_unknown_weighting_mode():
    with pytest.raises(InvalidWeights, match="Unknown weighting"):
        validate_weights([P1], "median")


# --- Risk bands ---


@pytest.mark.parametrize(
    "score, level",
    [(100.0, RISK_LOW), (90.0, RISK_LOW), (89.9, RISK_MEDIUM), (70.0, RISK_MEDIUM), (50.0, RISK_HIGH), (49.9, RISK_CRITICAL), (None, RISK_UNKNOWN)],
)
def test_default_risk_bands(score, level):
    assert ScoreThresholds().risk_level(score) == level


def test_custom_thresholds():
    th = ScoreThresholds(low=80, medium=60, high=40)
    assert th.risk_level(85) == RISK_LOW
    assert th.risk_level(45) == RISK_HIGH


@pytest.mark.parametrize("low, medium, high", [(70, 90, 50), (90, 70, 70), (120, 70, 50), (90, 70, -1)])
def test_invalid_thresholds(low, medium, high):
    with pytest.raises(InvalidThresholds):
        ScoreThresholds(low=low, medium=medium, high=high)


# --- Consensus ---


def test_consensus_bands():
    assert consensus([_summary("a", 80.0), _summary("b", 85.0)]) == "strong"
    assert consensus([_summary("a", 60.0), _summary("b", 90.0)]) == "moderate"
    assert consensus([_summary("a", 20.0), _summary("b", 90.0)]) == "limited"
    assert consensus([_summary("a", 80.0), _summary("b", None)]) is None
