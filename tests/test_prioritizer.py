"""
Tests for the recommendation prioritizer: phase order, caps, truncation and tie-breaks.
"""

from __future__ import annotations

from unittest.mock import patch

from persona_audit.analysis_engine.models import AnalysisOutcome, Priority, Recommendation
from persona_audit.analytics.prioritizer import (
    DEFAULT_PHASE_CAPS,
    PHASE_LABELS,
    collect_recommendations,
    prioritize,
)


def _rec(persona_id: str, priority: Priority, description: str, target_id: str | None = None) -> Recommendation:
    return Recommendation(persona_id=persona_id, priority=priority, description=description, target_id=target_id)


def test_phases_in_fixed_order_with_labels():
    phases = prioritize([])
    assert [p.phase for p in phases] == [Priority.CRITICAL, Priority.HIGH, Priority.MEDIUM, Priority.LOW]
    assert phases[0].label == PHASE_LABELS[Priority.CRITICAL] == "Immediate (week 1)"
    assert all(p.total == 0 and p.truncated_count == 0 for p in phases)


def test_default_caps():
    assert DEFAULT_PHASE_CAPS == {
        Priority.CRITICAL: 3,
        Priority.HIGH: 5,
        Priority.MEDIUM: 8,
        Priority.LOW: None,
    }


def test_critical_cap_truncates():
    """5 critical recommendations with cap 3 -> 3 kept, truncated_count 2, original order kept."""
    recs = [_rec("p", Priority.CRITICAL, f"fix {i}") for i in range(5)]
    critical = prioritize(recs, {Priority.CRITICAL: 3})[0]
    assert [r.description for r in critical.recommendations] == ["fix 0", "fix 1", "fix 2"]
    assert critical.total == 5
    assert critical.truncated_count == 2


def test_uncapped_low_phase_keeps_everything():
    recs = [_rec("p", Priority.LOW, f"polish {i}") for i in range(40)]
    low = prioritize(recs)[3]
    assert len(low.recommendations) == 40
    assert low.truncated_count == 0


def test_zero_cap_drops_all():
    medium = prioritize([_rec("p", Priority.MEDIUM, "m")], {Priority.MEDIUM: 0})[2]
    assert medium.recommendations == ()
    assert medium.truncated_count == 1


def test_priority_never_lands_in_later_phase():
    recs = [
        _rec("p", Priority.LOW, "l"),
        _rec("p", Priority.HIGH, "h"),
        _rec("p", Priority.CRITICAL, "c"),
        _rec("p", Priority.MEDIUM, "m"),
    ]
    phases = prioritize(recs)
    for phase in phases:
        assert all(r.priority == phase.phase for r in phase.recommendations)


def test_tie_break_persona_order_then_emission():
    """Registration order beats outcome order; within a persona, target order then emission order."""
    outcomes = [
        AnalysisOutcome(
            "beta", "T1", 100.0,
            recommendations=(_rec("beta", Priority.HIGH, "beta-T1-a", "T1"), _rec("beta", Priority.HIGH, "beta-T1-b", "T1")),
        ),
        AnalysisOutcome("alpha", "T1", 100.0, recommendations=(_rec("alpha", Priority.HIGH, "alpha-T1", "T1"),)),
        AnalysisOutcome("beta", "T2", 100.0, recommendations=(_rec("beta", Priority.HIGH, "beta-T2", "T2"),)),
    ]
    ordered = collect_recommendations(outcomes, persona_order=["alpha", "beta"])
    assert [r.description for r in ordered] == ["alpha-T1", "beta-T1-a", "beta-T1-b", "beta-T2"]
    high = prioritize(ordered, {Priority.HIGH: 2})[1]
    assert [r.description for r in high.recommendations] == ["alpha-T1", "beta-T1-a"]
    assert high.truncated_count == 2


def test_truncation_is_logged():
    with patch("persona_audit.analytics.prioritizer.logger") as log:
        prioritize([_rec("p", Priority.CRITICAL, str(i)) for i in range(4)])
    log.info.assert_called_once()
    args, kwargs = log.info.call_args
    assert args == ("prioritizer_phase_truncated",)
    assert kwargs["truncated_count"] == 1
    assert kwargs["phase"] == "critical"
