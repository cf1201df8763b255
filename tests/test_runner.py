"""
Tests for the assessment runner: per-pair isolation, ordering, limits and cancellation.
"""

from __future__ import annotations

import threading

from persona_audit.analysis_engine.models import AnalysisOutcome, Persona, Target
from persona_audit.analytics.runner import AssessmentRunner, RunnerConfig
from persona_audit.catalog.targets import TargetCatalog


def test_every_pair_yields_exactly_one_result(scripted, make_registry, two_target_catalog):
    registry = make_registry(("p1", scripted({"T1": 100, "T2": 60})), ("p2", scripted(fail_on=["T1"])))
    result = AssessmentRunner(RunnerConfig(concurrency=4)).run(registry, two_target_catalog)

    seen = [(o.persona_id, o.target_id) for o in result.outcomes] + [
        (s.persona_id, s.target_id) for s in result.skips
    ]
    assert sorted(seen) == [("p1", "T1"), ("p1", "T2"), ("p2", "T1"), ("p2", "T2")]
    assert not result.cancelled
    assert result.targets_visited == 2


def test_results_ordered_by_persona_then_target(scripted, make_registry, two_target_catalog):
    registry = make_registry(("zeta", scripted()), ("alpha", scripted()))
    result = AssessmentRunner(RunnerConfig(concurrency=8)).run(registry, two_target_catalog)
    assert [(o.persona_id, o.target_id) for o in result.outcomes] == [
        ("zeta", "T1"),
        ("zeta", "T2"),
        ("alpha", "T1"),
        ("alpha", "T2"),
    ]


def test_analysis_failed_is_recorded_as_skip(scripted, make_registry, two_target_catalog):
    registry = make_registry(("p2", scripted({"T2": 90}, fail_on=["T1"])))
    result = AssessmentRunner().run(registry, two_target_catalog)
    (skip,) = result.skips
    assert (skip.persona_id, skip.target_id) == ("p2", "T1")
    assert skip.error_type == "analysis_failed"
    assert "scripted failure" in skip.reason
    assert [o.score for o in result.outcomes] == [90.0]


def test_unexpected_exception_is_isolated(make_registry, two_target_catalog):
    def crashes(persona: Persona, target: Target) -> AnalysisOutcome:
        if target.id == "T1":
            raise KeyError("boom")
        return AnalysisOutcome(persona_id=persona.id, target_id=target.id, score=50.0)

    result = AssessmentRunner().run(make_registry(("p", crashes)), two_target_catalog)
    assert [s.error_type for s in result.skips] == ["KeyError"]
    assert [o.target_id for o in result.outcomes] == ["T2"]


def test_out_of_range_score_becomes_skip(make_registry, two_target_catalog):
    def overscores(persona: Persona, target: Target) -> AnalysisOutcome:
        return AnalysisOutcome(persona_id=persona.id, target_id=target.id, score=150.0)

    result = AssessmentRunner().run(make_registry(("p", overscores)), two_target_catalog)
    assert result.outcomes == []
    assert {s.error_type for s in result.skips} == {"ValueError"}


def test_outcome_for_wrong_pair_becomes_skip(make_registry, two_target_catalog):
    def misattributes(persona: Persona, target: Target) -> AnalysisOutcome:
        return AnalysisOutcome(persona_id="someone_else", target_id=target.id, score=80.0)

    result = AssessmentRunner().run(make_registry(("p", misattributes)), two_target_catalog)
    assert result.outcomes == []
    assert len(result.skips) == 2
    assert all("expected (p," in s.reason for s in result.skips)


def test_unavailable_target_skipped_for_every_persona(tmp_path, scripted, make_registry):
    good = tmp_path / "good.py"
    good.write_text("x = 1\n", encoding="utf-8")
    catalog = TargetCatalog.from_paths([good, tmp_path / "missing.py"])
    a, b = scripted(), scripted()
    result = AssessmentRunner().run(make_registry(("a", a), ("b", b)), catalog)

    assert len(result.outcomes) == 2
    assert [(s.persona_id, s.error_type) for s in result.skips] == [
        ("a", "target_unavailable"),
        ("b", "target_unavailable"),
    ]
    # Analyzers are never invoked on an unreadable target
    assert all(target_id == str(good) for _, target_id in a.calls + b.calls)


def test_content_size_cap_skips_target(scripted, make_registry):
    catalog = TargetCatalog.from_mapping({"small.py": "x", "huge.py": "x" * 2048})
    analyzer = scripted()
    result = AssessmentRunner(RunnerConfig(max_content_bytes=1024)).run(
        make_registry(("p", analyzer)), catalog
    )
    assert [o.target_id for o in result.outcomes] == ["small.py"]
    (skip,) = result.skips
    assert skip.target_id == "huge.py"
    assert skip.error_type == "analysis_failed"
    assert "exceeds limit 1024" in skip.reason
    assert analyzer.calls == [("p", "small.py")]


def test_timeout_produces_skip(scripted, make_registry, two_target_catalog):
    gate = threading.Event()
    slow = scripted(gate=gate)
    fast = scripted()
    try:
        result = AssessmentRunner(RunnerConfig(concurrency=4, analysis_timeout_sec=0.2)).run(
            make_registry(("slow", slow), ("fast", fast)), two_target_catalog
        )
    finally:
        gate.set()
    assert [(s.persona_id, s.target_id) for s in result.skips] == [("slow", "T1"), ("slow", "T2")]
    assert all("exceeded" in s.reason for s in result.skips)
    assert [o.persona_id for o in result.outcomes] == ["fast", "fast"]


def test_cancellation_between_targets(make_registry):
    """Cancelling while the first target runs stops before the second; result is flagged cancelled."""
    cancel = threading.Event()
    catalog = TargetCatalog.from_mapping({"T1": "a", "T2": "b", "T3": "c"})

    def cancels_on_first(persona: Persona, target: Target) -> AnalysisOutcome:
        cancel.set()
        return AnalysisOutcome(persona_id=persona.id, target_id=target.id, score=70.0)

    result = AssessmentRunner().run(make_registry(("p", cancels_on_first)), catalog, cancel)
    assert result.cancelled
    assert result.targets_visited == 1
    assert [o.target_id for o in result.outcomes] == ["T1"]
    assert result.skips == []


def test_runner_config_clamps_values():
    cfg = RunnerConfig(concurrency=0, analysis_timeout_sec=-5, max_content_bytes=-1)
    assert cfg.concurrency == 1
    assert cfg.analysis_timeout_sec == 0.0
    assert cfg.max_content_bytes == 0


# --- Stuck analyzers ---


def test_hung_analyzer_does_not_stall_later_targets(make_registry, two_target_catalog):
    """One worker stuck past its deadline on T1; T2 still runs on a fresh pool."""
    release = threading.Event()

    def hangs_on_first(persona: Persona, target: Target) -> AnalysisOutcome:
        if target.id == "T1":
            release.wait(timeout=10)
        return AnalysisOutcome(persona_id=persona.id, target_id=target.id, score=90.0)

    runner = AssessmentRunner(RunnerConfig(concurrency=1, analysis_timeout_sec=0.3))
    done = threading.Event()
    holder = {}

    def go() -> None:
        holder["result"] = runner.run(make_registry(("p", hangs_on_first)), two_target_catalog)
        done.set()

    threading.Thread(target=go, daemon=True).start()
    try:
        assert done.wait(timeout=5), "run stalled behind a timed-out analyzer"
    finally:
        release.set()
    result = holder["result"]
    assert [o.target_id for o in result.outcomes] == ["T2"]
    (skip,) = result.skips
    assert skip.target_id == "T1"
    assert "exceeded" in skip.reason


def test_queued_pairs_move_to_fresh_pool_after_timeout(scripted, make_registry, two_target_catalog):
    """With one worker, a persona queued behind a stuck one on the same target still gets analyzed."""
    gate = threading.Event()
    stuck = scripted(gate=gate)
    queued = scripted(75)
    try:
        result = AssessmentRunner(RunnerConfig(concurrency=1, analysis_timeout_sec=0.3)).run(
            make_registry(("stuck", stuck), ("queued", queued)), two_target_catalog
        )
    finally:
        gate.set()
    assert [(o.persona_id, o.target_id) for o in result.outcomes] == [("queued", "T1"), ("queued", "T2")]
    assert [(s.persona_id, s.target_id) for s in result.skips] == [("stuck", "T1"), ("stuck", "T2")]


def test_analyzer_runs_with_pair_bound_in_log_context(make_registry, two_target_catalog):
    from structlog.contextvars import get_contextvars

    seen = []

    def records_context(persona: Persona, target: Target) -> AnalysisOutcome:
        seen.append(get_contextvars())
        return AnalysisOutcome(persona_id=persona.id, target_id=target.id, score=100.0)

    AssessmentRunner(RunnerConfig(concurrency=2)).run(make_registry(("p", records_context)), two_target_catalog)
    assert sorted((c["persona_id"], c["target_id"]) for c in seen) == [("p", "T1"), ("p", "T2")]
    # nothing leaks into the caller's context
    assert "target_id" not in get_contextvars()
