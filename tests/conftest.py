"""
Pytest fixtures for persona-audit tests: scripted analyzers, registries and catalogs.
"""

from __future__ import annotations

import threading
from typing import Callable, Mapping, Sequence

import pytest

from persona_audit.analysis_engine.models import (
    AnalysisOutcome,
    Finding,
    Persona,
    Priority,
    Recommendation,
    Severity,
    Target,
)
from persona_audit.analysis_engine.scorer import build_outcome
from persona_audit.catalog.targets import TargetCatalog
from persona_audit.core.exceptions import AnalysisFailed
from persona_audit.personas.registry import PersonaRegistry


class ScriptedAnalyzer:
    """
    Deterministic analyzer for tests.

    scores: per-target score (or one score for all targets); the score is
    produced through a single finding with an explicit penalty so outcomes
    still go through build_outcome. fail_on: target ids that raise AnalysisFailed.
    recommendations: target id -> [(priority, description), ...].
    gate: when set, analyze() blocks until the event is set.
    """

    def __init__(
        self,
        scores: Mapping[str, float] | float = 100.0,
        *,
        fail_on: Sequence[str] = (),
        recommendations: Mapping[str, Sequence[tuple[Priority, str]]] | None = None,
        gate: threading.Event | None = None,
    ) -> None:
        self.scores = scores
        self.fail_on = set(fail_on)
        self.recommendations = dict(recommendations or {})
        self.gate = gate
        self.calls: list[tuple[str, str]] = []

    def _score_for(self, target_id: str) -> float:
        if isinstance(self.scores, Mapping):
            return float(self.scores.get(target_id, 100.0))
        return float(self.scores)

    def analyze(self, persona: Persona, target: Target) -> AnalysisOutcome:
        self.calls.append((persona.id, target.id))
        if self.gate is not None:
            self.gate.wait(timeout=10)
        if target.id in self.fail_on:
            raise AnalysisFailed(f"scripted failure on {target.id}")
        score = self._score_for(target.id)
        findings = []
        if score < 100.0:
            findings.append(
                Finding(
                    persona_id=persona.id,
                    target_id=target.id,
                    severity=Severity.HIGH,
                    description="scripted finding",
                    penalty=100.0 - score,
                )
            )
        recs = [
            Recommendation(persona_id=persona.id, priority=priority, description=desc, target_id=target.id)
            for priority, desc in self.recommendations.get(target.id, ())
        ]
        return build_outcome(persona.id, target.id, findings, recs)


@pytest.fixture
def scripted() -> type[ScriptedAnalyzer]:
    return ScriptedAnalyzer


@pytest.fixture
def make_registry() -> Callable[..., PersonaRegistry]:
    """make_registry(("p1", analyzer), ("p2", analyzer, 0.5), ...) -> PersonaRegistry."""

    def _make(*entries: tuple) -> PersonaRegistry:
        registry = PersonaRegistry()
        for entry in entries:
            pid, analyzer = entry[0], entry[1]
            weight = entry[2] if len(entry) > 2 else None
            registry.register(Persona(id=pid, name=pid.upper(), weight=weight), analyzer)
        return registry

    return _make


@pytest.fixture
def two_target_catalog() -> TargetCatalog:
    return TargetCatalog.from_mapping({"T1": "print('one')\n", "T2": "print('two')\n"})
