"""
Analyzer contract and the rule-based analyzer.

An analyzer is a pure function of (persona, target) returning an
AnalysisOutcome. It holds no "current persona" state, so the runner may call
it from several threads at once. It may raise AnalysisFailed; the runner
records that pair as skipped.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Protocol, runtime_checkable

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
from persona_audit.core.exceptions import AnalysisFailed


@runtime_checkable
class Analyzer(Protocol):
    def analyze(self, persona: Persona, target: Target) -> AnalysisOutcome:
        ...


AnalyzeFn = Callable[[Persona, Target], AnalysisOutcome]


class FunctionAnalyzer:
    """Adapts a plain callable (persona, target) -> AnalysisOutcome to the Analyzer contract."""

    def __init__(self, fn: AnalyzeFn, name: str | None = None) -> None:
        self._fn = fn
        self.name = name or getattr(fn, "__name__", "function_analyzer")

    def analyze(self, persona: Persona, target: Target) -> AnalysisOutcome:
        return self._fn(persona, target)

    def __repr__(self) -> str:
        return f"FunctionAnalyzer({self.name!r})"


def as_analyzer(obj: Analyzer | AnalyzeFn) -> Analyzer:
    """Return obj if it already implements analyze(), else wrap a callable."""
    if isinstance(obj, Analyzer):
        return obj
    if callable(obj):
        return FunctionAnalyzer(obj)
    raise TypeError(f"Not an analyzer: {obj!r}")


@dataclass(frozen=True)
class RecommendationTemplate:
    priority: Priority
    description: str
    expected_impact: str | None = None
    implementation_hint: str | None = None


@dataclass(frozen=True)
class HeuristicRule:
    """
    One explainable heuristic.

    When predicate(content) is true the rule emits a finding (if severity is
    set) and/or a recommendation. When false and strength is set, the strength
    is recorded instead.
    """

    name: str
    predicate: Callable[[str], bool]
    description: str
    severity: Severity | None = None
    suggested_action: str | None = None
    penalty: float | None = None
    recommendation: RecommendationTemplate | None = None
    strength: str | None = None


class RuleBasedAnalyzer:
    """Evaluates an ordered tuple of HeuristicRules against target content."""

    def __init__(self, name: str, rules: tuple[HeuristicRule, ...] | list[HeuristicRule]) -> None:
        self.name = name
        self.rules = tuple(rules)

    def analyze(self, persona: Persona, target: Target) -> AnalysisOutcome:
        findings: list[Finding] = []
        recommendations: list[Recommendation] = []
        strengths: list[str] = []
        content = target.raw_content
        for rule in self.rules:
            try:
                matched = bool(rule.predicate(content))
            except Exception as e:
                raise AnalysisFailed(f"rule {rule.name} failed: {e}") from e
            if not matched:
                if rule.strength:
                    strengths.append(rule.strength)
                continue
            if rule.severity is not None:
                findings.append(
                    Finding(
                        persona_id=persona.id,
                        target_id=target.id,
                        severity=rule.severity,
                        description=rule.description,
                        suggested_action=rule.suggested_action,
                        rule_name=rule.name,
                        penalty=rule.penalty,
                    )
                )
            if rule.recommendation is not None:
                tpl = rule.recommendation
                recommendations.append(
                    Recommendation(
                        persona_id=persona.id,
                        priority=tpl.priority,
                        description=tpl.description,
                        expected_impact=tpl.expected_impact,
                        implementation_hint=tpl.implementation_hint,
                        target_id=target.id,
                    )
                )
        return build_outcome(persona.id, target.id, findings, recommendations, strengths)

    def __repr__(self) -> str:
        return f"RuleBasedAnalyzer({self.name!r}, rules={len(self.rules)})"
