"""
Analysis engine package: assessment records, scoring and analyzers.

Analyzers turn one target's content into an AnalysisOutcome for one persona;
the scorer converts findings into deductions from a base score of 100.
"""

from persona_audit.analysis_engine.analyzers import (
    Analyzer,
    FunctionAnalyzer,
    HeuristicRule,
    RecommendationTemplate,
    RuleBasedAnalyzer,
    as_analyzer,
)
from persona_audit.analysis_engine.heuristics import BUILTIN_RULESETS, builtin_analyzer
from persona_audit.analysis_engine.models import (
    AggregateAssessment,
    AnalysisOutcome,
    CorrelationFinding,
    Finding,
    Persona,
    PersonaSummary,
    PrioritizedPhase,
    Priority,
    Recommendation,
    Severity,
    SkippedPair,
    Target,
)
from persona_audit.analysis_engine.scorer import (
    SEVERITY_PENALTY,
    build_outcome,
    compute_score,
)

__all__ = [
    "Analyzer",
    "FunctionAnalyzer",
    "HeuristicRule",
    "RecommendationTemplate",
    "RuleBasedAnalyzer",
    "as_analyzer",
    "BUILTIN_RULESETS",
    "builtin_analyzer",
    "AggregateAssessment",
    "AnalysisOutcome",
    "CorrelationFinding",
    "Finding",
    "Persona",
    "PersonaSummary",
    "PrioritizedPhase",
    "Priority",
    "Recommendation",
    "Severity",
    "SkippedPair",
    "Target",
    "SEVERITY_PENALTY",
    "build_outcome",
    "compute_score",
]
