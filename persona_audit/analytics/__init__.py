"""
Analytics package: runner, score aggregation, cross-persona correlation,
recommendation prioritization and the end-to-end assessment pipeline.
"""

from persona_audit.analytics.aggregator import ScoreThresholds, aggregate, consensus, summarize
from persona_audit.analytics.assessment_pipeline import (
    AssessmentPipeline,
    PipelineConfig,
    PipelineResult,
    PipelineState,
)
from persona_audit.analytics.correlator import (
    CorrelationRule,
    GroupCorrelationRule,
    correlate,
    rule_from_dict,
    validate_rules,
)
from persona_audit.analytics.prioritizer import PHASE_LABELS, prioritize
from persona_audit.analytics.runner import AssessmentRunner, RunnerConfig, RunnerResult

__all__ = [
    "ScoreThresholds",
    "aggregate",
    "consensus",
    "summarize",
    "AssessmentPipeline",
    "PipelineConfig",
    "PipelineResult",
    "PipelineState",
    "CorrelationRule",
    "GroupCorrelationRule",
    "correlate",
    "rule_from_dict",
    "validate_rules",
    "PHASE_LABELS",
    "prioritize",
    "AssessmentRunner",
    "RunnerConfig",
    "RunnerResult",
]
