"""
Default persona panel and correlation rules.

Six expert viewpoints, each backed by the built-in ruleset of the same id.
Used when the pipeline config does not declare its own personas.
"""

from __future__ import annotations

from persona_audit.analysis_engine.models import Severity
from persona_audit.analytics.correlator import (
    CorrelationRule,
    GroupCorrelationRule,
    a_below_b,
    both_below,
    divergence,
    mean_below,
)
from persona_audit.personas.registry import PersonaSpec

DEFAULT_PERSONAS: tuple[PersonaSpec, ...] = (
    PersonaSpec(
        id="architecture",
        name="Software Architect",
        focus_areas=("modularity", "dependency management", "design patterns", "maintainability"),
        level="expert",
    ),
    PersonaSpec(
        id="security",
        name="Security Expert",
        focus_areas=("secrets handling", "input validation", "access control", "transport security"),
        level="expert",
    ),
    PersonaSpec(
        id="data_science",
        name="Data Scientist",
        focus_areas=("data integrity", "reproducibility", "algorithm correctness"),
        level="expert",
    ),
    PersonaSpec(
        id="quality",
        name="QA Engineer",
        focus_areas=("test coverage", "error handling", "boundary conditions"),
        level="expert",
    ),
    PersonaSpec(
        id="devops",
        name="DevOps Engineer",
        focus_areas=("configuration", "logging", "monitoring", "operability"),
        level="expert",
    ),
    PersonaSpec(
        id="performance",
        name="Performance Engineer",
        focus_areas=("algorithmic complexity", "I/O", "caching", "concurrency"),
        level="expert",
    ),
)

DEFAULT_CORRELATION_RULES = (
    CorrelationRule(
        rule_id="security_performance_tradeoff",
        persona_a="security",
        persona_b="performance",
        condition=divergence(30.0),
        description="Security and performance scores diverge sharply on the same target; balance the two",
        severity=Severity.HIGH,
        per_target=True,
    ),
    CorrelationRule(
        rule_id="architecture_devops_alignment",
        persona_a="architecture",
        persona_b="devops",
        condition=divergence(25.0),
        description="Architecture and operability disagree; make sure the design supports automated operations",
    ),
    CorrelationRule(
        rule_id="data_quality_gap",
        persona_a="data_science",
        persona_b="quality",
        condition=both_below(70.0),
        description="Data handling and test coverage are both weak; add data boundary tests",
        severity=Severity.HIGH,
    ),
    CorrelationRule(
        rule_id="quality_lags_architecture",
        persona_a="quality",
        persona_b="architecture",
        condition=a_below_b(20.0),
        description="Quality lags the architecture; verification is not keeping up with design",
        severity=Severity.LOW,
    ),
    GroupCorrelationRule(
        rule_id="architecture_security_performance",
        personas=("architecture", "security", "performance"),
        condition=mean_below(70.0),
        description="Architecture, security and performance are jointly weak; treat as a structural risk",
        severity=Severity.CRITICAL,
    ),
)
