"""
Assessment pipeline: catalog -> runner -> aggregator -> correlator ->
prioritizer -> report -> notifier.

All configuration is validated when the pipeline is constructed, before any
analysis runs. Per-pair failures never move the pipeline to an error state;
an empty catalog or an unexpected error does. A report that cannot be written
is logged and the summary is still delivered. A cancelled run still produces
a report, flagged partial.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Callable

from persona_audit.alerts.notifier import DeliveryResult, Notifier, NullNotifier
from persona_audit.analysis_engine.models import AggregateAssessment, Priority
from persona_audit.analytics.aggregator import (
    WEIGHTING_UNIFORM,
    ScoreThresholds,
    aggregate,
    consensus,
    summarize,
    validate_weights,
)
from persona_audit.analytics.correlator import AnyRule, correlate, validate_rules
from persona_audit.analytics.prioritizer import (
    DEFAULT_PHASE_CAPS,
    collect_recommendations,
    prioritize,
)
from persona_audit.analytics.runner import AssessmentRunner, RunnerConfig
from persona_audit.audit_logging import get_logger
from persona_audit.catalog.targets import TargetCatalog
from persona_audit.core.exceptions import ConfigurationError, EmptyCatalog
from persona_audit.personas.registry import PersonaRegistry, PersonaSpec, build_registry
from persona_audit.report.synthesizer import DEFAULT_MAX_CHARS, DEFAULT_TOP_N, render
from persona_audit.report.writer import write_report

logger = get_logger(__name__)


class PipelineState(str, Enum):
    INITIALIZED = "initialized"
    CATALOGING = "cataloging"
    ANALYZING = "analyzing"
    AGGREGATING = "aggregating"
    CORRELATING = "correlating"
    PRIORITIZING = "prioritizing"
    REPORTING = "reporting"
    NOTIFYING = "notifying"
    DONE = "done"
    FAILED = "failed"


_STATE_ORDER = tuple(PipelineState)


def _default_personas() -> tuple[PersonaSpec, ...]:
    from persona_audit.personas.defaults import DEFAULT_PERSONAS

    return DEFAULT_PERSONAS


def _default_rules() -> tuple[AnyRule, ...]:
    from persona_audit.personas.defaults import DEFAULT_CORRELATION_RULES

    return DEFAULT_CORRELATION_RULES


@dataclass
class PipelineConfig:
    """
    Everything a run needs besides the catalog and the notifier.

    personas: persona specs used by from_config(); ignored when a registry is passed directly.
    phase_caps: per-priority cap; None keeps every recommendation of that phase.
    output_dir: when set, report files are written there.
    """

    personas: tuple[PersonaSpec, ...] = field(default_factory=_default_personas)
    correlation_rules: tuple[AnyRule, ...] = field(default_factory=_default_rules)
    phase_caps: dict[Priority, int | None] = field(default_factory=lambda: dict(DEFAULT_PHASE_CAPS))
    thresholds: ScoreThresholds = field(default_factory=ScoreThresholds)
    weighting: str = WEIGHTING_UNIFORM
    runner: RunnerConfig = field(default_factory=RunnerConfig)
    summary_top_n: int = DEFAULT_TOP_N
    summary_max_chars: int = DEFAULT_MAX_CHARS
    output_dir: Path | None = None

    def __post_init__(self) -> None:
        self.personas = tuple(self.personas)
        self.correlation_rules = tuple(self.correlation_rules)
        caps = dict(DEFAULT_PHASE_CAPS)
        for key, cap in (self.phase_caps or {}).items():
            try:
                priority = Priority(key)
            except ValueError:
                raise ConfigurationError(f"Unknown phase '{key}' in phase caps")
            if cap is not None and (not isinstance(cap, int) or isinstance(cap, bool) or cap < 0):
                raise ConfigurationError(f"Phase cap for '{priority.value}' must be a non-negative integer or null")
            caps[priority] = cap
        self.phase_caps = caps
        self.summary_top_n = max(0, int(self.summary_top_n))
        self.summary_max_chars = max(1, int(self.summary_max_chars))
        if self.output_dir is not None:
            self.output_dir = Path(self.output_dir)


@dataclass(frozen=True)
class PipelineResult:
    assessment: AggregateAssessment
    document: dict[str, Any]
    summary: str
    delivery: DeliveryResult
    report_paths: tuple[Path, Path] | None = None


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AssessmentPipeline:
    """
    Runs one assessment per run() call.

    The registry is frozen on construction. Correlation rules, weights,
    thresholds and phase caps are validated here, so a bad configuration
    fails before any target is read.
    """

    def __init__(
        self,
        registry: PersonaRegistry,
        config: PipelineConfig | None = None,
        notifier: Notifier | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.config = config or PipelineConfig()
        self.registry = registry.freeze()
        if len(self.registry) == 0:
            raise ConfigurationError("At least one persona must be registered")
        validate_rules(self.config.correlation_rules, self.registry.ids())
        validate_weights(self.registry.personas(), self.config.weighting)
        self.notifier: Notifier = notifier or NullNotifier()
        self.runner = AssessmentRunner(self.config.runner)
        self._clock = clock
        self.state = PipelineState.INITIALIZED
        logger.info(
            "pipeline_configured",
            personas=self.registry.ids(),
            correlation_rules=len(self.config.correlation_rules),
            weighting=self.config.weighting,
        )

    @classmethod
    def from_config(
        cls,
        config: PipelineConfig,
        notifier: Notifier | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> "AssessmentPipeline":
        return cls(build_registry(config.personas), config, notifier, clock)

    def _advance(self, state: PipelineState) -> None:
        if _STATE_ORDER.index(state) <= _STATE_ORDER.index(self.state):
            raise RuntimeError(f"Illegal pipeline transition {self.state.value} -> {state.value}")
        logger.debug("pipeline_state", previous=self.state.value, state=state.value)
        self.state = state

    def run(
        self,
        catalog: TargetCatalog,
        cancel_event: threading.Event | None = None,
    ) -> PipelineResult:
        """
        Assess every target with every persona; EmptyCatalog when there is nothing to assess.

        Any exception escaping a stage leaves the pipeline in FAILED.
        """
        self.state = PipelineState.INITIALIZED
        try:
            return self._run_stages(catalog, cancel_event)
        except EmptyCatalog:
            self.state = PipelineState.FAILED
            logger.error("pipeline_empty_catalog")
            raise
        except Exception as e:
            failed_in = self.state
            self.state = PipelineState.FAILED
            logger.error("pipeline_failed", state=failed_in.value, error=str(e), exc_info=True)
            raise

    def _run_stages(
        self,
        catalog: TargetCatalog,
        cancel_event: threading.Event | None,
    ) -> PipelineResult:
        cfg = self.config

        self._advance(PipelineState.CATALOGING)
        targets = catalog.list_targets()
        if not targets:
            raise EmptyCatalog("No targets to assess")

        self._advance(PipelineState.ANALYZING)
        run = self.runner.run(self.registry, catalog, cancel_event)

        self._advance(PipelineState.AGGREGATING)
        personas = self.registry.personas()
        summaries = tuple(summarize(p, run.outcomes, run.skips, cfg.thresholds) for p in personas)
        overall = aggregate(summaries, personas, cfg.weighting)

        self._advance(PipelineState.CORRELATING)
        correlations = tuple(correlate(summaries, cfg.correlation_rules))

        self._advance(PipelineState.PRIORITIZING)
        phases = tuple(
            prioritize(collect_recommendations(run.outcomes, self.registry.ids()), cfg.phase_caps)
        )

        self._advance(PipelineState.REPORTING)
        generated_at = self._clock()
        assessment = AggregateAssessment(
            overall_score=overall,
            risk_level=cfg.thresholds.risk_level(overall),
            persona_summaries=summaries,
            correlation_findings=correlations,
            prioritized_phases=phases,
            generated_at=generated_at.isoformat(),
            partial=run.cancelled,
            weighting=cfg.weighting,
            consensus=consensus(summaries),
        )
        document, summary = render(assessment, cfg.summary_top_n, cfg.summary_max_chars)
        report_paths = None
        if cfg.output_dir is not None:
            try:
                report_paths = write_report(document, summary, cfg.output_dir, timestamp=generated_at)
            except OSError as e:
                # The summary is still delivered; the run just has no files
                logger.error("pipeline_report_write_failed", output_dir=str(cfg.output_dir), error=str(e))

        self._advance(PipelineState.NOTIFYING)
        try:
            delivery = self.notifier.send(summary)
        except Exception as e:
            logger.warning("pipeline_notifier_failed", error=str(e), exc_info=True)
            delivery = DeliveryResult(delivered=False, error=str(e))

        self._advance(PipelineState.DONE)
        logger.info(
            "pipeline_done",
            overall_score=round(overall, 2) if overall is not None else None,
            risk_level=assessment.risk_level,
            outcomes=len(run.outcomes),
            skipped=len(run.skips),
            correlations=len(correlations),
            partial=assessment.partial,
            delivered=delivery.delivered,
        )
        return PipelineResult(
            assessment=assessment,
            document=document,
            summary=summary,
            delivery=delivery,
            report_paths=report_paths,
        )
