"""
Assessment runner: apply every persona's analyzer to every target.

Targets are visited in catalog order; for each target all personas run on a
bounded thread pool and results are collected in a fan-in step. Every
(persona, target) pair yields exactly one AnalysisOutcome or one SkippedPair.
A failing pair never aborts the run. Cancellation is checked between targets;
a cancelled run returns what it has, flagged cancelled.
"""

from __future__ import annotations

import os
import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Callable

from structlog.contextvars import bound_contextvars

from persona_audit.analysis_engine.analyzers import Analyzer
from persona_audit.analysis_engine.models import AnalysisOutcome, Persona, SkippedPair, Target
from persona_audit.audit_logging import get_logger
from persona_audit.catalog.targets import DEFAULT_MAX_CONTENT_BYTES, TargetCatalog
from persona_audit.core.exceptions import AnalysisFailed, TargetUnavailable
from persona_audit.personas.registry import PersonaRegistry

logger = get_logger(__name__)

DEFAULT_CONCURRENCY = os.cpu_count() or 4
DEFAULT_ANALYSIS_TIMEOUT_SEC = 30.0
MIN_CONCURRENCY = 1
# How often the fan-in loop wakes to check per-pair deadlines
POLL_INTERVAL_SEC = 0.05


@dataclass
class RunnerConfig:
    """
    concurrency: worker threads for one target's persona fan-out.
    analysis_timeout_sec: per-pair wall clock limit from the moment the analyzer starts; None disables.
    max_content_bytes: targets larger than this are skipped for every persona; None disables.
    """

    concurrency: int = DEFAULT_CONCURRENCY
    analysis_timeout_sec: float | None = DEFAULT_ANALYSIS_TIMEOUT_SEC
    max_content_bytes: int | None = DEFAULT_MAX_CONTENT_BYTES

    def __post_init__(self) -> None:
        self.concurrency = max(MIN_CONCURRENCY, int(self.concurrency))
        if self.analysis_timeout_sec is not None:
            self.analysis_timeout_sec = max(0.0, float(self.analysis_timeout_sec))
        if self.max_content_bytes is not None:
            self.max_content_bytes = max(0, int(self.max_content_bytes))


@dataclass
class RunnerResult:
    outcomes: list[AnalysisOutcome] = field(default_factory=list)
    skips: list[SkippedPair] = field(default_factory=list)
    cancelled: bool = False
    targets_visited: int = 0


def _skip(persona_id: str, target_id: str, exc: BaseException, reason: str | None = None) -> SkippedPair:
    return SkippedPair(
        persona_id=persona_id,
        target_id=target_id,
        reason=reason or str(exc) or type(exc).__name__,
        error_type=getattr(exc, "code", type(exc).__name__),
    )


def _check_contract(outcome: object, persona: Persona, target: Target) -> AnalysisOutcome:
    """Outcome must be an AnalysisOutcome for exactly this pair."""
    if not isinstance(outcome, AnalysisOutcome):
        raise AnalysisFailed(f"analyzer returned {type(outcome).__name__}, expected AnalysisOutcome")
    if outcome.persona_id != persona.id or outcome.target_id != target.id:
        raise AnalysisFailed(
            f"analyzer returned outcome for ({outcome.persona_id}, {outcome.target_id}), "
            f"expected ({persona.id}, {target.id})"
        )
    return outcome


class AssessmentRunner:
    def __init__(self, config: RunnerConfig | None = None) -> None:
        self.config = config or RunnerConfig()

    def run(
        self,
        registry: PersonaRegistry,
        catalog: TargetCatalog,
        cancel_event: threading.Event | None = None,
    ) -> RunnerResult:
        """
        Run all pairs. Outcomes and skips are returned ordered by
        (persona registration order, target catalog order).
        """
        pairs = registry.all()
        targets = catalog.list_targets()
        result = RunnerResult()
        by_pair: dict[tuple[str, str], AnalysisOutcome | SkippedPair] = {}

        logger.info(
            "runner_started",
            persona_count=len(pairs),
            target_count=len(targets),
            concurrency=self.config.concurrency,
        )
        executor = self._new_executor()
        try:
            for target in targets:
                if cancel_event is not None and cancel_event.is_set():
                    result.cancelled = True
                    logger.warning(
                        "runner_cancelled",
                        targets_visited=result.targets_visited,
                        target_count=len(targets),
                    )
                    break
                with bound_contextvars(target_id=target.id):
                    outcomes, executor = self._run_target(executor, pairs, catalog, target)
                by_pair.update(outcomes)
                result.targets_visited += 1
        finally:
            # Timed-out analyzers cannot be interrupted; do not wait on them
            executor.shutdown(wait=False, cancel_futures=True)

        persona_rank = {p.id: i for i, (p, _) in enumerate(pairs)}
        target_rank = {t.id: i for i, t in enumerate(targets)}
        for key in sorted(by_pair, key=lambda k: (persona_rank[k[0]], target_rank[k[1]])):
            item = by_pair[key]
            if isinstance(item, AnalysisOutcome):
                result.outcomes.append(item)
            else:
                result.skips.append(item)

        logger.info(
            "runner_finished",
            outcomes=len(result.outcomes),
            skipped=len(result.skips),
            cancelled=result.cancelled,
        )
        return result

    def _new_executor(self) -> ThreadPoolExecutor:
        return ThreadPoolExecutor(
            max_workers=self.config.concurrency,
            thread_name_prefix="persona-audit",
        )

    def _run_target(
        self,
        executor: ThreadPoolExecutor,
        pairs: list[tuple[Persona, Analyzer]],
        catalog: TargetCatalog,
        target: Target,
    ) -> tuple[dict[tuple[str, str], AnalysisOutcome | SkippedPair], ThreadPoolExecutor]:
        """
        Analyze one target with every persona.

        Returns the per-pair results and the executor to use for the next
        target. A timed-out analyzer keeps its worker thread busy, so when one
        times out the pool is replaced and pairs that have not started yet are
        moved to the fresh pool.
        """
        out: dict[tuple[str, str], AnalysisOutcome | SkippedPair] = {}

        try:
            catalog.load(target.id)
            max_bytes = self.config.max_content_bytes
            if max_bytes is not None and target.size_bytes > max_bytes:
                raise AnalysisFailed(
                    f"content size {target.size_bytes} bytes exceeds limit {max_bytes}"
                )
        except (TargetUnavailable, AnalysisFailed) as e:
            logger.warning("runner_target_skipped", error=str(e), error_type=e.code)
            for persona, _ in pairs:
                out[(persona.id, target.id)] = _skip(persona.id, target.id, e)
            return out, executor

        started: dict[str, float] = {}

        def analyze(persona: Persona, analyzer: Analyzer) -> AnalysisOutcome:
            started[persona.id] = time.monotonic()
            with bound_contextvars(persona_id=persona.id, target_id=target.id):
                return analyzer.analyze(persona, target)

        futures: dict[Future, tuple[Persona, Analyzer]] = {
            executor.submit(analyze, persona, analyzer): (persona, analyzer) for persona, analyzer in pairs
        }
        pending = set(futures)
        timeout = self.config.analysis_timeout_sec
        while pending:
            done, pending = wait(pending, timeout=POLL_INTERVAL_SEC, return_when=FIRST_COMPLETED)
            for fut in done:
                persona, _ = futures[fut]
                out[(persona.id, target.id)] = self._collect(fut, persona, target)
            if timeout is None:
                continue
            now = time.monotonic()
            timed_out = False
            for fut in list(pending):
                persona, _ = futures[fut]
                t0 = started.get(persona.id)
                if t0 is None or now - t0 <= timeout:
                    continue
                pending.discard(fut)
                timed_out = True
                logger.warning("runner_pair_timeout", persona_id=persona.id, timeout_sec=timeout)
                reason = f"analysis exceeded {timeout:g}s"
                out[(persona.id, target.id)] = _skip(persona.id, target.id, AnalysisFailed(reason))
            if timed_out:
                executor = self._replace_executor(executor, futures, pending, analyze)
        return out, executor

    def _replace_executor(
        self,
        executor: ThreadPoolExecutor,
        futures: dict[Future, tuple[Persona, Analyzer]],
        pending: set[Future],
        analyze: Callable[[Persona, Analyzer], AnalysisOutcome],
    ) -> ThreadPoolExecutor:
        """Abandon a pool holding stuck workers; resubmit its queued pairs to a new one."""
        fresh = self._new_executor()
        moved = 0
        for fut in list(pending):
            # cancel() only succeeds for pairs still queued behind the stuck workers
            if fut.cancel():
                pending.discard(fut)
                persona, analyzer = futures[fut]
                new_fut = fresh.submit(analyze, persona, analyzer)
                futures[new_fut] = (persona, analyzer)
                pending.add(new_fut)
                moved += 1
        executor.shutdown(wait=False)
        logger.warning("runner_pool_replaced", resubmitted=moved)
        return fresh

    def _collect(
        self,
        fut: Future,
        persona: Persona,
        target: Target,
    ) -> AnalysisOutcome | SkippedPair:
        try:
            outcome = _check_contract(fut.result(), persona, target)
        except (AnalysisFailed, TargetUnavailable) as e:
            logger.warning(
                "runner_pair_skipped",
                persona_id=persona.id,
                error=str(e),
                error_type=e.code,
            )
            return _skip(persona.id, target.id, e)
        except Exception as e:
            # Out-of-range score (ValueError from AnalysisOutcome) lands here too
            logger.warning(
                "runner_pair_failed",
                persona_id=persona.id,
                error=str(e),
                exc_info=True,
            )
            return _skip(persona.id, target.id, e)
        worst = outcome.max_severity
        logger.debug(
            "runner_pair_done",
            persona_id=persona.id,
            score=outcome.score,
            findings=len(outcome.findings),
            max_severity=worst.value if worst is not None else None,
        )
        return outcome
