"""
Recommendation prioritizer: bucket recommendations into ordered rollout phases.

Phases are emitted in the fixed order critical, high, medium, low. Within a
phase recommendations keep persona registration order, then emission order.
A per-phase cap keeps the first N and reports how many were truncated.
"""

from __future__ import annotations

from typing import Iterable, Mapping, Sequence

from persona_audit.analysis_engine.models import (
    PRIORITY_ORDER,
    AnalysisOutcome,
    PrioritizedPhase,
    Priority,
    Recommendation,
)
from persona_audit.audit_logging import get_logger

logger = get_logger(__name__)

# Phase caps; None keeps everything
DEFAULT_PHASE_CAPS: dict[Priority, int | None] = {
    Priority.CRITICAL: 3,
    Priority.HIGH: 5,
    Priority.MEDIUM: 8,
    Priority.LOW: None,
}

PHASE_LABELS: dict[Priority, str] = {
    Priority.CRITICAL: "Immediate (week 1)",
    Priority.HIGH: "Short term (weeks 2-4)",
    Priority.MEDIUM: "Medium term (months 2-3)",
    Priority.LOW: "Long term (months 3-6)",
}


def collect_recommendations(
    outcomes: Iterable[AnalysisOutcome],
    persona_order: Sequence[str],
) -> list[Recommendation]:
    """
    Flatten recommendations from successful outcomes, ordered by persona
    registration order, then by the order outcomes and recommendations were emitted.
    """
    rank = {pid: i for i, pid in enumerate(persona_order)}
    indexed: list[tuple[int, int, Recommendation]] = []
    seq = 0
    for outcome in outcomes:
        for rec in outcome.recommendations:
            indexed.append((rank.get(rec.persona_id, len(rank)), seq, rec))
            seq += 1
    indexed.sort(key=lambda item: (item[0], item[1]))
    return [rec for _, _, rec in indexed]


def prioritize(
    recommendations: Iterable[Recommendation],
    caps: Mapping[Priority, int | None] | None = None,
) -> list[PrioritizedPhase]:
    """
    Group recommendations (already in tie-break order) by priority into four phases.

    truncated_count = total - cap when a phase exceeds its cap; exactly cap
    recommendations are kept, in their original order.
    """
    phase_caps = dict(DEFAULT_PHASE_CAPS)
    if caps:
        phase_caps.update(caps)
    buckets: dict[Priority, list[Recommendation]] = {p: [] for p in PRIORITY_ORDER}
    for rec in recommendations:
        buckets[Priority(rec.priority)].append(rec)

    phases: list[PrioritizedPhase] = []
    for priority in PRIORITY_ORDER:
        items = buckets[priority]
        cap = phase_caps.get(priority)
        kept = items if cap is None else items[: max(0, cap)]
        truncated = len(items) - len(kept)
        if truncated:
            logger.info(
                "prioritizer_phase_truncated",
                phase=priority.value,
                total=len(items),
                cap=cap,
                truncated_count=truncated,
            )
        phases.append(
            PrioritizedPhase(
                phase=priority,
                label=PHASE_LABELS[priority],
                recommendations=tuple(kept),
                total=len(items),
                truncated_count=truncated,
            )
        )
    return phases
