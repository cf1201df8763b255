"""
Cross-persona correlator: configured relationship rules over persona scores.

A pair rule compares two personas' mean scores (or, with per_target, their
scores on each shared target). A group rule looks at three or more personas
together. Rules are validated against the registry before any analysis runs;
a typo'd persona id is a configuration error, never a silent no-op.
"""

from __future__ import annotations

import statistics
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping, Sequence, Union

from persona_audit.analysis_engine.models import CorrelationFinding, PersonaSummary, Severity
from persona_audit.audit_logging import get_logger
from persona_audit.core.exceptions import ConfigurationError, UnknownPersonaReference

logger = get_logger(__name__)

PairCondition = Callable[[float, float], bool]
GroupCondition = Callable[[Sequence[float]], bool]


@dataclass(frozen=True)
class CorrelationRule:
    rule_id: str
    persona_a: str
    persona_b: str
    condition: PairCondition
    description: str
    severity: Severity = Severity.MEDIUM
    per_target: bool = False

    @property
    def personas(self) -> tuple[str, ...]:
        return (self.persona_a, self.persona_b)


@dataclass(frozen=True)
class GroupCorrelationRule:
    rule_id: str
    personas: tuple[str, ...]
    condition: GroupCondition
    description: str
    severity: Severity = Severity.MEDIUM
    per_target: bool = field(default=False, init=False)


AnyRule = Union[CorrelationRule, GroupCorrelationRule]


# --- Declarative conditions (JSON config) ---


def divergence(threshold: float) -> PairCondition:
    """|a - b| > threshold."""
    return lambda a, b: abs(a - b) > threshold


def both_below(threshold: float) -> PairCondition:
    return lambda a, b: a < threshold and b < threshold


def a_below_b(threshold: float) -> PairCondition:
    """b - a > threshold: persona_a lags persona_b by more than threshold."""
    return lambda a, b: (b - a) > threshold


def all_below(threshold: float) -> GroupCondition:
    return lambda scores: all(s < threshold for s in scores)


def mean_below(threshold: float) -> GroupCondition:
    return lambda scores: statistics.fmean(scores) < threshold


def spread_above(threshold: float) -> GroupCondition:
    return lambda scores: (max(scores) - min(scores)) > threshold


PAIR_CONDITIONS: dict[str, Callable[[float], PairCondition]] = {
    "divergence": divergence,
    "both_below": both_below,
    "a_below_b": a_below_b,
}
GROUP_CONDITIONS: dict[str, Callable[[float], GroupCondition]] = {
    "all_below": all_below,
    "mean_below": mean_below,
    "spread_above": spread_above,
}


def rule_from_dict(raw: Mapping[str, Any], index: int = 0) -> AnyRule:
    """
    Build a rule from config:
        {"id": "...", "personaA": "security", "personaB": "performance",
         "condition": {"type": "divergence", "threshold": 30}, "description": "...",
         "severity": "high", "perTarget": true}
    or with "personas": [...] and a group condition type.
    """
    rule_id = str(raw.get("id") or f"rule_{index + 1}")
    cond = raw.get("condition") or {}
    ctype = str(cond.get("type") or "")
    try:
        threshold = float(cond.get("threshold"))
    except (TypeError, ValueError):
        raise ConfigurationError(f"Correlation rule '{rule_id}' needs a numeric condition.threshold")
    try:
        severity = Severity(str(raw.get("severity") or Severity.MEDIUM.value).lower())
    except ValueError:
        raise ConfigurationError(f"Correlation rule '{rule_id}' has invalid severity {raw.get('severity')!r}")
    description = str(raw.get("description") or rule_id)

    if "personas" in raw:
        if ctype not in GROUP_CONDITIONS:
            raise ConfigurationError(
                f"Correlation rule '{rule_id}': unknown group condition '{ctype}'"
            )
        personas = tuple(str(p) for p in raw["personas"])
        if len(personas) < 2:
            raise ConfigurationError(f"Correlation rule '{rule_id}' needs at least two personas")
        return GroupCorrelationRule(
            rule_id=rule_id,
            personas=personas,
            condition=GROUP_CONDITIONS[ctype](threshold),
            description=description,
            severity=severity,
        )

    if ctype not in PAIR_CONDITIONS:
        raise ConfigurationError(f"Correlation rule '{rule_id}': unknown pair condition '{ctype}'")
    persona_a = raw.get("personaA")
    persona_b = raw.get("personaB")
    if not persona_a or not persona_b:
        raise ConfigurationError(f"Correlation rule '{rule_id}' needs personaA and personaB")
    return CorrelationRule(
        rule_id=rule_id,
        persona_a=str(persona_a),
        persona_b=str(persona_b),
        condition=PAIR_CONDITIONS[ctype](threshold),
        description=description,
        severity=severity,
        per_target=bool(raw.get("perTarget", False)),
    )


def validate_rules(rules: Iterable[AnyRule], persona_ids: Iterable[str]) -> None:
    """Raise UnknownPersonaReference for the first rule naming an unregistered persona."""
    known = set(persona_ids)
    seen: set[str] = set()
    for rule in rules:
        if rule.rule_id in seen:
            raise ConfigurationError(f"Duplicate correlation rule id '{rule.rule_id}'")
        seen.add(rule.rule_id)
        for pid in rule.personas:
            if pid not in known:
                raise UnknownPersonaReference(rule.rule_id, pid)


def _evaluate_pair(
    rule: CorrelationRule,
    a: PersonaSummary,
    b: PersonaSummary,
) -> list[CorrelationFinding]:
    out: list[CorrelationFinding] = []
    if rule.per_target:
        for target_id, score_a in a.target_scores.items():
            score_b = b.target_scores.get(target_id)
            if score_b is None:
                continue
            if rule.condition(score_a, score_b):
                out.append(
                    CorrelationFinding(
                        rule_id=rule.rule_id,
                        personas=rule.personas,
                        scores=(score_a, score_b),
                        description=rule.description,
                        severity=rule.severity,
                        target_id=target_id,
                    )
                )
        return out
    if a.mean_score is None or b.mean_score is None:
        return out
    if rule.condition(a.mean_score, b.mean_score):
        out.append(
            CorrelationFinding(
                rule_id=rule.rule_id,
                personas=rule.personas,
                scores=(a.mean_score, b.mean_score),
                description=rule.description,
                severity=rule.severity,
            )
        )
    return out


def correlate(
    summaries: Iterable[PersonaSummary],
    rules: Iterable[AnyRule],
) -> list[CorrelationFinding]:
    """
    Evaluate every rule whose personas all have a scored summary; emit a
    CorrelationFinding for each rule (or shared target) whose condition holds.
    Output follows rule order, then target order.
    """
    by_id = {s.persona_id: s for s in summaries}
    findings: list[CorrelationFinding] = []
    for rule in rules:
        members = [by_id.get(pid) for pid in rule.personas]
        if any(m is None for m in members):
            logger.debug("correlator_rule_skipped", rule_id=rule.rule_id, reason="persona_without_summary")
            continue
        if isinstance(rule, CorrelationRule):
            emitted = _evaluate_pair(rule, members[0], members[1])
        else:
            if any(m.mean_score is None for m in members):
                logger.debug("correlator_rule_skipped", rule_id=rule.rule_id, reason="persona_without_score")
                continue
            scores = tuple(m.mean_score for m in members)
            emitted = []
            if rule.condition(scores):
                emitted.append(
                    CorrelationFinding(
                        rule_id=rule.rule_id,
                        personas=rule.personas,
                        scores=scores,
                        description=rule.description,
                        severity=rule.severity,
                    )
                )
        findings.extend(emitted)
        if emitted:
            logger.info("correlator_rule_matched", rule_id=rule.rule_id, findings=len(emitted))
    return findings
