"""
Application settings and pipeline configuration.

Responsibilities:
- Read environment settings (notifier credentials, output dir, concurrency).
- Load the JSON pipeline config (personas, correlation rules, phase caps,
  risk thresholds, weighting, runner limits) into a PipelineConfig.
- Fail with ConfigurationError on anything malformed, before any analysis runs.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from persona_audit.alerts.notifier import Notifier, NullNotifier, TelegramNotifier
from persona_audit.analytics.aggregator import ScoreThresholds
from persona_audit.analytics.assessment_pipeline import PipelineConfig
from persona_audit.analytics.correlator import rule_from_dict
from persona_audit.analytics.runner import RunnerConfig
from persona_audit.audit_logging import get_logger
from persona_audit.config import env
from persona_audit.core.exceptions import ConfigurationError
from persona_audit.personas.registry import PersonaSpec

logger = get_logger(__name__)


@dataclass(frozen=True)
class NotifierSettings:
    bot_token: str | None = None
    chat_id: str | None = None
    timeout_sec: float = env.DEFAULT_TELEGRAM_TIMEOUT_SEC

    @property
    def enabled(self) -> bool:
        return bool(self.bot_token and self.chat_id)


@dataclass(frozen=True)
class Settings:
    notifier: NotifierSettings
    config_path: Path | None = None
    output_dir: Path | None = None
    concurrency: int | None = None


def get_settings() -> Settings:
    """Return settings from the environment (and .env)."""
    return Settings(
        notifier=NotifierSettings(
            bot_token=env.get_telegram_bot_token(),
            chat_id=env.get_telegram_chat_id(),
            timeout_sec=env.get_telegram_timeout_sec(),
        ),
        config_path=env.get_config_path(),
        output_dir=env.get_output_dir(),
        concurrency=env.get_concurrency(),
    )


def build_notifier(settings: NotifierSettings) -> Notifier:
    """TelegramNotifier when both credentials are set, else NullNotifier."""
    if not settings.enabled:
        logger.info("notifier_not_configured")
        return NullNotifier()
    return TelegramNotifier(
        settings.bot_token,
        settings.chat_id,
        timeout=settings.timeout_sec,
    )


def _persona_from_dict(raw: Mapping[str, Any], index: int) -> PersonaSpec:
    pid = raw.get("id")
    if not pid:
        raise ConfigurationError(f"Persona #{index + 1} is missing an id")
    weight = raw.get("weight")
    if weight is not None:
        try:
            weight = float(weight)
        except (TypeError, ValueError):
            raise ConfigurationError(f"Persona '{pid}' has a non-numeric weight {weight!r}")
    return PersonaSpec(
        id=str(pid),
        name=str(raw.get("name") or pid),
        focus_areas=tuple(str(f) for f in raw.get("focusAreas") or ()),
        weight=weight,
        level=raw.get("level"),
        analyzer=raw.get("analyzer"),
    )


def _number(raw: Mapping[str, Any], key: str, default: Any, kind: type = float) -> Any:
    value = raw.get(key)
    if value is None:
        return default
    try:
        return kind(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Config key '{key}' must be numeric, got {value!r}")


def pipeline_config_from_dict(
    raw: Mapping[str, Any],
    *,
    output_dir: Path | None = None,
    concurrency: int | None = None,
) -> PipelineConfig:
    """
    Build a PipelineConfig from parsed JSON (camelCase keys). Missing personas or
    correlationRules fall back to the default panel. Explicit arguments override
    the file's concurrency.
    """
    if not isinstance(raw, Mapping):
        raise ConfigurationError("Pipeline config must be a JSON object")
    kwargs: dict[str, Any] = {}
    if "personas" in raw:
        kwargs["personas"] = tuple(_persona_from_dict(p, i) for i, p in enumerate(raw["personas"] or ()))
    if "correlationRules" in raw:
        kwargs["correlation_rules"] = tuple(
            rule_from_dict(r, i) for i, r in enumerate(raw["correlationRules"] or ())
        )
    if "phaseCaps" in raw:
        kwargs["phase_caps"] = dict(raw["phaseCaps"] or {})
    if "scoreThresholds" in raw:
        th = raw["scoreThresholds"] or {}
        defaults = ScoreThresholds()
        kwargs["thresholds"] = ScoreThresholds(
            low=_number(th, "low", defaults.low),
            medium=_number(th, "medium", defaults.medium),
            high=_number(th, "high", defaults.high),
        )
    if "weighting" in raw:
        kwargs["weighting"] = str(raw["weighting"])

    runner_defaults = RunnerConfig()
    kwargs["runner"] = RunnerConfig(
        concurrency=concurrency or _number(raw, "concurrency", runner_defaults.concurrency, int),
        analysis_timeout_sec=_number(raw, "analysisTimeoutSec", runner_defaults.analysis_timeout_sec),
        max_content_bytes=_number(raw, "maxContentBytes", runner_defaults.max_content_bytes, int),
    )
    if "summaryTopN" in raw:
        kwargs["summary_top_n"] = _number(raw, "summaryTopN", None, int)
    if "summaryMaxChars" in raw:
        kwargs["summary_max_chars"] = _number(raw, "summaryMaxChars", None, int)
    if output_dir is not None:
        kwargs["output_dir"] = output_dir
    return PipelineConfig(**kwargs)


def load_pipeline_config(
    path: str | Path | None = None,
    *,
    output_dir: Path | None = None,
    concurrency: int | None = None,
) -> PipelineConfig:
    """Load the JSON config at path; defaults when path is None."""
    if path is None:
        return pipeline_config_from_dict({}, output_dir=output_dir, concurrency=concurrency)
    p = Path(path)
    try:
        raw = json.loads(p.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file {p}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in config file {p}: {e}") from e
    logger.info("config_loaded", path=str(p))
    return pipeline_config_from_dict(raw, output_dir=output_dir, concurrency=concurrency)
