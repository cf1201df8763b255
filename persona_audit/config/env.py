"""
Environment variable loading for persona-audit.

- TELEGRAM_BOT_TOKEN / TELEGRAM_CHAT_ID: notifier credentials (both required to notify)
- TELEGRAM_TIMEOUT_SEC: notifier HTTP timeout (default 10)
- PERSONA_AUDIT_CONFIG: path to the JSON pipeline config
- PERSONA_AUDIT_OUTPUT_DIR: where report files are written
- PERSONA_AUDIT_CONCURRENCY: worker threads (default: CPU count)
- Loads .env from the current directory when available.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_TELEGRAM_TIMEOUT_SEC = 10.0
ENV_FILENAME = ".env"


def load_persona_audit_env() -> None:
    """Load .env without overriding variables already set. Safe to call multiple times."""
    load_dotenv(Path.cwd() / ENV_FILENAME, override=False)


def _get(name: str) -> str | None:
    load_persona_audit_env()
    value = (os.getenv(name) or "").strip()
    return value or None


def get_telegram_bot_token() -> str | None:
    return _get("TELEGRAM_BOT_TOKEN")


def get_telegram_chat_id() -> str | None:
    return _get("TELEGRAM_CHAT_ID")


def get_telegram_timeout_sec() -> float:
    raw = _get("TELEGRAM_TIMEOUT_SEC")
    try:
        return max(0.1, float(raw)) if raw else DEFAULT_TELEGRAM_TIMEOUT_SEC
    except ValueError:
        return DEFAULT_TELEGRAM_TIMEOUT_SEC


def get_config_path() -> Path | None:
    raw = _get("PERSONA_AUDIT_CONFIG")
    return Path(raw) if raw else None


def get_output_dir() -> Path | None:
    raw = _get("PERSONA_AUDIT_OUTPUT_DIR")
    return Path(raw) if raw else None


def get_concurrency() -> int | None:
    """PERSONA_AUDIT_CONCURRENCY as a positive int; None when unset or invalid."""
    raw = _get("PERSONA_AUDIT_CONCURRENCY")
    if not raw:
        return None
    try:
        value = int(raw)
    except ValueError:
        return None
    return value if value > 0 else None
