"""
Alerts package: run-summary delivery (Telegram, or a no-op when unconfigured).
"""

from persona_audit.alerts.notifier import (
    DeliveryResult,
    Notifier,
    NullNotifier,
    TelegramNotifier,
)

__all__ = ["DeliveryResult", "Notifier", "NullNotifier", "TelegramNotifier"]
