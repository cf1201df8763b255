"""
Application-level exceptions.

Per-pair failures (TargetUnavailable, AnalysisFailed) are recoverable and are
caught at the runner boundary. Configuration errors are raised while the
pipeline is being built, before any analysis runs. Every exception carries a
stable code for logs and reports.
"""

from __future__ import annotations


class PersonaAuditError(Exception):
    """Base class for all persona-audit errors."""

    code = "persona_audit_error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.code)
        self.message = message or self.code


class TargetUnavailable(PersonaAuditError):
    """Content of one target could not be read."""

    code = "target_unavailable"

    def __init__(self, target_id: str, reason: str = "") -> None:
        self.target_id = target_id
        self.reason = reason or "content unavailable"
        super().__init__(f"Target '{target_id}' unavailable: {self.reason}")


class AnalysisFailed(PersonaAuditError):
    """An analyzer could not complete for one (persona, target) pair."""

    code = "analysis_failed"

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


class ConfigurationError(PersonaAuditError):
    """Invalid pipeline configuration; fatal at construction time."""

    code = "configuration_error"


class DuplicatePersona(ConfigurationError):
    code = "duplicate_persona"

    def __init__(self, persona_id: str) -> None:
        self.persona_id = persona_id
        super().__init__(f"Persona '{persona_id}' is already registered")


class UnknownPersonaReference(ConfigurationError):
    code = "unknown_persona_reference"

    def __init__(self, rule_id: str, persona_id: str) -> None:
        self.rule_id = rule_id
        self.persona_id = persona_id
        super().__init__(
            f"Correlation rule '{rule_id}' references unknown persona '{persona_id}'"
        )


class InvalidWeights(ConfigurationError):
    code = "invalid_weights"


class InvalidThresholds(ConfigurationError):
    code = "invalid_thresholds"


class RegistryFrozen(ConfigurationError):
    code = "registry_frozen"


class EmptyCatalog(PersonaAuditError):
    """No targets to assess; terminal."""

    code = "empty_catalog"


class NotificationFailed(PersonaAuditError):
    """Notifier could not deliver the summary; logged only, never fatal."""

    code = "notification_failed"
