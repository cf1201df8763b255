"""
Core utilities: error taxonomy shared by catalog, analyzers, runner and pipeline.
"""

from persona_audit.core.exceptions import (
    AnalysisFailed,
    ConfigurationError,
    DuplicatePersona,
    EmptyCatalog,
    InvalidThresholds,
    InvalidWeights,
    NotificationFailed,
    PersonaAuditError,
    RegistryFrozen,
    TargetUnavailable,
    UnknownPersonaReference,
)

__all__ = [
    "AnalysisFailed",
    "ConfigurationError",
    "DuplicatePersona",
    "EmptyCatalog",
    "InvalidThresholds",
    "InvalidWeights",
    "NotificationFailed",
    "PersonaAuditError",
    "RegistryFrozen",
    "TargetUnavailable",
    "UnknownPersonaReference",
]
