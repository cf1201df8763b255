"""
Personas package: the persona registry and the default expert panel.
"""

from persona_audit.personas.registry import PersonaRegistry, PersonaSpec, build_registry
from persona_audit.personas.defaults import DEFAULT_CORRELATION_RULES, DEFAULT_PERSONAS

__all__ = [
    "PersonaRegistry",
    "PersonaSpec",
    "build_registry",
    "DEFAULT_CORRELATION_RULES",
    "DEFAULT_PERSONAS",
]
