"""
Tests for the persona registry and the default persona panel.
"""

from __future__ import annotations

import pytest

from persona_audit.analysis_engine.analyzers import RuleBasedAnalyzer
from persona_audit.analysis_engine.models import Persona
from persona_audit.core.exceptions import ConfigurationError, DuplicatePersona, RegistryFrozen
from persona_audit.personas import DEFAULT_CORRELATION_RULES, DEFAULT_PERSONAS, build_registry
from persona_audit.personas.registry import PersonaRegistry, PersonaSpec


def test_register_preserves_order(scripted):
    registry = PersonaRegistry()
    for pid in ("zeta", "alpha", "mid"):
        registry.register(Persona(id=pid, name=pid), scripted())
    assert registry.ids() == ["zeta", "alpha", "mid"]
    assert [p.id for p in registry.personas()] == ["zeta", "alpha", "mid"]
    assert "mid" in registry
    assert len(registry) == 3


def test_duplicate_persona_rejected(scripted):
    registry = PersonaRegistry()
    registry.register(Persona(id="security", name="Security"), scripted())
    with pytest.raises(DuplicatePersona) as exc:
        registry.register(Persona(id="security", name="Other"), scripted())
    assert exc.value.persona_id == "security"
    assert isinstance(exc.value, ConfigurationError)


def test_frozen_registry_rejects_registration(scripted):
    registry = PersonaRegistry()
    registry.register(Persona(id="a", name="A"), scripted())
    assert registry.freeze() is registry
    assert registry.frozen
    with pytest.raises(RegistryFrozen):
        registry.register(Persona(id="b", name="B"), scripted())


def test_get_returns_persona_and_analyzer(scripted):
    registry = PersonaRegistry()
    analyzer = scripted()
    registry.register(Persona(id="a", name="A"), analyzer)
    persona, got = registry.get("a")
    assert persona.name == "A"
    assert got is analyzer


def test_plain_function_is_wrapped():
    registry = PersonaRegistry()
    registry.register(Persona(id="a", name="A"), lambda persona, target: None)
    _, analyzer = registry.get("a")
    assert hasattr(analyzer, "analyze")


def test_build_registry_resolves_builtin_analyzers():
    registry = build_registry(
        [
            PersonaSpec(id="sec", name="Sec", analyzer="builtin:security"),
            PersonaSpec(id="quality", name="QA"),
        ]
    )
    assert registry.ids() == ["sec", "quality"]
    _, sec = registry.get("sec")
    _, qa = registry.get("quality")
    assert isinstance(sec, RuleBasedAnalyzer) and sec.name == "security"
    assert qa.name == "quality"


def test_build_registry_unknown_analyzer():
    with pytest.raises(ConfigurationError):
        build_registry([PersonaSpec(id="x", name="X")])


def test_default_panel_is_consistent():
    """Six personas, each with a built-in analyzer; every default rule references a default persona."""
    registry = build_registry(DEFAULT_PERSONAS)
    assert len(registry) == 6
    ids = set(registry.ids())
    for rule in DEFAULT_CORRELATION_RULES:
        assert set(rule.personas) <= ids
