"""
Persona registry: persona id -> (Persona, Analyzer), in registration order.

Built once at startup, then frozen. Personas are data; there is no
"current persona" state anywhere, each analyzer call receives its persona.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator

from persona_audit.analysis_engine.analyzers import Analyzer, AnalyzeFn, as_analyzer
from persona_audit.analysis_engine.heuristics import builtin_analyzer
from persona_audit.analysis_engine.models import Persona
from persona_audit.audit_logging import get_logger
from persona_audit.core.exceptions import DuplicatePersona, RegistryFrozen

logger = get_logger(__name__)


@dataclass(frozen=True)
class PersonaSpec:
    """Persona as declared in configuration; analyzer names a built-in ruleset."""

    id: str
    name: str
    focus_areas: tuple[str, ...] = ()
    weight: float | None = None
    level: str | None = None
    analyzer: str | None = None

    def to_persona(self) -> Persona:
        return Persona(
            id=self.id,
            name=self.name,
            focus_areas=tuple(self.focus_areas),
            weight=self.weight,
            level=self.level,
        )


class PersonaRegistry:
    def __init__(self) -> None:
        self._entries: dict[str, tuple[Persona, Analyzer]] = {}
        self._frozen = False

    def register(self, persona: Persona, analyzer: Analyzer | AnalyzeFn) -> None:
        if self._frozen:
            raise RegistryFrozen(f"Cannot register '{persona.id}': registry is frozen")
        if persona.id in self._entries:
            raise DuplicatePersona(persona.id)
        self._entries[persona.id] = (persona, as_analyzer(analyzer))
        logger.debug("registry_persona_registered", persona_id=persona.id, persona_name=persona.name)

    def freeze(self) -> "PersonaRegistry":
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def all(self) -> list[tuple[Persona, Analyzer]]:
        return list(self._entries.values())

    def personas(self) -> list[Persona]:
        return [p for p, _ in self._entries.values()]

    def ids(self) -> list[str]:
        return list(self._entries)

    def get(self, persona_id: str) -> tuple[Persona, Analyzer]:
        return self._entries[persona_id]

    def __contains__(self, persona_id: object) -> bool:
        return persona_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[tuple[Persona, Analyzer]]:
        return iter(self.all())


def build_registry(specs: Iterable[PersonaSpec]) -> PersonaRegistry:
    """
    Register each spec with its built-in analyzer (analyzer name, or the persona id
    when no analyzer is named). Unknown analyzer names raise ConfigurationError.
    """
    registry = PersonaRegistry()
    for spec in specs:
        registry.register(spec.to_persona(), builtin_analyzer(spec.analyzer or spec.id))
    return registry
