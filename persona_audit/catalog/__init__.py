"""
Target catalog: enumerates the artifacts of a run and caches their content.
"""

from persona_audit.catalog.targets import DEFAULT_EXTENSIONS, TargetCatalog, collect_paths

__all__ = ["DEFAULT_EXTENSIONS", "TargetCatalog", "collect_paths"]
