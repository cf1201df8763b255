"""
Target catalog: the ordered list of artifacts to assess and their cached content.

Content is read once when the catalog is built and kept in memory for the run
only. Files are sized with stat() before reading. Oversized or unreadable
files stay listed (so every persona records a skip for them) but load()
raises TargetUnavailable.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Mapping

from persona_audit.analysis_engine.models import Target
from persona_audit.audit_logging import get_logger
from persona_audit.core.exceptions import TargetUnavailable

logger = get_logger(__name__)

DEFAULT_EXTENSIONS = (".py", ".js", ".ts", ".mjs", ".cjs")
# Files larger than this are listed but never read
DEFAULT_MAX_CONTENT_BYTES = 1_000_000


def _decode(raw: bytes | str) -> str:
    if isinstance(raw, bytes):
        return raw.decode("utf-8", errors="replace")
    return raw


class TargetCatalog:
    """Ordered, immutable set of targets for one run."""

    def __init__(
        self,
        targets: Iterable[Target],
        unavailable: Mapping[str, str] | None = None,
    ) -> None:
        self._targets: tuple[Target, ...] = tuple(targets)
        self._by_id: dict[str, Target] = {}
        for t in self._targets:
            if t.id in self._by_id:
                raise ValueError(f"Duplicate target id '{t.id}'")
            self._by_id[t.id] = t
        self._unavailable: dict[str, str] = dict(unavailable or {})

    @classmethod
    def from_mapping(cls, contents: Mapping[str, bytes | str]) -> "TargetCatalog":
        """Build from an ordered {target_id: content} mapping supplied by the caller."""
        targets = []
        for target_id, raw in contents.items():
            text = _decode(raw)
            size = len(raw) if isinstance(raw, bytes) else len(text.encode("utf-8"))
            targets.append(
                Target(id=target_id, display_name=target_id, raw_content=text, size_bytes=size)
            )
        return cls(targets)

    @classmethod
    def from_paths(
        cls,
        paths: Iterable[str | Path],
        *,
        root: str | Path | None = None,
        max_bytes: int | None = DEFAULT_MAX_CONTENT_BYTES,
    ) -> "TargetCatalog":
        """
        Build from file paths in the given order.

        Target ids are paths relative to root when given, else the path as passed.
        Files that cannot be read, or whose size on disk exceeds max_bytes, are
        kept and marked unavailable; oversized files are never read.
        """
        base = Path(root).resolve() if root else None
        targets: list[Target] = []
        unavailable: dict[str, str] = {}
        for p in paths:
            path = Path(p)
            target_id = str(path)
            if base is not None:
                try:
                    target_id = str(path.resolve().relative_to(base))
                except ValueError:
                    pass
            try:
                size = path.stat().st_size
                if max_bytes is not None and size > max_bytes:
                    reason = f"content size {size} bytes exceeds limit {max_bytes}"
                    logger.warning(
                        "catalog_target_too_large",
                        target_id=target_id,
                        size_bytes=size,
                        max_bytes=max_bytes,
                    )
                    unavailable[target_id] = reason
                    targets.append(Target(id=target_id, display_name=path.name, raw_content="", size_bytes=size))
                    continue
                raw = path.read_bytes()
            except OSError as e:
                logger.warning("catalog_target_unreadable", target_id=target_id, error=str(e))
                unavailable[target_id] = str(e)
                targets.append(Target(id=target_id, display_name=path.name, raw_content="", size_bytes=0))
                continue
            targets.append(
                Target(
                    id=target_id,
                    display_name=path.name,
                    raw_content=_decode(raw),
                    size_bytes=len(raw),
                )
            )
        logger.info("catalog_built", target_count=len(targets), unavailable_count=len(unavailable))
        return cls(targets, unavailable)

    def list_targets(self) -> list[Target]:
        return list(self._targets)

    def load(self, target_id: str) -> str:
        """Return cached raw content for target_id; TargetUnavailable if unknown or unreadable."""
        target = self._by_id.get(target_id)
        if target is None:
            raise TargetUnavailable(target_id, "unknown target")
        reason = self._unavailable.get(target_id)
        if reason is not None:
            raise TargetUnavailable(target_id, reason)
        return target.raw_content

    def __len__(self) -> int:
        return len(self._targets)


def collect_paths(
    inputs: Iterable[str | Path],
    extensions: Iterable[str] = DEFAULT_EXTENSIONS,
) -> list[Path]:
    """Expand directories to matching files (sorted); files are kept as given, in order."""
    exts = tuple(e if e.startswith(".") else f".{e}" for e in extensions)
    out: list[Path] = []
    seen: set[Path] = set()
    for item in inputs:
        path = Path(item)
        if path.is_dir():
            candidates = sorted(p for p in path.rglob("*") if p.is_file() and p.suffix in exts)
        else:
            candidates = [path]
        for c in candidates:
            if c not in seen:
                seen.add(c)
                out.append(c)
    return out
