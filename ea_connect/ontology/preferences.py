"""Canonical preference tables.

Static scores for well-known enterprise-architecture idioms. Higher is more
idiomatic. Direct patterns score a single (source, target, relationship)
hop; bridge patterns score a (source, intermediate, target) detour.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable

import yaml

from .metamodel import OntologyError

# (from, to, via, score)
CANONICAL_PATTERNS: tuple[tuple[str, str, str, int], ...] = (
    # Strategy -> Business
    ("Capability", "BusinessProcess", "REALIZED_BY", 100),
    ("Capability", "Application", "SUPPORTED_BY", 95),
    ("SubCapability", "Application", "SUPPORTED_BY", 94),
    ("BusinessService", "ApplicationService", "SUPPORTED_BY", 93),
    # Business -> Application
    ("BusinessProcess", "Application", "SERVED_BY", 90),
    ("Application", "ApplicationService", "EXPOSES", 85),
    ("ApplicationService", "Application", "PROVIDED_BY", 84),
    # Application -> Technology
    ("Application", "Technology", "DEPLOYED_ON", 80),
    ("Application", "Server", "DEPLOYED_ON", 80),
    ("Application", "Container", "DEPLOYED_ON", 80),
    ("Application", "CloudService", "DEPLOYED_ON", 80),
    # Composition
    ("CapabilityCategory", "Capability", "COMPOSED_OF", 75),
    ("Capability", "SubCapability", "COMPOSED_OF", 75),
    # Ownership
    ("Enterprise", "Department", "HAS", 70),
    ("Enterprise", "Application", "OWNS", 70),
    ("Enterprise", "Capability", "OWNS", 70),
    # Implementation
    ("Programme", "Capability", "DELIVERS", 65),
    ("Programme", "Application", "DELIVERS", 65),
    ("Project", "Application", "IMPLEMENTS", 65),
)

# (from, via, to, score)
CANONICAL_BRIDGES: tuple[tuple[str, str, str, int], ...] = (
    ("Capability", "BusinessProcess", "Application", 90),
    ("Capability", "Application", "Technology", 85),
    ("Capability", "Application", "Server", 85),
    ("Capability", "Application", "Container", 85),
    ("Capability", "Application", "CloudService", 85),
    ("BusinessProcess", "Application", "Technology", 80),
    ("BusinessProcess", "Application", "Server", 80),
    ("BusinessService", "ApplicationService", "Application", 88),
    ("Enterprise", "Capability", "Application", 75),
    ("Programme", "Application", "Technology", 70),
)


class PreferenceTables:
    """Lookup of canonical direct and bridge scores (0 when absent)."""

    def __init__(
        self,
        patterns: Iterable[tuple[str, str, str, int]] = (),
        bridges: Iterable[tuple[str, str, str, int]] = (),
    ):
        self._direct: dict[tuple[str, str, str], int] = {}
        for source, target, via, score in patterns:
            self._direct[(source, target, via)] = score

        self._bridges: dict[tuple[str, str, str], int] = {}
        for source, via, target, score in bridges:
            self._bridges[(source, via, target)] = score

    def __repr__(self) -> str:
        return f"PreferenceTables(direct={len(self._direct)}, bridges={len(self._bridges)})"

    def direct_score(self, source_type: str, target_type: str, via: str) -> int:
        return self._direct.get((source_type, target_type, via), 0)

    def bridge_score(self, source_type: str, via_type: str, target_type: str) -> int:
        return self._bridges.get((source_type, via_type, target_type), 0)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PreferenceTables:
        """Build tables from ``{direct: [...], bridges: [...]}``.

        Each direct entry is ``{from, to, via, score}``; each bridge entry is
        ``{from, via, to, score}``.
        """
        if not isinstance(data, dict):
            raise OntologyError("Preference document must be a mapping")

        patterns = [_parse_entry(raw, "direct") for raw in data.get("direct") or []]
        bridges = [_parse_entry(raw, "bridge") for raw in data.get("bridges") or []]
        return cls(
            [(src, to, via, score) for src, via, to, score in patterns],
            bridges,
        )

    @classmethod
    def from_yaml(cls, path: str | Path) -> PreferenceTables:
        try:
            data = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
        except yaml.YAMLError as exc:
            raise OntologyError(f"Invalid YAML in {path}: {exc}") from exc
        return cls.from_dict(data or {})


def _parse_entry(raw: Any, kind: str) -> tuple[str, str, str, int]:
    if not isinstance(raw, dict):
        raise OntologyError(f"{kind} preference must be a mapping: {raw!r}")
    try:
        return (
            str(raw["from"]),
            str(raw["via"]),
            str(raw["to"]),
            int(raw.get("score", 0)),
        )
    except KeyError as exc:
        raise OntologyError(f"{kind} preference is missing {exc}: {raw!r}") from exc
    except (TypeError, ValueError) as exc:
        raise OntologyError(f"{kind} preference has a non-numeric score: {raw!r}") from exc


DEFAULT_PREFERENCES = PreferenceTables(CANONICAL_PATTERNS, CANONICAL_BRIDGES)
