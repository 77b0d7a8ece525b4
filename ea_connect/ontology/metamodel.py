"""Queryable type ontology used by connection resolution.

An :class:`Ontology` is an immutable, ordered view of element types and
relationship type definitions. The built-in enterprise-architecture ontology
is built from :mod:`.schema`; custom ontologies can be loaded from YAML or
layered over the built-in one.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

import yaml

from .schema import ELEMENT_LAYERS, RELATIONSHIP_CONSTRAINTS, ValidationResult


class OntologyError(ValueError):
    """Raised when an ontology or preference document is malformed."""


@dataclass(frozen=True)
class ElementTypeDefinition:
    name: str
    layer: str
    description: str = ""


@dataclass(frozen=True)
class RelationshipTypeDefinition:
    """A relationship type and the endpoints it may connect.

    When ``allowed_endpoint_pairs`` is non-empty it alone decides legality;
    otherwise any ``from_types`` x ``to_types`` combination is legal.
    """

    name: str
    layer: str
    from_types: tuple[str, ...]
    to_types: tuple[str, ...]
    allowed_endpoint_pairs: tuple[tuple[str, str], ...] = field(default=())
    description: str = ""

    def allows(self, source_type: str, target_type: str) -> bool:
        if self.allowed_endpoint_pairs:
            return (source_type, target_type) in self.allowed_endpoint_pairs
        return source_type in self.from_types and target_type in self.to_types


class Ontology:
    """Read-only element/relationship type catalogue."""

    def __init__(
        self,
        element_types: Iterable[ElementTypeDefinition],
        relationship_types: Iterable[RelationshipTypeDefinition],
    ):
        self._elements: dict[str, ElementTypeDefinition] = {}
        for definition in element_types:
            self._elements[definition.name] = definition

        self._relationships: dict[str, RelationshipTypeDefinition] = {}
        for definition in relationship_types:
            self._relationships[definition.name] = definition

    def __repr__(self) -> str:
        return (
            f"Ontology(element_types={len(self._elements)}, "
            f"relationship_types={len(self._relationships)})"
        )

    @property
    def element_types(self) -> list[str]:
        return list(self._elements)

    @property
    def relationship_types(self) -> list[RelationshipTypeDefinition]:
        return list(self._relationships.values())

    def has_element_type(self, element_type: str) -> bool:
        return element_type in self._elements

    def element(self, element_type: str) -> ElementTypeDefinition | None:
        return self._elements.get(element_type)

    def layer_of(self, element_type: str) -> str | None:
        definition = self._elements.get(element_type)
        return definition.layer if definition else None

    def relationship(self, name: str) -> RelationshipTypeDefinition | None:
        return self._relationships.get(name)

    def allows(self, relationship_type: str, source_type: str, target_type: str) -> bool:
        """Endpoint predicate for a named relationship type."""
        definition = self._relationships.get(relationship_type)
        if definition is None:
            return False
        return definition.allows(source_type, target_type)

    def matching_relationships(
        self, source_type: str, target_type: str
    ) -> list[RelationshipTypeDefinition]:
        """All relationship types legal for the pair, in declaration order."""
        return [
            definition
            for definition in self._relationships.values()
            if definition.allows(source_type, target_type)
        ]

    def validate(self) -> ValidationResult:
        """Check that every relationship endpoint names a declared element type."""
        errors: list[str] = []
        warnings: list[str] = []

        for definition in self._relationships.values():
            endpoints = set(definition.from_types) | set(definition.to_types)
            for source, target in definition.allowed_endpoint_pairs:
                endpoints.update((source, target))
            for element_type in sorted(endpoints):
                if element_type not in self._elements:
                    errors.append(
                        f"{definition.name} references unknown element type {element_type}"
                    )
            if not definition.allowed_endpoint_pairs and not (
                definition.from_types and definition.to_types
            ):
                warnings.append(f"{definition.name} can never be used (no endpoints)")

        return ValidationResult(valid=len(errors) == 0, errors=errors, warnings=warnings)

    def validate_edge(
        self, from_type: str, to_type: str, relation: str, strict: bool = False
    ) -> ValidationResult:
        """Validate a relationship against this ontology's endpoint constraints.

        Args:
            from_type: Source element type
            to_type: Target element type
            relation: Relationship type
            strict: If True, violations are errors. If False, they are warnings.

        Returns:
            ValidationResult with valid status and any errors/warnings
        """
        errors = []
        warnings = []

        def report(msg: str) -> None:
            if strict:
                errors.append(msg)
            else:
                warnings.append(msg)

        if not self.has_element_type(from_type):
            report(f"Unknown source element type: {from_type}")

        if not self.has_element_type(to_type):
            report(f"Unknown target element type: {to_type}")

        if self.relationship(relation) is None:
            report(f"Unknown relationship type: {relation}")
        elif not self.allows(relation, from_type, to_type):
            report(f"{relation} does not allow {from_type} -> {to_type}")

        return ValidationResult(valid=len(errors) == 0, errors=errors, warnings=warnings)

    def extend(
        self,
        element_types: Iterable[ElementTypeDefinition] = (),
        relationship_types: Iterable[RelationshipTypeDefinition] = (),
    ) -> Ontology:
        """Return a new ontology with custom types layered over this one.

        Custom definitions replace built-in ones of the same name.
        """
        return Ontology(
            list(self._elements.values()) + list(element_types),
            list(self._relationships.values()) + list(relationship_types),
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any], base: Ontology | None = None) -> Ontology:
        """Build an ontology from a plain mapping.

        Expected shape::

            extends: default          # optional
            element_types:
              - {name: Capability, layer: Business}
            relationship_types:
              - name: REALIZED_BY
                layer: Business
                from: [Capability]
                to: [BusinessProcess]
                pairs: [[Capability, BusinessProcess]]   # optional

        A custom relationship type may instead give ``source``/``target``
        naming a single element type each.
        """
        if not isinstance(data, dict):
            raise OntologyError("Ontology document must be a mapping")

        elements = [_parse_element(raw) for raw in _as_list(data, "element_types")]
        relationships = [
            _parse_relationship(raw) for raw in _as_list(data, "relationship_types")
        ]

        extends = data.get("extends")
        if extends is not None:
            if extends != "default":
                raise OntologyError(f"Unsupported base ontology: {extends}")
            base = base or DEFAULT_ONTOLOGY

        if base is not None:
            return base.extend(elements, relationships)
        return cls(elements, relationships)

    @classmethod
    def from_yaml(cls, path: str | Path) -> Ontology:
        """Load an ontology from a YAML file."""
        try:
            data = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
        except yaml.YAMLError as exc:
            raise OntologyError(f"Invalid YAML in {path}: {exc}") from exc
        return cls.from_dict(data or {})


def _as_list(data: dict[str, Any], key: str) -> list:
    value = data.get(key) or []
    if not isinstance(value, list):
        raise OntologyError(f"'{key}' must be a list")
    return value


def _require(raw: dict, key: str, kind: str) -> str:
    value = raw.get(key)
    if not isinstance(value, str) or not value.strip():
        raise OntologyError(f"{kind} entry is missing '{key}': {raw!r}")
    return value.strip()


def _parse_element(raw: Any) -> ElementTypeDefinition:
    if not isinstance(raw, dict):
        raise OntologyError(f"Element type entry must be a mapping: {raw!r}")
    return ElementTypeDefinition(
        name=_require(raw, "name", "Element type"),
        layer=_require(raw, "layer", "Element type"),
        description=str(raw.get("description") or ""),
    )


def _type_list(raw: dict, key: str) -> tuple[str, ...]:
    value = raw.get(key) or []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        raise OntologyError(f"'{key}' must be a list of element types")
    return tuple(str(item) for item in value)


def _parse_relationship(raw: Any) -> RelationshipTypeDefinition:
    if not isinstance(raw, dict):
        raise OntologyError(f"Relationship type entry must be a mapping: {raw!r}")

    name = _require(raw, "name", "Relationship type")
    from_types = _type_list(raw, "from") or _type_list(raw, "source")
    to_types = _type_list(raw, "to") or _type_list(raw, "target")

    pairs: list[tuple[str, str]] = []
    for pair in raw.get("pairs") or []:
        if not isinstance(pair, (list, tuple)) or len(pair) != 2:
            raise OntologyError(f"{name}: endpoint pair must have two entries: {pair!r}")
        pairs.append((str(pair[0]), str(pair[1])))

    return RelationshipTypeDefinition(
        name=name,
        layer=str(raw.get("layer") or ""),
        from_types=from_types,
        to_types=to_types,
        allowed_endpoint_pairs=tuple(pairs),
        description=str(raw.get("description") or ""),
    )


def default_ontology() -> Ontology:
    """Build the built-in enterprise-architecture ontology."""
    elements = [
        ElementTypeDefinition(name=element.value, layer=layer.value)
        for element, layer in ELEMENT_LAYERS.items()
    ]
    relationships = []
    for relation, constraints in RELATIONSHIP_CONSTRAINTS.items():
        relationships.append(
            RelationshipTypeDefinition(
                name=relation.value,
                layer=constraints["layer"].value,
                from_types=tuple(t.value for t in constraints["sources"]),
                to_types=tuple(t.value for t in constraints["targets"]),
                allowed_endpoint_pairs=tuple(
                    (source.value, target.value)
                    for source, target in constraints.get("pairs", [])
                ),
            )
        )
    return Ontology(elements, relationships)


DEFAULT_ONTOLOGY = default_ontology()


def validate_edge(
    from_type: str,
    to_type: str,
    relation: str,
    strict: bool = False,
    *,
    ontology: Ontology = DEFAULT_ONTOLOGY,
) -> ValidationResult:
    """Validate a relationship against the built-in (or a given) ontology."""
    return ontology.validate_edge(from_type, to_type, relation, strict=strict)
