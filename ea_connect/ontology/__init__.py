"""Element/relationship type ontology and canonical preference tables."""

from .metamodel import (
    DEFAULT_ONTOLOGY,
    ElementTypeDefinition,
    Ontology,
    OntologyError,
    RelationshipTypeDefinition,
    default_ontology,
    validate_edge,
)
from .preferences import DEFAULT_PREFERENCES, PreferenceTables

__all__ = [
    "DEFAULT_ONTOLOGY",
    "DEFAULT_PREFERENCES",
    "ElementTypeDefinition",
    "Ontology",
    "OntologyError",
    "PreferenceTables",
    "RelationshipTypeDefinition",
    "default_ontology",
    "validate_edge",
]
