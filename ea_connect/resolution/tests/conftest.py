"""Shared fixtures: a four-type toy ontology with known scores."""

import pytest

from ea_connect.ontology.metamodel import (
    ElementTypeDefinition,
    Ontology,
    RelationshipTypeDefinition,
)
from ea_connect.ontology.preferences import PreferenceTables
from ea_connect.repository.memory import InMemoryModelRepository
from ea_connect.resolution.session import ResolutionSession


def _rel(name: str, layer: str, source: str, target: str) -> RelationshipTypeDefinition:
    return RelationshipTypeDefinition(
        name=name, layer=layer, from_types=(source,), to_types=(target,)
    )


@pytest.fixture
def toy_ontology() -> Ontology:
    return Ontology(
        [
            ElementTypeDefinition("Capability", "Business"),
            ElementTypeDefinition("BusinessProcess", "Business"),
            ElementTypeDefinition("Application", "Application"),
            ElementTypeDefinition("Technology", "Technology"),
        ],
        [
            _rel("REALIZED_BY", "Business", "Capability", "BusinessProcess"),
            _rel("SUPPORTED_BY", "Business", "Capability", "Application"),
            _rel("SERVED_BY", "Application", "BusinessProcess", "Application"),
            _rel("USES", "Application", "BusinessProcess", "Application"),
            _rel("DEPLOYED_ON", "Technology", "Application", "Technology"),
        ],
    )


@pytest.fixture
def toy_preferences() -> PreferenceTables:
    return PreferenceTables(
        [
            ("Capability", "BusinessProcess", "REALIZED_BY", 100),
            ("Capability", "Application", "SUPPORTED_BY", 95),
            ("BusinessProcess", "Application", "SERVED_BY", 90),
            ("Application", "Technology", "DEPLOYED_ON", 70),
        ]
    )


@pytest.fixture
def repository(toy_ontology) -> InMemoryModelRepository:
    repo = InMemoryModelRepository(toy_ontology)
    repo.add_element("Capability", "Customer Onboarding", "c1")
    repo.add_element("BusinessProcess", "Open Account", "p1")
    repo.add_element("Application", "CRM", "a1")
    repo.add_element("Technology", "Kubernetes", "t1")
    return repo


@pytest.fixture
def messages() -> list[tuple[str, str]]:
    return []


@pytest.fixture
def session(repository, toy_ontology, toy_preferences, messages) -> ResolutionSession:
    return ResolutionSession(
        repository,
        repository.element_type,
        log_sink=lambda level, message: messages.append((level, message)),
        ontology=toy_ontology,
        preferences=toy_preferences,
    )
