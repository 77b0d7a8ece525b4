"""NetworkX-backed model repository."""

from collections import Counter
from dataclasses import dataclass
from uuid import uuid4

import networkx as nx

from ..ontology.metamodel import Ontology
from ..resolution.ports import OperationResult
from ..resolution.types import ElementRef, Point


@dataclass
class ModelStats:
    """Statistics about the model graph."""

    elements: int
    relationships: int
    element_types: dict[str, int]
    relationship_types: dict[str, int]
    derived: int

    def __str__(self) -> str:
        elements_str = ", ".join(
            f"{k}: {v}" for k, v in sorted(self.element_types.items(), key=lambda x: -x[1])
        )
        relationships_str = ", ".join(
            f"{k}: {v}"
            for k, v in sorted(self.relationship_types.items(), key=lambda x: -x[1])
        )
        return (
            f"Model Stats:\n"
            f"  Elements: {self.elements} ({elements_str})\n"
            f"  Relationships: {self.relationships} ({relationships_str})\n"
            f"  Derived elements: {self.derived}"
        )


class InMemoryModelRepository:
    """Element/relationship graph held in a ``networkx.MultiDiGraph``.

    When an ontology is given, relationship creation is checked against its
    endpoint predicate and illegal pairs are rejected.
    """

    def __init__(self, ontology: Ontology | None = None):
        self.graph = nx.MultiDiGraph()
        self.ontology = ontology
        self._edges: dict[str, tuple[str, str]] = {}

    def add_element(
        self,
        element_type: str,
        name: str,
        element_id: str | None = None,
        *,
        derived: bool = False,
        position: Point | None = None,
    ) -> str:
        """Add an element directly and return its id."""
        node_id = element_id or f"{element_type.lower()}:{uuid4().hex[:12]}"
        point = position or Point()
        self.graph.add_node(
            node_id,
            type=element_type,
            name=name,
            derived=derived,
            x=point.x,
            y=point.y,
        )
        return node_id

    def create_element(
        self,
        element_type: str,
        name: str,
        *,
        derived: bool = False,
        position: Point | None = None,
    ) -> OperationResult:
        if self.ontology is not None and not self.ontology.has_element_type(element_type):
            return OperationResult.failure(f"Unknown element type: {element_type}")
        node_id = self.add_element(element_type, name, derived=derived, position=position)
        return OperationResult.success(node_id)

    def create_relationship(
        self, from_id: str, to_id: str, relationship_type: str
    ) -> OperationResult:
        if not self.graph.has_node(from_id) or not self.graph.has_node(to_id):
            return OperationResult.failure("One or both elements not found")

        if self.ontology is not None:
            from_type = self.graph.nodes[from_id]["type"]
            to_type = self.graph.nodes[to_id]["type"]
            result = self.ontology.validate_edge(
                from_type, to_type, relationship_type, strict=True
            )
            if not result:
                return OperationResult.failure(result.errors[0])

        edge_id = f"edge:{uuid4().hex[:12]}"
        self.graph.add_edge(from_id, to_id, key=edge_id, type=relationship_type)
        self._edges[edge_id] = (from_id, to_id)
        return OperationResult.success(edge_id)

    def delete_element(self, element_id: str) -> OperationResult:
        if not self.graph.has_node(element_id):
            return OperationResult.failure(f"Element not found: {element_id}")
        for edge_id, (from_id, to_id) in list(self._edges.items()):
            if element_id in (from_id, to_id):
                del self._edges[edge_id]
        self.graph.remove_node(element_id)
        return OperationResult.success(element_id)

    def delete_relationship(self, edge_id: str) -> OperationResult:
        endpoints = self._edges.pop(edge_id, None)
        if endpoints is None:
            return OperationResult.failure(f"Relationship not found: {edge_id}")
        self.graph.remove_edge(*endpoints, key=edge_id)
        return OperationResult.success(edge_id)

    def element_type(self, element_id: str) -> str | None:
        """Element-type resolver for the resolution session."""
        if not self.graph.has_node(element_id):
            return None
        return self.graph.nodes[element_id].get("type")

    def element(self, element_id: str) -> dict | None:
        if not self.graph.has_node(element_id):
            return None
        return {"id": element_id, **self.graph.nodes[element_id]}

    def relationship(self, edge_id: str) -> dict | None:
        endpoints = self._edges.get(edge_id)
        if endpoints is None:
            return None
        from_id, to_id = endpoints
        data = self.graph.get_edge_data(from_id, to_id, key=edge_id)
        return {"id": edge_id, "from_id": from_id, "to_id": to_id, **data}

    def elements(self) -> list[ElementRef]:
        return [
            ElementRef(id=node_id, type=data["type"])
            for node_id, data in self.graph.nodes(data=True)
        ]

    def get_stats(self) -> ModelStats:
        element_types = Counter(
            data.get("type", "Unknown") for _, data in self.graph.nodes(data=True)
        )
        relationship_types = Counter(
            data.get("type", "Unknown") for _, _, data in self.graph.edges(data=True)
        )
        derived = sum(1 for _, data in self.graph.nodes(data=True) if data.get("derived"))
        return ModelStats(
            elements=self.graph.number_of_nodes(),
            relationships=self.graph.number_of_edges(),
            element_types=dict(element_types),
            relationship_types=dict(relationship_types),
            derived=derived,
        )
