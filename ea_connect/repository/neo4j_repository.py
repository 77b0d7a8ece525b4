"""Neo4j-backed model repository.

Elements are nodes labelled with their element type (plus ``Element``);
relationships are typed edges. Both carry a generated ``id`` property.
"""

from datetime import datetime, timezone
import logging
import re
from uuid import uuid4

from neo4j import GraphDatabase
from neo4j.exceptions import DriverError, Neo4jError

from ..resolution.ports import OperationResult
from ..resolution.types import ElementRef, Point

log = logging.getLogger(__name__)

ELEMENT_LABEL = "Element"


class Neo4jModelRepository:
    """Model repository port over the Neo4j driver."""

    def __init__(
        self,
        uri: str = "bolt://localhost:7687",
        user: str = "neo4j",
        password: str = "neo4j",
    ):
        self.driver = GraphDatabase.driver(uri, auth=(user, password))

    def close(self):
        self.driver.close()

    def clear(self, force: bool = False):
        """Delete every element and relationship.

        Args:
            force: Must be True to execute destructive wipe.
        """
        if not force:
            raise RuntimeError("Refusing to clear database without force=True")
        with self.driver.session() as session:
            session.run(f"MATCH (n:{ELEMENT_LABEL}) DETACH DELETE n")

    @staticmethod
    def _sanitize_label(label: str) -> str:
        """Sanitize label for Neo4j (no spaces, special chars)."""
        sanitized = re.sub(r"[^a-zA-Z0-9_]", "_", label)
        if sanitized and not sanitized[0].isalpha():
            sanitized = "N_" + sanitized
        return sanitized or "Unknown"

    def create_element(
        self,
        element_type: str,
        name: str,
        *,
        derived: bool = False,
        position: Point | None = None,
    ) -> OperationResult:
        label = self._sanitize_label(element_type)
        point = position or Point()
        element_id = f"{label.lower()}:{uuid4().hex[:12]}"
        props = {
            "id": element_id,
            "name": name.strip(),
            "element_type": element_type,
            "derived": derived,
            "x": point.x,
            "y": point.y,
            "created_at": datetime.now(timezone.utc).isoformat(),
        }

        try:
            with self.driver.session() as session:
                record = session.run(
                    f"CREATE (n:{ELEMENT_LABEL}:{label}) SET n = $props RETURN n.id AS id",
                    props=props,
                ).single()
        except (Neo4jError, DriverError) as exc:
            log.warning(f"Failed to create {element_type}: {exc}")
            return OperationResult.failure(str(exc))

        if not record:
            return OperationResult.failure(f"Failed to create {element_type}")
        return OperationResult.success(record["id"])

    def create_relationship(
        self, from_id: str, to_id: str, relationship_type: str
    ) -> OperationResult:
        rel = self._sanitize_label(relationship_type).upper()
        edge_id = f"edge:{uuid4().hex[:12]}"

        try:
            with self.driver.session() as session:
                record = session.run(
                    f"""
                    MATCH (a:{ELEMENT_LABEL} {{id: $from_id}})
                    MATCH (b:{ELEMENT_LABEL} {{id: $to_id}})
                    CREATE (a)-[r:{rel} {{id: $edge_id, created_at: $now}}]->(b)
                    RETURN r.id AS id
                    """,
                    from_id=from_id,
                    to_id=to_id,
                    edge_id=edge_id,
                    now=datetime.now(timezone.utc).isoformat(),
                ).single()
        except (Neo4jError, DriverError) as exc:
            log.warning(f"Failed to create {relationship_type}: {exc}")
            return OperationResult.failure(str(exc))

        if not record:
            return OperationResult.failure("One or both elements not found")
        return OperationResult.success(record["id"])

    def delete_element(self, element_id: str) -> OperationResult:
        try:
            with self.driver.session() as session:
                record = session.run(
                    f"""
                    MATCH (n:{ELEMENT_LABEL} {{id: $id}})
                    DETACH DELETE n
                    RETURN count(n) AS deleted
                    """,
                    id=element_id,
                ).single()
        except (Neo4jError, DriverError) as exc:
            return OperationResult.failure(str(exc))

        if not record or record["deleted"] == 0:
            return OperationResult.failure(f"Element not found: {element_id}")
        return OperationResult.success(element_id)

    def delete_relationship(self, edge_id: str) -> OperationResult:
        try:
            with self.driver.session() as session:
                record = session.run(
                    """
                    MATCH ()-[r {id: $id}]->()
                    DELETE r
                    RETURN count(r) AS deleted
                    """,
                    id=edge_id,
                ).single()
        except (Neo4jError, DriverError) as exc:
            return OperationResult.failure(str(exc))

        if not record or record["deleted"] == 0:
            return OperationResult.failure(f"Relationship not found: {edge_id}")
        return OperationResult.success(edge_id)

    def check_connection(self) -> OperationResult:
        try:
            self.driver.verify_connectivity()
        except (Neo4jError, DriverError) as exc:
            log.warning(f"Neo4j is unreachable: {exc}")
            return OperationResult.failure(str(exc))
        return OperationResult.success()

    def element_type(self, element_id: str) -> str | None:
        """Element-type resolver for the resolution session."""
        try:
            with self.driver.session() as session:
                record = session.run(
                    f"MATCH (n:{ELEMENT_LABEL} {{id: $id}}) RETURN n.element_type AS type",
                    id=element_id,
                ).single()
        except (Neo4jError, DriverError) as exc:
            log.warning(f"Failed to look up {element_id}: {exc}")
            return None
        if not record:
            return None
        return record["type"]

    def elements(self) -> list[ElementRef]:
        try:
            with self.driver.session() as session:
                result = session.run(
                    f"""
                    MATCH (n:{ELEMENT_LABEL})
                    RETURN n.id AS id, n.element_type AS type
                    ORDER BY n.id
                    """
                )
                return [
                    ElementRef(id=record["id"], type=record["type"])
                    for record in result
                    if record["id"] and record["type"]
                ]
        except (Neo4jError, DriverError) as exc:
            log.warning(f"Failed to list elements: {exc}")
            return []

    def get_relationship(self, edge_id: str) -> dict | None:
        try:
            with self.driver.session() as session:
                record = session.run(
                    """
                    MATCH (a)-[r {id: $id}]->(b)
                    RETURN a.id AS from_id, b.id AS to_id, type(r) AS relation
                    """,
                    id=edge_id,
                ).single()
        except (Neo4jError, DriverError) as exc:
            log.warning(f"Failed to look up {edge_id}: {exc}")
            return None
        if not record:
            return None
        return {
            "id": edge_id,
            "from_id": record["from_id"],
            "to_id": record["to_id"],
            "relation": record["relation"],
        }
