"""Collaborator interfaces the resolution session talks to."""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from .types import Point


@dataclass(frozen=True)
class OperationResult:
    """Outcome of a delegated graph mutation."""

    ok: bool
    id: str | None = None
    error: str | None = None

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls, item_id: str | None = None) -> "OperationResult":
        return cls(ok=True, id=item_id)

    @classmethod
    def failure(cls, error: str) -> "OperationResult":
        return cls(ok=False, error=error)


class ModelRepository(Protocol):
    def create_element(
        self,
        element_type: str,
        name: str,
        *,
        derived: bool = False,
        position: Point | None = None,
    ) -> OperationResult: ...

    def create_relationship(
        self,
        from_id: str,
        to_id: str,
        relationship_type: str,
    ) -> OperationResult: ...

    def delete_element(self, element_id: str) -> OperationResult: ...

    def delete_relationship(self, edge_id: str) -> OperationResult: ...


# element id -> element type, or None when unknown
ElementTypeResolver = Callable[[str], str | None]

# (level, message); level is "info", "warn" or "error"
LogSink = Callable[[str, str], None]
