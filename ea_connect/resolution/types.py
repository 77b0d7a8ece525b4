"""Typed contracts for connection resolution."""

from dataclasses import dataclass, field
from enum import Enum


class Recommendation(str, Enum):
    AUTO_CREATE = "auto-create"
    CHOOSE_DIRECT = "choose-direct"
    CHOOSE_ANY = "choose-any"
    NO_PATH = "no-path"


class FeedbackKind(str, Enum):
    DIRECT_VALID = "direct-valid"
    INDIRECT_VALID = "indirect-valid"
    NEUTRAL = "neutral"


@dataclass(frozen=True)
class Point:
    x: float = 0.0
    y: float = 0.0


@dataclass(frozen=True)
class ElementRef:
    id: str
    type: str


@dataclass(frozen=True)
class DirectRelationship:
    type: str
    from_type: str
    to_type: str
    label: str
    canonical_score: int

    kind = "direct"


@dataclass(frozen=True)
class IndirectHop:
    relationship_type: str
    from_type: str
    to_type: str
    intermediate_element_type: str | None = None


@dataclass(frozen=True)
class IndirectPath:
    hops: tuple[IndirectHop, ...]
    label: str
    intermediate_types: tuple[str, ...]
    canonical_score: int
    depth: int = 2

    kind = "indirect"

    @property
    def key(self) -> tuple[str, ...]:
        """Identity used for de-duplication: intermediates then hop types."""
        return self.intermediate_types + tuple(
            hop.relationship_type for hop in self.hops
        )


ConnectionOption = DirectRelationship | IndirectPath


@dataclass(frozen=True)
class ConnectionResolution:
    source_id: str
    target_id: str
    source_type: str
    target_type: str
    direct_relationships: tuple[DirectRelationship, ...]
    indirect_paths: tuple[IndirectPath, ...]
    recommendation: Recommendation
    has_any_path: bool
    auto_create_choice: ConnectionOption | None = None
    no_path_suggestion: str | None = None

    @property
    def options(self) -> list[ConnectionOption]:
        """Ranked chooser options: direct relationships first, then paths."""
        return [*self.direct_relationships, *self.indirect_paths]


@dataclass(frozen=True)
class ConnectionFeedback:
    kind: FeedbackKind
    tooltip: str


@dataclass(frozen=True)
class CreatedConnection:
    primary_edge_id: str
    primary_type: str
    source_id: str
    target_id: str
    is_derived: bool
    intermediate_element_ids: tuple[str, ...] = field(default=())
    intermediate_edge_ids: tuple[str, ...] = field(default=())
    collapsed: bool = False
