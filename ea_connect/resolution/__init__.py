"""Connection resolution: engine, hover feedback and gesture session."""

from .config import DEFAULT_RESOLUTION_CONFIG, ResolutionConfig
from .engine import (
    find_direct_relationships,
    find_indirect_paths,
    resolve_connection,
    resolve_connections_for_source,
)
from .feedback import FeedbackBoard, get_connection_feedback
from .ports import ModelRepository, OperationResult
from .session import (
    ChangeType,
    CollapseIntermediates,
    DismissReason,
    ExpandIntermediates,
    ResolutionSession,
    SessionOutcome,
    SessionState,
    SwitchPath,
)
from .types import (
    ConnectionFeedback,
    ConnectionResolution,
    CreatedConnection,
    DirectRelationship,
    ElementRef,
    FeedbackKind,
    IndirectHop,
    IndirectPath,
    Point,
    Recommendation,
)

__all__ = [
    "ChangeType",
    "CollapseIntermediates",
    "ConnectionFeedback",
    "ConnectionResolution",
    "CreatedConnection",
    "DEFAULT_RESOLUTION_CONFIG",
    "DirectRelationship",
    "DismissReason",
    "ElementRef",
    "ExpandIntermediates",
    "FeedbackBoard",
    "FeedbackKind",
    "IndirectHop",
    "IndirectPath",
    "ModelRepository",
    "OperationResult",
    "Point",
    "Recommendation",
    "ResolutionConfig",
    "ResolutionSession",
    "SessionOutcome",
    "SessionState",
    "SwitchPath",
    "find_direct_relationships",
    "find_indirect_paths",
    "get_connection_feedback",
    "resolve_connection",
    "resolve_connections_for_source",
]
