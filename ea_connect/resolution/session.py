"""Interactive connect-gesture session.

Tracks one drag-to-connect gesture at a time: batch-resolves the source
against every candidate target when the gesture starts, serves hover
feedback from that cache, and on drop turns the verdict into an action:

1. auto-create a direct relationship,
2. auto-create an indirect path (derived intermediate elements + hop edges),
3. open a chooser with the ranked options, or
4. report advisory text when nothing is legal.

Committed connections are registered so they can be reopened in an editor
(change type, switch path, expand/collapse intermediates).

Graph mutations go through the injected :class:`ModelRepository`. Each call
is atomic on its own, but the multi-call indirect procedure is not: a
failure part-way leaves already-created intermediates in place and stops.
"""

from collections.abc import Iterable, Set
from dataclasses import dataclass, replace
from enum import Enum
import logging
from uuid import uuid4

from ..ontology.metamodel import DEFAULT_ONTOLOGY, Ontology
from ..ontology.preferences import DEFAULT_PREFERENCES, PreferenceTables
from .config import DEFAULT_RESOLUTION_CONFIG, ResolutionConfig
from .engine import (
    find_direct_relationships,
    find_indirect_paths,
    resolve_connection,
    resolve_connections_for_source,
)
from .feedback import NEUTRAL_FEEDBACK, FeedbackBoard, get_connection_feedback
from .ports import ElementTypeResolver, LogSink, ModelRepository
from .types import (
    ConnectionFeedback,
    ConnectionOption,
    ConnectionResolution,
    CreatedConnection,
    DirectRelationship,
    ElementRef,
    IndirectPath,
    Point,
    Recommendation,
)

log = logging.getLogger(__name__)

_LOG_LEVELS = {"info": logging.INFO, "warn": logging.WARNING, "error": logging.ERROR}


class SessionState(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    HOVERING_TARGET = "hovering-target"


class DismissReason(str, Enum):
    EXPLICIT = "explicit"
    OUTSIDE_CLICK = "outside-click"
    ESCAPE = "escape"


@dataclass(frozen=True)
class ChangeType:
    new_type: str


@dataclass(frozen=True)
class SwitchPath:
    new_path: IndirectPath


@dataclass(frozen=True)
class ExpandIntermediates:
    pass


@dataclass(frozen=True)
class CollapseIntermediates:
    pass


ConnectionEditAction = ChangeType | SwitchPath | ExpandIntermediates | CollapseIntermediates


@dataclass(frozen=True)
class PaletteState:
    resolution: ConnectionResolution
    anchor: Point

    @property
    def options(self) -> list[ConnectionOption]:
        return self.resolution.options


@dataclass(frozen=True)
class EditorState:
    connection: CreatedConnection
    valid_types: tuple[str, ...]
    valid_indirect_paths: tuple[IndirectPath, ...]
    anchor: Point


@dataclass(frozen=True)
class SessionOutcome:
    """What a session operation did.

    ``action`` is one of: created, derived, palette, no-path, updated,
    failed, ignored.
    """

    action: str
    connection: CreatedConnection | None = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.action not in ("failed", "ignored")


_IGNORED = SessionOutcome(action="ignored")


class ResolutionSession:
    """Connect-gesture state machine for a single user."""

    def __init__(
        self,
        repository: ModelRepository,
        resolve_element_type: ElementTypeResolver,
        *,
        viewpoint_filter: Set[str] | None = None,
        log_sink: LogSink | None = None,
        ontology: Ontology = DEFAULT_ONTOLOGY,
        preferences: PreferenceTables = DEFAULT_PREFERENCES,
        config: ResolutionConfig = DEFAULT_RESOLUTION_CONFIG,
    ):
        self.repository = repository
        self.resolve_element_type = resolve_element_type
        self.viewpoint_filter = viewpoint_filter
        self.log_sink = log_sink
        self.ontology = ontology
        self.preferences = preferences
        self.config = config

        self.feedback = FeedbackBoard()

        self._dragging = False
        self._source_id: str | None = None
        self._source_type: str | None = None
        self._cache: dict[str, ConnectionResolution] = {}
        self._hover_target_id: str | None = None
        self._hover_resolution: ConnectionResolution | None = None

        self._palette: PaletteState | None = None
        self._editor: EditorState | None = None

        self._connections: dict[str, CreatedConnection] = {}

    # -- read-only views -------------------------------------------------

    @property
    def state(self) -> SessionState:
        if not self._dragging:
            return SessionState.IDLE
        if self._hover_target_id is not None:
            return SessionState.HOVERING_TARGET
        return SessionState.DRAGGING

    @property
    def source_id(self) -> str | None:
        return self._source_id

    @property
    def hover_resolution(self) -> ConnectionResolution | None:
        return self._hover_resolution

    @property
    def palette(self) -> PaletteState | None:
        return self._palette

    @property
    def editor(self) -> EditorState | None:
        return self._editor

    @property
    def connections(self) -> dict[str, CreatedConnection]:
        return dict(self._connections)

    def cached_resolution(self, target_id: str) -> ConnectionResolution | None:
        return self._cache.get(target_id)

    def get_connection(self, edge_id: str) -> CreatedConnection | None:
        return self._connections.get(edge_id)

    def forget_connection(self, edge_id: str) -> bool:
        """Drop a registered connection (deleted elsewhere)."""
        return self._connections.pop(edge_id, None) is not None

    def feedback_for_target(self, target_id: str) -> ConnectionFeedback | None:
        resolution = self._cache.get(target_id)
        if resolution is None:
            return None
        return get_connection_feedback(resolution)

    # -- gesture ---------------------------------------------------------

    def start(self, source_id: str, targets: Iterable[ElementRef | tuple[str, str]]) -> bool:
        """Begin a gesture on ``source_id`` and batch-resolve every target.

        Any gesture already in progress is replaced.
        """
        source_type = self.resolve_element_type(source_id)
        if not source_type:
            log.debug(f"Ignoring gesture start: unknown type for {source_id}")
            return False

        if self._dragging:
            log.debug(f"Replacing gesture from {self._source_id} with {source_id}")

        refs = [t if isinstance(t, ElementRef) else ElementRef(*t) for t in targets]
        self._cache = resolve_connections_for_source(
            source_id,
            source_type,
            refs,
            self.viewpoint_filter,
            ontology=self.ontology,
            preferences=self.preferences,
            config=self.config,
        )
        self._dragging = True
        self._source_id = source_id
        self._source_type = source_type
        self._hover_target_id = None
        self._hover_resolution = None
        self._palette = None
        self.feedback.clear_all()
        return True

    def hover(self, target_id: str) -> ConnectionFeedback | None:
        """Show feedback for the target under the cursor. Never creates anything."""
        if not self._dragging or target_id == self._source_id:
            return None

        if self._hover_target_id is not None and self._hover_target_id != target_id:
            self.feedback.clear(self._hover_target_id)

        resolution = self._lookup(target_id)
        self._hover_target_id = target_id
        self._hover_resolution = resolution

        feedback = get_connection_feedback(resolution) if resolution else NEUTRAL_FEEDBACK
        self.feedback.apply(target_id, feedback)
        return feedback

    def leave(self, target_id: str) -> None:
        self.feedback.clear(target_id)
        if self._hover_target_id == target_id:
            self._hover_target_id = None
            self._hover_resolution = None

    def cancel(self) -> None:
        """Abandon the gesture without touching the model."""
        self._reset_gesture()
        self._source_id = None
        self._source_type = None

    def drop(self, target_id: str, anchor: Point | None = None) -> SessionOutcome:
        """Release the gesture on a target and act on its verdict."""
        if not self._dragging or self._source_id is None:
            return _IGNORED

        resolution = self._lookup(target_id)
        if resolution is None:
            return _IGNORED
        self._reset_gesture()

        anchor = anchor or Point()
        choice = resolution.auto_create_choice

        if resolution.recommendation == Recommendation.AUTO_CREATE and choice is not None:
            if isinstance(choice, DirectRelationship):
                return self._create_direct(resolution, choice)
            return self.execute_indirect_path(
                resolution.source_id, resolution.target_id, choice, anchor
            )

        if resolution.recommendation in (
            Recommendation.CHOOSE_DIRECT,
            Recommendation.CHOOSE_ANY,
        ):
            self._palette = PaletteState(resolution=resolution, anchor=anchor)
            self._editor = None
            return SessionOutcome(
                action="palette",
                message=f"{len(resolution.options)} connection options available",
            )

        message = resolution.no_path_suggestion or ""
        if message:
            self._notify("info", message)
        return SessionOutcome(action="no-path", message=message)

    # -- chooser ---------------------------------------------------------

    def select_option(self, option: ConnectionOption) -> SessionOutcome:
        """Commit one of the open chooser's options and close the chooser."""
        palette = self._palette
        if palette is None:
            return _IGNORED

        if option not in palette.options:
            log.debug(f"Ignoring selection not offered by the chooser: {option}")
            return _IGNORED

        self._palette = None
        resolution = palette.resolution
        if isinstance(option, DirectRelationship):
            return self._create_direct(resolution, option)
        return self.execute_indirect_path(
            resolution.source_id, resolution.target_id, option, palette.anchor
        )

    def dismiss(self, reason: DismissReason = DismissReason.EXPLICIT) -> bool:
        """Close the open chooser or editor. Returns False if nothing was open."""
        if self._palette is None and self._editor is None:
            return False
        log.debug(f"Dismissing {'chooser' if self._palette else 'editor'} ({reason.value})")
        self._palette = None
        self._editor = None
        return True

    # -- creation --------------------------------------------------------

    def _create_direct(
        self, resolution: ConnectionResolution, choice: DirectRelationship
    ) -> SessionOutcome:
        result = self.repository.create_relationship(
            resolution.source_id, resolution.target_id, choice.type
        )
        if not result.ok:
            message = result.error or "Failed to create connection."
            self._notify("warn", message)
            return SessionOutcome(action="failed", message=message)

        message = (
            f"Connected: {resolution.source_type} → {resolution.target_type} "
            f"({choice.label})"
        )
        self._notify("info", message)

        if not result.id:
            log.debug("Relationship created without an id; not registering it")
            return SessionOutcome(action="created", message=message)

        connection = CreatedConnection(
            primary_edge_id=result.id,
            primary_type=choice.type,
            source_id=resolution.source_id,
            target_id=resolution.target_id,
            is_derived=False,
        )
        self._connections[connection.primary_edge_id] = connection
        return SessionOutcome(action="created", connection=connection, message=message)

    def execute_indirect_path(
        self,
        source_id: str,
        target_id: str,
        path: IndirectPath,
        anchor: Point | None = None,
        reuse: Iterable[str | None] = (),
    ) -> SessionOutcome:
        """Insert derived intermediates and wire every hop of ``path``.

        ``reuse`` optionally supplies an existing element id per intermediate
        position; ``None`` entries are created fresh. Stops at the first
        failed creation without undoing earlier steps.
        """
        anchor = anchor or Point()
        reused = list(reuse)
        intermediate_ids: list[str] = []
        created = 0

        for index, intermediate_type in enumerate(path.intermediate_types):
            existing = reused[index] if index < len(reused) else None
            if existing:
                intermediate_ids.append(existing)
                continue

            result = self.repository.create_element(
                intermediate_type,
                self.config.derived_name(intermediate_type),
                derived=True,
                position=anchor,
            )
            if not result.ok or not result.id:
                message = (
                    f"Failed to create intermediate {intermediate_type}: {result.error}"
                )
                self._notify("warn", message)
                return SessionOutcome(action="failed", message=message)
            intermediate_ids.append(result.id)
            created += 1

        chain = [source_id, *intermediate_ids, target_id]
        edge_ids: list[str] = []
        for index, hop in enumerate(path.hops):
            result = self.repository.create_relationship(
                chain[index], chain[index + 1], hop.relationship_type
            )
            if not result.ok:
                message = (
                    f"Failed to create hop {hop.from_type} → {hop.to_type}: {result.error}"
                )
                self._notify("warn", message)
                return SessionOutcome(action="failed", message=message)
            if result.id:
                edge_ids.append(result.id)

        primary_edge_id = edge_ids[-1] if edge_ids else f"compound:{uuid4().hex[:12]}"
        connection = CreatedConnection(
            primary_edge_id=primary_edge_id,
            primary_type=path.hops[-1].relationship_type,
            source_id=source_id,
            target_id=target_id,
            is_derived=True,
            intermediate_element_ids=tuple(intermediate_ids),
            intermediate_edge_ids=tuple(edge_ids),
            collapsed=self.config.collapse_derived,
        )
        self._connections[primary_edge_id] = connection

        plural = "" if created == 1 else "s"
        message = f"Connected indirectly: {path.label} ({created} intermediate{plural} created)"
        self._notify("info", message)
        return SessionOutcome(action="derived", connection=connection, message=message)

    # -- editor ----------------------------------------------------------

    def open_editor(self, edge_id: str, anchor: Point | None = None) -> EditorState | None:
        """Reopen a committed connection with freshly derived alternatives."""
        connection = self._connections.get(edge_id)
        if connection is None:
            log.debug(f"No registered connection for edge {edge_id}")
            return None

        source_type = self.resolve_element_type(connection.source_id)
        target_type = self.resolve_element_type(connection.target_id)
        if not source_type or not target_type:
            log.debug(f"Cannot reopen {edge_id}: endpoint type unknown")
            return None

        direct = find_direct_relationships(
            source_type,
            target_type,
            ontology=self.ontology,
            preferences=self.preferences,
        )
        paths = find_indirect_paths(
            source_type,
            target_type,
            ontology=self.ontology,
            preferences=self.preferences,
            config=self.config,
        )
        if self.viewpoint_filter is not None:
            direct = [d for d in direct if d.type in self.viewpoint_filter]
            paths = [
                p
                for p in paths
                if all(hop.relationship_type in self.viewpoint_filter for hop in p.hops)
            ]

        self._palette = None
        self._editor = EditorState(
            connection=connection,
            valid_types=tuple(d.type for d in direct),
            valid_indirect_paths=tuple(paths),
            anchor=anchor or Point(),
        )
        return self._editor

    def apply_edit(self, action: ConnectionEditAction) -> SessionOutcome:
        editor = self._editor
        if editor is None:
            return _IGNORED

        connection = editor.connection

        if isinstance(action, ChangeType):
            if action.new_type not in editor.valid_types:
                message = f"{action.new_type} is not a valid relationship type here"
                self._notify("warn", message)
                return SessionOutcome(action="failed", message=message)
            return self._update(
                replace(connection, primary_type=action.new_type),
                f"Relationship type changed to {action.new_type}",
            )

        if isinstance(action, ExpandIntermediates):
            return self._update(
                replace(connection, collapsed=False), "Expanded intermediate elements."
            )

        if isinstance(action, CollapseIntermediates):
            return self._update(
                replace(connection, collapsed=True), "Collapsed to single edge."
            )

        if isinstance(action, SwitchPath):
            return self._switch_path(editor, action.new_path)

        raise TypeError(f"Unsupported edit action: {action!r}")

    def _update(self, connection: CreatedConnection, message: str) -> SessionOutcome:
        self._connections[connection.primary_edge_id] = connection
        if self._editor is not None:
            self._editor = replace(self._editor, connection=connection)
        self._notify("info", message)
        return SessionOutcome(action="updated", connection=connection, message=message)

    def _switch_path(self, editor: EditorState, path: IndirectPath) -> SessionOutcome:
        """Replace a connection's chain with ``path``.

        Old derived intermediates are reused when their type matches the
        new path at the same position; everything else of the old chain is
        removed before the new hops are created.
        """
        if path.key not in {p.key for p in editor.valid_indirect_paths}:
            message = f"Path {path.label} is not valid for this connection"
            self._notify("warn", message)
            return SessionOutcome(action="failed", message=message)

        old = editor.connection
        reuse: list[str | None] = []
        for index, intermediate_type in enumerate(path.intermediate_types):
            candidate = (
                old.intermediate_element_ids[index]
                if index < len(old.intermediate_element_ids)
                else None
            )
            if candidate and self.resolve_element_type(candidate) == intermediate_type:
                reuse.append(candidate)
            else:
                reuse.append(None)

        stale_edges = old.intermediate_edge_ids if old.is_derived else (old.primary_edge_id,)
        stale_elements = [e for e in old.intermediate_element_ids if e not in reuse]

        mutated = False
        for edge_id in stale_edges:
            result = self.repository.delete_relationship(edge_id)
            if not result.ok:
                return self._abort_switch(
                    old, mutated, f"Failed to remove edge {edge_id}: {result.error}"
                )
            mutated = True
        for element_id in stale_elements:
            result = self.repository.delete_element(element_id)
            if not result.ok:
                return self._abort_switch(
                    old, mutated, f"Failed to remove intermediate {element_id}: {result.error}"
                )
            mutated = True

        self._connections.pop(old.primary_edge_id, None)
        outcome = self.execute_indirect_path(
            old.source_id, old.target_id, path, editor.anchor, reuse=reuse
        )
        if outcome.connection is None:
            self._editor = None
            return outcome

        self._editor = replace(editor, connection=outcome.connection)
        return outcome

    def _abort_switch(
        self, old: CreatedConnection, mutated: bool, message: str
    ) -> SessionOutcome:
        if mutated:
            # The old chain is partly gone; it no longer describes a connection.
            self._connections.pop(old.primary_edge_id, None)
            self._editor = None
        self._notify("warn", message)
        return SessionOutcome(action="failed", message=message)

    # -- helpers ---------------------------------------------------------

    def _lookup(self, target_id: str) -> ConnectionResolution | None:
        """Cached verdict for a target, computed on demand when missing."""
        resolution = self._cache.get(target_id)
        if resolution is not None:
            return resolution

        if self._source_id is None or self._source_type is None:
            return None
        target_type = self.resolve_element_type(target_id)
        if not target_type:
            log.debug(f"Unknown type for target {target_id}")
            return None

        resolution = resolve_connection(
            self._source_id,
            target_id,
            self._source_type,
            target_type,
            self.viewpoint_filter,
            ontology=self.ontology,
            preferences=self.preferences,
            config=self.config,
        )
        self._cache[target_id] = resolution
        return resolution

    def _reset_gesture(self) -> None:
        self._dragging = False
        self._cache = {}
        self._hover_target_id = None
        self._hover_resolution = None
        self.feedback.clear_all()

    def _notify(self, level: str, message: str) -> None:
        log.log(_LOG_LEVELS.get(level, logging.INFO), message)
        if self.log_sink is not None:
            self.log_sink(level, message)
