"""Tests for the connect-gesture session."""

import logging
from unittest.mock import Mock

import pytest

from ea_connect.ontology.metamodel import DEFAULT_ONTOLOGY
from ea_connect.repository.memory import InMemoryModelRepository
from ea_connect.resolution.config import ResolutionConfig
from ea_connect.resolution.engine import find_indirect_paths
from ea_connect.resolution.ports import ModelRepository, OperationResult
from ea_connect.resolution.session import (
    ChangeType,
    CollapseIntermediates,
    DismissReason,
    ExpandIntermediates,
    ResolutionSession,
    SessionState,
    SwitchPath,
)
from ea_connect.resolution.types import (
    DirectRelationship,
    ElementRef,
    FeedbackKind,
    IndirectPath,
    Point,
)


def _relationship_types(repository: InMemoryModelRepository) -> list[str]:
    return sorted(data["type"] for _, _, data in repository.graph.edges(data=True))


class TestGesture:
    def test_start_batch_resolves_targets(self, session, repository):
        assert session.start("c1", repository.elements())

        assert session.state == SessionState.DRAGGING
        assert session.source_id == "c1"
        assert session.cached_resolution("c1") is None
        assert session.cached_resolution("t1").target_id == "t1"
        assert session.feedback_for_target("p1").kind == FeedbackKind.DIRECT_VALID

    def test_start_with_unknown_source_is_ignored(self, session, repository):
        assert not session.start("missing", repository.elements())
        assert session.state == SessionState.IDLE

    def test_start_accepts_tuples(self, session):
        assert session.start("c1", [("t1", "Technology")])
        assert session.cached_resolution("t1") is not None

    def test_hover_shows_feedback_without_mutation(self, session, repository):
        session.start("c1", repository.elements())

        feedback = session.hover("t1")
        assert feedback.kind == FeedbackKind.INDIRECT_VALID
        assert feedback.tooltip == "Connect via Application"
        assert session.state == SessionState.HOVERING_TARGET
        assert session.hover_resolution.target_id == "t1"
        assert session.feedback.get("t1") == feedback

        session.hover("p1")
        assert session.feedback.get("t1") is None
        assert session.feedback.get("p1").tooltip == "Connect: Realized By"

        assert repository.get_stats().relationships == 0
        assert repository.get_stats().elements == 4

    def test_hover_on_source_or_when_idle(self, session, repository):
        assert session.hover("t1") is None

        session.start("c1", repository.elements())
        assert session.hover("c1") is None

    def test_leave_returns_to_dragging(self, session, repository):
        session.start("c1", repository.elements())
        session.hover("p1")

        session.leave("p1")
        assert session.state == SessionState.DRAGGING
        assert session.hover_resolution is None
        assert len(session.feedback) == 0

        # leaving twice is harmless
        session.leave("p1")

    def test_hover_resolves_targets_added_after_start(self, session, repository):
        session.start("c1", [])
        repository.add_element("Technology", "Postgres host", "t2")

        feedback = session.hover("t2")
        assert feedback.kind == FeedbackKind.INDIRECT_VALID
        assert session.cached_resolution("t2") is not None

    def test_hover_unknown_target_is_neutral(self, session, repository):
        session.start("c1", repository.elements())

        feedback = session.hover("ghost")
        assert feedback.kind == FeedbackKind.NEUTRAL
        assert len(session.feedback) == 0

    def test_cancel_clears_everything(self, session, repository):
        session.start("c1", repository.elements())
        session.hover("t1")

        session.cancel()
        assert session.state == SessionState.IDLE
        assert session.source_id is None
        assert session.cached_resolution("t1") is None
        assert len(session.feedback) == 0
        assert repository.get_stats().relationships == 0

    def test_restart_replaces_gesture(self, session, repository):
        session.start("c1", repository.elements())
        session.start("p1", repository.elements())

        assert session.source_id == "p1"
        assert session.cached_resolution("p1") is None
        assert session.cached_resolution("c1") is not None

    def test_drop_on_unresolvable_target_keeps_gesture(self, session, repository, messages):
        session.start("c1", [ElementRef("p1", "BusinessProcess")])
        session.hover("p1")

        outcome = session.drop("ghost")

        assert outcome.action == "ignored"
        assert session.state == SessionState.HOVERING_TARGET
        assert session.source_id == "c1"
        assert session.cached_resolution("p1") is not None
        assert session.feedback.get("p1") is not None
        assert messages == []
        assert repository.get_stats().relationships == 0

        # the gesture can still complete normally
        assert session.drop("p1").action == "created"

    def test_drop_without_gesture_is_ignored(self, session):
        outcome = session.drop("t1")
        assert outcome.action == "ignored"
        assert not outcome.ok


class TestDrop:
    def test_single_direct_is_created(self, session, repository, messages):
        session.start("c1", repository.elements())

        outcome = session.drop("p1")

        assert outcome.action == "created"
        connection = outcome.connection
        assert connection.primary_type == "REALIZED_BY"
        assert not connection.is_derived
        assert connection.intermediate_element_ids == ()
        assert repository.relationship(connection.primary_edge_id)["type"] == "REALIZED_BY"
        assert session.get_connection(connection.primary_edge_id) == connection
        assert session.state == SessionState.IDLE
        assert messages == [
            ("info", "Connected: Capability → BusinessProcess (Realized By)")
        ]

    def test_single_path_inserts_derived_intermediate(self, session, repository, messages):
        session.start("c1", repository.elements())

        outcome = session.drop("t1", Point(120.0, 80.0))

        assert outcome.action == "derived"
        connection = outcome.connection
        assert connection.is_derived
        assert connection.collapsed
        assert len(connection.intermediate_element_ids) == 1
        assert len(connection.intermediate_edge_ids) == 2
        assert connection.primary_edge_id == connection.intermediate_edge_ids[-1]
        assert connection.primary_type == "DEPLOYED_ON"

        intermediate = repository.element(connection.intermediate_element_ids[0])
        assert intermediate["type"] == "Application"
        assert intermediate["name"] == "Application (auto)"
        assert intermediate["derived"] is True
        assert (intermediate["x"], intermediate["y"]) == (120.0, 80.0)

        assert _relationship_types(repository) == ["DEPLOYED_ON", "SUPPORTED_BY"]
        assert repository.get_stats().derived == 1
        assert messages[-1] == (
            "info",
            "Connected indirectly: Capability → [Supported By] → Application "
            "→ [Deployed On] → Technology (1 intermediate created)",
        )

    def test_several_direct_types_open_chooser(self, session, repository):
        session.start("p1", repository.elements())

        outcome = session.drop("a1", Point(10, 10))

        assert outcome.action == "palette"
        assert outcome.ok
        assert session.palette.anchor == Point(10, 10)
        assert [o.type for o in session.palette.options] == ["SERVED_BY", "USES"]
        assert repository.get_stats().relationships == 0

    def test_no_path_reports_suggestion_only(self, session, repository, messages):
        session.start("t1", repository.elements())

        outcome = session.drop("c1")

        assert outcome.action == "no-path"
        assert "Application" in outcome.message
        assert messages == [("info", outcome.message)]
        assert repository.get_stats().relationships == 0
        assert repository.get_stats().elements == 4
        assert session.connections == {}

    def test_custom_derived_name(self, repository, toy_ontology, toy_preferences):
        session = ResolutionSession(
            repository,
            repository.element_type,
            ontology=toy_ontology,
            preferences=toy_preferences,
            config=ResolutionConfig(
                derived_name_template="Derived {type}", collapse_derived=False
            ),
        )
        session.start("c1", repository.elements())

        connection = session.drop("t1").connection

        assert not connection.collapsed
        assert repository.element(connection.intermediate_element_ids[0])["name"] == (
            "Derived Application"
        )


class TestFailures:
    def test_intermediate_failure_stops_before_any_edge(
        self, session, repository, messages, caplog
    ):
        repository.create_element = Mock(return_value=OperationResult.failure("quota exceeded"))
        repository.create_relationship = Mock(wraps=repository.create_relationship)
        caplog.set_level(logging.INFO, logger="ea_connect.resolution.session")

        session.start("c1", repository.elements())
        outcome = session.drop("t1")

        assert outcome.action == "failed"
        repository.create_relationship.assert_not_called()
        assert session.connections == {}
        assert messages == [
            ("warn", "Failed to create intermediate Application: quota exceeded")
        ]
        assert "quota exceeded" in caplog.text
        assert caplog.records[-1].levelno == logging.WARNING

    def test_hop_failure_leaves_intermediate_in_place(self, session, repository, messages):
        real_create = repository.create_relationship
        calls = []

        def create_relationship(from_id, to_id, relationship_type):
            calls.append(relationship_type)
            if relationship_type == "DEPLOYED_ON":
                return OperationResult.failure("connection reset")
            return real_create(from_id, to_id, relationship_type)

        repository.create_relationship = create_relationship
        session.start("c1", repository.elements())

        outcome = session.drop("t1")

        assert outcome.action == "failed"
        assert calls == ["SUPPORTED_BY", "DEPLOYED_ON"]
        assert repository.get_stats().derived == 1
        assert repository.get_stats().relationships == 1
        assert session.connections == {}
        assert messages == [
            ("warn", "Failed to create hop Application → Technology: connection reset")
        ]

    def test_direct_failure_is_reported(self):
        repository = Mock(spec=ModelRepository)
        repository.create_relationship.return_value = OperationResult.failure(
            "permission denied"
        )
        sink = Mock()
        session = ResolutionSession(
            repository,
            {"c1": "Capability", "p1": "BusinessProcess"}.get,
            log_sink=sink,
        )

        session.start("c1", [ElementRef("p1", "BusinessProcess")])
        outcome = session.drop("p1")

        assert outcome.action == "failed"
        repository.create_relationship.assert_called_once_with("c1", "p1", "REALIZED_BY")
        sink.assert_called_once_with("warn", "permission denied")

    def test_created_without_id_is_not_registered(self):
        repository = Mock(spec=ModelRepository)
        repository.create_relationship.return_value = OperationResult.success()
        session = ResolutionSession(
            repository, {"c1": "Capability", "p1": "BusinessProcess"}.get
        )

        session.start("c1", [ElementRef("p1", "BusinessProcess")])
        outcome = session.drop("p1")

        assert outcome.action == "created"
        assert outcome.connection is None
        assert session.connections == {}

    def test_failure_without_detail_uses_generic_message(self):
        repository = Mock(spec=ModelRepository)
        repository.create_relationship.return_value = OperationResult(ok=False)
        session = ResolutionSession(
            repository, {"c1": "Capability", "p1": "BusinessProcess"}.get
        )

        session.start("c1", [ElementRef("p1", "BusinessProcess")])
        assert session.drop("p1").message == "Failed to create connection."


class TestChooser:
    def test_select_option_commits_and_closes(self, session, repository):
        session.start("p1", repository.elements())
        session.drop("a1")
        option = session.palette.options[1]

        outcome = session.select_option(option)

        assert outcome.action == "created"
        assert outcome.connection.primary_type == "USES"
        assert session.palette is None
        assert _relationship_types(repository) == ["USES"]

    def test_option_not_offered_is_ignored(self, session, repository):
        session.start("p1", repository.elements())
        session.drop("a1")
        foreign = DirectRelationship("REALIZED_BY", "Capability", "BusinessProcess", "x", 0)

        assert session.select_option(foreign).action == "ignored"
        assert session.palette is not None
        assert repository.get_stats().relationships == 0

    def test_select_without_chooser(self, session):
        option = DirectRelationship("USES", "BusinessProcess", "Application", "Uses", 0)
        assert session.select_option(option).action == "ignored"

    @pytest.mark.parametrize("reason", list(DismissReason))
    def test_dismiss(self, session, repository, reason):
        session.start("p1", repository.elements())
        session.drop("a1")

        assert session.dismiss(reason)
        assert session.palette is None
        assert not session.dismiss(reason)
        assert repository.get_stats().relationships == 0

    def test_select_indirect_option(self):
        repository = InMemoryModelRepository(DEFAULT_ONTOLOGY)
        repository.add_element("Programme", "Cloud Migration", "prog")
        repository.add_element("BusinessProcess", "Billing", "bp")
        session = ResolutionSession(repository, repository.element_type)

        session.start("prog", repository.elements())
        assert session.drop("bp").action == "palette"
        path = session.palette.options[0]
        assert isinstance(path, IndirectPath)

        outcome = session.select_option(path)

        assert outcome.action == "derived"
        assert _relationship_types(repository) == ["DELIVERS", "REALIZED_BY"]


class TestEditor:
    def _direct_connection(self, session, repository):
        session.start("p1", repository.elements())
        session.drop("a1")
        return session.select_option(session.palette.options[0]).connection

    def test_open_editor_lists_alternatives(self, session, repository):
        connection = self._direct_connection(session, repository)

        editor = session.open_editor(connection.primary_edge_id, Point(5, 5))

        assert editor.connection == connection
        assert editor.valid_types == ("SERVED_BY", "USES")
        assert editor.valid_indirect_paths == ()
        assert editor.anchor == Point(5, 5)

    def test_open_editor_for_unknown_edge(self, session):
        assert session.open_editor("edge:nope") is None

    def test_change_type(self, session, repository, messages):
        connection = self._direct_connection(session, repository)
        session.open_editor(connection.primary_edge_id)

        outcome = session.apply_edit(ChangeType("USES"))

        assert outcome.action == "updated"
        assert outcome.connection.primary_type == "USES"
        assert not outcome.connection.is_derived
        assert outcome.connection.intermediate_element_ids == ()
        assert session.get_connection(connection.primary_edge_id).primary_type == "USES"
        assert session.editor.connection.primary_type == "USES"
        assert messages[-1] == ("info", "Relationship type changed to USES")

    def test_change_to_invalid_type_fails(self, session, repository):
        connection = self._direct_connection(session, repository)
        session.open_editor(connection.primary_edge_id)

        outcome = session.apply_edit(ChangeType("DEPLOYED_ON"))

        assert outcome.action == "failed"
        assert session.get_connection(connection.primary_edge_id) == connection

    def test_expand_and_collapse(self, session, repository):
        session.start("c1", repository.elements())
        connection = session.drop("t1").connection
        session.open_editor(connection.primary_edge_id)

        expanded = session.apply_edit(ExpandIntermediates()).connection
        assert not expanded.collapsed

        collapsed = session.apply_edit(CollapseIntermediates()).connection
        assert collapsed.collapsed
        assert repository.get_stats().relationships == 2

    def test_edit_without_editor_is_ignored(self, session):
        assert session.apply_edit(ExpandIntermediates()).action == "ignored"

    def test_unknown_edit_action(self, session, repository):
        connection = self._direct_connection(session, repository)
        session.open_editor(connection.primary_edge_id)

        with pytest.raises(TypeError):
            session.apply_edit("rename")

    def test_dismiss_editor(self, session, repository):
        connection = self._direct_connection(session, repository)
        session.open_editor(connection.primary_edge_id)

        assert session.dismiss(DismissReason.OUTSIDE_CLICK)
        assert session.editor is None

    def test_forget_connection(self, session, repository):
        connection = self._direct_connection(session, repository)

        assert session.forget_connection(connection.primary_edge_id)
        assert not session.forget_connection(connection.primary_edge_id)
        assert session.open_editor(connection.primary_edge_id) is None

    def test_editor_respects_viewpoint_filter(self, repository, toy_ontology, toy_preferences):
        session = ResolutionSession(
            repository,
            repository.element_type,
            viewpoint_filter={"SERVED_BY"},
            ontology=toy_ontology,
            preferences=toy_preferences,
        )
        session.start("p1", repository.elements())
        connection = session.drop("a1").connection

        editor = session.open_editor(connection.primary_edge_id)

        assert connection.primary_type == "SERVED_BY"
        assert editor.valid_types == ("SERVED_BY",)


class TestSwitchPath:
    @pytest.fixture
    def default_repository(self):
        repository = InMemoryModelRepository(DEFAULT_ONTOLOGY)
        repository.add_element("Programme", "Cloud Migration", "prog")
        repository.add_element("BusinessProcess", "Billing", "bp")
        repository.add_element("Capability", "Payments", "cap")
        repository.add_element("Application", "Ledger", "app")
        return repository

    @pytest.fixture
    def default_session(self, default_repository):
        return ResolutionSession(default_repository, default_repository.element_type)

    def test_switch_reuses_matching_intermediate(self, default_session, default_repository):
        default_session.start("prog", default_repository.elements())
        default_session.drop("bp")
        old = default_session.select_option(default_session.palette.options[0]).connection
        editor = default_session.open_editor(old.primary_edge_id)
        new_path = editor.valid_indirect_paths[1]
        assert new_path.hops[0].relationship_type == "IMPACTS"

        outcome = default_session.apply_edit(SwitchPath(new_path))

        assert outcome.action == "derived"
        new = outcome.connection
        assert new.intermediate_element_ids == old.intermediate_element_ids
        assert default_repository.get_stats().derived == 1
        assert _relationship_types(default_repository) == ["IMPACTS", "REALIZED_BY"]
        for edge_id in old.intermediate_edge_ids:
            assert default_repository.relationship(edge_id) is None
        assert default_session.get_connection(old.primary_edge_id) is None
        assert default_session.get_connection(new.primary_edge_id) == new
        assert default_session.editor.connection == new

    def test_switch_direct_to_indirect(self, default_session, default_repository):
        default_session.start("cap", default_repository.elements())
        old = default_session.drop("app").connection
        assert old.primary_type == "SUPPORTED_BY"
        editor = default_session.open_editor(old.primary_edge_id)
        best = editor.valid_indirect_paths[0]
        assert best.intermediate_types == ("BusinessProcess",)

        outcome = default_session.apply_edit(SwitchPath(best))

        assert outcome.action == "derived"
        assert default_repository.relationship(old.primary_edge_id) is None
        assert _relationship_types(default_repository) == ["REALIZED_BY", "SERVED_BY"]
        intermediate = default_repository.element(outcome.connection.intermediate_element_ids[0])
        assert intermediate["type"] == "BusinessProcess"
        assert intermediate["derived"] is True

    def test_switch_to_unlisted_path_fails(self, default_session, default_repository):
        default_session.start("cap", default_repository.elements())
        old = default_session.drop("app").connection
        default_session.open_editor(old.primary_edge_id)
        bogus = find_indirect_paths("Programme", "BusinessProcess")[0]
        outcome = default_session.apply_edit(SwitchPath(bogus))

        assert outcome.action == "failed"
        assert default_repository.relationship(old.primary_edge_id) is not None
        assert default_session.get_connection(old.primary_edge_id) == old

    def test_failed_removal_drops_partly_removed_connection(
        self, default_session, default_repository, caplog
    ):
        default_session.start("prog", default_repository.elements())
        default_session.drop("bp")
        old = default_session.select_option(default_session.palette.options[0]).connection
        editor = default_session.open_editor(old.primary_edge_id)

        default_repository.delete_relationship = Mock(
            side_effect=[
                OperationResult.success(old.intermediate_edge_ids[0]),
                OperationResult.failure("locked"),
            ]
        )

        outcome = default_session.apply_edit(SwitchPath(editor.valid_indirect_paths[1]))

        assert outcome.action == "failed"
        assert "locked" in outcome.message
        assert default_session.get_connection(old.primary_edge_id) is None
        assert default_session.editor is None
