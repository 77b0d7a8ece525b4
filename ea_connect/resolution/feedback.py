"""Hover feedback for connection targets.

Maps a verdict to a presentation-neutral feedback descriptor:

- direct-valid: at least one direct relationship exists
- indirect-valid: only paths through intermediates exist
- neutral: nothing legal; shown as "no highlight", never as an error
"""

from .types import ConnectionFeedback, ConnectionResolution, FeedbackKind

NEUTRAL_FEEDBACK = ConnectionFeedback(kind=FeedbackKind.NEUTRAL, tooltip="")


def get_connection_feedback(resolution: ConnectionResolution) -> ConnectionFeedback:
    """Determine hover feedback for a target based on its verdict."""
    direct = resolution.direct_relationships
    if direct:
        if len(direct) == 1:
            tooltip = f"Connect: {direct[0].label}"
        else:
            tooltip = f"{len(direct)} connection types available"
        return ConnectionFeedback(kind=FeedbackKind.DIRECT_VALID, tooltip=tooltip)

    paths = resolution.indirect_paths
    if paths:
        via = ", ".join(paths[0].intermediate_types)
        if len(paths) == 1:
            tooltip = f"Connect via {via}"
        else:
            tooltip = f"{len(paths)} indirect paths available (via {via})"
        return ConnectionFeedback(kind=FeedbackKind.INDIRECT_VALID, tooltip=tooltip)

    return NEUTRAL_FEEDBACK


class FeedbackBoard:
    """Feedback currently shown per target.

    Neutral feedback is never recorded as active: there is nothing to show.
    """

    def __init__(self):
        self._active: dict[str, ConnectionFeedback] = {}

    def __len__(self) -> int:
        return len(self._active)

    def apply(self, target_id: str, feedback: ConnectionFeedback) -> None:
        self.clear(target_id)
        if feedback.kind != FeedbackKind.NEUTRAL:
            self._active[target_id] = feedback

    def get(self, target_id: str) -> ConnectionFeedback | None:
        return self._active.get(target_id)

    def clear(self, target_id: str) -> bool:
        """Remove feedback for a target. Returns False if there was none."""
        return self._active.pop(target_id, None) is not None

    def clear_all(self) -> None:
        self._active.clear()
