"""Connection resolution engine.

Given two element types, enumerate every legal way to connect them under the
ontology: direct relationships first, then two-hop paths through an
intermediate element type. Candidates are ranked by canonical preference and
collapsed into a single :class:`ConnectionResolution` verdict.

All functions here are pure; ontology, preference tables and config are
passed in (defaulting to the built-in ones) and never mutated.
"""

from collections.abc import Iterable, Set
from dataclasses import replace

from ..ontology.metamodel import DEFAULT_ONTOLOGY, Ontology
from ..ontology.preferences import DEFAULT_PREFERENCES, PreferenceTables
from .config import DEFAULT_RESOLUTION_CONFIG, ResolutionConfig
from .suggestions import build_no_path_suggestion
from .types import (
    ConnectionOption,
    ConnectionResolution,
    DirectRelationship,
    ElementRef,
    IndirectHop,
    IndirectPath,
    Recommendation,
)

_INDIRECT_DEPTH = 2


def format_relationship_label(relationship_type: str) -> str:
    """REALIZED_BY -> Realized By."""
    return " ".join(word.capitalize() for word in relationship_type.split("_") if word)


def format_path_label(source_type: str, hops: Iterable[IndirectHop]) -> str:
    parts = [source_type]
    for hop in hops:
        parts.append(
            f"→ [{format_relationship_label(hop.relationship_type)}] → {hop.to_type}"
        )
    return " ".join(parts)


def _by_score(option: ConnectionOption) -> int:
    return -option.canonical_score


def find_direct_relationships(
    source_type: str,
    target_type: str,
    *,
    ontology: Ontology = DEFAULT_ONTOLOGY,
    preferences: PreferenceTables = DEFAULT_PREFERENCES,
) -> list[DirectRelationship]:
    """Every single-hop relationship type legal for the pair, best first.

    Ties keep the ontology's declaration order.
    """
    results = [
        DirectRelationship(
            type=definition.name,
            from_type=source_type,
            to_type=target_type,
            label=format_relationship_label(definition.name),
            canonical_score=preferences.direct_score(
                source_type, target_type, definition.name
            ),
        )
        for definition in ontology.matching_relationships(source_type, target_type)
    ]
    return sorted(results, key=_by_score)


def find_indirect_paths(
    source_type: str,
    target_type: str,
    *,
    ontology: Ontology = DEFAULT_ONTOLOGY,
    preferences: PreferenceTables = DEFAULT_PREFERENCES,
    config: ResolutionConfig = DEFAULT_RESOLUTION_CONFIG,
) -> list[IndirectPath]:
    """Two-hop paths source -> intermediate -> target, best first.

    Score is bridge(source, I, target) + direct(hop1) + direct(hop2).
    Paths are unique per (intermediate, hop1 type, hop2 type) and capped at
    ``config.max_indirect_paths``.
    """
    results: list[IndirectPath] = []
    seen: set[tuple[str, ...]] = set()

    for intermediate in ontology.element_types:
        if intermediate == source_type and intermediate == target_type:
            continue

        first_hops = ontology.matching_relationships(source_type, intermediate)
        if not first_hops:
            continue
        second_hops = ontology.matching_relationships(intermediate, target_type)
        if not second_hops:
            continue

        bridge = preferences.bridge_score(source_type, intermediate, target_type)

        for rel1 in first_hops:
            for rel2 in second_hops:
                hops = (
                    IndirectHop(
                        relationship_type=rel1.name,
                        from_type=source_type,
                        to_type=intermediate,
                        intermediate_element_type=intermediate,
                    ),
                    IndirectHop(
                        relationship_type=rel2.name,
                        from_type=intermediate,
                        to_type=target_type,
                    ),
                )
                path = IndirectPath(
                    hops=hops,
                    label=format_path_label(source_type, hops),
                    intermediate_types=(intermediate,),
                    depth=_INDIRECT_DEPTH,
                    canonical_score=bridge
                    + preferences.direct_score(source_type, intermediate, rel1.name)
                    + preferences.direct_score(intermediate, target_type, rel2.name),
                )
                if path.key in seen:
                    continue
                seen.add(path.key)
                results.append(path)

    results.sort(key=_by_score)
    return results[: max(0, config.max_indirect_paths)]


def _recommend(
    direct: list[DirectRelationship], indirect: list[IndirectPath]
) -> tuple[Recommendation, ConnectionOption | None]:
    """Decision table; direct always beats indirect when it is unique."""
    if len(direct) == 1 and not indirect:
        return Recommendation.AUTO_CREATE, direct[0]
    if len(direct) > 1:
        return Recommendation.CHOOSE_DIRECT, None
    if not direct and len(indirect) == 1:
        return Recommendation.AUTO_CREATE, indirect[0]
    if not direct and len(indirect) > 1:
        return Recommendation.CHOOSE_ANY, None
    if len(direct) == 1 and indirect:
        return Recommendation.AUTO_CREATE, direct[0]
    if not direct and not indirect:
        return Recommendation.NO_PATH, None
    return Recommendation.CHOOSE_ANY, None


def resolve_connection(
    source_id: str,
    target_id: str,
    source_type: str,
    target_type: str,
    viewpoint_filter: Set[str] | None = None,
    *,
    ontology: Ontology = DEFAULT_ONTOLOGY,
    preferences: PreferenceTables = DEFAULT_PREFERENCES,
    config: ResolutionConfig = DEFAULT_RESOLUTION_CONFIG,
) -> ConnectionResolution:
    """Resolve how two elements can be connected.

    Args:
        source_id: Source element ID
        target_id: Target element ID
        source_type: Source element type
        target_type: Target element type
        viewpoint_filter: Optional allowed relationship types. Direct
            candidates must be members; indirect paths must have every hop
            allowed.

    Returns:
        ConnectionResolution verdict. Absence of a path is a normal verdict
        (``no-path``) with an advisory suggestion, never an exception.
    """
    direct = find_direct_relationships(
        source_type, target_type, ontology=ontology, preferences=preferences
    )
    indirect = find_indirect_paths(
        source_type,
        target_type,
        ontology=ontology,
        preferences=preferences,
        config=config,
    )

    if viewpoint_filter is not None:
        direct = [d for d in direct if d.type in viewpoint_filter]
        indirect = [
            p
            for p in indirect
            if all(hop.relationship_type in viewpoint_filter for hop in p.hops)
        ]

    recommendation, choice = _recommend(direct, indirect)
    has_any_path = bool(direct or indirect)

    return ConnectionResolution(
        source_id=source_id,
        target_id=target_id,
        source_type=source_type,
        target_type=target_type,
        direct_relationships=tuple(direct),
        indirect_paths=tuple(indirect),
        recommendation=recommendation,
        has_any_path=has_any_path,
        auto_create_choice=choice,
        no_path_suggestion=(
            None
            if has_any_path
            else build_no_path_suggestion(source_type, target_type, ontology=ontology)
        ),
    )


def resolve_connections_for_source(
    source_id: str,
    source_type: str,
    targets: Iterable[ElementRef],
    viewpoint_filter: Set[str] | None = None,
    *,
    ontology: Ontology = DEFAULT_ONTOLOGY,
    preferences: PreferenceTables = DEFAULT_PREFERENCES,
    config: ResolutionConfig = DEFAULT_RESOLUTION_CONFIG,
) -> dict[str, ConnectionResolution]:
    """Resolve one source against every candidate target (self excluded).

    Verdicts are memoised per target type within the batch, so a canvas with
    many elements of the same type costs one resolution per type.
    """
    by_type: dict[str, ConnectionResolution] = {}
    resolutions: dict[str, ConnectionResolution] = {}

    for target in targets:
        if target.id == source_id:
            continue

        template = by_type.get(target.type)
        if template is None:
            template = resolve_connection(
                source_id,
                target.id,
                source_type,
                target.type,
                viewpoint_filter,
                ontology=ontology,
                preferences=preferences,
                config=config,
            )
            by_type[target.type] = template
            resolutions[target.id] = template
        else:
            resolutions[target.id] = _retarget(template, target.id)

    return resolutions


def _retarget(resolution: ConnectionResolution, target_id: str) -> ConnectionResolution:
    return replace(resolution, target_id=target_id)
