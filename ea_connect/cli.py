"""CLI for ea-connect."""

import json
import os
from pathlib import Path

import click

from .ontology.metamodel import DEFAULT_ONTOLOGY, Ontology, OntologyError
from .ontology.preferences import DEFAULT_PREFERENCES, PreferenceTables
from .resolution.engine import resolve_connection
from .resolution.types import ConnectionResolution, DirectRelationship, Point


@click.group()
def cli():
    """ea-connect - resolve how architecture elements can be connected."""
    pass


def _load_tables(
    ontology_path: Path | None, preferences_path: Path | None
) -> tuple[Ontology, PreferenceTables]:
    try:
        ontology = Ontology.from_yaml(ontology_path) if ontology_path else DEFAULT_ONTOLOGY
        preferences = (
            PreferenceTables.from_yaml(preferences_path)
            if preferences_path
            else DEFAULT_PREFERENCES
        )
    except OntologyError as exc:
        raise click.ClickException(str(exc)) from exc
    return ontology, preferences


def _echo_options(resolution: ConnectionResolution) -> None:
    for index, option in enumerate(resolution.options, 1):
        if isinstance(option, DirectRelationship):
            click.echo(f"  {index}. [direct {option.canonical_score:>3}] {option.label}")
        else:
            click.echo(f"  {index}. [path   {option.canonical_score:>3}] {option.label}")


def _resolution_payload(resolution: ConnectionResolution) -> dict:
    choice = resolution.auto_create_choice
    return {
        "source_type": resolution.source_type,
        "target_type": resolution.target_type,
        "recommendation": resolution.recommendation.value,
        "has_any_path": resolution.has_any_path,
        "direct": [
            {"type": d.type, "label": d.label, "score": d.canonical_score}
            for d in resolution.direct_relationships
        ],
        "indirect": [
            {
                "label": p.label,
                "intermediate_types": list(p.intermediate_types),
                "hops": [h.relationship_type for h in p.hops],
                "score": p.canonical_score,
            }
            for p in resolution.indirect_paths
        ],
        "auto_create": choice.label if choice is not None else None,
        "suggestion": resolution.no_path_suggestion,
    }


@cli.command("types")
@click.option("--ontology", "ontology_path", type=click.Path(exists=True, path_type=Path))
def list_types(ontology_path: Path | None):
    """List element types grouped by layer."""
    ontology, _ = _load_tables(ontology_path, None)

    layers: dict[str, list[str]] = {}
    for element_type in ontology.element_types:
        layers.setdefault(ontology.layer_of(element_type) or "Unknown", []).append(
            element_type
        )

    for layer, types in layers.items():
        click.echo(f"{layer} ({len(types)}):")
        click.echo(f"  {', '.join(types)}")


@cli.command()
@click.argument("source_type", type=str)
@click.argument("target_type", type=str)
@click.option(
    "--allow",
    "allowed",
    multiple=True,
    help="Restrict to these relationship types (repeatable)",
)
@click.option("--ontology", "ontology_path", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--preferences", "preferences_path", type=click.Path(exists=True, path_type=Path)
)
@click.option("--json", "as_json", is_flag=True, help="Emit JSON instead of text")
def resolve(
    source_type: str,
    target_type: str,
    allowed: tuple[str, ...],
    ontology_path: Path | None,
    preferences_path: Path | None,
    as_json: bool,
):
    """Show every legal way to connect SOURCE_TYPE to TARGET_TYPE."""
    ontology, preferences = _load_tables(ontology_path, preferences_path)

    for element_type in (source_type, target_type):
        if not ontology.has_element_type(element_type):
            click.echo(f"Warning: unknown element type {element_type}", err=True)

    resolution = resolve_connection(
        "source",
        "target",
        source_type,
        target_type,
        set(allowed) if allowed else None,
        ontology=ontology,
        preferences=preferences,
    )

    if as_json:
        click.echo(json.dumps(_resolution_payload(resolution), indent=2, ensure_ascii=False))
        return

    click.echo(f"{source_type} -> {target_type}: {resolution.recommendation.value}")
    if resolution.options:
        click.echo(
            f"\nOptions ({len(resolution.direct_relationships)} direct, "
            f"{len(resolution.indirect_paths)} indirect):"
        )
        _echo_options(resolution)
    if resolution.auto_create_choice is not None:
        click.echo(f"\nAuto-create: {resolution.auto_create_choice.label}")
    if resolution.no_path_suggestion:
        click.echo(f"\n{resolution.no_path_suggestion}")


@cli.command("validate-ontology")
@click.argument("ontology_path", type=click.Path(exists=True, path_type=Path))
def validate_ontology(ontology_path: Path):
    """Load a YAML ontology and check its endpoint references."""
    ontology, _ = _load_tables(ontology_path, None)
    result = ontology.validate()

    click.echo(
        f"{len(ontology.element_types)} element types, "
        f"{len(ontology.relationship_types)} relationship types"
    )
    for warning in result.warnings:
        click.echo(f"  [warn]  {warning}")
    for error in result.errors:
        click.echo(f"  [error] {error}")

    if not result:
        raise SystemExit(1)
    click.echo("Ontology is valid.")


@cli.command()
@click.argument("source_id", type=str)
@click.argument("target_id", type=str)
@click.option("--choice", "-c", type=int, default=None, help="Chooser option to commit")
@click.option("--allow", "allowed", multiple=True, help="Allowed relationship types")
@click.option(
    "--neo4j-uri",
    default=lambda: os.environ.get("NEO4J_URI", "bolt://localhost:7687"),
    help="Neo4j connection URI",
)
@click.option(
    "--neo4j-user",
    default=lambda: os.environ.get("NEO4J_USER", "neo4j"),
    help="Neo4j username",
)
@click.option(
    "--neo4j-password",
    default=lambda: os.environ.get("NEO4J_PASSWORD", "neo4j"),
    help="Neo4j password",
)
def connect(
    source_id: str,
    target_id: str,
    choice: int | None,
    allowed: tuple[str, ...],
    neo4j_uri: str,
    neo4j_user: str,
    neo4j_password: str,
):
    """Connect two elements stored in Neo4j the way a drag gesture would."""
    from .repository.neo4j_repository import Neo4jModelRepository
    from .resolution.session import ResolutionSession

    repository = Neo4jModelRepository(uri=neo4j_uri, user=neo4j_user, password=neo4j_password)
    try:
        check = repository.check_connection()
        if not check:
            raise click.ClickException(f"Cannot connect to Neo4j: {check.error}")

        session = ResolutionSession(
            repository,
            repository.element_type,
            viewpoint_filter=set(allowed) if allowed else None,
            log_sink=lambda level, message: click.echo(f"[{level}] {message}"),
        )

        target_type = repository.element_type(target_id)
        if target_type is None:
            raise click.ClickException(f"Element not found: {target_id}")
        if not session.start(source_id, [(target_id, target_type)]):
            raise click.ClickException(f"Element not found: {source_id}")

        outcome = session.drop(target_id, Point())
        if outcome.action != "palette":
            if not outcome.ok:
                raise SystemExit(1)
            return

        palette = session.palette
        if choice is None:
            click.echo("Several connections are possible:")
            _echo_options(palette.resolution)
            click.echo("\nRe-run with --choice N to commit one.")
            return

        if not 1 <= choice <= len(palette.options):
            raise click.ClickException(f"--choice must be between 1 and {len(palette.options)}")

        outcome = session.select_option(palette.options[choice - 1])
        if not outcome.ok:
            raise SystemExit(1)
    finally:
        repository.close()


if __name__ == "__main__":
    cli()
