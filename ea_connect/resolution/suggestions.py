"""Advisory text for element pairs with no legal connection."""

from ..ontology.metamodel import DEFAULT_ONTOLOGY, Ontology
from ..ontology.schema import Layer


def build_no_path_suggestion(
    source_type: str,
    target_type: str,
    *,
    ontology: Ontology = DEFAULT_ONTOLOGY,
) -> str:
    """Suggest how the user might still connect the pair.

    A hint only; it never blocks the user.
    """
    source_layer = ontology.layer_of(source_type)
    target_layer = ontology.layer_of(target_type)

    if source_layer is not None and source_layer == target_layer:
        return (
            f"{source_type} and {target_type} are both in the {source_layer} layer "
            "but have no standard relationship. Consider adding an intermediate "
            "element or using a free connector."
        )

    suggestions: list[str] = []
    layers = (source_layer, target_layer)
    if layers == (Layer.BUSINESS.value, Layer.TECHNOLOGY.value):
        suggestions.append(
            "Add an Application element to bridge Business and Technology layers."
        )
    if layers == (Layer.TECHNOLOGY.value, Layer.BUSINESS.value):
        suggestions.append(
            "Add an Application element to bridge Technology and Business layers."
        )
    if source_layer == Layer.GOVERNANCE.value:
        suggestions.append(
            f"Governance elements ({source_type}) typically constrain rather than "
            "connect directly. Consider using a Programme or Project to trace delivery."
        )

    if suggestions:
        return " ".join(suggestions)

    return (
        f"No standard path exists between {source_type} ({source_layer or 'unknown layer'}) "
        f"and {target_type} ({target_layer or 'unknown layer'}). "
        "You can use a free connector for visual-only links."
    )
