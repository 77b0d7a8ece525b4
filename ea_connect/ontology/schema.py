"""Built-in enterprise-architecture type ontology.

Defines the valid element types, relationship types, their layers and the
endpoint constraints each relationship type places on its source/target.
"""

from dataclasses import dataclass
from enum import Enum


class Layer(Enum):
    """Architecture layers element and relationship types belong to."""

    BUSINESS = "Business"
    APPLICATION = "Application"
    TECHNOLOGY = "Technology"
    IMPLEMENTATION = "Implementation & Migration"
    GOVERNANCE = "Governance"


class ElementType(Enum):
    """Valid element types in the architecture model."""

    ENTERPRISE = "Enterprise"
    CAPABILITY_CATEGORY = "CapabilityCategory"
    CAPABILITY = "Capability"
    SUB_CAPABILITY = "SubCapability"
    VALUE_STREAM = "ValueStream"
    BUSINESS_SERVICE = "BusinessService"
    BUSINESS_PROCESS = "BusinessProcess"
    DEPARTMENT = "Department"
    APPLICATION = "Application"
    APPLICATION_SERVICE = "ApplicationService"
    INTERFACE = "Interface"
    TECHNOLOGY = "Technology"
    NODE = "Node"
    SERVER = "Server"
    COMPUTE = "Compute"
    VM = "VM"
    CONTAINER = "Container"
    RUNTIME = "Runtime"
    DATABASE = "Database"
    STORAGE = "Storage"
    NETWORK = "Network"
    LOAD_BALANCER = "LoadBalancer"
    API = "API"
    MESSAGE_BROKER = "MessageBroker"
    INTEGRATION_PLATFORM = "IntegrationPlatform"
    CLOUD_SERVICE = "CloudService"
    PROGRAMME = "Programme"
    PROJECT = "Project"
    PRINCIPLE = "Principle"
    REQUIREMENT = "Requirement"
    STANDARD = "Standard"


class RelationshipType(Enum):
    """Valid relationship types in the architecture model."""

    DECOMPOSES_TO = "DECOMPOSES_TO"
    COMPOSED_OF = "COMPOSED_OF"
    REALIZES = "REALIZES"
    TRIGGERS = "TRIGGERS"
    SERVED_BY = "SERVED_BY"
    INTEGRATES_WITH = "INTEGRATES_WITH"
    DEPLOYED_ON = "DEPLOYED_ON"
    OWNS = "OWNS"
    HAS = "HAS"
    REALIZED_BY = "REALIZED_BY"
    EXPOSES = "EXPOSES"
    PROVIDED_BY = "PROVIDED_BY"
    USED_BY = "USED_BY"
    SUPPORTS = "SUPPORTS"
    CONSUMES = "CONSUMES"
    DEPENDS_ON = "DEPENDS_ON"
    CONNECTS_TO = "CONNECTS_TO"
    USES = "USES"
    SUPPORTED_BY = "SUPPORTED_BY"
    IMPACTS = "IMPACTS"
    IMPLEMENTS = "IMPLEMENTS"
    DELIVERS = "DELIVERS"


ELEMENT_LAYERS: dict[ElementType, Layer] = {
    ElementType.ENTERPRISE: Layer.BUSINESS,
    ElementType.CAPABILITY_CATEGORY: Layer.BUSINESS,
    ElementType.CAPABILITY: Layer.BUSINESS,
    ElementType.SUB_CAPABILITY: Layer.BUSINESS,
    ElementType.VALUE_STREAM: Layer.BUSINESS,
    ElementType.BUSINESS_SERVICE: Layer.BUSINESS,
    ElementType.BUSINESS_PROCESS: Layer.BUSINESS,
    ElementType.DEPARTMENT: Layer.BUSINESS,
    ElementType.APPLICATION: Layer.APPLICATION,
    ElementType.APPLICATION_SERVICE: Layer.APPLICATION,
    ElementType.INTERFACE: Layer.APPLICATION,
    ElementType.TECHNOLOGY: Layer.TECHNOLOGY,
    ElementType.NODE: Layer.TECHNOLOGY,
    ElementType.SERVER: Layer.TECHNOLOGY,
    ElementType.COMPUTE: Layer.TECHNOLOGY,
    ElementType.VM: Layer.TECHNOLOGY,
    ElementType.CONTAINER: Layer.TECHNOLOGY,
    ElementType.RUNTIME: Layer.TECHNOLOGY,
    ElementType.DATABASE: Layer.TECHNOLOGY,
    ElementType.STORAGE: Layer.TECHNOLOGY,
    ElementType.NETWORK: Layer.TECHNOLOGY,
    ElementType.LOAD_BALANCER: Layer.TECHNOLOGY,
    ElementType.API: Layer.TECHNOLOGY,
    ElementType.MESSAGE_BROKER: Layer.TECHNOLOGY,
    ElementType.INTEGRATION_PLATFORM: Layer.TECHNOLOGY,
    ElementType.CLOUD_SERVICE: Layer.TECHNOLOGY,
    ElementType.PROGRAMME: Layer.IMPLEMENTATION,
    ElementType.PROJECT: Layer.IMPLEMENTATION,
    ElementType.PRINCIPLE: Layer.GOVERNANCE,
    ElementType.REQUIREMENT: Layer.GOVERNANCE,
    ElementType.STANDARD: Layer.GOVERNANCE,
}

_CAPABILITY_TYPES = [
    ElementType.CAPABILITY_CATEGORY,
    ElementType.CAPABILITY,
    ElementType.SUB_CAPABILITY,
]

_TECHNOLOGY_TYPES = [t for t, layer in ELEMENT_LAYERS.items() if layer == Layer.TECHNOLOGY]


# "pairs", when present, restricts the cross product to exactly those endpoints.
RELATIONSHIP_CONSTRAINTS: dict[RelationshipType, dict] = {
    RelationshipType.DECOMPOSES_TO: {
        "layer": Layer.BUSINESS,
        "sources": _CAPABILITY_TYPES,
        "targets": _CAPABILITY_TYPES,
    },
    RelationshipType.COMPOSED_OF: {
        "layer": Layer.BUSINESS,
        "sources": _CAPABILITY_TYPES,
        "targets": _CAPABILITY_TYPES,
        "pairs": [
            (ElementType.CAPABILITY_CATEGORY, ElementType.CAPABILITY),
            (ElementType.CAPABILITY, ElementType.SUB_CAPABILITY),
            (ElementType.CAPABILITY, ElementType.CAPABILITY),
        ],
    },
    RelationshipType.REALIZES: {
        "layer": Layer.BUSINESS,
        "sources": [ElementType.BUSINESS_PROCESS],
        "targets": [ElementType.CAPABILITY],
    },
    RelationshipType.TRIGGERS: {
        "layer": Layer.BUSINESS,
        "sources": [ElementType.BUSINESS_PROCESS],
        "targets": [ElementType.BUSINESS_PROCESS],
    },
    RelationshipType.SERVED_BY: {
        "layer": Layer.APPLICATION,
        "sources": [ElementType.BUSINESS_PROCESS],
        "targets": [ElementType.APPLICATION],
    },
    RelationshipType.INTEGRATES_WITH: {
        "layer": Layer.APPLICATION,
        "sources": [ElementType.APPLICATION],
        "targets": [ElementType.APPLICATION],
    },
    RelationshipType.DEPENDS_ON: {
        "layer": Layer.APPLICATION,
        "sources": [ElementType.APPLICATION_SERVICE, ElementType.APPLICATION],
        "targets": [ElementType.APPLICATION_SERVICE, ElementType.RUNTIME],
    },
    RelationshipType.CONNECTS_TO: {
        "layer": Layer.TECHNOLOGY,
        "sources": _TECHNOLOGY_TYPES,
        "targets": _TECHNOLOGY_TYPES,
    },
    RelationshipType.USES: {
        "layer": Layer.APPLICATION,
        "sources": [ElementType.APPLICATION],
        "targets": [ElementType.APPLICATION],
    },
    RelationshipType.EXPOSES: {
        "layer": Layer.APPLICATION,
        "sources": [ElementType.APPLICATION],
        "targets": [ElementType.APPLICATION_SERVICE],
    },
    RelationshipType.PROVIDED_BY: {
        "layer": Layer.APPLICATION,
        "sources": [ElementType.APPLICATION_SERVICE],
        "targets": [ElementType.APPLICATION],
    },
    RelationshipType.USED_BY: {
        "layer": Layer.APPLICATION,
        "sources": [ElementType.APPLICATION_SERVICE],
        "targets": [ElementType.APPLICATION, ElementType.BUSINESS_PROCESS],
    },
    RelationshipType.DEPLOYED_ON: {
        "layer": Layer.TECHNOLOGY,
        "sources": [ElementType.APPLICATION],
        "targets": _TECHNOLOGY_TYPES,
    },
    RelationshipType.DELIVERS: {
        "layer": Layer.IMPLEMENTATION,
        "sources": [ElementType.PROGRAMME],
        "targets": _CAPABILITY_TYPES + [ElementType.APPLICATION],
    },
    RelationshipType.OWNS: {
        "layer": Layer.BUSINESS,
        "sources": [ElementType.ENTERPRISE],
        "targets": [
            ElementType.ENTERPRISE,
            ElementType.CAPABILITY,
            ElementType.APPLICATION,
            ElementType.PROGRAMME,
        ],
    },
    RelationshipType.HAS: {
        "layer": Layer.BUSINESS,
        "sources": [ElementType.ENTERPRISE],
        "targets": [ElementType.DEPARTMENT],
    },
    RelationshipType.REALIZED_BY: {
        "layer": Layer.BUSINESS,
        "sources": [ElementType.CAPABILITY],
        "targets": [ElementType.BUSINESS_PROCESS],
    },
    RelationshipType.SUPPORTS: {
        "layer": Layer.APPLICATION,
        "sources": [ElementType.APPLICATION_SERVICE],
        "targets": [ElementType.BUSINESS_SERVICE],
    },
    RelationshipType.CONSUMES: {
        "layer": Layer.APPLICATION,
        "sources": [ElementType.APPLICATION_SERVICE],
        "targets": [ElementType.APPLICATION_SERVICE],
    },
    RelationshipType.SUPPORTED_BY: {
        "layer": Layer.BUSINESS,
        "sources": [
            ElementType.CAPABILITY,
            ElementType.SUB_CAPABILITY,
            ElementType.BUSINESS_SERVICE,
        ],
        "targets": [ElementType.APPLICATION, ElementType.APPLICATION_SERVICE],
        "pairs": [
            (ElementType.CAPABILITY, ElementType.APPLICATION),
            (ElementType.SUB_CAPABILITY, ElementType.APPLICATION),
            (ElementType.BUSINESS_SERVICE, ElementType.APPLICATION_SERVICE),
        ],
    },
    RelationshipType.IMPACTS: {
        "layer": Layer.IMPLEMENTATION,
        "sources": [ElementType.PROGRAMME],
        "targets": [ElementType.CAPABILITY, ElementType.SUB_CAPABILITY],
    },
    RelationshipType.IMPLEMENTS: {
        "layer": Layer.IMPLEMENTATION,
        "sources": [ElementType.PROJECT],
        "targets": [ElementType.APPLICATION],
    },
}


@dataclass
class ValidationResult:
    """Result of a validation check."""

    valid: bool
    errors: list[str]
    warnings: list[str]

    def __bool__(self) -> bool:
        return self.valid
