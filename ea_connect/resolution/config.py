"""Configuration for connection resolution."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ResolutionConfig:
    """Constants controlling candidate search and derived-element creation."""

    max_indirect_paths: int = 8
    derived_name_template: str = "{type} (auto)"
    collapse_derived: bool = True

    def derived_name(self, element_type: str) -> str:
        """Default name for an auto-inserted intermediate element."""
        return self.derived_name_template.format(type=element_type)


DEFAULT_RESOLUTION_CONFIG = ResolutionConfig()
