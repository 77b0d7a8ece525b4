"""Model repository adapters for the resolution session."""

from .memory import InMemoryModelRepository, ModelStats

__all__ = ["InMemoryModelRepository", "ModelStats"]
