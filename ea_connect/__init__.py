"""Connection resolution for enterprise-architecture models."""

__version__ = "0.1.0"
