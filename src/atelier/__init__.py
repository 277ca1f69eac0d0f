"""Atelier - resilient request orchestration for AI content generation."""

__version__ = "0.1.0"
