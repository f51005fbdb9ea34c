# src/menu_lens/models/__init__.py
"""SQLAlchemy models for the Menu Lens application."""

from .analysis import MenuAnalysis, ProductAnalysis

__all__ = ["MenuAnalysis", "ProductAnalysis"]
