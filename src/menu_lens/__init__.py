"""Menu Lens backend: session-scoped menu and product translation history."""

__version__ = "0.1.0"
