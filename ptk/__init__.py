"""ptk - personal time keeper."""

__version__ = "1.0.0"
__logo__ = "⏱"
