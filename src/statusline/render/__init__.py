"""Theme selection and line rendering."""

from .theme import ThemeResolver, DARK_PALETTE, LIGHT_PALETTE
from .renderer import Renderer, PLACEHOLDER, SEPARATOR

__all__ = [
    "ThemeResolver",
    "DARK_PALETTE",
    "LIGHT_PALETTE",
    "Renderer",
    "PLACEHOLDER",
    "SEPARATOR"
]
