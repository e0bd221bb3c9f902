"""Light/dark palette selection from the host settings file."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from ..core import Palette, Resolved, ThemeChoice

logger = logging.getLogger(__name__)


def _fg(code: int) -> str:
    return f"\033[38;5;{code}m"


# Catppuccin Mocha approximations in the 256-color cube
DARK_PALETTE = Palette(
    name="dark",
    branch=_fg(111),
    added=_fg(151),
    removed=_fg(211),
    model=_fg(183),
    tokens=_fg(216),
    warning=_fg(221),
    critical=_fg(203),
    neutral=_fg(245),
)

# Catppuccin Latte approximations, readable on a light background
LIGHT_PALETTE = Palette(
    name="light",
    branch=_fg(25),
    added=_fg(28),
    removed=_fg(161),
    model=_fg(92),
    tokens=_fg(166),
    warning=_fg(136),
    critical=_fg(160),
    neutral=_fg(242),
)

PALETTES = {
    ThemeChoice.DARK: DARK_PALETTE,
    ThemeChoice.LIGHT: LIGHT_PALETTE,
}


class ThemeResolver:
    """
    Pick a palette from the ``theme`` key of the settings file.

    Theme names beginning with ``light`` (``light``, ``light-daltonized``,
    ``light-ansi``) select the light palette; everything else, including
    a missing setting, selects dark.
    """

    def __init__(self, settings_file: Path, override: Optional[str] = None):
        self.settings_file = Path(settings_file)
        self.override = override

    @staticmethod
    def choose(theme_name: Optional[str]) -> ThemeChoice:
        if isinstance(theme_name, str) and theme_name.strip().lower().startswith("light"):
            return ThemeChoice.LIGHT
        return ThemeChoice.DARK

    @staticmethod
    def palette_for(choice: ThemeChoice) -> Palette:
        return PALETTES[choice]

    def resolve(self) -> Resolved[Palette]:
        if self.override:
            return Resolved.ok(self.palette_for(self.choose(self.override)))

        try:
            settings = self._load_settings()
        except (OSError, ValueError) as e:
            logger.debug(f"Settings unavailable ({e}), using dark theme")
            return Resolved.fallback(DARK_PALETTE, f"settings unreadable: {e}")

        return Resolved.ok(self.palette_for(self.choose(settings.get("theme"))))

    def _load_settings(self) -> Dict[str, Any]:
        if not self.settings_file.exists():
            return {}
        with open(self.settings_file, "r", encoding="utf-8") as f:
            settings = json.load(f)
        if not isinstance(settings, dict):
            raise ValueError("settings root is not an object")
        return settings
