"""Persisted user settings for trajectory prediction.

The settings are a fixed-schema dataclass with explicit defaults; the file
format is a flat JSON object mapped field by field. Consumers receive the
values they need through their constructors (for example
``VesselAerodynamicModel(auto_update=settings.auto_update_aerodynamic_model)``)
rather than looking the settings up globally.

Typical usage:
    settings = Settings.load("~/.trajectories/settings.json")
    profile = settings.descent_profile()
    settings.auto_update_aerodynamic_model = False
    settings.save()
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Tuple

from .descent_profile import NODE_NAMES, DescentProfile
from .errors import SettingsError

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = Path.home() / ".trajectories" / "settings.json"


def _default_descent() -> dict:
    return {name: {"angle": 0.0, "horizon": True} for name in NODE_NAMES}


@dataclass
class Settings:
    """User-facing options.

    Attributes:
        display_trajectories: Draw predicted paths.
        body_fixed_mode: Show paths in the rotating body frame.
        auto_update_aerodynamic_model: Enable drift-based cache invalidation.
        gui_enabled: Show the settings window.
        map_gui_window_pos: Window rectangle (x, y, width, height) or None.
        descent: Descent node values keyed by node name.
    """

    display_trajectories: bool = True
    body_fixed_mode: bool = False
    auto_update_aerodynamic_model: bool = True
    gui_enabled: bool = False
    map_gui_window_pos: Optional[Tuple[float, float, float, float]] = None
    descent: dict = field(default_factory=_default_descent)
    _path: Path = field(default=DEFAULT_SETTINGS_PATH, repr=False, compare=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "display_trajectories": self.display_trajectories,
            "body_fixed_mode": self.body_fixed_mode,
            "auto_update_aerodynamic_model": self.auto_update_aerodynamic_model,
            "gui_enabled": self.gui_enabled,
            "map_gui_window_pos": (list(self.map_gui_window_pos)
                                   if self.map_gui_window_pos is not None else None),
            "descent": {name: dict(self.descent[name]) for name in NODE_NAMES},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Settings":
        """Build settings from a decoded dict; bad or missing fields keep their defaults."""
        s = cls()
        for key in ("display_trajectories", "body_fixed_mode",
                    "auto_update_aerodynamic_model", "gui_enabled"):
            value = data.get(key)
            if isinstance(value, bool):
                setattr(s, key, value)
            elif value is not None:
                logger.warning("Ignoring setting %s=%r (expected bool)", key, value)

        pos = data.get("map_gui_window_pos")
        if isinstance(pos, (list, tuple)) and len(pos) == 4:
            try:
                s.map_gui_window_pos = tuple(float(x) for x in pos)
            except (TypeError, ValueError):
                logger.warning("Ignoring setting map_gui_window_pos=%r (expected numbers)", pos)
        elif pos is not None:
            logger.warning("Ignoring setting map_gui_window_pos=%r (expected 4 numbers)", pos)

        descent = data.get("descent")
        if isinstance(descent, dict):
            s.descent = DescentProfile.from_dict(descent).to_dict()
        return s

    def descent_profile(self) -> DescentProfile:
        return DescentProfile.from_dict(self.descent)

    def set_descent_profile(self, profile: DescentProfile):
        self.descent = profile.to_dict()

    @classmethod
    def load(cls, path: Path | str | None = None) -> "Settings":
        """Load settings from a JSON file.

        A missing file yields defaults. A file that is not valid JSON raises
        SettingsError.
        """
        path = Path(path).expanduser() if path is not None else DEFAULT_SETTINGS_PATH
        if not path.exists():
            logger.info("No settings file at %s, using defaults", path)
            s = cls()
            s._path = path
            return s

        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise SettingsError(f"cannot read settings from {path}: {e}") from e
        if not isinstance(data, dict):
            raise SettingsError(f"settings file {path} does not hold a JSON object")

        s = cls.from_dict(data)
        s._path = path
        logger.info("Loaded settings from %s", path)
        return s

    def save(self, path: Path | str | None = None) -> Path:
        if path is not None:
            self._path = Path(path).expanduser()
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)
        logger.debug("Saved settings to %s", self._path)
        return self._path
