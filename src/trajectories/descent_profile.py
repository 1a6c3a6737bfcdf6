# descent_profile.py
# -------------------------------------------------------------
# Angle-of-attack schedule for descent prediction.
#
# Four control nodes, blended by altitude fraction r (0 = ground,
# 1 = top of the atmosphere):
#   r > 0.5          entry  <-> high,   w = min((r - 0.5) * 2, 1)
#   0.25 < r <= 0.5  high   <-> low,    w = r * 4 - 1
#   0.05 < r <= 0.25 low    <-> ground, w = 1 - (1 - (r * 5 - 0.25))^2
#   r <= 0.05        ground only
# result = resolve(a) * w + resolve(b) * (1 - w)
#
# A node with horizon=True holds its angle as is. Otherwise its angle is an
# offset added to the current flight-path angle acos(r.v / |r||v|) - pi/2.
#
# The schedule has no mutable state during evaluation and may be shared by
# concurrent prediction workers.
# -------------------------------------------------------------

import logging
import math
from dataclasses import dataclass

import numpy as np

logger = logging.getLogger(__name__)

NODE_NAMES = ("entry", "high", "low", "ground")


@dataclass
class DescentNode:
    name: str
    description: str = ""
    angle: float = 0.0      # [rad]
    horizon: bool = True

    def resolve(self, position, velocity) -> float:
        # Persisted "horizon": true means the stored angle is used unchanged.
        if self.horizon:
            return self.angle

        p = np.asarray(position, dtype=float)
        v = np.asarray(velocity, dtype=float)
        denom = float(np.linalg.norm(p) * np.linalg.norm(v))
        if denom <= 0.0:
            return self.angle
        c = max(-1.0, min(1.0, float(np.dot(p, v)) / denom))
        return math.acos(c) - math.pi * 0.5 + self.angle

    def to_dict(self) -> dict:
        return {"angle": self.angle, "horizon": self.horizon}


def _default_nodes():
    return {
        "entry": DescentNode("entry", "Spacecraft angle when entering the atmosphere"),
        "high": DescentNode("high", "Spacecraft angle at 50% of atmosphere height"),
        "low": DescentNode("low", "Spacecraft angle at 25% of atmosphere height"),
        "ground": DescentNode("ground", "Spacecraft angle near the ground"),
    }


class DescentProfile:
    """Piecewise angle-of-attack schedule over four DescentNode values."""

    def __init__(self, entry=None, high=None, low=None, ground=None):
        self.nodes = _default_nodes()
        for name, node in zip(NODE_NAMES, (entry, high, low, ground)):
            if node is not None:
                self.set_node(name, node.angle, node.horizon)

    @property
    def entry(self) -> DescentNode:
        return self.nodes["entry"]

    @property
    def high(self) -> DescentNode:
        return self.nodes["high"]

    @property
    def low(self) -> DescentNode:
        return self.nodes["low"]

    @property
    def ground(self) -> DescentNode:
        return self.nodes["ground"]

    def set_node(self, name: str, angle: float, horizon: bool = True):
        if name not in self.nodes:
            raise KeyError(f"unknown descent node '{name}', expected one of {NODE_NAMES}")
        node = self.nodes[name]
        node.angle = float(angle)
        node.horizon = bool(horizon)

    def angle_of_attack(self, altitude_fraction: float, position, velocity) -> float:
        r = altitude_fraction if math.isfinite(altitude_fraction) else 0.0

        if r > 0.5:
            a, b = self.entry, self.high
            w = min((r - 0.5) * 2.0, 1.0)
        elif r > 0.25:
            a, b = self.high, self.low
            w = r * 4.0 - 1.0
        elif r > 0.05:
            a, b = self.low, self.ground
            w = 1.0 - (r * 5.0 - 0.25)
            w = 1.0 - w * w
        else:
            return self.ground.resolve(position, velocity)

        return a.resolve(position, velocity) * w + b.resolve(position, velocity) * (1.0 - w)

    def angle_of_attack_for_body(self, body, position, velocity) -> float:
        """Schedule angle using the altitude fraction of `position` over `body`."""
        return self.angle_of_attack(body.altitude_fraction(position), position, velocity)

    # --- persistence ---
    def to_dict(self) -> dict:
        return {name: self.nodes[name].to_dict() for name in NODE_NAMES}

    @classmethod
    def from_dict(cls, data: dict) -> "DescentProfile":
        """Build a profile from persisted node values; malformed nodes keep their defaults."""
        profile = cls()
        if not isinstance(data, dict):
            return profile
        for name in NODE_NAMES:
            node = data.get(name)
            if node is None:
                continue
            if not isinstance(node, dict):
                logger.warning("Ignoring descent node %s=%r (expected object)", name, node)
                continue
            horizon = node.get("horizon", True)
            if not isinstance(horizon, bool):
                logger.warning("Ignoring descent node %s: horizon=%r (expected bool)", name, horizon)
                continue
            try:
                angle = float(node.get("angle", 0.0))
            except (TypeError, ValueError):
                logger.warning("Ignoring descent node %s: angle=%r (expected number)",
                               name, node.get("angle"))
                continue
            if not math.isfinite(angle):
                logger.warning("Ignoring descent node %s: angle=%r (not finite)", name, angle)
                continue
            profile.set_node(name, angle, horizon)
        return profile
