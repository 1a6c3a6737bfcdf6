# aero_cache.py
# -------------------------------------------------------------
# Lazily filled (speed x angle-of-attack) force table backed by an expensive
# aerodynamic evaluator, plus the frame reprojection that lets one sample be
# reused for any predicted attitude.
#
# Table layout:
#   table[v, a] = (forward, lift) / max(1, speed_v^2) at unit air density,
#   speed axis linear in [0, max_speed], angle axis linear in [-max_aoa, +max_aoa].
#   NaN marks an unset cell. A filled cell is never overwritten; a rebuilt
#   model gets a fresh table.
#
# Probe frame:
#   velocity (speed, 0, 0), up hint (0, 1, 0) -> forward = +x, up = +y, so the
#   sampler's x and y components are the forward and lift components.
#
# Threading:
#   Lazy fills write to the shared table. Pass a threading.Lock as `lock` when
#   several workers read the same cache; otherwise give each worker its own.
# -------------------------------------------------------------

import logging
import math
from contextlib import nullcontext

import numpy as np

from .constants import (
    ANGLE_RESOLUTION,
    MAX_CACHED_AOA,
    MAX_CACHED_SPEED,
    MIN_READY_SQR_DRAG,
    SOUND_SPEED_APPROX,
    VELOCITY_RESOLUTION,
)
from .vectors import Basis, cross, normalized, tilt_basis, vec3, velocity_basis

logger = logging.getLogger(__name__)

PROBE_UP = vec3(0.0, 1.0, 0.0)


def _grid_index(x: float, n: int):
    """
    Floor index clamped to [0, n-2] and the remainder clamped to [0, 1]
    for a fractional grid coordinate x.
    """
    if not math.isfinite(x):
        x = 0.0
    i = max(0, min(n - 2, int(math.floor(x))))
    t = max(0.0, min(1.0, x - i))
    return i, t


class AeroForceCache:
    """
    Two-dimensional force cache.

    sampler(rho, mach, velocity, up_hint, angle_of_attack) -> 3-vector
        expensive evaluation, already reprojected into the probe frame.
    readiness_check() -> squared reference drag
        consulted until the evaluator first reports a usable value; results
        sampled before that are returned but not stored.
    """

    def __init__(self, sampler,
                 velocity_resolution: int = VELOCITY_RESOLUTION,
                 angle_resolution: int = ANGLE_RESOLUTION,
                 max_speed: float = MAX_CACHED_SPEED,
                 max_angle_of_attack: float = MAX_CACHED_AOA,
                 sound_speed: float = SOUND_SPEED_APPROX,
                 readiness_check=None,
                 lock=None):
        if velocity_resolution < 2 or angle_resolution < 2:
            raise ValueError("cache resolution must be at least 2 in each axis")
        if max_speed <= 0.0 or max_angle_of_attack <= 0.0:
            raise ValueError("max_speed and max_angle_of_attack must be positive")

        self.sampler = sampler
        self.velocity_resolution = int(velocity_resolution)
        self.angle_resolution = int(angle_resolution)
        self.max_speed = float(max_speed)
        self.max_angle_of_attack = float(max_angle_of_attack)
        self.sound_speed = float(sound_speed)
        self.readiness_check = readiness_check
        self.ready = readiness_check is None
        self._lock = lock if lock is not None else nullcontext()

        self.table = np.full((self.velocity_resolution, self.angle_resolution, 2), np.nan)

    # ---------- grid geometry ----------
    def speed_at(self, v: int) -> float:
        return self.max_speed * v / (self.velocity_resolution - 1)

    def angle_at(self, a: int) -> float:
        return self.max_angle_of_attack * (a / (self.angle_resolution - 1) * 2.0 - 1.0)

    def _speed_scale(self, v: int) -> float:
        s = self.speed_at(v)
        return max(1.0, s * s)

    # ---------- cells ----------
    def is_filled(self, v: int, a: int) -> bool:
        return not math.isnan(self.table[v, a, 0])

    @property
    def filled_count(self) -> int:
        return int(np.count_nonzero(~np.isnan(self.table[:, :, 0])))

    def clear(self):
        self.table.fill(np.nan)

    def cell(self, v: int, a: int) -> np.ndarray:
        """Unit-density force (forward, lift) at grid point (v, a), filling it if unset."""
        scale = self._speed_scale(v)
        f = self.table[v, a]
        if math.isnan(f[0]):
            f = self._fill(v, a, scale)
        return f * scale

    def _fill(self, v: int, a: int, scale: float) -> np.ndarray:
        with self._lock:
            if self.is_filled(v, a):
                return self.table[v, a]

            speed = self.speed_at(v)
            force = self.sampler(1.0, speed / self.sound_speed, vec3(speed, 0.0, 0.0),
                                 PROBE_UP, self.angle_at(a))
            f = np.array([force[0] / scale, force[1] / scale], dtype=float)
            if not np.all(np.isfinite(f)):
                logger.warning("[CACHE] non-finite sample at v=%d a=%d, using zero", v, a)
                return np.zeros(2)

            if not self.ready:
                ref = self.readiness_check()
                if ref >= MIN_READY_SQR_DRAG:
                    self.ready = True
                    logger.debug("[CACHE] evaluator ready (reference drag^2=%.3g)", ref)
                else:
                    logger.debug("[CACHE] evaluator not ready, cell v=%d a=%d left unset", v, a)

            if self.ready:
                self.table[v, a] = f
            return f

    def warm(self, budget: int) -> int:
        """Fill up to `budget` unset cells in row order. Returns how many were filled."""
        filled = 0
        for v, a in np.argwhere(np.isnan(self.table[:, :, 0])):
            if filled >= budget:
                break
            self.cell(int(v), int(a))
            if self.is_filled(int(v), int(a)):
                filled += 1
            elif not self.ready:
                break
        return filled

    # ---------- lookup ----------
    def force(self, speed: float, rho: float, angle_of_attack: float) -> np.ndarray:
        """
        Bilinear lookup of the (forward, lift) force at `speed` and
        `angle_of_attack`, scaled to air density `rho`.
        """
        v0, tv = _grid_index(speed / self.max_speed * (self.velocity_resolution - 1),
                             self.velocity_resolution)
        a0, ta = _grid_index((angle_of_attack / self.max_angle_of_attack * 0.5 + 0.5)
                             * (self.angle_resolution - 1), self.angle_resolution)

        f00 = self.cell(v0, a0)
        f01 = self.cell(v0, a0 + 1)
        f10 = self.cell(v0 + 1, a0)
        f11 = self.cell(v0 + 1, a0 + 1)

        f0 = f00 + ta * (f01 - f00)
        f1 = f10 + ta * (f11 - f10)
        return (f0 + tv * (f1 - f0)) * rho

    @staticmethod
    def to_world(sample, position, air_velocity) -> np.ndarray:
        """
        Expand a (forward, lift) sample into a body-relative force. Lift acts in
        the plane of the position and velocity vectors.
        """
        forward = normalized(air_velocity)
        right = normalized(cross(forward, position))
        up = normalized(cross(right, forward))
        return forward * sample[0] + up * sample[1]


def reproject(force, vessel_basis: Basis, air_velocity, up_hint, angle_of_attack: float) -> np.ndarray:
    """
    Re-express a force measured with the vessel in its current attitude as if
    the vessel were flying along `air_velocity` at `angle_of_attack`.

    The target right axis comes from up_hint; the vessel's own up and backward
    axes are the fallbacks when up_hint is parallel to the velocity.
    """
    local = vessel_basis.to_local(force)
    target = velocity_basis(air_velocity, up_hint,
                            fallbacks=(vessel_basis.up, vessel_basis.backward))
    if target.is_degenerate():
        logger.debug("[CACHE] no usable frame for air velocity %s, using zero force", air_velocity)
        return np.zeros(3)
    predicted = tilt_basis(target, angle_of_attack)
    return predicted.from_local(local)
