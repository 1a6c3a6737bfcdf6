# aero_model.py
# -------------------------------------------------------------
# Per-vessel aerodynamic model used by trajectory prediction.
#
# Two strategies:
#   - stock (analytic): F = v * (-0.5 * rho * |v| * Cd * A), A = DRAG_MULTIPLIER * mass.
#     Lift is not modelled; winged vessels get inaccurate predictions.
#   - cached: per-part evaluator sampled into an AeroForceCache and reprojected
#     into the predicted attitude.
# The stock strategy is selected permanently when the per-part evaluator is
# unavailable for the vessel.
#
# Validity:
#   The cached strategy compares a fixed reference probe against the first
#   one it measured. A ratio above drift_ratio (strict) invalidates the model.
#   Checks run at most once per `cooldown` seconds of the injected monotonic
#   clock.
#
# Usage:
#   model = VesselAerodynamicModel(vessel, Atmosphere(), auto_update=settings.auto_update_aerodynamic_model)
#   F = model.compute_forces(KERBIN, r, v_air, aoa, dt)
# -------------------------------------------------------------

import logging
import math
import time
from typing import Optional

import numpy as np

from .aero_cache import AeroForceCache, reproject
from .atmosphere import Atmosphere, CelestialBody
from .constants import (
    DRAG_MULTIPLIER,
    DRIFT_RATIO,
    REFERENCE_PROBE_MACH,
    REFERENCE_PROBE_RHO,
    REFERENCE_PROBE_SPEED,
    UPDATE_COOLDOWN_S,
)
from .errors import AeroEvaluatorUnavailable
from .vectors import vec3
from .vessel import PartwiseEvaluator, Vessel

logger = logging.getLogger(__name__)

STOCK_FALLBACK_NOTICE = ("Per-part aerodynamic model not available for this vessel, "
                         "using stock aerodynamics")
STOCK_LIFT_NOTICE = ("WARNING: stock aerodynamic model does not predict lift, "
                     "spacecrafts with wings will have inaccurate predictions")
AUTO_UPDATE_NOTICE = "Trajectory aerodynamic model auto-updated"


def _default_notify(message: str):
    logger.warning("[AERO] %s", message)


class VesselAerodynamicModel:
    """
    Aerodynamic force model for one vessel.

    Args:
        vessel: the tracked vessel; the model is only valid for this object.
        atmosphere: density / pressure / Mach provider.
        evaluator_factory: callable(vessel) -> evaluator with
            total_force(air_velocity, mach, rho). May raise
            AeroEvaluatorUnavailable; None forces the stock strategy.
        auto_update: enable drift-based invalidation (settings flag).
        cooldown: minimum seconds between drift checks.
        drift_ratio: invalidate when max/min reference drag exceeds this.
        clock: monotonic time source in seconds.
        notify: callable(str) for user-visible notices.
        use_cache: False bypasses the force cache (debugging aid).
        cache_options: extra keyword arguments for AeroForceCache.
    """

    def __init__(self, vessel: Vessel,
                 atmosphere: Optional[Atmosphere] = None,
                 evaluator_factory=PartwiseEvaluator.for_vessel,
                 auto_update: bool = True,
                 cooldown: float = UPDATE_COOLDOWN_S,
                 drift_ratio: float = DRIFT_RATIO,
                 clock=time.monotonic,
                 notify=None,
                 use_cache: bool = True,
                 cache_options: Optional[dict] = None):
        self.vessel = vessel
        self.atmosphere = atmosphere if atmosphere is not None else Atmosphere()
        self.auto_update = auto_update
        self.cooldown = float(cooldown)
        self.drift_ratio = float(drift_ratio)
        self.clock = clock
        self.notify = notify if notify is not None else _default_notify
        self.use_cache = use_cache

        self.mass = 0.0
        weighted = 0.0
        for part in vessel.parts:
            weighted += part.max_drag * part.mass
            self.mass += part.mass
        self.stock_drag_coeff = weighted / self.mass if self.mass > 0.0 else 0.0

        self.evaluator = None
        self.cache = None
        self.use_stock_model = False
        self.is_valid = False
        self.reference_drag_baseline = 0.0
        self.next_allowed_check = self.clock()

        try:
            if evaluator_factory is None:
                raise AeroEvaluatorUnavailable("no per-part evaluator configured")
            self.evaluator = evaluator_factory(vessel)
            self.cache = AeroForceCache(self.compute_forces_expensive,
                                        readiness_check=self.reference_drag,
                                        **(cache_options or {}))
            self.is_valid = True
        except AeroEvaluatorUnavailable as e:
            logger.info("[AERO] %s: falling back to stock drag (%s)", vessel.name, e)
            self.notify(STOCK_FALLBACK_NOTICE)
            self.notify(STOCK_LIFT_NOTICE)
            self.evaluator = None
            self.use_stock_model = True
            self.is_valid = True

    def __repr__(self):
        kind = "stock" if self.use_stock_model else "cached"
        return f"VesselAerodynamicModel({self.vessel.name!r}, {kind}, valid={self.is_valid})"

    # ---------------- validity ----------------
    def is_valid_for(self, vessel: Vessel) -> bool:
        if vessel is not self.vessel:
            return False
        if not self.is_valid:
            return False

        if not self.use_stock_model and self.auto_update:
            now = self.clock()
            if now >= self.next_allowed_check:
                self.next_allowed_check = now + self.cooldown
                self._check_drift()

        return self.is_valid

    def _check_drift(self):
        new_ref = self.reference_drag()
        if self.reference_drag_baseline == 0.0:
            self.reference_drag_baseline = new_ref
        ratio = (max(new_ref, self.reference_drag_baseline)
                 / max(1.0, min(new_ref, self.reference_drag_baseline)))
        logger.debug("[AERO] drift check %s: ref=%.4g base=%.4g ratio=%.3f",
                     self.vessel.name, new_ref, self.reference_drag_baseline, ratio)
        if ratio > self.drift_ratio:
            logger.info("[AERO] %s: reference drag drifted (ratio %.3f), invalidating",
                        self.vessel.name, ratio)
            self.notify(AUTO_UPDATE_NOTICE)
            self.is_valid = False

    def invalidate(self):
        self.is_valid = False

    def incremental_update(self, budget: int = 0) -> int:
        """Warm up to `budget` cache cells; a no-op for the stock strategy."""
        if self.use_stock_model or self.cache is None or budget <= 0:
            return 0
        return self.cache.warm(budget)

    def reference_drag(self) -> float:
        """
        Squared magnitude of a fixed probe force. The probe is evaluated three
        times and the last result kept, so evaluators with per-frame state have
        settled.
        """
        probe = vec3(REFERENCE_PROBE_SPEED, 0.0, 0.0)
        up = vec3(0.0, 1.0, 0.0)
        f = np.zeros(3)
        for _ in range(3):
            f = self.compute_forces_expensive(REFERENCE_PROBE_RHO, REFERENCE_PROBE_MACH,
                                              probe, up, 0.0, 0.25)
        return float(np.dot(f, f))

    # ---------------- forces ----------------
    def compute_forces(self, body: CelestialBody, position, air_velocity,
                       angle_of_attack: float, dt: float) -> np.ndarray:
        """
        Total aerodynamic force on the vessel at a body-relative position with
        the given air-relative velocity. dt is the step length the force will
        be applied over.
        """
        position = np.asarray(position, dtype=float)
        air_velocity = np.asarray(air_velocity, dtype=float)
        if self.use_stock_model:
            f = self._compute_forces_stock(body, position, air_velocity, dt)
        else:
            f = self._compute_forces_cached(body, position, air_velocity, angle_of_attack, dt)

        if not np.all(np.isfinite(f)):
            logger.warning("[AERO] non-finite force at r=%s v=%s, using zero", position, air_velocity)
            return np.zeros(3)
        return f

    def _compute_forces_stock(self, body, position, air_velocity, dt):
        altitude = body.altitude(position)
        if self.atmosphere.static_pressure(body, altitude) <= 0.0:
            return np.zeros(3)

        rho = self.atmosphere.density(body, altitude)
        speed = float(np.linalg.norm(air_velocity))
        area = DRAG_MULTIPLIER * self.mass
        return air_velocity * (-0.5 * rho * speed * self.stock_drag_coeff * area)

    def _compute_forces_cached(self, body, position, air_velocity, angle_of_attack, dt):
        altitude = body.altitude(position)
        rho = self.atmosphere.density(body, altitude)
        mach = self.atmosphere.mach_number(body, altitude, air_velocity)

        if not self.use_cache:
            return self.compute_forces_expensive(rho, mach, air_velocity, position,
                                                 angle_of_attack, dt)

        sample = self.cache.force(float(np.linalg.norm(air_velocity)), rho, angle_of_attack)
        return self.cache.to_world(sample, position, air_velocity)

    def compute_forces_expensive(self, rho: float, mach: float, air_velocity, up_hint,
                                 angle_of_attack: float, dt: float = 0.25) -> np.ndarray:
        """
        Sum the per-part forces with the vessel held at `angle_of_attack` in its
        current attitude, then reproject into the attitude predicted for
        `air_velocity` (right axis taken from `up_hint`).
        """
        basis = self.vessel.basis()
        speed = float(np.linalg.norm(air_velocity))
        fixed_velocity = (basis.forward * math.cos(-angle_of_attack)
                          + basis.up * math.sin(-angle_of_attack)) * speed

        total = self.evaluator.total_force(fixed_velocity, mach, rho)
        return reproject(total, basis, air_velocity, up_hint, angle_of_attack)


class AerodynamicModelRegistry:
    """
    Owns one VesselAerodynamicModel per tracked vessel and rebuilds it when it
    stops being valid. Extra keyword arguments go to every model constructor.
    """

    def __init__(self, factory=VesselAerodynamicModel, **model_kwargs):
        self.factory = factory
        self.model_kwargs = model_kwargs
        self._models = {}

    def model_for(self, vessel: Vessel) -> VesselAerodynamicModel:
        model = self._models.get(vessel)
        if model is None or not model.is_valid_for(vessel):
            if model is not None:
                logger.info("[AERO] rebuilding aerodynamic model for %s", vessel.name)
            model = self.factory(vessel, **self.model_kwargs)
            self._models[vessel] = model
        return model

    def invalidate(self, vessel: Vessel):
        model = self._models.get(vessel)
        if model is not None:
            model.invalidate()

    def forget(self, vessel: Vessel):
        self._models.pop(vessel, None)

    def __contains__(self, vessel):
        return vessel in self._models

    def __len__(self):
        return len(self._models)
