# vessel.py
# -------------------------------------------------------------
# Minimal host object model consumed by the aerodynamic models:
#   - Part:   mass, stock drag coefficient, attached aero modules
#   - Vessel: parts + current physical orientation (world frame)
#   - AeroModule: per-part force contribution with explicit prediction hooks
#   - PartwiseEvaluator: the expensive model, sums every part's contribution
#
# Prediction hooks:
#   Real per-part models keep state from the previous physics frame (density,
#   stall fraction, structural load limits). Prediction must not depend on or
#   disturb that state, so every module exposes override_density(),
#   override_stall() and suppress_failures(); prediction_overrides(rho) applies
#   them for the duration of one evaluation and restores them afterwards.
#   Wings are assumed never to stall while predicting.
# -------------------------------------------------------------

import math
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np

from .errors import AeroEvaluatorUnavailable
from .vectors import Basis, as_vec3, basis_from_forward_up, normalized, vec3


class AeroModule:
    """Base class for per-part aerodynamic contributions."""

    def __init__(self, max_force: float = math.inf, rho: float = 1.225, stall: float = 0.0):
        self.max_force = max_force
        self.rho = rho            # density seen during the last live frame
        self.stall = stall        # stall fraction carried between live frames
        self.overloaded = False
        self._density_override: Optional[float] = None
        self._stall_override: Optional[float] = None
        self._failures_suppressed = False

    # --- hooks ---
    def override_density(self, rho: Optional[float]):
        self._density_override = rho

    def override_stall(self, stall: Optional[float]):
        self._stall_override = stall

    def suppress_failures(self, suppressed: bool = True):
        self._failures_suppressed = suppressed

    def restore(self):
        self._density_override = None
        self._stall_override = None
        self._failures_suppressed = False

    @contextmanager
    def prediction_overrides(self, rho: float):
        self.override_density(rho)
        self.override_stall(0.0)
        self.suppress_failures(True)
        try:
            yield self
        finally:
            self.restore()

    # --- effective state ---
    @property
    def effective_rho(self) -> float:
        return self.rho if self._density_override is None else self._density_override

    @property
    def effective_stall(self) -> float:
        return self.stall if self._stall_override is None else self._stall_override

    def _check_load(self, force: np.ndarray) -> np.ndarray:
        if not self._failures_suppressed and np.linalg.norm(force) > self.max_force:
            self.overloaded = True
        return force

    def compute_force(self, air_velocity, mach: float, rho: float) -> np.ndarray:
        raise NotImplementedError


class DragModule(AeroModule):
    """
    Body drag: F = -0.5 * rho * |v| * v * Cd * A.
    A transonic bump scales Cd by up to `wave_drag_gain` around Mach 1.
    """

    def __init__(self, cd: float, area: float, wave_drag_gain: float = 0.0, **kw):
        super().__init__(**kw)
        self.cd = cd
        self.area = area
        self.wave_drag_gain = wave_drag_gain

    def compute_force(self, air_velocity, mach, rho):
        v = np.asarray(air_velocity, dtype=float)
        speed = float(np.linalg.norm(v))
        cd = self.cd * (1.0 + self.wave_drag_gain * math.exp(-((mach - 1.0) / 0.3) ** 2))
        f = v * (-0.5 * self.effective_rho * speed * cd * self.area)
        return self._check_load(f)


class WingModule(AeroModule):
    """
    Flat lifting surface with unit normal `normal` (world frame, attached to
    the vessel's current orientation).

      aoa  = asin(normal . v_hat)
      CL   = cl_alpha * aoa * (1 - stall)
      CD   = cd0 + k * CL^2
      lift acts along -(normal component perpendicular to v)
    """

    def __init__(self, area: float, normal, cl_alpha: float = 2.0 * math.pi,
                 cd0: float = 0.01, k_induced: float = 0.1, **kw):
        super().__init__(**kw)
        self.area = area
        self.normal = normalized(normal)
        self.cl_alpha = cl_alpha
        self.cd0 = cd0
        self.k_induced = k_induced

    def compute_force(self, air_velocity, mach, rho):
        v = np.asarray(air_velocity, dtype=float)
        speed = float(np.linalg.norm(v))
        if speed <= 0.0:
            return np.zeros(3)
        v_hat = v / speed
        perp = float(np.dot(self.normal, v_hat))
        aoa = math.asin(max(-1.0, min(1.0, perp)))

        cl = self.cl_alpha * aoa * (1.0 - self.effective_stall)
        cd = self.cd0 + self.k_induced * cl * cl
        qS = 0.5 * self.effective_rho * speed * speed * self.area

        lift_dir = normalized(self.normal - perp * v_hat)
        f = -qS * cl * lift_dir - qS * cd * v_hat
        return self._check_load(f)


@dataclass(eq=False)
class Part:
    name: str
    mass: float                       # [t]
    max_drag: float = 0.2             # stock drag coefficient
    modules: List[AeroModule] = field(default_factory=list)
    has_rigidbody: bool = True


@dataclass(eq=False)
class Vessel:
    """
    A vessel and its current physical orientation (world frame).
    Identity semantics: two Vessel objects are the same vessel only if they
    are the same object.
    """
    name: str
    parts: List[Part] = field(default_factory=list)
    forward: np.ndarray = field(default_factory=lambda: vec3(1.0, 0.0, 0.0))
    up: np.ndarray = field(default_factory=lambda: vec3(0.0, 0.0, 1.0))

    def basis(self) -> Basis:
        return basis_from_forward_up(self.forward, self.up)

    def set_orientation(self, forward, up):
        self.forward = as_vec3(forward)
        self.up = as_vec3(up)

    @property
    def total_mass(self) -> float:
        return float(sum(p.mass for p in self.parts))


class PartwiseEvaluator:
    """
    Expensive aerodynamic model: sums every part's module forces.
    Parts without a rigid body do not take part in the simulation.
    """

    def __init__(self, vessel: Vessel):
        self.vessel = vessel
        self.calls = 0

    @classmethod
    def for_vessel(cls, vessel: Vessel) -> "PartwiseEvaluator":
        """Factory used by the model selector; raises when no part carries aero modules."""
        if not any(p.modules for p in vessel.parts):
            raise AeroEvaluatorUnavailable(
                f"vessel '{vessel.name}' has no per-part aerodynamic modules")
        return cls(vessel)

    def total_force(self, air_velocity, mach: float, rho: float) -> np.ndarray:
        self.calls += 1
        total = np.zeros(3)
        for part in self.vessel.parts:
            if not part.has_rigidbody:
                continue
            for module in part.modules:
                with module.prediction_overrides(rho):
                    total += module.compute_force(air_velocity, mach, rho)
        return total
