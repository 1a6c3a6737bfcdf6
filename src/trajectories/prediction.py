# prediction.py
# -------------------------------------------------------------
# Reference descent integrator driving the aerodynamic model.
#
# Each step:
#   v_air = v - omega x r                (rotating atmosphere, optional)
#   aoa   = profile.angle_of_attack_for_body(body, r, v_air)
#   F     = model.compute_forces(body, r, v_air, aoa, dt)
#   a     = g(r) + F / m
#   v    += a * dt ; r += v * dt         (semi-implicit Euler)
# Stops at ground contact or after max_steps.
# -------------------------------------------------------------

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

logger = logging.getLogger(__name__)


@dataclass
class Trajectory:
    times: np.ndarray           # (N,)
    positions: np.ndarray       # (N, 3) body-relative
    velocities: np.ndarray      # (N, 3)
    angles_of_attack: np.ndarray
    impact_position: Optional[np.ndarray] = None
    impact_time: Optional[float] = None

    @property
    def has_impact(self) -> bool:
        return self.impact_position is not None


def predict_descent(model, profile, body, position, velocity,
                    mass: Optional[float] = None, dt: float = 0.5, max_steps: int = 20000,
                    body_angular_velocity=None) -> Trajectory:
    r = np.array(position, dtype=float)
    v = np.array(velocity, dtype=float)
    m = float(mass if mass is not None else model.mass)
    if m <= 0.0:
        raise ValueError("vessel mass must be positive")
    omega = (np.zeros(3) if body_angular_velocity is None
             else np.asarray(body_angular_velocity, dtype=float))

    times = [0.0]
    rs = [r.copy()]
    vs = [v.copy()]
    aoas = []
    impact = None
    impact_t = None
    t = 0.0

    for _ in range(max_steps):
        v_air = v - np.cross(omega, r)
        aoa = profile.angle_of_attack_for_body(body, r, v_air)
        F = model.compute_forces(body, r, v_air, aoa, dt)

        v = v + (body.gravity(r) + F / m) * dt
        r_next = r + v * dt
        t += dt
        aoas.append(aoa)

        h0, h1 = body.altitude(r), body.altitude(r_next)
        if h1 <= 0.0:
            s = h0 / (h0 - h1) if h0 != h1 else 1.0
            impact = r + (r_next - r) * s
            impact_t = t - dt + dt * s
            times.append(impact_t)
            rs.append(impact.copy())
            vs.append(v.copy())
            break

        r = r_next
        times.append(t)
        rs.append(r.copy())
        vs.append(v.copy())

    if impact is None:
        logger.debug("[PRED] no impact after %d steps (h=%.0f m)", max_steps, body.altitude(r))
    else:
        logger.debug("[PRED] impact at t=%.1f s", impact_t)

    aoas.append(aoas[-1] if aoas else 0.0)
    return Trajectory(np.array(times), np.array(rs), np.array(vs), np.array(aoas),
                      impact, impact_t)
