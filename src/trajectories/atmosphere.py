# atmosphere.py
# -------------------------------------------------------------
# Celestial bodies and the atmosphere queries used by the force models.
#
# Two profiles are supported:
#   - "isa":         linear-lapse troposphere (0-11 km) with an isothermal
#                    continuation above, for Earth-like bodies.
#   - "exponential": p = p0 * exp(-h/H) at constant temperature, the usual
#                    approximation for other bodies.
# Above the body's atmosphere ceiling the pressure (and density) is zero.
#
# Usage:
#   from trajectories.atmosphere import CelestialBody, Atmosphere
#   atm = Atmosphere()
#   rho = atm.density(KERBIN, 12_000.0)
#   M   = atm.mach_number(KERBIN, 12_000.0, v_air)
# -------------------------------------------------------------

import math
from dataclasses import dataclass

import numpy as np

_R = 287.05287      # [J/(kg*K)] gas constant for air
_GAMMA = 1.4        # [-] specific heat ratio
_G0 = 9.80665       # [m/s^2]
_LAPSE = -0.0065    # [K/m] troposphere lapse rate
_H_TROP = 11000.0   # [m]


@dataclass(frozen=True)
class CelestialBody:
    """
    Numeric summary of a body: size, gravity and atmosphere profile.
    max_atmosphere_altitude is the top of the modelled atmosphere [m].
    """
    name: str
    radius: float                       # [m]
    gravitational_parameter: float      # [m^3/s^2]
    has_atmosphere: bool = True
    max_atmosphere_altitude: float = 70000.0
    surface_pressure: float = 101325.0  # [Pa]
    surface_temperature: float = 288.15 # [K]
    scale_height: float = 5000.0        # [m], exponential profile only
    profile: str = "exponential"

    def altitude(self, position) -> float:
        """Altitude above the datum for a body-relative position."""
        return float(np.linalg.norm(position)) - self.radius

    def altitude_fraction(self, position) -> float:
        """Altitude over atmosphere height; 0 when the body has no atmosphere."""
        if not self.has_atmosphere or self.max_atmosphere_altitude <= 0.0:
            return 0.0
        return self.altitude(position) / self.max_atmosphere_altitude

    def gravity(self, position) -> np.ndarray:
        """Gravitational acceleration vector at a body-relative position."""
        r = float(np.linalg.norm(position))
        if r <= 0.0:
            return np.zeros(3)
        return -self.gravitational_parameter * np.asarray(position, dtype=float) / (r ** 3)


KERBIN = CelestialBody(
    name="Kerbin",
    radius=600000.0,
    gravitational_parameter=3.5316e12,
    max_atmosphere_altitude=70000.0,
    scale_height=5000.0,
)

EARTH = CelestialBody(
    name="Earth",
    radius=6371000.0,
    gravitational_parameter=3.986004418e14,
    max_atmosphere_altitude=100000.0,
    profile="isa",
)

MUN = CelestialBody(
    name="Mun",
    radius=200000.0,
    gravitational_parameter=6.5138398e10,
    has_atmosphere=False,
    max_atmosphere_altitude=0.0,
    surface_pressure=0.0,
)


def _isa(h_m: float, p0: float, t0: float):
    """
    ISA troposphere with an isothermal layer above 11 km.
    Returns (T, p).
    """
    h = max(0.0, h_m)
    exponent = -_G0 / (_LAPSE * _R)
    if h <= _H_TROP:
        T = t0 + _LAPSE * h
        return T, p0 * (T / t0) ** exponent
    T11 = t0 + _LAPSE * _H_TROP
    p11 = p0 * (T11 / t0) ** exponent
    return T11, p11 * math.exp(-_G0 * (h - _H_TROP) / (_R * T11))


class Atmosphere:
    """Pressure, density, temperature and Mach number for any CelestialBody."""

    def state(self, body: CelestialBody, altitude: float) -> dict:
        """
        Returns a dict with:
          {"p": pressure [Pa], "T": temperature [K], "rho": density [kg/m^3], "a": speed of sound [m/s]}
        """
        if (not body.has_atmosphere or body.surface_pressure <= 0.0
                or altitude >= body.max_atmosphere_altitude):
            T = body.surface_temperature
            return {"p": 0.0, "T": T, "rho": 0.0, "a": math.sqrt(_GAMMA * _R * T)}

        if body.profile == "isa":
            T, p = _isa(altitude, body.surface_pressure, body.surface_temperature)
        else:
            T = body.surface_temperature
            p = body.surface_pressure * math.exp(-max(0.0, altitude) / body.scale_height)

        rho = p / (_R * T)
        return {"p": p, "T": T, "rho": rho, "a": math.sqrt(_GAMMA * _R * T)}

    def static_pressure(self, body: CelestialBody, altitude: float) -> float:
        return self.state(body, altitude)["p"]

    def density(self, body: CelestialBody, altitude: float) -> float:
        return self.state(body, altitude)["rho"]

    def speed_of_sound(self, body: CelestialBody, altitude: float) -> float:
        return self.state(body, altitude)["a"]

    def mach_number(self, body: CelestialBody, altitude: float, air_velocity) -> float:
        a = self.speed_of_sound(body, altitude)
        return float(np.linalg.norm(air_velocity)) / max(1e-3, a)
