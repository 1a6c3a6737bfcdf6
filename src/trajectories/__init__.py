# trajectories
# Aerodynamic force evaluation for atmospheric trajectory prediction.

from .aero_cache import AeroForceCache, reproject
from .aero_model import AerodynamicModelRegistry, VesselAerodynamicModel
from .atmosphere import EARTH, KERBIN, MUN, Atmosphere, CelestialBody
from .descent_profile import DescentNode, DescentProfile
from .errors import AeroEvaluatorUnavailable, SettingsError, TrajectoriesError
from .prediction import Trajectory, predict_descent
from .settings import Settings
from .vessel import AeroModule, DragModule, Part, PartwiseEvaluator, Vessel, WingModule

__version__ = "0.1.0"

__all__ = [
    "AeroForceCache",
    "reproject",
    "AerodynamicModelRegistry",
    "VesselAerodynamicModel",
    "Atmosphere",
    "CelestialBody",
    "EARTH",
    "KERBIN",
    "MUN",
    "DescentNode",
    "DescentProfile",
    "AeroEvaluatorUnavailable",
    "SettingsError",
    "TrajectoriesError",
    "Trajectory",
    "predict_descent",
    "Settings",
    "AeroModule",
    "DragModule",
    "Part",
    "PartwiseEvaluator",
    "Vessel",
    "WingModule",
]
