# constants.py
# Host constants and default tuning for the aerodynamic force evaluator.
#
# Units: SI (m, kg, s, rad). Masses are in host units (tonnes) because the
# stock drag area is derived from them through DRAG_MULTIPLIER.

import math

# Host aerodynamics
DRAG_MULTIPLIER = 0.008        # m^2 per tonne, stock cross-sectional area factor
SOUND_SPEED_APPROX = 300.0     # m/s, used only to label cache cells with a Mach number

# Force cache grid
MAX_CACHED_SPEED = 3000.0                  # m/s
MAX_CACHED_AOA = math.radians(45.0)        # rad, grid spans [-MAX, +MAX]
VELOCITY_RESOLUTION = 128
ANGLE_RESOLUTION = 32

# Readiness probe (rho, mach, speed) and minimum squared drag for a live evaluator
REFERENCE_PROBE_RHO = 10.0
REFERENCE_PROBE_MACH = 2.0
REFERENCE_PROBE_SPEED = 3000.0
MIN_READY_SQR_DRAG = 1.0

# Drift detection
DRIFT_RATIO = 1.2              # strict: ratio must exceed this
UPDATE_COOLDOWN_S = 10.0       # monotonic seconds between drift checks

# Frame construction
DEGENERATE_SQR_EPS = 1e-3
