# main.py
# High-level descent prediction demo:
#  - Build a small winged vessel (capsule + two partly stalled wings)
#  - Load settings (descent profile, auto-update flag)
#  - Predict a descent from the top of Kerbin's atmosphere
#  - Compare the cached model against the stock drag model

import argparse
import logging
import math
import sys
import time
from pathlib import Path

import numpy as np

sys.path.insert(0, str(Path(__file__).parent / "src"))

from trajectories.aero_model import VesselAerodynamicModel
from trajectories.atmosphere import KERBIN, Atmosphere
from trajectories.descent_profile import DescentProfile
from trajectories.prediction import predict_descent
from trajectories.settings import Settings
from trajectories.vessel import DragModule, Part, Vessel, WingModule


def build_vessel() -> Vessel:
    capsule = Part("capsule", mass=1.5, max_drag=0.2,
                   modules=[DragModule(cd=0.6, area=1.2, wave_drag_gain=0.8)])
    left = Part("wing.l", mass=0.3, max_drag=0.2,
                modules=[WingModule(area=2.5, normal=(0.0, 0.0, 1.0), stall=0.4)])
    right = Part("wing.r", mass=0.3, max_drag=0.2,
                 modules=[WingModule(area=2.5, normal=(0.0, 0.0, 1.0), stall=0.4)])
    return Vessel("demo", parts=[capsule, left, right],
                  forward=np.array([1.0, 0.0, 0.0]), up=np.array([0.0, 0.0, 1.0]))


def summarize(label, traj):
    if traj.has_impact:
        lon = math.degrees(math.atan2(traj.impact_position[1], traj.impact_position[0]))
        print(f"[{label}] impact after {traj.impact_time:.1f} s | longitude {lon:.3f} deg | "
              f"steps {len(traj.times) - 1}")
    else:
        h = KERBIN.altitude(traj.positions[-1])
        print(f"[{label}] no impact | final altitude {h:.0f} m | steps {len(traj.times) - 1}")


def main(argv=None):
    ap = argparse.ArgumentParser(description="Predict a descent through Kerbin's atmosphere")
    ap.add_argument("--settings", type=Path, default=None, help="settings JSON file")
    ap.add_argument("--dt", type=float, default=0.5)
    ap.add_argument("--entry-aoa", type=float, default=20.0, help="entry angle of attack [deg]")
    ap.add_argument("-v", "--verbose", action="store_true")
    args = ap.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(levelname)s %(name)s: %(message)s")

    if args.settings is not None:
        settings = Settings.load(args.settings)
        profile = settings.descent_profile()
    else:
        settings = Settings()
        profile = DescentProfile()
        profile.set_node("entry", math.radians(args.entry_aoa))
        profile.set_node("high", math.radians(args.entry_aoa * 0.5))

    vessel = build_vessel()
    atm = Atmosphere()

    # Start at the edge of the atmosphere on a shallow, suborbital path
    r0 = np.array([KERBIN.radius + 69000.0, 0.0, 0.0])
    v0 = np.array([-120.0, 2200.0, 0.0])

    cached = VesselAerodynamicModel(vessel, atm, auto_update=settings.auto_update_aerodynamic_model)
    stock = VesselAerodynamicModel(vessel, atm, evaluator_factory=None)

    print(f"[INIT] vessel '{vessel.name}' | mass {cached.mass:.2f} t | "
          f"stock Cd {cached.stock_drag_coeff:.3f}")

    t0 = time.perf_counter()
    traj = predict_descent(cached, profile, KERBIN, r0, v0, dt=args.dt)
    t1 = time.perf_counter()
    summarize("CACHED", traj)
    print(f"[CACHE] {cached.cache.filled_count} cells filled | "
          f"{cached.evaluator.calls} evaluator calls | {1000*(t1-t0):.0f} ms")

    traj_stock = predict_descent(stock, profile, KERBIN, r0, v0, dt=args.dt)
    summarize("STOCK", traj_stock)
    return 0


if __name__ == "__main__":
    sys.exit(main())
