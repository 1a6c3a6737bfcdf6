"""
tests/conftest.py - shared fixtures for the trajectories tests.
"""

import sys
from pathlib import Path

import numpy as np
import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from trajectories.vessel import DragModule, Part, Vessel, WingModule


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start=100.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class CountingSampler:
    """
    Stand-in for the expensive evaluator in probe-frame form.
    Returns (-k * speed^2 * (1 + aoa^2), c * speed^2 * aoa, 0).
    """

    def __init__(self, k=0.5, c=2.0):
        self.k = k
        self.c = c
        self.calls = []

    def __call__(self, rho, mach, velocity, up_hint, angle_of_attack):
        self.calls.append((rho, mach, tuple(velocity), angle_of_attack))
        s2 = float(np.dot(velocity, velocity))
        return np.array([-self.k * s2 * (1.0 + angle_of_attack ** 2),
                         self.c * s2 * angle_of_attack,
                         0.0]) * rho


class ScriptedEvaluator:
    """Evaluator whose force magnitude follows a list of values (last one repeats)."""

    def __init__(self, magnitudes):
        self.magnitudes = list(magnitudes)
        self.calls = 0

    def total_force(self, air_velocity, mach, rho):
        i = min(self.calls, len(self.magnitudes) - 1)
        self.calls += 1
        v = np.asarray(air_velocity, dtype=float)
        n = np.linalg.norm(v)
        if n == 0.0:
            return np.zeros(3)
        return -v / n * self.magnitudes[i]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sampler():
    return CountingSampler()


@pytest.fixture
def winged_vessel():
    capsule = Part("capsule", mass=2.0, max_drag=0.3,
                   modules=[DragModule(cd=0.5, area=1.0)])
    wing = Part("wing", mass=1.0, max_drag=0.6,
                modules=[WingModule(area=3.0, normal=(0.0, 0.0, 1.0))])
    return Vessel("winged", parts=[capsule, wing],
                  forward=np.array([1.0, 0.0, 0.0]), up=np.array([0.0, 0.0, 1.0]))


@pytest.fixture
def bare_vessel():
    """Vessel without per-part aero modules (stock fallback)."""
    return Vessel("bare", parts=[Part("pod", mass=1.0, max_drag=0.2),
                                 Part("tank", mass=3.0, max_drag=0.1)])
