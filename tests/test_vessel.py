"""
tests/test_vessel.py - per-part modules, prediction hooks and the partwise evaluator.
"""

import math

import numpy as np
import pytest

from trajectories.errors import AeroEvaluatorUnavailable
from trajectories.vessel import DragModule, Part, PartwiseEvaluator, Vessel, WingModule


def test_drag_module_opposes_velocity():
    m = DragModule(cd=0.8, area=2.0)
    v = np.array([30.0, -40.0, 0.0])
    with m.prediction_overrides(1.0):
        f = m.compute_force(v, 0.2, 1.0)
    np.testing.assert_allclose(f, v * (-0.5 * 1.0 * 50.0 * 0.8 * 2.0))


def test_wave_drag_peaks_at_mach_one():
    m = DragModule(cd=0.5, area=1.0, wave_drag_gain=1.0)
    v = np.array([300.0, 0.0, 0.0])
    with m.prediction_overrides(1.0):
        subsonic = np.linalg.norm(m.compute_force(v, 0.3, 1.0))
        transonic = np.linalg.norm(m.compute_force(v, 1.0, 1.0))
    assert transonic == pytest.approx(2.0 * 0.5 * 1.0 * 300.0 ** 2 * 0.5 * 1.0)
    assert transonic > subsonic


def test_wing_lift_perpendicular_to_velocity():
    w = WingModule(area=2.0, normal=(0.0, 0.0, 1.0), cd0=0.0, k_induced=0.0)
    aoa = math.radians(5)
    v = 100.0 * np.array([math.cos(aoa), 0.0, -math.sin(aoa)])
    with w.prediction_overrides(1.2):
        f = w.compute_force(v, 0.3, 1.2)
    assert np.dot(f, v) == pytest.approx(0.0, abs=1e-9)
    assert f[2] > 0.0
    assert np.linalg.norm(f) == pytest.approx(0.5 * 1.2 * 100.0 ** 2 * 2.0 * 2 * math.pi * aoa)


def test_prediction_overrides_ignore_live_state_and_restore():
    w = WingModule(area=1.0, normal=(0.0, 0.0, 1.0), max_force=1.0, stall=0.8, rho=0.01)
    v = np.array([200.0, 0.0, -20.0])

    live = w.compute_force(v, 0.5, 1.0)
    assert w.overloaded

    w.overloaded = False
    with w.prediction_overrides(1.0):
        assert w.effective_stall == 0.0
        assert w.effective_rho == 1.0
        predicted = w.compute_force(v, 0.5, 1.0)
    assert not w.overloaded
    assert np.linalg.norm(predicted) > np.linalg.norm(live)

    assert w.effective_stall == 0.8
    assert w.effective_rho == 0.01


def test_live_overload_is_flagged():
    m = DragModule(cd=1.0, area=1.0, max_force=10.0)
    m.compute_force(np.array([100.0, 0.0, 0.0]), 0.3, 1.0)
    assert m.overloaded


def test_evaluator_requires_modules():
    with pytest.raises(AeroEvaluatorUnavailable):
        PartwiseEvaluator.for_vessel(Vessel("bare", parts=[Part("pod", 1.0)]))


def test_evaluator_sums_parts_with_rigidbody():
    a = Part("a", 1.0, modules=[DragModule(cd=1.0, area=1.0)])
    b = Part("b", 1.0, modules=[DragModule(cd=1.0, area=2.0)])
    ghost = Part("ghost", 1.0, modules=[DragModule(cd=1.0, area=100.0)], has_rigidbody=False)
    ev = PartwiseEvaluator.for_vessel(Vessel("v", parts=[a, b, ghost]))

    v = np.array([10.0, 0.0, 0.0])
    f = ev.total_force(v, 0.1, 2.0)
    np.testing.assert_allclose(f, [-0.5 * 2.0 * 10.0 * 10.0 * 3.0, 0.0, 0.0])
    assert ev.calls == 1


def test_evaluator_ignores_live_stall_and_density():
    def vessel_with(**live):
        wing = Part("wing", 1.0, modules=[WingModule(area=2.0, normal=(0.0, 0.0, 1.0), **live)])
        return PartwiseEvaluator.for_vessel(Vessel("v", parts=[wing]))

    v = np.array([150.0, 0.0, -15.0])
    calm = vessel_with().total_force(v, 0.5, 0.8)
    stalled = vessel_with(stall=0.9, rho=0.05).total_force(v, 0.5, 0.8)
    np.testing.assert_allclose(stalled, calm)


def test_vessel_mass_and_identity():
    v1 = Vessel("x", parts=[Part("a", 1.5), Part("b", 2.5)])
    v2 = Vessel("x", parts=[Part("a", 1.5), Part("b", 2.5)])
    assert v1.total_mass == pytest.approx(4.0)
    assert v1 != v2
    assert len({v1, v2}) == 2
