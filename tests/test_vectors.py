"""
tests/test_vectors.py - vector helpers and frame construction.
"""

import math

import numpy as np
import pytest

from trajectories.vectors import (
    Basis,
    as_vec3,
    basis_from_forward_up,
    normalized,
    tilt_basis,
    vec3,
    velocity_basis,
)


def assert_orthonormal(b: Basis):
    m = b.matrix()
    np.testing.assert_allclose(m @ m.T, np.eye(3), atol=1e-12)
    # right-handed: right x up = backward
    np.testing.assert_allclose(np.cross(b.right, b.up), b.backward, atol=1e-12)


class TestBasics:
    def test_normalized_zero_is_zero(self):
        np.testing.assert_array_equal(normalized(vec3()), np.zeros(3))

    def test_normalized_unit_length(self):
        assert np.linalg.norm(normalized(vec3(3.0, 4.0, 12.0))) == pytest.approx(1.0)

    def test_as_vec3_rejects_bad_shape(self):
        with pytest.raises(ValueError):
            as_vec3([1.0, 2.0])


class TestFrames:
    def test_vessel_basis_axes(self):
        b = basis_from_forward_up(vec3(1, 0, 0), vec3(0, 0, 1))
        assert_orthonormal(b)
        np.testing.assert_allclose(b.forward, [1, 0, 0])
        np.testing.assert_allclose(b.up, [0, 0, 1])
        np.testing.assert_allclose(b.right, [0, -1, 0])

    def test_local_roundtrip(self):
        b = basis_from_forward_up(vec3(1, 1, 0), vec3(0, 0.2, 1))
        f = vec3(3.0, -2.0, 7.5)
        np.testing.assert_allclose(b.from_local(b.to_local(f)), f, atol=1e-12)

    def test_velocity_basis_uses_hint(self):
        b = velocity_basis(vec3(10, 0, 0), vec3(0, 1, 0))
        assert_orthonormal(b)
        np.testing.assert_allclose(b.forward, [1, 0, 0])
        np.testing.assert_allclose(b.up, [0, 1, 0])

    def test_velocity_basis_fallback_when_hint_parallel(self):
        b = velocity_basis(vec3(0, 5, 0), vec3(0, 1, 0), fallbacks=(vec3(0, 1, 0), vec3(0, 0, 1)))
        assert_orthonormal(b)
        np.testing.assert_allclose(b.forward, [0, 1, 0])
        np.testing.assert_allclose(b.up, [0, 0, 1], atol=1e-12)

    def test_velocity_basis_all_degenerate_gives_zero_axes(self):
        b = velocity_basis(vec3(1, 0, 0), vec3(1, 0, 0), fallbacks=(vec3(-2, 0, 0),))
        assert b.is_degenerate()
        np.testing.assert_array_equal(b.right, np.zeros(3))
        np.testing.assert_array_equal(b.up, np.zeros(3))
        np.testing.assert_array_equal(b.backward, np.zeros(3))

    def test_all_degenerate_basis_rebuilds_zero_after_tilt(self):
        b = velocity_basis(vec3(1, 0, 0), vec3(1, 0, 0), fallbacks=(vec3(-2, 0, 0),))
        tilted = tilt_basis(b, 0.3)
        np.testing.assert_array_equal(tilted.from_local(vec3(1, 2, 3)), np.zeros(3))

    def test_zero_velocity_basis_is_zero(self):
        b = velocity_basis(vec3(), vec3(0, 1, 0))
        np.testing.assert_array_equal(b.from_local(vec3(1, 2, 3)), np.zeros(3))

    def test_tilt_basis(self):
        b = tilt_basis(velocity_basis(vec3(1, 0, 0), vec3(0, 1, 0)), math.radians(30))
        assert_orthonormal(b)
        np.testing.assert_allclose(b.forward, [math.cos(math.radians(30)), math.sin(math.radians(30)), 0.0])
