# vectors.py
# -------------------------------------------------------------
# 3D vector helpers and orthonormal frame construction.
#
# Frames & conventions:
#   - All vectors are numpy float arrays of shape (3,), right-handed.
#   - A vessel frame is the triple (right, up, backward); forward = -backward.
#     right = up x backward, up = backward x right, backward = right x up.
#
# Degenerate input (zero-length or parallel vectors) never raises: the
# helpers return zero vectors so callers see a zero force for one step.
# -------------------------------------------------------------

import math
import numpy as np

from .constants import DEGENERATE_SQR_EPS


def vec3(x=0.0, y=0.0, z=0.0) -> np.ndarray:
    return np.array([x, y, z], dtype=float)


def as_vec3(v) -> np.ndarray:
    a = np.asarray(v, dtype=float)
    if a.shape != (3,):
        raise ValueError(f"expected a 3-vector, got shape {a.shape}")
    return a


def sqr_magnitude(v) -> float:
    v = np.asarray(v, dtype=float)
    return float(np.dot(v, v))


def normalized(v) -> np.ndarray:
    """Unit vector along v, or the zero vector if v has no length."""
    v = np.asarray(v, dtype=float)
    n = np.linalg.norm(v)
    if n <= 0.0 or not np.isfinite(n):
        return np.zeros(3)
    return v / n


def cross(a, b) -> np.ndarray:
    return np.cross(np.asarray(a, dtype=float), np.asarray(b, dtype=float))


class Basis:
    """
    Orthonormal (right, up, backward) frame.
    to_local() projects a world vector onto the axes, from_local() rebuilds it.
    """

    __slots__ = ("right", "up", "backward")

    def __init__(self, right, up, backward):
        self.right = np.asarray(right, dtype=float)
        self.up = np.asarray(up, dtype=float)
        self.backward = np.asarray(backward, dtype=float)

    @property
    def forward(self) -> np.ndarray:
        return -self.backward

    def matrix(self) -> np.ndarray:
        """Rows are the axes: local = M @ world."""
        return np.vstack([self.right, self.up, self.backward])

    def to_local(self, v) -> np.ndarray:
        return self.matrix() @ np.asarray(v, dtype=float)

    def from_local(self, c) -> np.ndarray:
        c = np.asarray(c, dtype=float)
        return self.right * c[0] + self.up * c[1] + self.backward * c[2]

    def is_degenerate(self) -> bool:
        return sqr_magnitude(self.right) == 0.0

    def __repr__(self):
        return f"Basis(right={self.right}, up={self.up}, backward={self.backward})"


def basis_from_forward_up(forward, up) -> Basis:
    """Vessel frame from its nose direction and an approximate up direction."""
    backward = -normalized(forward)
    right = normalized(cross(normalized(up), backward))
    up_ = normalized(cross(backward, right))
    return Basis(right, up_, backward)


def velocity_basis(velocity, up_hint, fallbacks=()) -> Basis:
    """
    Frame whose forward axis is the velocity direction.

    The right axis is up_hint x backward. If that is (nearly) zero, each
    fallback reference is tried in order. If every candidate degenerates all
    three axes are zero, so anything rebuilt from the frame is the zero vector.
    """
    forward = normalized(velocity)
    backward = -forward

    for ref in (up_hint, *fallbacks):
        candidate = cross(ref, backward)
        if sqr_magnitude(candidate) >= DEGENERATE_SQR_EPS:
            right = normalized(candidate)
            break
    else:
        return Basis(np.zeros(3), np.zeros(3), np.zeros(3))

    up = normalized(cross(backward, right))
    return Basis(right, up, backward)


def tilt_basis(basis: Basis, angle: float) -> Basis:
    """Pitch a frame nose-up by `angle` radians about its right axis."""
    forward = basis.forward * math.cos(angle) + basis.up * math.sin(angle)
    backward = -forward
    right = basis.right
    up = normalized(cross(backward, right))
    return Basis(right, up, backward)
