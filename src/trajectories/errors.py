# errors.py
# Exceptions raised by the trajectories package.


class TrajectoriesError(Exception):
    """Base class for all package errors."""


class AeroEvaluatorUnavailable(TrajectoriesError):
    """
    The per-part aerodynamic evaluator cannot be used (missing or incompatible).
    Model construction catches this and falls back to the analytic drag model.
    """


class SettingsError(TrajectoriesError):
    """Settings file exists but cannot be decoded."""
