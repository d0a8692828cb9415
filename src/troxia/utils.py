"""
Utility functions and classes for the Troxia package.
"""

import warnings
from typing import Type
import numpy as np
from .config import config


class OrbitLimitWarning(UserWarning):
    """Issued when an orbit change is rejected for breaching a radius limit."""


def as_vector(value, name: str = "vector") -> np.ndarray:
    """
    Coerce input to a planar float vector of shape (2,).

    Non-finite components are allowed through; only the shape is checked.

    Raises
    ------
    ValueError
        If the input does not have exactly two components
    """
    vec = np.array(value, dtype=float).reshape(-1)
    if vec.shape != (2,):
        raise ValueError(f"{name} must have exactly 2 components, got shape {vec.shape}")
    return vec


def normalize(vec) -> np.ndarray:
    """
    Return the unit vector along ``vec``.

    Vectors shorter than config.SNAP_TO_ZERO_THRESHOLD, and vectors with a
    non-finite magnitude, normalize to the zero vector.
    """
    vec = np.asarray(vec, dtype=float)
    mag = np.linalg.norm(vec)
    if mag > config.SNAP_TO_ZERO_THRESHOLD:
        return vec / mag
    return np.zeros_like(vec)


def planar_angle(vec) -> float:
    """
    Angle of ``vec`` from the +x axis in degrees, wrapped to [0, 360).

    The unsigned angle to +x is measured first and mirrored to 360 - angle
    when the y component is negative. The zero vector has angle 0.
    """
    unit = normalize(vec)
    if not np.any(unit):
        return 0.0
    angle = float(np.degrees(np.arccos(np.clip(unit[0], -1.0, 1.0))))
    if unit[1] < 0:
        angle = 360.0 - angle
    return angle % 360.0


def is_finite_state(position, velocity) -> bool:
    """True if every position and velocity component is finite."""
    return bool(np.all(np.isfinite(position)) and np.all(np.isfinite(velocity)))


def validation_error(message: str, error_class: Type[Exception] = ValueError):
    """
    Raise error or warn based on config.STRICT_VALIDATION.

    This function provides consistent validation behavior across the package.
    When STRICT_VALIDATION is True (default), raises the specified exception.
    When False, issues a UserWarning instead.

    Parameters
    ----------
    message : str
        Validation error message
    error_class : Type[Exception], optional
        Exception class to raise if STRICT_VALIDATION is True.
        Default: ValueError

    Raises
    ------
    Exception (of type error_class)
        If config.STRICT_VALIDATION is True

    Warns
    -----
    UserWarning
        If config.STRICT_VALIDATION is False

    Examples
    --------
    >>> from troxia.utils import validation_error
    >>> from troxia import config
    >>> config.STRICT_VALIDATION = True
    >>> validation_error("Invalid value")  # Raises ValueError

    >>> config.STRICT_VALIDATION = False
    >>> validation_error("Invalid value")  # Issues warning
    """
    if config.STRICT_VALIDATION:
        raise error_class(message)
    else:
        warnings.warn(message, UserWarning, stacklevel=2)
