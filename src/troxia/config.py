"""
Global Configuration for Troxia Package
=======================================

This module provides package-wide configuration settings that users can modify
to control numerical tolerances, limit hysteresis, collision tagging and
default sampling/plotting options.

Examples
--------
View current configuration:

>>> import troxia
>>> print(troxia.config)

Modify settings:

>>> troxia.config.KEPLER_MAX_ITER = 100  # Allow more Newton iterations
>>> troxia.config.DEFAULT_ORBIT_POINTS = 360  # Smoother orbit lines

Reset to defaults:

>>> troxia.config.reset()

Temporarily modify settings:

>>> with troxia.temp_config(LIMIT_DEAD_ZONE=0.05):
...     # Wider hysteresis band for this block only
...     body.check_max_radius()

Notes
-----
These settings affect package-wide behavior. Modifying them will impact
all subsequent operations until changed again or reset.
"""

from dataclasses import dataclass
from contextlib import contextmanager


@dataclass
class TroxiaConfig:
    """
    Global configuration for Troxia package.

    Attributes
    ----------
    EQUALITY_RTOL : float
        Relative tolerance for floating-point equality comparisons.
        Default: 1e-12
    EQUALITY_ATOL : float
        Absolute tolerance for floating-point equality comparisons.
        Default: 1e-14
    SNAP_TO_ZERO_THRESHOLD : float
        Vector magnitudes below this threshold are treated as zero when
        normalizing. Default: 1e-10
    SNAP_TO_CIRCULAR : float
        Eccentricity below this threshold treated as circular orbit (e=0).
        Default: 1e-8
    KEPLER_TOL : float
        Convergence tolerance on the eccentric anomaly update [rad].
        Default: 1e-12
    KEPLER_MAX_ITER : int
        Iteration cap for the Newton-Raphson Kepler solve. The solve always
        terminates after this many iterations. Default: 50
    LIMIT_DEAD_ZONE : float
        Fraction of the radius limit used as the hysteresis band before a
        latched limit warning is cleared. Default: 0.01
    DEFAULT_ORBIT_POINTS : int
        Number of orbit samples used when no count has been requested yet.
        Default: 100
    STRICT_VALIDATION : bool
        If True, validation failures raise exceptions.
        If False, validation failures issue warnings.
        Default: True
    PLAYER_TAG : str
        Actor tag identifying the player in collision contacts.
        Default: 'Player'
    PLANET_TAG : str
        Actor tag identifying the central body surface. Contact with it
        ends the mission. Default: 'Planet'
    DEFAULT_TIME_STEP : float
        Fixed simulation step [s]. Default: 0.02
    DEFAULT_ORBIT_COLOR : str
        Default color for orbit lines in plots. Default: 'red'
    DEFAULT_BODY_COLOR : str
        Default color for the central body in plots. Default: 'lightblue'
    """

    # Numerical tolerance for equality comparisons
    EQUALITY_RTOL: float = 1e-12
    EQUALITY_ATOL: float = 1e-14

    # Snapping behavior thresholds
    SNAP_TO_ZERO_THRESHOLD: float = 1e-10
    SNAP_TO_CIRCULAR: float = 1e-8

    # Kepler solver
    KEPLER_TOL: float = 1e-12
    KEPLER_MAX_ITER: int = 50

    # Orbit limits and sampling
    LIMIT_DEAD_ZONE: float = 0.01
    DEFAULT_ORBIT_POINTS: int = 100

    # Validation behavior
    STRICT_VALIDATION: bool = True

    # Simulation defaults
    PLAYER_TAG: str = 'Player'
    PLANET_TAG: str = 'Planet'
    DEFAULT_TIME_STEP: float = 0.02

    # Plotting defaults
    DEFAULT_ORBIT_COLOR: str = 'red'
    DEFAULT_BODY_COLOR: str = 'lightblue'

    def reset(self):
        """
        Reset all configuration values to package defaults.

        Examples
        --------
        >>> import troxia
        >>> troxia.config.KEPLER_MAX_ITER = 5  # Modify
        >>> troxia.config.reset()  # Back to defaults
        >>> troxia.config.KEPLER_MAX_ITER
        50
        """
        defaults = TroxiaConfig()
        for key in self.__dataclass_fields__:
            setattr(self, key, getattr(defaults, key))

    def __repr__(self):
        """Return formatted string showing all configuration values."""
        lines = ["TroxiaConfig:"]
        lines.append("  Numerical Tolerances:")
        lines.append(f"    EQUALITY_RTOL = {self.EQUALITY_RTOL}")
        lines.append(f"    EQUALITY_ATOL = {self.EQUALITY_ATOL}")
        lines.append("  Snapping Thresholds:")
        lines.append(f"    SNAP_TO_ZERO_THRESHOLD = {self.SNAP_TO_ZERO_THRESHOLD}")
        lines.append(f"    SNAP_TO_CIRCULAR = {self.SNAP_TO_CIRCULAR}")
        lines.append("  Kepler Solver:")
        lines.append(f"    KEPLER_TOL = {self.KEPLER_TOL}")
        lines.append(f"    KEPLER_MAX_ITER = {self.KEPLER_MAX_ITER}")
        lines.append("  Orbit Limits:")
        lines.append(f"    LIMIT_DEAD_ZONE = {self.LIMIT_DEAD_ZONE}")
        lines.append(f"    DEFAULT_ORBIT_POINTS = {self.DEFAULT_ORBIT_POINTS}")
        lines.append("  Behavior:")
        lines.append(f"    STRICT_VALIDATION = {self.STRICT_VALIDATION}")
        lines.append(f"    PLAYER_TAG = '{self.PLAYER_TAG}'")
        lines.append(f"    PLANET_TAG = '{self.PLANET_TAG}'")
        lines.append(f"    DEFAULT_TIME_STEP = {self.DEFAULT_TIME_STEP}")
        lines.append("  Plotting:")
        lines.append(f"    DEFAULT_ORBIT_COLOR = '{self.DEFAULT_ORBIT_COLOR}'")
        lines.append(f"    DEFAULT_BODY_COLOR = '{self.DEFAULT_BODY_COLOR}'")
        return "\n".join(lines)


# Global configuration instance
config = TroxiaConfig()


@contextmanager
def temp_config(**kwargs):
    """
    Context manager for temporarily modifying configuration values.

    Configuration is automatically restored when the context exits,
    even if an exception occurs.

    Parameters
    ----------
    **kwargs
        Configuration attributes to temporarily modify.

    Examples
    --------
    >>> import troxia
    >>> with troxia.temp_config(KEPLER_MAX_ITER=3, STRICT_VALIDATION=False):
    ...     pos, vel = orbit.to_cartesian(100.0)  # may come back as NaN
    >>> # Original config restored here
    >>> troxia.config.KEPLER_MAX_ITER
    50

    Raises
    ------
    AttributeError
        If an invalid configuration attribute is specified.
    """
    old_values = {}
    for key, value in kwargs.items():
        if not hasattr(config, key):
            raise AttributeError(
                f"TroxiaConfig has no attribute '{key}'. "
                f"Valid attributes: {list(config.__dataclass_fields__.keys())}"
            )
        old_values[key] = getattr(config, key)
        setattr(config, key, value)

    try:
        yield config
    finally:
        for key, value in old_values.items():
            setattr(config, key, value)
