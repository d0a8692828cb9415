"""
Central Body and Orbit Limit Definitions
========================================

Immutable per-instance configuration for orbital bodies: the central body
they orbit and the operational radius band they must stay inside.

Predefined bodies are provided for convenience. The solar system values are
taken from Vallado, Fundamentals of Astrodynamics, Fifth Edition, 2022,
Appendix D (units km, km^3/s^2). ``BARGE_PLANET`` uses game units tuned for
orbits between 2000 and 7000 units.

Examples
--------
>>> from troxia import CentralBody, OrbitLimits
>>> planet = CentralBody(mu=1.25e7, radius=1500.0, name='Planet')
>>> limits = OrbitLimits(minimum=2000.0, maximum=7000.0)
"""
import math
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class CentralBody:
    """
    Immutable parameters for the body being orbited.

    Attributes
    ----------
    mu : float
        Gravitational parameter [length^3/s^2]
    radius : float
        Surface radius [length]
    name : str, optional
        Body identifier
    """
    mu: float
    radius: float
    name: Optional[str] = None

    def __post_init__(self):
        if not math.isfinite(self.mu) or self.mu <= 0:
            raise ValueError(f"Gravitational parameter must be positive, got {self.mu}")
        if not math.isfinite(self.radius) or self.radius <= 0:
            raise ValueError(f"Radius must be positive, got {self.radius}")

    def circular_speed(self, radius: float) -> float:
        """Speed of a circular orbit at ``radius``."""
        return math.sqrt(self.mu / radius)


@dataclass(frozen=True)
class OrbitLimits:
    """
    Immutable operational radius band.

    Attributes
    ----------
    minimum : float
        Lowest allowed periapsis radius [length]
    maximum : float
        Highest allowed apoapsis radius [length]
    """
    minimum: float = 2000.0
    maximum: float = 7000.0

    def __post_init__(self):
        if not math.isfinite(self.minimum) or self.minimum <= 0:
            raise ValueError(f"Minimum orbital radius must be positive, got {self.minimum}")
        if not math.isfinite(self.maximum) or self.maximum <= self.minimum:
            raise ValueError(
                f"Maximum orbital radius ({self.maximum}) must exceed "
                f"minimum ({self.minimum})"
            )

    def contains(self, radius: float) -> bool:
        """True if ``radius`` lies inside [minimum, maximum]."""
        return self.minimum <= radius <= self.maximum


"""
Predefined central bodies
"""
BARGE_PLANET = CentralBody(
    mu=1.25e7,
    radius=1500.0,
    name='Planet'
)

EARTH = CentralBody(
    mu=3.986004415e5,
    radius=6378.1363,
    name='Earth'
)

MOON = CentralBody(
    mu=4.902799e3,
    radius=1738.0,
    name='Moon'
)

MARS = CentralBody(
    mu=4.305e4,
    radius=3397.2,
    name='Mars'
)

"""
Predefined limits
"""
DEFAULT_LIMITS = OrbitLimits(minimum=2000.0, maximum=7000.0)
