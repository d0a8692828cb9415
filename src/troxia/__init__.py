"""
Troxia: Planar Keplerian Orbits for Game Entities

A Python package for two-body orbital motion of game objects: Cartesian to
Keplerian fitting, Kepler-equation propagation, impulsive delta-v with
radius limits, and a fixed-step driver joining orbits to rigid bodies.
"""

# Configuration
from .config import config, temp_config

# Core classes
from .orbital_elements import OrbitalElements, OrbitalElements as OE, solve_kepler
from .orbital_body import OrbitalBody, OrbitalStats
from .orbital_rigidbody import OrbitalRigidbody, UpdateMethod, Contact, Collision
from .rigidbody import Rigidbody2D, ForceMode
from .simulation import Simulation, SimulationContext
from .events import EventChannel, GameEvent
from .bodies import CentralBody, OrbitLimits
from .utils import OrbitLimitWarning

# Commonly-used central bodies and limits
from .bodies import BARGE_PLANET, EARTH, MOON, MARS, DEFAULT_LIMITS

# Package metadata
__version__ = "0.1.0"

# Define what gets imported with "from troxia import *"
__all__ = [
    # Configuration
    "config",
    "temp_config",
    # Classes
    "OrbitalElements",
    "OrbitalBody",
    "OrbitalStats",
    "OrbitalRigidbody",
    "UpdateMethod",
    "Contact",
    "Collision",
    "Rigidbody2D",
    "ForceMode",
    "Simulation",
    "SimulationContext",
    "EventChannel",
    "GameEvent",
    "CentralBody",
    "OrbitLimits",
    "OrbitLimitWarning",
    # Functions
    "solve_kepler",
    # Abbreviations
    "OE",
    # Constants
    "BARGE_PLANET",
    "EARTH",
    "MOON",
    "MARS",
    "DEFAULT_LIMITS",
]
