'''Planar orbit core for game entities
Point-mass Rigidbody2D physics substrate'''

from enum import Enum
from typing import Optional
import numpy as np
from .utils import as_vector


class ForceMode(Enum):
    FORCE = 'force'         # continuous, integrated over the step [N]
    IMPULSE = 'impulse'     # instantaneous change of momentum [N*s]


class Rigidbody2D:
    """
    Minimal planar rigid body that stands in for a physics engine body.

    Dynamic bodies integrate accumulated forces with semi-implicit Euler.
    Kinematic bodies ignore forces and impulses; they move to the target
    given by ``move_position`` on the next step, or coast along their
    velocity when no target is set.

    Parameters
    ----------
    position : array-like
        Initial position [x, y]
    velocity : array-like, optional
        Initial velocity (default zero)
    mass : float, optional
        Mass (default 1.0)
    rotation : float, optional
        Orientation in degrees (default 0.0)
    is_kinematic : bool, optional
        Kinematic flag (default False)
    """

    def __init__(
        self,
        position,
        velocity=None,
        mass: float = 1.0,
        rotation: float = 0.0,
        is_kinematic: bool = False
    ):
        if not np.isfinite(mass) or mass <= 0:
            raise ValueError(f"Mass must be positive, got {mass}")
        self.position = as_vector(position, "position")
        self.velocity = (np.zeros(2) if velocity is None
                         else as_vector(velocity, "velocity"))
        self._mass = float(mass)
        self.rotation = float(rotation)
        self.is_kinematic = is_kinematic
        self.use_full_kinematic_contacts = False

        self._force = np.zeros(2)
        self._target: Optional[np.ndarray] = None

    @property
    def mass(self) -> float:
        return self._mass

    def add_force(self, force, mode: ForceMode = ForceMode.FORCE):
        """Accumulate a force, or apply an impulse immediately."""
        force = as_vector(force, "force")
        if self.is_kinematic:
            return
        if mode is ForceMode.IMPULSE:
            self.velocity = self.velocity + force / self._mass
        elif mode is ForceMode.FORCE:
            self._force = self._force + force
        else:
            raise ValueError(f"Unknown force mode {mode}")

    def move_position(self, position):
        """Move to ``position`` during the next step."""
        self._target = as_vector(position, "position")

    def step(self, dt: float):
        """Advance the body by one fixed step ``dt``."""
        if self.is_kinematic:
            if self._target is not None:
                self.position = self._target
            else:
                self.position = self.position + self.velocity * dt
        else:
            self.velocity = self.velocity + self._force / self._mass * dt
            if self._target is not None:
                self.position = self._target
            else:
                self.position = self.position + self.velocity * dt
        self._force = np.zeros(2)
        self._target = None

    def __repr__(self):
        kind = "kinematic" if self.is_kinematic else "dynamic"
        return (f"Rigidbody2D({kind}, mass={self._mass:.2f}, "
                f"position={self.position.tolist()}, velocity={self.velocity.tolist()})")
