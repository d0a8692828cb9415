'''Planar orbit core for game entities
OrbitalRigidbody class definition'''

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence
import numpy as np
from .config import config
from .events import GameEvent
from .orbital_body import OrbitalBody
from .rigidbody import ForceMode, Rigidbody2D
from .utils import as_vector, is_finite_state, normalize

logger = logging.getLogger(__name__)


class UpdateMethod(Enum):
    FORCES = 'forces'           # physics engine integrates, gravity applied as force
    FOLLOW_ORBIT = 'follow'     # rigid body slaved to the analytic orbit


@dataclass(frozen=True)
class Contact:
    """
    One contact point of a collision.

    Attributes
    ----------
    normal_impulse : float
        Impulse magnitude along the contact normal
    normal : tuple of float
        Contact normal (x, y)
    tag : str
        Tag of the other actor in the contact
    """
    normal_impulse: float
    normal: tuple
    tag: str = ''


@dataclass(frozen=True)
class Collision:
    """
    A collision reported by the physics substrate.

    Attributes
    ----------
    contacts : sequence of Contact
    tag : str
        Tag of the object collided with
    """
    contacts: Sequence[Contact]
    tag: str = ''


class OrbitalRigidbody:
    """
    Per-step driver joining an OrbitalBody to a physics rigid body.

    Parameters
    ----------
    body : OrbitalBody
        Orbital model to drive (not owned)
    rigidbody : Rigidbody2D
        Physics substrate body (not owned)
    method : UpdateMethod or str, optional
        Integration mode, fixed for the lifetime of the driver
        (default FOLLOW_ORBIT)
    player_multiplier : float, optional
        Weight of contacts with the player (default 2.0)
    max_contacts : int, optional
        Maximum number of contacts read per collision (default 5)
    """

    def __init__(
        self,
        body: OrbitalBody,
        rigidbody: Rigidbody2D,
        method=UpdateMethod.FOLLOW_ORBIT,
        player_multiplier: float = 2.0,
        max_contacts: int = 5
    ):
        if not isinstance(body, OrbitalBody):
            raise TypeError(f"body must be OrbitalBody, got {type(body)}")
        if max_contacts < 1:
            raise ValueError(f"max_contacts must be at least 1, got {max_contacts}")

        self._body = body
        self._rb = rigidbody
        self._method = self._parse_method(method)
        self._player_multiplier = float(player_multiplier)
        self._max_contacts = int(max_contacts)

        self._rb.is_kinematic = self._method is not UpdateMethod.FORCES
        if self._rb.is_kinematic:
            self._rb.use_full_kinematic_contacts = True

    # ========== STEP ==========
    def start(self, time):
        """Place the rigid body on the orbit at ``time``."""
        self._body.recalculate(time)
        self._follow_orbit()

    def fixed_update(self, time):
        """Advance one simulation tick at ``time``."""
        if self._method is UpdateMethod.FOLLOW_ORBIT:
            self._body.recalculate(time)
            self._follow_orbit()
        else:
            self._use_forces(time)

    def _use_forces(self, time):
        # physics is ground truth: refit from the rigid body first
        self._body.set_orbit(time, self._rb.position, self._rb.velocity)
        self._body.recalculate(time)
        if is_finite_state(self._body.position, self._body.velocity):
            gravity = self._body.gravitational_force
            self._rb.rotation = self._body.prograde_rotation
        else:
            # degenerate fit (e.g. at rest), pull from where physics has us
            logger.debug("Non-finite orbital state for %r, gravity from rigid body", self._body)
            gravity = self._body.gravity_at(self._rb.position)
        self._rb.add_force(gravity * self._rb.mass, ForceMode.FORCE)

    def _follow_orbit(self):
        position = self._body.position
        velocity = self._body.velocity
        # skip the sync for this tick rather than push NaN into physics
        if not is_finite_state(position, velocity):
            logger.debug("Non-finite orbital state for %r, skipping sync", self._body)
            return

        self._rb.velocity = velocity
        self._rb.move_position(position)
        self._rb.rotation = self._body.prograde_rotation

    # ========== COLLISIONS ==========
    def get_delta_v(self, collision: Collision) -> np.ndarray:
        """
        Velocity change (or impulse, in FORCES mode) caused by a collision.

        Each contact contributes impulse * normal. Player contacts are
        weighted by player_multiplier in FOLLOW_ORBIT mode and by
        player_multiplier - 1 in FORCES mode; other contacts count once in
        FOLLOW_ORBIT mode and are ignored in FORCES mode. In FOLLOW_ORBIT
        mode the sum is divided by the rigid body mass.
        """
        follow = self._method is UpdateMethod.FOLLOW_ORBIT
        multiplier = self._player_multiplier if follow else self._player_multiplier - 1

        total = np.zeros(2)
        for contact in list(collision.contacts)[:self._max_contacts]:
            if contact.tag == config.PLAYER_TAG:
                weight = multiplier
            elif follow:
                weight = 1.0
            else:
                continue
            total += weight * contact.normal_impulse * as_vector(contact.normal, "normal")

        return total / (self._rb.mass if follow else 1.0)

    def add_force(self, force, time):
        """
        Push the body with ``force``.

        FOLLOW_ORBIT treats the force as a delta-v with rollback on limit
        breach. FORCES applies it as an impulse; while a radius limit is
        breached, a push further toward the breach is reversed instead.
        """
        force = as_vector(force, "force")
        if self._method is UpdateMethod.FORCES:
            max_check = self._body.check_max_radius()
            min_check = self._body.check_min_radius()

            if min_check and max_check:
                self._rb.add_force(force, ForceMode.IMPULSE)
            else:
                force_dot = np.dot(normalize(force), normalize(self._rb.velocity))
                force_modifier = 1

                if not max_check and force_dot > 0:
                    force_modifier = -1
                if not min_check and force_dot < 0:
                    force_modifier = -1

                self._rb.add_force(force * force_modifier, ForceMode.IMPULSE)
        else:
            self._body.add_delta_v(time, force)

    def add_enemy_force(self, force: float, time):
        """Push along the current direction of motion with magnitude ``force``."""
        self.add_force(force * normalize(self._body.velocity), time)

    def on_collision_enter(self, collision: Collision, time):
        """Handle the first contact with an object."""
        if collision.tag == config.PLANET_TAG:
            logger.warning("%r hit the central body surface at t=%.3f", self._body, time)
            self._body.events.emit(GameEvent.MISSION_FAILED, body=self._body, time=time)

        self.add_force(self.get_delta_v(collision), time)

    def on_collision_stay(self, collision: Collision, time):
        """Handle continued contact with an object."""
        self.add_force(self.get_delta_v(collision), time)

    # ========== PROPERTY ACCESS ==========
    @property
    def method(self) -> UpdateMethod:
        return self._method

    @property
    def body(self) -> OrbitalBody:
        return self._body

    @property
    def rigidbody(self) -> Rigidbody2D:
        return self._rb

    @property
    def player_multiplier(self) -> float:
        return self._player_multiplier

    @property
    def max_contacts(self) -> int:
        return self._max_contacts

    # ========== STATIC METHODS ==========
    @staticmethod
    def _parse_method(method):
        """Convert string or enum to UpdateMethod enum"""
        if isinstance(method, UpdateMethod):
            return method
        elif isinstance(method, str):
            type_map = {
                'forces': UpdateMethod.FORCES,
                'follow': UpdateMethod.FOLLOW_ORBIT,
                'follow_orbit': UpdateMethod.FOLLOW_ORBIT,
            }
            if method in type_map:
                return type_map[method]
            else:
                raise ValueError(f"Unknown update method '{method}'. "
                                 f"Use: {list(type_map.keys())}")
        else:
            raise TypeError(f"method must be UpdateMethod or str, "
                            f"got {type(method)}")

    def __repr__(self):
        return f"OrbitalRigidbody({self._body!r}, method={self._method.value})"
