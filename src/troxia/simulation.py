"""
Fixed-step simulation loop for orbital entities.

Replaces engine-driven component callbacks with an explicit loop. At every
tick each registered entity runs, in order:

    1. FIXED UPDATE -- OrbitalRigidbody.fixed_update(time), which either
                       slaves the rigid body to its orbit or refits the
                       orbit from the rigid body and applies gravity.
    2. PHYSICS      -- the rigid body substrate advances by dt.
    3. COLLISIONS   -- collisions reported during the tick are dispatched
                       as enter (new tag) or stay (tag seen last tick).
    4. TELEMETRY    -- state and elements are recorded for post-run analysis.

Shared configuration is passed explicitly through a SimulationContext; there
is no global game manager.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional
import numpy as np
import pandas as pd

from .bodies import CentralBody, OrbitLimits, BARGE_PLANET, DEFAULT_LIMITS
from .config import config
from .events import EventChannel, GameEvent
from .orbital_body import OrbitalBody
from .orbital_rigidbody import Collision, OrbitalRigidbody, UpdateMethod
from .rigidbody import Rigidbody2D

logger = logging.getLogger(__name__)


@dataclass
class SimulationContext:
    """
    Configuration shared by every entity of a simulation.

    Attributes
    ----------
    central_body : CentralBody
        Body being orbited
    limits : OrbitLimits
        Radius limits applied to spawned bodies
    events : EventChannel
        Channel for warnings, mission failure and state notifications
    dt : float
        Fixed time step [s]
    """
    central_body: CentralBody = BARGE_PLANET
    limits: OrbitLimits = DEFAULT_LIMITS
    events: EventChannel = field(default_factory=EventChannel)
    dt: float = field(default_factory=lambda: config.DEFAULT_TIME_STEP)

    def __post_init__(self):
        if not np.isfinite(self.dt) or self.dt <= 0:
            raise ValueError(f"Time step must be positive, got {self.dt}")


class Simulation:
    """
    Owns a collection of orbital entities and ticks them at a fixed rate.

    Parameters
    ----------
    context : SimulationContext, optional
        Shared configuration (default: BARGE_PLANET with default limits)
    t0 : float, optional
        Initial simulation time [s]
    record : bool, optional
        Whether to record per-tick telemetry (default True)

    Examples
    --------
    >>> sim = Simulation()
    >>> barge = sim.spawn('barge', position=[5000.0, 0.0])
    >>> sim.run(500)
    >>> df = sim.to_dataframe()
    """

    def __init__(self, context: Optional[SimulationContext] = None,
                 t0: float = 0.0, record: bool = True):
        self._context = context if context is not None else SimulationContext()
        self._time = float(t0)
        self._record = record
        self._entities: Dict[str, OrbitalRigidbody] = {}
        self._pending: Dict[str, List[Collision]] = {}
        self._touching: Dict[str, set] = {}
        self._telemetry: List[dict] = []
        self._failed = False
        self._steps = 0

        self._context.events.subscribe(GameEvent.MISSION_FAILED, self._on_mission_failed)
        logger.info("Simulation created.  dt=%.3f s, central body=%s",
                    self._context.dt, self._context.central_body.name)

    # ========== ENTITIES ==========
    def spawn(self, name: str, position, velocity=None,
              method=UpdateMethod.FOLLOW_ORBIT, mass: float = 1.0,
              player_multiplier: float = 2.0) -> OrbitalRigidbody:
        """
        Create an orbital entity and register it.

        Without a velocity the entity starts on a circular orbit.

        Returns
        -------
        OrbitalRigidbody
            The driver of the new entity
        """
        body = OrbitalBody(
            position, velocity,
            central_body=self._context.central_body,
            limits=self._context.limits,
            events=self._context.events,
            time=self._time,
            name=name
        )
        rigidbody = Rigidbody2D(body.position, body.velocity, mass=mass)
        driver = OrbitalRigidbody(body, rigidbody, method=method,
                                  player_multiplier=player_multiplier)
        return self.add(name, driver)

    def add(self, name: str, driver: OrbitalRigidbody) -> OrbitalRigidbody:
        """Register an externally built driver and start it."""
        if name in self._entities:
            raise ValueError(f"Entity '{name}' already exists")
        if not isinstance(driver, OrbitalRigidbody):
            raise TypeError(f"driver must be OrbitalRigidbody, got {type(driver)}")
        self._entities[name] = driver
        self._pending[name] = []
        self._touching[name] = set()
        driver.start(self._time)
        logger.info("Spawned '%s' (%s) at t=%.3f", name, driver.method.value, self._time)
        return driver

    def remove(self, name: str):
        """Unregister an entity."""
        self._entity(name)
        del self._entities[name]
        del self._pending[name]
        del self._touching[name]

    def report_collision(self, name: str, collision: Collision):
        """Queue a collision for ``name``; dispatched at the end of the step."""
        self._entity(name)
        self._pending[name].append(collision)

    # ========== LOOP ==========
    def step(self):
        """Advance every entity by one fixed step."""
        dt = self._context.dt
        time = self._time

        for driver in self._entities.values():
            driver.fixed_update(time)

        for driver in self._entities.values():
            driver.rigidbody.step(dt)

        for name, driver in self._entities.items():
            self._dispatch_collisions(name, driver, time)

        if self._record:
            self._record_telemetry(time)

        self._steps += 1
        self._time = time + dt

    def run(self, n_steps: int):
        """Run ``n_steps`` fixed steps."""
        if n_steps < 0:
            raise ValueError(f"n_steps must be non-negative, got {n_steps}")
        logger.info("Simulation run started.  %d steps from t=%.3f", n_steps, self._time)
        for _ in range(n_steps):
            self.step()
        logger.info("Simulation run complete.  t=%.3f, %d steps total",
                    self._time, self._steps)

    def _dispatch_collisions(self, name, driver, time):
        touching_now = set()
        for collision in self._pending[name]:
            if collision.tag in self._touching[name]:
                driver.on_collision_stay(collision, time)
            else:
                driver.on_collision_enter(collision, time)
            touching_now.add(collision.tag)
        self._touching[name] = touching_now
        self._pending[name] = []

    def _on_mission_failed(self, **payload):
        self._failed = True

    # ========== TELEMETRY ==========
    def _record_telemetry(self, time):
        for name, driver in self._entities.items():
            row = {'time': time, 'entity': name}
            row.update(driver.body.get_orbital_stats().to_dict())
            row['rotation'] = driver.rigidbody.rotation
            self._telemetry.append(row)

    def to_dataframe(self, name: Optional[str] = None) -> pd.DataFrame:
        """
        Export recorded telemetry to a pandas DataFrame.

        Parameters:
            name: Only return rows for this entity (default: all entities)

        Returns:
            DataFrame with columns time, entity, x, y, vx, vy, a, e, nu, T,
            omega, rp, ra, rotation
        """
        if not self._telemetry:
            logger.warning("No telemetry recorded.")
            return pd.DataFrame()
        df = pd.DataFrame(self._telemetry)
        if name is not None:
            df = df[df['entity'] == name].reset_index(drop=True)
        return df

    # ========== PROPERTY ACCESS ==========
    def _entity(self, name):
        try:
            return self._entities[name]
        except KeyError:
            raise KeyError(f"No entity named '{name}'") from None

    def __getitem__(self, name: str) -> OrbitalRigidbody:
        return self._entity(name)

    def __contains__(self, name: str) -> bool:
        return name in self._entities

    def __len__(self):
        return len(self._entities)

    @property
    def context(self) -> SimulationContext:
        return self._context

    @property
    def events(self) -> EventChannel:
        return self._context.events

    @property
    def time(self) -> float:
        return self._time

    @property
    def steps(self) -> int:
        return self._steps

    @property
    def entities(self) -> Dict[str, OrbitalRigidbody]:
        return dict(self._entities)

    @property
    def failed(self) -> bool:
        """True once any entity has hit the central body surface"""
        return self._failed

    def __repr__(self):
        return (f"Simulation(t={self._time:.3f}, entities={list(self._entities)}, "
                f"dt={self._context.dt})")
