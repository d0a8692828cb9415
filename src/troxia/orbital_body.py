'''Planar orbit core for game entities
OrbitalBody class definition'''

import warnings
from dataclasses import dataclass, asdict
from typing import Optional, Tuple, List
import numpy as np
import pandas as pd
import plotly.graph_objects as go
from .config import config
from .bodies import CentralBody, OrbitLimits, BARGE_PLANET, DEFAULT_LIMITS
from .events import EventChannel, GameEvent
from .orbital_elements import OrbitalElements
from .utils import OrbitLimitWarning, as_vector, normalize, planar_angle


@dataclass(frozen=True)
class OrbitalStats:
    """
    Immutable snapshot of an orbital body's state and elements.

    Attributes
    ----------
    position, velocity : tuple of float
        PCI state (x, y) and (vx, vy)
    a, e : float
        Semi-major axis and eccentricity
    nu, omega : float
        True anomaly and argument of periapsis [rad]
    T : float
        Orbital period [s]
    rp, ra : float
        Periapsis and apoapsis radii
    """
    position: Tuple[float, float]
    velocity: Tuple[float, float]
    a: float
    e: float
    nu: float
    T: float
    omega: float
    rp: float
    ra: float

    _COLUMNS = ['x', 'y', 'vx', 'vy', 'a', 'e', 'nu', 'T', 'omega', 'rp', 'ra']

    def to_dict(self) -> dict:
        """Flat dictionary keyed like the DataFrame columns"""
        data = asdict(self)
        x, y = data.pop('position')
        vx, vy = data.pop('velocity')
        return {'x': x, 'y': y, 'vx': vx, 'vy': vy, **data}

    @staticmethod
    def to_dataframe(stats: List["OrbitalStats"], index=None) -> pd.DataFrame:
        """
        Convert a list of OrbitalStats to a pandas DataFrame.

        Parameters
        ----------
        stats : list of OrbitalStats
        index : array-like, optional
            Index for the DataFrame (e.g., time values).
            If None, uses integer index.

        Returns
        -------
        pd.DataFrame
            Columns: x, y, vx, vy, a, e, nu, T, omega, rp, ra

        Raises
        ------
        ValueError
            If index length doesn't match number of snapshots
        """
        if index is not None and len(index) != len(stats):
            raise ValueError(
                f"Index length ({len(index)}) must match "
                f"number of snapshots ({len(stats)})"
            )
        if not stats:
            return pd.DataFrame(columns=OrbitalStats._COLUMNS)
        return pd.DataFrame([s.to_dict() for s in stats],
                            columns=OrbitalStats._COLUMNS, index=index)


class OrbitalBody:
    """
    Game entity on a Keplerian orbit, with operational radius limits.

    Holds the authoritative PCI state, owns exactly one OrbitalElements
    instance and a lazily built cache of orbit samples for display.

    Parameters
    ----------
    position : array-like
        Initial PCI position [x, y]
    velocity : array-like, optional
        Initial PCI velocity. If omitted the body starts on a
        counter-clockwise circular orbit through ``position``.
    central_body : CentralBody, optional
        Body being orbited (default BARGE_PLANET)
    limits : OrbitLimits, optional
        Allowed periapsis/apoapsis band (default DEFAULT_LIMITS)
    events : EventChannel, optional
        Channel receiving radius-limit warnings. A private channel is
        created if none is given.
    time : float, optional
        Epoch of the initial state
    name : str, optional
        Identifier
    """

    # ========== CONSTRUCTION ==========
    def __init__(
        self,
        position,
        velocity=None,
        central_body: CentralBody = BARGE_PLANET,
        limits: OrbitLimits = DEFAULT_LIMITS,
        events: Optional[EventChannel] = None,
        time: float = 0.0,
        name: Optional[str] = None
    ):
        if not isinstance(central_body, CentralBody):
            raise TypeError(f"central_body must be CentralBody, got {type(central_body)}")
        if not isinstance(limits, OrbitLimits):
            raise TypeError(f"limits must be OrbitLimits, got {type(limits)}")

        self._central_body = central_body
        self._limits = limits
        self._events = events if events is not None else EventChannel()
        self._name = name

        self._elements = OrbitalElements(central_body.mu)
        self._position = as_vector(position, "position")
        if velocity is None:
            self._elements.set_circular_orbit(time, self._position)
        else:
            self._elements.set_orbit(time, self._position, velocity)

        self._at_min_radius = False
        self._at_max_radius = False

        self._orbit_cache = None
        self._orbit_cached = False

        self.recalculate(time)

    # ========== STATE UPDATES ==========
    def recalculate(self, time):
        """
        Move the body to where its orbit puts it at ``time``.

        The stored state may become non-finite for degenerate element sets;
        callers check before using it.
        """
        self._position, self._velocity = self._elements.to_cartesian(time)

    def set_orbit(self, time, position=None, velocity=None):
        """Refit the elements to a state (default: the current state)."""
        position = self._position if position is None else position
        velocity = self._velocity if velocity is None else velocity
        self._elements.set_orbit(time, position, velocity)
        self._orbit_cached = False

    def set_circular_orbit(self, time, position=None, direction=1):
        """Refit the elements to a circular orbit through ``position``."""
        position = self._position if position is None else position
        self._elements.set_circular_orbit(time, position, direction)
        self._orbit_cached = False

    def add_delta_v(self, time, delta_v) -> bool:
        """
        Apply an impulsive velocity change, or reject it entirely.

        The elements are refit from velocity + delta_v. If the new orbit
        breaks either radius limit the previous element set is restored and
        an OrbitLimitWarning is issued.

        Returns
        -------
        bool
            True if the change was applied
        """
        snapshot = self._elements.copy()
        self._elements.set_orbit(time, self._position,
                                 self._velocity + as_vector(delta_v, "delta_v"))
        if not self.check_max_radius() or not self.check_min_radius():
            self._elements.restore(snapshot)
            warnings.warn("Orbit radius limits exceeded - delta-v change ignored.",
                          OrbitLimitWarning, stacklevel=2)
            return False
        self._orbit_cached = False
        return True

    # ========== LIMIT MONITORS ==========
    def check_max_radius(self) -> bool:
        """
        Return True if apoapsis is below the maximum orbital radius.

        The first breach emits MAX_RADIUS_BREACHED and latches; the latch
        clears once apoapsis drops below maximum * (1 - LIMIT_DEAD_ZONE).
        """
        sane_orbit = True
        ra = self._elements.ra
        maximum = self._limits.maximum

        if ra > maximum:
            # warn only on the first crossing
            if not self._at_max_radius:
                self._events.emit(GameEvent.MAX_RADIUS_BREACHED,
                                  body=self, radius=ra, limit=maximum)
            self._at_max_radius = True
            sane_orbit = False
        elif ra < maximum * (1 - config.LIMIT_DEAD_ZONE):
            self._at_max_radius = False

        return sane_orbit

    def check_min_radius(self) -> bool:
        """
        Return True if periapsis is above the minimum orbital radius.

        The first breach emits MIN_RADIUS_BREACHED and latches; the latch
        clears once periapsis rises above minimum * (1 + LIMIT_DEAD_ZONE).
        """
        sane_orbit = True
        rp = self._elements.rp
        minimum = self._limits.minimum

        if rp < minimum:
            if not self._at_min_radius:
                self._events.emit(GameEvent.MIN_RADIUS_BREACHED,
                                  body=self, radius=rp, limit=minimum)
            self._at_min_radius = True
            sane_orbit = False
        elif rp > minimum * (1 + config.LIMIT_DEAD_ZONE):
            self._at_min_radius = False

        return sane_orbit

    # ========== ORBIT SAMPLES ==========
    def get_orbit_world_positions(self, n_points: int = 0) -> np.ndarray:
        """
        Sampled positions around the current orbit, for display.

        Samples are cached and only recomputed when ``n_points`` changes or
        the orbit has been refit since the last call.

        Parameters
        ----------
        n_points : int, optional
            Number of samples. 0 reuses the previous count, or
            config.DEFAULT_ORBIT_POINTS when there is none.

        Returns
        -------
        np.ndarray
            Read-only array of shape (n_points, 2)
        """
        if n_points < 0:
            raise ValueError(f"n_points must be non-negative, got {n_points}")
        if n_points == 0:
            current = 0 if self._orbit_cache is None else len(self._orbit_cache)
            n_points = current if current > 1 else config.DEFAULT_ORBIT_POINTS

        if self._orbit_cache is None or len(self._orbit_cache) != n_points:
            self._orbit_cache = np.empty((n_points, 2))
            self._orbit_cached = False

        if not self._orbit_cached:
            self._elements.get_orbit_coordinates(self._orbit_cache)
            self._orbit_cached = True

        view = self._orbit_cache.view()
        view.flags.writeable = False
        return view

    def get_orbital_stats(self) -> OrbitalStats:
        """Snapshot of the current state and elements."""
        oe = self._elements
        return OrbitalStats(
            position=(float(self._position[0]), float(self._position[1])),
            velocity=(float(self._velocity[0]), float(self._velocity[1])),
            a=oe.a, e=oe.e, nu=oe.nu, T=oe.T,
            omega=oe.omega, rp=oe.rp, ra=oe.ra
        )

    # ========== PROPERTY ACCESS ==========
    @property
    def name(self) -> Optional[str]:
        return self._name

    @property
    def central_body(self) -> CentralBody:
        return self._central_body

    @property
    def limits(self) -> OrbitLimits:
        return self._limits

    @property
    def max_orbit_radius(self) -> float:
        return self._limits.maximum

    @property
    def events(self) -> EventChannel:
        return self._events

    @property
    def elements(self) -> OrbitalElements:
        """The owned element set (mutated in place by this body)"""
        return self._elements

    @property
    def position(self) -> np.ndarray:
        """PCI position (copy)"""
        return self._position.copy()

    @property
    def velocity(self) -> np.ndarray:
        """PCI velocity (copy)"""
        return self._velocity.copy()

    @property
    def at_min_radius(self) -> bool:
        return self._at_min_radius

    @property
    def at_max_radius(self) -> bool:
        return self._at_max_radius

    @property
    def orbit_cached(self) -> bool:
        """True if the sample cache matches the current orbit"""
        return self._orbit_cached

    # ========== DERIVED DIRECTIONS ==========
    @property
    def prograde(self) -> np.ndarray:
        """Unit vector along the velocity"""
        return normalize(self._velocity)

    @property
    def retrograde(self) -> np.ndarray:
        return -self.prograde

    @property
    def zenith(self) -> np.ndarray:
        """Unit vector pointing away from the central body"""
        return normalize(self._position)

    @property
    def nadir(self) -> np.ndarray:
        return -self.zenith

    @property
    def prograde_rotation(self) -> float:
        """Heading of the prograde vector in degrees from +x, in [0, 360)"""
        return planar_angle(self.prograde)

    @property
    def gravitational_force(self) -> np.ndarray:
        """Gravitational acceleration mu/r^2 toward the central body"""
        return self.gravity_at(self._position)

    def gravity_at(self, position) -> np.ndarray:
        """Gravitational acceleration of the central body at ``position``."""
        position = as_vector(position, "position")
        with np.errstate(all='ignore'):
            r2 = np.dot(position, position)
            return self._central_body.mu / r2 * -normalize(position)

    # ========== PLOTTING ==========
    # diagnostic figures only, the game draws its own orbit lines
    def plot_orbit(self, n_points: Optional[int] = None, show_body: bool = True,
                   show_limits: bool = True, orbit_color: Optional[str] = None,
                   body_color: Optional[str] = None) -> go.Figure:
        """
        Create a 2D plot of the current orbit.

        Parameters:
            n_points: Number of orbit samples (default: config.DEFAULT_ORBIT_POINTS)
            show_body: Whether to draw the central body (default: True)
            show_limits: Whether to draw the radius limits (default: True)
            orbit_color: Color of the orbit line (default: config.DEFAULT_ORBIT_COLOR)
            body_color: Color of the central body (default: config.DEFAULT_BODY_COLOR)

        Returns:
            Plotly Figure object
        """
        body_color = body_color or config.DEFAULT_BODY_COLOR
        fig = go.Figure()

        if show_body:
            self._add_circle_to_plot(fig, self._central_body.radius,
                                     name=self._central_body.name or "Central Body",
                                     fill=body_color)
        if show_limits:
            self._add_circle_to_plot(fig, self._limits.minimum,
                                     name="Minimum radius", dash='dash')
            self._add_circle_to_plot(fig, self._limits.maximum,
                                     name="Maximum radius", dash='dash')

        self.add_to_plot(fig, n_points=n_points, color=orbit_color)

        fig.update_layout(
            xaxis_title='X',
            yaxis_title='Y',
            yaxis=dict(scaleanchor='x', scaleratio=1),
            title='Orbit' if self._name is None else f'Orbit of {self._name}',
            showlegend=True
        )
        return fig

    def add_to_plot(self, fig: go.Figure, n_points: Optional[int] = None,
                    color: Optional[str] = None, name: Optional[str] = None,
                    **kwargs) -> go.Figure:
        """
        Add this body's orbit and current position to an existing figure.

        Parameters:
            fig: Existing Plotly Figure object
            n_points: Number of orbit samples (default: config.DEFAULT_ORBIT_POINTS)
            color: Line color (default: config.DEFAULT_ORBIT_COLOR)
            name: Legend name (default: body name or 'Orbit N')
            **kwargs: Additional arguments passed to the orbit Scatter

        Returns:
            Updated Plotly Figure object (same object, modified in place)
        """
        color = color or config.DEFAULT_ORBIT_COLOR
        if name is None:
            n_existing = sum(1 for trace in fig.data
                             if isinstance(trace, go.Scatter) and trace.mode == 'lines')
            name = self._name or f'Orbit {n_existing + 1}'

        points = np.array(self.get_orbit_world_positions(
            n_points or config.DEFAULT_ORBIT_POINTS))
        # close the loop
        points = np.vstack([points, points[:1]])

        fig.add_trace(go.Scatter(
            x=points[:, 0],
            y=points[:, 1],
            mode='lines',
            line=dict(color=color, width=2),
            name=name,
            hovertemplate='x: %{x:.1f}<br>y: %{y:.1f}<extra></extra>',
            **kwargs
        ))
        fig.add_trace(go.Scatter(
            x=[self._position[0]],
            y=[self._position[1]],
            mode='markers',
            marker=dict(color=color, size=8),
            name=f'{name} position',
        ))
        return fig

    @staticmethod
    def _add_circle_to_plot(fig, radius, name, fill=None, dash=None):
        """Helper to add a circle centered on the origin."""
        theta = np.linspace(0, 2 * np.pi, 181)
        fig.add_trace(go.Scatter(
            x=radius * np.cos(theta),
            y=radius * np.sin(theta),
            mode='lines',
            fill='toself' if fill else None,
            fillcolor=fill,
            line=dict(color=fill or 'gray', dash=dash),
            name=name,
            hoverinfo='name'
        ))

    # ========== SPECIAL METHODS ==========
    def __repr__(self):
        name_str = f"'{self._name}'" if self._name else "unnamed"
        return (f"OrbitalBody({name_str}, rp={self._elements.rp:.2f}, "
                f"ra={self._elements.ra:.2f}, around "
                f"{self._central_body.name or 'unnamed body'})")
