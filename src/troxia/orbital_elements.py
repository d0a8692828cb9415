'''Planar orbit core for game entities
OrbitalElements class definition and Kepler equation solver'''

import numpy as np
from .config import config
from .utils import as_vector, validation_error

TWO_PI = np.float64(2 * np.pi)


def solve_kepler(M, e, tol=None, max_iter=None):
    """
    Solve Kepler's equation M = E - e*sin(E) for the eccentric anomaly.

    Newton-Raphson seeded with E0 = M, safeguarded by the bracket
    [M - e, M + e] that always contains the root: a Newton step leaving the
    bracket is replaced by bisection. The iteration count is capped so the
    solve always terminates inside a simulation step.

    Parameters
    ----------
    M : float
        Mean anomaly [rad]
    e : float
        Eccentricity, 0 <= e < 1
    tol : float, optional
        Convergence tolerance on the Newton update (default config.KEPLER_TOL)
    max_iter : int, optional
        Iteration cap (default config.KEPLER_MAX_ITER)

    Returns
    -------
    float
        Eccentric anomaly [rad], or NaN if the iteration did not converge
        (including non-finite M or e)
    """
    tol = config.KEPLER_TOL if tol is None else tol
    max_iter = config.KEPLER_MAX_ITER if max_iter is None else max_iter
    M = np.float64(M)
    e = np.float64(e)
    if not (np.isfinite(M) and np.isfinite(e)):
        return np.nan

    # E - M = e*sin(E), so the root lies within e of M
    lo, hi = M - e, M + e
    E = M
    with np.errstate(all='ignore'):
        for _ in range(max_iter):
            f = E - e * np.sin(E) - M
            if f > 0:
                hi = E
            else:
                lo = E
            dE = f / (1.0 - e * np.cos(E))
            if abs(dE) < tol:
                return np.float64(E - dE)
            E = E - dE
            # also catches a non-finite step
            if not lo < E < hi:
                E = 0.5 * (lo + hi)
    return np.nan


class OrbitalElements:
    """
    Keplerian elements of a bound planar orbit around a single central body.

    The orbit lives in the x-y plane of a planet-centered inertial (PCI)
    frame. Angles are measured counter-clockwise from +x; ``direction`` is
    +1 for counter-clockwise motion and -1 for clockwise motion, and the
    true anomaly always advances in the direction of motion.

    Unlike most element containers this one is mutable: a single instance
    is owned by an OrbitalBody and refit in place every step. Use ``copy``
    and ``restore`` to snapshot and roll back.

    Parameters
    ----------
    mu : float
        Gravitational parameter of the central body
    """
    # ========== CLASS CONSTANTS ==========
    # Every field making up the value of an element set, used by copy/restore
    _STATE_FIELDS = ('_a', '_e', '_omega', '_nu', '_direction', '_epoch',
                     '_rp', '_ra', '_T', '_M0')

    # ========== CONSTRUCTION ==========
    def __init__(self, mu):
        if not np.isfinite(mu) or mu <= 0:
            validation_error(f"Gravitational parameter must be positive, got {mu}")
        self._mu = np.float64(mu)
        # unfitted until set_orbit or set_circular_orbit is called
        self._a = np.nan
        self._e = np.nan
        self._omega = np.nan
        self._nu = np.nan
        self._direction = 1
        self._epoch = 0.0
        self._rp = np.nan
        self._ra = np.nan
        self._T = np.nan
        self._M0 = np.nan

    @classmethod
    def from_state(cls, mu, time, position, velocity):
        """
        Create elements fitted to a Cartesian state.

        Args:
            mu: Gravitational parameter
            time: Epoch of the state
            position: PCI position [x, y]
            velocity: PCI velocity [vx, vy]

        Returns:
            OrbitalElements instance
        """
        oe = cls(mu)
        oe.set_orbit(time, position, velocity)
        return oe

    @classmethod
    def keplerian(cls, mu, a, e, omega=0.0, nu=0.0, epoch=0.0, direction=1):
        """
        Create elements directly from Keplerian parameters.

        Args:
            mu: Gravitational parameter
            a: Semi-major axis
            e: Eccentricity
            omega: Argument of periapsis [rad]
            nu: True anomaly at epoch [rad]
            epoch: Epoch time
            direction: +1 counter-clockwise, -1 clockwise

        Returns:
            OrbitalElements instance
        """
        if a <= 0 or not 0 <= e < 1:
            validation_error(f"Bound orbit requires a > 0 and 0 <= e < 1, "
                             f"got a={a}, e={e}")
        if direction not in (1, -1):
            raise ValueError(f"direction must be +1 or -1, got {direction}")
        oe = cls(mu)
        oe._a = np.float64(a)
        oe._e = np.float64(e)
        oe._omega = np.float64(np.mod(omega, TWO_PI))
        oe._nu = np.float64(np.mod(nu, TWO_PI))
        oe._direction = direction
        oe._epoch = np.float64(epoch)
        oe._update_derived()
        return oe

    # ========== FITTING ==========
    def set_orbit(self, time, position, velocity):
        """
        Fit the elements to a Cartesian state (Cartesian -> Keplerian).

        Degenerate states (zero velocity, position at the origin, escape
        velocity) do not raise: they leave non-finite or unbound elements
        behind, which propagate to non-finite coordinates in to_cartesian.

        Parameters
        ----------
        time : float
            Epoch of the state
        position, velocity : array-like
            PCI state, 2 components each
        """
        rvec = as_vector(position, "position")
        vvec = as_vector(velocity, "velocity")
        mu = self._mu

        with np.errstate(all='ignore'):
            r = np.linalg.norm(rvec)
            v2 = np.dot(vvec, vvec)
            rdv = np.dot(rvec, vvec)
            # planar angular momentum (z component of r x v)
            h = rvec[0] * vvec[1] - rvec[1] * vvec[0]
            evec = ((v2 - mu / r) * rvec - rdv * vvec) / mu
            e = np.linalg.norm(evec)
            # vis-viva
            a = 1.0 / (2.0 / r - v2 / mu)

            if e < config.SNAP_TO_CIRCULAR:
                # periapsis undefined, reference it to the current position
                e = 0.0
                omega = np.arctan2(rvec[1], rvec[0])
                nu = 0.0
            else:
                omega = np.arctan2(evec[1], evec[0])
                cross = evec[0] * rvec[1] - evec[1] * rvec[0]
                nu = np.arctan2(abs(cross), np.dot(evec, rvec))
                # zero radial velocity counts as outbound
                if rdv < 0:
                    nu = TWO_PI - nu

        self._a = np.float64(a)
        self._e = np.float64(e)
        self._omega = np.float64(np.mod(omega, TWO_PI))
        self._nu = np.float64(np.mod(nu, TWO_PI))
        self._direction = -1 if h < 0 else 1
        self._epoch = np.float64(time)
        self._update_derived()

    def set_circular_orbit(self, time, position, direction=1):
        """
        Fit a circular orbit through ``position``.

        The implied speed is sqrt(mu/r) perpendicular to the position,
        counter-clockwise for direction=+1 and clockwise for -1.
        """
        if direction not in (1, -1):
            raise ValueError(f"direction must be +1 or -1, got {direction}")
        rvec = as_vector(position, "position")
        with np.errstate(all='ignore'):
            r = np.linalg.norm(rvec)
            omega = np.arctan2(rvec[1], rvec[0])

        self._a = np.float64(r)
        self._e = np.float64(0.0)
        self._omega = np.float64(np.mod(omega, TWO_PI))
        self._nu = np.float64(0.0)
        self._direction = direction
        self._epoch = np.float64(time)
        self._update_derived()

    def _update_derived(self):
        """Recompute rp, ra, T and M0 from a, e, nu."""
        a, e, mu = self._a, self._e, self._mu
        with np.errstate(all='ignore'):
            self._rp = np.float64(a * (1 - e))
            if e < 1:
                self._ra = np.float64(a * (1 + e))
                self._T = np.float64(TWO_PI * np.sqrt(a**3 / mu))
            else:
                # unbound or undefined: no apoapsis, no period
                self._ra = np.inf if e >= 1 else np.nan
                self._T = np.nan
            self._M0 = np.float64(self._mean_from_true(self._nu, e))

    # ========== PROPAGATION ==========
    def to_cartesian(self, time):
        """
        Propagate to ``time`` and return the PCI state (Keplerian -> Cartesian).

        Parameters
        ----------
        time : float
            Absolute time; elapsed time is measured from the stored epoch

        Returns
        -------
        position, velocity : np.ndarray
            PCI state, shape (2,) each. Non-finite if the element set is
            degenerate or the Kepler solve did not converge.
        """
        a, e, mu = self._a, self._e, self._mu
        s = self._direction
        with np.errstate(all='ignore'):
            n = TWO_PI / self._T
            M = np.mod(self._M0 + n * (time - self._epoch), TWO_PI)
            E = solve_kepler(M, e)
            nu = self._true_from_eccentric(E, e)
            r = a * (1 - e * np.cos(E))
            p = a * (1 - e**2)
            speed_scale = np.sqrt(mu / p)

            pos_pf = np.array([r * np.cos(nu), s * r * np.sin(nu)])
            vel_pf = speed_scale * np.array([-np.sin(nu), s * (e + np.cos(nu))])
            R = self._rotation()
            position = R @ pos_pf
            velocity = R @ vel_pf
            self._nu = np.float64(np.mod(nu, TWO_PI))
        return position, velocity

    # ========== SAMPLING ==========
    def get_orbit_coordinates(self, buffer):
        """
        Fill ``buffer`` with points spread evenly in true anomaly.

        Point k sits at nu = 2*pi*k/N, starting at periapsis and following
        the direction of motion. Independent of the current epoch; element
        state is not modified.

        Parameters
        ----------
        buffer : np.ndarray
            Writable array of shape (N, 2)

        Returns
        -------
        np.ndarray
            The same buffer, filled with PCI positions
        """
        if not isinstance(buffer, np.ndarray) or buffer.ndim != 2 or buffer.shape[1] != 2:
            raise ValueError(f"buffer must be an array of shape (N, 2), "
                             f"got {getattr(buffer, 'shape', type(buffer))}")
        n_points = buffer.shape[0]
        nu = TWO_PI * np.arange(n_points) / n_points
        with np.errstate(all='ignore'):
            r = self.radius_at(nu)
            x_pf = r * np.cos(nu)
            y_pf = self._direction * r * np.sin(nu)
            cos_w, sin_w = np.cos(self._omega), np.sin(self._omega)
            buffer[:, 0] = cos_w * x_pf - sin_w * y_pf
            buffer[:, 1] = sin_w * x_pf + cos_w * y_pf
        return buffer

    def radius_at(self, nu):
        """Orbit equation r(nu) = p / (1 + e*cos(nu))."""
        with np.errstate(all='ignore'):
            return self.p / (1 + self._e * np.cos(nu))

    # ========== SNAPSHOT ==========
    def copy(self):
        """Value snapshot of this element set"""
        snapshot = OrbitalElements.__new__(OrbitalElements)
        snapshot._mu = self._mu
        for field in self._STATE_FIELDS:
            setattr(snapshot, field, getattr(self, field))
        return snapshot

    def restore(self, snapshot):
        """Overwrite this element set in place with a snapshot from ``copy``"""
        if not isinstance(snapshot, OrbitalElements):
            raise TypeError(f"snapshot must be OrbitalElements, got {type(snapshot)}")
        if snapshot._mu != self._mu:
            raise ValueError("Cannot restore a snapshot taken around a different body")
        for field in self._STATE_FIELDS:
            setattr(self, field, getattr(snapshot, field))

    # ========== PROPERTY ACCESS ==========
    @property
    def mu(self):
        """Gravitational parameter"""
        return self._mu

    @property
    def a(self):
        """Semi-major axis"""
        return self._a

    @property
    def e(self):
        """Eccentricity"""
        return self._e

    @property
    def omega(self):
        """Argument of periapsis from +x [rad]"""
        return self._omega

    @property
    def nu(self):
        """True anomaly at the last fit or propagation [rad]"""
        return self._nu

    @property
    def T(self):
        """Orbital period (NaN for unbound fits)"""
        return self._T

    @property
    def rp(self):
        """Periapsis radius"""
        return self._rp

    @property
    def ra(self):
        """Apoapsis radius (inf for unbound fits)"""
        return self._ra

    @property
    def epoch(self):
        """Time of the last fit"""
        return self._epoch

    @property
    def M0(self):
        """Mean anomaly at epoch [rad]"""
        return self._M0

    @property
    def direction(self):
        """+1 for counter-clockwise motion, -1 for clockwise"""
        return self._direction

    @property
    def p(self):
        """Semi-latus rectum"""
        return self._a * (1 - self._e**2)

    @property
    def elements(self):
        """Read-only array [a, e, omega, nu]"""
        arr = np.array([self._a, self._e, self._omega, self._nu])
        arr.flags.writeable = False
        return arr

    # ========== ORBITAL PROPERTIES ==========
    def mean_motion(self):
        """Mean motion n = 2*pi/T [rad/s]"""
        with np.errstate(all='ignore'):
            return TWO_PI / self._T

    def specific_energy(self):
        """Specific orbital energy -mu/(2a)"""
        with np.errstate(all='ignore'):
            return -self._mu / (2 * self._a)

    def is_bound(self):
        """True for a finite elliptical orbit (0 <= e < 1, a > 0)"""
        return bool(self.is_finite() and 0 <= self._e < 1 and self._a > 0)

    def is_finite(self):
        """True if every stored element is finite"""
        return bool(np.all(np.isfinite([self._a, self._e, self._omega, self._nu,
                                        self._rp, self._T, self._M0])))

    # ========== STATIC METHODS ==========
    @staticmethod
    def _mean_from_true(nu, e):
        """Mean anomaly from true anomaly on an ellipse"""
        with np.errstate(all='ignore'):
            E = 2 * np.arctan2(np.sqrt(1 - e) * np.sin(nu / 2),
                               np.sqrt(1 + e) * np.cos(nu / 2))
            return np.mod(E - e * np.sin(E), TWO_PI)

    @staticmethod
    def _true_from_eccentric(E, e):
        """True anomaly from eccentric anomaly (half-angle relation)"""
        with np.errstate(all='ignore'):
            return 2 * np.arctan2(np.sqrt(1 + e) * np.sin(E / 2),
                                  np.sqrt(1 - e) * np.cos(E / 2))

    def _rotation(self):
        """Rotation from perifocal axes to PCI by omega"""
        c, s = np.cos(self._omega), np.sin(self._omega)
        return np.array([[c, -s],
                         [s,  c]])

    # ========== SPECIAL METHODS ==========
    def __repr__(self):
        return (f"OrbitalElements(mu={self._mu}, a={self._a}, e={self._e}, "
                f"omega={self._omega}, nu={self._nu}, epoch={self._epoch}, "
                f"direction={self._direction})")

    def __str__(self):
        sense = "counter-clockwise" if self._direction > 0 else "clockwise"
        return (f"Keplerian Elements ({sense}):\n"
                f"  a     = {self._a:12.4f}\n"
                f"  e     = {self._e:12.6f}\n"
                f"  ω     = {np.degrees(self._omega):12.4f}°\n"
                f"  ν     = {np.degrees(self._nu):12.4f}°\n"
                f"  rp    = {self._rp:12.4f}\n"
                f"  ra    = {self._ra:12.4f}\n"
                f"  T     = {self._T:12.4f} s")

    def __eq__(self, other):
        #Check equality with tolerance
        if not isinstance(other, OrbitalElements):
            return False
        mine = np.array([self._mu, self._a, self._e, self._omega, self._nu, self._epoch])
        theirs = np.array([other._mu, other._a, other._e, other._omega,
                           other._nu, other._epoch])
        return (self._direction == other._direction and
                np.allclose(mine, theirs,
                            rtol=config.EQUALITY_RTOL,
                            atol=config.EQUALITY_ATOL,
                            equal_nan=True))

    __hash__ = None
