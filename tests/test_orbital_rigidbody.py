"""
Test suite for the OrbitalRigidbody driver.

Tests include:
1. Kinematic flags per update method
2. FOLLOW_ORBIT synchronization and non-finite skip
3. FORCES gravity application
4. Collision delta-v weighting
5. Soft bounce at the radius limits
6. Mission failure on contact with the central body
"""

import logging
import pytest
import numpy as np

from troxia import (OrbitalBody, OrbitalRigidbody, Rigidbody2D, UpdateMethod,
                    Contact, Collision, EventChannel, GameEvent,
                    OrbitLimitWarning, BARGE_PLANET, temp_config)


MU = BARGE_PLANET.mu


def make_driver(method=UpdateMethod.FOLLOW_ORBIT, velocity=None, mass=2.0, **kwargs):
    body = OrbitalBody([5000.0, 0.0], velocity, events=EventChannel())
    rb = Rigidbody2D(body.position, body.velocity, mass=mass)
    return OrbitalRigidbody(body, rb, method=method, **kwargs)


def ra_after_prograde_burn(speed, r=5000.0):
    a = 1.0 / (2.0 / r - speed**2 / MU)
    return 2 * a - r


PLAYER_HIT = Contact(3.0, (1.0, 0.0), 'Player')
ROCK_HIT = Contact(1.0, (0.0, 1.0), 'Asteroid')


# =============================================================================
# Test Construction
# =============================================================================

class TestConstruction:

    def test_follow_is_kinematic(self):
        driver = make_driver(UpdateMethod.FOLLOW_ORBIT)
        assert driver.rigidbody.is_kinematic
        assert driver.rigidbody.use_full_kinematic_contacts

    def test_forces_is_dynamic(self):
        driver = make_driver(UpdateMethod.FORCES)
        assert not driver.rigidbody.is_kinematic
        assert not driver.rigidbody.use_full_kinematic_contacts

    @pytest.mark.parametrize("name, method", [
        ('forces', UpdateMethod.FORCES),
        ('follow', UpdateMethod.FOLLOW_ORBIT),
        ('follow_orbit', UpdateMethod.FOLLOW_ORBIT),
    ])
    def test_method_from_string(self, name, method):
        assert make_driver(name).method is method

    def test_bad_method(self):
        with pytest.raises(ValueError):
            make_driver('teleport')
        with pytest.raises(TypeError):
            make_driver(1)

    def test_bad_body(self):
        with pytest.raises(TypeError):
            OrbitalRigidbody("barge", Rigidbody2D([0.0, 0.0]))

    def test_bad_max_contacts(self):
        with pytest.raises(ValueError):
            make_driver(max_contacts=0)


# =============================================================================
# Test Fixed Update
# =============================================================================

class TestFollowOrbit:

    def test_start_places_rigidbody(self):
        driver = make_driver()
        driver.rigidbody.position = np.zeros(2)
        driver.start(0.0)
        driver.rigidbody.step(0.02)
        assert np.allclose(driver.rigidbody.position, [5000.0, 0.0])
        assert driver.rigidbody.rotation == pytest.approx(90.0)

    def test_rigidbody_follows_orbit(self):
        driver = make_driver()
        quarter = driver.body.elements.T / 4
        driver.fixed_update(quarter)
        driver.rigidbody.step(0.02)

        assert np.allclose(driver.rigidbody.position, [0.0, 5000.0], atol=1e-6)
        assert np.allclose(driver.rigidbody.velocity, [-50.0, 0.0], atol=1e-9)
        assert driver.rigidbody.rotation == pytest.approx(180.0)

    def test_non_finite_state_skips_sync(self, caplog):
        driver = make_driver()
        driver.fixed_update(0.0)
        driver.rigidbody.step(0.02)
        velocity = driver.rigidbody.velocity.copy()
        driver.rigidbody.rotation = 12.0

        driver.body.set_orbit(0.0, [5000.0, 0.0], [0.0, 0.0])
        with caplog.at_level(logging.DEBUG, logger='troxia.orbital_rigidbody'):
            driver.fixed_update(1.0)
        driver.rigidbody.step(0.02)

        assert np.array_equal(driver.rigidbody.velocity, velocity)
        assert driver.rigidbody.rotation == 12.0
        assert np.all(np.isfinite(driver.rigidbody.position))
        assert 'skipping sync' in caplog.text


class TestForces:

    def test_gravity_applied(self):
        driver = make_driver(UpdateMethod.FORCES, mass=2.0)
        driver.fixed_update(0.0)
        driver.rigidbody.step(0.02)

        # a = mu / r^2 = 0.5 toward the planet, independent of mass
        assert np.allclose(driver.rigidbody.velocity, [-0.01, 50.0])
        assert driver.rigidbody.rotation == pytest.approx(90.0)

    def test_orbit_refit_from_rigidbody(self):
        driver = make_driver(UpdateMethod.FORCES)
        driver.rigidbody.velocity = np.array([0.0, 52.0])
        driver.fixed_update(3.0)

        assert driver.body.elements.epoch == 3.0
        assert np.isclose(driver.body.elements.ra, ra_after_prograde_burn(52.0))
        assert np.allclose(driver.body.velocity, [0.0, 52.0], atol=1e-9)


# =============================================================================
# Test Collisions
# =============================================================================

class TestGetDeltaV:

    def test_follow_weights(self):
        driver = make_driver(UpdateMethod.FOLLOW_ORBIT, mass=2.0)
        dv = driver.get_delta_v(Collision([PLAYER_HIT, ROCK_HIT]))
        # (2 * 3 * (1, 0) + 1 * (0, 1)) / mass
        assert np.allclose(dv, [3.0, 0.5])

    def test_forces_weights(self):
        driver = make_driver(UpdateMethod.FORCES, mass=2.0)
        dv = driver.get_delta_v(Collision([PLAYER_HIT, ROCK_HIT]))
        # (multiplier - 1) on player contacts, others ignored, no mass division
        assert np.allclose(dv, [3.0, 0.0])

    def test_player_multiplier(self):
        driver = make_driver(mass=1.0, player_multiplier=5.0)
        dv = driver.get_delta_v(Collision([PLAYER_HIT]))
        assert np.allclose(dv, [15.0, 0.0])

    def test_contacts_capped(self):
        driver = make_driver(mass=1.0, max_contacts=2)
        contacts = [Contact(1.0, (1.0, 0.0))] * 6
        assert np.allclose(driver.get_delta_v(Collision(contacts)), [2.0, 0.0])

    def test_default_cap_is_five(self):
        driver = make_driver(mass=1.0)
        contacts = [Contact(1.0, (0.0, 1.0))] * 8
        assert np.allclose(driver.get_delta_v(Collision(contacts)), [0.0, 5.0])

    def test_no_contacts(self):
        assert np.array_equal(make_driver().get_delta_v(Collision([])), np.zeros(2))

    def test_player_tag_from_config(self):
        driver = make_driver(mass=1.0)
        with temp_config(PLAYER_TAG='Tug'):
            dv = driver.get_delta_v(Collision([Contact(1.0, (1.0, 0.0), 'Tug')]))
        assert np.allclose(dv, [2.0, 0.0])


class TestAddForceFollow:

    def test_accepted_as_delta_v(self):
        driver = make_driver()
        driver.add_force([0.0, 2.0], 0.0)
        assert np.isclose(driver.body.elements.ra, ra_after_prograde_burn(52.0))

    def test_rejected_rolls_back(self):
        driver = make_driver()
        before = driver.body.elements.copy()
        with pytest.warns(OrbitLimitWarning):
            driver.add_force([0.0, 10.0], 0.0)
        assert driver.body.elements == before

    def test_enemy_force_along_prograde(self):
        driver = make_driver()
        driver.add_enemy_force(2.0, 0.0)
        assert np.isclose(driver.body.elements.ra, ra_after_prograde_burn(52.0))
        assert np.isclose(driver.body.elements.rp, 5000.0)


class TestAddForceForces:

    def test_impulse_inside_limits(self):
        driver = make_driver(UpdateMethod.FORCES, mass=2.0)
        driver.add_force([1.0, 0.0], 0.0)
        assert np.allclose(driver.rigidbody.velocity, [0.5, 50.0])

    def test_soft_bounce_above_max(self):
        # ra ~ 12857, beyond the 7000 limit
        driver = make_driver(UpdateMethod.FORCES, velocity=[0.0, 60.0], mass=2.0)

        driver.add_force([0.0, 1.0], 0.0)      # outward push is reversed
        assert np.allclose(driver.rigidbody.velocity, [0.0, 59.5])

        driver.add_force([0.0, -1.0], 0.0)     # inward push goes through
        assert np.allclose(driver.rigidbody.velocity, [0.0, 59.0])
        assert driver.body.at_max_radius

    def test_soft_bounce_below_min(self):
        # rp ~ 1098, below the 2000 limit
        driver = make_driver(UpdateMethod.FORCES, velocity=[0.0, 30.0], mass=2.0)

        driver.add_force([0.0, -1.0], 0.0)     # retrograde push is reversed
        assert np.allclose(driver.rigidbody.velocity, [0.0, 30.5])

        driver.add_force([0.0, 1.0], 0.0)
        assert np.allclose(driver.rigidbody.velocity, [0.0, 31.0])
        assert driver.body.at_min_radius


class TestCollisionCallbacks:

    def test_planet_contact_fails_mission(self, caplog):
        driver = make_driver()
        failures = []
        driver.body.events.subscribe(GameEvent.MISSION_FAILED,
                                     lambda **kw: failures.append(kw))

        with caplog.at_level(logging.WARNING, logger='troxia.orbital_rigidbody'):
            driver.on_collision_enter(Collision([], tag='Planet'), 4.0)

        assert len(failures) == 1
        assert failures[0]['body'] is driver.body
        assert failures[0]['time'] == 4.0
        assert 'central body surface' in caplog.text

    def test_stay_does_not_fail_mission(self):
        driver = make_driver()
        driver.on_collision_stay(Collision([], tag='Planet'), 4.0)
        assert driver.body.events.count(GameEvent.MISSION_FAILED) == 0

    def test_enter_applies_delta_v(self):
        driver = make_driver(mass=1.0)
        driver.on_collision_enter(Collision([Contact(2.0, (0.0, 1.0))], tag='Asteroid'), 0.0)
        assert np.isclose(driver.body.elements.ra, ra_after_prograde_burn(52.0))
