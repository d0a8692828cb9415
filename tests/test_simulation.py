"""
Test suite for the fixed-step Simulation loop.

Tests include:
1. Entity registration
2. FOLLOW_ORBIT and FORCES propagation over many steps
3. Collision enter/stay dispatch and mission failure
4. Telemetry export
"""

import pytest
import numpy as np
import pandas as pd

from troxia import (Simulation, SimulationContext, OrbitalBody, OrbitalRigidbody,
                    Rigidbody2D, UpdateMethod, Contact, Collision, GameEvent,
                    OrbitLimits, EARTH, BARGE_PLANET)


@pytest.fixture
def sim():
    s = Simulation()
    s.spawn('barge', [5000.0, 0.0])
    return s


# =============================================================================
# Test Context
# =============================================================================

class TestContext:

    def test_defaults(self):
        context = SimulationContext()
        assert context.central_body is BARGE_PLANET
        assert context.dt == 0.02

    @pytest.mark.parametrize("dt", [0.0, -0.1, np.nan])
    def test_bad_dt(self, dt):
        with pytest.raises(ValueError):
            SimulationContext(dt=dt)

    def test_separate_event_channels(self):
        assert SimulationContext().events is not SimulationContext().events


# =============================================================================
# Test Entities
# =============================================================================

class TestEntities:

    def test_spawn(self, sim):
        driver = sim['barge']
        assert isinstance(driver, OrbitalRigidbody)
        assert driver.body.name == 'barge'
        assert driver.body.events is sim.events
        assert len(sim) == 1

    def test_duplicate_name(self, sim):
        with pytest.raises(ValueError):
            sim.spawn('barge', [6000.0, 0.0])

    def test_unknown_name(self, sim):
        with pytest.raises(KeyError):
            sim['tug']
        with pytest.raises(KeyError):
            sim.report_collision('tug', Collision([]))

    def test_remove(self, sim):
        sim.remove('barge')
        assert 'barge' not in sim
        sim.step()

    def test_add_prebuilt(self):
        sim = Simulation()
        body = OrbitalBody([6000.0, 0.0], events=sim.events)
        driver = OrbitalRigidbody(body, Rigidbody2D([0.0, 0.0]))
        sim.add('custom', driver)
        sim.step()
        assert np.allclose(np.linalg.norm(driver.rigidbody.position), 6000.0)

    def test_add_wrong_type(self, sim):
        with pytest.raises(TypeError):
            sim.add('other', object())


# =============================================================================
# Test Loop
# =============================================================================

class TestLoop:

    def test_time_advances(self, sim):
        sim.run(50)
        assert sim.steps == 50
        assert sim.time == pytest.approx(1.0)

    def test_negative_steps(self, sim):
        with pytest.raises(ValueError):
            sim.run(-1)

    def test_follow_orbit_stays_on_circle(self, sim):
        sim.run(500)
        rb = sim['barge'].rigidbody
        assert np.isclose(np.linalg.norm(rb.position), 5000.0, rtol=1e-9)
        assert np.isclose(np.linalg.norm(rb.velocity), 50.0, rtol=1e-9)

    def test_follow_orbit_matches_analytic(self, sim):
        sim.run(100)
        # position after the last step is where the orbit was at the last tick time
        last_tick = sim.time - sim.context.dt
        expected, _ = sim['barge'].body.elements.to_cartesian(last_tick)
        assert np.allclose(sim['barge'].rigidbody.position, expected, atol=1e-6)

    def test_forces_stays_near_orbit(self):
        sim = Simulation()
        sim.spawn('barge', [5000.0, 0.0], method=UpdateMethod.FORCES, mass=3.0)
        sim.run(500)
        rb = sim['barge'].rigidbody
        assert np.isclose(np.linalg.norm(rb.position), 5000.0, rtol=1e-3)
        assert np.isclose(np.linalg.norm(rb.velocity), 50.0, rtol=1e-3)

    def test_other_central_body(self):
        context = SimulationContext(central_body=EARTH,
                                    limits=OrbitLimits(6500.0, 50000.0), dt=1.0)
        sim = Simulation(context)
        sim.spawn('sat', [7000.0, 0.0])
        sim.run(60)
        rb = sim['sat'].rigidbody
        assert np.isclose(np.linalg.norm(rb.position), 7000.0, rtol=1e-9)

    def test_forces_body_at_rest(self, sim):
        """A rigid body with no velocity falls straight in without faulting."""
        rock = sim.spawn('rock', [4000.0, 0.0], method=UpdateMethod.FORCES)
        rock.rigidbody.velocity = np.zeros(2)
        sim.run(5)

        assert np.all(np.isfinite(rock.rigidbody.position))
        assert np.all(np.isfinite(rock.rigidbody.velocity))
        assert rock.rigidbody.velocity[0] < 0
        assert np.linalg.norm(rock.rigidbody.position) < 4000.0

    def test_degenerate_orbit_does_not_stop_loop(self, sim):
        sim.step()
        sim['barge'].body.set_orbit(sim.time, [5000.0, 0.0], [0.0, 0.0])
        sim.run(3)
        assert np.all(np.isfinite(sim['barge'].rigidbody.position))


# =============================================================================
# Test Collisions
# =============================================================================

class TestCollisions:

    def test_planet_hit_fails_mission(self, sim):
        sim.report_collision('barge', Collision([], tag='Planet'))
        sim.step()
        assert sim.failed
        assert sim.events.count(GameEvent.MISSION_FAILED) == 1

    def test_enter_then_stay(self, sim):
        for _ in range(3):
            sim.report_collision('barge', Collision([], tag='Planet'))
            sim.step()
        # continued contact is dispatched as stay
        assert sim.events.count(GameEvent.MISSION_FAILED) == 1

        sim.step()
        sim.report_collision('barge', Collision([], tag='Planet'))
        sim.step()
        assert sim.events.count(GameEvent.MISSION_FAILED) == 2

    def test_collision_changes_orbit(self, sim):
        sim.run(1)
        ra = sim['barge'].body.elements.ra
        sim.report_collision('barge', Collision([Contact(1.0, (0.0, 1.0), 'Player')],
                                                tag='Player'))
        sim.step()
        assert sim['barge'].body.elements.ra > ra
        assert not sim.failed

    def test_pending_cleared(self, sim):
        sim.report_collision('barge', Collision([Contact(1.0, (0.0, 1.0))]))
        sim.step()
        oe = sim['barge'].body.elements
        before = (oe.a, oe.e, oe.omega, oe.epoch)
        sim.step()
        assert (oe.a, oe.e, oe.omega, oe.epoch) == before


# =============================================================================
# Test Telemetry
# =============================================================================

class TestTelemetry:

    def test_dataframe(self, sim):
        sim.spawn('tug', [6000.0, 0.0])
        sim.run(10)
        df = sim.to_dataframe()

        assert isinstance(df, pd.DataFrame)
        assert len(df) == 20
        for column in ['time', 'entity', 'x', 'y', 'vx', 'vy', 'a', 'e', 'rp', 'ra', 'rotation']:
            assert column in df.columns

    def test_filter_by_entity(self, sim):
        sim.spawn('tug', [6000.0, 0.0])
        sim.run(10)
        df = sim.to_dataframe('tug')

        assert len(df) == 10
        assert (df['entity'] == 'tug').all()
        assert np.allclose(np.hypot(df['x'], df['y']), 6000.0)
        assert np.allclose(np.diff(df['time']), 0.02)

    def test_no_telemetry(self):
        sim = Simulation(record=False)
        sim.spawn('barge', [5000.0, 0.0])
        sim.run(5)
        assert sim.to_dataframe().empty
