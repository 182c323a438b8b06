"""
Unit tests for npcevo.phenotype.body module.
"""

import pytest
import numpy as np

from npcevo.phenotype import Body, BodyState, KinematicBody
from npcevo.run.config import Config


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def config():
    """Default configuration: 60x60 arena, move speed 5, rotation speed 120."""
    return Config()

@pytest.fixture
def body(config):
    return KinematicBody(config)


# ============================================================================
# Test Body Interface
# ============================================================================

class TestBodyInterface:
    """Test the abstract Body class."""

    def test_cannot_instantiate_abstract_body(self):
        with pytest.raises(TypeError):
            Body()

    def test_position_and_heading_come_from_state(self):
        """Test the default position/heading properties."""
        class StaticBody(Body):
            def sense(self):
                return np.zeros(1)
            def actuate(self, outputs, dt):
                pass
            def reset(self, position, heading=0.0):
                pass
            def state(self):
                return BodyState((3.0, 4.0), 15.0, 0.0)

        static = StaticBody()
        assert static.position == (3.0, 4.0)
        assert static.heading == 15.0
        assert static.noise_scale == 0.0


# ============================================================================
# Test KinematicBody Sensing
# ============================================================================

class TestKinematicBodySense:
    """Test KinematicBody.sense method."""

    def test_input_vector_shape(self, body):
        """Test that there are seven rays plus a constant input."""
        inputs = body.sense()
        assert inputs.shape == (KinematicBody.NUM_INPUTS,)
        assert inputs[-1] == 1.0

    def test_far_walls_read_one(self, body):
        """Test that walls beyond the sensor length read 1."""
        np.testing.assert_array_equal(body.sense(), np.ones(8))

    def test_near_wall(self, config):
        """Test that a wall 5 units ahead reads 0.5 on the forward ray."""
        body   = KinematicBody(config, position=(25.0, 0.0), heading=0.0)
        inputs = body.sense()

        forward = KinematicBody.RAY_ANGLES.index(0.0)
        assert inputs[forward] == pytest.approx(0.5)
        assert inputs[0] == 1.0          # ray pointing along -y, wall 30 away


# ============================================================================
# Test KinematicBody Actuation
# ============================================================================

class TestKinematicBodyActuate:
    """Test KinematicBody.actuate method."""

    def test_forward_motion(self, body):
        """Test that speed = clip(out0 + 0.3, 0, 1) * move_speed."""
        body.actuate([0.2, 0.0, 0.0, 0.0], 1.0)
        state = body.state()

        assert state.speed == pytest.approx(2.5)
        assert state.position == pytest.approx((2.5, 0.0))

    def test_full_drive_is_clipped(self, body):
        body.actuate([1.0, 0.0, 0.0, 0.0], 1.0)
        assert body.state().speed == pytest.approx(5.0)

    def test_no_drive_no_motion(self, body):
        body.actuate([-1.0, 0.0, 0.0, 0.0], 1.0)
        state = body.state()

        assert state.speed == 0.0
        assert state.position == (0.0, 0.0)

    def test_slow_drive_raised_to_min_speed(self, body, config):
        body.actuate([-0.25, 0.0, 0.0, 0.0], 1.0)
        assert body.state().speed == pytest.approx(config.min_speed)

    def test_turning(self, body):
        """Test that heading changes by (out1 - out2) * rotation_speed * dt."""
        body.actuate([-1.0, 0.5, 0.0, 0.0], 1.0)
        assert body.heading == pytest.approx(60.0)

        body.actuate([-1.0, 0.0, 1.0, 0.0], 1.0)
        assert body.heading == pytest.approx(300.0)

    def test_jump_with_cooldown_and_energy(self, body, config):
        """Test that a jump costs energy and cannot be repeated within the cooldown."""
        body.actuate([-1.0, 0.0, 0.0, 0.9], 0.1)
        assert body.state().jumped is True
        assert body.energy == pytest.approx(KinematicBody.MAX_ENERGY - config.jump_energy_cost)

        body.actuate([-1.0, 0.0, 0.0, 0.9], 0.1)
        assert body.state().jumped is False

    def test_no_jump_without_energy(self, body):
        body.energy = 1.0
        body.actuate([-1.0, 0.0, 0.0, 0.9], 0.1)
        assert body.state().jumped is False

    def test_no_jump_below_threshold(self, body):
        body.actuate([-1.0, 0.0, 0.0, 0.4], 0.1)
        assert body.state().jumped is False

    def test_leaving_the_arena_is_a_hazard(self, config):
        body = KinematicBody(config, position=(29.5, 0.0), heading=0.0)
        body.actuate([1.0, 0.0, 0.0, 0.0], 1.0)
        assert body.state().hazard_contact is True

    def test_inside_the_arena_is_safe(self, body):
        body.actuate([1.0, 0.0, 0.0, 0.0], 1.0)
        assert body.state().hazard_contact is False

    def test_noise_pushes_forward(self, body, config):
        """Test that exploration noise adds at most 0.5 to the forward drive."""
        body.noise_scale = 1.0
        for _ in range(20):
            body.actuate([-0.3, 0.0, 0.0, 0.0], 0.01)
            assert 0.0 <= body.state().speed <= 0.5 * config.move_speed + 1e-9

    def test_reset(self, body):
        """Test that reset() restores pose, speed and energy."""
        body.actuate([1.0, 0.5, 0.0, 0.9], 1.0)
        body.reset((1.0, 2.0), 90.0)
        state = body.state()

        assert state.position == (1.0, 2.0)
        assert state.heading == 90.0
        assert state.speed == 0.0
        assert state.jumped is False
        assert body.energy == KinematicBody.MAX_ENERGY
