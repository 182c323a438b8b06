"""
Body Module

This module defines the capability interface through which an agent perceives and
acts on its world, and a simple planar implementation of it.

Physics engines, renderers or robots plug into the evolutionary core by
implementing 'Body'; the core never depends on how inputs are sensed or how
outputs are turned into motion.

Classes:
    BodyState:     Kinematic state of a body after a simulation step
    Body:          Abstract sensing/actuation interface
    KinematicBody: Planar point body moving inside a rectangular arena
"""

import math
import numpy as np
from abc    import ABC, abstractmethod
from typing import NamedTuple, Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from npcevo.run.config import Config

class BodyState(NamedTuple):
    """
    What the fitness model needs to know about a body after one step.
    """
    position      : tuple[float, float]
    heading       : float               # degrees
    speed         : float
    hazard_contact: bool  = False
    jumped        : bool  = False

class Body(ABC):
    """
    Abstract base class for the physical side of an agent.

    Subclasses must implement:
    - sense():                produce the input vector of the agent's genome
    - actuate(outputs, dt):   apply the genome's output vector for one step
    - reset(position, heading): move the body back to a given pose, at rest
    - state():                report the kinematic state after the last step

    'noise_scale' is set by the driver every generation; bodies that support
    exploration noise scale it by this factor, others ignore it.
    """

    noise_scale: float = 0.0

    @abstractmethod
    def sense(self) -> np.ndarray:
        pass

    @abstractmethod
    def actuate(self, outputs: Sequence[float], dt: float):
        pass

    @abstractmethod
    def reset(self, position: Sequence[float], heading: float = 0.0):
        pass

    @abstractmethod
    def state(self) -> BodyState:
        pass

    @property
    def position(self) -> tuple[float, float]:
        return self.state().position

    @property
    def heading(self) -> float:
        return self.state().heading

class KinematicBody(Body):
    """
    A point body moving on a plane, inside an axis-aligned rectangular arena.

    Sensing: seven rays fanned around the heading measure the distance to the arena
    walls (normalized by the sensor length and clipped to 1); an eighth input is the
    constant 1.

    Actuation, from the four genome outputs (forward, left, right, jump):
        speed = clip(out[0] + 0.3 + noise, 0, 1) * move_speed   (at least min_speed if moving)
        turn  = (out[1] - out[2]) * rotation_speed             (degrees per second)
        jump when out[3] > 0.5, off cooldown, and with enough energy

    'noise_scale' adds Uniform(0, 0.5) * noise_scale to the forward drive, to push
    early generations into moving. Leaving the arena counts as a hazard contact.
    """

    RAY_ANGLES   = (-90.0, -45.0, -20.0, 0.0, 20.0, 45.0, 90.0)
    NUM_INPUTS   = len(RAY_ANGLES) + 1
    MAX_ENERGY   = 100.0
    FORWARD_PUSH = 0.3
    JUMP_OUTPUT_THRESHOLD = 0.5

    def __init__(self,
                 config  : 'Config',
                 position: Sequence[float] | None = None,
                 heading : float | None = None):
        """
        Parameters:
            config:   stores configuration parameters (arena, speeds, jump)
            position: initial position; defaults to the configured spawn point
            heading:  initial heading in degrees; defaults to the configured spawn heading
        """
        self._config : 'Config' = config
        self.energy  : float = self.MAX_ENERGY

        if position is None:
            position = (config.spawn_x, config.spawn_y)
        if heading is None:
            heading = config.spawn_heading
        self.reset(position, heading)

    def reset(self, position: Sequence[float], heading: float = 0.0):
        self._position      : np.ndarray = np.array(position, dtype=float)
        self._heading       : float = float(heading)
        self._speed         : float = 0.0
        self._hazard_contact: bool  = False
        self._jumped        : bool  = False
        self._jump_timer    : float = self._config.jump_cooldown   # ready to jump
        self.energy = self.MAX_ENERGY

    def sense(self) -> np.ndarray:
        inputs = np.empty(self.NUM_INPUTS, dtype=float)
        for i, offset in enumerate(self.RAY_ANGLES):
            distance  = self._ray_to_wall(self._heading + offset)
            inputs[i] = min(distance / self._config.sensor_length, 1.0)
        inputs[-1] = 1.0
        return inputs

    def actuate(self, outputs: Sequence[float], dt: float):
        config = self._config

        noise = np.random.uniform(0.0, 0.5) * self.noise_scale if self.noise_scale > 0 else 0.0
        drive = min(max(outputs[0] + self.FORWARD_PUSH + noise, 0.0), 1.0)
        speed = drive * config.move_speed
        if speed > 0:
            speed = max(speed, config.min_speed)

        self._heading = (self._heading + (outputs[1] - outputs[2]) * config.rotation_speed * dt) % 360.0
        radians = math.radians(self._heading)
        self._position = self._position + speed * dt * np.array([math.cos(radians), math.sin(radians)])
        self._speed    = speed

        self.energy = min(self.energy + config.energy_recovery * dt, self.MAX_ENERGY)
        self._jump_timer += dt
        self._jumped = False
        if len(outputs) > 3 and outputs[3] > self.JUMP_OUTPUT_THRESHOLD:
            if self._jump_timer > config.jump_cooldown and self.energy >= config.jump_energy_cost:
                self.energy     -= config.jump_energy_cost
                self._jump_timer = 0.0
                self._jumped     = True

        half_w = config.arena_width / 2
        half_h = config.arena_height / 2
        self._hazard_contact = not (-half_w <= self._position[0] <= half_w and
                                    -half_h <= self._position[1] <= half_h)

    def state(self) -> BodyState:
        return BodyState((float(self._position[0]), float(self._position[1])),
                         self._heading, self._speed, self._hazard_contact, self._jumped)

    def _ray_to_wall(self, angle: float) -> float:
        """
        Distance from the body to the arena boundary along a ray (infinite if the
        ray never hits it, which only happens from outside the arena).
        """
        half_w = self._config.arena_width / 2
        half_h = self._config.arena_height / 2
        radians = math.radians(angle)
        dx, dy  = math.cos(radians), math.sin(radians)
        x, y    = self._position

        distances = []
        if dx > 1e-12:
            distances.append((half_w - x) / dx)
        elif dx < -1e-12:
            distances.append((-half_w - x) / dx)
        if dy > 1e-12:
            distances.append((half_h - y) / dy)
        elif dy < -1e-12:
            distances.append((-half_h - y) / dy)

        distances = [d for d in distances if d >= 0]
        return min(distances) if distances else math.inf
