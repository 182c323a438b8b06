"""
Fitness Model Module

This module implements the FitnessModel class, which updates an agent's telemetry
and fitness once per simulation step, and decides when an agent stops being alive.

Classes:
    FitnessBreakdown: The terms of one fitness computation
    FitnessModel:     Per-step telemetry update, fitness shaping and termination
"""

import logging
import math
import numpy as np
from typing import NamedTuple, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from npcevo.fitness.checkpoints import CheckpointSystem
    from npcevo.phenotype import Agent, BodyState
    from npcevo.run.config import Config

logger = logging.getLogger(__name__)

# Weights of the reward terms
DISTANCE_WEIGHT     = 0.5
DISPLACEMENT_WEIGHT = 0.3
JUMP_REWARD         = 5.0

# Time penalty: grows with time alive, up to a cap
TIME_PENALTY_RATE = 0.1
MAX_TIME_PENALTY  = 10.0

class FitnessBreakdown(NamedTuple):
    """
    The terms entering one fitness computation.
    'reward' already includes 'exploration_reward' and 'checkpoint_bonus'.
    """
    reward            : float
    exploration_reward: float
    checkpoint_bonus  : float
    time_penalty      : float
    repetitive_penalty: float
    fitness           : float

def grid_cell(position, grid_size: float) -> tuple[int, int]:
    """
    The exploration grid cell containing a planar position.
    """
    return (math.floor(position[0] / grid_size), math.floor(position[1] / grid_size))

def heading_delta(previous: float, current: float) -> float:
    """
    Shortest signed difference between two headings, in degrees, within [-180, 180).
    """
    return (current - previous + 180.0) % 360.0 - 180.0

class FitnessModel:
    """
    Shapes the fitness of agents from their telemetry.

    The fitness rewards distance travelled, exploration of new grid cells,
    displacement from the spawn point, jumps and checkpoints, and penalizes time
    alive (up to a cap) and looping behaviour:

        reward  = 0.5 * total_distance + exploration_bonus * unique_areas_visited
                + 0.3 * distance_from_start + 5 * successful_jumps + checkpoint_bonus
        fitness = max(0, reward - min(0.1 * time_alive, 10) - loop_penalty * consecutive_circles)

    The fitness is recomputed from scratch at every step; it is never a running sum.

    An agent is terminated when it stays below 'min_speed' for more than
    'max_idle_time' seconds, when it touches a hazard while not immune, or when
    it completes 'max_consecutive_circles' loops in a row. Termination leaves
    the fitness unchanged.

    The model holds no per-agent state, so one instance serves the whole population.

    Public Methods:
        step(agent, state, dt): Advance an agent's telemetry and fitness by one step
        compute_fitness(agent, checkpoint_bonus): Recompute the fitness from telemetry
    """

    def __init__(self, config: 'Config', checkpoints: Optional['CheckpointSystem'] = None):
        """
        Parameters:
            config:      stores configuration parameters
            checkpoints: the collaborator granting checkpoint rewards (optional)
        """
        self._config     : 'Config' = config
        self._checkpoints: Optional['CheckpointSystem'] = checkpoints

    def step(self, agent: 'Agent', state: 'BodyState', dt: float) -> Optional[FitnessBreakdown]:
        """
        Update the telemetry and fitness of an agent after one simulation step.

        Parameters:
            agent: the agent to update
            state: kinematic state of the agent's body after the step
            dt:    length of the step, in seconds

        Returns:
            The fitness terms computed in this step, or None if the agent was already dead
        """
        if not agent.alive:
            return None

        telemetry = agent.telemetry
        position  = np.asarray(state.position, dtype=float)

        telemetry.time_alive += dt
        if telemetry.immunity_remaining > 0:
            telemetry.immunity_remaining = max(0.0, telemetry.immunity_remaining - dt)

        # Distance travelled since the previous step
        telemetry.total_distance += float(np.linalg.norm(position - telemetry.last_position))
        telemetry.last_position   = position.copy()

        if state.jumped:
            telemetry.successful_jumps += 1

        self._check_looping(agent, position, dt)
        self._track_rotation(agent, state.heading)
        self._track_exploration(agent, position)

        checkpoint_bonus = 0.0
        if self._checkpoints is not None:
            checkpoint_bonus = self._checkpoints.query_checkpoint_reward(agent)
            telemetry.checkpoint_rewards += checkpoint_bonus
        if self._config.accumulate_checkpoint_rewards:
            checkpoint_bonus = telemetry.checkpoint_rewards

        breakdown = self.compute_fitness(agent, checkpoint_bonus)
        agent.fitness = breakdown.fitness

        self._check_idle(agent, state.speed, dt)
        if state.hazard_contact and telemetry.immunity_remaining <= 0:
            agent.kill("hazard")

        return breakdown

    def compute_fitness(self, agent: 'Agent', checkpoint_bonus: float = 0.0) -> FitnessBreakdown:
        """
        Compute the fitness of an agent from its current telemetry.
        The result is never negative nor NaN.
        """
        telemetry = agent.telemetry
        config    = self._config

        exploration_reward = config.exploration_bonus * telemetry.unique_areas_visited
        reward = (DISTANCE_WEIGHT * telemetry.total_distance
                  + exploration_reward
                  + DISPLACEMENT_WEIGHT * telemetry.distance_from_start
                  + JUMP_REWARD * telemetry.successful_jumps
                  + checkpoint_bonus)

        time_penalty       = min(TIME_PENALTY_RATE * telemetry.time_alive, MAX_TIME_PENALTY)
        repetitive_penalty = config.loop_penalty * telemetry.consecutive_circles

        fitness = reward - time_penalty - repetitive_penalty
        if math.isnan(fitness) or fitness < 0:
            fitness = 0.0

        return FitnessBreakdown(reward, exploration_reward, checkpoint_bonus,
                                time_penalty, repetitive_penalty, fitness)

    def _check_looping(self, agent: 'Agent', position: np.ndarray, dt: float):
        """
        Every 'checkpoint_interval' seconds, count a circle if the agent moved
        less than 'min_checkpoint_distance' since the previous check.
        """
        telemetry = agent.telemetry
        config    = self._config

        telemetry.time_since_loop_check += dt
        if telemetry.time_since_loop_check < config.checkpoint_interval:
            return

        displacement = float(np.linalg.norm(position - telemetry.loop_check_position))
        if displacement < config.min_checkpoint_distance:
            telemetry.consecutive_circles += 1
            if 0 < config.max_consecutive_circles <= telemetry.consecutive_circles:
                agent.kill("looping")
        else:
            telemetry.consecutive_circles = 0

        telemetry.record_loop_check(position)

    def _track_rotation(self, agent: 'Agent', heading: float):
        # Only feeds Telemetry.rotation_ratio; the fitness does not use it.
        telemetry = agent.telemetry
        telemetry.total_rotation += abs(heading_delta(telemetry.last_heading, heading))
        telemetry.last_heading    = float(heading)

    def _track_exploration(self, agent: 'Agent', position: np.ndarray):
        telemetry = agent.telemetry

        cell = grid_cell(position, self._config.grid_size)
        if cell not in telemetry.visited_cells:
            telemetry.visited_cells.add(cell)
            telemetry.unique_areas_visited += 1

        telemetry.distance_from_start = float(np.linalg.norm(position - telemetry.start_position))

    def _check_idle(self, agent: 'Agent', speed: float, dt: float):
        telemetry = agent.telemetry
        if speed < self._config.min_speed:
            telemetry.idle_time += dt
            if telemetry.idle_time > self._config.max_idle_time:
                agent.kill("idle")
        else:
            telemetry.idle_time = 0.0
