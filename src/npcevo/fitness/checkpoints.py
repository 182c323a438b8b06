"""
Checkpoint System Module

This module implements the CheckpointSystem class, which rewards agents the first
time they come close to each of a list of waypoints.

Classes:
    CheckpointSystem: Per-agent registry of reached checkpoints and their rewards
"""

import logging
import threading
import numpy as np
from typing import Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from npcevo.phenotype import Agent
    from npcevo.run.config import Config

logger = logging.getLogger(__name__)

class CheckpointSystem:
    """
    Rewards each agent once per checkpoint reached.

    A checkpoint is reached when the agent comes within 'radius' of it. The first
    time an agent reaches checkpoint i it earns 'reward', plus 'order_bonus * reward'
    if it had already reached checkpoint i-1. The registry of reached checkpoints
    is kept per agent and never shared between agents.

    The system is handed explicitly to the objects that need it. Claims are
    serialized by a lock, so agents can be stepped from several threads and
    still each claim is granted exactly once.

    Public Attributes:
        positions:   Checkpoint positions, in order
        radius:      Distance within which a checkpoint counts as reached
        reward:      Reward for a newly reached checkpoint
        order_bonus: Extra reward factor for reaching checkpoints in order

    Public Methods:
        register_agent(agent):          Start tracking an agent
        unregister_agent(agent):        Stop tracking an agent
        reset_for_agent(agent):         Forget the checkpoints reached by an agent
        query_checkpoint_reward(agent): Reward earned at the agent's current position
        reached(agent):                 Indices of the checkpoints reached by an agent
    """

    def __init__(self,
                 positions  : Sequence[Sequence[float]],
                 radius     : float = 3.0,
                 reward     : float = 20.0,
                 order_bonus: float = 0.5):
        self.positions  : list[np.ndarray] = [np.array(p, dtype=float) for p in positions]
        self.radius     : float = radius
        self.reward     : float = reward
        self.order_bonus: float = order_bonus

        self._reached: dict[int, set[int]] = {}   # agent ID => indices of reached checkpoints
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, positions: Sequence[Sequence[float]], config: 'Config') -> 'CheckpointSystem':
        return cls(positions,
                   radius=config.checkpoint_radius,
                   reward=config.checkpoint_reward,
                   order_bonus=config.order_bonus_factor)

    def register_agent(self, agent: 'Agent'):
        with self._lock:
            self._reached.setdefault(agent.ID, set())

    def unregister_agent(self, agent: 'Agent'):
        with self._lock:
            self._reached.pop(agent.ID, None)

    def reset_for_agent(self, agent: 'Agent'):
        with self._lock:
            self._reached[agent.ID] = set()

    def is_registered(self, agent: 'Agent') -> bool:
        with self._lock:
            return agent.ID in self._reached

    def reached(self, agent: 'Agent') -> frozenset[int]:
        with self._lock:
            return frozenset(self._reached.get(agent.ID, ()))

    def query_checkpoint_reward(self, agent: 'Agent') -> float:
        """
        Claim the rewards for every checkpoint the agent is reaching for the first time.

        Agents that were never registered are registered on the fly.

        Parameters:
            agent: the agent whose current position is tested

        Returns:
            The total reward claimed by this call (0 if nothing new was reached)
        """
        position = np.asarray(agent.position, dtype=float)
        reward   = 0.0

        with self._lock:
            reached = self._reached.setdefault(agent.ID, set())
            for i, checkpoint in enumerate(self.positions):
                if i in reached:
                    continue
                if np.linalg.norm(position - checkpoint[:len(position)]) >= self.radius:
                    continue

                reached.add(i)
                reward += self.reward
                if i > 0 and (i - 1) in reached:
                    reward += self.reward * self.order_bonus
                logger.debug("Agent %d reached checkpoint %d", agent.ID, i)

        return reward

    def __len__(self):
        return len(self.positions)
