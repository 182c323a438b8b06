"""
Agent Module

This module implements the Agent class, a member of the evolving population:
a genome deciding the actions, the telemetry scoring them, and optionally the
body carrying them out.

Classes:
    AgentType: The two behavioural roles of the population
    Agent:     An evolving agent with genome, telemetry, fitness and body
"""

import logging
from enum      import Enum
from itertools import count
from typing    import Optional, Sequence, TYPE_CHECKING

import numpy as np

from npcevo.fitness.telemetry import Telemetry

if TYPE_CHECKING:
    from npcevo.fitness.checkpoints import CheckpointSystem
    from npcevo.genotype            import Genome
    from npcevo.phenotype.body      import Body

logger = logging.getLogger(__name__)

class AgentType(Enum):
    FRIENDLY = "F"
    HOSTILE  = "H"

class Agent:
    """
    An agent of the evolving population.

    The agent wraps a Genome, to which it adds a unique ID, a type, a fitness,
    a liveness flag and the Telemetry from which the fitness is computed.
    It knows nothing about the world it lives in: sensing and actuation are
    delegated to an optional Body adapter.

    Public Attributes:
        ID:           Globally unique identifier for this agent
        type:         FRIENDLY or HOSTILE
        genome:       The network controlling this agent
        fitness:      Fitness score, never negative
        alive:        Whether the agent still acts in the current generation
        death_reason: Why the agent stopped acting (None while alive)
        telemetry:    Measurements over the current generation
        body:         The Body adapter (None for a headless agent)

    Public Methods:
        think(inputs):               Run the genome on an input vector
        sense_inputs():              Read the input vector from the body
        apply_outputs(outputs, dt):  Hand an output vector to the body
        is_terminal():               Whether the agent has stopped acting
        kill(reason):                Stop the agent for the rest of the generation
        reset(...):                  Prepare the agent for a new generation
        release():                   Detach the agent from the checkpoint system
    """

    _id_generator = count(0)

    def __init__(self,
                 genome        : 'Genome',
                 agent_type    : AgentType,
                 checkpoints   : Optional['CheckpointSystem'] = None,
                 body          : Optional['Body'] = None,
                 spawn_position: Sequence[float] = (0.0, 0.0),
                 spawn_heading : float = 0.0):
        """
        Parameters:
            genome:         The Genome controlling this agent
            agent_type:     FRIENDLY or HOSTILE
            checkpoints:    The checkpoint system to register with (optional)
            body:           The Body adapter (optional)
            spawn_position: Where the agent starts
            spawn_heading:  Initial heading, in degrees
        """
        self.ID          : int        = next(Agent._id_generator)   # unique ID
        self.type        : AgentType  = agent_type
        self.genome      : 'Genome'   = genome
        self.fitness     : float      = 0.0
        self.alive       : bool       = True
        self.death_reason: Optional[str] = None
        self.body        : Optional['Body'] = body
        self.telemetry   : Telemetry  = Telemetry(spawn_position, spawn_heading)

        self._checkpoints: Optional['CheckpointSystem'] = checkpoints
        if checkpoints is not None:
            checkpoints.register_agent(self)

    @property
    def position(self) -> tuple[float, float]:
        if self.body is not None:
            return self.body.position
        x, y = self.telemetry.last_position
        return (float(x), float(y))

    @property
    def heading(self) -> float:
        if self.body is not None:
            return self.body.heading
        return self.telemetry.last_heading

    def think(self, inputs: Sequence[float]) -> np.ndarray:
        return self.genome.feed_forward(inputs)

    def sense_inputs(self) -> np.ndarray:
        if self.body is None:
            raise RuntimeError(f"Agent {self.ID} has no body to sense with")
        return self.body.sense()

    def apply_outputs(self, outputs: Sequence[float], dt: float):
        if self.body is None:
            raise RuntimeError(f"Agent {self.ID} has no body to act with")
        self.body.actuate(outputs, dt)

    def is_terminal(self) -> bool:
        return not self.alive

    def kill(self, reason: str):
        """
        Stop the agent until the next generation. The fitness is left untouched.
        """
        if not self.alive:
            return
        self.alive        = False
        self.death_reason = reason
        logger.debug("Agent %d (%s) terminated: %s, fitness=%.3f",
                     self.ID, self.type.value, reason, self.fitness)

    def reset(self,
              spawn_position: Sequence[float],
              spawn_heading : float = 0.0,
              keep_position : bool  = False,
              immunity      : float = 0.0):
        """
        Prepare the agent for a new generation.

        The fitness and telemetry are reset, the agent is brought back to life
        and its checkpoint history is cleared.

        Parameters:
            spawn_position: where the body is respawned
            spawn_heading:  heading after respawn, in degrees
            keep_position:  continue from the current position instead of respawning;
                            the cells visited so far are kept
            immunity:       seconds during which hazard contacts are ignored
        """
        self.fitness      = 0.0
        self.alive        = True
        self.death_reason = None

        if keep_position:
            position, heading = self.position, self.heading
            self.telemetry.reset_keeping_position(position, heading)
        else:
            position, heading = spawn_position, spawn_heading
            self.telemetry.reset(position, heading)

        if self.body is not None:
            self.body.reset(position, heading)
        self.telemetry.immunity_remaining = immunity

        if self._checkpoints is not None:
            self._checkpoints.reset_for_agent(self)

    def release(self):
        """
        Detach the agent from the checkpoint system; used when it leaves the population.
        """
        if self._checkpoints is not None:
            self._checkpoints.unregister_agent(self)

    def __str__(self):
        return f"ID={self.ID}, type={self.type.value}, fitness={self.fitness:.4f}, alive={self.alive}"

    def __repr__(self):
        return f"Agent(genome={repr(self.genome)}, agent_type={self.type})"
