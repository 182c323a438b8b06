"""
Population Manager Module

This module implements the PopulationManager class, the top-level orchestrator of
the genetic algorithm. It owns the agents and drives the generation lifecycle:
evaluation, selection (elitism plus tournament), reproduction by crossover,
mutation and reset.

Classes:
    Phase:             Lifecycle phase of the current generation
    GenerationStats:   Fitness summary of a completed generation
    PopulationManager: Owns the agents and advances generations
"""

import logging
import numpy as np
from enum   import Enum
from typing import Callable, NamedTuple, Optional, TYPE_CHECKING

from npcevo.genotype        import Genome
from npcevo.phenotype       import Agent, AgentType
from npcevo.pool.selection  import tournament_select
from npcevo.pool.snapshot   import AgentRecord, PopulationSnapshot

if TYPE_CHECKING:
    from npcevo.fitness   import CheckpointSystem
    from npcevo.phenotype import Body
    from npcevo.run.config import Config

logger = logging.getLogger(__name__)

# Reasons for advancing to the next generation
ADVANCE_ALL_DEAD   = "all_dead"
ADVANCE_TIME_LIMIT = "time_limit"
ADVANCE_FORCED     = "forced"

class Phase(Enum):
    RUNNING    = "running"
    EVALUATING = "evaluating"
    SELECTING  = "selecting"
    MUTATING   = "mutating"
    RESETTING  = "resetting"

class GenerationStats(NamedTuple):
    generation     : int
    best_fitness   : float
    average_fitness: float
    worst_fitness  : float
    friendly_count : int
    hostile_count  : int
    reason         : Optional[str] = None

class PopulationManager:
    """
    A fixed-size population of Friendly and Hostile agents, evolving by generations.

    Every generation runs until all agents are dead or the generation time limit
    has elapsed. The population then goes through its lifecycle:

        RUNNING -> EVALUATING -> SELECTING -> MUTATING -> RESETTING -> RUNNING (generation + 1)

    Each of the two sub-populations (Friendly, Hostile) reproduces on its own: the
    best agent of each is carried forward unchanged, the remaining slots are filled
    hostile-first with children of two tournament winners from the matching pool.
    The number of hostile agents is 'round(population_size * hostile_ratio)'.

    Public Attributes:
        agents:                The current agents, in order
        generation:            Current generation number, starting at 1
        elapsed_in_generation: Seconds elapsed in the current generation
        paused:                While True, tick() does nothing
        phase:                 Current lifecycle phase
        history:               GenerationStats of every evaluated generation

    Public Methods:
        tick(dt):                 Advance the generation clock, and the generation if needed
        advance_generation(reason): Run the full lifecycle once
        force_next_generation():  Advance now, whatever the state of the agents
        evaluate(reason):         Fitness summary of the current agents
        select():                 The next generation, before mutation
        mutate_all():             Mutate every genome
        reset_all():              Prepare every agent for a new generation
        pause(), resume(), restart()
        set_behavior_lock(index, locked, agent_type): Lock an output on matching genomes
        lock_status():            Lock mask of the first agent
        fittest_agent(agent_type): The agent with the highest fitness
        snapshot(max_networks):   Save the fittest agents
        restore(snapshot):        Rebuild the population from a snapshot
    """

    def __init__(self,
                 config      : 'Config',
                 checkpoints : Optional['CheckpointSystem'] = None,
                 body_factory: Optional[Callable[[AgentType], 'Body']] = None):
        """
        Create the initial population; hostile agents come first.

        Parameters:
            config:       stores configuration parameters
            checkpoints:  checkpoint system the agents register with (optional)
            body_factory: builds the Body of a new agent of the given type (optional)
        """
        self._config      : 'Config' = config
        self._checkpoints : Optional['CheckpointSystem'] = checkpoints
        self._body_factory: Optional[Callable[[AgentType], 'Body']] = body_factory

        self.generation           : int   = 1
        self.elapsed_in_generation: float = 0.0
        self.paused               : bool  = False
        self.phase                : Phase = Phase.RUNNING
        self.history              : list[GenerationStats] = []

        self.agents: list[Agent] = self._create_agents()

    @property
    def population_size(self) -> int:
        return self._config.population_size

    @property
    def hostile_count(self) -> int:
        """
        Target number of hostile agents; halves round to even (2.5 -> 2, 3.5 -> 4).
        """
        return round(self.population_size * self._config.hostile_ratio)

    @property
    def friendly_count(self) -> int:
        return self.population_size - self.hostile_count

    @property
    def spawn_position(self) -> tuple[float, float]:
        return (self._config.spawn_x, self._config.spawn_y)

    def _create_agents(self) -> list[Agent]:
        agents = []
        for i in range(self.population_size):
            agent_type = AgentType.HOSTILE if i < self.hostile_count else AgentType.FRIENDLY
            agents.append(self._spawn_agent(Genome(self._config.layer_sizes), agent_type))
        return agents

    def _spawn_agent(self, genome: Genome, agent_type: AgentType) -> Agent:
        body = self._body_factory(agent_type) if self._body_factory is not None else None
        return Agent(genome, agent_type,
                     checkpoints=self._checkpoints,
                     body=body,
                     spawn_position=self.spawn_position,
                     spawn_heading=self._config.spawn_heading)

    # ========================================================================
    # Generation clock

    def tick(self, dt: float) -> Optional[GenerationStats]:
        """
        Advance the generation clock by 'dt' seconds.

        The generation advances when every agent is dead or, failing that, when
        the generation time limit has been reached; never more than once per tick.

        Returns:
            The statistics of the completed generation if it advanced, else None
        """
        if self.paused or not self.agents:
            return None

        self.elapsed_in_generation += dt

        if not any(agent.alive for agent in self.agents):
            return self.advance_generation(ADVANCE_ALL_DEAD)
        if self.elapsed_in_generation >= self._config.generation_time_limit:
            return self.advance_generation(ADVANCE_TIME_LIMIT)
        return None

    def advance_generation(self, reason: str = ADVANCE_FORCED) -> GenerationStats:
        """
        Run the full lifecycle: evaluate, select, mutate, reset.

        Parameters:
            reason: why the generation ends ('all_dead', 'time_limit' or 'forced')

        Returns:
            The statistics of the completed generation
        """
        self.phase = Phase.EVALUATING
        stats = self.evaluate(reason)

        self.phase  = Phase.SELECTING
        self.agents = self.select()

        self.phase = Phase.MUTATING
        self.mutate_all()

        self.phase = Phase.RESETTING
        self.reset_all()

        self.generation           += 1
        self.elapsed_in_generation = 0.0
        self.phase                 = Phase.RUNNING
        return stats

    def force_next_generation(self) -> GenerationStats:
        return self.advance_generation(ADVANCE_FORCED)

    def pause(self):
        self.paused = True

    def resume(self):
        self.paused = False

    def restart(self):
        """
        Start over with a new random population at generation 1.
        """
        for agent in self.agents:
            agent.release()
        self.agents                = self._create_agents()
        self.generation            = 1
        self.elapsed_in_generation = 0.0
        self.phase                 = Phase.RUNNING
        self.history.clear()
        logger.info("Population restarted with %d agents", len(self.agents))

    # ========================================================================
    # Lifecycle phases

    def _fitness_summary(self) -> tuple[float, float, float]:
        if not self.agents:
            return 0.0, 0.0, 0.0
        fitnesses = np.array([agent.fitness for agent in self.agents], dtype=float)
        return float(fitnesses.max()), float(fitnesses.mean()), float(fitnesses.min())

    def evaluate(self, reason: Optional[str] = None) -> GenerationStats:
        """
        Summarize the fitness of the current agents and append it to the history.
        The fitness of the agents is not modified.
        """
        best, average, worst = self._fitness_summary()
        hostile = sum(1 for agent in self.agents if agent.type is AgentType.HOSTILE)
        stats   = GenerationStats(self.generation, best, average, worst,
                                  len(self.agents) - hostile, hostile, reason)
        self.history.append(stats)

        logger.info("Generation %d ended (%s): best=%.3f average=%.3f worst=%.3f",
                    self.generation, reason, best, average, worst)
        return stats

    def select(self) -> list[Agent]:
        """
        Build the next generation, before mutation.

        The best agent of each non-empty sub-population is carried forward unchanged.
        The remaining slots are filled hostile-first: the next slot is Hostile while
        fewer than 'hostile_count' hostile agents have been placed, Friendly otherwise.
        Each child is a copy of one tournament winner crossed over with another,
        drawn from the pool of its type.

        A pool with a single member yields children identical to it. A pool with no
        members borrows parents from the other pool.

        Agents not carried forward are released.

        Returns:
            The new agents, exactly 'population_size' of them
        """
        if not self.agents:
            raise RuntimeError("Cannot select from an empty population")

        pools = {agent_type: [agent for agent in self.agents if agent.type is agent_type]
                 for agent_type in AgentType}

        # Elitism: the best of each sub-population survives unchanged
        elites = [max(pool, key=lambda agent: agent.fitness)
                  for pool in (pools[AgentType.HOSTILE], pools[AgentType.FRIENDLY]) if pool]
        offspring = elites[:self.population_size]

        placed_hostile = sum(1 for agent in offspring if agent.type is AgentType.HOSTILE)
        borrowed       = set()
        while len(offspring) < self.population_size:
            target = AgentType.HOSTILE if placed_hostile < self.hostile_count else AgentType.FRIENDLY

            pool = pools[target]
            if not pool:
                other = AgentType.FRIENDLY if target is AgentType.HOSTILE else AgentType.HOSTILE
                pool  = pools[other]
                if target not in borrowed:
                    borrowed.add(target)
                    logger.warning("No %s agents left to breed from, borrowing %s parents",
                                   target.name.lower(), other.name.lower())

            parent1 = tournament_select(pool, self._config.tournament_size)
            parent2 = tournament_select(pool, self._config.tournament_size)
            genome  = parent1.genome.copy()
            genome.crossover(parent2.genome)

            offspring.append(self._spawn_agent(genome, target))
            if target is AgentType.HOSTILE:
                placed_hostile += 1

        # Release the previous generation, except the elites
        retained = {agent.ID for agent in offspring}
        for agent in self.agents:
            if agent.ID not in retained:
                agent.release()

        return offspring

    def mutate_all(self):
        for agent in self.agents:
            agent.genome.mutate(self._config.mutation_rate)

    def reset_all(self):
        for agent in self.agents:
            agent.reset(self.spawn_position,
                        self._config.spawn_heading,
                        keep_position=self._config.continue_from_current_position,
                        immunity=self._config.immunity_duration)

    # ========================================================================
    # Queries and controls

    def fittest_agent(self, agent_type: Optional[AgentType] = None) -> Optional[Agent]:
        candidates = [agent for agent in self.agents if agent_type is None or agent.type is agent_type]
        if not candidates:
            return None
        return max(candidates, key=lambda agent: agent.fitness)

    def set_behavior_lock(self, index: int, locked: bool, agent_type: Optional[AgentType] = None):
        """
        Lock (or unlock) one output of every genome, or of the genomes of one type only.
        A locked output always reads 0, disabling the corresponding behaviour.
        """
        for agent in self.agents:
            if agent_type is None or agent.type is agent_type:
                agent.genome.set_output_lock_at(index, locked)
        logger.info("Output %d %s for %s agents", index,
                    "locked" if locked else "unlocked",
                    "all" if agent_type is None else agent_type.name.lower())

    def lock_status(self) -> list[bool]:
        if not self.agents:
            return []
        return self.agents[0].genome.get_output_lock()

    # ========================================================================
    # Snapshots

    def snapshot(self, max_networks: int = 10) -> PopulationSnapshot:
        """
        Save the fittest agents of the population.

        Parameters:
            max_networks: maximum number of agents saved

        Returns:
            The snapshot, holding the fittest agents first
        """
        if max_networks < 1:
            raise ValueError(f"max_networks must be at least 1, got {max_networks}")

        best, average, worst = self._fitness_summary()
        ranked = sorted(self.agents, key=lambda agent: (agent.fitness, -agent.ID), reverse=True)
        return PopulationSnapshot(self.generation, best, average, worst,
                                  [AgentRecord.from_agent(agent) for agent in ranked[:max_networks]])

    def restore(self, snapshot: PopulationSnapshot):
        """
        Replace the population with the agents saved in a snapshot.

        Slot i receives saved network i; once the saved networks are exhausted,
        slot i receives a copy of network 'i % n' mutated at twice the mutation rate.
        The generation number is restored and the history cleared.
        Raises ValueError, leaving the population untouched, if the snapshot is empty
        or holds networks whose layer sizes differ from the configured ones.
        """
        if not snapshot.networks:
            raise ValueError("Cannot restore from a snapshot holding no networks")

        expected = list(self._config.layer_sizes)
        for i, record in enumerate(snapshot.networks):
            if list(record.genome.layer_sizes) != expected:
                raise ValueError(f"Saved network {i} has layer sizes {record.genome.layer_sizes}, "
                                 f"the population expects {expected}")

        for agent in self.agents:
            agent.release()

        num_saved = len(snapshot.networks)
        agents = []
        for i in range(self.population_size):
            record = snapshot.networks[i % num_saved]
            genome = record.genome.to_genome()
            if i >= num_saved:
                genome.mutate(min(1.0, 2 * self._config.mutation_rate))
            agents.append(self._spawn_agent(genome, record.agent_type))

        self.agents                = agents
        self.generation            = snapshot.generation
        self.elapsed_in_generation = 0.0
        self.phase                 = Phase.RUNNING
        self.history.clear()
        self.reset_all()
        logger.info("Restored %d agents from %d saved networks at generation %d",
                    len(agents), num_saved, self.generation)

    def __len__(self):
        return len(self.agents)

    def __str__(self):
        return '\n'.join(str(agent) for agent in self.agents)
