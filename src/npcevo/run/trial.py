"""
Trial Module

This module defines the abstract base class for evolution trials: a fixed-step
simulation loop in which every agent senses, thinks, acts and is scored, and the
population advances a generation whenever all agents are dead or the generation
time limit has elapsed.

Stepping the agents can be parallelized with joblib threads; the generation
advance always runs on the driver thread, after every agent has been stepped.
"""

from abc    import ABC, abstractmethod
from joblib import Parallel, delayed
from typing import Optional, TYPE_CHECKING

from npcevo.run.config import Config
from npcevo.fitness    import CheckpointSystem, FitnessModel
from npcevo.pool       import GenerationStats, PopulationManager
if TYPE_CHECKING:
    from npcevo.phenotype import Agent, AgentType, Body

class Trial(ABC):
    """
    Abstract base class for one run of the genetic algorithm.

    Subclasses must implement:
    - _reset(): Reset trial-specific state and call super()._reset()
    - _create_body(agent_type): Build the Body of a new agent
    - _report_progress(stats): Display progress after each generation
    - _final_report(): Display final results

    Subclasses can override:
    - _create_checkpoints(): The checkpoint system of the world (default: none)
    - _terminate(): Custom termination logic (default: max generations + fitness threshold)

    Public Attributes:
        failed: False if the fitness threshold was reached

    Public Methods:
        run(): Execute a complete trial

    Parallelization of agent stepping:
        num_jobs=1:  Serial stepping (no parallelization)
        num_jobs>1:  Use specified number of threads
        num_jobs=-1: Use as many threads as CPU cores
    """

    def __init__(self, config: Config, suppress_output: bool = False):
        """
        Initialize the trial.

        Parameters:
            config:          Configuration parameters
            suppress_output: If True, suppress progress and final reports
                             (useful when running multiple trials in experiments)
        """
        self._config            : Config                     = config
        self._generation_counter: int                        = 0
        self._population        : Optional[PopulationManager] = None
        self._fitness_model     : Optional[FitnessModel]      = None
        self._checkpoints       : Optional[CheckpointSystem]  = None
        self._last_stats        : Optional[GenerationStats]   = None
        self._suppress_output   : bool                       = suppress_output
        self.failed             : bool                       = True

    def run(self, num_jobs: int = 1):
        """
        Run the trial.

        Resets the trial state, builds the world and the population, and steps
        the simulation until the terminate condition is met.

        Parameters:
            num_jobs: Number of threads stepping the agents
                      1 = serial (no parallelization)
                     -1 = use all available CPU cores
                     >1 = use specified number of threads
        """
        # Reset the trial state before starting a new run
        self._reset()

        # Build the world and the initial population
        self._checkpoints   = self._create_checkpoints()
        self._fitness_model = FitnessModel(self._config, self._checkpoints)
        self._population    = PopulationManager(self._config, self._checkpoints, self._create_body)
        self._update_noise()

        # Simulation loop
        while not self._terminate():
            stats = self._step(num_jobs)
            if stats is None:
                continue

            self._generation_counter += 1
            self._last_stats = stats
            self._update_noise()

            # Display progress after each generation
            if not self._suppress_output:
                self._report_progress(stats)

        # Produce final report
        if not self._suppress_output:
            self._final_report()

    @abstractmethod
    def _reset(self):
        """
        Reset the trial state before starting a new run.

        Subclasses should call super()._reset() and then
        initialize their problem-specific data.
        """
        self._generation_counter = 0
        self._last_stats         = None
        self.failed              = True

    @abstractmethod
    def _create_body(self, agent_type: 'AgentType') -> 'Body':
        """
        Build the Body of a new agent of the given type.
        """
        pass

    def _create_checkpoints(self) -> Optional[CheckpointSystem]:
        """
        Build the checkpoint system of the world, or None for a world without checkpoints.
        """
        return None

    def _step(self, num_jobs: int) -> Optional[GenerationStats]:
        """
        Step every living agent once, then advance the generation clock.

        Parameters:
            num_jobs: Number of threads stepping the agents

        Returns:
            The statistics of the completed generation if it advanced, else None
        """
        dt     = self._config.time_step
        agents = [agent for agent in self._population.agents if agent.alive]

        if num_jobs == 1:
            for agent in agents:
                self._step_agent(agent, dt)
        else:
            Parallel(num_jobs, prefer="threads")(delayed(self._step_agent)(agent, dt) for agent in agents)

        return self._population.tick(dt)

    def _step_agent(self, agent: 'Agent', dt: float):
        """
        Sense, think, act, and score one agent.
        """
        outputs = agent.think(agent.sense_inputs())
        agent.apply_outputs(outputs, dt)
        self._fitness_model.step(agent, agent.body.state(), dt)

    def _update_noise(self):
        """
        Fade the exploration noise of the bodies as generations go by.
        """
        span  = self._config.noise_generations
        scale = max(0, span - self._population.generation) / span if span > 0 else 0.0
        for agent in self._population.agents:
            if agent.body is not None:
                agent.body.noise_scale = scale

    @property
    def best_fitness(self) -> float:
        """
        The highest fitness reached in any completed generation.
        """
        if self._population is None or not self._population.history:
            return 0.0
        return max(stats.best_fitness for stats in self._population.history)

    @abstractmethod
    def _report_progress(self, stats: GenerationStats):
        """
        Report trial progress after each generation.

        This method is suppressed by setting 'self._suppress_output' to 'True',
        which we might do when running many trials, as part of an experiment.
        """
        pass

    @abstractmethod
    def _final_report(self):
        """
        Produce final report at the end of the trial.

        This method is suppressed by setting 'self._suppress_output' to 'True',
        which we might do when running many trials, as part of an experiment.
        """
        pass

    def _terminate(self) -> bool:
        """
        Determine whether the trial should terminate.

        This default implementation stops the trial after a maximum number
        of generations and (optionally) also stops it if a given measure of
        the fitness of the last completed generation reached a threshold.

        Returns:
            bool: True if the trial should stop, False otherwise
        """
        terminate = self._generation_counter >= self._config.max_number_generations

        if self._config.fitness_termination_check and self._last_stats is not None:
            if self._config.fitness_criterion == "max":
                overall_fitness = self._last_stats.best_fitness
            elif self._config.fitness_criterion == "mean":
                overall_fitness = self._last_stats.average_fitness
            else:
                raise RuntimeError("bad 'fitness_criterion' in configuration file")

            success   = overall_fitness >= self._config.fitness_threshold
            terminate = terminate or success

            if terminate:
                self.failed = not success

        return terminate
