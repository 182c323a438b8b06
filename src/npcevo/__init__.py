"""
npcevo - neuroevolution of non-player characters.

This package evolves a population of agents, each controlled by a small
fixed-topology feedforward network, with a genetic algorithm: agents act in a
fixed-step simulation and accumulate a shaped fitness; at the end of each
generation the population is evaluated, selected (elitism and tournament),
bred by crossover, mutated and reset.

Main components:
- genotype: The feedforward network genome and its persistence record
- phenotype: Agents, and the Body interface connecting them to a world
- fitness: Telemetry, fitness shaping and the checkpoint system
- pool: The population manager, parent selection and snapshots
- run: Configuration, trial and experiment framework

Example:
    >>> from npcevo import Config, Trial, KinematicBody
    >>> config = Config("config.ini")
    >>> class MyTrial(Trial):
    ...     def _create_body(self, agent_type):
    ...         return KinematicBody(self._config)
    ...     # _reset, _report_progress, _final_report ...
    >>> trial = MyTrial(config)
    >>> trial.run()
"""

__version__ = "0.1.0"

from npcevo.genotype   import Genome, GenomeRecord
from npcevo.phenotype  import Agent, AgentType, Body, BodyState, KinematicBody
from npcevo.fitness    import CheckpointSystem, FitnessBreakdown, FitnessModel, Telemetry
from npcevo.pool       import AgentRecord, GenerationStats, PopulationManager, PopulationSnapshot
from npcevo.run        import Config, Experiment, Trial

__all__ = [
    "Config",
    "Trial",
    "Experiment",
    "Genome",
    "GenomeRecord",
    "Agent",
    "AgentType",
    "Body",
    "BodyState",
    "KinematicBody",
    "CheckpointSystem",
    "FitnessBreakdown",
    "FitnessModel",
    "Telemetry",
    "AgentRecord",
    "GenerationStats",
    "PopulationManager",
    "PopulationSnapshot",
]
