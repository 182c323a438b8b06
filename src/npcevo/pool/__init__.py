"""
npcevo Pool Package

This package manages the population as a whole: the generation lifecycle,
parent selection, and the snapshots in which the best agents are saved.

Modules:
    population: Phase, GenerationStats and PopulationManager classes
    selection:  tournament_select function
    snapshot:   AgentRecord and PopulationSnapshot classes

Exported Classes:
    PopulationManager:  Owns the agents and advances generations
    GenerationStats:    Fitness summary of a completed generation
    Phase:              Lifecycle phase of the current generation
    AgentRecord:        Genome, fitness and type of one saved agent
    PopulationSnapshot: Generation statistics and the saved agents
"""

from npcevo.pool.population import GenerationStats, Phase, PopulationManager
from npcevo.pool.selection  import tournament_select
from npcevo.pool.snapshot   import AgentRecord, PopulationSnapshot

__all__ = [
    'AgentRecord',
    'GenerationStats',
    'Phase',
    'PopulationManager',
    'PopulationSnapshot',
    'tournament_select',
]
