"""
Population Snapshot Module

The logical records in which the best agents of a population are saved and
later restored. Writing them to disk is left to the caller; to_dict() gives a
plain structure any serializer can handle.

Classes:
    AgentRecord:        Genome, fitness and type of one saved agent
    PopulationSnapshot: Generation statistics and the saved agents
"""

from datetime import datetime
from typing   import Optional

from npcevo.genotype        import GenomeRecord
from npcevo.phenotype.agent import Agent, AgentType

class AgentRecord:
    """
    A saved agent: its genome record, its fitness and its type.
    """

    def __init__(self, genome: GenomeRecord, fitness: float, agent_type: AgentType):
        self.genome     : GenomeRecord = genome
        self.fitness    : float        = float(fitness)
        self.agent_type : AgentType    = agent_type

    @classmethod
    def from_agent(cls, agent: Agent) -> 'AgentRecord':
        return cls(GenomeRecord.from_genome(agent.genome), agent.fitness, agent.type)

    def to_dict(self) -> dict:
        return {
            'genome'    : self.genome.to_dict(),
            'fitness'   : self.fitness,
            'agent_type': self.agent_type.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'AgentRecord':
        return cls(GenomeRecord.from_dict(data['genome']),
                   data.get('fitness', 0.0),
                   AgentType(data.get('agent_type', AgentType.FRIENDLY.value)))

    def __repr__(self):
        return f"AgentRecord(type={self.agent_type.value}, fitness={self.fitness:.4f}, genome={self.genome!r})"

class PopulationSnapshot:
    """
    The state of a population worth keeping between runs.

    Public Attributes:
        generation:      Generation at which the snapshot was taken
        best_fitness:    Highest fitness in the population
        average_fitness: Mean fitness of the population
        worst_fitness:   Lowest fitness in the population
        networks:        The saved agents, fittest first
        timestamp:       When the snapshot was taken
    """

    def __init__(self,
                 generation     : int,
                 best_fitness   : float,
                 average_fitness: float,
                 worst_fitness  : float,
                 networks       : list[AgentRecord],
                 timestamp      : Optional[datetime] = None):
        self.generation     : int   = generation
        self.best_fitness   : float = best_fitness
        self.average_fitness: float = average_fitness
        self.worst_fitness  : float = worst_fitness
        self.networks       : list[AgentRecord] = list(networks)
        self.timestamp      : datetime = timestamp if timestamp is not None else datetime.now()

    def to_dict(self) -> dict:
        return {
            'generation'     : self.generation,
            'best_fitness'   : self.best_fitness,
            'average_fitness': self.average_fitness,
            'worst_fitness'  : self.worst_fitness,
            'networks'       : [record.to_dict() for record in self.networks],
            'timestamp'      : self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'PopulationSnapshot':
        timestamp = data.get('timestamp')
        return cls(data.get('generation', 1),
                   data.get('best_fitness', 0.0),
                   data.get('average_fitness', 0.0),
                   data.get('worst_fitness', 0.0),
                   [AgentRecord.from_dict(record) for record in data.get('networks', [])],
                   datetime.fromisoformat(timestamp) if timestamp else None)

    def __len__(self):
        return len(self.networks)

    def __repr__(self):
        return (f"PopulationSnapshot(generation={self.generation}, networks={len(self.networks)}, "
                f"best_fitness={self.best_fitness:.4f}, timestamp={self.timestamp.isoformat()})")
