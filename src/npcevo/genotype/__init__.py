"""
npcevo Genotype Package

This package implements the genetic representation of an agent's controller:
a fixed-topology feedforward network whose weights evolve through mutation and
crossover, and the flat record used to persist it.

Modules:
    genome:        Genome class
    genome_record: GenomeRecord class

Exported Classes:
    Genome:       Fully connected feedforward network with per-output locks
    GenomeRecord: Layer sizes, flattened weights and lock mask of a genome
"""

from npcevo.genotype.genome        import Genome
from npcevo.genotype.genome_record import GenomeRecord

__all__ = ['Genome',
           'GenomeRecord']
