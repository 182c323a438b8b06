"""
Genome Record Module

This module implements the GenomeRecord class, the logical shape in which a
genome is handed to (and received from) a persistence layer. Only the shape is
defined here; how a record is written to disk is up to the caller.

Classes:
    GenomeRecord: Layer sizes, flattened weights and output lock mask of a genome
"""

import logging
import numpy as np
from typing import Sequence

from npcevo.genotype.genome import Genome

logger = logging.getLogger(__name__)

class GenomeRecord:
    """
    Flat, serializable view of a Genome.

    Public Attributes:
        layer_sizes:      Number of neurons per layer
        flat_weights:     All weights, in layer -> source -> dest (row-major) order
        output_lock_mask: One lock flag per output neuron

    Public Methods:
        from_genome(genome): Build a record from a genome
        to_genome():         Rebuild a genome from this record
        to_dict():           Plain dictionary, ready for json/yaml/...
        from_dict(data):     Inverse of to_dict()
    """

    def __init__(self,
                 layer_sizes     : Sequence[int],
                 flat_weights    : Sequence[float],
                 output_lock_mask: Sequence[bool] = ()):
        self.layer_sizes     : list[int]   = [int(size) for size in layer_sizes]
        self.flat_weights    : list[float] = [float(w) for w in flat_weights]
        self.output_lock_mask: list[bool]  = [bool(flag) for flag in output_lock_mask]

    @classmethod
    def from_genome(cls, genome: Genome) -> 'GenomeRecord':
        flat_weights = np.concatenate([w.ravel() for w in genome.get_weights()])
        return cls(genome.layer_sizes, flat_weights.tolist(), genome.get_output_lock())

    @property
    def expected_num_weights(self) -> int:
        """
        The number of weights implied by the layer sizes.
        """
        return sum(a * b for a, b in zip(self.layer_sizes[:-1], self.layer_sizes[1:]))

    def to_genome(self) -> Genome:
        """
        Rebuild the genome described by this record.

        If the record holds fewer weights than the layer sizes imply, each missing
        weight is replaced with a fresh value drawn from Uniform(-1, 1); extra
        weights are ignored. Both situations are logged but not treated as errors.
        A lock mask of the wrong length is ignored as well.
        """
        genome   = Genome(self.layer_sizes)
        expected = self.expected_num_weights
        provided = len(self.flat_weights)

        flat = np.array(self.flat_weights[:expected], dtype=float)
        if provided < expected:
            logger.warning("Record holds %d of %d weights; filling the rest with random values",
                           provided, expected)
            flat = np.concatenate([flat, np.random.uniform(-1.0, 1.0, expected - provided)])
        elif provided > expected:
            logger.warning("Record holds %d weights, only %d are used", provided, expected)

        tensor = []
        offset = 0
        for size_in, size_out in zip(self.layer_sizes[:-1], self.layer_sizes[1:]):
            tensor.append(flat[offset: offset + size_in * size_out].reshape(size_in, size_out))
            offset += size_in * size_out
        genome.set_weights(tensor)

        if self.output_lock_mask:
            if len(self.output_lock_mask) == genome.num_outputs:
                genome.set_output_lock(self.output_lock_mask)
            else:
                logger.warning("Ignoring lock mask of length %d for a genome with %d outputs",
                               len(self.output_lock_mask), genome.num_outputs)

        return genome

    def to_dict(self) -> dict:
        return {
            'layer_sizes'     : list(self.layer_sizes),
            'flat_weights'    : list(self.flat_weights),
            'output_lock_mask': list(self.output_lock_mask),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'GenomeRecord':
        return cls(data['layer_sizes'],
                   data.get('flat_weights', []),
                   data.get('output_lock_mask', []))

    def __repr__(self):
        return (f"GenomeRecord(layer_sizes={self.layer_sizes}, "
                f"num_weights={len(self.flat_weights)}, "
                f"output_lock_mask={self.output_lock_mask})")
