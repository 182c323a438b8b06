"""
Feedforward Genome Module

This module implements the Genome class, the fixed-topology feedforward network
that drives an agent. The genome is both the genotype (the weights evolve through
mutation and crossover) and the phenotype (it maps sensed inputs to actions).

Classes:
    Genome: Fully connected feedforward network with per-output locks
"""

import copy
import logging
import numpy as np
from typing import Sequence

logger = logging.getLogger(__name__)

# Initialization nudges applied to the last weight layer
FORWARD_OUTPUT_INDEX = 0
FORWARD_OUTPUT_BIAS  = 0.5
JUMP_OUTPUT_INDEX    = 3
JUMP_OUTPUT_BIAS     = -0.3

# Half-width of the uniform perturbation applied by mutation
MUTATION_STRENGTH = 0.1

class Genome:
    """
    A fully connected feedforward neural network with fixed layer sizes.

    Every neuron of a layer is connected to every neuron of the next layer.
    The weights are stored as one matrix per pair of consecutive layers, so
    that 'weights[layer][source][dest]' is the weight of the connection from
    neuron 'source' in layer 'layer' to neuron 'dest' in layer 'layer + 1'.
    Neurons have no bias; the activation function is tanh.

    The dimensions of the weight tensor are fully determined by the layer sizes
    and never change after construction.

    Public Properties:
        layer_sizes: Number of neurons per layer (input first, output last)
        num_inputs:  Size of the input layer
        num_outputs: Size of the output layer
        num_weights: Total number of weights

    Public Methods:
        feed_forward(inputs):           Compute the network outputs
        mutate(rate):                   Perturb weights at random
        copy():                         Create an independent copy
        crossover(other):               Uniform crossover with another genome, in place
        get_weights(), set_weights(w):  Access the weight tensor
        get_output_lock(),
        set_output_lock(mask),
        set_output_lock_at(i, locked):  Access the per-output lock mask
    """

    def __init__(self, layer_sizes: Sequence[int]):
        """
        Create a genome with random weights.

        Each weight is drawn from Uniform(-1, 1). The weights feeding output 0
        (forward motion) are then raised by 0.5, and, if there are more than
        three outputs, the weights feeding output 3 (jump) are lowered by 0.3.

        Parameters:
            layer_sizes: number of neurons in each layer, at least two layers
        """
        layer_sizes = [int(size) for size in layer_sizes]
        if len(layer_sizes) < 2:
            raise ValueError(f"A genome needs at least two layers, got {layer_sizes}")
        if any(size <= 0 for size in layer_sizes):
            raise ValueError(f"Layer sizes must be positive, got {layer_sizes}")

        self._layer_sizes: list[int] = layer_sizes

        self._weights: list[np.ndarray] = []
        for size_in, size_out in zip(layer_sizes[:-1], layer_sizes[1:]):
            self._weights.append(np.random.uniform(-1.0, 1.0, (size_in, size_out)))

        last = self._weights[-1]
        last[:, FORWARD_OUTPUT_INDEX] += FORWARD_OUTPUT_BIAS
        if layer_sizes[-1] > JUMP_OUTPUT_INDEX:
            last[:, JUMP_OUTPUT_INDEX] += JUMP_OUTPUT_BIAS

        self._output_lock: np.ndarray = np.zeros(layer_sizes[-1], dtype=bool)

    @property
    def layer_sizes(self) -> tuple[int, ...]:
        return tuple(self._layer_sizes)

    @property
    def num_inputs(self) -> int:
        return self._layer_sizes[0]

    @property
    def num_outputs(self) -> int:
        return self._layer_sizes[-1]

    @property
    def num_weights(self) -> int:
        return sum(w.size for w in self._weights)

    def feed_forward(self, inputs: Sequence[float]) -> np.ndarray:
        """
        Propagate the inputs through the network, layer by layer.

        Each neuron outputs tanh of the weighted sum of the previous layer's
        activations. Outputs whose lock is set are forced to 0 after the
        computation, whatever their activation.

        Parameters:
            inputs: one value per input neuron

        Returns:
            A new array holding one value per output neuron
        """
        activations = np.asarray(inputs, dtype=float)
        if activations.shape != (self.num_inputs,):
            raise ValueError(f"Expected {self.num_inputs} inputs, got shape {activations.shape}")

        for weights in self._weights:
            activations = np.tanh(activations @ weights)

        outputs = np.array(activations, dtype=float)
        outputs[self._output_lock] = 0.0
        return outputs

    def mutate(self, rate: float):
        """
        Perturb the weights in place.

        Each weight, independently with probability 'rate', is shifted by a
        value drawn from Uniform(-0.1, 0.1).

        Parameters:
            rate: per-weight mutation probability, in [0, 1]
        """
        if not 0.0 <= rate <= 1.0:
            raise ValueError(f"Mutation rate must be in [0, 1], got {rate}")

        for weights in self._weights:
            mutate_mask = np.random.random(weights.shape) < rate
            deltas = np.random.uniform(-MUTATION_STRENGTH, MUTATION_STRENGTH, weights.shape)
            weights[mutate_mask] += deltas[mutate_mask]

    def copy(self) -> 'Genome':
        """
        Create an independent copy of this genome (weights and lock mask).
        """
        return copy.deepcopy(self)

    def crossover(self, other: 'Genome'):
        """
        Uniform crossover, performed in place.

        Each weight, independently with probability 0.5, is replaced by the
        corresponding weight of 'other'. The other genome is not modified.

        Parameters:
            other: the partner genome; must have the same layer sizes
        """
        if other._layer_sizes != self._layer_sizes:
            raise ValueError(f"Cannot cross genomes with layer sizes "
                             f"{self._layer_sizes} and {other._layer_sizes}")

        for weights, other_weights in zip(self._weights, other._weights):
            take_other = np.random.random(weights.shape) < 0.5
            weights[take_other] = other_weights[take_other]

    def get_weights(self) -> list[np.ndarray]:
        """
        Return a copy of the weight tensor, indexed [layer][source][dest].
        """
        return [weights.copy() for weights in self._weights]

    def set_weights(self, new_weights) -> bool:
        """
        Overwrite the weights with the values of a nested [layer][source][dest] structure.

        The dimensions are checked at every nesting level. A mismatch is logged
        and the offending layer (or source row) is skipped, while the structurally
        valid parts are still applied: the update is not all-or-nothing.

        Parameters:
            new_weights: nested sequence (or list of arrays) with the same dimensions
                         as the weight tensor

        Returns:
            True if every row was applied, False if anything was skipped
        """
        if new_weights is None:
            logger.error("Cannot set weights: no weights given")
            return False

        if len(new_weights) != len(self._weights):
            logger.error("Cannot set weights: expected %d layers, got %d",
                         len(self._weights), len(new_weights))
            return False

        complete = True
        for i, (weights, new_layer) in enumerate(zip(self._weights, new_weights)):
            if new_layer is None or len(new_layer) != weights.shape[0]:
                logger.error("Skipping weight layer %d: expected %d source neurons, got %s",
                             i, weights.shape[0], None if new_layer is None else len(new_layer))
                complete = False
                continue

            for j, new_row in enumerate(new_layer):
                if new_row is None or len(new_row) != weights.shape[1]:
                    logger.error("Skipping weights of layer %d, neuron %d: expected %d values, got %s",
                                 i, j, weights.shape[1], None if new_row is None else len(new_row))
                    complete = False
                    continue
                weights[j, :] = np.asarray(new_row, dtype=float)

        return complete

    def get_output_lock(self) -> list[bool]:
        """
        Return the lock mask, one flag per output neuron.
        """
        return [bool(locked) for locked in self._output_lock]

    def set_output_lock(self, mask: Sequence[bool]):
        """
        Replace the whole lock mask.

        Parameters:
            mask: one flag per output neuron; locked outputs always read 0
        """
        if len(mask) != self.num_outputs:
            raise ValueError(f"Expected {self.num_outputs} lock flags, got {len(mask)}")
        self._output_lock = np.array([bool(locked) for locked in mask], dtype=bool)

    def set_output_lock_at(self, index: int, locked: bool):
        """
        Lock or unlock a single output neuron.
        """
        if not 0 <= index < self.num_outputs:
            raise IndexError(f"Output index {index} out of range [0, {self.num_outputs})")
        self._output_lock[index] = bool(locked)

    def __eq__(self, other):
        if not isinstance(other, Genome):
            return NotImplemented
        return (self._layer_sizes == other._layer_sizes and
                all(np.array_equal(a, b) for a, b in zip(self._weights, other._weights)) and
                np.array_equal(self._output_lock, other._output_lock))

    __hash__ = object.__hash__

    def __str__(self):
        locked = [i for i, flag in enumerate(self._output_lock) if flag]
        return f"Genome(layers={self._layer_sizes}, weights={self.num_weights}, locked={locked})"

    def __repr__(self):
        return f"Genome(layer_sizes={self._layer_sizes})"
