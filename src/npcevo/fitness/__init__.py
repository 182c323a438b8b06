"""
npcevo Fitness Package

This package implements the scoring of agents: the telemetry gathered during a
generation, the fitness shaping computed from it at every step, and the
checkpoint system granting waypoint rewards.

Modules:
    telemetry:     Telemetry class
    fitness_model: FitnessModel and FitnessBreakdown classes
    checkpoints:   CheckpointSystem class

Exported Classes:
    Telemetry:        Per-agent measurements over a generation
    FitnessModel:     Per-step telemetry update, fitness shaping and termination
    FitnessBreakdown: The terms of one fitness computation
    CheckpointSystem: Per-agent registry of reached checkpoints and their rewards
"""

from npcevo.fitness.checkpoints   import CheckpointSystem
from npcevo.fitness.fitness_model import FitnessBreakdown, FitnessModel
from npcevo.fitness.telemetry     import Telemetry

__all__ = ['CheckpointSystem',
           'FitnessBreakdown',
           'FitnessModel',
           'Telemetry']
