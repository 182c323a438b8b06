"""
npcevo Run Package

This package implements configuration, trial and experiment execution.

A trial is one complete evolutionary run: a fixed-step simulation in which the
population advances generation by generation, until the maximum number of
generations is reached or the fitness threshold is met.

An experiment is a collection of trials, run to gather statistics.

Modules:
    config:     Configuration parameters, read from INI files
    trial:      Abstract base class for trials
    experiment: Abstract base class for experiments

Exported Classes:
    Config:     Configuration parameters
    Trial:      Abstract base class for trials, with joblib parallelization
    Experiment: Abstract base class for experiments (multi-trial runs)
"""

from npcevo.run.config     import Config
from npcevo.run.trial      import Trial
from npcevo.run.experiment import Experiment

__all__ = ['Config', 'Trial', 'Experiment']
