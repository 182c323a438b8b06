"""
Shared fixtures for integration tests.
"""

import pytest

from npcevo.run.config import Config


@pytest.fixture
def small_config():
    """A small, fast configuration for complete runs."""
    config = Config()
    config.population_size        = 10
    config.hostile_ratio          = 0.3
    config.mutation_rate          = 0.1
    config.generation_time_limit  = 1.0
    config.time_step              = 0.1
    config.max_number_generations = 3
    config.noise_generations      = 2
    return config
