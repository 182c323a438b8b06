"""Pytest configuration and shared fixtures."""

import pytest
import random
import sys
import numpy as np
from itertools import count
from pathlib   import Path

# Add the source directory to the Python path
root_dir = Path(__file__).parent.parent
sys.path.insert(0, str(root_dir / "src"))


@pytest.fixture(autouse=True)
def set_random_seeds():
    """Seed the random generators and reset the agent ID counter."""
    from npcevo.phenotype import Agent

    np.random.seed(42)
    random.seed(42)
    Agent._id_generator = count(0)

    yield

    np.random.seed(None)
    random.seed(None)


@pytest.fixture
def default_config():
    """A Config holding the default values."""
    from npcevo.run.config import Config
    return Config()


@pytest.fixture
def sample_genome():
    """A small genome with two hidden neurons and four outputs."""
    from npcevo.genotype import Genome
    return Genome([3, 2, 4])
