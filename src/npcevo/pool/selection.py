"""
Selection Module

Parent selection for the genetic algorithm.
"""

import random
from typing import Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from npcevo.phenotype import Agent

def tournament_select(pool: Sequence['Agent'], tournament_size: int) -> 'Agent':
    """
    Pick a parent by tournament.

    'tournament_size' contenders are drawn uniformly from the pool, with
    replacement; the fittest of them wins (the first one drawn, on ties).
    The tournament never exceeds the size of the pool.

    Parameters:
        pool:            the agents competing
        tournament_size: number of contenders

    Returns:
        The winning agent
    """
    if not pool:
        raise RuntimeError("Cannot run a tournament on an empty pool")

    size   = max(1, min(tournament_size, len(pool)))
    winner = None
    for _ in range(size):
        contender = random.choice(pool)
        if winner is None or contender.fitness > winner.fitness:
            winner = contender
    return winner
