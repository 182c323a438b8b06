"""
npcevo Phenotype Package

This package implements the acting side of the population: the agents, and the
Body interface through which they sense and move in a world.

Modules:
    agent: AgentType and Agent classes
    body:  BodyState, Body and KinematicBody classes

Exported Classes:
    AgentType:     FRIENDLY or HOSTILE
    Agent:         An evolving agent with genome, telemetry, fitness and body
    BodyState:     Kinematic state of a body after a simulation step
    Body:          Abstract sensing/actuation interface
    KinematicBody: Planar point body moving inside a rectangular arena
"""

from npcevo.phenotype.agent import Agent, AgentType
from npcevo.phenotype.body  import Body, BodyState, KinematicBody

__all__ = ['Agent',
           'AgentType',
           'Body',
           'BodyState',
           'KinematicBody']
