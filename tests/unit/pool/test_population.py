"""
Unit tests for npcevo.pool.population module.

This module contains tests for the PopulationManager class, which drives the
generation lifecycle: evaluate, select, mutate and reset.
"""

import logging
import pytest
from unittest.mock import Mock

from npcevo.fitness   import CheckpointSystem
from npcevo.genotype  import Genome
from npcevo.phenotype import Agent, AgentType, KinematicBody
from npcevo.pool      import GenerationStats, Phase, PopulationManager, PopulationSnapshot
from npcevo.run.config import Config


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def config():
    """Ten agents, 30% hostile, small genomes."""
    config = Config()
    config.population_size       = 10
    config.hostile_ratio         = 0.3
    config.layer_sizes           = [3, 4]
    config.mutation_rate         = 0.1
    config.generation_time_limit = 5.0
    return config

@pytest.fixture
def manager(config):
    return PopulationManager(config)

def assign_fitness(manager):
    """Give every agent a distinct fitness equal to 10 * its index + 1."""
    for i, agent in enumerate(manager.agents):
        agent.fitness = 10.0 * i + 1.0

def count_types(agents):
    hostile = sum(1 for agent in agents if agent.type is AgentType.HOSTILE)
    return hostile, len(agents) - hostile


# ============================================================================
# Test Initialization
# ============================================================================

class TestPopulationManagerInit:
    """Test PopulationManager.__init__ method."""

    def test_creates_population(self, manager):
        assert len(manager.agents) == 10
        assert all(isinstance(agent, Agent) for agent in manager.agents)
        assert all(agent.genome.layer_sizes == (3, 4) for agent in manager.agents)

    def test_hostile_agents_first(self, manager):
        types = [agent.type for agent in manager.agents]
        assert types == [AgentType.HOSTILE] * 3 + [AgentType.FRIENDLY] * 7
        assert manager.hostile_count == 3
        assert manager.friendly_count == 7

    def test_initial_state(self, manager):
        assert manager.generation == 1
        assert manager.elapsed_in_generation == 0.0
        assert manager.paused is False
        assert manager.phase is Phase.RUNNING
        assert manager.history == []

    def test_distinct_genomes(self, manager):
        genomes = [agent.genome for agent in manager.agents]
        assert len({id(genome) for genome in genomes}) == 10
        assert genomes[0] != genomes[1]

    def test_body_factory(self, config):
        """Test that every agent gets a body built for its type."""
        factory = Mock(side_effect=lambda agent_type: KinematicBody(config))
        manager = PopulationManager(config, body_factory=factory)

        assert factory.call_count == 10
        assert factory.call_args_list[0].args == (AgentType.HOSTILE,)
        assert factory.call_args_list[-1].args == (AgentType.FRIENDLY,)
        assert all(isinstance(agent.body, KinematicBody) for agent in manager.agents)

    def test_agents_register_with_checkpoints(self, config):
        checkpoints = CheckpointSystem([(5.0, 5.0)])
        manager = PopulationManager(config, checkpoints)
        assert all(checkpoints.is_registered(agent) for agent in manager.agents)


class TestHostileCount:
    """Test the rounding of the hostile share."""

    @pytest.mark.parametrize("size, ratio, expected", [
        (10, 0.3,  3),
        (10, 0.25, 2),     # halves round to even
        (14, 0.25, 4),
        (5,  0.5,  2),
        (2,  0.5,  1),
        (10, 0.0,  0),
        (10, 1.0, 10),
    ])
    def test_hostile_count(self, config, size, ratio, expected):
        config.population_size = size
        config.hostile_ratio   = ratio
        manager = PopulationManager(config)

        assert manager.hostile_count == expected
        assert manager.friendly_count == size - expected
        assert count_types(manager.agents) == (expected, size - expected)


# ============================================================================
# Test Generation Clock
# ============================================================================

class TestTick:
    """Test PopulationManager.tick method."""

    def test_no_advance_while_running(self, manager):
        assert manager.tick(1.0) is None
        assert manager.elapsed_in_generation == 1.0
        assert manager.generation == 1

    def test_paused_does_nothing(self, manager):
        manager.pause()
        for agent in manager.agents:
            agent.kill("idle")

        assert manager.tick(100.0) is None
        assert manager.elapsed_in_generation == 0.0
        assert manager.generation == 1

        manager.resume()
        assert manager.tick(0.1) is not None

    def test_time_limit(self, manager):
        manager.tick(3.0)
        stats = manager.tick(2.0)

        assert isinstance(stats, GenerationStats)
        assert stats.reason == "time_limit"
        assert stats.generation == 1
        assert manager.generation == 2
        assert manager.elapsed_in_generation == 0.0

    def test_all_dead(self, manager):
        for agent in manager.agents:
            agent.kill("hazard")

        stats = manager.tick(0.1)

        assert stats.reason == "all_dead"
        assert manager.generation == 2
        assert all(agent.alive for agent in manager.agents)

    def test_one_advance_per_tick(self, manager):
        """Test that both triggers firing in the same tick advance only once."""
        for agent in manager.agents:
            agent.kill("hazard")

        stats = manager.tick(10.0)

        assert stats.reason == "all_dead"
        assert manager.generation == 2
        assert len(manager.history) == 1
        assert manager.elapsed_in_generation == 0.0

    def test_some_alive_no_advance(self, manager):
        for agent in manager.agents[1:]:
            agent.kill("idle")
        assert manager.tick(0.1) is None

    def test_all_dead_preserves_type_counts(self, manager):
        """Test that 10 agents at ratio 0.3 stay 3 hostile / 7 friendly."""
        assign_fitness(manager)
        for agent in manager.agents:
            agent.kill("idle")

        manager.tick(0.02)

        assert len(manager.agents) == 10
        assert count_types(manager.agents) == (3, 7)


# ============================================================================
# Test Lifecycle Phases
# ============================================================================

class TestEvaluate:
    """Test PopulationManager.evaluate method."""

    def test_statistics(self, manager, caplog):
        assign_fitness(manager)

        with caplog.at_level(logging.INFO, logger="npcevo.pool.population"):
            stats = manager.evaluate("forced")

        assert stats.best_fitness == 91.0
        assert stats.worst_fitness == 1.0
        assert stats.average_fitness == pytest.approx(46.0)
        assert (stats.hostile_count, stats.friendly_count) == (3, 7)
        assert manager.history == [stats]
        assert "Generation 1 ended" in caplog.text

    def test_fitness_untouched(self, manager):
        assign_fitness(manager)
        manager.evaluate()
        assert [agent.fitness for agent in manager.agents] == [10.0 * i + 1.0 for i in range(10)]


class TestSelect:
    """Test PopulationManager.select method."""

    def test_returns_population_size(self, manager):
        assign_fitness(manager)
        assert len(manager.select()) == 10

    def test_type_counts(self, manager):
        assign_fitness(manager)
        assert count_types(manager.select()) == (3, 7)

    def test_elites_preserved(self, manager):
        """Test that the best hostile and best friendly agents survive unchanged."""
        assign_fitness(manager)
        best_hostile  = manager.agents[2]
        best_friendly = manager.agents[9]
        hostile_genome, friendly_genome = best_hostile.genome, best_friendly.genome
        hostile_copy,   friendly_copy   = hostile_genome.copy(), friendly_genome.copy()

        offspring = manager.select()

        assert offspring[0] is best_hostile
        assert offspring[1] is best_friendly
        assert best_hostile.genome is hostile_genome and hostile_genome == hostile_copy
        assert best_friendly.genome is friendly_genome and friendly_genome == friendly_copy
        assert best_hostile.fitness == 21.0
        assert best_friendly.fitness == 91.0

    def test_children_are_new_agents(self, manager):
        assign_fitness(manager)
        old_ids   = {agent.ID for agent in manager.agents}
        offspring = manager.select()

        children = offspring[2:]
        assert all(child.ID not in old_ids for child in children)
        assert all(child.fitness == 0.0 for child in children)

    def test_children_genes_come_from_their_pool(self, manager):
        """Test that every child weight comes from a parent of the child's type."""
        assign_fitness(manager)
        pools = {agent_type: [agent.genome.get_weights()[0] for agent in manager.agents
                              if agent.type is agent_type] for agent_type in AgentType}

        for child in manager.select()[2:]:
            weights = child.genome.get_weights()[0]
            for value in weights.ravel():
                assert any((parent == value).any() for parent in pools[child.type])

    def test_sole_parent_duplicated(self, manager):
        """Test that a pool with one member yields copies of that member."""
        assign_fitness(manager)
        manager.agents[1].type = AgentType.FRIENDLY
        manager.agents[2].type = AgentType.FRIENDLY
        sole = manager.agents[0]

        offspring = manager.select()
        hostile   = [agent for agent in offspring if agent.type is AgentType.HOSTILE]

        assert len(offspring) == 10
        assert len(hostile) == 3
        assert hostile[0] is sole
        for child in hostile[1:]:
            assert child.genome == sole.genome
            assert child.genome is not sole.genome

    def test_empty_pool_borrows(self, config, caplog):
        """Test that a missing type is bred from the other pool, with a warning."""
        config.hostile_ratio = 0.0
        manager = PopulationManager(config)
        assign_fitness(manager)
        config.hostile_ratio = 0.3

        with caplog.at_level(logging.WARNING):
            offspring = manager.select()

        assert count_types(offspring) == (3, 7)
        assert "borrowing friendly parents" in caplog.text

    def test_empty_population(self, manager):
        manager.agents = []
        with pytest.raises(RuntimeError):
            manager.select()

    def test_single_agent_population(self, config):
        config.population_size = 1
        manager = PopulationManager(config)
        offspring = manager.select()
        assert offspring == manager.agents

    def test_releases_discarded_agents(self, config):
        """Test that only the retained agents stay registered with the checkpoints."""
        checkpoints = CheckpointSystem([(0.0, 0.0)])
        manager = PopulationManager(config, checkpoints)
        assign_fitness(manager)
        old = list(manager.agents)

        offspring = manager.select()

        for agent in old:
            assert checkpoints.is_registered(agent) == (agent in offspring)
        assert all(checkpoints.is_registered(agent) for agent in offspring)


class TestMutateAndReset:
    """Test PopulationManager.mutate_all and PopulationManager.reset_all methods."""

    def test_mutate_all_includes_elites(self, manager, config):
        config.mutation_rate = 1.0
        before = [agent.genome.copy() for agent in manager.agents]

        manager.mutate_all()

        assert all(agent.genome != old for agent, old in zip(manager.agents, before))

    def test_mutate_rate_zero(self, manager, config):
        config.mutation_rate = 0.0
        before = [agent.genome.copy() for agent in manager.agents]
        manager.mutate_all()
        assert all(agent.genome == old for agent, old in zip(manager.agents, before))

    def test_reset_all(self, manager, config):
        assign_fitness(manager)
        for agent in manager.agents:
            agent.kill("idle")
            agent.telemetry.total_distance = 5.0

        manager.reset_all()

        for agent in manager.agents:
            assert agent.alive is True
            assert agent.fitness == 0.0
            assert agent.telemetry.total_distance == 0.0
            assert agent.telemetry.immunity_remaining == config.immunity_duration

    def test_reset_respawns_bodies(self, config):
        config.spawn_x, config.spawn_y = 2.0, 3.0
        manager = PopulationManager(config, body_factory=lambda agent_type: KinematicBody(config))
        for agent in manager.agents:
            agent.apply_outputs([1.0, 0.0, 0.0, 0.0], 1.0)

        manager.reset_all()

        assert all(agent.position == (2.0, 3.0) for agent in manager.agents)

    def test_reset_continuing_from_current_position(self, config):
        config.continue_from_current_position = True
        manager = PopulationManager(config, body_factory=lambda agent_type: KinematicBody(config))
        agent   = manager.agents[0]
        agent.apply_outputs([1.0, 0.0, 0.0, 0.0], 1.0)
        agent.telemetry.visited_cells.add((1, 0))

        manager.reset_all()

        assert agent.position == pytest.approx((5.0, 0.0))
        assert agent.telemetry.visited_cells == {(1, 0)}


class TestAdvanceGeneration:
    """Test the full lifecycle."""

    def test_force_next_generation(self, manager):
        manager.pause()
        manager.tick(1.0)
        stats = manager.force_next_generation()

        assert stats.reason == "forced"
        assert manager.generation == 2
        assert manager.phase is Phase.RUNNING
        assert len(manager.agents) == 10

    def test_elite_genome_survives_without_mutation(self, manager, config):
        config.mutation_rate = 0.0
        assign_fitness(manager)
        best_genome = manager.agents[9].genome.copy()

        manager.advance_generation()

        assert any(agent.genome == best_genome for agent in manager.agents)

    def test_many_generations(self, manager):
        for _ in range(5):
            assign_fitness(manager)
            manager.force_next_generation()

        assert manager.generation == 6
        assert len(manager.history) == 5
        assert count_types(manager.agents) == (3, 7)
        assert all(agent.fitness >= 0.0 for agent in manager.agents)


# ============================================================================
# Test Controls and Queries
# ============================================================================

class TestControls:
    """Test restart, output locks and queries."""

    def test_restart(self, manager):
        assign_fitness(manager)
        manager.force_next_generation()
        old_ids = {agent.ID for agent in manager.agents}

        manager.restart()

        assert manager.generation == 1
        assert manager.history == []
        assert len(manager.agents) == 10
        assert not old_ids & {agent.ID for agent in manager.agents}

    def test_set_behavior_lock_all(self, manager):
        manager.set_behavior_lock(2, True)
        assert all(agent.genome.get_output_lock() == [False, False, True, False]
                   for agent in manager.agents)
        assert manager.lock_status() == [False, False, True, False]

    def test_set_behavior_lock_by_type(self, manager):
        manager.set_behavior_lock(0, True, AgentType.HOSTILE)

        for agent in manager.agents:
            assert agent.genome.get_output_lock()[0] == (agent.type is AgentType.HOSTILE)

    def test_set_behavior_lock_bad_index(self, manager):
        with pytest.raises(IndexError):
            manager.set_behavior_lock(4, True)

    def test_locks_are_inherited(self, manager, config):
        """Test that children of locked parents are locked too."""
        manager.set_behavior_lock(3, True)
        manager.force_next_generation()
        assert all(agent.genome.get_output_lock()[3] for agent in manager.agents)

    def test_fittest_agent(self, manager):
        assign_fitness(manager)
        assert manager.fittest_agent() is manager.agents[9]
        assert manager.fittest_agent(AgentType.HOSTILE) is manager.agents[2]

    def test_fittest_agent_empty(self, manager):
        manager.agents = []
        assert manager.fittest_agent() is None
        assert manager.lock_status() == []


# ============================================================================
# Test Snapshots
# ============================================================================

class TestSnapshots:
    """Test PopulationManager.snapshot and PopulationManager.restore methods."""

    def test_snapshot_keeps_fittest(self, manager):
        assign_fitness(manager)
        snapshot = manager.snapshot(max_networks=3)

        assert isinstance(snapshot, PopulationSnapshot)
        assert snapshot.generation == 1
        assert [record.fitness for record in snapshot.networks] == [91.0, 81.0, 71.0]
        assert snapshot.best_fitness == 91.0
        assert snapshot.worst_fitness == 1.0

    def test_snapshot_bad_size(self, manager):
        with pytest.raises(ValueError):
            manager.snapshot(max_networks=0)

    def test_restore(self, manager, config):
        """Test that saved networks fill the first slots, mutated clones the rest."""
        config.mutation_rate = 0.5     # clones mutate every weight
        assign_fitness(manager)
        saved    = [manager.agents[i].genome.copy() for i in (9, 8, 7)]
        snapshot = manager.snapshot(max_networks=3)
        snapshot.generation = 12

        manager.restore(snapshot)

        assert len(manager.agents) == 10
        assert manager.generation == 12
        assert manager.history == []
        for i in range(3):
            assert manager.agents[i].genome == saved[i]
        for i in range(3, 10):
            clone = manager.agents[i].genome
            assert clone.layer_sizes == saved[i % 3].layer_sizes
            assert clone != saved[i % 3]
        assert all(agent.type is AgentType.FRIENDLY for agent in manager.agents)

    def test_restore_without_mutation(self, manager, config):
        config.mutation_rate = 0.0
        assign_fitness(manager)
        snapshot = manager.snapshot(max_networks=2)
        manager.restore(snapshot)

        assert manager.agents[2].genome == manager.agents[0].genome
        assert manager.agents[3].genome == manager.agents[1].genome

    def test_restore_empty_snapshot(self, manager):
        with pytest.raises(ValueError):
            manager.restore(PopulationSnapshot(1, 0.0, 0.0, 0.0, []))

    def test_restore_mismatched_layer_sizes(self, manager, config):
        """Test that networks of another shape are refused before anything changes."""
        other = Config()
        other.population_size = 4
        other.layer_sizes     = [3, 5, 4]
        snapshot = PopulationManager(other).snapshot(max_networks=2)
        agents   = list(manager.agents)

        with pytest.raises(ValueError, match="layer sizes"):
            manager.restore(snapshot)

        assert manager.agents == agents
        assert manager.generation == 1

    def test_restore_keeps_locks(self, manager):
        manager.set_behavior_lock(1, True)
        manager.restore(manager.snapshot(max_networks=1))
        assert all(agent.genome.get_output_lock()[1] for agent in manager.agents)
