"""
Arena Problem

Agents are point bodies moving in a walled square arena. Seven rays measure the
distance to the walls; the network drives forward speed, turning and jumping.
Touching a wall ends an agent's generation, and so do idling and circling.

The fitness rewards distance travelled, exploration of the arena's grid cells,
moving away from the spawn point, jumping, and visiting a ring of checkpoints
(with a bonus for visiting them in order).

Classes:
    Trial_Arena:      Trial evolving arena explorers
    Experiment_Arena: Multi-trial experiment with statistical analysis

Usage:
    Single Trial:
        config = Config("examples/configs/config_arena.ini")
        trial = Trial_Arena(config)
        trial.run(num_jobs=1)

    Experiment (Multiple Trials):
        config = Config("examples/configs/config_arena.ini")
        experiment = Experiment_Arena(num_trials=10, config=config)
        experiment.run(num_jobs_trials=-1)
"""

import math
from statistics import mean

from npcevo.fitness   import CheckpointSystem
from npcevo.phenotype import AgentType, KinematicBody
from npcevo.pool      import GenerationStats
from npcevo.run       import Config, Experiment, Trial

class Trial_Arena(Trial):
    """
    Trial evolving agents that explore an arena and visit its checkpoints.

    The checkpoints lie on a circle around the spawn point, numbered
    counter-clockwise starting from the spawn heading.

    Implemented Methods:
        _create_body(agent_type): A KinematicBody at the spawn point
        _create_checkpoints():    The ring of checkpoints
        _report_progress(stats):  Print the statistics of each generation
        _final_report():          Print the best network found
    """

    def __init__(self, config: Config, suppress_output: bool = False,
                 num_checkpoints: int = 8, checkpoint_ring_radius: float = 18.0):
        """
        Parameters:
            config:                 Configuration parameters
            suppress_output:        If True, suppress progress and final reports
            num_checkpoints:        Number of checkpoints on the ring
            checkpoint_ring_radius: Distance of the checkpoints from the spawn point
        """
        super().__init__(config, suppress_output)
        self._num_checkpoints        = num_checkpoints
        self._checkpoint_ring_radius = checkpoint_ring_radius

    def _reset(self):
        """Reset trial state."""
        return super()._reset()

    def _create_body(self, agent_type: AgentType) -> KinematicBody:
        return KinematicBody(self._config)

    def _create_checkpoints(self) -> CheckpointSystem:
        positions = []
        for i in range(self._num_checkpoints):
            angle = math.radians(self._config.spawn_heading) + 2 * math.pi * i / self._num_checkpoints
            positions.append((self._config.spawn_x + self._checkpoint_ring_radius * math.cos(angle),
                              self._config.spawn_y + self._checkpoint_ring_radius * math.sin(angle)))
        return CheckpointSystem.from_config(positions, self._config)

    def _report_progress(self, stats: GenerationStats):
        """
        Print a report describing the generation that just ended.
        """
        s  = f"===============\n"
        s += f"GENERATION {stats.generation:04d} ({stats.reason})\n"
        s += f"agents          = {stats.friendly_count} friendly, {stats.hostile_count} hostile\n"
        s += f"maximum fitness = {stats.best_fitness:.4f}\n"
        s += f"average fitness = {stats.average_fitness:.4f}\n"
        s += f"minimum fitness = {stats.worst_fitness:.4f}\n"
        print(s)

    def _final_report(self):
        """
        Print the best fitness reached and the network that is currently the fittest.
        """
        snapshot = self._population.snapshot(max_networks=1)
        best     = snapshot.networks[0]

        s  = f"\nBest fitness reached: {self.best_fitness:.4f}\n"
        s += f"Fittest network now: {best.agent_type.name.lower()}, layers {best.genome.layer_sizes}\n"
        s += "FAILED" if self.failed else "SUCCESS"
        print(s)

class Experiment_Arena(Experiment):

    def __init__(self, num_trials: int, config: Config):
        """
        Parameters:
            num_trials: Number of trials in this experiment
            config:     Configuration parameters
        """
        super().__init__(Trial_Arena, num_trials, config)

    def _reset(self):
        super()._reset()

    def _prepare_trial(self, trial: Trial_Arena, trial_number: int):
        # the default implementation prints a progress report.
        super()._prepare_trial(trial, trial_number)

    def _extract_trial_results(self, trial: Trial_Arena, trial_number: int) -> dict:
        return super()._extract_trial_results(trial, trial_number)

    def _analyze_trial_results(self, results: dict):
        """
        Print a one-line summary of each trial, once complete.
        """
        super()._analyze_trial_results(results)

        s  = f"Trial {results['trial_number']:03d}: "
        s += f"max fitness={results['max_fitness']:.2f}, "
        s += f"generations={results['number_generations']:3} "
        s += "[SUCCESS]" if results['success'] else "[FAILED]"
        print(s)

    def _final_report(self):
        """
        Produce the final report, aggregating the data obtained from each trial.
        """
        success_rate = self._success_counter / self._trial_counter

        s  = "\nSUMMARY:\n"
        s += f"Total trials:         = {self._trial_counter}\n"
        s += f"Success rate          = {100*success_rate:.0f}%\n"

        if self._number_generations:
            s += f"Avg # generations     = {mean(self._number_generations):.0f}\n"
            s += f"Avg max fitness       = {mean(self._max_fitness):.2f}\n"
        else:
            s += "No successful trials - cannot compute statistics\n"
        print(s)
