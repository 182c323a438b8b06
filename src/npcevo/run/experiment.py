"""
Experiment Module

This module defines the abstract base class for experiments: collections of
independent trials, run serially or in parallel with joblib, used to gather
statistics about how reliably and how quickly the population evolves.
"""

from abc    import ABC, abstractmethod
from joblib import Parallel, delayed
from sys    import stdout
from typing import Type

from npcevo.run.config import Config
from npcevo.run.trial  import Trial

class Experiment(ABC):
    """
    Abstract base class for implementing an experiment.

    Each trial is one complete run of the genetic algorithm; the experiment
    aggregates their results (success rate, length in generations, best fitness).

    Subclasses must implement:
    - _reset(): Reset experiment-specific state and call super()._reset()
    - _prepare_trial(trial, trial_number): Configure each trial before execution
    - _extract_trial_results(trial, trial_number): Extract results after trial completes
    - _analyze_trial_results(results): Process and display individual trial results
    - _final_report(): Produce aggregated statistical report for entire experiment

    Public Methods:
        run(num_jobs_trials=1, num_jobs_agents=1): Execute the complete experiment

    Parallelization:
        Trial-level (num_jobs_trials): processes running whole trials
            1 = serial, >1 = that many processes, -1 = all CPU cores
        Agent-level within each trial (num_jobs_agents): threads stepping the agents
            1 = serial (recommended when num_jobs_trials > 1)
    """

    def __init__(self, trial_class: Type[Trial], num_trials: int, config: Config,
                 *args, **kwargs):
        """
        Parameters:
            trial_class: the class describing the trials in this experiment
            num_trials:  number of trials in this experiment
            config:      configuration parameters
            *args:       positional arguments to pass to trial class constructor
            **kwargs:    keyword arguments to pass to trial class constructor
        """
        self._num_trials : int         = num_trials
        self._trial_class: Type[Trial] = trial_class
        self._config     : Config      = config
        self._trial_args               = args
        self._trial_kwargs             = kwargs

        # progress counters
        self._trial_counter  : int = 0  # how many trials we've run so far
        self._success_counter: int = 0  # how many trials reached the fitness threshold

        # for each successful trial, some stats
        self._number_generations: list[int]   = []  # length of trial, in generations
        self._max_fitness       : list[float] = []  # max fitness achieved in trial

    @abstractmethod
    def _reset(self):
        """
        Reset experiment state before starting a new run.
        """
        self._trial_counter      = 0
        self._success_counter    = 0
        self._number_generations = []
        self._max_fitness        = []

    def run(self, num_jobs_trials: int = 1, num_jobs_agents: int = 1):
        """
        Run the experiment.

        Parameters:
            num_jobs_trials: Number of parallel processes for running trials
            num_jobs_agents: Number of threads stepping the agents within each trial
        """
        self._reset()

        if num_jobs_trials == 1:
            results = []
            while self._trial_counter < self._num_trials:
                self._trial_counter += 1
                results.append(self._run_trial(self._trial_counter, num_jobs_agents))
        else:
            results = Parallel(num_jobs_trials)(
                delayed(self._run_trial)(n, num_jobs_agents)
                for n in range(1, self._num_trials + 1)
            )
            self._trial_counter = self._num_trials

        for r in results:
            self._analyze_trial_results(r)
        self._final_report()

    def _run_trial(self, trial_number: int, num_jobs: int = 1) -> dict:
        """
        Prepare, run, analyze one trial.
        Returns the relevant data generated by the trial.
        """
        trial = \
            self._trial_class(*self._trial_args, config=self._config, suppress_output=True, **self._trial_kwargs)

        self._prepare_trial(trial, trial_number)
        trial.run(num_jobs)
        return self._extract_trial_results(trial, trial_number)

    @abstractmethod
    def _prepare_trial(self, trial: Trial, trial_number: int):
        """
        Configure the trial about to run.
        The default implementation prints a progress report.
        """
        s = f"Starting trial {trial_number:03d} of {self._num_trials}..."
        stdout.write(s + '\r')
        stdout.flush()

    @abstractmethod
    def _extract_trial_results(self, trial: Trial, trial_number: int) -> dict:
        """
        Extract relevant results at the end of a trial.
        Derived implementations MUST call this method.
        """
        return {
            "trial_number"      : trial_number,
            "number_generations": trial._generation_counter,
            "max_fitness"       : trial.best_fitness,
            "success"           : not trial.failed,
        }

    @abstractmethod
    def _analyze_trial_results(self, results: dict):
        """
        Update the statistics with the results of one trial.
        Derived implementations MUST call this method.
        """
        if results["success"]:
            self._success_counter += 1
            self._number_generations.append(results["number_generations"])
            self._max_fitness.append(results["max_fitness"])

    @abstractmethod
    def _final_report(self):
        """
        Produce the final report, aggregating the data obtained from each trial.
        """
        pass
