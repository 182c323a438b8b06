#!/usr/bin/env python3
"""
Utility script to run the examples easily.

Usage:
    python scripts/run_example.py arena
    python scripts/run_example.py arena --mode experiment --num-trials 10
"""

import sys
import argparse
import logging
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from npcevo import Config
from examples.trial_arena import Trial_Arena, Experiment_Arena


EXAMPLES = {
    'arena': {
        'trial': Trial_Arena,
        'experiment': Experiment_Arena,
        'config': 'examples/configs/config_arena.ini',
        'description': 'Arena exploration with checkpoints'
    },
}


def main():
    parser = argparse.ArgumentParser(description='Run npcevo examples')
    parser.add_argument('example', choices=EXAMPLES.keys(),
                        help='Example to run')
    parser.add_argument('--mode', choices=['trial', 'experiment'], default='trial',
                        help='Run single trial or full experiment')
    parser.add_argument('--num-trials', type=int, default=10,
                        help='Number of trials for experiment mode')
    parser.add_argument('--num-jobs', type=int, default=1,
                        help='Number of parallel jobs')
    parser.add_argument('--log-level', default='WARNING',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Logging level of the library')

    args = parser.parse_args()
    logging.basicConfig(level=args.log_level,
                        format='%(asctime)s %(name)s %(levelname)s: %(message)s')

    example = EXAMPLES[args.example]
    print(f"Running {example['description']}...")
    print(f"Mode: {args.mode}")

    config = Config(example['config'])

    if args.mode == 'trial':
        trial = example['trial'](config)
        trial.run(num_jobs=args.num_jobs)
    else:
        experiment = example['experiment'](num_trials=args.num_trials, config=config)
        experiment.run(num_jobs_trials=args.num_jobs, num_jobs_agents=1)


if __name__ == '__main__':
    main()
