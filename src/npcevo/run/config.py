import configparser
import os

class Config:

    @staticmethod
    def _parse_layer_sizes(raw_sizes):
        """
        Parse layer_sizes from string to list.

        Parameters:
            raw_sizes: Either a comma-separated string ("8,8,6,4") or already a sequence

        Returns:
            List of layer sizes (input layer first, output layer last)
        """
        if isinstance(raw_sizes, str):
            parsed = [int(size.strip()) for size in raw_sizes.split(',') if size.strip()]
        else:
            parsed = [int(size) for size in raw_sizes]

        if len(parsed) < 2:
            raise ValueError(f"layer_sizes needs at least an input and an output layer, got {parsed}")
        for size in parsed:
            if size <= 0:
                raise ValueError(f"Invalid layer size '{size}' in layer_sizes")
        return parsed

    def __init__(self, config_file: str | None = None):
        """
        Initialize Config by parsing an INI file, or create a Config with default values.

        Parameters:
            config_file: Path to the INI configuration file.
                         If None, creates a default Config for testing/manual setup.
        """

        # Default config for testing/manual setup
        if config_file is None:

            # Population
            self.population_size                = 50
            self.hostile_ratio                  = 0.3
            self.mutation_rate                  = 0.01
            self.tournament_size                = 5
            self.generation_time_limit          = 30.0
            self.immunity_duration              = 2.0
            self.continue_from_current_position = False

            # Genome
            self.layer_sizes = [8, 8, 6, 4]

            # Fitness
            self.grid_size                     = 5.0
            self.exploration_bonus             = 2.0
            self.checkpoint_interval           = 3.0
            self.min_checkpoint_distance       = 5.0
            self.loop_penalty                  = 10.0
            self.max_consecutive_circles       = 3
            self.min_speed                     = 0.5
            self.max_idle_time                 = 5.0
            self.accumulate_checkpoint_rewards = False

            # Checkpoints
            self.checkpoint_radius  = 3.0
            self.checkpoint_reward  = 20.0
            self.order_bonus_factor = 0.5

            # Simulation
            self.time_step           = 0.02
            self.spawn_x             = 0.0
            self.spawn_y             = 0.0
            self.spawn_heading       = 0.0
            self.arena_width         = 60.0
            self.arena_height        = 60.0
            self.move_speed          = 5.0
            self.rotation_speed      = 120.0
            self.sensor_length       = 10.0
            self.jump_cooldown       = 1.0
            self.jump_energy_cost    = 5.0
            self.energy_recovery     = 1.0
            self.noise_generations   = 50

            # Termination
            self.max_number_generations    = 100
            self.fitness_termination_check = False
            self.fitness_criterion         = "max"
            self.fitness_threshold         = float('inf')

            return

        if not os.path.exists(config_file):
            raise FileNotFoundError(f"Configuration file '{config_file}' not found")

        parser = configparser.ConfigParser()
        parser.read(config_file)

        # Sentinel for missing default values
        _NO_DEFAULT = object()

        # Helper function to safely parse values
        def get_value(section, key, value_type, default=_NO_DEFAULT):
            try:
                raw_value = parser.get(section, key)
                if raw_value.lower() == 'none':
                    return None
                if value_type == int:
                    return parser.getint(section, key)
                elif value_type == float:
                    return parser.getfloat(section, key)
                elif value_type == bool:
                    return parser.getboolean(section, key)
                elif value_type == str:
                    return raw_value
            except (configparser.NoSectionError, configparser.NoOptionError):
                if default is not _NO_DEFAULT:
                    return default
                raise

        # [POPULATION]

        # The number of agents in each generation. Constant across generations.
        self.population_size = get_value('POPULATION', 'population_size', int)

        # The fraction of the population that is of hostile type.
        # hostile agents = round(population_size * hostile_ratio), the rest are friendly.
        self.hostile_ratio = get_value('POPULATION', 'hostile_ratio', float)

        # The probability that mutation perturbs a single weight.
        self.mutation_rate = get_value('POPULATION', 'mutation_rate', float)

        # The maximum number of contenders drawn in a tournament.
        # The actual size is capped by the size of the parent pool.
        self.tournament_size = get_value('POPULATION', 'tournament_size', int, default=5)

        # Seconds of simulated time after which a generation is forcibly ended.
        self.generation_time_limit = get_value('POPULATION', 'generation_time_limit', float)

        # Seconds during which freshly reset agents ignore hazard contacts.
        self.immunity_duration = get_value('POPULATION', 'immunity_duration', float, default=2.0)

        # Whether agents keep their position (and explored cells) between
        # generations, instead of going back to the spawn point.
        self.continue_from_current_position = \
            get_value('POPULATION', 'continue_from_current_position', bool, default=False)

        # [GENOME]

        # Number of neurons per layer: input, hidden..., output.
        self.layer_sizes = get_value('GENOME', 'layer_sizes', str)

        # [FITNESS]

        # Side of the square cells used to measure exploration.
        self.grid_size = get_value('FITNESS', 'grid_size', float)

        # Reward per distinct grid cell visited.
        self.exploration_bonus = get_value('FITNESS', 'exploration_bonus', float)

        # Seconds between two anti-loop position checks.
        self.checkpoint_interval = get_value('FITNESS', 'checkpoint_interval', float)

        # Displacement below which a position check counts as a circle.
        self.min_checkpoint_distance = get_value('FITNESS', 'min_checkpoint_distance', float)

        # Penalty per consecutive circle.
        self.loop_penalty = get_value('FITNESS', 'loop_penalty', float)

        # Consecutive circles after which the agent is terminated (0 disables).
        self.max_consecutive_circles = get_value('FITNESS', 'max_consecutive_circles', int, default=3)

        # Agents moving slower than this are idle.
        self.min_speed = get_value('FITNESS', 'min_speed', float)

        # Seconds of continuous idleness after which the agent is terminated.
        self.max_idle_time = get_value('FITNESS', 'max_idle_time', float)

        # If True, checkpoint rewards add up over the generation. If False,
        # only the reward claimed in the current step enters the fitness.
        self.accumulate_checkpoint_rewards = \
            get_value('FITNESS', 'accumulate_checkpoint_rewards', bool, default=False)

        # [CHECKPOINTS]

        # Distance from a checkpoint within which it counts as reached.
        self.checkpoint_radius = get_value('CHECKPOINTS', 'checkpoint_radius', float, default=3.0)

        # Reward for reaching a checkpoint for the first time.
        self.checkpoint_reward = get_value('CHECKPOINTS', 'checkpoint_reward', float, default=20.0)

        # Extra reward, as a fraction of 'checkpoint_reward', when the
        # previous checkpoint was already reached.
        self.order_bonus_factor = get_value('CHECKPOINTS', 'order_bonus_factor', float, default=0.5)

        # [SIMULATION]

        # Length of one fixed simulation step, in seconds.
        self.time_step = get_value('SIMULATION', 'time_step', float, default=0.02)

        # Spawn point and heading (degrees) of every agent.
        self.spawn_x       = get_value('SIMULATION', 'spawn_x'      , float, default=0.0)
        self.spawn_y       = get_value('SIMULATION', 'spawn_y'      , float, default=0.0)
        self.spawn_heading = get_value('SIMULATION', 'spawn_heading', float, default=0.0)

        # Parameters of the kinematic reference body.
        self.arena_width       = get_value('SIMULATION', 'arena_width'      , float, default=60.0)
        self.arena_height      = get_value('SIMULATION', 'arena_height'     , float, default=60.0)
        self.move_speed        = get_value('SIMULATION', 'move_speed'       , float, default=5.0)
        self.rotation_speed    = get_value('SIMULATION', 'rotation_speed'   , float, default=120.0)
        self.sensor_length     = get_value('SIMULATION', 'sensor_length'    , float, default=10.0)
        self.jump_cooldown     = get_value('SIMULATION', 'jump_cooldown'    , float, default=1.0)
        self.jump_energy_cost  = get_value('SIMULATION', 'jump_energy_cost' , float, default=5.0)
        self.energy_recovery   = get_value('SIMULATION', 'energy_recovery'  , float, default=1.0)

        # Generations over which exploration noise on forward speed fades to zero.
        self.noise_generations = get_value('SIMULATION', 'noise_generations', int, default=50)

        # [TERMINATION]

        # The number of generations after which to stop the run.
        self.max_number_generations = get_value('TERMINATION', 'max_number_generations', int)

        # Whether to use the fitness of the most recent
        # generation as a criterion for stopping the run.
        self.fitness_termination_check = \
            get_value('TERMINATION', 'fitness_termination_check', bool, default=False)

        # Allowed values:
        #   "mean" calculate the mean fitness across the entire population
        #   "max"  get the fitness of the fittest agent in the population
        self.fitness_criterion = get_value('TERMINATION', 'fitness_criterion', str, default="max")

        # The fitness value which when met or exceeded causes the run to end.
        self.fitness_threshold = get_value('TERMINATION', 'fitness_threshold', float, default=float('inf'))

        self.validate()

    def validate(self):
        """
        Check that the values are within their allowed ranges.
        Raises ValueError on the first offending value.
        """
        if self.population_size < 1:
            raise ValueError("population_size must be at least 1")
        if not 0.0 <= self.hostile_ratio <= 1.0:
            raise ValueError("hostile_ratio must be in [0, 1]")
        if not 0.0 <= self.mutation_rate <= 1.0:
            raise ValueError("mutation_rate must be in [0, 1]")
        if self.tournament_size < 1:
            raise ValueError("tournament_size must be at least 1")
        if self.generation_time_limit <= 0:
            raise ValueError("generation_time_limit must be positive")
        if self.grid_size <= 0:
            raise ValueError("grid_size must be positive")
        if self.time_step <= 0:
            raise ValueError("time_step must be positive")
        if self.fitness_criterion not in ("max", "mean"):
            raise ValueError("fitness_criterion must be 'max' or 'mean'")

    def __setattr__(self, name, value):
        """
        Override 'setattr' to automatically parse layer_sizes when set.
        This allows users to write config.layer_sizes = "8,8,6,4" and have it
        automatically converted to a list of integers.
        """
        if name == 'layer_sizes':
            value = self._parse_layer_sizes(value)
        super().__setattr__(name, value)
