"""
Telemetry Module

Per-agent measurements gathered during a generation, from which the
fitness is computed.

Classes:
    Telemetry: Distance, exploration, anti-loop and idle counters of one agent
"""

import numpy as np
from typing import Sequence

# Number of anti-loop check positions remembered
POSITION_HISTORY_LENGTH = 10

class Telemetry:
    """
    Measurements of one agent over the current generation.

    Positions are planar (x, y); headings are in degrees.

    Public Attributes:
        start_position:         Spawn point, reference for 'distance_from_start'
        last_position:          Position at the previous step
        last_heading:           Heading at the previous step
        total_distance:         Path length travelled
        time_alive:             Seconds alive in this generation
        idle_time:              Seconds spent continuously below the minimum speed
        visited_cells:          Grid cells entered at least once
        unique_areas_visited:   Number of distinct grid cells entered
        distance_from_start:    Straight-line distance from the spawn point
        successful_jumps:       Jumps performed
        consecutive_circles:    Consecutive anti-loop checks without enough displacement
        total_rotation:         Sum of absolute heading changes, in degrees
        loop_check_position:    Position recorded at the previous anti-loop check
        time_since_loop_check:  Seconds since the previous anti-loop check
        position_history:       The last anti-loop check positions
        immunity_remaining:     Seconds during which hazard contacts are ignored
        checkpoint_rewards:     Checkpoint rewards claimed so far in this generation
    """

    def __init__(self, start_position: Sequence[float] = (0.0, 0.0), start_heading: float = 0.0):
        self.reset(start_position, start_heading)

    def reset(self, start_position: Sequence[float], start_heading: float = 0.0):
        """
        Go back to the start state, with a new spawn point.
        """
        self.start_position: np.ndarray = np.array(start_position, dtype=float)
        self.visited_cells : set[tuple[int, int]] = set()
        self.unique_areas_visited: int  = 0
        self.distance_from_start : float = 0.0
        self.position_history: list[np.ndarray] = []
        self._restart_counters(self.start_position, start_heading)

    def reset_keeping_position(self, position: Sequence[float], heading: float = 0.0):
        """
        Go back to the start state but continue from the current position.

        The spawn point and the visited cells are kept, so that exploration
        carries on from where the agent stopped.
        """
        position = np.array(position, dtype=float)
        self.unique_areas_visited = len(self.visited_cells)
        self.distance_from_start  = float(np.linalg.norm(position - self.start_position))
        self._restart_counters(position, heading)

    def _restart_counters(self, position: np.ndarray, heading: float):
        self.last_position        : np.ndarray = position.copy()
        self.last_heading         : float = float(heading)
        self.total_distance       : float = 0.0
        self.time_alive           : float = 0.0
        self.idle_time            : float = 0.0
        self.successful_jumps     : int   = 0
        self.consecutive_circles  : int   = 0
        self.total_rotation       : float = 0.0
        self.loop_check_position  : np.ndarray = position.copy()
        self.time_since_loop_check: float = 0.0
        self.immunity_remaining   : float = 0.0
        self.checkpoint_rewards   : float = 0.0

    @property
    def rotation_ratio(self) -> float:
        """
        Degrees turned per unit of distance travelled (0 before any movement).
        A high ratio hints at an agent spinning in place.
        """
        if self.total_distance <= 0:
            return 0.0
        return self.total_rotation / self.total_distance

    def record_loop_check(self, position: np.ndarray):
        self.loop_check_position   = position.copy()
        self.time_since_loop_check = 0.0
        self.position_history.append(position.copy())
        if len(self.position_history) > POSITION_HISTORY_LENGTH:
            self.position_history.pop(0)
