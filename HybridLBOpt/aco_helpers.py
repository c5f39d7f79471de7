# HybridLBOpt/aco_helpers.py
"""
Ant Colony Optimization (ACO) helpers for the HybridLBOpt package.

This module provides the `PheromoneMatrix` class, the task x data-center
reinforcement table used by the hybrid optimizer. Evaporation lets old
trails fade while deposition reinforces the assignments of improving
solutions; a floor keeps every assignment reachable.
"""
import numpy as np

from .lb_models import InvalidInputError

DEFAULT_INITIAL_PHEROMONE = 1.0
DEFAULT_PHEROMONE_FLOOR = 0.1


class PheromoneMatrix:
    def __init__(self, num_tasks, num_data_centers,
                 initial_level=DEFAULT_INITIAL_PHEROMONE,
                 floor=DEFAULT_PHEROMONE_FLOOR):
        if num_tasks < 1 or num_data_centers < 1:
            raise InvalidInputError("Pheromone matrix needs at least one task and one data center.")
        if floor <= 0:
            raise InvalidInputError(f"Pheromone floor must be > 0, got {floor}.")
        if initial_level < floor:
            raise InvalidInputError(f"Initial pheromone level {initial_level} is below the floor {floor}.")

        self.floor = floor
        self.levels = np.full((num_tasks, num_data_centers), float(initial_level))

    @property
    def shape(self):
        return self.levels.shape

    def evaporate(self, rate):
        """Decays every cell by `rate`, never letting a cell drop below the floor."""
        if not 0 < rate < 1:
            raise InvalidInputError(f"Evaporation rate must be in (0, 1), got {rate}.")
        self.levels *= (1 - rate)
        np.maximum(self.levels, self.floor, out=self.levels)

    def deposit(self, best_position, amount):
        """Adds `amount` to the cell of the data center chosen for each task."""
        if best_position is None:
            return
        task_idx = np.arange(self.levels.shape[0])
        # fancy-index += is safe here: each task index appears exactly once
        self.levels[task_idx, np.asarray(best_position, dtype=int)] += amount

    def attraction(self, current_position, target_position, scale):
        """Per-task pull towards `target_position`.

        Returns ``(tau[t, target[t]] - tau[t, current[t]]) * scale`` for every
        task ``t``: positive when the target assignment carries more pheromone
        than the current one.
        """
        task_idx = np.arange(self.levels.shape[0])
        current_level = self.levels[task_idx, np.asarray(current_position, dtype=int)]
        target_level = self.levels[task_idx, np.asarray(target_position, dtype=int)]
        return (target_level - current_level) * scale

    def snapshot(self):
        return self.levels.copy()
