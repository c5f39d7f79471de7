# HybridLBOpt/lb_models.py
"""Data models for cloud load-balancing problems.

This module contains the core classes for defining a placement problem:

*   ``Task``: A workload unit with compute and memory demand.
*   ``DataCenter``: A resource pool with finite capacities.
*   ``LoadBalancingProblem``: The main class that validates and aggregates
    all problem data.
*   ``LoadBalancingResult``: The outcome of one optimization run.
"""
import math
import numpy as np


class InvalidInputError(ValueError):
    """Raised when a problem or optimizer cannot be built from the given input."""


def _check_non_negative(owner, field_name, value):
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidInputError(f"{owner}: '{field_name}' must be a number, got {value!r}.")
    if not math.isfinite(number) or number < 0:
        raise InvalidInputError(f"{owner}: '{field_name}' must be a finite number >= 0, got {value!r}.")
    return number


class Task:
    def __init__(self, id_val=None, compute_demand=0.0, memory_demand=0.0):
        self.id = id_val
        self.compute_demand = _check_non_negative(f"Task {id_val}", 'compute_demand', compute_demand)
        self.memory_demand = _check_non_negative(f"Task {id_val}", 'memory_demand', memory_demand)

    def __repr__(self):
        return f"Task(id={self.id!r}, compute_demand={self.compute_demand}, memory_demand={self.memory_demand})"


class DataCenter:
    def __init__(self, id_val=None, compute_capacity=0.0, memory_capacity=0.0,
                 storage_capacity=0.0, network_bandwidth=0.0):
        owner = f"DataCenter {id_val}"
        self.id = id_val
        self.compute_capacity = _check_non_negative(owner, 'compute_capacity', compute_capacity)
        self.memory_capacity = _check_non_negative(owner, 'memory_capacity', memory_capacity)
        self.storage_capacity = _check_non_negative(owner, 'storage_capacity', storage_capacity)
        self.network_bandwidth = _check_non_negative(owner, 'network_bandwidth', network_bandwidth)

    def __repr__(self):
        return (f"DataCenter(id={self.id!r}, compute_capacity={self.compute_capacity}, "
                f"memory_capacity={self.memory_capacity})")


class LoadBalancingProblem:
    """A static snapshot of demand (tasks) and capacity (data centers).

    All validation happens here, once, so that optimizers can assume
    well-formed input. Tasks and data centers are kept in the order given;
    positions produced by the optimizers index into these lists.

    Parameters
    ----------
    tasks : list[Task]
        The workload units to place. Must not be empty.
    data_centers : list[DataCenter]
        The resource pools available. Must not be empty.

    Raises
    ------
    InvalidInputError
        If either list is empty, contains an object of the wrong type, or
        repeats an id.

    """
    def __init__(self, tasks=None, data_centers=None):
        self.tasks = list(tasks or [])
        self.data_centers = list(data_centers or [])

        if not self.tasks:
            raise InvalidInputError("No tasks provided.")
        if not self.data_centers:
            raise InvalidInputError("No data centers provided.")

        for task in self.tasks:
            if not isinstance(task, Task):
                raise InvalidInputError(f"Expected a Task, got {type(task).__name__}.")
        for dc in self.data_centers:
            if not isinstance(dc, DataCenter):
                raise InvalidInputError(f"Expected a DataCenter, got {type(dc).__name__}.")

        self._check_unique_ids(self.tasks, "task")
        self._check_unique_ids(self.data_centers, "data center")

        self.NT = len(self.tasks)
        self.ND = len(self.data_centers)

        self.compute_demands = np.array([t.compute_demand for t in self.tasks], dtype=float)
        self.memory_demands = np.array([t.memory_demand for t in self.tasks], dtype=float)
        self.compute_capacities = np.array([dc.compute_capacity for dc in self.data_centers], dtype=float)
        self.memory_capacities = np.array([dc.memory_capacity for dc in self.data_centers], dtype=float)

    @staticmethod
    def _check_unique_ids(items, label):
        seen = set()
        for item in items:
            if item.id is None:
                continue
            if item.id in seen:
                raise InvalidInputError(f"Duplicate {label} id: {item.id!r}.")
            seen.add(item.id)

    def task_id(self, task_index):
        task = self.tasks[task_index]
        return task.id if task.id is not None else f"task_{task_index}"

    def data_center_id(self, dc_index):
        dc = self.data_centers[dc_index]
        return dc.id if dc.id is not None else f"dc_{dc_index}"

    def build_assignments(self, position):
        """Translates a position vector into one assignment entry per task."""
        return [
            {
                'task_id': self.task_id(t),
                'task_index': t,
                'data_center_id': self.data_center_id(int(dc_idx)),
                'data_center_index': int(dc_idx),
            }
            for t, dc_idx in enumerate(position)
        ]


class LoadBalancingResult:
    """Everything one optimization run produces."""
    def __init__(self, global_best_position, global_best_fitness, final_assignments,
                 load_condition, migrations, iteration_history, total_iterations,
                 pheromone_matrix=None, numeric_anomalies=0, metrics=None,
                 reassignments=None):
        self.global_best_position = global_best_position
        self.global_best_fitness = global_best_fitness
        self.final_assignments = final_assignments
        self.load_condition = load_condition
        self.migrations = migrations
        self.iteration_history = iteration_history
        self.total_iterations = total_iterations
        self.pheromone_matrix = pheromone_matrix
        self.numeric_anomalies = numeric_anomalies
        self.metrics = metrics or {}
        self.reassignments = reassignments

    def to_dict(self):
        return {
            'global_best_position': [int(x) for x in self.global_best_position],
            'global_best_fitness': float(self.global_best_fitness),
            'final_assignments': self.final_assignments,
            'load_condition': self.load_condition,
            'migrations': self.migrations,
            'iteration_history': self.iteration_history,
            'total_iterations': self.total_iterations,
            'pheromone_matrix': None if self.pheromone_matrix is None else np.asarray(self.pheromone_matrix).tolist(),
            'numeric_anomalies': self.numeric_anomalies,
            'metrics': self.metrics,
            'reassignments': self.reassignments,
        }
