# HybridLBOpt/load_analysis.py
"""
Post-optimization analysis for the HybridLBOpt package.

Once a run has produced its final assignment, this module:

*   classifies how evenly it spreads utilization (`analyze_load_condition`),
*   plans task migrations from overloaded to underloaded data centers
    (`determine_migrations`),
*   lists the moves needed to go from an initial placement to the optimized
    one (`plan_reassignments`),
*   and condenses everything into headline metrics (`summarize_metrics`).
"""
import logging
import math
import numpy as np

from .base_optimizer import calculate_load_vectors
from .utils import (
    CONDITION_BALANCED, CONDITION_PARTIALLY_BALANCED, CONDITION_UNBALANCED,
    MIGRATION_REASON_LOAD_BALANCING, MIGRATION_REASON_OPTIMIZED_PLACEMENT
)

logger = logging.getLogger(__name__)


class LoadConditionThresholds:
    """Empirical cut-offs for the load-condition classes.

    Utilization values are percentages. A solution is 'Unbalanced' when any
    `unbalanced_*` limit is hit, otherwise 'Partially Balanced' when any
    `partial_*` limit is hit, otherwise 'Balanced'.
    """
    def __init__(self, unbalanced_variance=500.0, unbalanced_max=90.0, unbalanced_min=10.0, unbalanced_spread=60.0,
                 partial_variance=200.0, partial_max=85.0, partial_min=15.0, partial_spread=40.0,
                 compute_weight=0.7, memory_weight=0.3):
        self.unbalanced_variance = unbalanced_variance
        self.unbalanced_max = unbalanced_max
        self.unbalanced_min = unbalanced_min
        self.unbalanced_spread = unbalanced_spread
        self.partial_variance = partial_variance
        self.partial_max = partial_max
        self.partial_min = partial_min
        self.partial_spread = partial_spread
        self.compute_weight = compute_weight
        self.memory_weight = memory_weight


class MigrationPolicy:
    def __init__(self, overload_ratio=1.2, underload_ratio=0.8, migration_fraction=0.5):
        self.overload_ratio = overload_ratio
        self.underload_ratio = underload_ratio
        self.migration_fraction = migration_fraction


def _utilization_percent(load, capacity):
    """Load as a percentage of capacity, capped at 100.

    A zero-capacity data center counts as full if it carries any load and as
    idle otherwise.
    """
    with np.errstate(divide='ignore', invalid='ignore'):
        percent = np.where(capacity > 0, load / np.where(capacity > 0, capacity, 1.0) * 100.0,
                           np.where(load > 0, 100.0, 0.0))
    zero_capacity = int(np.sum((capacity <= 0) & (load > 0)))
    if zero_capacity:
        logger.warning("%d data center(s) with zero capacity carry load; counted as 100%% utilized.", zero_capacity)
    return np.minimum(percent, 100.0)


def classify_utilization(utilizations, thresholds=None):
    """Returns the load-condition label and the statistics it was derived from."""
    t = thresholds or LoadConditionThresholds()
    utilizations = np.asarray(utilizations, dtype=float)

    avg_util = float(np.mean(utilizations))
    max_util = float(np.max(utilizations))
    min_util = float(np.min(utilizations))
    variance = float(np.var(utilizations))
    spread = max_util - min_util

    if variance >= t.unbalanced_variance or max_util > t.unbalanced_max or \
            min_util < t.unbalanced_min or spread > t.unbalanced_spread:
        condition = CONDITION_UNBALANCED
    elif variance >= t.partial_variance or max_util > t.partial_max or \
            min_util < t.partial_min or spread > t.partial_spread:
        condition = CONDITION_PARTIALLY_BALANCED
    else:
        condition = CONDITION_BALANCED

    return condition, avg_util, max_util, min_util, variance


def analyze_load_condition(position, lb_problem, thresholds=None):
    """Classifies the balance quality of an assignment.

    Each data center's utilization is ``compute_weight * compute% +
    memory_weight * memory%``, where each percentage is relative to that
    data center's capacity and capped at 100.

    Parameters
    ----------
    position : array_like of int
        Final data-center index for every task.
    lb_problem : LoadBalancingProblem
        The problem instance.
    thresholds : LoadConditionThresholds, optional
        Classification cut-offs. Defaults to the standard thresholds.

    Returns
    -------
    dict
        Keys: 'condition', 'average_utilization', 'max_utilization',
        'min_utilization', 'load_variance' and 'data_center_loads' (one entry
        per data center).

    """
    t = thresholds or LoadConditionThresholds()
    compute_load, memory_load, task_count = calculate_load_vectors(
        position, lb_problem.compute_demands, lb_problem.memory_demands, lb_problem.ND)

    compute_util = _utilization_percent(compute_load, lb_problem.compute_capacities)
    memory_util = _utilization_percent(memory_load, lb_problem.memory_capacities)
    utilization = compute_util * t.compute_weight + memory_util * t.memory_weight

    condition, avg_util, max_util, min_util, variance = classify_utilization(utilization, t)

    data_center_loads = [
        {
            'data_center_id': lb_problem.data_center_id(i),
            'data_center_index': i,
            'compute_load': float(compute_load[i]),
            'memory_load': float(memory_load[i]),
            'task_count': int(task_count[i]),
            'utilization': float(utilization[i]),
        }
        for i in range(lb_problem.ND)
    ]

    return {
        'condition': condition,
        'average_utilization': avg_util,
        'max_utilization': max_util,
        'min_utilization': min_util,
        'load_variance': variance,
        'data_center_loads': data_center_loads,
    }


def determine_migrations(position, lb_problem, policy=None):
    """Plans task moves from overloaded to underloaded data centers.

    A data center is overloaded when its task count exceeds
    ``overload_ratio`` times the mean count, and underloaded when it is below
    ``underload_ratio`` times the mean. Each overloaded data center hands
    ``floor(migration_fraction * ceil(count - mean))`` of its tasks, in
    assignment order, to the underloaded data centers round robin.

    The count is exactly the number of planned moves: a balanced assignment
    yields zero migrations.

    Returns
    -------
    dict
        Keys: 'total_migrations', 'migrations' (list of migration records),
        'overloaded_data_centers', 'underloaded_data_centers'.

    """
    p = policy or MigrationPolicy()
    position = np.asarray(position, dtype=int)
    num_dcs = lb_problem.ND

    tasks_by_dc = [[] for _ in range(num_dcs)]
    for task_idx, dc_idx in enumerate(position):
        tasks_by_dc[dc_idx].append(task_idx)

    counts = np.array([len(ts) for ts in tasks_by_dc])
    avg_tasks = counts.sum() / num_dcs

    overloaded = [i for i in range(num_dcs) if counts[i] > avg_tasks * p.overload_ratio]
    underloaded = [i for i in range(num_dcs) if counts[i] < avg_tasks * p.underload_ratio]

    migrations = []
    if overloaded and underloaded:
        for dc_idx in overloaded:
            excess = math.ceil(counts[dc_idx] - avg_tasks)
            to_move = math.floor(excess * p.migration_fraction)
            for k, task_idx in enumerate(tasks_by_dc[dc_idx][:to_move]):
                target = underloaded[k % len(underloaded)]
                migrations.append({
                    'task_id': lb_problem.task_id(task_idx),
                    'from_data_center': dc_idx,
                    'to_data_center': target,
                    'from_data_center_id': lb_problem.data_center_id(dc_idx),
                    'to_data_center_id': lb_problem.data_center_id(target),
                    'reason': MIGRATION_REASON_LOAD_BALANCING,
                })

    return {
        'total_migrations': len(migrations),
        'migrations': migrations,
        'overloaded_data_centers': len(overloaded),
        'underloaded_data_centers': len(underloaded),
    }


def plan_reassignments(initial_position, final_position, lb_problem):
    """Lists every task whose data center differs between two placements."""
    initial_position = np.asarray(initial_position, dtype=int)
    final_position = np.asarray(final_position, dtype=int)
    if initial_position.shape != final_position.shape:
        raise ValueError("Initial and final positions must cover the same tasks.")

    moves = []
    for task_idx in np.flatnonzero(initial_position != final_position):
        src, dst = int(initial_position[task_idx]), int(final_position[task_idx])
        moves.append({
            'task_id': lb_problem.task_id(int(task_idx)),
            'from_data_center': src,
            'to_data_center': dst,
            'from_data_center_id': lb_problem.data_center_id(src),
            'to_data_center_id': lb_problem.data_center_id(dst),
            'reason': MIGRATION_REASON_OPTIMIZED_PLACEMENT,
        })
    return moves


def summarize_metrics(lb_problem, global_best_fitness, load_condition, migrations,
                      balanced_range=(40.0, 80.0)):
    """Headline figures for reporting.

    A data center counts as balanced when its utilization lies inside
    `balanced_range` (inclusive).
    """
    low, high = balanced_range
    balanced_dcs = sum(1 for dc in load_condition['data_center_loads'] if low <= dc['utilization'] <= high)
    return {
        'total_tasks': lb_problem.NT,
        'total_data_centers': lb_problem.ND,
        'balanced_data_centers': balanced_dcs,
        'balanced_percentage': balanced_dcs / lb_problem.ND * 100.0,
        'load_condition': load_condition['condition'],
        'total_migrations': migrations['total_migrations'],
        'average_utilization': load_condition['average_utilization'],
        'max_utilization': load_condition['max_utilization'],
        'min_utilization': load_condition['min_utilization'],
        'load_variance': load_condition['load_variance'],
        'global_best_fitness': float(global_best_fitness),
    }
