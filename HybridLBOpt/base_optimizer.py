# HybridLBOpt/base_optimizer.py
"""
Base optimizer module for the HybridLBOpt package.

This module defines the `BaseOptimizer` class, which serves as the foundation
for the optimization algorithms in the package. It encapsulates the shared
logic for problem handling, random-number management and fitness calculation,
where fitness is the imbalance of compute and memory load across data centers.
"""
import logging
import numpy as np

from .lb_models import LoadBalancingProblem, InvalidInputError
from .utils import WORST_FINITE_FITNESS

logger = logging.getLogger(__name__)


def calculate_load_vectors(position, compute_demands, memory_demands, num_data_centers):
    """Aggregates task demand per data center.

    Parameters
    ----------
    position : array_like of int
        Data-center index chosen for each task.
    compute_demands, memory_demands : numpy.ndarray
        Per-task demand, in task order.
    num_data_centers : int
        Number of data centers; data centers with no task get zero load.

    Returns
    -------
    tuple of numpy.ndarray
        ``(compute_load, memory_load, task_count)``, each of length
        ``num_data_centers``.

    Examples
    --------
    >>> import numpy as np
    >>> c, m, n = calculate_load_vectors([0, 1, 1], np.array([5., 1., 2.]), np.array([1., 1., 1.]), 3)
    >>> c.tolist(), m.tolist(), n.tolist()
    ([5.0, 3.0, 0.0], [1.0, 2.0, 0.0], [1, 2, 0])

    """
    position = np.asarray(position, dtype=int)
    compute_load = np.bincount(position, weights=compute_demands, minlength=num_data_centers)
    memory_load = np.bincount(position, weights=memory_demands, minlength=num_data_centers)
    task_count = np.bincount(position, minlength=num_data_centers)
    return compute_load, memory_load, task_count


def calculate_fitness(position, problem: LoadBalancingProblem, capacity_penalty_factor=0.0):
    """Scores an assignment by the imbalance of load across data centers.

    Fitness is the population variance of per-data-center compute load plus
    the population variance of per-data-center memory load. Lower is better
    and the value is never negative.

    Capacity is ignored unless `capacity_penalty_factor` is positive, so a
    data center may receive more demand than it can hold. When a factor is
    given, ``factor * sum(max(load - capacity, 0))`` over compute and memory
    is added to the variance term.

    Parameters
    ----------
    position : array_like of int
        Data-center index for each task.
    problem : LoadBalancingProblem
        The validated problem instance.
    capacity_penalty_factor : float, optional
        Weight of the capacity-overflow penalty. Defaults to 0.0.

    Returns
    -------
    float
        The fitness value. May be non-finite for pathological inputs; callers
        inside the optimization loop go through `BaseOptimizer._calculate_fitness`,
        which guards against that.

    """
    compute_load, memory_load, _ = calculate_load_vectors(
        position, problem.compute_demands, problem.memory_demands, problem.ND)

    with np.errstate(over='ignore', invalid='ignore'):
        fitness = float(np.var(compute_load) + np.var(memory_load))

        if capacity_penalty_factor > 0:
            overflow = np.sum(np.maximum(compute_load - problem.compute_capacities, 0)) + \
                       np.sum(np.maximum(memory_load - problem.memory_capacities, 0))
            fitness += capacity_penalty_factor * float(overflow)

    return fitness


class BaseOptimizer:
    def __init__(self,
                 problem: LoadBalancingProblem,
                 population_size: int,
                 generations: int,
                 random_seed=None,
                 rng=None,
                 capacity_penalty_factor=0.0,
                 **kwargs):

        self.verbose = kwargs.get('verbose', False)

        if not isinstance(problem, LoadBalancingProblem):
            raise InvalidInputError("An optimizer needs a LoadBalancingProblem instance.")
        if int(population_size) < 1:
            raise InvalidInputError(f"population_size must be >= 1, got {population_size}.")
        if int(generations) < 1:
            raise InvalidInputError(f"generations must be >= 1, got {generations}.")
        if capacity_penalty_factor < 0:
            raise InvalidInputError(f"capacity_penalty_factor must be >= 0, got {capacity_penalty_factor}.")

        self.problem: LoadBalancingProblem = problem
        self.population_size = int(population_size)
        self.generations = int(generations)
        self.random_seed = random_seed
        self.capacity_penalty_factor = capacity_penalty_factor

        # Every stochastic step draws from this generator, never from global state.
        self.rng = rng if rng is not None else np.random.default_rng(random_seed)

        # --- State variables ---
        self.current_generation = 0
        self.numeric_anomalies = 0
        self.iteration_history = []

    def _calculate_fitness(self, position):
        """Evaluates a position, replacing NaN/inf results with the worst finite fitness."""
        fitness = calculate_fitness(position, self.problem, self.capacity_penalty_factor)
        if not np.isfinite(fitness):
            self.numeric_anomalies += 1
            logger.warning("Non-finite fitness (%s) at generation %d; treating it as the worst finite fitness.",
                           fitness, self.current_generation)
            return WORST_FINITE_FITNESS
        return fitness

    # --- Methods to be implemented by subclasses ---
    def evolve_one_generation(self, gen_num=0, run_id_for_print=""):
        """Performs a single generation of the optimization algorithm."""
        raise NotImplementedError("This method should be implemented by subclasses.")

    def inject_position(self, position):
        """Injects an external position into the population."""
        raise NotImplementedError("This method should be implemented by subclasses.")

    def build_result(self):
        """Packages the current best solution into a result object."""
        raise NotImplementedError("This method should be implemented by subclasses.")

    # --- Common public methods for epoch interface ---
    def run_epoch(self, generations_in_epoch, current_gen_offset=0, run_id=""):
        """Runs the optimizer for a specified number of generations (an epoch)."""
        for gen in range(generations_in_epoch):
            self.evolve_one_generation(gen_num=current_gen_offset + gen, run_id_for_print=run_id)

    def run(self, run_id_for_print=""):
        """Runs the optimizer for the total number of generations and returns the result."""
        self.run_epoch(self.generations, run_id=run_id_for_print)
        return self.build_result()
