# tests/test_base_optimizer.py
import logging
import pytest
import numpy as np
from HybridLBOpt.lb_models import Task, DataCenter, LoadBalancingProblem, InvalidInputError
from HybridLBOpt.base_optimizer import BaseOptimizer, calculate_fitness, calculate_load_vectors
from HybridLBOpt.utils import WORST_FINITE_FITNESS


@pytest.fixture
def two_task_problem():
    """
    Two identical tasks (compute 10, memory 5) and two data centers.
    The first data center is small enough to overflow when it takes both tasks.
    """
    tasks = [Task("t0", 10, 5), Task("t1", 10, 5)]
    data_centers = [DataCenter("dc0", 15, 100), DataCenter("dc1", 100, 100)]
    return LoadBalancingProblem(tasks=tasks, data_centers=data_centers)


def test_calculate_load_vectors_counts_empty_data_centers():
    compute, memory, count = calculate_load_vectors(
        [2, 2, 0], np.array([1.0, 2.0, 4.0]), np.array([0.5, 0.5, 1.0]), 4)
    np.testing.assert_allclose(compute, [4.0, 0.0, 3.0, 0.0])
    np.testing.assert_allclose(memory, [1.0, 0.0, 1.0, 0.0])
    assert count.tolist() == [1, 0, 2, 0]


def test_fitness_all_on_one_data_center(two_task_problem):
    # compute loads [20, 0] -> var 100; memory loads [10, 0] -> var 25
    assert calculate_fitness([0, 0], two_task_problem) == pytest.approx(125.0)


def test_fitness_perfect_split_is_zero(two_task_problem):
    assert calculate_fitness([0, 1], two_task_problem) == pytest.approx(0.0)


def test_fitness_ignores_capacity_by_default(two_task_problem):
    """dc0 holds 20 compute against a capacity of 15, but no penalty is applied."""
    assert calculate_fitness([0, 0], two_task_problem, capacity_penalty_factor=0.0) == pytest.approx(125.0)


def test_fitness_capacity_penalty(two_task_problem):
    # 5 units of compute overflow on dc0, weighted by 2
    assert calculate_fitness([0, 0], two_task_problem, capacity_penalty_factor=2.0) == pytest.approx(135.0)
    # no overflow on dc1
    assert calculate_fitness([1, 1], two_task_problem, capacity_penalty_factor=2.0) == pytest.approx(125.0)


def test_fitness_never_negative(two_task_problem):
    for position in ([0, 0], [0, 1], [1, 0], [1, 1]):
        assert calculate_fitness(position, two_task_problem) >= 0.0


def test_base_optimizer_validates_inputs(two_task_problem):
    with pytest.raises(InvalidInputError):
        BaseOptimizer(problem="not a problem", population_size=5, generations=5)
    with pytest.raises(InvalidInputError):
        BaseOptimizer(problem=two_task_problem, population_size=0, generations=5)
    with pytest.raises(InvalidInputError):
        BaseOptimizer(problem=two_task_problem, population_size=5, generations=0)
    with pytest.raises(InvalidInputError):
        BaseOptimizer(problem=two_task_problem, population_size=5, generations=5, capacity_penalty_factor=-1)


def test_base_optimizer_abstract_methods(two_task_problem):
    optimizer = BaseOptimizer(problem=two_task_problem, population_size=5, generations=5)
    with pytest.raises(NotImplementedError):
        optimizer.evolve_one_generation()
    with pytest.raises(NotImplementedError):
        optimizer.build_result()


def test_same_seed_gives_same_generator(two_task_problem):
    a = BaseOptimizer(problem=two_task_problem, population_size=5, generations=5, random_seed=3)
    b = BaseOptimizer(problem=two_task_problem, population_size=5, generations=5, random_seed=3)
    assert a.rng.random() == b.rng.random()


def test_non_finite_fitness_is_replaced(two_task_problem, monkeypatch, caplog):
    """A NaN fitness is counted as an anomaly and scored as the worst finite value."""
    monkeypatch.setattr("HybridLBOpt.base_optimizer.calculate_fitness", lambda *args, **kwargs: float("nan"))
    optimizer = BaseOptimizer(problem=two_task_problem, population_size=5, generations=5)

    with caplog.at_level(logging.WARNING, logger="HybridLBOpt.base_optimizer"):
        fitness = optimizer._calculate_fitness(np.array([0, 1]))

    assert fitness == WORST_FINITE_FITNESS
    assert np.isfinite(fitness)
    assert optimizer.numeric_anomalies == 1
    assert "Non-finite fitness" in caplog.text
