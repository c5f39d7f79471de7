# tests/test_aco_helpers.py
import pytest
import numpy as np
from HybridLBOpt.aco_helpers import PheromoneMatrix
from HybridLBOpt.lb_models import InvalidInputError


@pytest.fixture
def pheromones():
    return PheromoneMatrix(num_tasks=3, num_data_centers=2, initial_level=1.0, floor=0.1)


def test_initial_levels(pheromones):
    assert pheromones.shape == (3, 2)
    assert np.all(pheromones.levels == 1.0)


def test_evaporate_scales_levels(pheromones):
    pheromones.evaporate(0.1)
    np.testing.assert_allclose(pheromones.levels, 0.9)


def test_evaporate_never_drops_below_floor(pheromones):
    for _ in range(200):
        pheromones.evaporate(0.5)
    assert np.all(pheromones.levels >= 0.1)
    np.testing.assert_allclose(pheromones.levels, 0.1)


@pytest.mark.parametrize("rate", [0.0, 1.0, -0.2, 1.5])
def test_evaporate_rejects_rate_outside_open_interval(pheromones, rate):
    with pytest.raises(InvalidInputError):
        pheromones.evaporate(rate)


def test_deposit_reinforces_chosen_cells(pheromones):
    pheromones.deposit([0, 1, 1], 1.0)
    expected = np.array([[2.0, 1.0],
                         [1.0, 2.0],
                         [1.0, 2.0]])
    np.testing.assert_allclose(pheromones.levels, expected)


def test_deposit_with_no_best_is_noop(pheromones):
    pheromones.deposit(None, 1.0)
    assert np.all(pheromones.levels == 1.0)


def test_attraction_towards_reinforced_assignment(pheromones):
    pheromones.deposit([0, 1, 1], 1.0)
    pull = pheromones.attraction(current_position=[1, 0, 1], target_position=[0, 1, 1], scale=0.1)
    # tasks 0 and 1 sit on the weaker cell; task 2 already matches the target
    np.testing.assert_allclose(pull, [0.1, 0.1, 0.0])


def test_snapshot_is_a_copy(pheromones):
    pheromones.deposit([0, 0, 0], 2.0)
    snap = pheromones.snapshot()
    pheromones.evaporate(0.5)
    assert snap[0, 0] == pytest.approx(3.0)
    assert pheromones.levels[0, 0] == pytest.approx(1.5)


def test_invalid_construction():
    with pytest.raises(InvalidInputError):
        PheromoneMatrix(0, 2)
    with pytest.raises(InvalidInputError):
        PheromoneMatrix(2, 2, floor=0.0)
    with pytest.raises(InvalidInputError):
        PheromoneMatrix(2, 2, initial_level=0.05, floor=0.1)
