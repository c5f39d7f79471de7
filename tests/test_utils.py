# tests/test_utils.py
import csv
import json
import pytest
from HybridLBOpt.utils import (
    load_tasks_from_csv, load_data_centers_from_csv, load_assignment_from_csv,
    build_data_centers, export_results, display_optimization_results
)
from HybridLBOpt.lb_models import Task, DataCenter, LoadBalancingProblem, InvalidInputError
from HybridLBOpt.hybrid_helpers import AcoPsoHybridLB


def create_csv_string(headers, rows_of_dicts):
    output = ",".join(headers) + "\n"
    for row_dict in rows_of_dicts:
        row_values = [str(row_dict.get(h, "")) for h in headers]
        output += ",".join(row_values) + "\n"
    return output


@pytest.fixture
def write_csv(tmp_path):
    def _writer(name, headers, rows):
        path = tmp_path / name
        path.write_text(create_csv_string(headers, rows))
        return path
    return _writer


@pytest.fixture
def small_problem():
    tasks = [Task("t0", 40, 10), Task("t1", 20, 10), Task("t2", 20, 10)]
    data_centers = [DataCenter("east", 100, 50), DataCenter("west", 100, 50)]
    return LoadBalancingProblem(tasks=tasks, data_centers=data_centers)


# --- Tests for the CSV loaders ---

def test_load_tasks_from_csv(write_csv):
    path = write_csv("tasks.csv", ["id", "compute_demand", "memory_demand"], [
        {"id": "a", "compute_demand": 1.5, "memory_demand": 2},
        {"id": "b", "compute_demand": 0, "memory_demand": 4},
    ])
    tasks = load_tasks_from_csv(path)
    assert [t.id for t in tasks] == ["a", "b"]
    assert tasks[0].compute_demand == pytest.approx(1.5)
    assert tasks[1].memory_demand == pytest.approx(4.0)


def test_load_tasks_missing_column(write_csv):
    path = write_csv("tasks.csv", ["id", "compute_demand"], [{"id": "a", "compute_demand": 1}])
    with pytest.raises(InvalidInputError, match="memory_demand"):
        load_tasks_from_csv(path)


def test_load_tasks_reports_bad_row(write_csv):
    path = write_csv("tasks.csv", ["id", "compute_demand", "memory_demand"], [
        {"id": "a", "compute_demand": 1, "memory_demand": 1},
        {"id": "b", "compute_demand": -3, "memory_demand": 1},
    ])
    with pytest.raises(InvalidInputError, match="row 2"):
        load_tasks_from_csv(path)


def test_load_tasks_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_tasks_from_csv(tmp_path / "nope.csv")


def test_load_data_centers_optional_columns(write_csv):
    path = write_csv("dcs.csv", ["id", "compute_capacity", "memory_capacity"], [
        {"id": "east", "compute_capacity": 100, "memory_capacity": 64},
    ])
    (dc,) = load_data_centers_from_csv(path)
    assert dc.id == "east"
    assert dc.compute_capacity == pytest.approx(100)
    assert dc.storage_capacity == 0.0
    assert dc.network_bandwidth == 0.0


def test_load_data_centers_full_columns(write_csv):
    path = write_csv("dcs.csv", ["id", "compute_capacity", "memory_capacity", "storage_capacity", "network_bandwidth"], [
        {"id": "east", "compute_capacity": 100, "memory_capacity": 64,
         "storage_capacity": 500, "network_bandwidth": 1000},
    ])
    (dc,) = load_data_centers_from_csv(path)
    assert dc.storage_capacity == pytest.approx(500)
    assert dc.network_bandwidth == pytest.approx(1000)


def test_load_assignment_from_csv(write_csv, small_problem):
    path = write_csv("placement.csv", ["task_id", "data_center_id"], [
        {"task_id": "t2", "data_center_id": "west"},
        {"task_id": "t0", "data_center_id": "east"},
        {"task_id": "t1", "data_center_id": "east"},
    ])
    assert load_assignment_from_csv(path, small_problem) == [0, 0, 1]


@pytest.mark.parametrize("rows, message", [
    ([{"task_id": "t0", "data_center_id": "north"}], "unknown"),
    ([{"task_id": "t0", "data_center_id": "east"}, {"task_id": "t0", "data_center_id": "west"}], "twice"),
    ([{"task_id": "t0", "data_center_id": "east"}], "t1, t2"),
])
def test_load_assignment_rejects_bad_files(write_csv, small_problem, rows, message):
    path = write_csv("placement.csv", ["task_id", "data_center_id"], rows)
    with pytest.raises(InvalidInputError, match=message):
        load_assignment_from_csv(path, small_problem)


# --- Tests for build_data_centers ---

def test_build_data_centers_sizes_from_demand():
    tasks = [Task("t0", 30, 15), Task("t1", 30, 15)]
    dcs = build_data_centers(tasks, num_data_centers=2)
    assert [dc.id for dc in dcs] == ["datacenter_0", "datacenter_1"]
    assert dcs[0].compute_capacity == pytest.approx(45.0)
    assert dcs[1].compute_capacity == pytest.approx(49.5)
    assert dcs[1].memory_capacity == pytest.approx(24.75)
    assert dcs[0].storage_capacity == pytest.approx(2 * (45.0 + 22.5))
    assert [dc.network_bandwidth for dc in dcs] == [1000, 1100]


@pytest.mark.parametrize("num_tasks, expected_dcs", [(12, 3), (200, 4), (1000, 10)])
def test_build_data_centers_default_count(num_tasks, expected_dcs):
    tasks = [Task(f"t{i}", 1, 1) for i in range(num_tasks)]
    assert len(build_data_centers(tasks)) == expected_dcs


def test_build_data_centers_rejects_empty():
    with pytest.raises(InvalidInputError):
        build_data_centers([])
    with pytest.raises(InvalidInputError):
        build_data_centers([Task("t0", 1, 1)], num_data_centers=0)


# --- Tests for export and display ---

def test_export_results_writes_all_files(tmp_path, small_problem):
    result = AcoPsoHybridLB(small_problem, population_size=6, generations=4, random_seed=0).run()
    out_dir = tmp_path / "results"
    export_results(result, small_problem, str(out_dir))

    summary = json.loads((out_dir / "summary.json").read_text())
    assert summary['global_best_fitness'] == pytest.approx(result.global_best_fitness)
    assert summary['load_condition']['condition'] == result.load_condition['condition']
    assert summary['total_iterations'] == 4

    with open(out_dir / "assignments.csv", newline='') as f:
        rows = list(csv.DictReader(f))
    assert [r['Task_ID'] for r in rows] == ["t0", "t1", "t2"]
    assert {r['Data_Center_ID'] for r in rows} <= {"east", "west"}

    with open(out_dir / "migrations.csv", newline='') as f:
        assert len(list(csv.DictReader(f))) == result.migrations['total_migrations']

    with open(out_dir / "iteration_history.csv", newline='') as f:
        history_rows = list(csv.DictReader(f))
    assert [int(r['iteration']) for r in history_rows] == [1, 2, 3, 4]


def test_display_optimization_results_picks_best_run(small_problem, capsys):
    runs = [
        {'seed': seed, 'result': AcoPsoHybridLB(small_problem, population_size=4, generations=3,
                                                random_seed=seed).run()}
        for seed in (1, 2, 3)
    ]
    best = display_optimization_results(runs, small_problem)
    assert best['result'].global_best_fitness == min(r['result'].global_best_fitness for r in runs)
    assert "Best fitness across all runs" in capsys.readouterr().out


def test_display_optimization_results_empty(small_problem):
    assert display_optimization_results([], small_problem) is None
    assert display_optimization_results([{'seed': 1, 'result': None}], small_problem) is None
