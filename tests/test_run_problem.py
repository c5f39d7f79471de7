# tests/test_run_problem.py
import json
from types import SimpleNamespace
import pytest
import HybridLBOpt
from HybridLBOpt.run_problem import DEFAULTS, load_config_defaults, build_problem, build_solver_params, main


@pytest.fixture
def input_files(tmp_path):
    tasks = tmp_path / "tasks.csv"
    tasks.write_text("id,compute_demand,memory_demand\n"
                     "t0,40,10\nt1,20,8\nt2,20,8\nt3,10,4\nt4,10,4\nt5,20,6\n")
    dcs = tmp_path / "data_centers.csv"
    dcs.write_text("id,compute_capacity,memory_capacity\n"
                   "east,80,30\nwest,80,30\n")
    return tasks, dcs


def make_args(**overrides):
    return SimpleNamespace(**{**DEFAULTS, **overrides})


def test_load_config_defaults_flattens_sections(tmp_path):
    config = tmp_path / "config.json"
    config.write_text(json.dumps({
        "core": {"population_size": 12, "random_seed": 4},
        "aco": {"evaporation_rate": 0.2},
        "verbose": True,
    }))
    assert load_config_defaults(config) == {
        "population_size": 12, "random_seed": 4, "evaporation_rate": 0.2, "verbose": True,
    }


def test_load_config_defaults_resolves_input_paths(tmp_path):
    config_dir = tmp_path / "cfg"
    config_dir.mkdir()
    absolute_dcs = str(tmp_path / "elsewhere" / "dcs.csv")
    config = config_dir / "config.json"
    config.write_text(json.dumps({
        "files": {"tasks_file": "tasks.csv", "data_centers_file": absolute_dcs},
        "core": {"output_dir": "results"},
    }))
    defaults = load_config_defaults(config)
    assert defaults["tasks_file"] == str(config_dir / "tasks.csv")
    assert defaults["data_centers_file"] == absolute_dcs
    # output locations are left to the caller
    assert defaults["output_dir"] == "results"


def test_load_config_defaults_missing_file(tmp_path):
    assert load_config_defaults(tmp_path / "missing.json") == {}


def test_build_problem_sizes_data_centers_when_no_file(input_files):
    tasks, _ = input_files
    problem = build_problem(make_args(tasks_file=str(tasks), num_data_centers=4))
    assert problem.NT == 6
    assert problem.ND == 4


def test_build_solver_params_total_generations():
    params = build_solver_params(make_args(epochs=3, generations_per_epoch=7, migration_fraction=0.25))
    assert params['generations'] == 21
    assert params['migration_policy'].migration_fraction == 0.25
    assert params['initial_position'] is None


def test_main_sequential_exports_results(input_files, tmp_path):
    tasks, dcs = input_files
    out_dir = tmp_path / "out"
    best = main(make_args(tasks_file=str(tasks), data_centers_file=str(dcs), population_size=8,
                          epochs=2, generations_per_epoch=3, random_seed=1, output_dir=str(out_dir)))
    assert best['seed'] == 1
    assert best['result'].total_iterations == 6
    assert (out_dir / "summary.json").is_file()
    assert (out_dir / "iteration_history.csv").is_file()


def test_main_with_initial_assignment(input_files, tmp_path):
    tasks, dcs = input_files
    placement = tmp_path / "placement.csv"
    placement.write_text("task_id,data_center_id\n" +
                         "".join(f"t{i},east\n" for i in range(6)))
    best = main(make_args(tasks_file=str(tasks), data_centers_file=str(dcs), population_size=8,
                          epochs=1, generations_per_epoch=5, random_seed=2,
                          initial_assignment_file=str(placement)))
    assert best['result'].reassignments is not None
    # everything starts on 'east', so every move leaves it
    assert all(m['from_data_center_id'] == 'east' for m in best['result'].reassignments)


def test_main_exits_on_missing_tasks_file(tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        main(make_args(tasks_file=str(tmp_path / "missing.csv")))
    assert excinfo.value.code == 1


def test_package_run_entry_point(input_files, tmp_path):
    tasks, dcs = input_files
    best = HybridLBOpt.run(config_file=str(tmp_path / "no_config.json"), tasks_file=str(tasks),
                           data_centers_file=str(dcs), population_size=6, epochs=1,
                           generations_per_epoch=4, number_of_runs=2, random_seed=3)
    assert best is not None
    assert best['result'].total_iterations == 4


def test_single_run_same_seed_sequential_and_parallel(input_files):
    tasks, dcs = input_files
    common = dict(tasks_file=str(tasks), data_centers_file=str(dcs), population_size=8,
                  epochs=1, generations_per_epoch=5, random_seed=5, number_of_runs=1)
    sequential = main(make_args(number_of_workers=1, **common))
    parallel = main(make_args(number_of_workers=2, **common))
    assert sequential['seed'] == parallel['seed'] == 5
    assert sequential['result'].global_best_position.tolist() == parallel['result'].global_best_position.tolist()
    assert sequential['result'].iteration_history == parallel['result'].iteration_history
