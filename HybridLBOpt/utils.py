# HybridLBOpt/utils.py
"""Utility functions for the HybridLBOpt package.

This module provides a collection of helper functions used across the package.
Responsibilities include:
- Loading task and data-center descriptors, and current placements, from CSV files.
- Sizing a data-center fleet from aggregate task demand.
- Formatting and displaying final optimization results.
- Exporting results to structured files.

"""
import csv
import math
import json
from pathlib import Path

from .lb_models import Task, DataCenter, InvalidInputError

# Substitute for NaN/inf fitness values inside the optimization loop.
WORST_FINITE_FITNESS = 1e300

# Iteration controller states
STATE_INITIALIZED = "Initialized"
STATE_EVALUATING = "Evaluating"
STATE_UPDATING = "Updating"
STATE_CONVERGED = "Converged"

# Load conditions
CONDITION_BALANCED = "Balanced"
CONDITION_PARTIALLY_BALANCED = "Partially Balanced"
CONDITION_UNBALANCED = "Unbalanced"

MIGRATION_REASON_LOAD_BALANCING = "Load Balancing"
MIGRATION_REASON_OPTIMIZED_PLACEMENT = "Optimized Placement"

TASK_COLUMNS = ['id', 'compute_demand', 'memory_demand']
DATA_CENTER_COLUMNS = ['id', 'compute_capacity', 'memory_capacity', 'storage_capacity', 'network_bandwidth']


def _read_csv_rows(filepath, required_columns):
    with open(filepath, mode='r', newline='') as csvfile:
        reader = csv.DictReader(csvfile)
        missing = [c for c in required_columns if c not in (reader.fieldnames or [])]
        if missing:
            raise InvalidInputError(f"{filepath}: missing column(s) {', '.join(missing)}.")
        return list(reader)


def load_tasks_from_csv(tasks_filepath):
    """Loads task descriptors from a CSV file.

    Parameters
    ----------
    tasks_filepath : str or Path
        CSV file with the columns ``id``, ``compute_demand`` and
        ``memory_demand``.

    Returns
    -------
    list[Task]
        One task per row, in file order.

    Raises
    ------
    InvalidInputError
        If a column is missing or a value is not a finite number >= 0.
    FileNotFoundError
        If the file does not exist.

    """
    tasks = []
    for row_idx, row in enumerate(_read_csv_rows(tasks_filepath, TASK_COLUMNS)):
        try:
            tasks.append(Task(id_val=row['id'],
                              compute_demand=row['compute_demand'],
                              memory_demand=row['memory_demand']))
        except InvalidInputError as e:
            raise InvalidInputError(f"{tasks_filepath} row {row_idx + 1}: {e}") from e
    return tasks


def load_data_centers_from_csv(data_centers_filepath):
    """Loads data-center descriptors from a CSV file.

    ``id``, ``compute_capacity`` and ``memory_capacity`` are required;
    ``storage_capacity`` and ``network_bandwidth`` default to 0 when the
    column is absent.
    """
    data_centers = []
    for row_idx, row in enumerate(_read_csv_rows(data_centers_filepath, DATA_CENTER_COLUMNS[:3])):
        try:
            data_centers.append(DataCenter(
                id_val=row['id'],
                compute_capacity=row['compute_capacity'],
                memory_capacity=row['memory_capacity'],
                storage_capacity=row.get('storage_capacity') or 0.0,
                network_bandwidth=row.get('network_bandwidth') or 0.0))
        except InvalidInputError as e:
            raise InvalidInputError(f"{data_centers_filepath} row {row_idx + 1}: {e}") from e
    return data_centers


def load_assignment_from_csv(assignment_filepath, lb_problem):
    """Reads a task -> data-center placement into a position vector.

    The file needs the columns ``task_id`` and ``data_center_id``; every task
    of `lb_problem` must appear exactly once.
    """
    task_index = {lb_problem.task_id(i): i for i in range(lb_problem.NT)}
    dc_index = {lb_problem.data_center_id(i): i for i in range(lb_problem.ND)}

    position = [None] * lb_problem.NT
    for row_idx, row in enumerate(_read_csv_rows(assignment_filepath, ['task_id', 'data_center_id'])):
        t = task_index.get(row['task_id'])
        d = dc_index.get(row['data_center_id'])
        if t is None or d is None:
            raise InvalidInputError(f"{assignment_filepath} row {row_idx + 1}: unknown task or data center "
                                    f"({row['task_id']!r}, {row['data_center_id']!r}).")
        if position[t] is not None:
            raise InvalidInputError(f"{assignment_filepath} row {row_idx + 1}: task {row['task_id']!r} assigned twice.")
        position[t] = d

    missing = [lb_problem.task_id(i) for i, d in enumerate(position) if d is None]
    if missing:
        raise InvalidInputError(f"{assignment_filepath}: no data center given for task(s) {', '.join(map(str, missing))}.")
    return position


def build_data_centers(tasks, num_data_centers=None, headroom=1.5, capacity_step=0.1):
    """Sizes a fleet of data centers from the aggregate demand of `tasks`.

    Each data center starts from the mean demand per data center times
    `headroom`, and every following data center is `capacity_step` larger
    (relative to that base), so the fleet is slightly heterogeneous.

    Parameters
    ----------
    tasks : list[Task]
        Tasks whose total demand drives the sizing.
    num_data_centers : int, optional
        Fleet size. Defaults to ``min(10, max(3, ceil(len(tasks) / 50)))``.
    headroom : float, optional
        Capacity multiplier over the mean demand. Defaults to 1.5.
    capacity_step : float, optional
        Relative capacity increase per data-center index. Defaults to 0.1.

    Returns
    -------
    list[DataCenter]

    Examples
    --------
    >>> dcs = build_data_centers([Task('t0', 30, 15), Task('t1', 30, 15)], num_data_centers=2)
    >>> [(dc.id, dc.compute_capacity, dc.memory_capacity) for dc in dcs]
    [('datacenter_0', 45.0, 22.5), ('datacenter_1', 49.5, 24.75)]

    """
    if not tasks:
        raise InvalidInputError("Cannot size data centers without tasks.")
    if num_data_centers is None:
        num_data_centers = min(10, max(3, math.ceil(len(tasks) / 50)))
    if num_data_centers < 1:
        raise InvalidInputError(f"num_data_centers must be >= 1, got {num_data_centers}.")

    total_compute = sum(t.compute_demand for t in tasks)
    total_memory = sum(t.memory_demand for t in tasks)
    base_compute = total_compute / num_data_centers * headroom
    base_memory = total_memory / num_data_centers * headroom

    data_centers = []
    for i in range(num_data_centers):
        data_centers.append(DataCenter(
            id_val=f"datacenter_{i}",
            compute_capacity=base_compute + i * base_compute * capacity_step,
            memory_capacity=base_memory + i * base_memory * capacity_step,
            storage_capacity=(base_compute + base_memory) * 2,
            network_bandwidth=1000 + i * 100,
        ))
    return data_centers


def export_results(result, lb_problem, output_dir):
    """Exports one optimization result to structured files (JSON and CSV).

    This function creates an output directory and saves four files:
    - `summary.json`: Fitness, load condition, migrations and metrics.
    - `assignments.csv`: The data center chosen for every task.
    - `migrations.csv`: The recommended migrations.
    - `iteration_history.csv`: Best and average fitness per iteration.

    Parameters
    ----------
    result : LoadBalancingResult
        The result to export.
    lb_problem : LoadBalancingProblem
        The problem instance used for the optimization.
    output_dir : str
        The directory where result files will be saved.

    """
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)
    print(f"\nExporting results to directory: {output_path.resolve()}")

    result_dict = result.to_dict()

    summary = {
        'global_best_fitness': result_dict['global_best_fitness'],
        'total_iterations': result_dict['total_iterations'],
        'numeric_anomalies': result_dict['numeric_anomalies'],
        'load_condition': result_dict['load_condition'],
        'migrations': result_dict['migrations'],
        'metrics': result_dict['metrics'],
    }
    with open(output_path / 'summary.json', 'w') as f:
        json.dump(summary, f, indent=4)
    print("  - Saved summary.json")

    compute_demands = lb_problem.compute_demands
    memory_demands = lb_problem.memory_demands
    with open(output_path / 'assignments.csv', 'w', newline='') as f:
        writer = csv.DictWriter(f, fieldnames=["Task_ID", "Data_Center_ID", "Data_Center_Index",
                                               "Compute_Demand", "Memory_Demand"])
        writer.writeheader()
        for a in result_dict['final_assignments']:
            writer.writerow({
                "Task_ID": a['task_id'],
                "Data_Center_ID": a['data_center_id'],
                "Data_Center_Index": a['data_center_index'],
                "Compute_Demand": compute_demands[a['task_index']],
                "Memory_Demand": memory_demands[a['task_index']],
            })
    print("  - Saved assignments.csv")

    with open(output_path / 'migrations.csv', 'w', newline='') as f:
        writer = csv.DictWriter(f, fieldnames=["Task_ID", "From_Data_Center", "To_Data_Center", "Reason"])
        writer.writeheader()
        for m in result_dict['migrations']['migrations']:
            writer.writerow({
                "Task_ID": m['task_id'],
                "From_Data_Center": m['from_data_center_id'],
                "To_Data_Center": m['to_data_center_id'],
                "Reason": m['reason'],
            })
    print("  - Saved migrations.csv")

    with open(output_path / 'iteration_history.csv', 'w', newline='') as f:
        writer = csv.DictWriter(f, fieldnames=["iteration", "global_best_fitness",
                                               "average_fitness", "average_best_fitness"])
        writer.writeheader()
        writer.writerows(result_dict['iteration_history'])
    print("  - Saved iteration_history.csv")


def display_optimization_results(all_run_results, lb_problem, output_dir=None):
    """Summarizes and displays the final optimization results to the console.

    Prints the fitness of every run, then the load condition, the
    per-data-center breakdown and the migration plan of the best run. If
    `output_dir` is given, the best run is also exported with `export_results`.

    Parameters
    ----------
    all_run_results : list[dict]
        One dictionary per run with the keys 'seed' and 'result'
        (a `LoadBalancingResult`).
    lb_problem : LoadBalancingProblem
        The problem instance used for the optimization.
    output_dir : str, optional
        Directory to save result files. Defaults to None.

    """
    print("--- Summary of ACO-PSO Hybrid Runs ---")
    if not all_run_results:
        print("No results to summarize.")
        return None

    best_run = None
    for run_result in all_run_results:
        result = run_result.get('result')
        if result is None:
            print(f"Skipping invalid run result: {run_result}")
            continue
        print(f"Run with Seed {run_result.get('seed', 'N/A')}: Fitness = {result.global_best_fitness:.4f} "
              f"| Condition = {result.load_condition['condition']} "
              f"| Migrations = {result.migrations['total_migrations']}")
        if best_run is None or result.global_best_fitness < best_run['result'].global_best_fitness:
            best_run = run_result

    if best_run is None:
        print("\nNo valid solution found across all runs.")
        return None

    result = best_run['result']
    load = result.load_condition
    print(f"\nBest fitness across all runs: {result.global_best_fitness:.4f} (Seed {best_run.get('seed', 'N/A')})")
    print(f"  Load Condition      : {load['condition']}")
    print(f"  Avg Utilization     : {load['average_utilization']:.2f}%")
    print(f"  Max / Min Util.     : {load['max_utilization']:.2f}% / {load['min_utilization']:.2f}%")
    print(f"  Load Variance       : {load['load_variance']:.2f}")
    if result.numeric_anomalies:
        print(f"  Numeric anomalies recovered during the run: {result.numeric_anomalies}")

    print("\n  Data Center Loads:")
    max_len = max(len(str(dc['data_center_id'])) for dc in load['data_center_loads'])
    for dc in load['data_center_loads']:
        print(f"  - {str(dc['data_center_id']):<{max_len}} | Tasks: {dc['task_count']:<5d} "
              f"| Compute: {dc['compute_load']:<10.2f} | Memory: {dc['memory_load']:<10.2f} "
              f"| Util: {dc['utilization']:6.2f}%")

    migrations = result.migrations
    print(f"\n  Migrations: {migrations['total_migrations']} "
          f"(overloaded DCs: {migrations['overloaded_data_centers']}, "
          f"underloaded DCs: {migrations['underloaded_data_centers']})")
    for m in migrations['migrations']:
        print(f"    {m['task_id']}: {m['from_data_center_id']} -> {m['to_data_center_id']} ({m['reason']})")

    if result.reassignments is not None:
        print(f"\n  Reassignments from the initial placement: {len(result.reassignments)}")

    if output_dir:
        export_results(result, lb_problem, output_dir)
    return best_run


def display_problem_summary(lb_problem):
    """Prints a summary of the load-balancing problem to the console."""
    print("\n" + "="*80)
    print("Load Balancing Problem Summary".center(80))
    print("="*80)

    print(f"\nTasks ({lb_problem.NT} total):")
    print(f"  Total compute demand: {lb_problem.compute_demands.sum():.2f}")
    print(f"  Total memory demand : {lb_problem.memory_demands.sum():.2f}")

    print(f"\nData Centers ({lb_problem.ND} total):")
    max_len = max(len(str(lb_problem.data_center_id(i))) for i in range(lb_problem.ND))
    for i, dc in enumerate(lb_problem.data_centers):
        print(f"  - ID: {str(lb_problem.data_center_id(i)):<{max_len}} | Compute: {dc.compute_capacity:<10.2f} "
              f"| Memory: {dc.memory_capacity:<10.2f} | Storage: {dc.storage_capacity:<10.2f} "
              f"| Bandwidth: {dc.network_bandwidth:<8.1f}")

    print("\n" + "="*80 + "\n")
