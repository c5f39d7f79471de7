# HybridLBOpt/run_problem.py
"""
Main executable script for running load-balancing optimizations with HybridLBOpt.

This script serves as the command-line interface (CLI) for the package. It
handles parsing user arguments, loading tasks and data centers from CSV files,
setting up the ACO-PSO hybrid optimizer, and running one or more independent
optimizations either sequentially or in parallel. Finally, it displays the
results.
"""
import argparse
import sys
import json
import logging
from pathlib import Path
import time
from tqdm import tqdm

from .lb_models import LoadBalancingProblem, InvalidInputError
from .hybrid_helpers import AcoPsoHybridLB
from .load_analysis import LoadConditionThresholds, MigrationPolicy
from .utils import (
    load_tasks_from_csv, load_data_centers_from_csv, load_assignment_from_csv,
    build_data_centers, display_optimization_results, display_problem_summary
)
from .cores import run_parallel_seeds, spawn_seeds

DEFAULTS = {
    'tasks_file': 'tasks.csv',
    'data_centers_file': None,
    'num_data_centers': None,
    'initial_assignment_file': None,
    'population_size': 50,
    'epochs': 10,
    'generations_per_epoch': 10,
    'number_of_workers': 1,
    'number_of_runs': 1,
    'random_seed': None,
    'verbose': False,
    'output_dir': None,
    'inertia_weight': 0.7,
    'cognitive_coeff': 1.5,
    'social_coeff': 1.5,
    'evaporation_rate': 0.1,
    'pheromone_deposit_amount': 1.0,
    'initial_pheromone': 1.0,
    'pheromone_floor': 0.1,
    'pheromone_influence': 0.1,
    'capacity_penalty_factor': 0.0,
    'unbalanced_variance': 500.0,
    'unbalanced_max': 90.0,
    'unbalanced_min': 10.0,
    'unbalanced_spread': 60.0,
    'partial_variance': 200.0,
    'partial_max': 85.0,
    'partial_min': 15.0,
    'partial_spread': 40.0,
    'overload_ratio': 1.2,
    'underload_ratio': 0.8,
    'migration_fraction': 0.5,
}


# Input paths in a config file are relative to the config file, not the working directory.
CONFIG_PATH_KEYS = ('tasks_file', 'data_centers_file', 'initial_assignment_file')


def load_config_defaults(config_file):
    """Flattens a sectioned JSON config file into a single dict of option values."""
    config_defaults = {}
    config_path = Path(config_file)
    if config_path.is_file():
        with open(config_path, 'r') as f:
            config_data = json.load(f)
        for section, params in config_data.items():
            if isinstance(params, dict):
                config_defaults.update(params)
            else:
                config_defaults[section] = params
        for key in CONFIG_PATH_KEYS:
            value = config_defaults.get(key)
            if value and not Path(value).is_absolute():
                config_defaults[key] = str(config_path.parent / value)
    return config_defaults


def build_problem(args):
    tasks = load_tasks_from_csv(args.tasks_file)
    if args.data_centers_file:
        data_centers = load_data_centers_from_csv(args.data_centers_file)
    else:
        print("No data centers file given; sizing data centers from total task demand.")
        data_centers = build_data_centers(tasks, num_data_centers=args.num_data_centers)
    return LoadBalancingProblem(tasks=tasks, data_centers=data_centers)


def build_solver_params(args, initial_position=None):
    return {
        "generations": args.epochs * args.generations_per_epoch,
        "population_size": args.population_size,
        "inertia_weight": args.inertia_weight,
        "cognitive_coeff": args.cognitive_coeff,
        "social_coeff": args.social_coeff,
        "evaporation_rate": args.evaporation_rate,
        "pheromone_deposit_amount": args.pheromone_deposit_amount,
        "initial_pheromone": args.initial_pheromone,
        "pheromone_floor": args.pheromone_floor,
        "pheromone_influence": args.pheromone_influence,
        "capacity_penalty_factor": args.capacity_penalty_factor,
        "initial_position": initial_position,
        "load_thresholds": LoadConditionThresholds(
            unbalanced_variance=args.unbalanced_variance, unbalanced_max=args.unbalanced_max,
            unbalanced_min=args.unbalanced_min, unbalanced_spread=args.unbalanced_spread,
            partial_variance=args.partial_variance, partial_max=args.partial_max,
            partial_min=args.partial_min, partial_spread=args.partial_spread),
        "migration_policy": MigrationPolicy(
            overload_ratio=args.overload_ratio, underload_ratio=args.underload_ratio,
            migration_fraction=args.migration_fraction),
        "verbose": args.verbose,
    }


# --- Main Execution Function ---
def main(args):
    """
    Main function to run the load-balancing optimization, configured by command-line arguments.
    """
    print("Cloud Load Balancing using ACO-PSO Hybrid with HybridLBOpt")

    try:
        lb_problem = build_problem(args)
        initial_position = None
        if args.initial_assignment_file:
            initial_position = load_assignment_from_csv(args.initial_assignment_file, lb_problem)
    except (InvalidInputError, FileNotFoundError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    display_problem_summary(lb_problem)

    total_gens = args.epochs * args.generations_per_epoch

    print("\n" + "="*50)
    print("Optimization Run Configuration".center(50))
    print("="*50)
    print(f"  - Parallel Workers: {args.number_of_workers}")
    print(f"  - Independent Runs: {args.number_of_runs}")
    print(f"  - Epochs: {args.epochs}")
    print(f"  - Generations per Epoch: {args.generations_per_epoch}")
    print(f"  - Total Generations: {total_gens}")
    print(f"  - Swarm Size: {args.population_size}")
    print(f"  - Random Seed: {args.random_seed}")
    print("\n  PSO Parameters:")
    print(f"    - Inertia Weight: {args.inertia_weight}")
    print(f"    - Cognitive Coefficient: {args.cognitive_coeff}")
    print(f"    - Social Coefficient: {args.social_coeff}")
    print("\n  ACO Parameters:")
    print(f"    - Evaporation Rate: {args.evaporation_rate}")
    print(f"    - Pheromone Deposit: {args.pheromone_deposit_amount}")
    print(f"    - Pheromone Floor: {args.pheromone_floor}")
    print("="*50 + "\n")

    solver_params = build_solver_params(args, initial_position)

    start_time = time.time()
    processed_results = []

    if args.number_of_workers <= 1:
        print("\nRunning in sequential mode (1 worker)...")
        seeds = spawn_seeds(max(1, args.number_of_runs), args.random_seed)
        for seed in seeds:
            try:
                solver = AcoPsoHybridLB(problem=lb_problem, random_seed=seed, **solver_params)
            except InvalidInputError as e:
                print(f"Error: {e}")
                sys.exit(1)

            for epoch in tqdm(range(args.epochs), desc="Epochs Progress"):
                solver.run_epoch(
                    generations_in_epoch=args.generations_per_epoch,
                    current_gen_offset=epoch * args.generations_per_epoch,
                    run_id="sequential"
                )
                tqdm.write(f"Epoch {epoch+1}/{args.epochs} complete. Current Best Fitness: {solver.gbest_fitness:.4f}")

            processed_results.append({'seed': seed, 'result': solver.build_result()})
    else:
        print(f"\nRunning in parallel mode with {args.number_of_workers} workers...")
        run_results = run_parallel_seeds(
            problem=lb_problem, num_runs=max(1, args.number_of_runs),
            num_workers=args.number_of_workers, solver_params=solver_params,
            base_seed=args.random_seed)
        for res_item in run_results:
            if res_item['error'] is not None:
                print(f"Error from worker (job {res_item['job_id']}): {res_item['error']}")
                continue
            processed_results.append({'seed': res_item['seed'], 'result': res_item['result']})

    elapsed_time = time.time() - start_time
    print(f"\nOptimization completed in {elapsed_time:.2f} seconds.")
    return display_optimization_results(processed_results, lb_problem, args.output_dir)


def cli():
    """Command-line interface function."""
    parser = argparse.ArgumentParser(
        description="Run ACO-PSO hybrid load balancing of tasks across data centers using HybridLBOpt.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument('--config_file', type=str, default='config.json', help="Path to the JSON configuration file.")
    temp_args, _ = parser.parse_known_args()
    config_defaults = load_config_defaults(temp_args.config_file)

    file_group = parser.add_argument_group('File Path Arguments')
    file_group.add_argument('--tasks_file', type=str, help="CSV with columns id, compute_demand, memory_demand.")
    file_group.add_argument('--data_centers_file', type=str, help="CSV with columns id, compute_capacity, memory_capacity[, storage_capacity, network_bandwidth].")
    file_group.add_argument('--num_data_centers', type=int, help="Number of data centers to size from demand when no data centers file is given.")
    file_group.add_argument('--initial_assignment_file', type=str, help="Optional CSV (task_id, data_center_id) with the current placement.")

    core_group = parser.add_argument_group('Core Optimization Arguments')
    core_group.add_argument('--population_size', type=int, help="Number of particles in the swarm.")
    core_group.add_argument('--epochs', type=int)
    core_group.add_argument('--generations_per_epoch', type=int)
    core_group.add_argument('--number_of_workers', type=int, help="Parallel worker processes (<=1 for sequential).")
    core_group.add_argument('--number_of_runs', type=int, help="Independent seeded runs; the best one is reported.")
    core_group.add_argument('--random_seed', type=int)
    core_group.add_argument('--verbose', action='store_true')
    core_group.add_argument('--output_dir', type=str, help="Directory to save structured output files (JSON, CSV).")

    pso_group = parser.add_argument_group('PSO Specific Parameters')
    pso_group.add_argument('--inertia_weight', type=float, help="Initial inertia weight; decays linearly to 0.")
    pso_group.add_argument('--cognitive_coeff', type=float)
    pso_group.add_argument('--social_coeff', type=float)

    aco_group = parser.add_argument_group('ACO Specific Parameters')
    aco_group.add_argument('--evaporation_rate', type=float, help="Pheromone evaporation rate (rho), in (0, 1).")
    aco_group.add_argument('--pheromone_deposit_amount', type=float, help="Pheromone added along a new global best.")
    aco_group.add_argument('--initial_pheromone', type=float)
    aco_group.add_argument('--pheromone_floor', type=float, help="Minimum pheromone level of any cell.")
    aco_group.add_argument('--pheromone_influence', type=float, help="Scale of the pheromone term in the velocity update.")

    fitness_group = parser.add_argument_group('Fitness Parameters')
    fitness_group.add_argument('--capacity_penalty_factor', type=float, help="Weight of the capacity-overflow penalty (0 disables it).")

    analysis_group = parser.add_argument_group('Load Condition & Migration Parameters')
    for name in ('unbalanced_variance', 'unbalanced_max', 'unbalanced_min', 'unbalanced_spread',
                 'partial_variance', 'partial_max', 'partial_min', 'partial_spread',
                 'overload_ratio', 'underload_ratio', 'migration_fraction'):
        analysis_group.add_argument(f'--{name}', type=float)

    parser.set_defaults(**{**DEFAULTS, **config_defaults})

    parsed_args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO if parsed_args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    main(parsed_args)


if __name__ == "__main__":
    cli()
