# HybridLBOpt/__init__.py

"""
HybridLBOpt: A Python package for cloud workload placement and load balancing.

This package assigns tasks to data centers so that compute and memory load is
spread as evenly as possible, using a hybrid of Particle Swarm Optimization
(PSO) and Ant Colony Optimization (ACO). It also classifies the balance of the
resulting placement and plans task migrations.
"""
from types import SimpleNamespace
from pathlib import Path

# Import key classes from the data model module
from .lb_models import (
    Task, DataCenter, LoadBalancingProblem, LoadBalancingResult, InvalidInputError
)

# Import the optimizer and its building blocks
from .hybrid_helpers import AcoPsoHybridLB
from .pso_helpers import Particle, initialize_swarm
from .aco_helpers import PheromoneMatrix

# Import the base optimizer class for users who might want to extend the package
from .base_optimizer import BaseOptimizer, calculate_fitness, calculate_load_vectors

# Post-optimization analysis
from .load_analysis import (
    LoadConditionThresholds, MigrationPolicy,
    analyze_load_condition, determine_migrations, plan_reassignments, summarize_metrics
)

# Import the most useful utility functions
from .utils import (
    load_tasks_from_csv,
    load_data_centers_from_csv,
    load_assignment_from_csv,
    build_data_centers,
    export_results,
    display_optimization_results,
    display_problem_summary,
    CONDITION_BALANCED,
    CONDITION_PARTIALLY_BALANCED,
    CONDITION_UNBALANCED,
)

# Import the core parallel execution functions
from .cores import run_parallel_runs, run_parallel_seeds

# Define the public API of the package using __all__.
__all__ = [
    # Models
    'Task', 'DataCenter', 'LoadBalancingProblem', 'LoadBalancingResult', 'InvalidInputError',

    # Optimizer
    'AcoPsoHybridLB', 'Particle', 'initialize_swarm', 'PheromoneMatrix',

    # Base Class and fitness
    'BaseOptimizer', 'calculate_fitness', 'calculate_load_vectors',

    # Analysis
    'LoadConditionThresholds', 'MigrationPolicy',
    'analyze_load_condition', 'determine_migrations', 'plan_reassignments', 'summarize_metrics',

    # Utilities
    'load_tasks_from_csv', 'load_data_centers_from_csv', 'load_assignment_from_csv',
    'build_data_centers', 'export_results',
    'display_optimization_results', 'display_problem_summary',
    'CONDITION_BALANCED', 'CONDITION_PARTIALLY_BALANCED', 'CONDITION_UNBALANCED',

    # Core Execution
    'run_parallel_runs', 'run_parallel_seeds', 'run'
]

__version__ = "0.1.0"


def run(config_file='config.json', **kwargs):
    """
    High-level programmatic API to run a load-balancing optimization.

    This function provides a simple way to configure and run an optimization
    by passing parameters as keyword arguments or via a config file.

    Args:
        config_file (str, optional): Path to the JSON configuration file.
                                     Defaults to 'config.json'.
        **kwargs: Keyword arguments corresponding to the command-line options.
                  These will override any values from the config file.

    Returns:
        dict or None: The best run, with the keys 'seed' and 'result'.
    """
    # Import inside the function to avoid circular dependencies
    from .run_problem import main as run_problem_main, DEFAULTS, load_config_defaults

    defaults = dict(DEFAULTS)
    if Path(config_file).is_file():
        defaults.update(load_config_defaults(config_file))
    else:
        print(f"Warning: Config file '{config_file}' not found. Using internal defaults.")

    # Update defaults with any user-provided keyword arguments
    defaults.update(kwargs)
    args = SimpleNamespace(**defaults)

    return run_problem_main(args)
