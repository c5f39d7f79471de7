# HybridLBOpt/cores.py
"""Core parallel processing module for the HybridLBOpt package.

This module contains the functions responsible for running independent
optimizations in separate worker processes. A single run is strictly
sequential; parallelism happens across runs (one per problem instance, or one
per seed on the same instance). Workers share nothing: each builds its own
swarm, pheromone matrix and random generator.
"""
import multiprocessing
import queue

import numpy as np

from .hybrid_helpers import AcoPsoHybridLB


def optimization_worker(worker_id, job_id, problem, random_seed, solver_params, results_queue):
    """A worker process that runs one ACO-PSO hybrid optimization.

    This function is intended to be the target of a ``multiprocessing.Process``.

    Parameters
    ----------
    worker_id : int
        A unique identifier for the worker process.
    job_id : hashable
        Identifier of the job (e.g. a dataset date), echoed in the result.
    problem : LoadBalancingProblem
        The problem instance to be solved.
    random_seed : int or None
        Seed for the worker's own random generator.
    solver_params : dict
        Keyword arguments forwarded to `AcoPsoHybridLB`.
    results_queue : multiprocessing.Queue
        A shared queue where ``(job_id, random_seed, result, error)`` is placed.

    Notes
    -----
    The worker catches all exceptions so that one failed run does not crash
    the whole batch; the error message is returned in place of a result.

    """
    print(f"Worker {worker_id}: Starting job {job_id} (seed {random_seed}).")
    try:
        solver = AcoPsoHybridLB(problem=problem, random_seed=random_seed, **solver_params)
        result = solver.run(run_id_for_print=str(worker_id))
        print(f"Worker {worker_id}: Job {job_id} complete. Best fitness: {result.global_best_fitness:.4f}")
        results_queue.put((job_id, random_seed, result, None))
    except Exception as e_worker:
        print(f"FATAL ERROR in worker {worker_id} (job {job_id}): {e_worker}")
        results_queue.put((job_id, random_seed, None, str(e_worker)))
    finally:
        print(f"Worker {worker_id}: Finished.")


def spawn_seeds(num_runs, base_seed=None):
    """Derives `num_runs` independent integer seeds from `base_seed`.

    A single run uses `base_seed` itself, so one run gives the same result
    whether it executes sequentially or in a worker process.
    """
    if num_runs <= 1:
        return [base_seed]
    children = np.random.SeedSequence(base_seed).spawn(num_runs)
    return [int(child.generate_state(1)[0]) for child in children]


def run_parallel_runs(jobs, num_workers, solver_params=None):
    """Runs independent optimizations in batches of worker processes.

    Parameters
    ----------
    jobs : list[dict]
        One dictionary per run with the keys 'job_id', 'problem' and
        'random_seed'. An optional 'solver_params' entry overrides the
        shared `solver_params` for that job.
    num_workers : int
        Maximum number of processes alive at the same time.
    solver_params : dict, optional
        Keyword arguments forwarded to every `AcoPsoHybridLB`.

    Returns
    -------
    list[dict]
        One dictionary per job, in job order, with the keys 'job_id', 'seed',
        'result' (a `LoadBalancingResult`, or None) and 'error' (None, or the
        worker's error message).

    """
    solver_params = solver_params or {}
    batch_size = max(1, num_workers)

    manager = multiprocessing.Manager()
    results_queue = manager.Queue()

    for start in range(0, len(jobs), batch_size):
        processes = []
        for offset, job in enumerate(jobs[start:start + batch_size]):
            params = {**solver_params, **job.get('solver_params', {})}
            p = multiprocessing.Process(
                target=optimization_worker,
                args=(start + offset, job['job_id'], job['problem'], job.get('random_seed'),
                      params, results_queue)
            )
            processes.append(p)
            p.start()
        for p in processes:
            p.join()

    collected = {}
    while not results_queue.empty():
        try:
            job_id, seed, result, error = results_queue.get_nowait()
        except queue.Empty:
            break
        collected[job_id] = {'job_id': job_id, 'seed': seed, 'result': result, 'error': error}
    manager.shutdown()

    return [collected.get(job['job_id'],
                          {'job_id': job['job_id'], 'seed': job.get('random_seed'), 'result': None,
                           'error': "Worker exited without reporting a result."})
            for job in jobs]


def run_parallel_seeds(problem, num_runs, num_workers, solver_params=None, base_seed=None):
    """Runs `num_runs` independently seeded optimizations of the same problem."""
    seeds = spawn_seeds(num_runs, base_seed)
    jobs = [{'job_id': i, 'problem': problem, 'random_seed': seed} for i, seed in enumerate(seeds)]
    return run_parallel_runs(jobs, num_workers, solver_params)
