# HybridLBOpt/hybrid_helpers.py
"""
ACO-PSO hybrid load balancing for the HybridLBOpt package.

This module provides the `AcoPsoHybridLB` class. A PSO swarm searches the
task -> data-center assignment space while an ACO pheromone matrix remembers
the assignments of globally improving solutions and adds a pull towards them
to every particle's velocity.

Each generation goes through two phases:

1.  Evaluating: every particle's position is scored. A new personal best that
    is also a new global best updates the global best, then evaporates the
    pheromone matrix and deposits pheromone along the new global best.
2.  Updating: every particle's velocity and position are advanced, using an
    inertia weight that decays linearly to zero over the run.

The run always lasts exactly `generations` iterations.
"""
import logging
import numpy as np

from .base_optimizer import BaseOptimizer
from .aco_helpers import PheromoneMatrix, DEFAULT_INITIAL_PHEROMONE, DEFAULT_PHEROMONE_FLOOR
from .pso_helpers import initialize_swarm, Particle
from .lb_models import InvalidInputError, LoadBalancingResult
from .load_analysis import analyze_load_condition, determine_migrations, plan_reassignments, summarize_metrics
from .utils import STATE_INITIALIZED, STATE_EVALUATING, STATE_UPDATING, STATE_CONVERGED

logger = logging.getLogger(__name__)


class AcoPsoHybridLB(BaseOptimizer):
    """
    Implements the ACO and PSO inspired hybrid load balancing algorithm.
    """
    def __init__(self, problem, population_size=50, generations=100,
                 inertia_weight=0.7, cognitive_coeff=1.5, social_coeff=1.5,
                 evaporation_rate=0.1, pheromone_deposit_amount=1.0,
                 initial_pheromone=DEFAULT_INITIAL_PHEROMONE,
                 pheromone_floor=DEFAULT_PHEROMONE_FLOOR,
                 pheromone_influence=0.1,
                 initial_position=None,
                 load_thresholds=None,
                 migration_policy=None,
                 **kwargs):
        super().__init__(problem=problem, population_size=population_size, generations=generations, **kwargs)

        if not 0 < evaporation_rate < 1:
            raise InvalidInputError(f"evaporation_rate must be in (0, 1), got {evaporation_rate}.")
        for name, value in (('inertia_weight', inertia_weight), ('cognitive_coeff', cognitive_coeff),
                            ('social_coeff', social_coeff), ('pheromone_deposit_amount', pheromone_deposit_amount),
                            ('pheromone_influence', pheromone_influence)):
            if value < 0:
                raise InvalidInputError(f"{name} must be >= 0, got {value}.")

        self.inertia_weight = inertia_weight
        self.cognitive_coeff = cognitive_coeff
        self.social_coeff = social_coeff
        self.evaporation_rate = evaporation_rate
        self.pheromone_deposit_amount = pheromone_deposit_amount
        self.pheromone_influence = pheromone_influence
        self.load_thresholds = load_thresholds
        self.migration_policy = migration_policy
        self.max_velocity = float(self.problem.ND)

        self.initial_position = None
        if initial_position is not None:
            self.initial_position = self._validate_position(initial_position)

        self.swarm = initialize_swarm(self.population_size, self.problem.NT, self.problem.ND, self.rng)
        self.pheromones = PheromoneMatrix(self.problem.NT, self.problem.ND,
                                          initial_level=initial_pheromone, floor=pheromone_floor)

        if self.initial_position is not None:
            self.inject_position(self.initial_position)

        # Seeded with particle 0 so a run that never improves still has an answer.
        self.gbest_position = self.swarm[0].position.copy()
        self.gbest_fitness = float('inf')

        self.state = STATE_INITIALIZED

    def _validate_position(self, position):
        position = np.asarray(position)
        if position.shape != (self.problem.NT,):
            raise InvalidInputError(f"Position must have one entry per task ({self.problem.NT}), got shape {position.shape}.")
        if np.any(position < 0) or np.any(position >= self.problem.ND) or np.any(position != np.round(position)):
            raise InvalidInputError(f"Position entries must be data-center indices in [0, {self.problem.ND - 1}].")
        return position.astype(int)

    def _adaptive_inertia(self, gen_num):
        """Inertia weight decaying linearly from `inertia_weight` to 0 over the run."""
        return self.inertia_weight * max(0.0, 1.0 - gen_num / self.generations)

    def _evaluate_swarm(self):
        fitnesses = np.empty(len(self.swarm))
        for i, particle in enumerate(self.swarm):
            current_fitness = self._calculate_fitness(particle.position)
            fitnesses[i] = current_fitness

            if current_fitness < particle.pbest_fitness:
                particle.pbest_fitness = current_fitness
                particle.pbest_position = particle.position.copy()

                if current_fitness < self.gbest_fitness:
                    self.gbest_fitness = current_fitness
                    self.gbest_position = particle.position.copy()
                    logger.debug("New global best %.6f at generation %d.", current_fitness, self.current_generation)
                    self.pheromones.evaporate(self.evaporation_rate)
                    self.pheromones.deposit(self.gbest_position, self.pheromone_deposit_amount)
        return fitnesses

    def _update_swarm(self, gen_num):
        w = self._adaptive_inertia(gen_num)
        anomalies = 0
        for particle in self.swarm:
            anomalies += particle.update_velocity(
                self.gbest_position, self.pheromones, w,
                self.cognitive_coeff, self.social_coeff,
                self.pheromone_influence, self.max_velocity, self.rng)
            particle.update_position(self.problem.ND)
        if anomalies:
            self.numeric_anomalies += anomalies
            logger.warning("Reset %d non-finite velocity component(s) at generation %d.", anomalies, gen_num)

    def evolve_one_generation(self, gen_num=0, run_id_for_print=""):
        self.current_generation = gen_num

        self.state = STATE_EVALUATING
        fitnesses = self._evaluate_swarm()

        self.state = STATE_UPDATING
        self._update_swarm(gen_num)

        self.iteration_history.append({
            'iteration': gen_num + 1,
            'global_best_fitness': float(self.gbest_fitness),
            'average_fitness': float(np.mean(fitnesses)),
            'average_best_fitness': float(np.mean([p.pbest_fitness for p in self.swarm])),
        })

        if gen_num + 1 >= self.generations:
            self.state = STATE_CONVERGED

        if self.verbose:
            print_prefix = f"Run {run_id_for_print} - ACO-PSO - " if run_id_for_print else "ACO-PSO - "
            print(f"{print_prefix}Gen {gen_num+1:03d} | Best Fitness: {self.gbest_fitness:.4f} "
                  f"| Avg Fitness: {self.iteration_history[-1]['average_fitness']:.4f}")

    def inject_position(self, position):
        """Replaces the worst particle with the injected position."""
        if not self.swarm:
            return
        position = self._validate_position(position)

        worst_particle_idx = int(np.argmax([p.pbest_fitness for p in self.swarm]))
        self.swarm[worst_particle_idx] = Particle(worst_particle_idx, position, self.rng)

    def build_result(self):
        """Packages the global best, its analysis and the run history."""
        position = self.gbest_position
        fitness = self.gbest_fitness
        if not np.isfinite(fitness):
            logger.warning("No improving solution was found; falling back to particle 0's best-known position.")
            position = self.swarm[0].pbest_position.copy()
            fitness = self._calculate_fitness(position)

        load_condition = analyze_load_condition(position, self.problem, self.load_thresholds)
        migrations = determine_migrations(position, self.problem, self.migration_policy)
        reassignments = None
        if self.initial_position is not None:
            reassignments = plan_reassignments(self.initial_position, position, self.problem)

        self.state = STATE_CONVERGED
        return LoadBalancingResult(
            global_best_position=position.copy(),
            global_best_fitness=fitness,
            final_assignments=self.problem.build_assignments(position),
            load_condition=load_condition,
            migrations=migrations,
            iteration_history=list(self.iteration_history),
            total_iterations=len(self.iteration_history),
            pheromone_matrix=self.pheromones.snapshot(),
            numeric_anomalies=self.numeric_anomalies,
            metrics=summarize_metrics(self.problem, fitness, load_condition, migrations),
            reassignments=reassignments,
        )
