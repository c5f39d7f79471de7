# HybridLBOpt/pso_helpers.py
"""
Particle Swarm Optimization (PSO) helpers for the HybridLBOpt package.

This module provides the `Particle` class and `initialize_swarm`. A particle
encodes one candidate assignment: element ``t`` of its position is the index
of the data center that task ``t`` is placed on. Velocities are continuous;
positions are rounded and clamped back onto valid data-center indices after
every move.
"""
import numpy as np

from .lb_models import InvalidInputError


class Particle:
    """Represents a single particle in the PSO swarm."""
    def __init__(self, particle_id, position, rng):
        self.id = particle_id
        self.position = np.asarray(position, dtype=int).copy()
        self.velocity = rng.uniform(-1, 1, len(self.position))
        self.pbest_position = self.position.copy()
        self.pbest_fitness = float('inf')

    def update_velocity(self, gbest_position, pheromones, w, c1, c2,
                        pheromone_scale, max_velocity, rng):
        """Update particle velocity from pbest, gbest and the pheromone trail.

        Returns the number of velocity components that came out non-finite
        and were reset to zero.
        """
        r1 = rng.random(len(self.position))
        r2 = rng.random(len(self.position))
        cognitive_velocity = c1 * r1 * (self.pbest_position - self.position)
        social_velocity = c2 * r2 * (gbest_position - self.position)
        pheromone_velocity = pheromones.attraction(self.position, gbest_position, pheromone_scale)

        velocity = w * self.velocity + cognitive_velocity + social_velocity + pheromone_velocity

        bad = ~np.isfinite(velocity)
        anomalies = int(bad.sum())
        if anomalies:
            velocity[bad] = 0.0
        self.velocity = np.clip(velocity, -max_velocity, max_velocity)
        return anomalies

    def update_position(self, num_data_centers):
        """Move by the velocity, rounding half up and clamping into [0, num_data_centers - 1]."""
        moved = np.floor(self.position + self.velocity + 0.5)
        self.position = np.clip(moved, 0, num_data_centers - 1).astype(int)


def initialize_swarm(num_particles, num_tasks, num_data_centers, rng):
    """Creates `num_particles` particles with uniformly random assignments.

    Parameters
    ----------
    num_particles : int
        Swarm size.
    num_tasks : int
        Length of each position vector.
    num_data_centers : int
        Positions are drawn uniformly from ``range(num_data_centers)``.
    rng : numpy.random.Generator
        Source of all randomness, so that a seeded generator gives a
        reproducible swarm.

    Returns
    -------
    list[Particle]

    Raises
    ------
    InvalidInputError
        If any of the counts is smaller than 1.

    """
    if num_tasks < 1:
        raise InvalidInputError("Cannot initialize a swarm without tasks.")
    if num_data_centers < 1:
        raise InvalidInputError("Cannot initialize a swarm without data centers.")
    if num_particles < 1:
        raise InvalidInputError(f"num_particles must be >= 1, got {num_particles}.")

    swarm = []
    for i in range(num_particles):
        position = rng.integers(0, num_data_centers, size=num_tasks)
        swarm.append(Particle(i, position, rng))
    return swarm
