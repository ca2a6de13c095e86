"""
Generational evolutionary search for EvoBrain.

Orchestrates the loop:
  for each generation:
    1. Evaluate every agent (agent.eval() → fitness)
    2. Sort by fitness and let the caller peek at the population
    3. Stop if the stopping function says so
    4. Eliminate the worst fraction, refill with mutated copies
"""

import time
from abc import ABC, abstractmethod

import numpy as np


class EvoSim(ABC):
    """An evaluable, mutable, copyable agent of the evolutionary search."""

    @abstractmethod
    def build(self):
        """Express genotypes and wire the sim; safe to call twice."""

    @abstractmethod
    def eval(self) -> float: ...

    @abstractmethod
    def mutate(self): ...

    @abstractmethod
    def copy(self) -> "EvoSim": ...

    @abstractmethod
    def visualize(self, workspace) -> "EvoSim":
        """Copy of this sim hosted in the given workspace."""


def nth_percentile(sorted_fitnesses, n: float) -> float:
    """Percentile n (0-100) of an ascending list by nearest rank."""
    if not len(sorted_fitnesses):
        return 0.0
    if not 0 <= n <= 100:
        raise ValueError(f"percentile must be within [0, 100], got {n}")
    idx = int(round(n / 100 * (len(sorted_fitnesses) - 1)))
    return float(sorted_fitnesses[idx])


class Evaluator:
    """
    Runs the search. After each evaluation `population` is ordered best
    first and `fitnesses` holds the matching scores in ascending order.
    """

    def __init__(self, populating_function, population_size: int,
                 elimination_ratio: float, stopping_function, peek=None,
                 percentiles=(0, 10, 25, 50, 75, 90, 100)):
        if population_size < 1:
            raise ValueError("population size must be at least 1")
        if not 0 <= elimination_ratio < 1:
            raise ValueError("elimination ratio must be within [0, 1)")
        self.populating_function = populating_function
        self.population_size     = population_size
        self.elimination_ratio   = elimination_ratio
        self.stopping_function   = stopping_function
        self.peek                = peek
        self.percentiles         = tuple(percentiles)

        self.generation = 0
        self.population = []
        self.fitnesses  = []       # ascending
        self.history    = []       # list of dicts, one per generation

    # ──────────────────────────────────────────────────────────────────────────

    @property
    def num_survivors(self) -> int:
        eliminated = int(self.population_size * self.elimination_ratio)
        return max(1, self.population_size - eliminated)

    def nth_percentile_fitness(self, n: float) -> float:
        return nth_percentile(self.fitnesses, n)

    @property
    def best_fitness(self) -> float:
        return self.fitnesses[-1] if self.fitnesses else 0.0

    # ──────────────────────────────────────────────────────────────────────────

    def _evaluate(self):
        t0 = time.time()
        scored = [(float(agent.eval()), agent) for agent in self.population]
        # stable sort keeps earlier agents first on ties
        scored.sort(key=lambda pair: pair[0], reverse=True)
        self.population = [agent for _, agent in scored]
        self.fitnesses  = [fit for fit, _ in reversed(scored)]

        stats = {"generation": self.generation}
        for p in self.percentiles:
            stats[f"p{p}"] = self.nth_percentile_fitness(p)
        stats["mean"]      = float(np.mean(self.fitnesses))
        stats["elapsed_s"] = round(time.time() - t0, 3)
        self.history.append(stats)

    def _next_generation(self):
        survivors = self.population[:self.num_survivors]
        offspring = [s.copy() for s in survivors]
        i = 0
        while len(offspring) < self.population_size:
            child = survivors[i % len(survivors)].copy()
            child.mutate()
            offspring.append(child)
            i += 1
        self.population = offspring
        self.generation += 1

    def run(self) -> list:
        """Evolve until the stopping function fires; return agents best first."""
        self.population = [self.populating_function()
                           for _ in range(self.population_size)]
        while True:
            self._evaluate()
            if self.peek:
                self.peek(self)
            if self.stopping_function(self):
                return list(self.population)
            self._next_generation()


def evaluator(populating_function, population_size: int, elimination_ratio: float,
              stopping_function, peek=None) -> list:
    """Build an Evaluator, run it and return the final agents best first."""
    return Evaluator(populating_function, population_size, elimination_ratio,
                     stopping_function, peek).run()
