"""A real-valued genetic algorithm that minimises a fitness function."""

from __future__ import annotations

import math
import random
from dataclasses import dataclass, field
from decimal import Decimal
from os import PathLike
from typing import Callable, Iterable, Sequence

from odefit.config import Bound

__all__ = ["Chromosome", "GeneticAlgorithm", "write_history"]

MUTATION_PERCENTAGE = 0.1


def _format_float(value: float) -> str:
    """Shortest round-trip form of a float, without exponent notation."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    text = format(Decimal(repr(value)), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


@dataclass
class Chromosome:
    """A candidate solution: one value per parameter, plus its fitness."""

    values: list[float] = field(default_factory=list)
    fitness: float = 0.0

    def mutate(
        self, mutation_rate: float, bounds: Sequence[Bound], rng: random.Random
    ) -> None:
        """With probability mutation_rate, move one gene by 10% within bounds."""
        index = rng.randrange(len(self.values))
        if rng.uniform(0.0, 1.0) >= mutation_rate:
            return
        step = MUTATION_PERCENTAGE * self.values[index]
        bound = bounds[index]
        if rng.uniform(0.0, 1.0) < 0.5:
            self.values[index] = min(self.values[index] + step, bound.max)
        else:
            self.values[index] = max(self.values[index] - step, bound.min)

    def __str__(self) -> str:
        genes = "".join(f"{_format_float(v)}, " for v in self.values)
        return f"[fitness = {_format_float(self.fitness)}, values = [{genes}] ]\n"


class GeneticAlgorithm:
    """Roulette selection, one-point crossover and bounded mutation."""

    def __init__(
        self,
        max_generations: int = 0,
        mutation_rate: float = 0.0,
        crossover_rate: float = 0.0,
        bounds: Iterable[Bound] = (),
        rng: random.Random | None = None,
    ) -> None:
        self.max_generations = max_generations
        self.mutation_rate = mutation_rate
        self.crossover_rate = crossover_rate
        self.bounds: list[Bound] = list(bounds)
        self.population: list[Chromosome] = []
        self.rng = rng if rng is not None else random.Random()

    def generate_random_population(
        self, population_size: int, chromosome_size: int
    ) -> None:
        """Append individuals whose genes are drawn uniformly within the bounds."""
        for _ in range(population_size):
            values = []
            for bound in self.bounds[:chromosome_size]:
                if bound.min > bound.max:
                    raise ValueError(f"bound {bound.name!r} has min above max")
                values.append(self.rng.uniform(bound.min, bound.max))
            if len(values) < chromosome_size:
                raise IndexError("chromosome size exceeds the number of bounds")
            self.population.append(Chromosome(values))

    def select_parents(self) -> tuple[Chromosome, Chromosome]:
        """Pick two parents, favouring those with lower fitness."""
        size = len(self.population)
        if size < 2:
            raise ValueError("selecting parents needs at least two individuals")
        upper_bound = sum(c.fitness for c in self.population)

        first = self.rng.randrange(size)
        second = self.rng.randrange(size)
        while second == first:
            second = self.rng.randrange(size)
        parent_a = self.population[first]
        parent_b = self.population[second]

        prob_a = self.rng.uniform(0.0, upper_bound)
        prob_b = self.rng.uniform(0.0, upper_bound)
        for individual in self.population:
            if not (prob_a > 0.0 or prob_b > 0.0):
                break
            share = upper_bound - individual.fitness
            if prob_a > 0.0:
                prob_a -= share
                if prob_a <= 0.0:
                    parent_a = individual
            elif prob_b > 0.0:
                prob_b -= share
                if prob_b <= 0.0:
                    parent_b = individual
        return parent_a, parent_b

    def crossover(
        self, parents: tuple[Chromosome, Chromosome]
    ) -> tuple[Chromosome, Chromosome]:
        """Swap the genes after a cut point set by the crossover rate."""
        first, second = parents
        cut = int(self.crossover_rate * len(first.values))
        if not 0 <= cut <= len(first.values) or cut > len(second.values):
            raise ValueError(f"crossover cut {cut} is outside the chromosome")
        return (
            Chromosome(first.values[:cut] + second.values[cut:]),
            Chromosome(second.values[:cut] + first.values[cut:]),
        )

    def optimize(
        self,
        fitness_function: Callable[[list[float]], float],
        history_path: str | PathLike[str] | None = None,
    ) -> Chromosome:
        """Evolve the population and return the fittest individual found.

        The best individual of every generation is written to history_path
        when one is given.
        """
        best = Chromosome()
        for individual in self.population:
            individual.fitness = fitness_function(list(individual.values))

        history: list[str] = []
        for _ in range(self.max_generations):
            old_size = len(self.population)
            for _ in range(old_size // 5):
                for child in self.crossover(self.select_parents()):
                    child.fitness = fitness_function(list(child.values))
                    self.population.append(child)

            new_size = len(self.population)
            count = new_size - old_size

            for individual in self.population[count:new_size]:
                individual.mutate(self.mutation_rate, self.bounds, self.rng)
                individual.fitness = fitness_function(list(individual.values))

            self.population.sort(key=lambda c: c.fitness)
            if not self.population:
                raise ValueError("the population is empty")
            first = self.population[0]
            best = Chromosome(list(first.values), first.fitness)

            del self.population[new_size - count:]

            history.append(str(best))
            print(f"current best is {best!r}")

        if history_path is not None:
            write_history(history_path, history)
        return best


def write_history(path: str | PathLike[str], lines: Iterable[str]) -> None:
    """Write the given entries to path, one after another, as they are."""
    with open(path, "w", encoding="utf-8") as handle:
        for line in lines:
            handle.write(line)