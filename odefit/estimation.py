"""Estimating ODE parameters from observed data with a genetic algorithm."""

from __future__ import annotations

import math
import random
import sys
from dataclasses import dataclass, field
from os import PathLike
from typing import Sequence

from odefit.config import ConfigData, GAArgument
from odefit.csvdata import CSVData
from odefit.genetic import GeneticAlgorithm
from odefit.odesystem import OdeSystem, solve

__all__ = ["ParameterEstimation"]

_PENALTY = 1000.0
_TIME_TOLERANCE = 1e-6


@dataclass
class ParameterEstimation:
    """Fits the selected parameters of an ODE system to observed data."""

    config_data: ConfigData = field(default_factory=ConfigData)
    best_solution: list[float] = field(default_factory=list)
    algorithm: GeneticAlgorithm = field(default_factory=GeneticAlgorithm)
    rng: random.Random | None = None
    history_path: str | PathLike[str] | None = None

    def estimate_parameters(
        self,
        csv_data: CSVData,
        all_args: Sequence[GAArgument],
        selected_args: Sequence[GAArgument],
        ode_system: OdeSystem,
    ) -> None:
        """Run the genetic algorithm and store the best values in best_solution.

        Fitness is the root of the summed squared differences between the
        observed series and the solution at matching time points.
        """
        metadata = self.config_data.metadata
        bounds = self.config_data.bounds
        self.algorithm = GeneticAlgorithm(
            metadata.max_iterations,
            metadata.mutation_rate,
            metadata.crossover_rate,
            bounds,
            self.rng,
        )
        self.algorithm.generate_random_population(
            metadata.population_size, len(bounds)
        )

        names = sorted(ode_system.equations)
        indexes: list[int] = []
        for label in csv_data.labels:
            matches = [i for i, key in enumerate(names) if label.strip() == key.strip()]
            if not matches:
                raise ValueError(f"no equation for data column {label!r}")
            indexes.extend(matches)

        initial_condition = [
            arg.value
            for arg in self.config_data.arguments
            if arg.name in ode_system.equations
        ]
        ode_system.set_context(all_args)
        selected = list(selected_args)

        def fitness(values: list[float]) -> float:
            result = solve(
                ode_system,
                initial_condition,
                metadata.start_time,
                metadata.end_time,
                metadata.delta_time,
                selected,
                values,
            )
            if not result:
                print(
                    "Error: ode_result is empty. Defaulting to 1000.0",
                    file=sys.stderr,
                )
                return _PENALTY

            errors = [0.0] * len(csv_data.labels)
            index = 0
            ode_index = 0
            t = metadata.start_time
            while t <= metadata.end_time:
                if index == len(csv_data.time) or ode_index >= len(result):
                    break
                if abs(t - csv_data.time[index]) < _TIME_TOLERANCE:
                    for i, series in enumerate(csv_data.lines):
                        diff = result[ode_index][indexes[i]] - series[index]
                        errors[i] += diff * diff
                    index += 1
                t += metadata.delta_time
                ode_index += 1

            total = math.fsum(errors) if not any(map(math.isnan, errors)) else math.nan
            if math.isnan(total):
                print(
                    "Error: sum of errors is NaN. Defaulting to 1000.0",
                    file=sys.stderr,
                )
                return _PENALTY
            return math.sqrt(total)

        best = self.algorithm.optimize(fitness, self.history_path)
        print(f"The best individual is {best!r}")
        self.best_solution = list(best.values)