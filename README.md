# odefit

Fit the parameters of a system of ordinary differential equations to
measured time series with a genetic algorithm.

## Install

    pip install .

To run the tests:

    pip install .[test]
    pytest

## Overview

- `odefit.config` holds the dataclasses that configure a run.
  - `GAMetadata` stores the time span (`start_time`, `end_time`), the step
    (`delta_time`), `population_size`, `crossover_rate`, `mutation_rate` and
    `max_iterations`.
  - `GAArgument` is a named value, such as an initial condition or a fixed
    parameter.
  - `Bound` is the allowed range (`min`, `max`) of a parameter being fitted.
  - `ConfigData` groups `metadata`, `arguments` and `bounds`.
- `odefit.csvdata` provides `CSVData.load_data(reader)`. It reads CSV text
  that has a header row, from any iterable of lines such as an open file or a
  `StringIO`. The first column becomes `time`. The other columns become
  `labels` and `lines`. It raises `ValueError` when:
  - there are no columns,
  - a row has the wrong number of fields,
  - a value is not a number.
- `odefit.odesystem` builds and solves the equation system.
  - `create_ode_system(text, terms)` builds an `OdeSystem` from lines of the
    form `X = expression`. `terms` is a list of `(symbol, initial value)`
    pairs that seed the variable context.
  - Expressions support the following:
    - `+ - * /`, with `^` or `**` for powers,
    - parentheses,
    - the constants `pi` and `e`,
    - `sin`, `cos`, `tan`, `asin`, `acos`, `atan`, `sinh`, `cosh`, `tanh`,
      `exp`, `ln`, `log`, `log10`, `sqrt`, `abs`, `floor` and `ceil`.
  - An invalid expression raises `ExpressionError`.
  - `solve(ode_system, y, t_ini, t_final, dt, args, values)` integrates the
    system with scipy's DOP853 method and returns the state at every step of
    `dt`. It leaves the given system unchanged. If integration fails it
    reports the error on stderr and returns an empty list.
  - `save(times, states, filename)` writes the result as CSV lines.
- `odefit.genetic` is the optimiser.
  - `GeneticAlgorithm` uses roulette selection, one-point crossover and
    bounded mutation through `Chromosome.mutate`. It minimises fitness.
  - `optimize(fitness_function, history_path)` prints the best individual of
    each generation. When `history_path` is given, it also writes those
    individuals to that file with `write_history`.
  - Pass a `random.Random` as `rng` for reproducible runs.
- `odefit.estimation` provides
  `ParameterEstimation.estimate_parameters(csv_data, all_args, selected_args, ode_system)`.
  It joins the pieces and minimises the root of the summed squared error
  between the solved system and the CSV data, at matching time points. The
  best parameter values end up in `best_solution`.

## Example

```python
import io
import random

from odefit.config import Bound, ConfigData, GAArgument, GAMetadata
from odefit.csvdata import CSVData
from odefit.estimation import ParameterEstimation
from odefit.odesystem import create_ode_system

data = CSVData.load_data(io.StringIO("t,N\n0,1\n1,2.7\n2,7.4\n"))
system = create_ode_system("N = r*N", [])

estimation = ParameterEstimation(rng=random.Random(1))
estimation.config_data = ConfigData(
    metadata=GAMetadata(
        name="growth",
        start_time=0.0,
        delta_time=1.0,
        end_time=2.0,
        population_size=20,
        crossover_rate=0.5,
        mutation_rate=0.3,
        max_iterations=30,
    ),
    arguments=[GAArgument("N", 1.0)],
    bounds=[Bound("r", 0.1, 2.0)],
)
estimation.estimate_parameters(
    data,
    [GAArgument("N", 1.0), GAArgument("r", 1.0)],
    [GAArgument("r", 1.0)],
    system,
)
print(estimation.best_solution)
```

## What it does not do

This is a library only. It has no command-line program, no graphical editor
for building equation systems, and no reader for configuration files. You
build `ConfigData` and the equation text in Python yourself.