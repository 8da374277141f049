import math
import random

import pytest

from odefit.config import Bound, ConfigData, GAArgument, GAMetadata
from odefit.csvdata import CSVData
from odefit.estimation import ParameterEstimation
from odefit.odesystem import create_ode_system


def _decay_data(rate, label="x"):
    times = [0.5 * step for step in range(5)]
    return CSVData(
        labels=[label],
        lines=[[math.exp(-rate * t) for t in times]],
        time=times,
    )


def _estimation(low, high, iterations=4, history_path=None):
    config = ConfigData(
        metadata=GAMetadata(
            name="decay",
            start_time=0.0,
            delta_time=0.5,
            end_time=2.0,
            population_size=10,
            crossover_rate=0.5,
            mutation_rate=0.5,
            max_iterations=iterations,
        ),
        arguments=[GAArgument("x", 1.0)],
        bounds=[Bound("k", low, high)],
    )
    return ParameterEstimation(
        config_data=config, rng=random.Random(7), history_path=history_path
    )


def test_best_solution_stays_within_bounds():
    estimation = _estimation(0.1, 1.0)
    system = create_ode_system("x = -k * x", [])
    estimation.estimate_parameters(
        _decay_data(0.3), [GAArgument("k", 0.5)], [GAArgument("k", 0.5)], system
    )
    assert len(estimation.best_solution) == 1
    assert 0.1 <= estimation.best_solution[0] <= 1.0


def test_narrow_bounds_find_true_rate():
    estimation = _estimation(0.29, 0.31)
    system = create_ode_system("x = -k * x", [])
    estimation.estimate_parameters(
        _decay_data(0.3), [GAArgument("k", 0.3)], [GAArgument("k", 0.3)], system
    )
    assert estimation.best_solution[0] == pytest.approx(0.3, abs=0.02)


def test_population_size_is_kept():
    estimation = _estimation(0.1, 1.0)
    system = create_ode_system("x = -k * x", [])
    estimation.estimate_parameters(
        _decay_data(0.3), [], [GAArgument("k", 0.5)], system
    )
    assert len(estimation.algorithm.population) == 10


def test_history_has_one_entry_per_generation(tmp_path):
    path = tmp_path / "history.txt"
    estimation = _estimation(0.1, 1.0, iterations=3, history_path=path)
    system = create_ode_system("x = -k * x", [])
    estimation.estimate_parameters(
        _decay_data(0.3), [], [GAArgument("k", 0.5)], system
    )
    assert path.read_text().count("[fitness = ") == 3


def test_unknown_data_column_raises():
    estimation = _estimation(0.1, 1.0)
    system = create_ode_system("x = -k * x", [])
    with pytest.raises(ValueError):
        estimation.estimate_parameters(
            _decay_data(0.3, label="y"), [], [GAArgument("k", 0.5)], system
        )