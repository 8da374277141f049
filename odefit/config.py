"""Configuration records for a parameter-estimation run."""

from __future__ import annotations

from dataclasses import dataclass, field

__all__ = ["GAMetadata", "GAArgument", "Bound", "ConfigData"]


@dataclass
class GAMetadata:
    """Settings for the time span and the genetic algorithm."""

    name: str = ""
    start_time: float = 0.0
    delta_time: float = 0.0
    end_time: float = 0.0
    population_size: int = 0
    crossover_rate: float = 0.0
    mutation_rate: float = 0.0
    max_iterations: int = 0


@dataclass
class GAArgument:
    """A named value, such as an initial condition or a fixed parameter."""

    name: str = ""
    value: float = 0.0


@dataclass
class Bound:
    """The range a parameter under adjustment may take."""

    name: str = ""
    min: float = 0.0
    max: float = 0.0


@dataclass
class ConfigData:
    """Everything a parameter-estimation run is configured with."""

    metadata: GAMetadata = field(default_factory=GAMetadata)
    # Kept in the same order as the equations they belong to.
    arguments: list[GAArgument] = field(default_factory=list)
    bounds: list[Bound] = field(default_factory=list)