"""Fit ODE system parameters to measured data with a genetic algorithm."""

__version__ = "0.1.0"