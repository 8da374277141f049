[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "odefit"
version = "0.1.0"
description = "Estimate parameters of ordinary differential equation systems from measured data with a genetic algorithm"
requires-python = ">=3.10"
keywords = ["ode", "parameter estimation", "genetic algorithm", "curve fitting", "differential equations"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Mathematics",
]
dependencies = [
    "numpy",
    "scipy",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["odefit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
