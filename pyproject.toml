[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "th25ctrl"
version = "0.2.0"
description = "Control core for a virtual radiotherapy linear accelerator: lifecycle state machine, beam, dose, magnet and turntable managers, start-up self-check and hardware simulators"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "radiotherapy",
    "linac",
    "safety",
    "state-machine",
    "simulation",
    "interlock",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Medical Science Apps.",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["th25ctrl"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
