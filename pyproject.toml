[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "calvision"
version = "1.0.0"
description = "Data acquisition helpers and waveform analysis for SiPM calorimetry readout"
requires-python = ">=3.10"
keywords = ["daq", "digitizer", "sipm", "waveform", "pulse fitting", "calorimetry"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Physics",
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
packages = ["calvision"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
