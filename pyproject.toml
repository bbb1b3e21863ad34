[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "randsketch"
version = "0.1.0"
description = "Philox random numbers, dense matrix utilities and sparse matrix kernels for randomized linear algebra"
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = [
    "randomized linear algebra",
    "philox",
    "counter-based rng",
    "box-muller",
    "sparse matrix",
    "csr",
    "csc",
    "coo",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering :: Mathematics",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["randsketch"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
ignore_missing_imports = true
