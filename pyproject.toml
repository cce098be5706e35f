[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tagvm"
version = "0.1.0"
description = "Runtime syntax tree, bytecode compiler, optimizer and stack machine for a small ML-style language with tagged unions and records"
requires-python = ">=3.10"
dependencies = [
    "frozendict",
]
keywords = [
    "interpreter",
    "bytecode",
    "virtual-machine",
    "compiler",
    "ml",
    "tagged-unions",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Interpreters",
    "Topic :: Software Development :: Compilers",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["tagvm"]

[tool.hatch.build.targets.sdist]
include = [
    "tagvm",
    "tests",
]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
