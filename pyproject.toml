[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pgproto"
version = "0.6.0"
description = "Low-level PostgreSQL wire protocol: frontend messages, authentication, escaping and binary value formats"
requires-python = ">=3.10"
dependencies = []
keywords = ["postgres", "postgresql", "protocol", "wire", "scram", "binary"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Database",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["pgproto"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
