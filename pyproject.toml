[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "trafficrefinery"
version = "0.1.0"
description = "Flow-level traffic feature collection: per-flow counters, domain matching, an expiring cache and configuration loading"
requires-python = ">=3.11"
dependencies = [
    "pyyaml",
]
keywords = [
    "network",
    "traffic",
    "monitoring",
    "flows",
    "counters",
    "aho-corasick",
    "cache",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking :: Monitoring",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["trafficrefinery"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.11"
warn_unused_ignores = true
warn_redundant_casts = true
