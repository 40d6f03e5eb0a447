[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "n8nctl"
version = "0.1.0"
description = "Keep n8n workflows in local JSON or YAML files and synchronise them with an n8n instance"
requires-python = ">=3.10"
dependencies = [
    "pyyaml",
]
keywords = [
    "n8n",
    "workflows",
    "automation",
    "sync",
    "gitops",
    "yaml",
    "json",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Systems Administration",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["n8nctl"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
