[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "toolbelt"
version = "0.1.0"
description = "Helpers for command-line build tools: option application, external program execution, structured logging attributes, environment configuration and JWT session tokens."
requires-python = ">=3.10"
keywords = ["build", "cli", "subprocess", "logging", "jwt", "go", "tooling"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Build Tools",
    "Typing :: Typed",
]
dependencies = [
    "click>=8.1",
    "pyjwt>=2.8",
]

[project.optional-dependencies]
test = [
    "pytest>=7.4",
]

[project.scripts]
toolbelt-builder = "toolbelt.builder_cli:main"

[tool.hatch.build.targets.wheel]
packages = ["toolbelt"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
