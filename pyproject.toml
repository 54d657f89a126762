[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "infusionward"
version = "0.1.0"
description = "Ward infusion monitoring: drop sensor, bedside monitor and nurse-station server"
requires-python = ">=3.10"
dependencies = [
    "pyserial",
]
keywords = [
    "infusion",
    "drip",
    "nurse call",
    "ward",
    "serial",
    "monitoring",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Framework :: AsyncIO",
    "Intended Audience :: Healthcare Industry",
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
test = [
    "pytest",
    "pytest-asyncio",
]

[project.scripts]
infusionward-sensor = "infusionward.sensor:main"
infusionward-client = "infusionward.client:main"
infusionward-server = "infusionward.server:main"

[tool.hatch.build.targets.wheel]
packages = ["infusionward"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
