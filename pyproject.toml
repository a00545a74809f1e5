[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "hailstorm"
version = "0.3.0"
description = "Load testing framework: simulated bots driven by load shapes, with storage and weighted behaviours"
requires-python = ">=3.10"
keywords = ["loadtesting", "framework", "tool", "load", "performance", "asyncio"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Framework :: AsyncIO",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Testing :: Traffic Generation",
]
dependencies = []

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[tool.hatch.build.targets.wheel]
packages = ["hailstorm"]

[tool.pytest.ini_options]
addopts = "-ra"
