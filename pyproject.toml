[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ergot"
version = "0.10.0"
description = "Typed, addressed messaging between tasks and devices, with COBS framing"
requires-python = ">=3.10"
dependencies = []
keywords = ["messaging", "cobs", "postcard", "embedded", "networking", "framing"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Software Development :: Embedded Systems",
    "Topic :: System :: Networking",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
    "hypothesis",
]

[tool.hatch.build.targets.wheel]
packages = ["ergot"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
