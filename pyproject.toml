[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "xvsim"
version = "0.1.0"
description = "Pure-Python models of the core pieces of a small teaching kernel and its user tools"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "operating-system",
    "kernel",
    "paging",
    "x86",
    "shell-parser",
    "allocator",
    "simulation",
    "education",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Operating System",
    "Topic :: Education",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
xvsim-wc = "xvsim.wc:main"

[tool.hatch.build.targets.wheel]
packages = ["xvsim"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.mypy]
python_version = "3.10"
strict = true
