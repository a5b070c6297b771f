[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "omnipalette"
version = "0.1.0"
description = "Command palette core: fuzzy search of command names and permission-checked plugin host functions"
requires-python = ">=3.11"
keywords = ["command-palette", "fuzzy-search", "plugins", "sandbox"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Utilities",
    "Typing :: Typed",
]
dependencies = []

[project.optional-dependencies]
test = [
    "pytest>=7",
]

[tool.hatch.build.targets.wheel]
packages = ["omnipalette"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
