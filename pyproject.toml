[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "diskcraft"
version = "0.1.0"
description = "Schedulers for a replicated disk-storage simulation: object placement, read scheduling and garbage collection"
requires-python = ">=3.10"
keywords = ["storage", "scheduling", "disk", "simulation", "garbage-collection"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Filesystems",
]
dependencies = [
    "sortedcontainers",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
diskcraft-baseline = "diskcraft.baseline:main"

[tool.hatch.build.targets.wheel]
packages = ["diskcraft"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
