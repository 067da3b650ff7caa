[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "gossipy"
version = "0.1.0"
description = "Small toolkit for writing nodes that exchange Maelstrom-style JSON messages over stdin and stdout"
requires-python = ">=3.10"
dependencies = []
keywords = ["maelstrom", "distributed-systems", "gossip", "broadcast", "json"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Distributed Computing",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
gossipy-echo = "gossipy.echo:main"
gossipy-unique-ids = "gossipy.unique_ids:main"
gossipy-broadcast = "gossipy.broadcast:main"

[tool.hatch.build.targets.wheel]
packages = ["gossipy"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
