[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "reflect_engine"
version = "0.1.0"
description = "Core of a small 2D side-scrolling game engine: entities, components, AABB physics over a BVH, camera and scene render data."
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = ["game engine", "ecs", "physics", "bvh", "aabb", "platformer", "2d"]
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
    "Topic :: Games/Entertainment :: Side-Scrolling/Arcade Games",
    "Topic :: Software Development :: Libraries",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["reflect_engine"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
