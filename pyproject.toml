[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tracematch"
version = "0.0.4"
description = "GPS route sections: consensus polylines, route matching, splitting, merging and incremental updates"
requires-python = ">=3.10"
dependencies = []
keywords = ["gps", "route", "matching", "geospatial", "fitness", "sections"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering :: GIS",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["tracematch"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
