[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "wirekit"
version = "0.1.0"
description = "API response envelopes, Simple Binary Encoding (SBE) decoding and views, and SBE XML schema conversion."
requires-python = ">=3.10"
dependencies = []
keywords = [
    "sbe",
    "simple-binary-encoding",
    "protobuf",
    "envelope",
    "serialization",
    "binary",
    "xml-schema",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries :: Python Modules",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["wirekit"]

[tool.hatch.build.targets.sdist]
include = ["wirekit", "tests"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
