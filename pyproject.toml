[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "kitbox"
version = "0.1.0"
description = "Everyday building blocks: snowflake IDs, an in-memory TTL cache, Bloom filters with MurmurHash3 and secure nonces."
requires-python = ">=3.10"
dependencies = []
keywords = ["snowflake", "cache", "ttl", "bloom-filter", "murmur3", "nonce"]
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
packages = ["kitbox"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
