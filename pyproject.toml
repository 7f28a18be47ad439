[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "auditchain"
version = "0.1.0"
description = "A small replicated chain of signed file-access audit records, with gossip, heartbeats, leader election and Merkle-rooted blocks."
requires-python = ">=3.10"
dependencies = [
    "cryptography",
]
keywords = [
    "blockchain",
    "audit",
    "merkle-tree",
    "leader-election",
    "gossip",
    "heartbeat",
    "mempool",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Distributed Computing",
    "Topic :: Security :: Cryptography",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["auditchain"]

[tool.hatch.build.targets.sdist]
include = [
    "auditchain",
    "tests",
]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
check_untyped_defs = true
