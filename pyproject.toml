[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "dalight"
version = "0.1.0"
description = "Namespaced Merkle tree blocks, share proofs, data-square quadrant planning, header verification, key storage and lock files for data-availability nodes."
requires-python = ">=3.10"
dependencies = []
keywords = [
    "data-availability",
    "namespaced-merkle-tree",
    "nmt",
    "ipld",
    "cid",
    "inclusion-proof",
    "keystore",
    "lockfile",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Distributed Computing",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["dalight"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
