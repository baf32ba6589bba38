[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "uncso2"
version = "1.0.0"
description = "Decrypt and parse Counter-Strike Online 2 and Titanfall Online PKG archives, indexes, encrypted files and LZMA textures"
requires-python = ">=3.10"
dependencies = [
    "pycryptodome",
]
keywords = ["pkg", "archive", "decryption", "lzma", "vtf", "cso2", "titanfall-online"]
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
    "Topic :: System :: Archiving",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["uncso2"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
