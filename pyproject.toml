[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "kplvm"
version = "1.0.0"
description = "Instruction set, symbol table, code generator and stack virtual machine for the KPL teaching language"
requires-python = ">=3.10"
dependencies = []
keywords = ["kpl", "interpreter", "virtual machine", "stack machine", "bytecode", "code generation"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Interpreters",
    "Topic :: Education",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
kplrun = "kplvm.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["kplvm"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
