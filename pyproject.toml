[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rvkit"
version = "0.1.0"
description = "Pure-Python tools for flattened device trees, ACPI tables, kernel log formatting and x86_64/AArch64 register and descriptor layouts"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "device-tree",
    "fdt",
    "dtb",
    "acpi",
    "madt",
    "multiboot",
    "page-table",
    "gic",
    "kernel",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Operating System Kernels",
    "Topic :: Software Development :: Embedded Systems",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["rvkit"]

[tool.hatch.build.targets.sdist]
include = ["rvkit", "tests", "README.md", "pyproject.toml"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.mypy]
python_version = "3.10"
