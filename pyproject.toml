[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "nesemu"
version = "0.1.0"
description = "Building blocks of a Nintendo Entertainment System emulator: 6502 core state, PPU, cartridge loading and input mapping"
requires-python = ">=3.10"
dependencies = []
keywords = ["nes", "emulator", "6502", "ppu", "ines", "retro"]
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
    "Topic :: System :: Emulators",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["nesemu"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
