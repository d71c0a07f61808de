[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ustream"
version = "0.1.0"
description = "Building blocks for a lightweight MJPEG-HTTP streamer: request paths, static files, HTTP helpers, worker pools and command-line options"
requires-python = ">=3.10"
dependencies = []
keywords = ["mjpeg", "streaming", "http", "video", "workers", "options"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Video :: Display",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["ustream"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]
