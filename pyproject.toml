[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ipcheck"
version = "1.0.0"
description = "HTTP API that looks up geolocation data for IP addresses, with caching and round-robin providers"
requires-python = ">=3.10"
keywords = ["ip", "geolocation", "api", "flask", "cache"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Web Environment",
    "Framework :: Flask",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
]
dependencies = [
    "flask",
    "requests",
]

[project.optional-dependencies]
test = [
    "pytest",
    "responses",
]

[project.scripts]
ipcheck = "ipcheck.api:main"

[tool.hatch.build.targets.wheel]
packages = ["ipcheck"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
