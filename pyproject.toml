[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "maltose"
version = "0.1.0"
description = "Building blocks for Python services: chainable HTTP requests with retries, rate limiting and middleware, and a general-purpose value wrapper."
requires-python = ">=3.10"
dependencies = [
    "requests",
]
keywords = [
    "framework",
    "http-client",
    "middleware",
    "retry",
    "rate-limit",
    "token-bucket",
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
    "Topic :: Software Development :: Libraries :: Application Frameworks",
    "Topic :: Internet :: WWW/HTTP",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["maltose"]

[tool.hatch.build.targets.sdist]
include = [
    "maltose",
    "tests",
]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
