[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "wotop"
version = "0.1.0"
description = "Building blocks for backend services: application metadata, a use-case registry, console and Graylog logging, templated SMTP mail, Redis token storage and a Centrifugo API client."
requires-python = ">=3.10"
keywords = ["backend", "framework", "clean-architecture", "logging", "graylog", "gelf", "centrifugo", "redis", "smtp"]
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
]
dependencies = [
    "redis",
    "requests",
    "jinja2",
    "beautifulsoup4",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["wotop"]

[tool.pytest.ini_options]
addopts = "-ra"
