[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "chatgate"
version = "0.1.0"
description = "HTTP gateway, status service and framed session protocol for a chat backend"
requires-python = ">=3.10"
keywords = ["chat", "gateway", "redis", "asyncio", "load-balancing"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Framework :: AsyncIO",
    "Topic :: Communications :: Chat",
]
dependencies = [
    "redis",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[project.scripts]
chatgate = "chatgate.gateway:main"

[tool.hatch.build.targets.wheel]
packages = ["chatgate"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
