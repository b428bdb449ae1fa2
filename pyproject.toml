[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "linktracker"
version = "0.1.0"
description = "Telegram bot and scrapper service that track GitHub and Stack Overflow links and notify chats about new activity"
requires-python = ">=3.10"
keywords = ["telegram", "bot", "github", "stackoverflow", "link-tracking", "notifications"]
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
    "Topic :: Communications :: Chat",
    "Typing :: Typed",
]
dependencies = [
    "httpx>=0.24",
    "pyyaml>=6.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
    "respx>=0.20",
]

[tool.hatch.build.targets.wheel]
packages = ["linktracker"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
