[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "woaa"
version = "0.1.0"
description = "Core library for a WeChat official account admin server: logging, caching, request guards, menus, auto-replies, materials and reply delivery."
requires-python = ">=3.10"
dependencies = []
keywords = [
    "wechat",
    "official-account",
    "admin",
    "auto-reply",
    "menu",
    "logging",
    "lru",
]
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
    "Topic :: Internet :: WWW/HTTP :: Dynamic Content",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["woaa"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]
