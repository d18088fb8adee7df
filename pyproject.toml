[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "bookmill"
version = "0.1.0"
description = "Book configuration, include-directive expansion and preprocessing for markdown books"
requires-python = ">=3.11"
dependencies = [
    "tomli-w",
]
keywords = ["markdown", "book", "documentation", "preprocessor", "toml"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Text Processing :: Markup :: Markdown",
    "Topic :: Documentation",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["bookmill"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
