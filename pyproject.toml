[build-system]
requires = ["hatchling>=1.18"]
build-backend = "hatchling.build"

[project]
name = "yieldpage"
version = "0.1.0"
description = "Crawler that yields pages, with their text and links, from a starting URI"
requires-python = ">=3.10"
keywords = ["crawler", "spider", "webdriver", "scraping", "text-extraction", "indexing"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Framework :: AsyncIO",
    "Topic :: Internet :: WWW/HTTP :: Indexing/Search",
    "Topic :: Text Processing :: Markup :: HTML",
]
dependencies = [
    "beautifulsoup4>=4.12",
    "httpx>=0.25",
]

[project.optional-dependencies]
test = [
    "pytest>=7.4",
    "pytest-asyncio>=0.23",
    "respx>=0.20",
]

[project.scripts]
yield-page = "yieldpage.cli:main"
yield-page-config = "yieldpage.config_crawl:main"
yield-page-build = "yieldpage.builder_crawl:main"

[tool.hatch.build.targets.wheel]
packages = ["yieldpage"]

[tool.hatch.build.targets.sdist]
include = ["yieldpage", "tests", "README.md", "pyproject.toml"]

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
warn_redundant_casts = true
