[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "dtkgui"
version = "0.1.0"
description = "DCI icon loading and rendering, icon theme lookup, built-in icons, font size tiers, taskbar messages and thumbnail generation"
requires-python = ">=3.10"
keywords = ["dci", "icons", "icon-theme", "thumbnails", "fonts", "taskbar", "desktop"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries",
    "Topic :: Multimedia :: Graphics",
]
dependencies = [
    "pillow",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
dci-image-converter = "dtkgui.converter:main"

[tool.hatch.build.targets.wheel]
packages = ["dtkgui"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
