[build-system]
requires = ["setuptools>=64"]
build-backend = "setuptools.build_meta"

[project]
name = "roombook"
version = "0.1.0"
description = "JSON HTTP layer of a meeting-room booking service: routing, bearer-token and role checks, endpoint handlers, SQL migrations and a conference-link mock."
requires-python = ">=3.10"
dependencies = []
keywords = ["booking", "meeting rooms", "scheduling", "wsgi", "rest", "json", "migrations"]
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
    "Topic :: Internet :: WWW/HTTP :: WSGI :: Application",
    "Topic :: Office/Business :: Scheduling",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
roombook-conference-mock = "roombook.conference_mock:main"

[tool.setuptools.packages.find]
include = ["roombook*"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]
