[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pktftp"
version = "0.1.0"
description = "A small packet-framed file transfer client and server over TCP"
requires-python = ">=3.10"
dependencies = []
keywords = ["file transfer", "tcp", "client", "server", "packet"]
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
    "Topic :: Internet :: File Transfer Protocol (FTP)",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
pktftp-client = "pktftp.client:main"
pktftp-server = "pktftp.server:main"

[tool.hatch.build.targets.wheel]
packages = ["pktftp"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
