[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "avstream"
version = "0.1.0"
description = "Building blocks for streaming media: MPEG-TS tables and packets, RTMP chunks and handshake, SDP parsing, bit-level I/O"
requires-python = ">=3.10"
dependencies = []
keywords = ["mpeg-ts", "rtmp", "sdp", "rtsp", "streaming", "bitstream", "exp-golomb"]
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
    "Topic :: Multimedia :: Video :: Conversion",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["avstream"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
