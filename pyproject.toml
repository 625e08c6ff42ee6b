[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tuyaipc"
version = "0.1.0"
description = "Building blocks for streaming Tuya IP cameras: SDP and codec handling, WebRTC helpers, RTP tracks, UDP ports and local session storage"
requires-python = ">=3.10"
dependencies = [
    "psutil",
]
keywords = ["tuya", "ipc", "camera", "webrtc", "sdp", "rtp", "stun", "ice"]
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
    "Topic :: Multimedia :: Video",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["tuyaipc"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
