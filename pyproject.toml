[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "voicetype"
version = "1.0.0"
description = "Speech-to-text dictation for Linux desktops: record, transcribe and type at the cursor"
requires-python = ">=3.10"
dependencies = [
    "requests",
]
keywords = ["speech-to-text", "transcription", "whisper", "dictation", "linux", "voice typing"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Environment :: X11 Applications",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Sound/Audio :: Speech",
]

[project.optional-dependencies]
test = [
    "pytest",
    "responses",
]

[project.scripts]
voicetype = "voicetype.app:main"
voicetype-mic-test = "voicetype.mic_test:main"

[tool.hatch.build.targets.wheel]
packages = ["voicetype"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
