"""deploid: build, package, sign and publish web apps to Android (and prepare iOS)."""

__version__ = "0.1.0"
