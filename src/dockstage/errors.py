"""Build failure types."""

from __future__ import annotations


class BuildFailure(Exception):
    """A stage could not produce its image.

    ``log`` holds the engine output exactly as it was received.
    """

    def __init__(self, message: str, log: str = "") -> None:
        super().__init__(message)
        self.log = log


class SourceError(BuildFailure):
    """The source tree is missing a usable build manifest."""


class CompileError(BuildFailure):
    """The toolchain reported a failed build."""


class PackageError(BuildFailure):
    """The runtime image could not be assembled."""
