"""Specification ABC and stage registration."""

from __future__ import annotations

from abc import ABC, abstractmethod

from .context import Context

_spec_registry: dict[str, type] = {}


def spec(name: str):
    """Register a Specification class as an HCL block decoder."""

    def decorator(cls):
        _spec_registry[name] = cls
        return cls

    return decorator


class Specification[P](ABC):
    """Base class for everything a blueprint can build."""

    @abstractmethod
    def equals(self, ctx: Context[P]) -> bool:
        """Built output is current for the present inputs."""

    def exists(self, ctx: Context[P]) -> bool:
        """Built output exists at all (defaults to equals)."""
        return self.equals(ctx)

    @abstractmethod
    def apply(self, ctx: Context[P]) -> None:
        """Build the output."""

    @abstractmethod
    def remove(self, ctx: Context[P]) -> None:
        """Delete the output."""
