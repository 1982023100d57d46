"""Runtime execution context for the build pipeline."""

from __future__ import annotations

from typing import Any

from .engine import Engine


class Context[P]:
    """Runtime state passed through the build chain."""

    def __init__(
        self,
        target: P,
        *,
        dry_run: bool = False,
        force: bool = False,
        engine: Engine | None = None,
    ) -> None:
        self.target = target
        self.dry_run = dry_run
        self.force = force
        self._engine = engine
        # specs a dry run would have applied, in order
        self.planned: list[Any] = []

    @property
    def engine(self) -> Engine:
        """Container engine, connected on first use."""
        if self._engine is None:
            self._engine = Engine.from_env()
        return self._engine
