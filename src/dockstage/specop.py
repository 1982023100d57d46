"""SpecOp strategies."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from .context import Context
from .spec import Specification

logger = logging.getLogger(__name__)


class SpecOp[P](ABC):
    """Wraps a Specification with conditional execution logic."""

    def __init__(self, spec: Specification[P]) -> None:
        self.spec = spec

    def __repr__(self) -> str:
        return f"{type(self).__name__}({type(self.spec).__name__})"

    @abstractmethod
    def __call__(self, ctx: Context[P]) -> None: ...

    def _apply(self, ctx: Context[P]) -> None:
        spec_name = type(self.spec).__name__
        if ctx.dry_run:
            logger.info("[DRY RUN] Would apply %s", spec_name)
            ctx.planned.append(self.spec)
        else:
            logger.info("Applying %s", spec_name)
            self.spec.apply(ctx)


class Present[P](SpecOp[P]):
    """Apply only if the output doesn't exist."""

    def __call__(self, ctx: Context[P]) -> None:
        if not ctx.force and self.spec.exists(ctx):
            logger.debug("Skipping %s; already exists", type(self.spec).__name__)
        else:
            self._apply(ctx)


class Ensure[P](SpecOp[P]):
    """Apply if the output is out of date."""

    def __call__(self, ctx: Context[P]) -> None:
        if not ctx.force and self.spec.equals(ctx):
            logger.debug("Skipping %s; up to date", type(self.spec).__name__)
        else:
            self._apply(ctx)


class Absent[P](SpecOp[P]):
    """Remove if the output exists."""

    def __call__(self, ctx: Context[P]) -> None:
        spec_name = type(self.spec).__name__
        if self.spec.exists(ctx):
            if ctx.dry_run:
                logger.info("[DRY RUN] Would remove %s", spec_name)
            else:
                logger.info("Removing %s", spec_name)
                self.spec.remove(ctx)
        else:
            logger.debug("Skipping removal of %s; not present", spec_name)
