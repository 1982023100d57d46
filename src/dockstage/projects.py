"""Project models: the selectable build targets."""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import BaseModel, Field

from .blueprints import Blueprint
from .config import BuildConfig
from .context import Context
from .source import SourceTree
from .specop import Absent

logger = logging.getLogger(__name__)


class Project(BaseModel):
    """Base model that apps subclass with domain-specific fields."""

    model_config = {"arbitrary_types_allowed": True}

    name: str
    description: str = ""
    blueprints: list[Blueprint] = Field(default_factory=list)

    def build(self, **kwargs) -> None:
        """Build all blueprints. kwargs are passed to Context."""
        ctx = Context(target=self, **kwargs)
        logger.info("Building project '%s'", self.name)
        for blueprint in self.blueprints:
            blueprint.build(ctx)

    def clean(self, **kwargs) -> None:
        """Remove everything the blueprints produce, last stage first."""
        ctx = Context(target=self, **kwargs)
        logger.info("Cleaning project '%s'", self.name)
        ops = [op for blueprint in self.blueprints for op in blueprint]
        for op in reversed(ops):
            Absent(op.spec)(ctx)


class ImageProject(Project):
    """A container image build target over one source tree."""

    source: Path = Path(".")
    config: BuildConfig = Field(default_factory=BuildConfig)

    @property
    def source_tree(self) -> SourceTree:
        return SourceTree(self.source)
