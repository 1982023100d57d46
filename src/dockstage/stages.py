"""The compile and package stages.

Both stages read their constants from the project's ``BuildConfig`` so the
artifact path the compile stage produces is exactly the one the package
stage copies. Each image is labelled with a digest of its inputs; a stage is
up to date when the tagged image carries the digest of the current inputs.
"""

from __future__ import annotations

import hashlib
import logging
from abc import abstractmethod
from typing import TYPE_CHECKING

from .context import Context
from .dockerfile import render_compile, render_package
from .errors import BuildFailure, CompileError, PackageError
from .source import dockerfile_context
from .spec import Specification, spec

if TYPE_CHECKING:
    from .projects import ImageProject

logger = logging.getLogger(__name__)

STAGE_LABEL = "dockstage.stage"
DIGEST_LABEL = "dockstage.digest"


class Stage(Specification["ImageProject"]):
    """A build stage that produces one tagged image."""

    name: str

    @abstractmethod
    def tag(self, project: ImageProject) -> str: ...

    @abstractmethod
    def dockerfile(self, project: ImageProject) -> str: ...

    @abstractmethod
    def digest(self, ctx: Context[ImageProject]) -> str: ...

    def equals(self, ctx: Context[ImageProject]) -> bool:
        labels = ctx.engine.labels(self.tag(ctx.target))
        if labels is None:
            return False
        return labels.get(DIGEST_LABEL) == self.digest(ctx)

    def exists(self, ctx: Context[ImageProject]) -> bool:
        return ctx.engine.exists(self.tag(ctx.target))

    def remove(self, ctx: Context[ImageProject]) -> None:
        ctx.engine.remove(self.tag(ctx.target))

    def _labels(self, digest: str) -> dict[str, str]:
        return {STAGE_LABEL: self.name, DIGEST_LABEL: digest}


@spec("compile")
class CompileStage(Stage):
    """Compile the source tree into a static executable inside the builder image."""

    name = "compile"

    def __init__(self, args: list[str] | None = None) -> None:
        self.args = list(args or [])

    def tag(self, project: ImageProject) -> str:
        return project.config.builder_tag

    def dockerfile(self, project: ImageProject) -> str:
        return render_compile(project.config, self.args)

    def digest(self, ctx: Context[ImageProject]) -> str:
        project = ctx.target
        project.source_tree.validate(project.config.artifact_name)
        return project.source_tree.digest(self.dockerfile(project))

    def apply(self, ctx: Context[ImageProject]) -> None:
        project = ctx.target
        tree = project.source_tree
        tree.validate(project.config.artifact_name)

        dockerfile = self.dockerfile(project)
        engine = ctx.engine
        logger.info("Compiling %s from %s", project.config.artifact_name, tree.root)
        try:
            engine.build(
                tree.archive(dockerfile),
                self.tag(project),
                self._labels(tree.digest(dockerfile)),
            )
        except BuildFailure as exc:
            raise CompileError(f"compile stage failed: {exc}", exc.log) from exc
        logger.info("Artifact available at %s in %s", project.config.artifact_path, self.tag(project))


@spec("package")
class PackageStage(Stage):
    """Copy the compiled artifact into a minimal runtime image."""

    name = "package"

    def tag(self, project: ImageProject) -> str:
        return project.config.runtime_tag

    def dockerfile(self, project: ImageProject) -> str:
        return render_package(project.config)

    def _builder_digest(self, ctx: Context[ImageProject]) -> str:
        builder_tag = ctx.target.config.builder_tag
        labels = ctx.engine.labels(builder_tag)
        if labels is None:
            raise PackageError(f"builder image {builder_tag} not found; run the compile stage first")
        return labels.get(DIGEST_LABEL, "")

    def digest(self, ctx: Context[ImageProject]) -> str:
        h = hashlib.sha256()
        h.update(self._builder_digest(ctx).encode())
        h.update(self.dockerfile(ctx.target).encode())
        return h.hexdigest()

    def equals(self, ctx: Context[ImageProject]) -> bool:
        # in a dry run the builder is stale if the compile stage would be applied
        if any(isinstance(planned, CompileStage) for planned in ctx.planned):
            return False
        if not ctx.engine.exists(ctx.target.config.builder_tag):
            return False
        return super().equals(ctx)

    def apply(self, ctx: Context[ImageProject]) -> None:
        project = ctx.target
        digest = self.digest(ctx)
        logger.info(
            "Packaging %s into %s at %s",
            project.config.artifact_path,
            project.config.runtime_image,
            project.config.installed_path,
        )
        try:
            ctx.engine.build(
                dockerfile_context(self.dockerfile(project)),
                self.tag(project),
                self._labels(digest),
            )
        except BuildFailure as exc:
            raise PackageError(f"package stage failed: {exc}", exc.log) from exc
