"""HCL loading: parse build files into a Workspace of targets."""

from __future__ import annotations

import logging
from importlib import resources
from pathlib import Path
from typing import TYPE_CHECKING, Any

import hcl2
import jinja2

from .projects import ImageProject, Project

if TYPE_CHECKING:
    from .workspace import Workspace

logger = logging.getLogger(__name__)

DEFAULT_FILENAME = "dockstage.hcl"


def scan[P: Project](
    path: str | Path,
    *,
    project_type: type[P] = ImageProject,  # type: ignore[assignment]
    recurse: bool = True,
    context: dict[str, Any] | None = None,
) -> Workspace[P]:
    """Scan a file or directory for .hcl files and return a ready Workspace."""
    from .workspace import Workspace

    ws = Workspace(project_type=project_type, context=context)
    ws.scan(path, recurse=recurse)
    return ws


def load(
    file: Path,
    *,
    context: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Load and parse a single HCL file, rendering Jinja2 templates with context."""
    text = file.read_text()
    ctx = context if context is not None else {}
    env = jinja2.Environment(
        undefined=jinja2.StrictUndefined,
        keep_trailing_newline=True,
        autoescape=False,
    )
    try:
        template = env.from_string(text)
        text = template.render(ctx)
    except jinja2.TemplateError as exc:
        raise ValueError(f"{file}: {exc}") from exc
    try:
        return hcl2.loads(text)
    except Exception as exc:
        # hcl2 raises its parser's own exception types
        raise ValueError(f"{file}: {exc}") from exc


def defaults_path() -> Path:
    """The packaged build file defining the dev-image and minimal-image targets."""
    return Path(str(resources.files("dockstage").joinpath("defaults.hcl")))


def locate(config: str | Path | None = None) -> Path:
    """Pick the build file to use: an explicit path, ./dockstage.hcl, or the defaults."""
    if config is not None:
        return Path(config)
    local = Path.cwd() / DEFAULT_FILENAME
    if local.is_file():
        return local
    logger.debug("No %s in %s; using packaged defaults", DEFAULT_FILENAME, Path.cwd())
    return defaults_path()
