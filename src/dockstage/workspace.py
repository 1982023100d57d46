"""Workspace: a typed collection of parsed build targets."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator, Mapping
from pathlib import Path
from typing import Any

from .blueprints import Blueprint
from .projects import ImageProject, Project
from .resolve import Resolver
from .spec import _spec_registry
from .specop import Absent, Ensure, Present, SpecOp

logger = logging.getLogger(__name__)

_STRATEGY_MAP: dict[str, type[SpecOp]] = {
    "present": Present,
    "ensure": Ensure,
    "absent": Absent,
}


class _Environ(dict[str, str]):
    """Environment lookup that warns and yields an empty string for unset names."""

    def __missing__(self, key: str) -> str:
        logger.warning("Environment variable '%s' is not set", key)
        return ""


def default_context() -> dict[str, Any]:
    """Variables available to ${...} references in every file."""
    return {"env": _Environ(os.environ), "CWD": os.getcwd}


def _decode_spec(
    spec_name: str,
    attrs: dict[str, Any],
) -> Any:
    """Decode a spec block into a Specification instance using the registry."""
    if spec_name not in _spec_registry:
        raise ValueError(f"Unknown spec type: '{spec_name}'")
    spec_cls = _spec_registry[spec_name]
    logger.debug("Decoding spec '%s' -> %s", spec_name, spec_cls.__name__)
    return spec_cls(**attrs)


def _parse_ops(
    block_data: dict[str, Any],
) -> list[SpecOp]:
    """Parse strategy blocks (present/ensure/absent) from a blueprint or project block.

    HCL2 structure for strategy blocks:
        {"ensure": [{"compile": {"args": [...]}}, ...], ...}
    """
    ops: list[SpecOp] = []
    for strategy_name, strategy_cls in _STRATEGY_MAP.items():
        for spec_block in block_data.get(strategy_name, []):
            # Each spec_block is {"spec_name": {attrs}}
            for spec_name, attrs in spec_block.items():
                spec_instance = _decode_spec(spec_name, dict(attrs))
                ops.append(strategy_cls(spec_instance))
    return ops


def _resolve_blueprint(
    name: str,
    pending: dict[str, dict[str, Any]],
    resolved: dict[str, Blueprint],
    resolving: set[str],
) -> Blueprint:
    """Recursively resolve a single blueprint, handling includes."""
    if name in resolved:
        return resolved[name]
    if name in resolving:
        raise ValueError(f"Circular include detected: '{name}'")
    if name not in pending:
        raise ValueError(f"Unknown blueprint: '{name}'")
    logger.debug("Resolving blueprint '%s'", name)
    resolving.add(name)

    bp_data = pending[name]
    ops: list[SpecOp] = []

    # Resolve includes first
    for include_name in bp_data.get("include", []):
        logger.debug("Blueprint '%s' includes '%s'", name, include_name)
        included_bp = _resolve_blueprint(include_name, pending, resolved, resolving)
        ops.extend(included_bp.ops)

    ops.extend(_parse_ops(bp_data))

    bp = Blueprint(name=name, description=bp_data.get("description", ""), ops=ops)
    resolved[name] = bp
    resolving.discard(name)
    return bp


def _build_project[P: Project](
    name: str,
    data: dict[str, Any],
    blueprints: dict[str, Blueprint],
    *,
    project_type: type[P],
) -> P:
    """Build a single Project instance from parsed data."""
    logger.debug("Building project '%s' as %s", name, project_type.__name__)
    # Collect blueprints from 'use' references
    proj_blueprints: list[Blueprint] = []
    for bp_name in data.get("use", []):
        if bp_name not in blueprints:
            raise ValueError(f"Project '{name}' references unknown blueprint: '{bp_name}'")
        proj_blueprints.append(blueprints[bp_name])

    # Parse inline spec ops into an anonymous blueprint
    inline_ops = _parse_ops(data)
    if inline_ops:
        proj_blueprints.append(Blueprint(name=f"{name}:inline", ops=inline_ops))

    proj_kwargs: dict[str, Any] = {"name": name, "blueprints": proj_blueprints}

    # Pass through non-structural fields
    skip_keys = {"use", "include"} | set(_STRATEGY_MAP.keys())
    for key, value in data.items():
        if key not in skip_keys:
            proj_kwargs[key] = value

    return project_type(**proj_kwargs)


class Workspace[P: Project](Mapping[str, P]):
    """Accumulates parsed HCL data and resolves build targets on access."""

    def __init__(
        self,
        project_type: type[P] = ImageProject,  # type: ignore[assignment]
        context: dict[str, Any] | None = None,
    ) -> None:
        self._project_type = project_type
        self._context = default_context()
        if context:
            self._context.update(context)
        self._pending_blueprints: dict[str, dict[str, Any]] = {}
        self._pending_projects: dict[str, dict[str, Any]] = {}

    def scan(self, path: str | Path, *, recurse: bool = True) -> None:
        """Load every .hcl file under path (or path itself, if it is a file)."""
        path = Path(path)
        if path.is_file():
            files = [path]
        elif path.is_dir():
            files = sorted(path.rglob("*.hcl") if recurse else path.glob("*.hcl"))
        else:
            logger.debug("Nothing to scan at %s", path)
            return

        for file in files:
            self.load(file)

    def load(self, path: str | Path) -> None:
        """Parse one .hcl file and add its blocks."""
        from .hcl import load

        logger.debug("Loading %s", path)
        self.add(load(Path(path), context=self._context))

    def add(self, data: dict[str, Any]) -> None:
        """Extract blueprint and project blocks from a parsed data dict.

        ${...} references are resolved before anything is recorded. Raises
        ValueError if any blueprint or project name is already loaded.
        """
        data = Resolver(self._context).resolve(data)

        for bp_block in data.get("blueprint", []):
            for bp_name, bp_data in bp_block.items():
                if bp_name in self._pending_blueprints:
                    raise ValueError(f"Duplicate blueprint: '{bp_name}'")
                logger.debug("Found blueprint '%s'", bp_name)
                self._pending_blueprints[bp_name] = bp_data

        for proj_block in data.get("project", []):
            for proj_name, proj_data in proj_block.items():
                if proj_name in self._pending_projects:
                    raise ValueError(f"Duplicate project: '{proj_name}'")
                logger.debug("Found project '%s'", proj_name)
                self._pending_projects[proj_name] = proj_data

    def _resolve(self) -> dict[str, P]:
        """Resolve all pending blueprints and build typed project instances."""
        logger.debug(
            "Resolving %d blueprint(s) and %d project(s)",
            len(self._pending_blueprints),
            len(self._pending_projects),
        )

        resolved_bps: dict[str, Blueprint] = {}
        for name in self._pending_blueprints:
            _resolve_blueprint(name, self._pending_blueprints, resolved_bps, set())

        projects: dict[str, P] = {}
        for proj_name, proj_data in self._pending_projects.items():
            projects[proj_name] = _build_project(
                proj_name,
                proj_data,
                resolved_bps,
                project_type=self._project_type,
            )
        return projects

    def __getitem__(self, name: str) -> P:
        return self._resolve()[name]

    def __contains__(self, name: object) -> bool:
        return name in self._pending_projects

    def __iter__(self) -> Iterator[str]:
        return iter(self._pending_projects)

    def __len__(self) -> int:
        return len(self._pending_projects)

    def __repr__(self) -> str:
        type_name = self._project_type.__name__
        bp_count = len(self._pending_blueprints)
        proj_count = len(self._pending_projects)
        return f"Workspace(project_type={type_name}, blueprints={bp_count}, projects={proj_count})"
