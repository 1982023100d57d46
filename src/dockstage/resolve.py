"""Resolver: resolve ${...} references in parsed build files."""

from __future__ import annotations

import logging
import re
from typing import Any

logger = logging.getLogger(__name__)

_INTERP_PATTERN = re.compile(r"\$\$\{|(\$\{([^{}]+)\})")
_FULL_PATTERN = re.compile(r"\$\{([^{}]+)\}")


class Resolver:
    """Resolve ${...} references (e.g. ``${env.TAG}``, ``${CWD}``) against a context dict."""

    def __init__(self, context: dict[str, Any] | None = None) -> None:
        self._context = context or {}

    def _resolve_ref(self, ref: str) -> Any:
        """Resolve a dotted reference against the context.

        Mappings are indexed, other objects are searched by attribute. A
        callable found at the end of the path is invoked.
        """
        current: Any = self._context

        for part in ref.split("."):
            try:
                current = current[part]
            except (KeyError, TypeError):
                try:
                    current = getattr(current, part)
                except AttributeError:
                    raise ValueError(f"undefined variable '{ref}'") from None

        if callable(current) and not isinstance(current, type):
            current = current()

        logger.debug("Resolved ${%s}", ref)
        return current

    def _resolve_value(self, value: str) -> str | Any:
        """Resolve ${...} references in a single string.

        A string that is exactly one ${ref} resolves to the referenced object
        itself; references inside a longer string are stringified. $${...}
        yields a literal ${...}.
        """
        if "${" not in value:
            return value

        match = _FULL_PATTERN.fullmatch(value)
        if match:
            return self._resolve_ref(match.group(1).strip())

        def _replace(m: re.Match) -> str:  # type: ignore[type-arg]
            if m.group(0) == "$${":
                return "${"
            return str(self._resolve_ref(m.group(2).strip()))

        return _INTERP_PATTERN.sub(_replace, value)

    def resolve(self, data: dict[str, Any]) -> dict[str, Any]:
        """Return a copy of data with every ${...} reference resolved."""
        return self._walk(data)

    def _walk(self, obj: Any) -> Any:
        if isinstance(obj, dict):
            return {k: self._walk(v) for k, v in obj.items()}
        if isinstance(obj, list):
            return [self._walk(item) for item in obj]
        if isinstance(obj, str):
            return self._resolve_value(obj)
        return obj
