"""Source tree inspection and build context packing."""

from __future__ import annotations

import hashlib
import io
import logging
import tarfile
import tomllib
from collections.abc import Iterator
from pathlib import Path, PurePosixPath
from typing import Any

from docker.utils.build import exclude_paths

from .errors import SourceError

logger = logging.getLogger(__name__)

MANIFEST = "Cargo.toml"

IGNORE_FILE = ".dockerignore"

# the Dockerfile is always generated
_GENERATED = Path("Dockerfile")


class SourceTree:
    """A directory of source code handed to the compile stage."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def __repr__(self) -> str:
        return f"SourceTree({str(self.root)!r})"

    @property
    def manifest(self) -> Path:
        return self.root / MANIFEST

    def load_manifest(self) -> dict[str, Any]:
        """Parse the build manifest, raising SourceError if it is missing or invalid."""
        if not self.root.is_dir():
            raise SourceError(f"source tree not found: {self.root}")
        if not self.manifest.is_file():
            raise SourceError(f"no {MANIFEST} in {self.root}")
        try:
            return tomllib.loads(self.manifest.read_text())
        except (tomllib.TOMLDecodeError, UnicodeDecodeError) as exc:
            raise SourceError(f"{self.manifest}: {exc}") from exc

    def binaries(self) -> list[str]:
        """Return the names of the binary targets cargo would build.

        Explicit ``[[bin]]`` entries come first. Unless ``autobins = false``,
        ``src/main.rs`` (named after the package), ``src/bin/*.rs`` and
        ``src/bin/*/main.rs`` are discovered too, skipping any path an
        explicit entry already claims.
        """
        data = self.load_manifest()

        package = data.get("package")
        if not isinstance(package, dict) or "name" not in package:
            raise SourceError(f"{self.manifest}: missing [package] name")

        bins = data.get("bin", [])
        if not isinstance(bins, list):
            raise SourceError(f"{self.manifest}: 'bin' must be an array of tables")
        entries = [entry for entry in bins if isinstance(entry, dict) and "name" in entry]
        names = [entry["name"] for entry in entries]
        claimed = {PurePosixPath(entry["path"]) for entry in entries if "path" in entry}

        if package.get("autobins", True):
            for name, path in self._discovered(package["name"]):
                if path not in claimed and name not in names:
                    names.append(name)

        if not names:
            raise SourceError(f"{self.manifest}: no binary targets")
        return names

    def _discovered(self, package_name: str) -> Iterator[tuple[str, PurePosixPath]]:
        """Yield (name, path) for binaries found by cargo's target auto-discovery."""
        if (self.root / "src" / "main.rs").is_file():
            yield package_name, PurePosixPath("src/main.rs")
        bin_dir = self.root / "src" / "bin"
        if not bin_dir.is_dir():
            return
        for path in sorted(bin_dir.iterdir()):
            if path.is_file() and path.suffix == ".rs":
                yield path.stem, PurePosixPath("src/bin", path.name)
            elif (path / "main.rs").is_file():
                yield path.name, PurePosixPath("src/bin", path.name, "main.rs")

    def validate(self, artifact_name: str) -> None:
        """Ensure the manifest can produce a binary called ``artifact_name``."""
        names = self.binaries()
        if artifact_name not in names:
            raise SourceError(
                f"{self.manifest}: no binary named '{artifact_name}' (found: {', '.join(names)})"
            )
        logger.debug("Source tree %s declares binary '%s'", self.root, artifact_name)

    def ignore_patterns(self) -> list[str]:
        """Patterns from .dockerignore, with blank lines and comments dropped."""
        path = self.root / IGNORE_FILE
        if not path.is_file():
            return []
        lines = (line.strip() for line in path.read_text().splitlines())
        return [line for line in lines if line and not line.startswith("#")]

    def _build_output(self, rel: Path) -> bool:
        """True if rel lies in VCS metadata or in a cargo target/ directory."""
        for i, part in enumerate(rel.parts[:-1]):
            if part == ".git":
                return True
            if part == "target" and (self.root.joinpath(*rel.parts[:i]) / MANIFEST).is_file():
                return True
        return False

    def files(self) -> Iterator[Path]:
        """Yield context files relative to the root, in a stable order.

        .dockerignore is honoured with the engine's own pattern matcher.
        """
        included = exclude_paths(str(self.root), self.ignore_patterns())
        for name in sorted(included):
            rel = Path(name)
            if rel == _GENERATED or self._build_output(rel):
                continue
            if (self.root / rel).is_file():
                yield rel

    def digest(self, *extra: str) -> str:
        """Hash the tree contents together with any extra text (e.g. a Dockerfile)."""
        h = hashlib.sha256()
        for rel in self.files():
            h.update(rel.as_posix().encode())
            h.update(b"\0")
            h.update((self.root / rel).read_bytes())
            h.update(b"\0")
        for text in extra:
            h.update(text.encode())
        return h.hexdigest()

    def archive(self, dockerfile: str) -> io.BytesIO:
        """Pack the tree plus a generated Dockerfile as an in-memory tar context."""
        buf = io.BytesIO()
        with tarfile.open(fileobj=buf, mode="w") as tar:
            for rel in self.files():
                tar.add(self.root / rel, arcname=rel.as_posix(), recursive=False)
            add_text(tar, "Dockerfile", dockerfile)
        buf.seek(0)
        return buf


def add_text(tar: tarfile.TarFile, name: str, text: str) -> None:
    data = text.encode()
    info = tarfile.TarInfo(name)
    info.size = len(data)
    info.mode = 0o644
    tar.addfile(info, io.BytesIO(data))


def dockerfile_context(dockerfile: str) -> io.BytesIO:
    """Build context holding only a Dockerfile."""
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w") as tar:
        add_text(tar, "Dockerfile", dockerfile)
    buf.seek(0)
    return buf
