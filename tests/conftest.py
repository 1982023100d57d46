"""Shared fixtures: an in-memory stand-in for the docker client."""

from __future__ import annotations

import tarfile
from pathlib import Path

import pytest
from docker.errors import APIError, ImageNotFound

from dockstage.engine import Engine

CARGO_TOML = """\
[package]
name = "server"
version = "0.1.0"
edition = "2018"

[dependencies]
axum = "0.2"
"""


class FakeImage:
    def __init__(self, labels: dict[str, str]) -> None:
        self.labels = labels


class FakeImages:
    def __init__(self) -> None:
        self.tagged: dict[str, dict[str, str]] = {}
        self.removed: list[str] = []

    def get(self, tag: str) -> FakeImage:
        if tag not in self.tagged:
            raise ImageNotFound(f"No such image: {tag}")
        return FakeImage(self.tagged[tag])

    def remove(self, tag: str) -> None:
        if tag not in self.tagged:
            raise ImageNotFound(f"No such image: {tag}")
        del self.tagged[tag]
        self.removed.append(tag)


class UnreachableImages(FakeImages):
    """Images endpoint whose daemon answers every request with a server error."""

    def get(self, tag: str) -> FakeImage:
        raise APIError("500 Server Error: Internal Server Error")

    def remove(self, tag: str) -> None:
        raise APIError("409 Client Error: Conflict (image is being used by running container)")


class FakeAPI:
    """Records each build request and tags the image unless told to fail."""

    def __init__(self, images: FakeImages) -> None:
        self.images = images
        self.builds: list[dict] = []
        self.fail_with: str | None = None

    def build(self, *, fileobj, custom_context, tag, labels, **kwargs):
        with tarfile.open(fileobj=fileobj, mode="r") as tar:
            files = sorted(tar.getnames())
            dockerfile = tar.extractfile("Dockerfile").read().decode()
        self.builds.append(
            {
                "tag": tag,
                "labels": dict(labels),
                "files": files,
                "dockerfile": dockerfile,
                "custom_context": custom_context,
            }
        )
        return self._stream(tag, labels)

    def _stream(self, tag, labels):
        yield {"stream": "Step 1/1 : FROM scratch\n"}
        if self.fail_with is not None:
            yield {"error": self.fail_with}
            return
        self.images.tagged[tag] = dict(labels)
        yield {"aux": {"ID": "sha256:0123456789ab"}}
        yield {"stream": f"Successfully tagged {tag}\n"}


class FakeClient:
    def __init__(self) -> None:
        self.images = FakeImages()
        self.api = FakeAPI(self.images)


@pytest.fixture
def client() -> FakeClient:
    return FakeClient()


@pytest.fixture
def unreachable() -> FakeClient:
    """A client whose images endpoint fails with server errors."""
    client = FakeClient()
    client.images = UnreachableImages()
    return client


@pytest.fixture
def engine(client) -> Engine:
    return Engine(client)


@pytest.fixture
def source(tmp_path) -> Path:
    """A minimal valid source tree with a build manifest and one binary."""
    root = tmp_path / "src-tree"
    (root / "src").mkdir(parents=True)
    (root / "Cargo.toml").write_text(CARGO_TOML)
    (root / "src" / "main.rs").write_text('fn main() { println!("hello"); }\n')
    return root
