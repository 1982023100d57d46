"""Container engine access through the Docker SDK."""

from __future__ import annotations

import io
import logging
from typing import Any

import docker
import requests
from docker.errors import APIError, DockerException, ImageNotFound

from .errors import BuildFailure

logger = logging.getLogger(__name__)


class Engine:
    """Thin wrapper over a docker client; builds, inspects and removes tagged images."""

    def __init__(self, client: Any) -> None:
        self.client = client

    @classmethod
    def from_env(cls) -> Engine:
        try:
            client = docker.from_env()
        except DockerException as exc:
            raise BuildFailure(f"container engine unavailable: {exc}") from exc
        return cls(client)

    def labels(self, tag: str) -> dict[str, str] | None:
        """Return the labels of a tagged image, or None if the tag does not exist."""
        try:
            image = self.client.images.get(tag)
        except ImageNotFound:
            return None
        except APIError as exc:
            raise BuildFailure(f"cannot inspect {tag}: {exc}") from exc
        return dict(image.labels or {})

    def exists(self, tag: str) -> bool:
        return self.labels(tag) is not None

    def build(self, context: io.BytesIO, tag: str, labels: dict[str, str]) -> str:
        """Build an image from a tar context and tag it.

        Engine output is collected verbatim and attached to the BuildFailure
        raised when the build does not complete.
        """
        output: list[str] = []
        image_id = ""
        logger.debug("Building %s", tag)
        try:
            stream = self.client.api.build(
                fileobj=context,
                custom_context=True,
                tag=tag,
                labels=labels,
                rm=True,
                forcerm=True,
                decode=True,
            )
            for chunk in stream:
                if "stream" in chunk:
                    output.append(chunk["stream"])
                    logger.debug("%s", chunk["stream"].rstrip())
                if "aux" in chunk and "ID" in chunk["aux"]:
                    image_id = chunk["aux"]["ID"]
                if "error" in chunk:
                    output.append(chunk["error"])
                    raise BuildFailure(chunk["error"].strip(), "".join(output))
        except (DockerException, requests.RequestException) as exc:
            raise BuildFailure(str(exc), "".join(output)) from exc

        logger.info("Tagged %s", tag)
        return image_id

    def remove(self, tag: str) -> None:
        try:
            self.client.images.remove(tag)
        except ImageNotFound:
            logger.debug("Image %s already gone", tag)
        except APIError as exc:
            raise BuildFailure(f"cannot remove {tag}: {exc}") from exc
