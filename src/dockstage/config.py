"""Build configuration shared by the compile and package stages."""

from __future__ import annotations

from pathlib import PurePosixPath

from pydantic import BaseModel, Field, field_validator

_ROOT_IDENTITIES = {"root", "0"}


class BuildConfig(BaseModel):
    """Constants that fix where the artifact lives and who builds it."""

    model_config = {"extra": "forbid", "frozen": True}

    image: str = "server"

    builder_image: str = "ekidd/rust-musl-builder:latest"
    target_triple: str = "x86_64-unknown-linux-musl"
    profile: str = "release"
    artifact_name: str = "server"
    user: str = "rust"
    group: str = "rust"
    workdir: str = "/home/rust/src"

    runtime_image: str = "alpine:latest"
    runtime_packages: list[str] = Field(default_factory=lambda: ["ca-certificates"])
    install_dir: str = "/usr/local/bin"
    runtime_user: str = "nobody"

    @field_validator("user", "group", "runtime_user")
    @classmethod
    def _non_root(cls, value: str) -> str:
        if value in _ROOT_IDENTITIES:
            raise ValueError(f"refusing to build as '{value}'; a non-root identity is required")
        return value

    @field_validator("workdir", "install_dir")
    @classmethod
    def _absolute(cls, value: str) -> str:
        if not PurePosixPath(value).is_absolute():
            raise ValueError(f"'{value}' must be an absolute path")
        return value

    @property
    def ownership(self) -> str:
        return f"{self.user}:{self.group}"

    @property
    def artifact_path(self) -> str:
        """Location of the compiled executable inside the builder image."""
        # cargo writes the dev profile to a directory called "debug"
        profile_dir = "debug" if self.profile == "dev" else self.profile
        path = PurePosixPath(self.workdir, "target", self.target_triple, profile_dir)
        return str(path / self.artifact_name)

    @property
    def installed_path(self) -> str:
        """Location of the executable inside the runtime image."""
        return str(PurePosixPath(self.install_dir, self.artifact_name))

    @property
    def builder_tag(self) -> str:
        return f"{self.image}:builder"

    @property
    def runtime_tag(self) -> str:
        return f"{self.image}:latest"
