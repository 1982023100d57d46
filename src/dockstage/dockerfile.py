"""Dockerfile rendering for the compile and package stages."""

from __future__ import annotations

import json

import jinja2

from .config import BuildConfig

_env = jinja2.Environment(
    undefined=jinja2.StrictUndefined,
    keep_trailing_newline=True,
    autoescape=False,
    trim_blocks=True,
    lstrip_blocks=True,
)
_env.filters["exec_form"] = lambda argv: json.dumps(list(argv))

COMPILE_TEMPLATE = """\
FROM {{ config.builder_image }} AS builder
WORKDIR {{ config.workdir }}
USER {{ config.ownership }}

ADD --chown={{ config.ownership }} . ./

RUN {{ command | join(" ") }}

CMD {{ [config.artifact_path] | exec_form }}
"""

PACKAGE_TEMPLATE = """\
FROM {{ config.runtime_image }}
{% if config.runtime_packages %}
RUN apk --no-cache add {{ config.runtime_packages | join(" ") }}
{% endif %}

COPY --from={{ config.builder_tag }} {{ config.artifact_path }} {{ config.install_dir }}/

USER {{ config.runtime_user }}
CMD {{ [config.installed_path] | exec_form }}
"""


def cargo_command(config: BuildConfig, args: list[str] | None = None) -> list[str]:
    """Return the release build invocation for the configured target triple."""
    if config.profile == "release":
        profile = ["--release"]
    else:
        profile = ["--profile", config.profile]
    return ["cargo", "build", *profile, "--target", config.target_triple, *(args or [])]


def render_compile(config: BuildConfig, args: list[str] | None = None) -> str:
    """Render the builder-stage Dockerfile."""
    return _env.from_string(COMPILE_TEMPLATE).render(config=config, command=cargo_command(config, args))


def render_package(config: BuildConfig) -> str:
    """Render the runtime-stage Dockerfile; it copies the artifact and never compiles."""
    return _env.from_string(PACKAGE_TEMPLATE).render(config=config)
