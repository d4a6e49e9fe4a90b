"""Manifest template rendering.

Templates use Jinja2 syntax with Go-template style data references: inside a
``{{ ... }}`` or ``{% ... %}`` tag, ``.key`` (and nested ``.key.sub``) looks
up ``key`` in the template data. Resolution is strict, so referencing a key
that does not exist fails the render instead of producing an empty string.
"""

from __future__ import annotations

import json
import os
import re
from collections.abc import Mapping
from typing import Any, TextIO

import structlog
from jinja2 import Environment, StrictUndefined, TemplateError

from gke_deploy.domain.errors import TemplateRenderError
from gke_deploy.domain.models.deployment import DeploymentConfig


logger = structlog.get_logger(__name__)

# Name the template data mapping is bound to inside the Jinja context.
DATA_ROOT = "_data"

_TAG = re.compile(r"({{-?|{%-?)(.*?)(-?}}|-?%})", re.DOTALL)

# String literals are matched first so references inside them are left alone.
_NAME = r"[A-Za-z_](?:[\w-]*\w)?"
_DOT_REFERENCE = re.compile(
    r"""("(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*')"""
    rf"|(?<![\w)\]}}.])((?:\.{_NAME})+)"
)

_ENV_REFERENCE = re.compile(r"\$(?:\{([^}]*)\}|([A-Za-z_][A-Za-z0-9_]*))")


def build_template_data(
    config: DeploymentConfig,
    project: str,
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Merge the built-in template vars with the user vars.

    Built-ins can always be relied upon by templates: a user var reusing a
    built-in name is an error. Secrets (including the GCP key) are excluded.
    """
    data: dict[str, Any] = {
        "BUILD_NUMBER": config.build_number,
        "COMMIT": config.commit,
        "BRANCH": config.branch,
        "TAG": config.tag,
        "project": project,
        "zone": config.zone,
        "cluster-name": config.cluster_name,
        "namespace": config.namespace,
    }

    for key, value in config.vars.items():
        if key in data:
            raise TemplateRenderError(f"Error: var {key!r} shadows existing var")

        if config.expand_env_vars and isinstance(value, str):
            value = expand_env(value, environ)

        data[key] = value

    return data


def expand_env(value: str, environ: Mapping[str, str] | None = None) -> str:
    """Replace `$VAR` and `${VAR}` with environment values; unset vars become empty."""
    if environ is None:
        environ = os.environ

    def _lookup(match: re.Match[str]) -> str:
        return environ.get(match.group(1) or match.group(2), "")

    return _ENV_REFERENCE.sub(_lookup, value)


def render(template_text: str, template_data: Mapping[str, Any]) -> str:
    """Render the manifest template against the template data."""
    env = _environment()
    try:
        template = env.from_string(_translate_references(template_text))
    except TemplateError as exc:
        raise TemplateRenderError(f"Error parsing template: {exc}") from exc

    try:
        return template.render({DATA_ROOT: dict(template_data)})
    except (TemplateError, ArithmeticError, LookupError, TypeError, ValueError) as exc:
        raise TemplateRenderError(
            f"Error rendering deployment manifest from template: {exc}"
        ) from exc


def read_template(stream: TextIO) -> str:
    """Read the manifest template piped to the plugin."""
    if stream.isatty():
        raise TemplateRenderError(
            "found no stdin: the command is intended to work with pipes. "
            "Usage: cat kube.yaml | gke-deploy"
        )

    try:
        text = stream.read()
    except UnicodeDecodeError as exc:
        raise TemplateRenderError(
            f"Error reading template: stdin is not valid UTF-8: {exc}"
        ) from exc

    if not text:
        raise TemplateRenderError("Error reading template: stdin was empty")
    return text


def dump_data(title: str, data: Mapping[str, Any]) -> None:
    """Log the template data; safe because secrets never enter it."""
    logger.info(title, data=dict(data))


class _StrictEnvironment(Environment):
    """Environment whose mapping lookups never fall back to attributes."""

    def getitem(self, obj: Any, argument: Any) -> Any:
        if isinstance(obj, Mapping):
            try:
                return obj[argument]
            except (KeyError, TypeError):
                return self.undefined(obj=obj, name=argument)
        return super().getitem(obj, argument)


def _environment() -> Environment:
    return _StrictEnvironment(
        undefined=StrictUndefined,
        keep_trailing_newline=True,
        autoescape=False,  # noqa: S701 - renders YAML, not HTML
        finalize=_finalize,
    )


def _finalize(value: Any) -> Any:
    # Render JSON-ish values the way they were supplied in vars
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return value


def _translate_references(template_text: str) -> str:
    """Rewrite `.key.sub` references inside tags as data lookups."""

    def _rewrite_reference(match: re.Match[str]) -> str:
        if match.group(1):
            return match.group(1)
        keys = match.group(2).split(".")[1:]
        return DATA_ROOT + "".join(f"[{json.dumps(key)}]" for key in keys)

    def _rewrite_tag(match: re.Match[str]) -> str:
        opening, body, closing = match.groups()
        return opening + _DOT_REFERENCE.sub(_rewrite_reference, body) + closing

    return _TAG.sub(_rewrite_tag, template_text)
