"""
Inline template renderer using Jinja2.

Expands a single template string embedded in the plan against the values
mapping. Needs no cluster connection.
"""

import base64
import logging
from datetime import UTC, datetime
from typing import Any

import yaml
from jinja2 import Environment, StrictUndefined

from ..constants import DEFAULT_RELEASE_REVISION
from ..errors import RenderError
from ..settings import settings
from .base import Renderer, RenderedOutput, RendererInput, TemplateInput, filter_files

logger = logging.getLogger(__name__)


def _to_yaml(value: Any) -> str:
    return yaml.safe_dump(value, default_flow_style=False).rstrip("\n")


def _b64enc(value: Any) -> str:
    return base64.b64encode(str(value).encode()).decode()


def _b64dec(value: Any) -> str:
    return base64.b64decode(str(value)).decode()


def _create_jinja_env() -> Environment:
    env = Environment(
        autoescape=False,
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )
    env.filters["toyaml"] = _to_yaml
    env.filters["b64enc"] = _b64enc
    env.filters["b64dec"] = _b64dec
    return env


class InlineTemplateRenderer(Renderer):
    """Renders inline Jinja2 templates into one file named after the action."""

    def __init__(self, ignore_suffixes: list[str] | None = None):
        self.env = _create_jinja_env()
        self.ignore_suffixes = (
            ignore_suffixes
            if ignore_suffixes is not None
            else settings.ignore_file_suffixes
        )

    def render(self, renderer_input: RendererInput) -> RenderedOutput:
        if not isinstance(renderer_input, TemplateInput):
            raise RenderError("invalid input to inline template renderer")

        context = dict(renderer_input.values)
        context["release"] = {
            "name": renderer_input.name,
            "namespace": renderer_input.namespace,
            "revision": DEFAULT_RELEASE_REVISION,
            "isInstall": True,
            "time": datetime.now(UTC).isoformat(),
        }

        try:
            template = self.env.from_string(renderer_input.content)
            rendered = template.render(context)
        except Exception as e:
            # Filters and expressions may raise any exception type
            raise RenderError(
                f"failed rendering template for {renderer_input.name}", e
            ) from e

        file_name = f"{renderer_input.action or 'main'}.yaml"
        return RenderedOutput(
            renderer_input.name,
            filter_files({file_name: rendered}, self.ignore_suffixes),
        )
