"""
Renderer package - pluggable template engines.

Variants:
- helm: packaged chart bundles rendered with ``helm template``
- jinja2: inline templates embedded in the plan
"""

from .base import (
    ChartInput,
    Renderer,
    RenderedOutput,
    RendererInput,
    TemplateInput,
    filter_files,
)
from .factory import get_renderer, get_renderer_input, get_status_renderer_input
from .helm import HelmRenderer
from .jinja import InlineTemplateRenderer

__all__ = [
    "Renderer",
    "RendererInput",
    "ChartInput",
    "TemplateInput",
    "RenderedOutput",
    "filter_files",
    "HelmRenderer",
    "InlineTemplateRenderer",
    "get_renderer",
    "get_renderer_input",
    "get_status_renderer_input",
]
