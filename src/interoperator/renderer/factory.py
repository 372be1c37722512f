"""
Renderer selection and input assembly.

The template ``type`` picks the renderer variant through an explicit table
(case-insensitive). An unknown type is a hard error, never a fallback.
"""

from typing import Any

from ..constants import RENDERER_HELM, RENDERER_JINJA
from ..errors import RendererNotImplementedError
from ..models import Plan, Service, ServiceBinding, ServiceInstance, TemplateSpec
from .base import ChartInput, Renderer, RendererInput, TemplateInput
from .helm import HelmRenderer
from .jinja import InlineTemplateRenderer

RENDERER_TYPES: dict[str, str] = {
    RENDERER_HELM: RENDERER_HELM,
    RENDERER_JINJA: RENDERER_JINJA,
    "jinja": RENDERER_JINJA,
}


def _variant(renderer_type: str) -> str:
    variant = RENDERER_TYPES.get((renderer_type or "").lower())
    if variant is None:
        raise RendererNotImplementedError(renderer_type)
    return variant


def get_renderer(renderer_type: str, cluster_client=None) -> Renderer:
    """
    Create the renderer for a template type.

    Args:
        renderer_type: Template type as declared on the plan
        cluster_client: Target cluster client, used by the chart renderer

    Raises:
        RendererNotImplementedError: If the type is not known
        RenderError: If the chart renderer cannot reach the target cluster
    """
    if _variant(renderer_type) == RENDERER_HELM:
        return HelmRenderer(cluster_client)
    return InlineTemplateRenderer()


def _build_input(
    template: TemplateSpec, name: str, namespace: str, values: dict[str, Any]
) -> RendererInput:
    if _variant(template.type) == RENDERER_HELM:
        return ChartInput(
            name=name,
            namespace=namespace,
            values=values,
            action=template.action,
            chart_path=template.url or "",
        )
    return TemplateInput(
        name=name,
        namespace=namespace,
        values=values,
        action=template.action,
        content=template.content or "",
    )


def get_renderer_input(
    template: TemplateSpec,
    service: Service | None,
    plan: Plan | None,
    instance: ServiceInstance | None,
    binding: ServiceBinding | None,
    name: str,
    namespace: str,
) -> RendererInput:
    """
    Assemble renderer input from the request context.

    Only entities that are present end up in the values mapping; a sources or
    status template may legitimately run without a binding.

    Args:
        template: Plan template being rendered
        service: Catalog service
        plan: Catalog plan
        instance: Service instance request
        binding: Service binding request
        name: Release name (instance or binding name)
        namespace: Target namespace

    Returns:
        Input matching the template's renderer variant
    """
    values: dict[str, Any] = {}
    for key, entity in (
        ("service", service),
        ("plan", plan),
        ("instance", instance),
        ("binding", binding),
    ):
        if entity is not None:
            values[key] = entity.to_values()
    return _build_input(template, name, namespace, values)


def get_status_renderer_input(
    template: TemplateSpec,
    name: str,
    namespace: str,
    sources: dict[str, dict[str, Any]],
) -> RendererInput:
    """Assemble status-template input: logical source name -> fetched object."""
    values = {key: obj for key, obj in sources.items()}
    return _build_input(template, name, namespace, values)
