"""
Pydantic models for the broker catalog: SFService and SFPlan.

A plan carries the templates used to provision, bind and observe
subordinate resources, keyed by action.
"""

from typing import Any

from pydantic import BaseModel, Field

from ..errors import TemplateNotFoundError
from .common import CustomResource


class TemplateSpec(BaseModel):
    """Template attached to a plan for one action."""

    model_config = {"populate_by_name": True}

    action: str = Field(..., description="provision, bind, sources, status or properties")
    type: str = Field(..., description="Renderer type, e.g. helm or jinja2")
    url: str | None = Field(None, description="Location of a chart bundle")
    content: str | None = Field(None, description="Inline template content")


class Schema(BaseModel):
    parameters: dict[str, Any] | None = None


class ServiceInstanceSchema(BaseModel):
    create: Schema | None = None
    update: Schema | None = None


class ServiceBindingSchema(BaseModel):
    create: Schema | None = None


class ServiceSchemas(BaseModel):
    instance: ServiceInstanceSchema | None = None
    binding: ServiceBindingSchema | None = None


class PlanSpec(BaseModel):
    """Specification of an SFPlan."""

    model_config = {"populate_by_name": True}

    name: str = ""
    id: str = ""
    description: str = ""
    metadata: dict[str, Any] | None = None
    free: bool = False
    bindable: bool = False
    plan_updatable: bool | None = Field(None, alias="planUpdatable")
    schemas: ServiceSchemas | None = None
    templates: list[TemplateSpec] = Field(default_factory=list)
    service_id: str = Field("", alias="serviceId")
    context: dict[str, Any] | None = None
    manager: dict[str, Any] | None = None


class Plan(CustomResource):
    """SFPlan custom resource."""

    spec: PlanSpec = Field(default_factory=PlanSpec)

    def get_template(self, action: str) -> TemplateSpec:
        """
        Return the template declared for an action.

        Raises:
            TemplateNotFoundError: If the plan has no template for the action
        """
        for template in self.spec.templates:
            if template.action == action:
                return template
        raise TemplateNotFoundError(action, self.spec.id)


class ServiceSpec(BaseModel):
    """Specification of an SFService."""

    model_config = {"populate_by_name": True}

    name: str = ""
    id: str = ""
    description: str = ""
    tags: list[str] = Field(default_factory=list)
    requires: list[str] = Field(default_factory=list)
    bindable: bool = False
    instance_retrievable: bool | None = Field(None, alias="instanceRetrievable")
    binding_retrievable: bool | None = Field(None, alias="bindingRetrievable")
    metadata: dict[str, Any] | None = None
    dashboard_client: dict[str, Any] | None = Field(None, alias="dashboardClient")
    plan_updatable: bool | None = Field(None, alias="planUpdatable")
    context: dict[str, Any] | None = None


class Service(CustomResource):
    """SFService custom resource."""

    spec: ServiceSpec = Field(default_factory=ServiceSpec)
