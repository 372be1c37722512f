"""
Pydantic models for SFServiceBinding resources.
"""

import logging
from typing import Any

from pydantic import BaseModel, Field

from .common import CustomResource, Source

logger = logging.getLogger(__name__)


class BindingResponse(BaseModel):
    model_config = {"populate_by_name": True}

    secret_ref: str | None = Field(None, alias="secretRef")


class ServiceBindingSpec(BaseModel):
    model_config = {"populate_by_name": True}

    id: str = ""
    instance_id: str = Field("", alias="instanceId")
    plan_id: str = Field("", alias="planId")
    service_id: str = Field("", alias="serviceId")
    app_guid: str | None = Field(None, alias="appGuid")
    bind_resource: dict[str, Any] | None = Field(None, alias="bindResource")
    context: dict[str, Any] | None = None
    parameters: dict[str, Any] | None = None
    accepts_incomplete: bool | None = Field(None, alias="acceptsIncomplete")


class ServiceBindingStatus(BaseModel):
    model_config = {"populate_by_name": True}

    state: str = ""
    error: str | None = None
    response: BindingResponse = Field(default_factory=BindingResponse)
    applied_spec: ServiceBindingSpec | None = Field(None, alias="appliedSpec")
    resources: list[Source] = Field(default_factory=list)


class ServiceBinding(CustomResource):
    """SFServiceBinding custom resource."""

    spec: ServiceBindingSpec = Field(default_factory=ServiceBindingSpec)
    status: ServiceBindingStatus = Field(default_factory=ServiceBindingStatus)

    def get_state(self) -> str:
        if not self.status.state:
            logger.debug(f"failed to read state of SFServiceBinding {self.name}")
        return self.status.state

    def set_state(self, state: str) -> None:
        self.status.state = state
