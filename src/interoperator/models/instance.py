"""
Pydantic models for SFServiceInstance resources.

The instance is the tenant-facing provisioning request. Its spec is
written once per generation by the broker; its status is filled from the
resource engine's output by the caller.
"""

import logging
from typing import Any

from pydantic import BaseModel, Field

from .common import CustomResource, Source

logger = logging.getLogger(__name__)


class ServiceInstanceSpec(BaseModel):
    model_config = {"populate_by_name": True}

    service_id: str = Field("", alias="serviceId")
    plan_id: str = Field("", alias="planId")
    context: dict[str, Any] | None = None
    organization_guid: str = Field("", alias="organizationGuid")
    space_guid: str = Field("", alias="spaceGuid")
    parameters: dict[str, Any] | None = None
    previous_values: dict[str, Any] | None = Field(None, alias="previousValues")


class ServiceInstanceStatus(BaseModel):
    model_config = {"populate_by_name": True}

    dashboard_url: str | None = Field(None, alias="dashboardUrl")
    state: str = ""
    error: str | None = None
    description: str | None = None
    applied_spec: ServiceInstanceSpec | None = Field(None, alias="appliedSpec")
    resources: list[Source] = Field(default_factory=list)


class ServiceInstance(CustomResource):
    """SFServiceInstance custom resource."""

    spec: ServiceInstanceSpec = Field(default_factory=ServiceInstanceSpec)
    status: ServiceInstanceStatus = Field(default_factory=ServiceInstanceStatus)

    def get_state(self) -> str:
        if not self.status.state:
            logger.debug(f"failed to read state of SFServiceInstance {self.name}")
        return self.status.state

    def set_state(self, state: str) -> None:
        self.status.state = state
