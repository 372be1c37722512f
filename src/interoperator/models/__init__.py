"""
Models package - Pydantic models for type-safe resource handling.

Defines data models for:
- Catalog entries (SFService, SFPlan and their templates)
- Requests (SFServiceInstance, SFServiceBinding)
- Source pointers and the observed status document
"""

from .binding import ServiceBinding, ServiceBindingSpec, ServiceBindingStatus
from .catalog import Plan, PlanSpec, Service, ServiceSpec, TemplateSpec
from .common import CustomResource, ObjectMeta, Source
from .instance import ServiceInstance, ServiceInstanceSpec, ServiceInstanceStatus
from .properties import GenericStatus, Status, parse_sources, parse_status

__all__ = [
    "CustomResource",
    "ObjectMeta",
    "Source",
    "TemplateSpec",
    "PlanSpec",
    "Plan",
    "ServiceSpec",
    "Service",
    "ServiceInstanceSpec",
    "ServiceInstanceStatus",
    "ServiceInstance",
    "ServiceBindingSpec",
    "ServiceBindingStatus",
    "ServiceBinding",
    "GenericStatus",
    "Status",
    "parse_sources",
    "parse_status",
]
