"""
Catalog lookup for services and plans.

Services and plans live in the control namespace. The plan controller
labels every SFPlan with ``serviceId`` and ``planId``; services carry a
``serviceId`` label. Labels narrow the list, ``spec.id`` decides.
"""

import logging

from pydantic import ValidationError

from .constants import (
    OSB_API_VERSION,
    PLAN_ID_LABEL,
    PLAN_KIND,
    SERVICE_ID_LABEL,
    SERVICE_KIND,
)
from .errors import PlanNotFoundError, ResourceTypeError, ServiceNotFoundError
from .models import Plan, Service

logger = logging.getLogger(__name__)


def find_service(client, service_id: str, namespace: str) -> Service:
    """
    Find the SFService with the given id.

    Raises:
        ServiceNotFoundError: If no service in the namespace has that id
    """
    items = client.list(
        OSB_API_VERSION,
        SERVICE_KIND,
        namespace=namespace,
        label_selector={SERVICE_ID_LABEL: service_id},
    )
    for item in items:
        if (item.get("spec") or {}).get("id") == service_id:
            return _validate(Service, item)
    raise ServiceNotFoundError(service_id)


def find_plan(client, service_id: str, plan_id: str, namespace: str) -> Plan:
    """
    Find the SFPlan with the given id belonging to a service.

    Raises:
        PlanNotFoundError: If no plan in the namespace has that id
    """
    items = client.list(
        OSB_API_VERSION,
        PLAN_KIND,
        namespace=namespace,
        label_selector={SERVICE_ID_LABEL: service_id, PLAN_ID_LABEL: plan_id},
    )
    for item in items:
        if (item.get("spec") or {}).get("id") == plan_id:
            return _validate(Plan, item)
    raise PlanNotFoundError(plan_id)


def find_service_info(
    client, service_id: str, plan_id: str, namespace: str
) -> tuple[Service, Plan]:
    """
    Resolve the catalog entry for a request.

    Args:
        client: Cluster client holding the catalog
        service_id: Broker service id
        plan_id: Broker plan id
        namespace: Control namespace

    Returns:
        Tuple of (service, plan)
    """
    service = find_service(client, service_id, namespace)
    plan = find_plan(client, service_id, plan_id, namespace)
    logger.debug(f"Resolved catalog entry {service_id}/{plan_id} in {namespace}")
    return service, plan


def _validate(model, item):
    try:
        return model.model_validate(item)
    except ValidationError as e:
        raise ResourceTypeError(f"invalid {model.__name__} object: {e}") from e
