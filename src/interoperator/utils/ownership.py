"""
Ownership tracking utilities for subordinate resources.

Owner and owned resources may live in different clusters, so native
Kubernetes ownerReferences cannot be used. Ownership is stamped as four
annotations on every rendered resource instead; other tooling relies on
these to map a resource back to its owning request.
"""

from typing import Any

from ..constants import (
    OWNER_API_VERSION_KEY,
    OWNER_KIND_KEY,
    OWNER_NAME_KEY,
    OWNER_NAMESPACE_KEY,
)


def create_ownership_annotations(
    owner_name: str, owner_namespace: str, owner_kind: str, owner_api_version: str
) -> dict[str, str]:
    """
    Create ownership annotations for a subordinate resource.

    Args:
        owner_name: Name of the owning request
        owner_namespace: Namespace of the owning request
        owner_kind: Kind of the owning request
        owner_api_version: Group-version string of the owning request

    Returns:
        Dictionary of the four ownership annotations

    Example:
        >>> create_ownership_annotations(
        ...     "inst-1", "default", "SFServiceInstance", "osb.servicefabrik.io/v1alpha1"
        ... )[OWNER_KIND_KEY]
        'SFServiceInstance'
    """
    return {
        OWNER_NAME_KEY: owner_name,
        OWNER_NAMESPACE_KEY: owner_namespace,
        OWNER_KIND_KEY: owner_kind,
        OWNER_API_VERSION_KEY: owner_api_version,
    }


def set_ownership_annotations(
    obj: dict[str, Any], annotations: dict[str, str]
) -> dict[str, Any]:
    """
    Stamp ownership annotations on a structured resource in place.

    Existing values for the ownership keys are overwritten; all other
    annotations are preserved.

    Returns:
        The same object, for chaining
    """
    metadata = obj.setdefault("metadata", {})
    existing = metadata.get("annotations") or {}
    metadata["annotations"] = {**existing, **annotations}
    return obj


def get_owner_reference(obj: dict[str, Any]) -> dict[str, str] | None:
    """
    Read the ownership record back from a resource.

    Returns:
        Dict with name, namespace, kind and apiVersion, or None if any
        of the four annotations is missing
    """
    annotations = (obj.get("metadata") or {}).get("annotations") or {}
    keys = {
        "name": OWNER_NAME_KEY,
        "namespace": OWNER_NAMESPACE_KEY,
        "kind": OWNER_KIND_KEY,
        "apiVersion": OWNER_API_VERSION_KEY,
    }
    if any(key not in annotations for key in keys.values()):
        return None
    return {field: annotations[key] for field, key in keys.items()}


def map_owner_by_annotations(
    obj: dict[str, Any], owner_kind: str, owner_api_version: str
) -> tuple[str, str] | None:
    """
    Map a subordinate resource to the request key of its owner.

    Used by watch wiring to enqueue the owning request when a subordinate
    resource changes.

    Args:
        obj: Subordinate resource
        owner_kind: Kind the caller reconciles
        owner_api_version: Group-version the caller reconciles

    Returns:
        Tuple of (namespace, name) or None if the resource is not owned by
        an object of that kind
    """
    owner = get_owner_reference(obj)
    if owner is None:
        return None
    if owner["kind"] != owner_kind or owner["apiVersion"] != owner_api_version:
        return None
    return (owner["namespace"], owner["name"])
