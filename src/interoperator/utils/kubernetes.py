"""
Kubernetes utilities for the interoperator.

This module provides the cluster client the resource engine talks to.
Source and target clusters may be different connections; each is wrapped
in a ClusterClient that works on plain dicts through the dynamic client,
so rendered resources of any kind can be read and written.

Key functionality:
- Kubernetes client management and configuration
- get/create/update/delete/list of arbitrary resources
- Translation of API errors into the interoperator error hierarchy
- Server version discovery for chart rendering
"""

import logging
from typing import Any

from kubernetes import client, config
from kubernetes.client.rest import ApiException
from kubernetes.dynamic import DynamicClient
from kubernetes.dynamic.exceptions import ResourceNotFoundError as DiscoveryMiss
from urllib3.exceptions import HTTPError

from ..errors import ConfigurationError, KubernetesAPIError, ResourceNotFoundError

logger = logging.getLogger(__name__)


def get_kubernetes_client(context: str | None = None) -> client.ApiClient:
    """
    Get configured Kubernetes API client.

    Tries in-cluster configuration first and falls back to the local
    kubeconfig. A kubeconfig context can be named to reach a remote
    target cluster.

    Args:
        context: Optional kubeconfig context name

    Returns:
        Configured Kubernetes API client

    Raises:
        ConfigurationError: If no configuration can be loaded
    """
    if context is None:
        try:
            config.load_incluster_config()
            logger.debug("Loaded in-cluster Kubernetes configuration")
            return client.ApiClient()
        except config.ConfigException:
            pass

    try:
        configuration = client.Configuration()
        config.load_kube_config(context=context, client_configuration=configuration)
        logger.debug("Loaded kubeconfig from local environment")
    except config.ConfigException as e:
        logger.error(f"Failed to load Kubernetes configuration: {e}")
        raise ConfigurationError(
            f"Failed to load Kubernetes configuration: {e}",
            user_action="Run in-cluster or provide a valid kubeconfig",
        ) from e

    return client.ApiClient(configuration)


def _translate(
    e: ApiException, kind: str, name: str, namespace: str | None
) -> Exception:
    if e.status == 404:
        return ResourceNotFoundError(kind, name, namespace, cause=e)
    status = getattr(e, "status", None)
    return KubernetesAPIError(
        message=f"{kind} {namespace}/{name}: {e.reason}",
        reason=getattr(e, "reason", None),
        status=status,
        retryable=status is None or status >= 500 or status in (409, 429),
        cause=e,
    )


class ClusterClient:
    """
    Resource access on one cluster, on plain structured dicts.

    Wraps ``kubernetes.dynamic.DynamicClient``. A 404 is raised as
    ResourceNotFoundError, any other API failure as KubernetesAPIError.
    """

    def __init__(self, api_client: client.ApiClient | None = None):
        self.api_client = api_client
        self._dynamic: DynamicClient | None = None

    @property
    def dynamic(self) -> DynamicClient:
        """Get or create the dynamic client (runs API discovery)."""
        if self._dynamic is None:
            if self.api_client is None:
                self.api_client = get_kubernetes_client()
            self._dynamic = DynamicClient(self.api_client)
        return self._dynamic

    def _resource(self, api_version: str, kind: str, name: str, namespace: str | None):
        try:
            return self.dynamic.resources.get(api_version=api_version, kind=kind)
        except DiscoveryMiss as e:
            # The kind is not served, so no object of it can exist
            raise ResourceNotFoundError(kind, name, namespace, cause=e) from e

    @staticmethod
    def _scope(resource, namespace: str | None) -> str | None:
        return (namespace or None) if resource.namespaced else None

    @staticmethod
    def _identity(obj: dict[str, Any]) -> tuple[str, str, str, str | None]:
        metadata = obj.get("metadata") or {}
        return (
            obj.get("apiVersion", ""),
            obj.get("kind", ""),
            metadata.get("name", ""),
            metadata.get("namespace") or None,
        )

    def get(
        self, api_version: str, kind: str, name: str, namespace: str | None = None
    ) -> dict[str, Any]:
        """Fetch one live object."""
        resource = self._resource(api_version, kind, name, namespace)
        try:
            obj = resource.get(name=name, namespace=self._scope(resource, namespace))
        except ApiException as e:
            raise _translate(e, kind, name, namespace) from e
        return obj.to_dict()

    def create(self, obj: dict[str, Any]) -> dict[str, Any]:
        """Create an object and return the server's view of it."""
        api_version, kind, name, namespace = self._identity(obj)
        resource = self._resource(api_version, kind, name, namespace)
        try:
            created = resource.create(
                body=obj, namespace=self._scope(resource, namespace)
            )
        except ApiException as e:
            raise _translate(e, kind, name, namespace) from e
        return created.to_dict()

    def update(self, obj: dict[str, Any]) -> dict[str, Any]:
        """Replace an object with the given body."""
        api_version, kind, name, namespace = self._identity(obj)
        resource = self._resource(api_version, kind, name, namespace)
        try:
            updated = resource.replace(
                body=obj, name=name, namespace=self._scope(resource, namespace)
            )
        except ApiException as e:
            raise _translate(e, kind, name, namespace) from e
        return updated.to_dict()

    def delete(self, obj: dict[str, Any]) -> None:
        """Delete an object identified by its apiVersion/kind/name/namespace."""
        api_version, kind, name, namespace = self._identity(obj)
        resource = self._resource(api_version, kind, name, namespace)
        try:
            resource.delete(name=name, namespace=self._scope(resource, namespace))
        except ApiException as e:
            raise _translate(e, kind, name, namespace) from e

    def list(
        self,
        api_version: str,
        kind: str,
        namespace: str | None = None,
        label_selector: dict[str, str] | None = None,
    ) -> list[dict[str, Any]]:
        """List objects of a kind, optionally filtered by labels."""
        resource = self._resource(api_version, kind, "", namespace)
        selector = ",".join(f"{k}={v}" for k, v in (label_selector or {}).items())
        try:
            result = resource.get(
                namespace=self._scope(resource, namespace),
                label_selector=selector or None,
            )
        except ApiException as e:
            raise _translate(e, kind, "", namespace) from e
        return [item.to_dict() for item in result.items]

    def server_version(self) -> str:
        """Return the API server's git version, e.g. ``v1.29.2``."""
        if self.api_client is None:
            self.api_client = get_kubernetes_client()
        try:
            info = client.VersionApi(self.api_client).get_code()
        except ApiException as e:
            raise _translate(e, "Version", "", None) from e
        except HTTPError as e:
            raise KubernetesAPIError(
                message=f"cannot reach API server: {e}", cause=e
            ) from e
        return info.git_version
