"""
Resource composition and reconciliation engine.

This module defines the ResourceManager that turns a service instance or
binding request into concrete resources on a target cluster:

- compute_expected_resources: render the plan template for an action
- set_owner_reference: stamp ownership annotations on rendered resources
- reconcile_resources: create/update expected resources, delete stale ones
- delete_sub_resources: tear down every owned resource
- compute_status: render the observed status from the live resources

The manager holds no state between calls. Every call re-reads the live
cluster, so a failed call is retried by simply invoking it again.
"""

import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from pydantic import ValidationError

from ..catalog import find_service_info
from ..constants import (
    BIND_ACTION,
    BINDING_KIND,
    DELETE_STATE,
    INSTANCE_KIND,
    OSB_API_VERSION,
    SOURCES_ACTION,
    SOURCES_FILE_NAME,
    STATUS_ACTION,
    STATUS_FILE_NAME,
)
from ..errors import (
    BindingNotFoundError,
    InstanceNotFoundError,
    PlanNotFoundError,
    RenderError,
    ResourceNotFoundError,
    ResourceTypeError,
    ServiceNotFoundError,
)
from ..models import (
    CustomResource,
    Plan,
    Service,
    ServiceBinding,
    ServiceInstance,
    Source,
    Status,
    TemplateSpec,
    parse_sources,
    parse_status,
)
from ..observability.logging import OperatorLogger
from ..observability.metrics import metrics_collector
from ..renderer import (
    RenderedOutput,
    get_renderer,
    get_renderer_input,
    get_status_renderer_input,
)
from ..settings import settings
from ..utils.dynamic import deep_update, string_to_resources
from ..utils.ownership import create_ownership_annotations, set_ownership_annotations


class ResourceManager:
    """
    Stateless engine computing and reconciling subordinate resources.

    Concurrent calls for different requests are safe. Calls for the same
    request must be serialized by the caller's work queue.
    """

    def __init__(
        self,
        logger: OperatorLogger | None = None,
        control_namespace: str | None = None,
        graceful_delete_api_versions: list[str] | None = None,
    ):
        """
        Initialize the resource manager.

        Args:
            logger: Structured logger, one named after the class if omitted
            control_namespace: Namespace holding SFService/SFPlan objects
            graceful_delete_api_versions: apiVersions torn down via status.state
        """
        self.logger = logger or OperatorLogger(self.__class__.__name__)
        self.control_namespace = control_namespace or settings.operator_namespace
        self.graceful_delete_api_versions = (
            graceful_delete_api_versions
            if graceful_delete_api_versions is not None
            else settings.graceful_delete_versions
        )

    @contextmanager
    def _operation(self, operation: str, **fields: Any) -> Iterator[None]:
        self.logger.log_operation_start(operation, **fields)
        start_time = time.time()
        with metrics_collector.track_operation(operation):
            try:
                yield
            except Exception as e:
                self.logger.log_operation_error(
                    operation, e, time.time() - start_time, **fields
                )
                raise
        self.logger.log_operation_success(
            operation, time.time() - start_time, **fields
        )

    # Context resolution

    def _get_request(self, client, kind: str, model, name: str, namespace: str):
        obj = client.get(OSB_API_VERSION, kind, name, namespace)
        try:
            return model.model_validate(obj)
        except ValidationError as e:
            raise ResourceTypeError(f"invalid {kind} object {name}: {e}") from e

    def _fetch_resources(
        self,
        client,
        instance_id: str,
        binding_id: str,
        service_id: str,
        plan_id: str,
        namespace: str,
    ) -> tuple[ServiceInstance | None, ServiceBinding | None, Service, Plan]:
        instance = None
        binding = None
        ids = {"instance_id": instance_id, "binding_id": binding_id}

        if instance_id:
            try:
                instance = self._get_request(
                    client, INSTANCE_KIND, ServiceInstance, instance_id, namespace
                )
            except ResourceNotFoundError as e:
                raise InstanceNotFoundError(instance_id, e) from e

        if not service_id:
            raise ServiceNotFoundError(service_id)
        if not plan_id:
            raise PlanNotFoundError(plan_id)
        service, plan = find_service_info(
            client, service_id, plan_id, self.control_namespace
        )

        if binding_id:
            try:
                binding = self._get_request(
                    client, BINDING_KIND, ServiceBinding, binding_id, namespace
                )
            except ResourceNotFoundError as e:
                raise BindingNotFoundError(binding_id, e) from e

        self.logger.debug("Resolved request context", namespace=namespace, **ids)
        return instance, binding, service, plan

    @staticmethod
    def _target_name(
        action: str,
        instance: ServiceInstance | None,
        binding: ServiceBinding | None,
        instance_id: str,
        binding_id: str,
    ) -> str:
        if action == BIND_ACTION:
            if binding is None:
                raise BindingNotFoundError(binding_id)
            return binding.name
        if instance is None:
            raise InstanceNotFoundError(instance_id)
        return instance.name

    def _render(
        self,
        template: TemplateSpec,
        renderer_input,
        target_client,
        log_fields: dict[str, Any],
    ) -> RenderedOutput:
        renderer = get_renderer(template.type, target_client)
        try:
            return renderer.render(renderer_input)
        except RenderError as e:
            self.logger.error(
                f"failed rendering {template.action} template: {e}",
                error_type=type(e.cause or e).__name__,
                **log_fields,
            )
            raise

    # Expected resources

    def compute_expected_resources(
        self,
        client,
        instance_id: str,
        binding_id: str,
        service_id: str,
        plan_id: str,
        action: str,
        namespace: str,
        target_client=None,
    ) -> list[dict[str, Any]]:
        """
        Render the plan template for an action into structured resources.

        Args:
            client: Cluster client holding the requests and the catalog
            instance_id: SFServiceInstance name (may be empty)
            binding_id: SFServiceBinding name (may be empty)
            service_id: Catalog service id
            plan_id: Catalog plan id
            action: Template action (provision, bind, ...)
            namespace: Namespace of the request; stamped on every resource
            target_client: Target cluster client (defaults to ``client``)

        Returns:
            Structured resources in rendered file/document order

        Raises:
            NotFoundError: If the request, catalog entry or template is absent
            RenderError: If rendering fails
            ResourceTypeError: If rendered output is not a list of mappings
        """
        fields = {
            "instance_id": instance_id,
            "binding_id": binding_id,
            "service_id": service_id,
            "plan_id": plan_id,
            "action": action,
        }
        with self._operation("compute_expected_resources", **fields):
            instance, binding, service, plan = self._fetch_resources(
                client, instance_id, binding_id, service_id, plan_id, namespace
            )
            name = self._target_name(action, instance, binding, instance_id, binding_id)

            template = plan.get_template(action)
            renderer_input = get_renderer_input(
                template, service, plan, instance, binding, name, namespace
            )
            output = self._render(
                template, renderer_input, target_client or client, fields
            )

            resources: list[dict[str, Any]] = []
            for file_name in output.list_files():
                try:
                    documents = string_to_resources(output.file_content(file_name))
                except ResourceTypeError as e:
                    self.logger.error(
                        f"failed parsing rendered file: {e}", file=file_name, **fields
                    )
                    raise
                for obj in documents:
                    metadata = obj.get("metadata")
                    if metadata is None:
                        metadata = obj["metadata"] = {}
                    elif not isinstance(metadata, dict):
                        raise ResourceTypeError(
                            f"metadata of rendered resource in {file_name} is not a map"
                        )
                    metadata["namespace"] = namespace
                    resources.append(obj)

            self.logger.debug(
                f"Computed {len(resources)} expected resources", **fields
            )
            return resources

    # Ownership

    def set_owner_reference(
        self,
        owner: CustomResource | dict[str, Any],
        owner_kind: str,
        owner_api_version: str,
        resources: list[dict[str, Any]],
    ) -> list[dict[str, Any]]:
        """
        Stamp the owner's name, namespace, kind and group-version on resources.

        Any prior ownership values are overwritten; other annotations stay.

        Returns:
            The same resources, mutated in place
        """
        if isinstance(owner, CustomResource):
            owner_name, owner_namespace = owner.name, owner.namespace
        else:
            metadata = owner.get("metadata") or {}
            owner_name = metadata.get("name", "")
            owner_namespace = metadata.get("namespace", "")

        annotations = create_ownership_annotations(
            owner_name, owner_namespace, owner_kind, owner_api_version
        )
        for obj in resources:
            set_ownership_annotations(obj, annotations)
        return resources

    # Reconciliation

    def reconcile_resources(
        self,
        source_client,
        target_client,
        expected_resources: list[dict[str, Any]],
        last_resources: list[Source],
    ) -> list[Source]:
        """
        Bring the target cluster in line with the expected resources.

        Missing resources are created, drifted ones updated through a
        structural merge that keeps fields the templates do not set, and
        resources from ``last_resources`` that are no longer expected are
        deleted. A failed delete keeps the source in the result so it is
        retried next time.

        Args:
            source_client: Cluster client holding the requests (unused, kept for symmetry)
            target_client: Cluster client receiving the resources
            expected_resources: Rendered, owner-stamped resources
            last_resources: Sources owned after the previous reconcile

        Returns:
            Sources now owned by the request

        Raises:
            OperatorError: On any get/create/update failure other than not found
        """
        with self._operation("reconcile_resources"):
            found: list[Source] = []
            for expected in expected_resources:
                key = Source.from_object(expected)
                fields = {
                    "kind": key.kind,
                    "api_version": key.api_version,
                    "resource_name": key.name,
                    "namespace": key.namespace,
                }

                try:
                    live = target_client.get(
                        key.api_version, key.kind, key.name, key.namespace
                    )
                except ResourceNotFoundError:
                    self.logger.info("reconcile - creating resource", **fields)
                    try:
                        target_client.create(expected)
                    except Exception as e:
                        metrics_collector.record_resource_operation(
                            key.kind, "create", success=False
                        )
                        self.logger.error(
                            f"reconcile - failed to create resource: {e}", **fields
                        )
                        raise
                    metrics_collector.record_resource_operation(key.kind, "create")
                    found.append(key)
                    continue
                except Exception as e:
                    self.logger.error(
                        f"reconcile - failed fetching resource: {e}", **fields
                    )
                    raise

                merged, changed = deep_update(live, expected)
                if changed:
                    self.logger.info("reconcile - updating resource", **fields)
                    try:
                        target_client.update(merged)
                    except Exception as e:
                        metrics_collector.record_resource_operation(
                            key.kind, "update", success=False
                        )
                        self.logger.error(
                            f"reconcile - failed to update resource: {e}", **fields
                        )
                        raise
                    metrics_collector.record_resource_operation(key.kind, "update")
                else:
                    self.logger.debug(
                        "reconcile - resource already up to date", **fields
                    )
                    metrics_collector.record_resource_operation(key.kind, "unchanged")
                found.append(key)

            expected_keys = set(found)
            for last in last_resources:
                if last in expected_keys:
                    continue
                try:
                    self._delete_sub_resource(target_client, last)
                except ResourceNotFoundError:
                    self.logger.info(
                        "reconcile - outdated resource already gone", source=str(last)
                    )
                    continue
                except Exception as e:
                    # Not fatal: keep tracking it, the delete is retried next time
                    self.logger.error(
                        f"reconcile - failed to delete outdated resource: {e}",
                        source=str(last),
                    )
                    found.append(last)
                    continue
                self.logger.info(
                    "reconcile - delete triggered for outdated resource",
                    source=str(last),
                )

            return found

    # Deletion

    def _delete_sub_resource(self, client, source: Source) -> None:
        if source.api_version in self.graceful_delete_api_versions:
            obj = client.get(
                source.api_version, source.kind, source.name, source.namespace
            )
            status = obj.get("status")
            if status is None:
                status = {}
            elif not isinstance(status, dict):
                raise ResourceTypeError(f"status field not map for resource {source}")
            status["state"] = DELETE_STATE
            obj["status"] = status
            try:
                client.update(obj)
            except Exception:
                metrics_collector.record_resource_operation(
                    source.kind, "graceful_delete", success=False
                )
                raise
            metrics_collector.record_resource_operation(source.kind, "graceful_delete")
            return

        try:
            client.delete(source.to_object())
        except ResourceNotFoundError:
            raise
        except Exception:
            metrics_collector.record_resource_operation(
                source.kind, "delete", success=False
            )
            raise
        metrics_collector.record_resource_operation(source.kind, "delete")

    def _is_gone(self, client, source: Source) -> bool:
        try:
            client.get(source.api_version, source.kind, source.name, source.namespace)
        except ResourceNotFoundError:
            return True
        return False

    def delete_sub_resources(
        self, client, sub_resources: list[Source]
    ) -> tuple[list[Source], Exception | None]:
        """
        Delete every owned resource, tolerating partial failure.

        Safe to invoke repeatedly for the same sources. A source is dropped
        once the object is confirmed gone; one whose deletion failed, or is
        still in progress, stays in the remaining list.

        Args:
            client: Target cluster client
            sub_resources: Sources owned by the request

        Returns:
            Tuple of (remaining sources, last error or None)
        """
        remaining: list[Source] = []
        last_error: Exception | None = None

        with self._operation("delete_sub_resources"):
            for source in sub_resources:
                try:
                    self._delete_sub_resource(client, source)
                    gone = self._is_gone(client, source)
                except ResourceNotFoundError:
                    self.logger.info(
                        "delete completed for subresource", source=str(source)
                    )
                    continue
                except Exception as e:
                    self.logger.error(
                        f"failed to delete subresource: {e}",
                        source=str(source),
                        error_type=type(e).__name__,
                    )
                    remaining.append(source)
                    last_error = e
                    continue

                if gone:
                    self.logger.info(
                        "delete completed for subresource", source=str(source)
                    )
                else:
                    self.logger.info(
                        "delete triggered for subresource", source=str(source)
                    )
                    remaining.append(source)

        return remaining, last_error

    # Status

    def compute_status(
        self,
        source_client,
        target_client,
        instance_id: str,
        binding_id: str,
        service_id: str,
        plan_id: str,
        action: str,
        namespace: str,
    ) -> Status:
        """
        Render the observed status of a request.

        The plan's sources template names the live resources to look at;
        each is fetched from the target cluster (missing ones are skipped) and
        handed to the plan's status template.

        Raises:
            NotFoundError: If the request, catalog entry or a template is absent
            RenderError: If either template fails to render or renders nothing
            ResourceTypeError: If the sources or status document is malformed
        """
        fields = {
            "instance_id": instance_id,
            "binding_id": binding_id,
            "service_id": service_id,
            "plan_id": plan_id,
            "action": action,
        }
        with self._operation("compute_status", **fields):
            instance, binding, service, plan = self._fetch_resources(
                source_client, instance_id, binding_id, service_id, plan_id, namespace
            )
            name = self._target_name(action, instance, binding, instance_id, binding_id)

            template = plan.get_template(SOURCES_ACTION)
            renderer_input = get_renderer_input(
                template, service, plan, instance, binding, name, namespace
            )
            output = self._render(template, renderer_input, target_client, fields)
            sources = parse_sources(
                self._pick_file(output, SOURCES_FILE_NAME, "sources", fields)
            )

            source_objects: dict[str, dict[str, Any]] = {}
            for key, source in sources.items():
                if not source.name:
                    continue
                try:
                    source_objects[key] = target_client.get(
                        source.api_version,
                        source.kind,
                        source.name,
                        source.namespace or namespace,
                    )
                except Exception as e:
                    # The resource might not exist yet
                    self.logger.warning(
                        f"failed to fetch resource listed in sources: {e}",
                        source=str(source),
                        **fields,
                    )

            template = plan.get_template(STATUS_ACTION)
            renderer_input = get_status_renderer_input(
                template, name, namespace, source_objects
            )
            output = self._render(template, renderer_input, target_client, fields)
            return parse_status(
                self._pick_file(output, STATUS_FILE_NAME, "status", fields)
            )

    def _pick_file(
        self,
        output: RenderedOutput,
        preferred: str,
        what: str,
        fields: dict[str, Any],
    ) -> str:
        file_name = output.find_file(preferred)
        if file_name is None:
            self.logger.error(f"{what} template did not generate any file", **fields)
            raise RenderError(f"{what} template did not generate any file")
        return output.file_content(file_name)

