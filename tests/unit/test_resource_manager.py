"""
Unit tests for the ResourceManager.

Runs the engine against in-memory clusters seeded with a sample catalog:
a plan whose provision template renders two ConfigMaps (svc-a, svc-b),
whose bind template renders a Secret, and whose sources/status templates
report on svc-a.
"""

import copy
from unittest.mock import MagicMock, patch

import pytest

from interoperator.constants import (
    BINDING_KIND,
    INSTANCE_KIND,
    OSB_API_VERSION,
    OWNER_API_VERSION_KEY,
    OWNER_KIND_KEY,
    OWNER_NAME_KEY,
    OWNER_NAMESPACE_KEY,
)
from interoperator.errors import (
    BindingNotFoundError,
    InstanceNotFoundError,
    KubernetesAPIError,
    PlanNotFoundError,
    RenderError,
    RendererNotImplementedError,
    ResourceNotFoundError,
    ResourceTypeError,
    ServiceNotFoundError,
    TemplateNotFoundError,
)
from interoperator.models import ServiceInstance, Source
from interoperator.renderer import RenderedOutput
from interoperator.utils.ownership import get_owner_reference
from tests.fixtures.catalog_resources import (
    BINDING,
    BINDING_ID,
    INSTANCE,
    INSTANCE_ID,
    PLAN,
    PLAN_ID,
    REQUEST_NAMESPACE,
    SERVICE_ID,
    catalog_objects,
)
from tests.fixtures.cluster import FakeClusterClient

GRACEFUL_API_VERSION = "deployment.servicefabrik.io/v1alpha1"


def _source(name, kind="ConfigMap", api_version="v1", namespace=REQUEST_NAMESPACE):
    return Source(api_version=api_version, kind=kind, name=name, namespace=namespace)


def _config_map(name, data=None, namespace=REQUEST_NAMESPACE):
    return {
        "apiVersion": "v1",
        "kind": "ConfigMap",
        "metadata": {"name": name, "namespace": namespace},
        "data": data or {},
    }


def _expected(manager, cluster, action="provision", binding_id=""):
    return manager.compute_expected_resources(
        cluster, INSTANCE_ID, binding_id, SERVICE_ID, PLAN_ID, action, REQUEST_NAMESPACE
    )


def _provision(manager, cluster, target, last_resources=None):
    resources = _expected(manager, cluster)
    manager.set_owner_reference(INSTANCE, INSTANCE_KIND, OSB_API_VERSION, resources)
    return manager.reconcile_resources(cluster, target, resources, last_resources or [])


class TestComputeExpectedResources:
    def test_renders_provision_template(self, manager, cluster):
        resources = _expected(manager, cluster)

        assert [(r["kind"], r["metadata"]["name"]) for r in resources] == [
            ("ConfigMap", "svc-a"),
            ("ConfigMap", "svc-b"),
        ]
        assert resources[0]["data"] == {"plan": PLAN_ID, "instance": INSTANCE_ID}
        assert resources[1]["data"] == {"size": "10"}

    def test_stamps_request_namespace(self, manager):
        template = "apiVersion: v1\nkind: ConfigMap\nmetadata:\n  name: a\n  namespace: other\n"
        cluster = FakeClusterClient(
            catalog_objects(
                [{"action": "provision", "type": "jinja2", "content": template}]
            )
        )

        resources = _expected(manager, cluster)

        assert resources[0]["metadata"]["namespace"] == REQUEST_NAMESPACE

    def test_empty_metadata_gets_request_namespace(self, manager):
        template = "apiVersion: v1\nkind: ConfigMap\nmetadata:\ndata:\n  a: b\n"
        cluster = FakeClusterClient(
            catalog_objects(
                [{"action": "provision", "type": "jinja2", "content": template}]
            )
        )

        resources = _expected(manager, cluster)

        assert resources[0]["metadata"] == {"namespace": REQUEST_NAMESPACE}

    def test_non_mapping_metadata(self, manager):
        template = "apiVersion: v1\nkind: ConfigMap\nmetadata: [a]\n"
        cluster = FakeClusterClient(
            catalog_objects(
                [{"action": "provision", "type": "jinja2", "content": template}]
            )
        )

        with pytest.raises(ResourceTypeError, match="metadata"):
            _expected(manager, cluster)

    def test_bind_renders_with_binding_name(self, manager, cluster):
        resources = _expected(manager, cluster, action="bind", binding_id=BINDING_ID)

        assert len(resources) == 1
        secret = resources[0]
        assert secret["metadata"]["name"] == f"{BINDING_ID}-creds"
        assert secret["stringData"] == {"instance": INSTANCE_ID}

    def test_bind_without_binding(self, manager, cluster):
        with pytest.raises(BindingNotFoundError):
            _expected(manager, cluster, action="bind")

    def test_missing_binding(self, manager, cluster):
        with pytest.raises(BindingNotFoundError) as exc_info:
            _expected(manager, cluster, action="bind", binding_id="bind-unknown")

        assert exc_info.value.name == "bind-unknown"

    def test_missing_instance(self, manager, cluster):
        with pytest.raises(InstanceNotFoundError):
            manager.compute_expected_resources(
                cluster, "inst-unknown", "", SERVICE_ID, PLAN_ID, "provision", REQUEST_NAMESPACE
            )

    def test_empty_service_id(self, manager, cluster):
        with pytest.raises(ServiceNotFoundError):
            manager.compute_expected_resources(
                cluster, INSTANCE_ID, "", "", PLAN_ID, "provision", REQUEST_NAMESPACE
            )

    def test_unknown_plan(self, manager, cluster):
        with pytest.raises(PlanNotFoundError):
            manager.compute_expected_resources(
                cluster, INSTANCE_ID, "", SERVICE_ID, "plan-huge", "provision", REQUEST_NAMESPACE
            )

    def test_missing_template(self, manager, cluster):
        with pytest.raises(TemplateNotFoundError) as exc_info:
            _expected(manager, cluster, action="properties")

        assert exc_info.value.action == "properties"

    def test_unknown_renderer_type(self, manager):
        cluster = FakeClusterClient(
            catalog_objects([{"action": "provision", "type": "gotemplate", "content": ""}])
        )

        with pytest.raises(RendererNotImplementedError):
            _expected(manager, cluster)

    def test_render_failure(self, manager):
        cluster = FakeClusterClient(
            catalog_objects(
                [{"action": "provision", "type": "jinja2", "content": "{{ nope.x }}"}]
            )
        )

        with pytest.raises(RenderError):
            _expected(manager, cluster)

    def test_non_mapping_document(self, manager):
        cluster = FakeClusterClient(
            catalog_objects([{"action": "provision", "type": "jinja2", "content": "- a\n"}])
        )

        with pytest.raises(ResourceTypeError):
            _expected(manager, cluster)

    def test_chart_renderer_gets_target_client(self, manager, cluster):
        target = FakeClusterClient()
        output = RenderedOutput("chart", {"chart/templates/cm.yaml": "kind: ConfigMap\n"})

        with patch("interoperator.resources.manager.get_renderer") as mock_get_renderer:
            mock_get_renderer.return_value.render.return_value = output
            resources = manager.compute_expected_resources(
                cluster,
                INSTANCE_ID,
                "",
                SERVICE_ID,
                PLAN_ID,
                "provision",
                REQUEST_NAMESPACE,
                target_client=target,
            )

        mock_get_renderer.assert_called_once_with("jinja2", target)
        assert resources == [
            {"kind": "ConfigMap", "metadata": {"namespace": REQUEST_NAMESPACE}}
        ]


class TestSetOwnerReference:
    def test_stamps_all_resources(self, manager):
        owner = ServiceInstance.model_validate(INSTANCE)
        resources = [_config_map("svc-a"), _config_map("svc-b")]

        result = manager.set_owner_reference(
            owner, INSTANCE_KIND, OSB_API_VERSION, resources
        )

        assert result is resources
        for obj in resources:
            assert get_owner_reference(obj) == {
                "name": INSTANCE_ID,
                "namespace": REQUEST_NAMESPACE,
                "kind": INSTANCE_KIND,
                "apiVersion": OSB_API_VERSION,
            }

    def test_overwrites_previous_owner_only(self, manager):
        obj = _config_map("svc-a")
        obj["metadata"]["annotations"] = {
            OWNER_NAME_KEY: "someone-else",
            OWNER_KIND_KEY: "Other",
            "team": "data",
        }

        manager.set_owner_reference(BINDING, BINDING_KIND, OSB_API_VERSION, [obj])

        annotations = obj["metadata"]["annotations"]
        assert annotations[OWNER_NAME_KEY] == BINDING_ID
        assert annotations[OWNER_NAMESPACE_KEY] == REQUEST_NAMESPACE
        assert annotations[OWNER_KIND_KEY] == BINDING_KIND
        assert annotations[OWNER_API_VERSION_KEY] == OSB_API_VERSION
        assert annotations["team"] == "data"


class TestReconcileResources:
    def test_creates_missing_resources(self, manager, cluster, target):
        found = _provision(manager, cluster, target)

        assert found == [_source("svc-a"), _source("svc-b")]
        created = target.get("v1", "ConfigMap", "svc-a", REQUEST_NAMESPACE)
        assert created["data"]["instance"] == INSTANCE_ID
        assert get_owner_reference(created)["name"] == INSTANCE_ID

    def test_second_pass_is_a_no_op(self, manager, cluster, target):
        first = _provision(manager, cluster, target)
        target.calls.clear()

        second = _provision(manager, cluster, target, first)

        assert second == first
        assert target.calls_of("create") == []
        assert target.calls_of("update") == []
        assert target.calls_of("delete") == []

    def test_update_keeps_fields_not_in_template(self, manager, cluster, target):
        live = _config_map("svc-a", {"instance": "stale", "extra": "kept"})
        live["metadata"]["labels"] = {"added-by": "admission-webhook"}
        live["status"] = {"observed": True}
        target.add(live)

        _provision(manager, cluster, target)

        updated = target.get("v1", "ConfigMap", "svc-a", REQUEST_NAMESPACE)
        assert updated["data"] == {"instance": INSTANCE_ID, "extra": "kept", "plan": PLAN_ID}
        assert updated["metadata"]["labels"] == {"added-by": "admission-webhook"}
        assert updated["status"] == {"observed": True}
        assert len(target.calls_of("update")) == 1

    def test_deletes_resources_no_longer_expected(self, manager, cluster, target):
        target.add(_config_map("svc-c"))
        last = [_source("svc-a"), _source("svc-b"), _source("svc-c")]

        found = _provision(manager, cluster, target, last)

        assert found == [_source("svc-a"), _source("svc-b")]
        assert target.calls_of("delete") == [("v1", "ConfigMap", REQUEST_NAMESPACE, "svc-c")]
        with pytest.raises(ResourceNotFoundError):
            target.get("v1", "ConfigMap", "svc-c", REQUEST_NAMESPACE)

    def test_outdated_resource_already_gone(self, manager, cluster, target):
        found = _provision(manager, cluster, target, [_source("svc-c")])

        assert _source("svc-c") not in found

    def test_failed_delete_is_tracked_for_retry(self, manager, cluster, target):
        target.add(_config_map("svc-c"))
        target.fail_on("delete", "ConfigMap", "svc-c", REQUEST_NAMESPACE)

        found = _provision(manager, cluster, target, [_source("svc-c")])

        assert found == [_source("svc-a"), _source("svc-b"), _source("svc-c")]

    def test_outdated_graceful_resource_is_marked(self, manager, cluster, target):
        director = {
            "apiVersion": GRACEFUL_API_VERSION,
            "kind": "Director",
            "metadata": {"name": "pg", "namespace": REQUEST_NAMESPACE},
            "status": {"state": "succeeded"},
        }
        target.add(director)
        stale = _source("pg", kind="Director", api_version=GRACEFUL_API_VERSION)

        _provision(manager, cluster, target, [stale])

        marked = target.get(GRACEFUL_API_VERSION, "Director", "pg", REQUEST_NAMESPACE)
        assert marked["status"]["state"] == "delete"
        assert target.calls_of("delete") == []

    def test_create_failure_propagates(self, manager, cluster, target):
        target.fail_on("create", "ConfigMap", "svc-b", REQUEST_NAMESPACE)

        with pytest.raises(KubernetesAPIError):
            _provision(manager, cluster, target)

    def test_get_failure_propagates(self, manager, cluster, target):
        target.fail_on(
            "get",
            "ConfigMap",
            "svc-a",
            REQUEST_NAMESPACE,
            error=KubernetesAPIError("forbidden", reason="Forbidden", status=403),
        )

        with pytest.raises(KubernetesAPIError, match="forbidden"):
            _provision(manager, cluster, target)
        assert target.calls_of("create") == []


class TestDeleteSubResources:
    def test_deletes_everything(self, manager, cluster, target):
        owned = _provision(manager, cluster, target)

        remaining, error = manager.delete_sub_resources(target, owned)

        assert remaining == []
        assert error is None
        assert target.objects == {}

    def test_partial_failure(self, manager, target):
        for name in ("a", "b", "c"):
            target.add(_config_map(name))
        failure = KubernetesAPIError("boom", status=500)
        target.fail_on("delete", "ConfigMap", "b", REQUEST_NAMESPACE, error=failure)

        remaining, error = manager.delete_sub_resources(
            target, [_source("a"), _source("b"), _source("c")]
        )

        assert remaining == [_source("b")]
        assert error is failure
        assert list(target.objects) == [("v1", "ConfigMap", REQUEST_NAMESPACE, "b")]

    def test_missing_resources_count_as_deleted(self, manager, target):
        remaining, error = manager.delete_sub_resources(target, [_source("gone")])

        assert remaining == []
        assert error is None

    def test_is_idempotent(self, manager, target):
        target.add(_config_map("a"))
        sources = [_source("a")]

        manager.delete_sub_resources(target, sources)
        remaining, error = manager.delete_sub_resources(target, sources)

        assert remaining == []
        assert error is None

    def test_graceful_delete_updates_status(self, manager, target):
        target.add(
            {
                "apiVersion": GRACEFUL_API_VERSION,
                "kind": "Director",
                "metadata": {"name": "pg", "namespace": REQUEST_NAMESPACE},
                "spec": {"plan": "small"},
            }
        )
        source = _source("pg", kind="Director", api_version=GRACEFUL_API_VERSION)

        remaining, error = manager.delete_sub_resources(target, [source])

        assert error is None
        assert remaining == [source]
        assert target.calls_of("delete") == []
        obj = target.get(GRACEFUL_API_VERSION, "Director", "pg", REQUEST_NAMESPACE)
        assert obj["status"] == {"state": "delete"}
        assert obj["spec"] == {"plan": "small"}

    def test_graceful_delete_rejects_non_map_status(self, manager, target):
        target.add(
            {
                "apiVersion": GRACEFUL_API_VERSION,
                "kind": "Director",
                "metadata": {"name": "pg", "namespace": REQUEST_NAMESPACE},
                "status": "running",
            }
        )
        source = _source("pg", kind="Director", api_version=GRACEFUL_API_VERSION)

        remaining, error = manager.delete_sub_resources(target, [source])

        assert remaining == [source]
        assert isinstance(error, ResourceTypeError)
        assert target.calls_of("update") == []

    def test_graceful_api_versions_are_configurable(self, target):
        from interoperator.resources import ResourceManager

        manager = ResourceManager(graceful_delete_api_versions=[])
        target.add(
            {
                "apiVersion": GRACEFUL_API_VERSION,
                "kind": "Director",
                "metadata": {"name": "pg", "namespace": REQUEST_NAMESPACE},
            }
        )
        source = _source("pg", kind="Director", api_version=GRACEFUL_API_VERSION)

        remaining, _ = manager.delete_sub_resources(target, [source])

        assert remaining == []
        assert len(target.calls_of("delete")) == 1


class TestComputeStatus:
    def _status(self, manager, cluster, target):
        return manager.compute_status(
            cluster,
            target,
            INSTANCE_ID,
            "",
            SERVICE_ID,
            PLAN_ID,
            "provision",
            REQUEST_NAMESPACE,
        )

    def test_before_resources_exist(self, manager, cluster, target):
        status = self._status(manager, cluster, target)

        assert status.provision.state == "in progress"

    def test_after_provisioning(self, manager, cluster, target):
        _provision(manager, cluster, target)

        status = self._status(manager, cluster, target)

        assert status.provision.state == "succeeded"
        assert status.provision.response == INSTANCE_ID

    def test_missing_source_is_skipped(self, manager, cluster, target):
        _provision(manager, cluster, target)

        self._status(manager, cluster, target)

        assert ("v1", "ConfigMap", REQUEST_NAMESPACE, "does-not-exist") in target.calls_of(
            "get"
        )

    def test_source_namespace_overrides_request_namespace(self, manager, target):
        sources = "cfg:\n  apiVersion: v1\n  kind: ConfigMap\n  name: shared\n  namespace: infra\n"
        status = "provision:\n  state: {{ cfg.data.state }}\n"
        plan = copy.deepcopy(PLAN)
        cluster = FakeClusterClient(
            catalog_objects(
                [
                    *plan["spec"]["templates"][:2],
                    {"action": "sources", "type": "jinja2", "content": sources},
                    {"action": "status", "type": "jinja2", "content": status},
                ]
            )
        )
        target.add(_config_map("shared", {"state": "succeeded"}, namespace="infra"))

        result = self._status(manager, cluster, target)

        assert result.provision.state == "succeeded"

    def test_missing_sources_template(self, manager, target):
        cluster = FakeClusterClient(
            catalog_objects(
                [{"action": "status", "type": "jinja2", "content": "provision: {}\n"}]
            )
        )

        with pytest.raises(TemplateNotFoundError):
            self._status(manager, cluster, target)

    def test_empty_render_output(self, manager, cluster, target):
        renderer = MagicMock()
        renderer.render.return_value = RenderedOutput("empty", {})

        with patch(
            "interoperator.resources.manager.get_renderer", return_value=renderer
        ):
            with pytest.raises(RenderError, match="did not generate any file"):
                self._status(manager, cluster, target)

    def test_malformed_status_document(self, manager, target):
        plan = copy.deepcopy(PLAN)
        templates = plan["spec"]["templates"]
        templates[3] = {"action": "status", "type": "jinja2", "content": "- failed\n"}
        cluster = FakeClusterClient(catalog_objects(templates))

        with pytest.raises(ResourceTypeError):
            self._status(manager, cluster, target)


def test_end_to_end_lifecycle(manager, cluster, target):
    """Provision, drop svc-b from the plan, then deprovision."""
    owned = _provision(manager, cluster, target)
    assert sorted(s.name for s in owned) == ["svc-a", "svc-b"]

    plan = copy.deepcopy(PLAN)
    provision = plan["spec"]["templates"][0]
    provision["content"] = provision["content"].split("---")[0]
    cluster.add(plan)

    owned = _provision(manager, cluster, target, owned)
    assert owned == [_source("svc-a")]
    assert ("v1", "ConfigMap", REQUEST_NAMESPACE, "svc-b") not in target.objects

    remaining, error = manager.delete_sub_resources(target, owned)
    assert remaining == []
    assert error is None
    assert target.objects == {}
