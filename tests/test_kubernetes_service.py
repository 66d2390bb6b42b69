"""KubernetesStore tests: API dispatch and ApiException translation, no cluster needed."""

from unittest.mock import MagicMock

import pytest
from kubernetes import client, config
from kubernetes.client import ApiException

from curation_operator.config import Settings
from curation_operator.errors import AlreadyExistsError, ConflictError, NotFoundError, StoreError
from curation_operator.services import kubernetes_service
from curation_operator.services.kubernetes_service import KubernetesStore, _ensure_k8s
from curation_operator.store import ResourceRef

NS = "openshift-logging"
CRON = {"apiVersion": "batch/v1", "kind": "CronJob",
        "metadata": {"name": "curator", "namespace": NS, "resourceVersion": "7"}, "spec": {}}
CLUSTER = {"apiVersion": "logging.openshift.io/v1alpha1", "kind": "ClusterLogging",
           "metadata": {"name": "instance", "namespace": NS, "resourceVersion": "3"}}


@pytest.fixture
def k8s():
    store = KubernetesStore(api_client=client.ApiClient())
    store.core = MagicMock()
    store.batch = MagicMock()
    store.custom = MagicMock()
    return store


# --- Dispatch -----------------------------------------------------------------

def test_create_cron_job_uses_batch_api(k8s):
    k8s.batch.create_namespaced_cron_job.return_value = dict(CRON)
    assert k8s.create(CRON)["kind"] == "CronJob"
    k8s.batch.create_namespaced_cron_job.assert_called_once_with(NS, CRON)


def test_get_typed_object_serialized_to_dict(k8s):
    k8s.core.read_namespaced_config_map.return_value = client.V1ConfigMap(
        metadata=client.V1ObjectMeta(name="curator", namespace=NS), data={"config.yaml": ""},
    )
    result = k8s.get(ResourceRef("ConfigMap", NS, "curator"))
    assert result["metadata"]["name"] == "curator"
    assert result["data"] == {"config.yaml": ""}
    assert result["kind"] == "ConfigMap"
    k8s.core.read_namespaced_config_map.assert_called_once_with("curator", NS)


def test_status_update_uses_custom_status_subresource(k8s):
    k8s.custom.replace_namespaced_custom_object_status.return_value = dict(CLUSTER)
    k8s.update(CLUSTER, subresource="status")
    k8s.custom.replace_namespaced_custom_object_status.assert_called_once_with(
        "logging.openshift.io", "v1alpha1", NS, "clusterloggings", "instance", CLUSTER,
    )
    k8s.custom.replace_namespaced_custom_object.assert_not_called()


def test_delete_secret_uses_core_api(k8s):
    k8s.delete(ResourceRef("Secret", NS, "curator"))
    k8s.core.delete_namespaced_secret.assert_called_once_with("curator", NS)


def test_unsupported_kind_rejected(k8s):
    with pytest.raises(StoreError):
        k8s.get(ResourceRef("Deployment", NS, "curator"))


# --- Error translation --------------------------------------------------------

def test_create_409_is_already_exists(k8s):
    k8s.batch.create_namespaced_cron_job.side_effect = ApiException(status=409, reason="AlreadyExists")
    with pytest.raises(AlreadyExistsError):
        k8s.create(CRON)


def test_update_409_is_conflict(k8s):
    k8s.batch.replace_namespaced_cron_job.side_effect = ApiException(status=409, reason="Conflict")
    with pytest.raises(ConflictError) as exc:
        k8s.update(CRON)
    assert exc.value.status == 409
    assert exc.value.name == "curator"


def test_get_404_is_not_found(k8s):
    k8s.batch.read_namespaced_cron_job.side_effect = ApiException(status=404, reason="NotFound")
    with pytest.raises(NotFoundError):
        k8s.get(ResourceRef("CronJob", NS, "curator"))


def test_delete_404_is_not_found(k8s):
    k8s.core.delete_namespaced_service_account.side_effect = ApiException(status=404, reason="NotFound")
    with pytest.raises(NotFoundError):
        k8s.delete(ResourceRef("ServiceAccount", NS, "curator"))


def test_other_status_is_plain_store_error(k8s):
    k8s.core.create_namespaced_secret.side_effect = ApiException(status=403, reason="Forbidden")
    secret = {"kind": "Secret", "metadata": {"name": "curator", "namespace": NS}}
    with pytest.raises(StoreError) as exc:
        k8s.create(secret)
    assert type(exc.value) is StoreError
    assert exc.value.status == 403


# --- Config loading -----------------------------------------------------------

@pytest.fixture
def loaders(monkeypatch):
    calls = []
    monkeypatch.setattr(kubernetes_service, "_k8s_loaded", False)
    monkeypatch.setattr(config, "load_incluster_config", lambda: calls.append(("incluster", None)))
    monkeypatch.setattr(config, "load_kube_config", lambda config_file=None: calls.append(("kubeconfig", config_file)))
    return calls


def test_in_cluster_flag_uses_service_account(loaders):
    _ensure_k8s(Settings(IN_CLUSTER=True))
    assert loaders == [("incluster", None)]


def test_kubeconfig_used_outside_cluster(loaders):
    _ensure_k8s(Settings(IN_CLUSTER=False, KUBECONFIG="/etc/kube/config"))
    assert loaders == [("kubeconfig", "/etc/kube/config")]


def test_config_loaded_once(loaders):
    conf = Settings(IN_CLUSTER=False, KUBECONFIG="")
    _ensure_k8s(conf)
    _ensure_k8s(conf)
    assert loaders == [("kubeconfig", None)]
