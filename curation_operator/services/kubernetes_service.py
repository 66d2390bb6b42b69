"""
Kubernetes service layer — the resource store backed by the Kubernetes API.

Design principles:
  - Narrow surface: create / get / update / delete on manifest dicts
  - Optimistic concurrency: updates carry metadata.resourceVersion, the API
    server answers 409 when it is stale
  - Clean error handling: translates K8s API exceptions to store errors
      404             → NotFoundError
      409 on create   → AlreadyExistsError
      409 on update   → ConflictError
      anything else   → StoreError
"""

import logging
from typing import Optional

from kubernetes import client, config
from kubernetes.client import ApiException

from curation_operator.config import Settings, settings as default_settings
from curation_operator.errors import AlreadyExistsError, ConflictError, NotFoundError, StoreError
from curation_operator.store import ResourceRef, ref_of

logger = logging.getLogger("kubernetes_service")

_k8s_loaded = False


def _ensure_k8s(conf: Settings = default_settings):
    """Load Kubernetes config exactly once."""
    global _k8s_loaded
    if _k8s_loaded:
        return
    if conf.IN_CLUSTER:
        config.load_incluster_config()
    else:
        config.load_kube_config(config_file=conf.KUBECONFIG or None)
    _k8s_loaded = True


# kind -> (api attribute, method suffix)
_TYPED_KINDS = {
    "ServiceAccount": ("core", "namespaced_service_account"),
    "ConfigMap": ("core", "namespaced_config_map"),
    "Secret": ("core", "namespaced_secret"),
    "CronJob": ("batch", "namespaced_cron_job"),
}


def _translate(e: ApiException, ref: ResourceRef, on_conflict: type) -> StoreError:
    message = f"{ref}: {e.status} {e.reason}"
    if e.status == 404:
        return NotFoundError(message, ref.kind, ref.name, e.status)
    if e.status == 409:
        return on_conflict(message, ref.kind, ref.name, e.status)
    return StoreError(message, ref.kind, ref.name, e.status)


class KubernetesStore:
    """ResourceStore over CoreV1Api, BatchV1Api and CustomObjectsApi."""

    def __init__(self, api_client: Optional[client.ApiClient] = None, conf: Settings = default_settings):
        if api_client is None:
            _ensure_k8s(conf)
            api_client = client.ApiClient()
        self.api_client = api_client
        self.conf = conf
        self.core = client.CoreV1Api(api_client)
        self.batch = client.BatchV1Api(api_client)
        self.custom = client.CustomObjectsApi(api_client)

    # -- helpers -----------------------------------------------------------

    def _typed(self, kind: str, verb: str):
        api_name, suffix = _TYPED_KINDS[kind]
        return getattr(getattr(self, api_name), f"{verb}_{suffix}")

    def _is_custom(self, kind: str) -> bool:
        return kind == self.conf.CRD_KIND

    def _crd_args(self, namespace: str) -> tuple:
        return self.conf.CRD_GROUP, self.conf.CRD_VERSION, namespace, self.conf.CRD_PLURAL

    def _to_dict(self, obj, ref: ResourceRef) -> dict:
        data = obj if isinstance(obj, dict) else self.api_client.sanitize_for_serialization(obj)
        data.setdefault("kind", ref.kind)
        return data

    def _check_kind(self, kind: str):
        if not self._is_custom(kind) and kind not in _TYPED_KINDS:
            raise StoreError(f"Unsupported kind {kind!r}", kind)

    # -- store contract ----------------------------------------------------

    def create(self, resource: dict) -> dict:
        ref = ref_of(resource)
        self._check_kind(ref.kind)
        try:
            if self._is_custom(ref.kind):
                result = self.custom.create_namespaced_custom_object(*self._crd_args(ref.namespace), resource)
            else:
                result = self._typed(ref.kind, "create")(ref.namespace, resource)
        except ApiException as e:
            raise _translate(e, ref, AlreadyExistsError) from e
        return self._to_dict(result, ref)

    def get(self, ref: ResourceRef) -> dict:
        self._check_kind(ref.kind)
        try:
            if self._is_custom(ref.kind):
                result = self.custom.get_namespaced_custom_object(*self._crd_args(ref.namespace), ref.name)
            else:
                result = self._typed(ref.kind, "read")(ref.name, ref.namespace)
        except ApiException as e:
            raise _translate(e, ref, StoreError) from e
        return self._to_dict(result, ref)

    def update(self, resource: dict, subresource: Optional[str] = None) -> dict:
        ref = ref_of(resource)
        self._check_kind(ref.kind)
        try:
            if self._is_custom(ref.kind):
                method = (self.custom.replace_namespaced_custom_object_status if subresource == "status"
                          else self.custom.replace_namespaced_custom_object)
                result = method(*self._crd_args(ref.namespace), ref.name, resource)
            else:
                api_name, suffix = _TYPED_KINDS[ref.kind]
                method = getattr(getattr(self, api_name), f"replace_{suffix}" if subresource is None
                                 else f"replace_{suffix}_{subresource}")
                result = method(ref.name, ref.namespace, resource)
        except ApiException as e:
            raise _translate(e, ref, ConflictError) from e
        return self._to_dict(result, ref)

    def delete(self, ref: ResourceRef) -> None:
        self._check_kind(ref.kind)
        try:
            if self._is_custom(ref.kind):
                self.custom.delete_namespaced_custom_object(*self._crd_args(ref.namespace), ref.name)
            else:
                self._typed(ref.kind, "delete")(ref.name, ref.namespace)
        except ApiException as e:
            raise _translate(e, ref, StoreError) from e
