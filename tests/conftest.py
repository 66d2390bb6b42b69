"""Shared fixtures: an in-memory resource store and ClusterLogging bodies."""

import copy

import pytest

from curation_operator.errors import AlreadyExistsError, ConflictError, NotFoundError, StoreError
from curation_operator.models import ClusterConfig
from curation_operator.retry import Backoff
from curation_operator.store import ResourceRef, ref_of


class FakeStore:
    """
    Dict-backed store honouring the optimistic-concurrency contract.

    Every write bumps metadata.resourceVersion; an update carrying a stale
    version raises ConflictError. Hooks let tests inject failures or
    concurrent writers before a call is served.
    """

    def __init__(self):
        self.objects: dict[ResourceRef, dict] = {}
        self.calls: list[tuple[str, ResourceRef]] = []
        self.updates: list[dict] = []
        self.before: dict[str, list] = {"create": [], "get": [], "update": [], "delete": []}
        self._version = 0

    def _bump(self, obj: dict) -> dict:
        self._version += 1
        obj.setdefault("metadata", {})["resourceVersion"] = str(self._version)
        return obj

    def _hook(self, verb: str, ref: ResourceRef):
        self.calls.append((verb, ref))
        if self.before[verb]:
            self.before[verb].pop(0)(ref)

    def put(self, resource: dict) -> dict:
        obj = self._bump(copy.deepcopy(resource))
        self.objects[ref_of(obj)] = obj
        return obj

    def create(self, resource: dict) -> dict:
        ref = ref_of(resource)
        self._hook("create", ref)
        if ref in self.objects:
            raise AlreadyExistsError(f"{ref} exists", ref.kind, ref.name, 409)
        return copy.deepcopy(self.put(resource))

    def get(self, ref: ResourceRef) -> dict:
        self._hook("get", ref)
        if ref not in self.objects:
            raise NotFoundError(f"{ref} not found", ref.kind, ref.name, 404)
        return copy.deepcopy(self.objects[ref])

    def update(self, resource: dict, subresource=None) -> dict:
        ref = ref_of(resource)
        self._hook("update", ref)
        stored = self.objects.get(ref)
        if stored is None:
            raise NotFoundError(f"{ref} not found", ref.kind, ref.name, 404)
        if stored["metadata"]["resourceVersion"] != resource["metadata"].get("resourceVersion"):
            raise ConflictError(f"{ref} version conflict", ref.kind, ref.name, 409)
        self.updates.append(copy.deepcopy(resource))
        if subresource == "status":
            new = copy.deepcopy(stored)
            new["status"] = copy.deepcopy(resource.get("status"))
        else:
            new = copy.deepcopy(resource)
        return copy.deepcopy(self.put(new))

    def delete(self, ref: ResourceRef) -> None:
        self._hook("delete", ref)
        if ref not in self.objects:
            raise NotFoundError(f"{ref} not found", ref.kind, ref.name, 404)
        del self.objects[ref]

    def count(self, verb: str, kind: str = None) -> int:
        return sum(1 for v, ref in self.calls if v == verb and (kind is None or ref.kind == kind))


def fail_with(error: StoreError):
    def hook(ref):
        raise error
    return hook


def cluster_body(curation_type="curator", topology="combined", management_state="Managed",
                 schedule=None, suspend=None, resources=None) -> dict:
    curator = {}
    if schedule is not None:
        curator["schedule"] = schedule
    if suspend is not None:
        curator["suspend"] = suspend
    if resources is not None:
        curator["resources"] = resources
    curation = {"curator": curator}
    if curation_type is not None:
        curation["type"] = curation_type
    return {
        "apiVersion": "logging.openshift.io/v1alpha1",
        "kind": "ClusterLogging",
        "metadata": {"name": "instance", "namespace": "openshift-logging", "uid": "uid-1234"},
        "spec": {
            "managementState": management_state,
            "topology": topology,
            "curation": curation,
        },
    }


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def no_backoff():
    return Backoff(steps=5, delay=0.0)


@pytest.fixture
def files():
    return {"actions.yaml": "", "curator5.yaml": "client: {}", "config.yaml": ""}


@pytest.fixture
def credentials():
    return {"ca": b"CA", "key": b"KEY", "cert": b"CERT",
            "ops-ca": b"CA", "ops-key": b"KEY", "ops-cert": b"CERT"}


@pytest.fixture
def make_cluster(store):
    """Build a ClusterConfig and register its ClusterLogging object in the store."""
    def _make(**kwargs) -> ClusterConfig:
        body = cluster_body(**kwargs)
        store.put(body)
        return ClusterConfig.from_object(body)
    return _make
