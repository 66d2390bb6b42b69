"""
Resource store contract consumed by the reconciler.

Resources are plain Kubernetes manifest dicts. The version token used for
optimistic concurrency is metadata.resourceVersion; an update carrying a stale
token must raise ConflictError.
"""
from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass(frozen=True)
class ResourceRef:
    kind: str
    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.kind} {self.namespace}/{self.name}"


def ref_of(resource: dict) -> ResourceRef:
    """Build the reference that identifies a manifest."""
    meta = resource.get("metadata", {})
    return ResourceRef(resource["kind"], meta.get("namespace", ""), meta["name"])


class ResourceStore(Protocol):
    def create(self, resource: dict) -> dict:
        """Create a resource. Raises AlreadyExistsError or StoreError."""

    def get(self, ref: ResourceRef) -> dict:
        """Fetch a resource. Raises NotFoundError or StoreError."""

    def update(self, resource: dict, subresource: Optional[str] = None) -> dict:
        """Replace a resource (or its status). Raises ConflictError or StoreError."""

    def delete(self, ref: ResourceRef) -> None:
        """Delete a resource. Raises NotFoundError or StoreError."""
