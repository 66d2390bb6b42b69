"""
Teardown of the curator subsystem.

Deletes, in order: ServiceAccount, ConfigMap, Secret, then every CronJob the
current topology implies. Already-absent resources count as deleted. The
first real failure aborts the teardown; the next reconciliation retries the
whole thing. Unmanaged clusters are left untouched.
"""

import logging

from curation_operator.desired_state import CURATOR_NAME, job_names
from curation_operator.errors import NotFoundError, ReconcileError, StoreError
from curation_operator.models import ClusterConfig
from curation_operator.store import ResourceRef, ResourceStore

logger = logging.getLogger("curation.teardown")


def owned_refs(cluster: ClusterConfig) -> list[ResourceRef]:
    ns = cluster.namespace
    refs = [
        ResourceRef("ServiceAccount", ns, CURATOR_NAME),
        ResourceRef("ConfigMap", ns, CURATOR_NAME),
        ResourceRef("Secret", ns, CURATOR_NAME),
    ]
    refs += [ResourceRef("CronJob", ns, name) for name in job_names(cluster)]
    return refs


def delete_if_present(store: ResourceStore, ref: ResourceRef) -> bool:
    """Delete, ignore 404. Returns True if something was deleted."""
    try:
        store.delete(ref)
    except NotFoundError:
        logger.debug(f"{ref} already gone")
        return False
    except StoreError as e:
        raise ReconcileError("deleting", ref.kind, ref.name, e) from e
    logger.info(f"{ref} deleted")
    return True


def remove_curator(store: ResourceStore, cluster: ClusterConfig) -> int:
    """Remove all curator resources. Returns how many were actually deleted."""
    if not cluster.managed:
        logger.info(f"{cluster.namespace}/{cluster.name} is Unmanaged, leaving curator resources as-is")
        return 0
    return sum(delete_if_present(store, ref) for ref in owned_refs(cluster))
