"""
Curator status propagation into ClusterLogging.status.curation.curatorStatus.

The status is written through the status subresource, tagged with the
resourceVersion just read, and only when it differs from what is stored.
"""

import copy
import logging

from curation_operator.desired_state import job_names
from curation_operator.errors import ConflictError, NotFoundError, ReconcileError, StoreError
from curation_operator.models import ClusterConfig, CuratorStatus
from curation_operator.retry import DEFAULT_BACKOFF, Backoff, retry_on_conflict
from curation_operator.store import ResourceRef, ResourceStore

logger = logging.getLogger("curation.status")


def _stored_status(cluster_obj: dict):
    return ((cluster_obj.get("status") or {}).get("curation") or {}).get("curatorStatus")


def curator_status(store: ResourceStore, cluster: ClusterConfig) -> list[dict]:
    """Observed state of every CronJob the current topology implies."""
    statuses = []
    for name in job_names(cluster):
        ref = ResourceRef("CronJob", cluster.namespace, name)
        try:
            job = store.get(ref)
        except NotFoundError:
            continue
        except StoreError as e:
            raise ReconcileError("getting status of", ref.kind, ref.name, e) from e
        spec = job.get("spec", {})
        statuses.append(CuratorStatus(
            cronJobs=name,
            schedules=spec.get("schedule", ""),
            suspended=bool(spec.get("suspend")),
            lastScheduleTime=(job.get("status") or {}).get("lastScheduleTime"),
        ).model_dump(exclude_none=True))
    return statuses


def sync_status(store: ResourceStore, cluster: ClusterConfig, owner_ref: ResourceRef,
                backoff: Backoff = DEFAULT_BACKOFF) -> bool:
    """Write the derived curator status if it changed. Returns True if written."""
    derived = curator_status(store, cluster)
    notice_pending = True

    def attempt() -> bool:
        nonlocal notice_pending
        try:
            current = store.get(owner_ref)
        except NotFoundError:
            return False
        if _stored_status(current) == derived:
            return False
        if notice_pending:
            logger.info(f"Updating status of Curator for {cluster.namespace}/{cluster.name}")
            notice_pending = False
        updated = copy.deepcopy(current)
        status = updated["status"] = updated.get("status") or {}
        curation = status["curation"] = status.get("curation") or {}
        curation["curatorStatus"] = derived
        store.update(updated, subresource="status")
        return True

    try:
        return retry_on_conflict(attempt, backoff)
    except StoreError as e:
        raise ReconcileError("updating status of", owner_ref.kind, owner_ref.name, e) from e
