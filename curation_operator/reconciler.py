"""
Curation reconciler — entry point for one reconciliation pass.

Dispatch on the curation mode:
  ENABLED  → create ServiceAccount, ConfigMap, Secret (write-once)
             → create + drift-correct each CronJob
             → propagate curator status
  DISABLED → teardown (Managed clusters only)
  UNKNOWN  → nothing; an unrecognised backend is neither built nor removed

Design principles:
  - Idempotent: every step is safe to repeat
  - Fail fast: the first fatal error ends the pass, nothing is rolled back
  - No shared state: everything mutable lives in the store
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from curation_operator.config import Settings, settings as default_settings
from curation_operator.creator import ensure_created
from curation_operator.desired_state import desired_resources, read_config_files, read_credentials
from curation_operator.drift import reconcile_cron_job
from curation_operator.models import ClusterConfig, CurationMode
from curation_operator.retry import DEFAULT_BACKOFF, Backoff
from curation_operator.status import sync_status
from curation_operator.store import ResourceRef, ResourceStore
from curation_operator.teardown import remove_curator

logger = logging.getLogger("curation.reconciler")


@dataclass
class ReconcileOutcome:
    mode: CurationMode
    created: list[str] = field(default_factory=list)
    patched: dict[str, list[str]] = field(default_factory=dict)
    status_written: bool = False
    deleted: int = 0

    def as_dict(self) -> dict:
        return {
            "mode": self.mode.value,
            "created": self.created,
            "patched": self.patched,
            "statusWritten": self.status_written,
            "deleted": self.deleted,
        }


def cluster_ref(cluster: ClusterConfig) -> ResourceRef:
    return ResourceRef(cluster.kind, cluster.namespace, cluster.name)


def reconcile(store: ResourceStore, cluster: ClusterConfig, conf: Settings = default_settings,
              files: Optional[dict[str, str]] = None, credentials: Optional[dict[str, bytes]] = None,
              backoff: Backoff = DEFAULT_BACKOFF) -> ReconcileOutcome:
    """Drive the curator resources of one ClusterLogging towards its spec."""
    mode = cluster.curation.mode
    outcome = ReconcileOutcome(mode=mode)

    if mode == CurationMode.DISABLED:
        outcome.deleted = remove_curator(store, cluster)
        return outcome
    if mode == CurationMode.UNKNOWN:
        logger.warning(f"{cluster.namespace}/{cluster.name}: unknown curation type "
                       f"{cluster.curation.type!r}, nothing to do")
        return outcome

    if files is None:
        files = read_config_files(conf.CURATOR_FILES_DIR)
    if credentials is None:
        credentials = read_credentials(conf.WORKING_DIR)
    desired = desired_resources(cluster, files, credentials, conf)

    for resource in (desired.service_account, desired.config_map, desired.secret):
        if ensure_created(store, resource):
            outcome.created.append(f"{resource['kind']}/{resource['metadata']['name']}")

    for job in desired.jobs:
        diff = reconcile_cron_job(store, cluster, desired.cron_jobs[job.logical_name], backoff)
        if diff.created:
            outcome.created.append(f"CronJob/{job.name}")
        if diff.changed:
            outcome.patched[job.name] = sorted(diff.fields)

    outcome.status_written = sync_status(store, cluster, cluster_ref(cluster), backoff)
    return outcome
