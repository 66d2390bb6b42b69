"""
Drift detection and correction for curator CronJobs.

Only three fields are monitored: schedule, suspend and the curator
container image. Every other field is set at creation and never reconciled
again, so externally managed tweaks (e.g. hand-scaled resource limits) survive.

The patch runs inside retry_on_conflict: each attempt re-fetches the live
CronJob and recomputes the diff, so concurrent edits are never overwritten
with a stale copy.
"""

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from curation_operator.creator import ensure_created
from curation_operator.errors import ConflictError, NotFoundError, ReconcileError, StoreError
from curation_operator.models import ClusterConfig
from curation_operator.retry import DEFAULT_BACKOFF, Backoff, retry_on_conflict
from curation_operator.store import ResourceStore, ref_of

logger = logging.getLogger("curation.drift")


@dataclass
class DiffResult:
    changed: bool = False
    fields: dict[str, Any] = field(default_factory=dict)
    created: bool = False


def _image(cron_job: dict) -> Optional[str]:
    containers = cron_job["spec"]["jobTemplate"]["spec"]["template"]["spec"].get("containers") or []
    return containers[0].get("image") if containers else None


def diff_cron_job(current: dict, desired: dict) -> DiffResult:
    """Compare the monitored fields of a live CronJob against the desired one."""
    name = current["metadata"]["name"]
    current_spec = current.get("spec", {})
    desired_spec = desired.get("spec", {})
    result = DiffResult()

    if current_spec.get("schedule") != desired_spec.get("schedule"):
        logger.info(f"Invalid Curator schedule found, updating {name!r}")
        result.fields["schedule"] = desired_spec.get("schedule")

    current_suspend = current_spec.get("suspend")
    desired_suspend = desired_spec.get("suspend")
    if current_suspend is not None and desired_suspend is not None and current_suspend != desired_suspend:
        logger.info(f"Invalid Curator suspend value found, updating {name!r}")
        result.fields["suspend"] = desired_suspend

    if _image(current) != _image(desired):
        logger.info(f"Curator image change found, updating {name!r}")
        result.fields["image"] = _image(desired)

    result.changed = bool(result.fields)
    return result


def apply_diff(current: dict, diff: DiffResult) -> dict:
    """Return a copy of the live CronJob with only the changed fields overwritten."""
    patched = copy.deepcopy(current)
    spec = patched["spec"]
    if "schedule" in diff.fields:
        spec["schedule"] = diff.fields["schedule"]
    if "suspend" in diff.fields:
        spec["suspend"] = diff.fields["suspend"]
    if "image" in diff.fields:
        spec["jobTemplate"]["spec"]["template"]["spec"]["containers"][0]["image"] = diff.fields["image"]
    return patched


def update_if_required(store: ResourceStore, desired: dict) -> DiffResult:
    """
    One fetch-compare-patch attempt. A CronJob that vanished since creation
    was likely culled; it is recreated on the next pass, not treated as an error.
    """
    ref = ref_of(desired)
    try:
        current = store.get(ref)
    except NotFoundError:
        logger.info(f"{ref} not found while checking drift, deferring to next reconcile")
        return DiffResult()
    except StoreError as e:
        raise ReconcileError("getting", ref.kind, ref.name, e) from e

    diff = diff_cron_job(current, desired)
    if diff.changed:
        try:
            store.update(apply_diff(current, diff))
        except ConflictError:
            raise
        except StoreError as e:
            raise ReconcileError("updating", ref.kind, ref.name, e) from e
    return diff


def reconcile_cron_job(store: ResourceStore, cluster: ClusterConfig, desired: dict,
                       backoff: Backoff = DEFAULT_BACKOFF) -> DiffResult:
    """Create the CronJob if absent and, when managed, correct drift."""
    created = ensure_created(store, desired)
    if not cluster.managed:
        return DiffResult(created=created)
    try:
        diff = retry_on_conflict(lambda: update_if_required(store, desired), backoff)
    except ConflictError as e:
        ref = ref_of(desired)
        raise ReconcileError("updating", ref.kind, ref.name, e) from e
    diff.created = created
    return diff
