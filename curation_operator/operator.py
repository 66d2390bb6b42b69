"""
Curation Operator — kopf wiring for the ClusterLogging curator subsystem

Architecture:
  ClusterLogging CRD → Operator watches → Reconcile:
    1. Ensure ServiceAccount / ConfigMap / Secret  (write-once)
    2. Ensure CronJob(s) per topology, correct schedule/suspend/image drift
    3. Propagate curator status into the ClusterLogging status

  Curation disabled:
    Teardown of everything above (Managed clusters only)

  On Delete (Finalizer):
    Teardown, so cleanup does not depend on owner-reference GC alone

  Drift Detection (Timer):
    Re-run the reconcile on a fixed interval to undo out-of-band edits.
    kopf runs timers alongside change handlers for the same object, so each
    object gets a lock: change and delete handlers wait for it, a timer tick
    that finds it held is skipped (the next tick or the change handler
    itself covers the drift). Writes are resourceVersion-guarded either way.

Failures surface as kopf.TemporaryError so kopf retries with a delay.
"""

import logging
import threading

import kopf

from curation_operator.config import settings as conf
from curation_operator.errors import CurationError
from curation_operator.models import ClusterConfig
from curation_operator.reconciler import reconcile
from curation_operator.services.kubernetes_service import KubernetesStore
from curation_operator.teardown import remove_curator

logging.basicConfig(
    level=conf.LOG_LEVEL,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("curation-operator")

CRD_GROUP = conf.CRD_GROUP
CRD_VERSION = conf.CRD_VERSION
CRD_PLURAL = conf.CRD_PLURAL

_store = None
_locks: dict[str, threading.Lock] = {}
_locks_guard = threading.Lock()


def get_store() -> KubernetesStore:
    """Lazy-init the Kubernetes-backed store."""
    global _store
    if _store is None:
        _store = KubernetesStore()
    return _store


def _object_lock(namespace: str, name: str) -> threading.Lock:
    """One lock per ClusterLogging, shared by its change, timer and delete handlers."""
    with _locks_guard:
        return _locks.setdefault(f"{namespace}/{name}", threading.Lock())


# ---------------------------------------------------------------------------
# Kopf operator settings
# ---------------------------------------------------------------------------

@kopf.on.startup()
def configure(settings: kopf.OperatorSettings, **kwargs):
    settings.posting.enabled = True
    settings.persistence.finalizer = "clusterloggings.logging.openshift.io/curation-finalizer"
    settings.persistence.progress_storage = kopf.AnnotationsProgressStorage(prefix="logging.openshift.io")
    settings.execution.max_workers = conf.MAX_WORKERS
    logger.info(
        f"Curation Operator started (max_workers={conf.MAX_WORKERS}, "
        f"interval={conf.RECONCILE_INTERVAL}s, image={conf.CURATOR_IMAGE})"
    )


# ---------------------------------------------------------------------------
# CREATE / UPDATE / RESUME — the reconciliation entry point
# ---------------------------------------------------------------------------

def _run(body, name, namespace, log) -> dict:
    cluster = ClusterConfig.from_object(body)
    try:
        outcome = reconcile(get_store(), cluster)
    except CurationError as e:
        log.error(f"Curation reconcile failed for {namespace}/{name}: {e}")
        raise kopf.TemporaryError(str(e), delay=conf.RETRY_DELAY)
    if outcome.created or outcome.patched or outcome.deleted:
        log.info(f"Curation reconciled for {namespace}/{name}: {outcome.as_dict()}")
    return outcome.as_dict()


@kopf.on.create(CRD_GROUP, CRD_VERSION, CRD_PLURAL)
@kopf.on.update(CRD_GROUP, CRD_VERSION, CRD_PLURAL, field="spec")
@kopf.on.resume(CRD_GROUP, CRD_VERSION, CRD_PLURAL)
def reconcile_curation(body, name, namespace, logger, **kwargs):
    with _object_lock(namespace, name):
        return _run(body, name, namespace, logger)


# ---------------------------------------------------------------------------
# TIMER — periodic reconciliation for drift correction
# ---------------------------------------------------------------------------

@kopf.timer(CRD_GROUP, CRD_VERSION, CRD_PLURAL,
            interval=conf.RECONCILE_INTERVAL, idle=conf.RECONCILE_INTERVAL)
def check_curation_drift(body, name, namespace, logger, **kwargs):
    lock = _object_lock(namespace, name)
    if not lock.acquire(blocking=False):
        logger.info(f"Reconcile in flight for {namespace}/{name}, skipping drift check")
        return
    try:
        _run(body, name, namespace, logger)
    finally:
        lock.release()


# ---------------------------------------------------------------------------
# DELETE handler — cleanup with finalizer guarantee
# ---------------------------------------------------------------------------

@kopf.on.delete(CRD_GROUP, CRD_VERSION, CRD_PLURAL)
def delete_curation(body, name, namespace, logger, **kwargs):
    cluster = ClusterConfig.from_object(body)
    with _object_lock(namespace, name):
        try:
            deleted = remove_curator(get_store(), cluster)
        except CurationError as e:
            logger.error(f"Curator cleanup failed for {namespace}/{name}: {e}")
            raise kopf.TemporaryError(str(e), delay=conf.RETRY_DELAY)
    with _locks_guard:
        _locks.pop(f"{namespace}/{name}", None)
    logger.info(f"Curator cleanup complete for {namespace}/{name} ({deleted} deleted)")
