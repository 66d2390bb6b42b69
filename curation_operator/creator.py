"""
Idempotent creation of write-once resources (ServiceAccount, ConfigMap, Secret).

These kinds are never read back or diffed: once a resource exists,
later reconciliations leave it alone even if its content has drifted.
"""

import logging

from curation_operator.errors import AlreadyExistsError, ReconcileError, StoreError
from curation_operator.store import ResourceStore, ref_of

logger = logging.getLogger("curation.creator")


def ensure_created(store: ResourceStore, resource: dict) -> bool:
    """Create resource if absent. Returns True if created, False if it existed."""
    ref = ref_of(resource)
    try:
        store.create(resource)
    except AlreadyExistsError:
        logger.debug(f"{ref} already exists")
        return False
    except StoreError as e:
        raise ReconcileError("creating", ref.kind, ref.name, e) from e
    logger.info(f"{ref} created")
    return True
