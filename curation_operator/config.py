"""
Configuration module — all settings from env vars with sensible defaults.
Follows 12-factor app methodology.
"""
import os
from dataclasses import dataclass
from pathlib import Path

_PACKAGE_FILES = str(Path(__file__).parent / "files")


@dataclass(frozen=True)
class Settings:
    # Kubernetes
    KUBECONFIG: str = os.environ.get("KUBECONFIG", "")
    IN_CLUSTER: bool = os.environ.get("IN_CLUSTER", "false").lower() == "true"

    # CRD
    CRD_GROUP: str = "logging.openshift.io"
    CRD_VERSION: str = "v1alpha1"
    CRD_PLURAL: str = "clusterloggings"
    CRD_KIND: str = "ClusterLogging"

    # Curator
    CURATOR_IMAGE: str = os.environ.get("CURATOR_IMAGE", "quay.io/openshift/origin-logging-curator5:latest")
    CURATOR_DEFAULT_SCHEDULE: str = os.environ.get("CURATOR_DEFAULT_SCHEDULE", "30 3,9,15,21 * * *")
    CURATOR_DEFAULT_MEMORY: str = os.environ.get("CURATOR_DEFAULT_MEMORY", "200Mi")
    CURATOR_DEFAULT_CPU_REQUEST: str = os.environ.get("CURATOR_DEFAULT_CPU_REQUEST", "100m")
    CURATOR_FILES_DIR: str = os.environ.get("CURATOR_FILES_DIR", _PACKAGE_FILES)
    WORKING_DIR: str = os.environ.get("WORKING_DIR", "/tmp/_working_dir")

    # Optimistic-concurrency retry budget
    RETRY_STEPS: int = int(os.environ.get("RETRY_STEPS", "5"))
    RETRY_BASE_DELAY: float = float(os.environ.get("RETRY_BASE_DELAY", "0.01"))
    RETRY_FACTOR: float = float(os.environ.get("RETRY_FACTOR", "2.0"))
    RETRY_JITTER: float = float(os.environ.get("RETRY_JITTER", "0.1"))

    # Operator cadence
    RECONCILE_INTERVAL: int = int(os.environ.get("RECONCILE_INTERVAL", "300"))
    RETRY_DELAY: int = int(os.environ.get("RETRY_DELAY", "30"))
    MAX_WORKERS: int = int(os.environ.get("MAX_WORKERS", "3"))
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")


settings = Settings()
