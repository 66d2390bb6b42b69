"""
Desired-state factory — turns a ClusterConfig into the manifests the curator
subsystem should own.

Everything here is pure except read_config_files / read_credentials, which the
reconciler calls up front so the builders never touch the filesystem.

Layout:
  combined topology → one CronJob  "curator"        → elasticsearch
  split topology    → two CronJobs "curator-app"    → elasticsearch-app
                                   "curator-infra"  → elasticsearch-infra
"""

import base64
import logging
from pathlib import Path
from typing import Optional

from curation_operator.config import Settings, settings as default_settings
from curation_operator.models import (
    ClusterConfig, ManagedResourceSet, ResourceRequirements, ScheduledJobSpec, Topology,
)

logger = logging.getLogger("curation.desired_state")

CURATOR_NAME = "curator"

# config file on disk -> ConfigMap key
CONFIG_FILES = {
    "actions.yaml": "curator-actions.yaml",
    "curator5.yaml": "curator5-config.yaml",
    "config.yaml": "curator-config.yaml",
}

# Secret key -> certificate file in the working directory
CREDENTIAL_FILES = {
    "ca": "ca.crt",
    "key": "system.logging.curator.key",
    "cert": "system.logging.curator.crt",
    "ops-ca": "ca.crt",
    "ops-key": "system.logging.curator.key",
    "ops-cert": "system.logging.curator.crt",
}

# logical name -> (CronJob name, Elasticsearch host)
JOBS_BY_TOPOLOGY = {
    Topology.COMBINED: {
        "primary": ("curator", "elasticsearch"),
    },
    Topology.SPLIT: {
        "application-stream": ("curator-app", "elasticsearch-app"),
        "infrastructure-stream": ("curator-infra", "elasticsearch-infra"),
    },
}


# ---------------------------------------------------------------------------
# Static inputs
# ---------------------------------------------------------------------------

def _read(path: Path) -> Optional[bytes]:
    try:
        return path.read_bytes()
    except OSError as e:
        logger.warning(f"Unable to read {path}: {e}")
        return None


def read_config_files(directory: str) -> dict[str, str]:
    """Load the curator configuration files, keyed by their ConfigMap key."""
    data = {}
    for key, filename in CONFIG_FILES.items():
        content = _read(Path(directory) / filename)
        data[key] = content.decode("utf-8") if content else ""
    return data


def read_credentials(directory: str) -> dict[str, bytes]:
    """Load certificate material from the working directory, keyed by Secret key."""
    return {
        key: _read(Path(directory) / filename) or b""
        for key, filename in CREDENTIAL_FILES.items()
    }


# ---------------------------------------------------------------------------
# Manifest builders
# ---------------------------------------------------------------------------

def owner_reference(cluster: ClusterConfig) -> dict:
    return {
        "apiVersion": cluster.api_version,
        "kind": cluster.kind,
        "name": cluster.name,
        "uid": cluster.uid,
        "controller": True,
    }


def _metadata(cluster: ClusterConfig, name: str, labels: Optional[dict] = None) -> dict:
    meta = {
        "name": name,
        "namespace": cluster.namespace,
        "ownerReferences": [owner_reference(cluster)],
    }
    if labels:
        meta["labels"] = labels
    return meta


def service_account(cluster: ClusterConfig) -> dict:
    return {
        "apiVersion": "v1",
        "kind": "ServiceAccount",
        "metadata": _metadata(cluster, CURATOR_NAME),
    }


def config_map(cluster: ClusterConfig, files: dict[str, str]) -> dict:
    return {
        "apiVersion": "v1",
        "kind": "ConfigMap",
        "metadata": _metadata(cluster, CURATOR_NAME),
        "data": dict(files),
    }


def secret(cluster: ClusterConfig, credentials: dict[str, bytes]) -> dict:
    return {
        "apiVersion": "v1",
        "kind": "Secret",
        "type": "Opaque",
        "metadata": _metadata(cluster, CURATOR_NAME),
        "data": {k: base64.b64encode(v).decode("ascii") for k, v in credentials.items()},
    }


def default_resources(conf: Settings = default_settings) -> ResourceRequirements:
    return ResourceRequirements(
        limits={"memory": conf.CURATOR_DEFAULT_MEMORY},
        requests={"memory": conf.CURATOR_DEFAULT_MEMORY, "cpu": conf.CURATOR_DEFAULT_CPU_REQUEST},
    )


def scheduled_jobs(cluster: ClusterConfig, conf: Settings = default_settings) -> list[ScheduledJobSpec]:
    """Curator jobs implied by the cluster topology, with defaults filled in."""
    curation = cluster.curation
    schedule = curation.schedule or conf.CURATOR_DEFAULT_SCHEDULE
    resources = curation.resources or default_resources(conf)
    return [
        ScheduledJobSpec(
            logical_name=logical_name,
            name=name,
            namespace=cluster.namespace,
            schedule=schedule,
            image=conf.CURATOR_IMAGE,
            elasticsearch_host=es_host,
            resources=resources,
            suspend=curation.suspend,
        )
        for logical_name, (name, es_host) in JOBS_BY_TOPOLOGY[cluster.topology].items()
    ]


def job_names(cluster: ClusterConfig) -> list[str]:
    return [name for name, _ in JOBS_BY_TOPOLOGY[cluster.topology].values()]


def _curator_env(es_host: str) -> list[dict]:
    env = {
        "K8S_HOST_URL": "https://kubernetes.default.svc.cluster.local",
        "ES_HOST": es_host,
        "ES_PORT": "9200",
        "ES_CLIENT_CERT": "/etc/curator/keys/cert",
        "ES_CLIENT_KEY": "/etc/curator/keys/key",
        "ES_CA": "/etc/curator/keys/ca",
        "CURATOR_DEFAULT_DAYS": "30",
        "CURATOR_SCRIPT_LOG_LEVEL": "INFO",
        "CURATOR_LOG_LEVEL": "ERROR",
        "CURATOR_TIMEOUT": "300",
    }
    return [{"name": k, "value": v} for k, v in env.items()]


def cron_job(cluster: ClusterConfig, job: ScheduledJobSpec) -> dict:
    """Render a ScheduledJobSpec into a batch/v1 CronJob manifest."""
    container = {
        "name": CURATOR_NAME,
        "image": job.image,
        "imagePullPolicy": "IfNotPresent",
        "resources": job.resources.model_dump(),
        "env": _curator_env(job.elasticsearch_host),
        "volumeMounts": [
            {"name": "certs", "readOnly": True, "mountPath": "/etc/curator/keys"},
            {"name": "config", "readOnly": True, "mountPath": "/etc/curator/settings"},
        ],
    }
    pod_spec = {
        "serviceAccountName": CURATOR_NAME,
        "containers": [container],
        "volumes": [
            {"name": "config", "configMap": {"name": CURATOR_NAME}},
            {"name": "certs", "secret": {"secretName": CURATOR_NAME}},
        ],
        "restartPolicy": "Never",
        "terminationGracePeriodSeconds": 600,
    }
    labels = {
        "provider": "openshift",
        "component": job.name,
        "logging-infra": CURATOR_NAME,
    }
    spec = {
        "schedule": job.schedule,
        "concurrencyPolicy": "Forbid",
        "successfulJobsHistoryLimit": 1,
        "failedJobsHistoryLimit": 1,
        "jobTemplate": {
            "spec": {
                "backoffLimit": 0,
                "parallelism": 1,
                "template": {
                    "metadata": {"name": job.name, "namespace": job.namespace, "labels": labels},
                    "spec": pod_spec,
                },
            },
        },
    }
    if job.suspend is not None:
        spec["suspend"] = job.suspend
    return {
        "apiVersion": "batch/v1",
        "kind": "CronJob",
        "metadata": _metadata(cluster, job.name, labels),
        "spec": spec,
    }


def desired_resources(cluster: ClusterConfig, files: dict[str, str], credentials: dict[str, bytes],
                      conf: Settings = default_settings) -> ManagedResourceSet:
    jobs = scheduled_jobs(cluster, conf)
    return ManagedResourceSet(
        service_account=service_account(cluster),
        config_map=config_map(cluster, files),
        secret=secret(cluster, credentials),
        jobs=jobs,
        cron_jobs={job.logical_name: cron_job(cluster, job) for job in jobs},
    )
