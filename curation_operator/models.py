"""
Pydantic models for the ClusterLogging object and the curator resources
derived from it.
"""
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict, Any, Union
from enum import Enum


class ManagementState(str, Enum):
    MANAGED = "Managed"
    UNMANAGED = "Unmanaged"


class Topology(str, Enum):
    COMBINED = "combined"
    SPLIT = "split"


class CurationType(str, Enum):
    CURATOR = "curator"


class CurationMode(str, Enum):
    """What the reconciler should do with the curation subsystem."""
    ENABLED = "Enabled"
    DISABLED = "Disabled"
    UNKNOWN = "Unknown"


class ResourceRequirements(BaseModel):
    limits: Dict[str, str] = {}
    requests: Dict[str, str] = {}

    @field_validator("limits", "requests", mode="before")
    @classmethod
    def quantities_as_strings(cls, value: Optional[Dict[str, Union[str, int, float]]]) -> Dict[str, str]:
        # YAML turns `cpu: 1` or `cpu: 0.5` into numbers; quantities are strings
        return {k: str(v) for k, v in (value or {}).items()}


class CurationSpec(BaseModel):
    type: Optional[str] = None
    schedule: str = ""
    suspend: Optional[bool] = None
    resources: Optional[ResourceRequirements] = None

    @property
    def mode(self) -> CurationMode:
        if not self.type:
            return CurationMode.DISABLED
        if self.type in {t.value for t in CurationType}:
            return CurationMode.ENABLED
        return CurationMode.UNKNOWN


class ClusterConfig(BaseModel):
    """Desired state of one ClusterLogging instance, as far as curation cares."""
    name: str
    namespace: str
    uid: str = ""
    api_version: str = "logging.openshift.io/v1alpha1"
    kind: str = "ClusterLogging"
    management_state: ManagementState = ManagementState.MANAGED
    topology: Topology = Topology.COMBINED
    curation: CurationSpec = Field(default_factory=CurationSpec)

    @property
    def managed(self) -> bool:
        return self.management_state == ManagementState.MANAGED

    @classmethod
    def from_object(cls, item: dict) -> "ClusterConfig":
        """Convert a raw ClusterLogging dict into a ClusterConfig."""
        meta = item.get("metadata", {})
        spec = item.get("spec", {}) or {}
        curation = spec.get("curation", {}) or {}
        curator = curation.get("curator", {}) or {}
        resources = curator.get("resources")
        return cls(
            name=meta["name"],
            namespace=meta.get("namespace", ""),
            uid=meta.get("uid", ""),
            api_version=item.get("apiVersion", "logging.openshift.io/v1alpha1"),
            kind=item.get("kind", "ClusterLogging"),
            management_state=spec.get("managementState") or ManagementState.MANAGED,
            topology=spec.get("topology") or Topology.COMBINED,
            curation=CurationSpec(
                type=curation.get("type"),
                schedule=curator.get("schedule", "") or "",
                suspend=curator.get("suspend"),
                resources=ResourceRequirements(**resources) if resources else None,
            ),
        )


class ScheduledJobSpec(BaseModel):
    """One curator CronJob, before rendering into a manifest."""
    logical_name: str
    name: str
    namespace: str
    schedule: str
    image: str
    elasticsearch_host: str
    resources: ResourceRequirements
    suspend: Optional[bool] = None


class CuratorStatus(BaseModel):
    cronJobs: str
    schedules: str
    suspended: bool = False
    lastScheduleTime: Optional[str] = None


class ManagedResourceSet(BaseModel):
    """Manifests for everything the curator subsystem owns."""
    service_account: Dict[str, Any]
    config_map: Dict[str, Any]
    secret: Dict[str, Any]
    jobs: List[ScheduledJobSpec]
    cron_jobs: Dict[str, Dict[str, Any]]
