"""Keptn event payloads and event type vocabulary."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

KEPTN_EVENT_PREFIX = "sh.keptn.event."
KEPTN_SPEC_VERSION = "0.2.3"

STATUS_SUCCEEDED = "succeeded"
STATUS_UNKNOWN = "unknown"
RESULT_PASS = "pass"


class OutgoingEventType(str, Enum):
    """Task/phase pairs understood by the Keptn control plane."""

    DELIVERY_TRIGGERED = "delivery.triggered"
    DEPLOYMENT_STARTED = "deployment.started"
    DEPLOYMENT_FINISHED = "deployment.finished"


def keptn_event_type(kind: OutgoingEventType, stage: str = "") -> str:
    """Return the wire type, e.g. ``sh.keptn.event.production.delivery.triggered``.

    Sequence-level events carry the stage in front of the task name;
    task-level events do not.
    """
    if stage:
        return f"{KEPTN_EVENT_PREFIX}{stage}.{kind.value}"
    return f"{KEPTN_EVENT_PREFIX}{kind.value}"


def outgoing_event_kind(event_type: str) -> OutgoingEventType | None:
    """Map a wire type back onto the vocabulary, or None if it is unknown."""
    if not event_type.startswith(KEPTN_EVENT_PREFIX):
        return None
    suffix = event_type[len(KEPTN_EVENT_PREFIX):]
    for kind in OutgoingEventType:
        if suffix == kind.value or suffix.endswith(f".{kind.value}"):
            return kind
    return None


class KeptnModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_data(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class EventData(KeptnModel):
    """Fields shared by every Keptn event payload."""

    project: str = ""
    stage: str = ""
    service: str = ""
    labels: dict[str, str] | None = None
    status: str | None = None
    result: str | None = None
    message: str | None = None


class ConfigurationChange(KeptnModel):
    values: dict[str, Any] = Field(default_factory=dict)


class DeploymentTriggeredEventData(EventData):
    configuration_change: ConfigurationChange = Field(
        default_factory=ConfigurationChange, alias="configurationChange"
    )


class DeploymentStartedEventData(EventData):
    pass


class DeploymentFinishedData(KeptnModel):
    deployment_strategy: str = Field(default="", alias="deploymentstrategy")
    deployment_uris_local: list[str] = Field(default_factory=list, alias="deploymentURIsLocal")
    deployment_uris_public: list[str] = Field(default_factory=list, alias="deploymentURIsPublic")
    deployment_names: list[str] = Field(default_factory=list, alias="deploymentNames")
    git_commit: str = Field(default="", alias="gitCommit")


class DeploymentFinishedEventData(EventData):
    deployment: DeploymentFinishedData = Field(default_factory=DeploymentFinishedData)
