"""Inbound CDF events, outbound Keptn events and dispatch results."""

import base64
import binascii
import json
import uuid
from collections.abc import Mapping
from datetime import datetime, timezone
from enum import Enum
from typing import Any
from urllib.parse import unquote

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from cdf_translator.errors import EventBuildError, InvalidEventError
from cdf_translator.models.keptn import KEPTN_SPEC_VERSION, outgoing_event_kind

CE_HEADER_PREFIX = "ce-"
CE_STRUCTURED_CONTENT_TYPE = "application/cloudevents+json"

# Context attributes that are not extensions
_CE_CONTEXT_ATTRIBUTES = {"id", "source", "type", "specversion", "datacontenttype", "data", "data_base64"}


class IncomingEvent(BaseModel):
    """A CloudEvent received from a CDF producer."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default="", description="CloudEvent id")
    source: str = Field(default="", description="CloudEvent source")
    type: str = Field(description="Event type used for routing, e.g. cd.service.deployed.v1")
    specversion: str = Field(default="1.0")
    extensions: dict[str, str] = Field(default_factory=dict, description="Flat extension attributes")
    data: bytes = Field(default=b"", description="Raw event payload")

    @classmethod
    def from_http(cls, headers: Mapping[str, str], body: bytes) -> "IncomingEvent":
        """Decode a CloudEvent from an HTTP request in binary or structured mode."""
        content_type = headers.get("content-type", "")
        if content_type.startswith(CE_STRUCTURED_CONTENT_TYPE):
            return cls._from_structured(body)
        return cls._from_binary(headers, body)

    @classmethod
    def _from_binary(cls, headers: Mapping[str, str], body: bytes) -> "IncomingEvent":
        attributes: dict[str, str] = {}
        for key, value in headers.items():
            key = key.lower()
            if key.startswith(CE_HEADER_PREFIX):
                attributes[key[len(CE_HEADER_PREFIX):]] = unquote(value)

        event_type = attributes.pop("type", "")
        if not event_type:
            raise InvalidEventError("Missing ce-type header")

        return cls(
            id=attributes.pop("id", ""),
            source=attributes.pop("source", ""),
            type=event_type,
            specversion=attributes.pop("specversion", "1.0"),
            extensions=attributes,
            data=body,
        )

    @classmethod
    def _from_structured(cls, body: bytes) -> "IncomingEvent":
        try:
            document = json.loads(body)
        except (UnicodeDecodeError, ValueError, RecursionError) as e:
            raise InvalidEventError(f"Structured CloudEvent is not valid JSON: {e}") from e
        if not isinstance(document, dict):
            raise InvalidEventError("Structured CloudEvent must be a JSON object")

        event_type = document.get("type")
        if not isinstance(event_type, str) or not event_type:
            raise InvalidEventError("Missing CloudEvent type")

        data = document.get("data")
        data_base64 = document.get("data_base64")
        if data is None and isinstance(data_base64, str):
            try:
                payload = base64.b64decode(data_base64, validate=True)
            except binascii.Error as e:
                raise InvalidEventError(f"data_base64 is not valid base64: {e}") from e
        elif data is None:
            payload = b""
        elif isinstance(data, str):
            payload = data.encode("utf-8")
        else:
            payload = json.dumps(data).encode("utf-8")

        extensions = {
            key: str(value)
            for key, value in document.items()
            if key not in _CE_CONTEXT_ATTRIBUTES and value is not None
        }

        return cls(
            id=str(document.get("id") or ""),
            source=str(document.get("source") or ""),
            type=event_type,
            specversion=str(document.get("specversion") or "1.0"),
            extensions=extensions,
            data=payload,
        )


class OutgoingEventTemplate(BaseModel):
    """A translator result that still lacks its correlation identifiers."""

    type: str
    data: dict[str, Any] = Field(default_factory=dict)
    conversation_id: str = Field(default="", description="Pre-populated shkeptncontext")
    trigger_id: str = Field(default="", description="Pre-populated triggeredid")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class OutgoingEvent(BaseModel):
    """A Keptn CloudEvent ready to be sent to the control plane."""

    model_config = ConfigDict(frozen=True)

    specversion: str = "1.0"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    source: str
    type: str
    time: str = Field(default_factory=_now)
    contenttype: str = "application/json"
    data: dict[str, Any]
    shkeptncontext: str = ""
    triggeredid: str = ""
    shkeptnspecversion: str = KEPTN_SPEC_VERSION

    @field_validator("source")
    @classmethod
    def _source_not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("source must not be empty")
        return value

    @field_validator("type")
    @classmethod
    def _known_type(cls, value: str) -> str:
        if outgoing_event_kind(value) is None:
            raise ValueError(f"unknown Keptn event type: {value}")
        return value

    @model_validator(mode="after")
    def _required_data_fields(self) -> "OutgoingEvent":
        missing = [
            name for name in ("project", "stage", "service")
            if not isinstance(self.data.get(name), str) or not self.data.get(name)
        ]
        if missing:
            raise ValueError(f"data is missing {', '.join(missing)}")
        return self

    @classmethod
    def from_template(
        cls,
        template: OutgoingEventTemplate,
        source: str,
        conversation_id: str = "",
        trigger_id: str = "",
    ) -> "OutgoingEvent":
        """Finalize a template; identifiers set on the template take precedence."""
        try:
            return cls(
                source=source,
                type=template.type,
                data=template.data,
                shkeptncontext=template.conversation_id or conversation_id,
                triggeredid=template.trigger_id or trigger_id,
            )
        except ValidationError as e:
            raise EventBuildError(f"Invalid {template.type} event: {e}") from e

    def to_payload(self) -> dict[str, Any]:
        """JSON body for the Keptn API; empty identifiers are left out."""
        payload = self.model_dump()
        for key in ("shkeptncontext", "triggeredid"):
            if not payload[key]:
                payload.pop(key)
        return payload


class SendResult(BaseModel):
    """Outcome of a single downstream send."""

    success: bool
    keptn_context: str = ""
    error: str = ""


class DispatchStatus(str, Enum):
    OK = "ok"
    UNHANDLED = "unhandled"
    BUILD_FAILED = "build_failed"
    SEND_FAILED = "send_failed"


class SentEvent(BaseModel):
    type: str
    id: str
    keptn_context: str = ""


class DispatchResult(BaseModel):
    """Outcome of handling one incoming event."""

    status: DispatchStatus
    event_type: str
    sent: list[SentEvent] = Field(default_factory=list)
    error: str = ""

    @property
    def success(self) -> bool:
        return self.status in (DispatchStatus.OK, DispatchStatus.UNHANDLED)
