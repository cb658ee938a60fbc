"""Attribute extraction from incoming CDF events.

Nothing in here raises: a missing attribute, a payload that is not JSON or a
nested document that cannot be decoded is reported as absent and callers fall
back to defaults.
"""

import json
import logging
from typing import Any

from cdf_translator.models.events import IncomingEvent

logger = logging.getLogger(__name__)

# CDF extension attribute names
ARTIFACT_ID = "artifactid"
ARTIFACT_NAME = "artifactname"
ARTIFACT_VERSION = "artifactversion"
SERVICE_ENV_ID = "serviceenvid"
SERVICE_NAME = "servicename"
SERVICE_VERSION = "serviceversion"

PIPELINE_RUN_KEY = "pipelinerun"


def get_extension(event: IncomingEvent, name: str) -> str | None:
    """Return an extension attribute, or None when the event does not carry it."""
    value = event.extensions.get(name)
    return value or None


def load_payload(data: bytes) -> dict[str, Any] | None:
    """Decode the event payload as a JSON object."""
    if not data:
        return None
    try:
        document = json.loads(data)
    except (UnicodeDecodeError, ValueError, RecursionError) as e:
        logger.debug(f"Payload is not JSON: {e}")
        return None
    if not isinstance(document, dict):
        logger.debug(f"Payload is not a JSON object: {type(document).__name__}")
        return None
    return document


def load_nested_document(payload: dict[str, Any], key: str) -> dict[str, Any] | None:
    """Decode ``payload[key]``, which producers ship as a serialized JSON string."""
    value = payload.get(key)
    if isinstance(value, dict):
        return value
    if not isinstance(value, str):
        return None
    try:
        document = json.loads(value)
    except (ValueError, RecursionError) as e:
        logger.warning(f"Embedded '{key}' document is not valid JSON: {e}")
        return None
    return document if isinstance(document, dict) else None


def payload_string(event: IncomingEvent, key: str) -> str | None:
    """Return a top-level string field of the JSON payload."""
    payload = load_payload(event.data)
    if payload is None:
        return None
    value = payload.get(key)
    return value if isinstance(value, str) and value else None


def extract_pipeline_results(event: IncomingEvent, key: str = PIPELINE_RUN_KEY) -> dict[str, str]:
    """Collect ``{name, value}`` records from an embedded Tekton PipelineRun.

    Reads ``status.pipelineResults`` and falls back to ``status.results``,
    the field name used by newer Tekton releases.
    """
    payload = load_payload(event.data)
    if payload is None:
        return {}
    pipeline_run = load_nested_document(payload, key)
    if pipeline_run is None:
        return {}

    status = pipeline_run.get("status")
    if not isinstance(status, dict):
        return {}
    records = status.get("pipelineResults")
    if records is None:
        records = status.get("results")
    if not isinstance(records, list):
        return {}

    results: dict[str, str] = {}
    for record in records:
        if not isinstance(record, dict):
            continue
        name = record.get("name")
        value = record.get("value")
        if isinstance(name, str) and isinstance(value, str):
            results[name] = value

    logger.debug(f"Pipeline results: {results}")
    return results


def first_result(results: dict[str, str], *names: str) -> str | None:
    """Return the first result found under any of ``names``."""
    for name in names:
        value = results.get(name)
        if value:
            return value
    return None
