"""Unit tests for CDF to Keptn translators."""

import json

import pytest

from cdf_translator.models.events import IncomingEvent
from cdf_translator.translators.artifact import (
    ArtifactPackagedTranslator,
    ArtifactPublishedTranslator,
)
from cdf_translator.translators.service import ServiceDeployedTranslator, deployment_url


def _pipeline_payload(*records: dict[str, str]) -> bytes:
    pipeline_run = json.dumps({"status": {"pipelineResults": list(records)}})
    return json.dumps({"pipelinerun": pipeline_run}).encode()


@pytest.fixture
def packaged() -> ArtifactPackagedTranslator:
    return ArtifactPackagedTranslator("cde", "production")


@pytest.fixture
def published() -> ArtifactPublishedTranslator:
    return ArtifactPublishedTranslator("cde", "production")


@pytest.fixture
def deployed() -> ServiceDeployedTranslator:
    return ServiceDeployedTranslator("cde", "production")


# ---------------------------------------------------------------------------
# Artifact packaged
# ---------------------------------------------------------------------------


def test_artifact_packaged_triggers_delivery(packaged: ArtifactPackagedTranslator) -> None:
    event = IncomingEvent(
        type="cd.artifact.packaged.v1",
        extensions={"artifactid": "ghcr.io/acme/shop:1.2", "artifactname": "shop", "artifactversion": "1.2"},
    )
    templates = packaged.translate(event)

    assert len(templates) == 1
    template = templates[0]
    assert template.type == "sh.keptn.event.production.delivery.triggered"
    assert template.data["configurationChange"]["values"]["image"] == "ghcr.io/acme/shop:1.2"
    assert template.data["service"] == "shop"
    assert template.data["project"] == "cde"
    assert template.data["stage"] == "production"
    assert template.data["message"] == "deployment handled by Tekton"
    assert template.conversation_id == ""
    assert template.trigger_id == ""


def test_artifact_packaged_ignores_version(packaged: ArtifactPackagedTranslator) -> None:
    base = {"artifactid": "img", "artifactname": "shop"}
    without_version = packaged.translate(IncomingEvent(type="cd.artifact.packaged.v1", extensions=base))
    with_version = packaged.translate(
        IncomingEvent(type="cd.artifact.packaged.v1", extensions={**base, "artifactversion": "9.9"})
    )
    assert without_version[0].data == with_version[0].data


def test_artifact_packaged_missing_attributes(packaged: ArtifactPackagedTranslator) -> None:
    templates = packaged.translate(IncomingEvent(type="cd.artifact.packaged.v1"))
    assert templates[0].data["service"] == ""
    assert templates[0].data["configurationChange"]["values"]["image"] == ""


# ---------------------------------------------------------------------------
# Artifact published
# ---------------------------------------------------------------------------


def test_artifact_published_starts_deployment(published: ArtifactPublishedTranslator) -> None:
    event = IncomingEvent(type="cd.artifact.published.v1", extensions={"artifactname": "shop"})
    templates = published.translate(event)

    assert len(templates) == 1
    assert templates[0].type == "sh.keptn.event.deployment.started"
    assert templates[0].data["service"] == "shop"
    assert templates[0].data["status"] == "unknown"
    assert templates[0].conversation_id == ""
    assert templates[0].trigger_id == ""


def test_artifact_published_keeps_upstream_ids(published: ArtifactPublishedTranslator) -> None:
    event = IncomingEvent(
        type="cd.artifact.published.v1",
        extensions={"artifactname": "shop"},
        data=b'{"shkeptncontext": "ctx-upstream", "triggerid": "trig-upstream"}',
    )
    template = published.translate(event)[0]
    assert template.conversation_id == "ctx-upstream"
    assert template.trigger_id == "trig-upstream"


def test_artifact_published_bad_payload(published: ArtifactPublishedTranslator) -> None:
    event = IncomingEvent(type="cd.artifact.published.v1", data=b"<xml/>")
    template = published.translate(event)[0]
    assert template.conversation_id == ""
    assert template.trigger_id == ""


# ---------------------------------------------------------------------------
# Service deployed
# ---------------------------------------------------------------------------


def test_service_deployed_finishes_deployment(deployed: ServiceDeployedTranslator) -> None:
    event = IncomingEvent(type="cd.service.deployed.v1", extensions={"servicename": "shop"})
    templates = deployed.translate(event)

    assert len(templates) == 1
    template = templates[0]
    assert template.type == "sh.keptn.event.deployment.finished"
    assert template.data["service"] == "shop"
    assert template.data["status"] == "succeeded"
    assert template.data["result"] == "pass"
    deployment = template.data["deployment"]
    assert deployment["deploymentstrategy"] == "direct"
    assert deployment["deploymentURIsLocal"] == ["http://shop-127.0.0.1.nip.io"]
    assert deployment["deploymentURIsPublic"] == ["http://shop-127.0.0.1.nip.io"]
    assert deployment["deploymentNames"] == ["shop"]
    assert deployment["gitCommit"] == "main"


def test_service_deployed_uris_are_deterministic(deployed: ServiceDeployedTranslator) -> None:
    event = IncomingEvent(type="cd.service.deployed.v1", extensions={"servicename": "shop"})
    first = deployed.translate(event)[0].data["deployment"]
    second = deployed.translate(event)[0].data["deployment"]
    assert first["deploymentURIsLocal"] == second["deploymentURIsLocal"]
    assert first["deploymentURIsPublic"] == second["deploymentURIsPublic"]
    assert first["deploymentURIsLocal"] == [deployment_url("shop")]


def test_service_deployed_custom_url_pattern() -> None:
    translator = ServiceDeployedTranslator("cde", "production", target_url_pattern="https://{service}.example.com")
    event = IncomingEvent(type="cd.service.deployed.v1", extensions={"servicename": "shop"})
    deployment = translator.translate(event)[0].data["deployment"]
    assert deployment["deploymentURIsLocal"] == ["https://shop.example.com"]


def test_service_deployed_fallback_name(
    deployed: ServiceDeployedTranslator, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level("WARNING"):
        template = deployed.translate(IncomingEvent(type="cd.service.deployed.v1"))[0]

    assert template.data["service"] == "poc"
    assert template.data["deployment"]["deploymentURIsLocal"] == ["http://poc-127.0.0.1.nip.io"]
    assert "no service name" in caplog.text.lower()


def test_service_deployed_reads_pipeline_ids(deployed: ServiceDeployedTranslator) -> None:
    event = IncomingEvent(
        type="cd.service.deployed.v1",
        extensions={"servicename": "shop"},
        data=_pipeline_payload(
            {"name": "sh.keptn.context", "value": "abc"},
            {"name": "sh.keptn.trigger.id", "value": "xyz"},
            {"name": "unrelated", "value": "ignored"},
        ),
    )
    template = deployed.translate(event)[0]
    assert template.conversation_id == "abc"
    assert template.trigger_id == "xyz"


def test_service_deployed_reads_short_result_names(deployed: ServiceDeployedTranslator) -> None:
    event = IncomingEvent(
        type="cd.service.deployed.v1",
        extensions={"servicename": "shop"},
        data=_pipeline_payload(
            {"name": "context", "value": "abc"},
            {"name": "trigger-id", "value": "xyz"},
        ),
    )
    template = deployed.translate(event)[0]
    assert template.conversation_id == "abc"
    assert template.trigger_id == "xyz"


def test_service_deployed_broken_pipeline_run(deployed: ServiceDeployedTranslator) -> None:
    event = IncomingEvent(
        type="cd.service.deployed.v1",
        extensions={"servicename": "shop"},
        data=b'{"pipelinerun": "{not json"}',
    )
    template = deployed.translate(event)[0]
    assert template.data["service"] == "shop"
    assert template.conversation_id == ""
    assert template.trigger_id == ""
