"""Translators for CDF artifact events."""

import logging

from cdf_translator.extraction import (
    ARTIFACT_ID,
    ARTIFACT_NAME,
    get_extension,
    payload_string,
)
from cdf_translator.models.events import IncomingEvent, OutgoingEventTemplate
from cdf_translator.models.keptn import (
    STATUS_UNKNOWN,
    ConfigurationChange,
    DeploymentStartedEventData,
    DeploymentTriggeredEventData,
    OutgoingEventType,
    keptn_event_type,
)
from cdf_translator.translators.base import BaseTranslator

logger = logging.getLogger(__name__)

DEPLOYMENT_MESSAGE = "deployment handled by Tekton"


class ArtifactPackagedTranslator(BaseTranslator):
    """Starts a Keptn delivery sequence for a freshly packaged artifact."""

    @property
    def name(self) -> str:
        return "artifact-packaged"

    def translate(self, event: IncomingEvent) -> list[OutgoingEventTemplate]:
        artifact_id = get_extension(event, ARTIFACT_ID) or ""
        artifact_name = get_extension(event, ARTIFACT_NAME) or ""

        data = DeploymentTriggeredEventData(
            project=self._project,
            stage=self._stage,
            service=artifact_name,
            message=DEPLOYMENT_MESSAGE,
            configuration_change=ConfigurationChange(values={"image": artifact_id}),
        )
        template = OutgoingEventTemplate(
            type=keptn_event_type(OutgoingEventType.DELIVERY_TRIGGERED, stage=self._stage),
            data=data.to_data(),
        )
        logger.info(f"Artifact {artifact_name} packaged as {artifact_id}, triggering delivery")
        return [template]


class ArtifactPublishedTranslator(BaseTranslator):
    """Reports a published artifact as a started Keptn deployment."""

    @property
    def name(self) -> str:
        return "artifact-published"

    def translate(self, event: IncomingEvent) -> list[OutgoingEventTemplate]:
        artifact_name = get_extension(event, ARTIFACT_NAME) or ""

        data = DeploymentStartedEventData(
            project=self._project,
            stage=self._stage,
            service=artifact_name,
            message=DEPLOYMENT_MESSAGE,
            status=STATUS_UNKNOWN,
        )
        template = OutgoingEventTemplate(
            type=keptn_event_type(OutgoingEventType.DEPLOYMENT_STARTED),
            data=data.to_data(),
        )

        keptn_context = payload_string(event, "shkeptncontext")
        if keptn_context:
            logger.info(f"Found Keptn context {keptn_context}")
            template.conversation_id = keptn_context
        trigger_id = payload_string(event, "triggerid")
        if trigger_id:
            logger.info(f"Found Keptn trigger id {trigger_id}")
            template.trigger_id = trigger_id

        return [template]
