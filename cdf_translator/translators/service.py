"""Translator for CDF service events."""

import logging

from cdf_translator.extraction import (
    SERVICE_NAME,
    extract_pipeline_results,
    first_result,
    get_extension,
)
from cdf_translator.models.events import IncomingEvent, OutgoingEventTemplate
from cdf_translator.models.keptn import (
    RESULT_PASS,
    STATUS_SUCCEEDED,
    DeploymentFinishedData,
    DeploymentFinishedEventData,
    OutgoingEventType,
    keptn_event_type,
)
from cdf_translator.translators.base import BaseTranslator

logger = logging.getLogger(__name__)

DEFAULT_TARGET_URL_PATTERN = "http://{service}-127.0.0.1.nip.io"
DEFAULT_FALLBACK_SERVICE = "poc"

# Pipeline result names carrying Keptn correlation ids
CONTEXT_RESULT_NAMES = ("sh.keptn.context", "context")
TRIGGER_ID_RESULT_NAMES = ("sh.keptn.trigger.id", "trigger-id")


def deployment_url(service: str, pattern: str = DEFAULT_TARGET_URL_PATTERN) -> str:
    return pattern.format(service=service)


class ServiceDeployedTranslator(BaseTranslator):
    """Reports a deployed service as a finished Keptn deployment."""

    def __init__(
        self,
        project: str,
        stage: str,
        fallback_service: str = DEFAULT_FALLBACK_SERVICE,
        target_url_pattern: str = DEFAULT_TARGET_URL_PATTERN,
    ):
        super().__init__(project, stage)
        self._fallback_service = fallback_service
        self._target_url_pattern = target_url_pattern

    @property
    def name(self) -> str:
        return "service-deployed"

    def translate(self, event: IncomingEvent) -> list[OutgoingEventTemplate]:
        service = get_extension(event, SERVICE_NAME)
        if not service:
            logger.warning(
                f"No service name found in event {event.id or event.type}, "
                f"using \"{self._fallback_service}\""
            )
            service = self._fallback_service

        target_url = deployment_url(service, self._target_url_pattern)

        # Result is always reported as passed
        data = DeploymentFinishedEventData(
            project=self._project,
            stage=self._stage,
            service=service,
            status=STATUS_SUCCEEDED,
            result=RESULT_PASS,
            deployment=DeploymentFinishedData(
                deployment_strategy="direct",
                deployment_uris_local=[target_url],
                deployment_uris_public=[target_url],
                deployment_names=[service],
                git_commit="main",
            ),
        )
        template = OutgoingEventTemplate(
            type=keptn_event_type(OutgoingEventType.DEPLOYMENT_FINISHED),
            data=data.to_data(),
        )

        results = extract_pipeline_results(event)
        keptn_context = first_result(results, *CONTEXT_RESULT_NAMES)
        if keptn_context:
            logger.info(f"Received context: {keptn_context}")
            template.conversation_id = keptn_context
        trigger_id = first_result(results, *TRIGGER_ID_RESULT_NAMES)
        if trigger_id:
            logger.info(f"Received trigger id: {trigger_id}")
            template.trigger_id = trigger_id

        return [template]
