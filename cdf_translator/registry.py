"""Event routing and correlated dispatch to Keptn."""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel

from cdf_translator.config import Settings
from cdf_translator.errors import EventBuildError
from cdf_translator.models.events import (
    DispatchResult,
    DispatchStatus,
    IncomingEvent,
    OutgoingEvent,
    SentEvent,
)
from cdf_translator.models.routes import DEFAULT_ROUTES, RoutesConfig
from cdf_translator.senders.base import BaseSender
from cdf_translator.translators.artifact import (
    ArtifactPackagedTranslator,
    ArtifactPublishedTranslator,
)
from cdf_translator.translators.base import BaseTranslator
from cdf_translator.translators.service import ServiceDeployedTranslator

logger = logging.getLogger(__name__)

DEFAULT_EVENT_SOURCE = "keptn-cdf-translator"


def load_routes_config(config_path: str | Path) -> RoutesConfig:
    """Load routing configuration from YAML file."""
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Routes config not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    return RoutesConfig.model_validate(data)


def create_translator(name: str, settings: Settings) -> BaseTranslator:
    """Create a translator instance by name."""
    if name == "artifact-packaged":
        return ArtifactPackagedTranslator(settings.keptn_project, settings.keptn_stage)
    elif name == "artifact-published":
        return ArtifactPublishedTranslator(settings.keptn_project, settings.keptn_stage)
    elif name == "service-deployed":
        return ServiceDeployedTranslator(
            settings.keptn_project,
            settings.keptn_stage,
            fallback_service=settings.fallback_service_name,
            target_url_pattern=settings.target_url_pattern,
        )
    else:
        raise ValueError(f"Unknown translator: {name}")


class CorrelationState(BaseModel):
    """Keptn identifiers threaded through the events of one dispatch."""

    conversation_id: str = ""
    trigger_id: str = ""


class EventHandlerRegistry:
    """Routes incoming events to translators and sends the results in order."""

    def __init__(self, sender: BaseSender, source: str = DEFAULT_EVENT_SOURCE):
        self._sender = sender
        self._source = source
        self._translators: dict[str, BaseTranslator] = {}

    @property
    def event_types(self) -> list[str]:
        return list(self._translators)

    def register(self, event_type: str, translator: BaseTranslator) -> None:
        """Register a translator; a later registration for the same type replaces it."""
        previous = self._translators.get(event_type)
        if previous is not None:
            logger.warning(f"Replacing translator {previous.name} for {event_type} with {translator.name}")
        self._translators[event_type] = translator
        logger.debug(f"Registered translator {translator.name} for {event_type}")

    def translator_for(self, event_type: str) -> BaseTranslator | None:
        return self._translators.get(event_type)

    async def handle(self, event: IncomingEvent) -> DispatchResult:
        """Translate an event and send the resulting Keptn events sequentially.

        The first build or send failure stops the dispatch. Events already
        sent stay sent.
        """
        translator = self._translators.get(event.type)
        if translator is None:
            logger.info(f"No translator for type: {event.type}")
            return DispatchResult(status=DispatchStatus.UNHANDLED, event_type=event.type)

        try:
            templates = translator.translate(event)
        except Exception as e:
            logger.exception(f"Translator {translator.name} failed on {event.type}: {e}")
            return DispatchResult(
                status=DispatchStatus.BUILD_FAILED, event_type=event.type, error=str(e)
            )

        logger.info(f"Translated {event.type} into {len(templates)} Keptn event(s)")

        state = CorrelationState()
        sent: list[SentEvent] = []
        for index, template in enumerate(templates):
            try:
                outgoing = OutgoingEvent.from_template(
                    template,
                    source=self._source,
                    conversation_id=state.conversation_id,
                    trigger_id=state.trigger_id,
                )
            except EventBuildError as e:
                logger.error(f"Failed to build event {index + 1}/{len(templates)}: {e}")
                return DispatchResult(
                    status=DispatchStatus.BUILD_FAILED,
                    event_type=event.type,
                    sent=sent,
                    error=str(e),
                )

            # Identifiers supplied by the translator carry over to later events
            state.conversation_id = outgoing.shkeptncontext
            state.trigger_id = outgoing.triggeredid

            result = await self._sender.send_safe(outgoing)
            if not result.success:
                logger.error(
                    f"Failed to send {outgoing.type} ({index + 1}/{len(templates)}), "
                    f"skipping {len(templates) - index - 1} remaining event(s)"
                )
                return DispatchResult(
                    status=DispatchStatus.SEND_FAILED,
                    event_type=event.type,
                    sent=sent,
                    error=result.error,
                )

            # Every returned context replaces the conversation id
            if result.keptn_context:
                state.conversation_id = result.keptn_context

            sent.append(
                SentEvent(type=outgoing.type, id=outgoing.id, keptn_context=result.keptn_context)
            )
            logger.info(f"Sent {outgoing.type} with context {state.conversation_id or '<new>'}")

        return DispatchResult(status=DispatchStatus.OK, event_type=event.type, sent=sent)


def build_registry(settings: Settings, sender: BaseSender) -> EventHandlerRegistry:
    """Create a registry populated from the routes file, or the default routes."""
    try:
        routes_config = load_routes_config(settings.routes_config_path)
        logger.info(f"Loaded {len(routes_config.routes)} route(s) from {settings.routes_config}")
    except FileNotFoundError:
        logger.info(f"Routes config {settings.routes_config} not found, using default routes")
        routes_config = DEFAULT_ROUTES

    registry = EventHandlerRegistry(sender, source=settings.event_source)
    for route in routes_config.routes:
        registry.register(route.event_type, create_translator(route.translator, settings))

    logger.info(f"Registry initialized with {len(registry.event_types)} event type(s)")
    return registry
