"""Base class for CDF to Keptn translators."""

from abc import ABC, abstractmethod

from cdf_translator.models.events import IncomingEvent, OutgoingEventTemplate


class BaseTranslator(ABC):
    """Abstract base class for event translators.

    Translators map one incoming event onto zero or more Keptn event
    templates. They never talk to the Keptn API themselves.
    """

    def __init__(self, project: str, stage: str):
        self._project = project
        self._stage = stage

    @property
    @abstractmethod
    def name(self) -> str:
        """Translator name used in route configuration."""
        ...

    @abstractmethod
    def translate(self, event: IncomingEvent) -> list[OutgoingEventTemplate]:
        """Translate an incoming event into ordered Keptn event templates."""
        ...
