"""Shared fixtures: stub senders, translators and settings."""

from collections.abc import Callable, Iterator

import pytest

from cdf_translator.config import Settings, get_settings
from cdf_translator.errors import SendError
from cdf_translator.models.events import IncomingEvent, OutgoingEvent, OutgoingEventTemplate
from cdf_translator.senders.base import BaseSender
from cdf_translator.translators.base import BaseTranslator


class StubSender(BaseSender):
    """Records sent events and answers with canned Keptn contexts."""

    def __init__(self, contexts: list[str] | None = None, fail_on: int | None = None):
        self.sent: list[OutgoingEvent] = []
        self._contexts = list(contexts or [])
        self._fail_on = fail_on

    @property
    def name(self) -> str:
        return "stub"

    @property
    def enabled(self) -> bool:
        return True

    async def send(self, event: OutgoingEvent) -> str:
        self.sent.append(event)
        attempt = len(self.sent)
        if attempt == self._fail_on:
            raise SendError(f"send {attempt} rejected")
        if attempt <= len(self._contexts):
            return self._contexts[attempt - 1]
        return ""


class StaticTranslator(BaseTranslator):
    """Returns a fixed list of templates regardless of the event."""

    def __init__(self, templates: list[OutgoingEventTemplate]):
        super().__init__("cde", "production")
        self._templates = templates

    @property
    def name(self) -> str:
        return "static"

    def translate(self, event: IncomingEvent) -> list[OutgoingEventTemplate]:
        return [template.model_copy() for template in self._templates]


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> Iterator[None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def make_sender() -> Callable[..., StubSender]:
    return StubSender


@pytest.fixture
def make_translator() -> Callable[[list[OutgoingEventTemplate]], StaticTranslator]:
    return StaticTranslator


@pytest.fixture
def deployment_template() -> Callable[..., OutgoingEventTemplate]:
    """Factory for valid deployment.started templates."""

    def _make(service: str = "shop", **kwargs: str) -> OutgoingEventTemplate:
        return OutgoingEventTemplate(
            type="sh.keptn.event.deployment.started",
            data={"project": "cde", "stage": "production", "service": service},
            **kwargs,
        )

    return _make
