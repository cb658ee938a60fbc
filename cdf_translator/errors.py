"""Exceptions raised while translating and delivering events."""


class TranslatorError(Exception):
    """Base class for translator errors."""


class InvalidEventError(TranslatorError):
    """Inbound request could not be decoded as a CloudEvent."""


class EventBuildError(TranslatorError):
    """Outgoing event failed validation when finalized."""


class SendError(TranslatorError):
    """Downstream API rejected the event or could not be reached."""
