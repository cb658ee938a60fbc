"""Keptn control-plane API sender."""

import logging

import httpx

from cdf_translator.errors import SendError
from cdf_translator.models.events import OutgoingEvent
from cdf_translator.senders.base import BaseSender

logger = logging.getLogger(__name__)

TOKEN_HEADER = "x-token"


class KeptnSender(BaseSender):
    """Posts events to the Keptn API ``/v1/event`` endpoint."""

    def __init__(
        self,
        endpoint: str,
        api_token: str = "",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._endpoint = endpoint.rstrip("/")
        self._api_token = api_token
        self._timeout = timeout
        self._transport = transport

    @property
    def name(self) -> str:
        return "keptn"

    @property
    def enabled(self) -> bool:
        return bool(self._endpoint)

    @property
    def event_url(self) -> str:
        return f"{self._endpoint}/v1/event"

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_token:
            headers[TOKEN_HEADER] = self._api_token
        return headers

    async def send(self, event: OutgoingEvent) -> str:
        logger.info(f"Emitting {event.type} ({event.id}) to {self.event_url}")

        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            try:
                response = await client.post(
                    self.event_url,
                    json=event.to_payload(),
                    headers=self._headers(),
                )
            except httpx.HTTPError as e:
                raise SendError(f"Keptn API unreachable: {e}") from e

            if response.is_error:
                raise SendError(
                    f"Keptn API returned {response.status_code}: {self._error_message(response)}"
                )

            try:
                result = response.json()
            except ValueError:
                result = {}

        keptn_context = str(result.get("keptnContext") or "") if isinstance(result, dict) else ""
        if keptn_context:
            logger.info(f"Got Keptn context: {keptn_context}")
        return keptn_context

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return response.text
