"""tyrell public interface for submitting chat requests."""

import asyncio
from abc import ABC

from tyrell.builder import ChatRequest
from tyrell.config import FrozenSDKSettings, get_sdk_config
from tyrell.logger import logger
from tyrell.schemas import ChatResponse
from tyrell.utils import Endpoint, send_messages_request


class ClientBase(ABC):
    """Base class for messages API clients."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        settings: FrozenSDKSettings | None = None,
    ):
        """Initialize a client.

        Values not passed explicitly are taken from a snapshot of the global
        SDK config, so later changes to ``tyrell.config.settings`` do not
        affect an existing client.

        Args:
            api_key: Key sent as ``x-api-key``.
            base_url: Scheme and host of the API, e.g. ``https://api.anthropic.com``.
            timeout: Seconds to wait for the endpoint before giving up.
            settings: Config snapshot to use instead of the global one.
        """
        api_settings = (settings or get_sdk_config()).api

        if api_key is None and api_settings.api_key is not None:
            api_key = api_settings.api_key.get_secret_value()
        self._api_key = api_key
        self.api_version = api_settings.api_version
        self.timeout = timeout if timeout is not None else api_settings.timeout
        self.endpoint = Endpoint(base_url=base_url or api_settings.base_url, messages_path=api_settings.messages_path)

        if not self._api_key:
            logger.warning("No API key configured. Set ANTHROPIC_API_KEY or pass api_key explicitly")

    def __repr__(self) -> str:
        return f"{type(self).__name__}(url={self.endpoint.messages_url!r}, timeout={self.timeout})"

    def _submit(self, request: ChatRequest) -> ChatResponse:
        if not isinstance(request, ChatRequest):
            raise TypeError(f"Expected a ChatRequest built with RequestBuilder.build(), got {type(request).__name__}")

        return send_messages_request(
            self.endpoint,
            request,
            api_key=self._api_key,
            api_version=self.api_version,
            timeout=self.timeout,
        )


class Client(ClientBase):
    """Synchronous messages API client."""

    def submit(self, request: ChatRequest) -> ChatResponse:
        """Send a chat request and wait for the reply.

        Exactly one HTTP call is made; failures are not retried.

        Args:
            request: A validated chat request.

        Returns:
            The parsed response.

        Raises:
            TransportError: If the endpoint could not be reached.
            RemoteError: If the endpoint reported a failure.
            ProtocolError: If the reply could not be parsed.
        """
        return self._submit(request)


class AsyncClient(ClientBase):
    """Asyncio-friendly messages API client."""

    async def submit(self, request: ChatRequest) -> ChatResponse:
        """Send a chat request without blocking the event loop.

        Args:
            request: A validated chat request.

        Returns:
            The parsed response.

        Raises:
            TransportError: If the endpoint could not be reached.
            RemoteError: If the endpoint reported a failure.
            ProtocolError: If the reply could not be parsed.
        """
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, self._submit, request)
