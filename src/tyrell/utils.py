import json
import time
import urllib.error
import urllib.request
from dataclasses import dataclass
from http.client import HTTPException
from typing import TYPE_CHECKING

import pydantic

from tyrell.errors import ProtocolError, RemoteError, TransportError
from tyrell.logger import logger
from tyrell.schemas import ChatResponse

if TYPE_CHECKING:
    from tyrell.builder import ChatRequest


@dataclass(frozen=True)
class Endpoint:
    """Location of the messages endpoint."""

    base_url: str
    messages_path: str = "/v1/messages"

    @property
    def messages_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/{self.messages_path.lstrip('/')}"


def build_headers(api_key: str | None, api_version: str) -> dict[str, str]:
    headers = {
        "content-type": "application/json",
        "anthropic-version": api_version,
    }
    if api_key:
        headers["x-api-key"] = api_key
    return headers


def _decode(raw: bytes) -> str:
    return raw.decode("utf-8", errors="replace")


def remote_error_from_body(status: int, text: str) -> RemoteError:
    """Build a ``RemoteError`` from an error reply, reading the error envelope when there is one."""
    try:
        body = json.loads(text)
    except json.JSONDecodeError:
        return RemoteError(status, None, text.strip() or "no detail supplied", text)

    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return RemoteError(status, error.get("type"), str(error.get("message", "")), body)
    return RemoteError(status, None, text.strip(), body)


def parse_chat_response(text: str) -> ChatResponse:
    """Parse a successful reply body.

    Raises:
        RemoteError: If the body is an error envelope.
        ProtocolError: If the body is not a chat response.
    """
    try:
        body = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ProtocolError(f"Response is not valid JSON: {exc}", text) from exc

    if isinstance(body, dict) and body.get("type") == "error":
        raise remote_error_from_body(200, text)

    try:
        return ChatResponse.model_validate(body)
    except pydantic.ValidationError as exc:
        raise ProtocolError(f"Unexpected response shape: {exc.error_count()} validation error(s)", text) from exc


def send_messages_request(
    endpoint: Endpoint,
    request: "ChatRequest",
    *,
    api_key: str | None,
    api_version: str,
    timeout: float,
) -> ChatResponse:
    """Send one request to the messages endpoint and parse the reply.

    Args:
        endpoint: Where to send the request.
        request: A validated chat request.
        api_key: Key for the ``x-api-key`` header, if any.
        api_version: Value of the ``anthropic-version`` header.
        timeout: Socket timeout in seconds.

    Returns:
        The parsed response.

    Raises:
        TransportError: If no response was obtained.
        RemoteError: If the endpoint reported a failure.
        ProtocolError: If the reply could not be parsed.
    """
    url = endpoint.messages_url
    http_request = urllib.request.Request(
        url,
        data=json.dumps(request.to_payload()).encode("utf-8"),
        headers=build_headers(api_key, api_version),
        method="POST",
    )

    logger.debug(f"POST {url} model={request.model} messages={len(request.messages)}")
    start_time = time.monotonic()
    try:
        with urllib.request.urlopen(http_request, timeout=timeout) as response:
            status = response.status
            text = _decode(response.read())
    except urllib.error.HTTPError as exc:
        try:
            text = _decode(exc.read())
        except (HTTPException, OSError) as read_exc:
            raise RemoteError(
                exc.code, None, f"error reply could not be read: {type(read_exc).__name__}: {read_exc}"
            ) from read_exc
        logger.debug(f"POST {url} failed with status {exc.code} after {time.monotonic() - start_time:.2f}s")
        raise remote_error_from_body(exc.code, text) from exc
    except urllib.error.URLError as exc:
        raise TransportError(f"Could not reach {url}: {exc.reason}") from exc
    except (HTTPException, OSError) as exc:
        raise TransportError(f"Connection to {url} failed: {type(exc).__name__}: {exc}") from exc

    logger.debug(f"POST {url} returned {status} after {time.monotonic() - start_time:.2f}s")
    return parse_chat_response(text)
