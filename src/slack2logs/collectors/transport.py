"""Slack transport for slack2logs.

Wraps the Slack Web API client (history, replies and metadata queries) and
the Socket Mode client (live event stream and acknowledgements). Web API
calls are retried on transient failures; rate limiting is reported as
RateLimitedError so collectors can back off at their own pace.
"""

import asyncio
from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass, field
from typing import Any

import aiohttp
import structlog
from slack_sdk.errors import SlackApiError, SlackClientError
from slack_sdk.socket_mode.aiohttp import SocketModeClient
from slack_sdk.socket_mode.request import SocketModeRequest
from slack_sdk.socket_mode.response import SocketModeResponse
from slack_sdk.web.async_client import AsyncWebClient
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from slack2logs.config import SlackSettings
from slack2logs.errors import LookupFailedError, RateLimitedError, TransportError

logger = structlog.get_logger(__name__)

RATE_LIMITED_ERROR = "ratelimited"
HTTP_TOO_MANY_REQUESTS = 429


@dataclass
class Page:
    """One page of a paginated history or replies query."""

    items: list[dict[str, Any]] = field(default_factory=list)
    has_more: bool = False
    next_cursor: str = ""


def is_rate_limited(error: SlackApiError) -> bool:
    """Check whether a Slack API error reports throttling."""
    response = error.response
    if response is None:
        return False
    if getattr(response, "status_code", None) == HTTP_TOO_MANY_REQUESTS:
        return True
    return response.get("error") == RATE_LIMITED_ERROR


def retry_after_seconds(error: SlackApiError) -> float | None:
    """Read the Retry-After header of a rate-limited response, if present."""
    headers = getattr(error.response, "headers", None)
    if not isinstance(headers, Mapping):
        return None
    value = headers.get("Retry-After") or headers.get("retry-after")
    if not isinstance(value, (str, int, float)):
        return None
    try:
        return float(value)
    except ValueError:
        return None


def _is_transient(error: BaseException) -> bool:
    if isinstance(error, (TimeoutError, aiohttp.ClientConnectionError)):
        return True
    if isinstance(error, SlackApiError) and error.response is not None:
        status = getattr(error.response, "status_code", None)
        return isinstance(status, int) and status >= 500
    return False


class SlackTransport:
    """Access to the Slack Web API and the Socket Mode event stream.

    Example:
        ```python
        transport = SlackTransport(settings.slack)
        page = await transport.fetch_history("C001", cursor=None, limit=500)
        for message in page.items:
            ...
        ```
    """

    def __init__(
        self,
        settings: SlackSettings,
        web_client: AsyncWebClient | None = None,
        socket_client: SocketModeClient | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            settings: Slack settings holding the bot and app tokens.
            web_client: Web API client. If None, one is built from the bot token.
            socket_client: Socket Mode client. If None, one is built on connect().
        """
        self._settings = settings
        self._web_client = web_client or AsyncWebClient(
            token=settings.bot_token.get_secret_value()
        )
        self._socket_client = socket_client
        self._requests: asyncio.Queue[SocketModeRequest] = asyncio.Queue()

    @property
    def web_client(self) -> AsyncWebClient:
        """Get the Slack async web client."""
        return self._web_client

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception(_is_transient),
        before_sleep=before_sleep_log(logger, structlog.stdlib.logging.WARNING),
        reraise=True,
    )
    async def _call(self, method: str, **params: Any) -> dict[str, Any]:
        """Call a Web API method and return the response payload.

        Raises:
            SlackApiError: If the API request fails after retries.
        """
        response = await getattr(self._web_client, method)(**params)
        return response.data

    async def validate_connection(self) -> bool:
        """Validate that the bot token works by calling auth.test.

        Returns:
            True if the connection is valid, False otherwise.
        """
        try:
            data = await self._call("auth_test")
        except (SlackApiError, aiohttp.ClientError, TimeoutError) as e:
            logger.error("slack_connection_invalid", error=str(e))
            return False
        if not data.get("ok"):
            return False
        logger.info(
            "slack_connection_valid",
            team=data.get("team"),
            user=data.get("user"),
            bot_id=data.get("bot_id"),
        )
        return True

    async def fetch_history(
        self,
        channel_id: str,
        cursor: str | None = None,
        limit: int = 500,
    ) -> Page:
        """Fetch one page of channel history.

        Raises:
            RateLimitedError: If Slack throttled the request.
            TransportError: If the request failed.
        """
        params: dict[str, Any] = {
            "channel": channel_id,
            "limit": limit,
            "inclusive": True,
            "include_all_metadata": False,
        }
        if cursor:
            params["cursor"] = cursor
        return await self._fetch_page("conversations_history", params)

    async def fetch_replies(
        self,
        channel_id: str,
        thread_ts: str,
        cursor: str | None = None,
        limit: int = 500,
    ) -> Page:
        """Fetch one page of replies of a thread.

        Raises:
            RateLimitedError: If Slack throttled the request.
            TransportError: If the request failed.
        """
        params: dict[str, Any] = {
            "channel": channel_id,
            "ts": thread_ts,
            "limit": limit,
            "inclusive": True,
            "include_all_metadata": False,
        }
        if cursor:
            params["cursor"] = cursor
        return await self._fetch_page("conversations_replies", params)

    async def _fetch_page(self, method: str, params: dict[str, Any]) -> Page:
        try:
            data = await self._call(method, **params)
        except SlackApiError as e:
            if is_rate_limited(e):
                raise RateLimitedError(method, retry_after_seconds(e)) from e
            raise TransportError(f"{method} failed: {e}") from e
        except (aiohttp.ClientError, TimeoutError) as e:
            raise TransportError(f"{method} failed: {e}") from e

        response_metadata = data.get("response_metadata") or {}
        return Page(
            items=list(data.get("messages") or []),
            has_more=bool(data.get("has_more", False)),
            next_cursor=response_metadata.get("next_cursor") or "",
        )

    async def fetch_user_info(self, user_id: str) -> dict[str, Any]:
        """Fetch a user object.

        Raises:
            RateLimitedError: If Slack throttled the request.
            LookupFailedError: If the user could not be fetched.
        """
        data = await self._fetch_object("users_info", "user", user_id, user=user_id)
        return data.get("user") or {}

    async def fetch_conversation_info(self, channel_id: str) -> dict[str, Any]:
        """Fetch a channel object.

        Raises:
            RateLimitedError: If Slack throttled the request.
            LookupFailedError: If the channel could not be fetched.
        """
        data = await self._fetch_object(
            "conversations_info", "channel", channel_id, channel=channel_id
        )
        return data.get("channel") or {}

    async def _fetch_object(
        self, method: str, kind: str, object_id: str, **params: Any
    ) -> dict[str, Any]:
        if not object_id:
            raise LookupFailedError(kind, object_id, "empty id")
        try:
            return await self._call(method, **params)
        except SlackApiError as e:
            if is_rate_limited(e):
                raise RateLimitedError(method, retry_after_seconds(e)) from e
            raise LookupFailedError(kind, object_id, str(e)) from e
        except (aiohttp.ClientError, TimeoutError) as e:
            raise LookupFailedError(kind, object_id, str(e)) from e

    async def connect(self) -> None:
        """Open the Socket Mode connection and start receiving events.

        Raises:
            TransportError: If the app token is missing or the connection fails.
        """
        if self._socket_client is None:
            if self._settings.app_token is None:
                raise TransportError("app token is required to run socket mode")
            self._socket_client = SocketModeClient(
                app_token=self._settings.app_token.get_secret_value(),
                web_client=self._web_client,
            )
        self._socket_client.socket_mode_request_listeners.append(self._enqueue_request)

        try:
            await self._socket_client.connect()
        except (SlackClientError, aiohttp.ClientError, TimeoutError) as e:
            raise TransportError(f"error run slack socket client: {e}") from e

        logger.info("socket_mode_connected")

    async def disconnect(self) -> None:
        """Close the Socket Mode connection, if open."""
        if self._socket_client is None:
            return
        await self._socket_client.close()
        logger.info("socket_mode_disconnected")

    async def _enqueue_request(
        self, client: SocketModeClient, request: SocketModeRequest
    ) -> None:
        await self._requests.put(request)

    async def events(self) -> AsyncIterator[SocketModeRequest]:
        """Yield Socket Mode requests as they arrive."""
        while True:
            yield await self._requests.get()

    async def ack(self, envelope_id: str) -> None:
        """Acknowledge a Socket Mode envelope.

        Raises:
            TransportError: If the acknowledgement could not be sent.
        """
        if self._socket_client is None:
            raise TransportError("socket mode client is not connected")
        try:
            await self._socket_client.send_socket_mode_response(
                SocketModeResponse(envelope_id=envelope_id)
            )
        except (SlackClientError, aiohttp.ClientError, ConnectionError, TimeoutError) as e:
            raise TransportError(f"error ack to the channel: {e}") from e


__all__ = ["Page", "SlackTransport", "is_rate_limited"]
