"""Unit tests for SlackTransport and SlackMetadataResolver."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from multidict import CIMultiDict, CIMultiDictProxy
from slack_sdk.errors import SlackApiError

from slack2logs.collectors.resolver import SlackMetadataResolver
from slack2logs.collectors.transport import (
    SlackTransport,
    is_rate_limited,
    retry_after_seconds,
)
from slack2logs.config import Settings
from slack2logs.errors import LookupFailedError, RateLimitedError, TransportError
from tests.conftest import create_slack_response, history_page


def slack_error(error: str, status_code: int = 200) -> SlackApiError:
    response = create_slack_response({"error": error}, ok=False)
    response.status_code = status_code
    response.headers = {}
    return SlackApiError(error, response)


class TestPagination:
    """Tests for history and replies pages."""

    @pytest.mark.asyncio
    async def test_fetch_history_page(
        self, transport: SlackTransport, mock_slack_client: AsyncMock
    ) -> None:
        mock_slack_client.conversations_history.return_value = history_page(
            [{"ts": "1.0"}, {"ts": "2.0"}], "cursor-2"
        )

        page = await transport.fetch_history("C001", cursor=None, limit=500)

        assert [m["ts"] for m in page.items] == ["1.0", "2.0"]
        assert page.has_more is True
        assert page.next_cursor == "cursor-2"
        mock_slack_client.conversations_history.assert_awaited_once_with(
            channel="C001", limit=500, inclusive=True, include_all_metadata=False
        )

    @pytest.mark.asyncio
    async def test_fetch_replies_passes_cursor(
        self, transport: SlackTransport, mock_slack_client: AsyncMock
    ) -> None:
        mock_slack_client.conversations_replies.return_value = history_page([])

        page = await transport.fetch_replies("C001", "1.0", cursor="abc", limit=10)

        assert page.items == []
        assert page.has_more is False
        kwargs = mock_slack_client.conversations_replies.await_args.kwargs
        assert kwargs["ts"] == "1.0"
        assert kwargs["cursor"] == "abc"

    @pytest.mark.asyncio
    async def test_rate_limit_is_reported(
        self, transport: SlackTransport, mock_slack_client: AsyncMock
    ) -> None:
        error = slack_error("ratelimited", status_code=429)
        error.response.headers = {"Retry-After": "30"}
        mock_slack_client.conversations_history.side_effect = error

        with pytest.raises(RateLimitedError) as exc_info:
            await transport.fetch_history("C001")

        assert exc_info.value.retry_after == 30.0
        assert mock_slack_client.conversations_history.await_count == 1

    @pytest.mark.asyncio
    async def test_api_error_becomes_transport_error(
        self, transport: SlackTransport, mock_slack_client: AsyncMock
    ) -> None:
        mock_slack_client.conversations_replies.side_effect = slack_error("channel_not_found")

        with pytest.raises(TransportError, match="conversations_replies"):
            await transport.fetch_replies("C001", "1.0")

    def test_retry_after_from_aiohttp_headers(self) -> None:
        error = slack_error("ratelimited", status_code=429)
        error.response.headers = CIMultiDictProxy(CIMultiDict({"retry-after": "12"}))

        assert retry_after_seconds(error) == 12.0

    def test_is_rate_limited(self) -> None:
        assert is_rate_limited(slack_error("ratelimited"))
        assert is_rate_limited(slack_error("", status_code=429))
        assert not is_rate_limited(slack_error("not_in_channel"))


class TestLookups:
    """Tests for metadata lookups and caching."""

    @pytest.mark.asyncio
    async def test_user_lookup_is_cached(
        self, transport: SlackTransport, mock_slack_client: AsyncMock
    ) -> None:
        mock_slack_client.users_info.return_value = create_slack_response(
            {
                "user": {
                    "id": "U001",
                    "profile": {"display_name": "John", "display_name_normalized": "john"},
                }
            }
        )
        resolver = SlackMetadataResolver(transport)

        first = await resolver.resolve_user("U001")
        second = await resolver.resolve_user("U001")

        assert first == second
        assert first.display_name == "John"
        assert first.display_name_normalized == "john"
        mock_slack_client.users_info.assert_awaited_once_with(user="U001")

    @pytest.mark.asyncio
    async def test_channel_lookup(
        self, transport: SlackTransport, mock_slack_client: AsyncMock
    ) -> None:
        mock_slack_client.conversations_info.return_value = create_slack_response(
            {"channel": {"id": "C001", "name": "general"}}
        )
        resolver = SlackMetadataResolver(transport)

        channel = await resolver.resolve_channel("C001")

        assert channel.name == "general"

    @pytest.mark.asyncio
    async def test_failed_lookup_is_not_cached(
        self, transport: SlackTransport, mock_slack_client: AsyncMock
    ) -> None:
        mock_slack_client.users_info.side_effect = [
            slack_error("user_not_found"),
            create_slack_response({"user": {"id": "U001", "profile": {}}}),
        ]
        resolver = SlackMetadataResolver(transport)

        with pytest.raises(LookupFailedError) as exc_info:
            await resolver.resolve_user("U001")
        user = await resolver.resolve_user("U001")

        assert exc_info.value.kind == "user"
        assert user.id == "U001"
        assert user.display_name == ""

    @pytest.mark.asyncio
    async def test_empty_user_id_fails_without_request(
        self, transport: SlackTransport, mock_slack_client: AsyncMock
    ) -> None:
        with pytest.raises(LookupFailedError):
            await transport.fetch_user_info("")

        mock_slack_client.users_info.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rate_limited_lookup(
        self, transport: SlackTransport, mock_slack_client: AsyncMock
    ) -> None:
        mock_slack_client.conversations_info.side_effect = slack_error("ratelimited")

        with pytest.raises(RateLimitedError):
            await transport.fetch_conversation_info("C001")


class TestSocketMode:
    """Tests for the Socket Mode connection and acknowledgements."""

    @pytest.mark.asyncio
    async def test_validate_connection(
        self, transport: SlackTransport, mock_slack_client: AsyncMock
    ) -> None:
        assert await transport.validate_connection() is True

        mock_slack_client.auth_test.return_value = create_slack_response({}, ok=False)
        assert await transport.validate_connection() is False

    @pytest.mark.asyncio
    async def test_connect_requires_app_token(
        self, settings: Settings, mock_slack_client: AsyncMock
    ) -> None:
        slack = settings.slack.model_copy(update={"app_token": None})
        transport = SlackTransport(slack, web_client=mock_slack_client)

        with pytest.raises(TransportError, match="app token"):
            await transport.connect()

    @pytest.mark.asyncio
    async def test_requests_are_streamed_and_acked(
        self, settings: Settings, mock_slack_client: AsyncMock
    ) -> None:
        socket_client = MagicMock()
        socket_client.socket_mode_request_listeners = []
        socket_client.connect = AsyncMock()
        socket_client.send_socket_mode_response = AsyncMock()
        transport = SlackTransport(
            settings.slack, web_client=mock_slack_client, socket_client=socket_client
        )

        await transport.connect()
        listener = socket_client.socket_mode_request_listeners[0]
        request = MagicMock(envelope_id="env-1")
        await listener(socket_client, request)

        received = await anext(transport.events())
        await transport.ack(received.envelope_id)

        assert received is request
        response = socket_client.send_socket_mode_response.await_args.args[0]
        assert response.envelope_id == "env-1"

    @pytest.mark.asyncio
    async def test_ack_without_connection_fails(self, transport: SlackTransport) -> None:
        with pytest.raises(TransportError):
            await transport.ack("env-1")
