"""VictoriaLogs client importing records through the JSON-line endpoint."""

from typing import Any

import aiohttp
import structlog

from slack2logs.config import VictoriaLogsSettings
from slack2logs.errors import DeliveryError
from slack2logs.metrics import DELIVERY_ERRORS, MESSAGES_DELIVERY
from slack2logs.schemas.record import LogRecord

logger = structlog.get_logger(__name__)

IMPORT_PATH = "/insert/jsonline"
IMPORT_PARAMS = {
    "_stream_fields": "channel_id,channel_name",
    "_msg_field": "text",
    "_time_field": "ts",
}


class VictoriaLogsClient:
    """Send records to VictoriaLogs, one JSON line per request.

    Example:
        ```python
        async with VictoriaLogsClient(settings.vmlogs) as client:
            await client.import_record(record)
        ```
    """

    def __init__(
        self,
        settings: VictoriaLogsSettings,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            settings: VictoriaLogs address, credentials and timeout.
            session: HTTP session. If None, one is created on first use and
                closed by close().
        """
        self._settings = settings
        self._session = session
        self._owns_session = session is None
        self._auth: aiohttp.BasicAuth | None = None
        if settings.user and settings.password is not None:
            self._auth = aiohttp.BasicAuth(settings.user, settings.password.get_secret_value())

    @property
    def url(self) -> str:
        """Full import URL."""
        return self._settings.addr.rstrip("/") + IMPORT_PATH

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._settings.timeout)
            )
        return self._session

    async def import_record(self, record: LogRecord) -> None:
        """Import a single record.

        Raises:
            DeliveryError: If the request failed or was not accepted.
        """
        MESSAGES_DELIVERY.inc()
        body = record.model_dump_json() + "\n"
        kwargs: dict[str, Any] = {
            "params": IMPORT_PARAMS,
            "data": body.encode(),
            "headers": {"Content-Type": "application/stream+json"},
        }
        if self._auth is not None:
            kwargs["auth"] = self._auth

        try:
            async with self._get_session().post(self.url, **kwargs) as response:
                if response.status != 200:
                    text = await response.text()
                    DELIVERY_ERRORS.inc()
                    raise DeliveryError(
                        f"unexpected response code {response.status}: {text.strip()}"
                    )
        except (aiohttp.ClientError, TimeoutError) as e:
            DELIVERY_ERRORS.inc()
            raise DeliveryError(f"cannot send request: {e}") from e

        logger.debug("record_imported", thread_id=record.thread_id, channel_id=record.channel_id)

    async def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "VictoriaLogsClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
