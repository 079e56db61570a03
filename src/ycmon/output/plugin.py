"""
Yandex Cloud Monitoring output.

Lifecycle follows the host agent's output contract: `init` once, `connect`
once, then `write` per flush, and `close` on shutdown. Calls are expected
one at a time; nothing here is locked.
"""

import asyncio
import logging
from datetime import datetime
from typing import Callable, Iterable, Optional

import aiohttp

from .config import EndpointConfig, OutputConfig
from .credentials import CredentialCache
from .exceptions import MetadataMalformedError, YcmonError
from .metadata import MetadataClient
from .selfstat import (
    FIELDS_SKIPPED_TOTAL,
    METRIC_OUTSIDE_WINDOW,
    POINTS_WRITTEN_TOTAL,
    WRITES_TOTAL,
)
from .sender import DeliveryClient, SendResult
from .translator import translate

logger = logging.getLogger(__name__)


class YandexCloudMonitoring:
    """Publishes host metrics to the Monitoring custom metrics service."""

    def __init__(
        self,
        config: Optional[OutputConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.config = config or OutputConfig.from_env()
        self.endpoint: Optional[EndpointConfig] = None
        self.folder_id: Optional[str] = None

        self._clock = clock
        self._session: Optional[aiohttp.ClientSession] = None
        self.metadata: Optional[MetadataClient] = None
        self.credentials: Optional[CredentialCache] = None
        self.delivery: Optional[DeliveryClient] = None

    async def init(self):
        """Apply defaults and build the HTTP session."""
        self.endpoint = self.config.resolve()

        # Honors HTTP(S)_PROXY / NO_PROXY like the rest of the agent
        self._session = aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.endpoint.timeout),
            trust_env=True,
        )
        self.metadata = MetadataClient(self._session)
        self.credentials = CredentialCache(self.metadata, self.endpoint.metadata_token_url)
        self.delivery = DeliveryClient(
            session=self._session,
            endpoint_url=self.endpoint.endpoint_url,
            service=self.endpoint.service,
            credentials=self.credentials,
            folder_id=self.folder_id,
            timeout=self.endpoint.timeout,
            clock=self._clock,
        )
        METRIC_OUTSIDE_WINDOW.set(0)

    async def connect(self):
        """
        Fetch the folder id. Only the first successful call does any work.

        Rebuilds the session first when `close` released it; the folder id
        survives that and is not fetched again.
        """
        if self._session is None:
            await self.init()
        if self.folder_id:
            return

        url = self.endpoint.metadata_folder_url
        logger.debug(f"Getting folder ID in {url}")
        body = await self.metadata.fetch(url)

        folder_id = body.decode('utf-8', errors='replace').strip()
        if not folder_id:
            raise MetadataMalformedError(url, "unable to fetch folder id")

        self.folder_id = folder_id
        self.delivery.folder_id = folder_id
        logger.info(f"Writing to Yandex.Cloud Monitoring URL: {self.endpoint.endpoint_url}")
        logger.info(f"FolderID: {self.folder_id}")

    async def write(self, metrics: Iterable) -> Optional[SendResult]:
        """
        Translate and publish one set of host metrics.

        Any raised error means the whole batch was not delivered.

        Unlike the upstream output, a write where no field was numeric sends
        nothing (no token fetch, no POST of an empty batch) and returns None.
        """
        translation = translate(metrics)
        if translation.skipped:
            FIELDS_SKIPPED_TOTAL.inc(len(translation.skipped))

        if not translation.points:
            logger.debug("No numeric fields to write")
            return None

        batch = translation.to_batch()
        try:
            await self.connect()
            result = await self.delivery.publish(batch)
        except (YcmonError, aiohttp.ClientError, asyncio.TimeoutError):
            WRITES_TOTAL.labels(status="error").inc()
            raise

        WRITES_TOTAL.labels(status="success").inc()
        POINTS_WRITTEN_TOTAL.inc(len(batch.metrics))
        return result

    async def close(self):
        """Release the HTTP session. In-flight requests are not aborted."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None
        self.metadata = None
        self.credentials = None
        self.delivery = None

    async def __aenter__(self):
        await self.init()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
