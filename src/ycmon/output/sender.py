"""
Delivery Client.

POSTs translated batches to the Monitoring data/write endpoint.
No retries here: a raised DeliveryError is what tells the caller to
try again on its next flush.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

import aiohttp

from .credentials import CredentialCache
from .exceptions import DeliveryError
from .models import Batch

logger = logging.getLogger(__name__)


@dataclass
class SendResult:
    """Result of a send operation."""
    success: bool
    status_code: Optional[int] = None
    error: Optional[str] = None


class DeliveryClient:
    """Sends batches with a bearer token taken from the credential cache."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        endpoint_url: str,
        service: str,
        credentials: CredentialCache,
        folder_id: Optional[str] = None,
        timeout: float = 20.0,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize the delivery client."""
        self.endpoint_url = endpoint_url
        self.service = service
        self.timeout = timeout
        self.credentials = credentials
        self.folder_id = folder_id

        self._session = session
        self._clock = clock

    def _get_headers(self, token: str) -> dict:
        """Get request headers."""
        return {
            'Content-Type': 'application/json',
            'Authorization': f'Bearer {token}',
        }

    async def publish(self, batch: Batch) -> SendResult:
        """
        Send one batch.

        Raises:
            DeliveryError: transport failure or a non-2xx response.
            MetadataError / MetadataMalformedError: no token could be obtained;
                nothing is sent in that case.
        """
        payload = batch.to_json()
        params = {'folderId': self.folder_id or '', 'service': self.service}

        now = self._clock() if self._clock else None
        token = await self.credentials.ensure_valid(now)

        result = await self._send_once(payload, params, token)
        if not result.success:
            raise DeliveryError(result.error, status_code=result.status_code)

        logger.debug(f"Wrote {len(batch.metrics)} points to {self.endpoint_url}")
        return result

    async def _send_once(self, payload: bytes, params: dict, token: str) -> SendResult:
        """Send a single request."""
        try:
            async with self._session.post(
                self.endpoint_url,
                data=payload,
                params=params,
                headers=self._get_headers(token),
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as response:
                # Drain the body so the connection goes back to the pool
                await response.read()

                if 200 <= response.status <= 299:
                    return SendResult(success=True, status_code=response.status)

                return SendResult(
                    success=False,
                    status_code=response.status,
                    error=response.reason or "",
                )

        except asyncio.TimeoutError:
            return SendResult(success=False, error="Request timeout")
        except aiohttp.ClientError as e:
            return SendResult(success=False, error=str(e) or type(e).__name__)
