"""
IAM token cache.

The token is refreshed lazily: only when a send needs it and the held
one is missing or expired.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from pydantic import BaseModel, ValidationError

from .exceptions import MetadataMalformedError
from .metadata import MetadataClient
from .models import Credential
from .selfstat import TOKEN_REFRESHES_TOTAL

logger = logging.getLogger(__name__)


class MetadataToken(BaseModel):
    """Token document served by the metadata service."""
    access_token: str = ""
    expires_in: int = 0
    token_type: str = ""


class CredentialCache:
    """Owns the current Credential. `ensure_valid` is the only mutator."""

    def __init__(self, metadata: MetadataClient, token_url: str):
        self._metadata = metadata
        self._token_url = token_url
        self._credential: Optional[Credential] = None

    @property
    def credential(self) -> Optional[Credential]:
        return self._credential

    async def ensure_valid(self, now: Optional[datetime] = None) -> str:
        """
        Return a usable access token, refreshing it first if needed.

        Args:
            now: current instant; defaults to the wall clock in UTC.

        Raises:
            MetadataError / MetadataMalformedError: the refresh failed.
            aiohttp.ClientError, asyncio.TimeoutError: metadata unreachable.
        """
        if now is None:
            now = datetime.now(timezone.utc)

        if self._credential is None or not self._credential.is_valid(now):
            self._credential = await self._refresh(now)
        return self._credential.access_token

    async def _refresh(self, now: datetime) -> Credential:
        logger.debug(f"Getting new IAM token in {self._token_url}")
        body = await self._metadata.fetch(self._token_url)

        try:
            token = MetadataToken.model_validate_json(body)
        except ValidationError as e:
            raise MetadataMalformedError(
                self._token_url, "unable to parse authentication credentials"
            ) from e

        if not token.access_token or token.expires_in <= 0:
            raise MetadataMalformedError(
                self._token_url, "unable to fetch authentication credentials"
            )

        try:
            expires_at = now + timedelta(seconds=token.expires_in)
        except (OverflowError, ValueError) as e:
            raise MetadataMalformedError(self._token_url, "invalid token lifetime") from e

        TOKEN_REFRESHES_TOTAL.inc()
        return Credential(access_token=token.access_token, expires_at=expires_at)
