"""Client for the link-local instance metadata service."""

import logging

import aiohttp

from .exceptions import MetadataError

logger = logging.getLogger(__name__)

METADATA_HEADERS = {'Metadata-Flavor': 'Google'}


class MetadataClient:
    """
    Fetches raw documents from the metadata service.

    Transport errors (aiohttp.ClientError, asyncio.TimeoutError) are not
    wrapped; callers see them exactly as aiohttp raised them.
    """

    def __init__(self, session: aiohttp.ClientSession):
        self._session = session

    async def fetch(self, url: str) -> bytes:
        """GET `url` and return the body of a 2xx response."""
        logger.debug(f"Fetching instance metadata from {url}")
        async with self._session.get(url, headers=METADATA_HEADERS) as response:
            body = await response.read()
            if response.status < 200 or response.status >= 300:
                raise MetadataError(url, response.status)
            return body
