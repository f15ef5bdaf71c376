"""Base class for structured-API clients."""

import asyncio
import re
from abc import ABC, abstractmethod
from typing import Any, Optional

import aiohttp

from ...platforms.models import Platform
from ..base import (
    ExtractOptions,
    ExtractTimeout,
    MediaCandidate,
    NotFound,
    UnsupportedShape,
    UpstreamError,
)


class NativeClient(ABC):
    """Talks to one platform's own metadata endpoint."""

    platform: Optional[Platform] = None

    # URL patterns with the content id in group 1
    URL_PATTERNS: list[str] = []

    def content_id(self, url: str) -> str:
        """
        Pull the content id out of a page URL.

        Raises:
            UnsupportedShape: If no pattern matches (e.g. a short link)
        """
        for pattern in self.URL_PATTERNS:
            match = re.search(pattern, url, re.IGNORECASE)
            if match:
                return match.group(1)
        raise UnsupportedShape(f"No {self.platform} id in URL")

    @abstractmethod
    async def resolve(self, url: str, options: ExtractOptions) -> MediaCandidate:
        """
        Resolve a page URL through the platform API.

        Args:
            url: Page URL
            options: Headers and timeout

        Returns:
            MediaCandidate with high confidence
        """
        pass

    async def _get_json(self, api_url: str, options: ExtractOptions, params: Optional[dict] = None) -> Any:
        """GET a JSON document, mapping transport failures to extraction errors."""
        headers = dict(options.headers)
        headers["Accept"] = "application/json, text/plain, */*"
        timeout = aiohttp.ClientTimeout(total=options.timeout)

        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(api_url, headers=headers, params=params) as response:
                    if response.status in (404, 410):
                        raise NotFound(f"HTTP {response.status}")
                    if response.status != 200:
                        raise UpstreamError(f"HTTP {response.status}")
                    return await response.json(content_type=None)
        except asyncio.TimeoutError as e:
            raise ExtractTimeout(f"Timed out calling {api_url}") from e
        except aiohttp.ClientError as e:
            raise UpstreamError(f"Network error: {str(e)}") from e
        except ValueError as e:
            raise UnsupportedShape(f"Invalid JSON response: {e}") from e
