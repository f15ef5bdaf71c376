"""Native API extractor: dispatch to the platform's structured client."""

import logging
from typing import Mapping, Optional

from ...platforms.models import NATIVE, Platform
from ..base import ExtractOptions, Extractor, MediaCandidate, UnsupportedShape
from .base import NativeClient
from .factory import get_client


logger = logging.getLogger(__name__)


class NativeApiExtractor(Extractor):
    """Uses a platform's own metadata API when one is registered."""

    name = NATIVE

    def __init__(self, clients: Optional[Mapping[Platform, NativeClient]] = None):
        self.clients = dict(clients) if clients is not None else None

    def client_for(self, platform: Platform) -> Optional[NativeClient]:
        if self.clients is not None:
            return self.clients.get(platform)
        return get_client(platform)

    async def attempt(self, url: str, platform: Platform, options: ExtractOptions) -> MediaCandidate:
        client = self.client_for(platform)
        if client is None:
            raise UnsupportedShape(f"No native client for {platform.value}")

        try:
            candidate = await client.resolve(url, options)
        except (KeyError, TypeError, AttributeError) as e:
            raise UnsupportedShape(f"Unexpected API shape: {e!r}") from e

        candidate.strategy = self.name
        candidate.title = self._strip_suffixes(candidate.title, options.profile.title_suffixes)
        return candidate
