"""HTML page fetching with User-Agent rotation and a challenge fallback."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

import aiohttp
import cloudscraper
import requests
from cloudscraper.exceptions import CloudflareException
from fake_useragent import FakeUserAgentError, UserAgent

from ..platforms.profiles import BROWSER_ACCEPT
from .base import ExtractTimeout, UpstreamError


logger = logging.getLogger(__name__)

# Status codes that usually mean a bot wall rather than a real answer
CHALLENGE_STATUSES = (403, 503)

MAX_PAGE_BYTES = 5 * 1024 * 1024


@dataclass
class Page:
    """A fetched document."""

    url: str
    status: int
    text: str = ""
    content_type: str = ""

    @property
    def is_html(self) -> bool:
        return not self.content_type or "html" in self.content_type or "xml" in self.content_type

    @property
    def is_media(self) -> bool:
        return self.content_type.startswith(("video/", "audio/", "image/"))


class PageFetcher:
    """Fetches pages the way a desktop browser would.

    The profile's User-Agent goes first, then each fallback agent, then a
    random real-world agent. Pages still walled after that are retried
    through cloudscraper, which solves the simple JS challenges.
    """

    def __init__(
        self,
        fallback_user_agents: Sequence[str] = (),
        use_cloudscraper: bool = True,
        random_user_agent: bool = True,
    ):
        self.fallback_user_agents = list(fallback_user_agents)
        self.use_cloudscraper = use_cloudscraper
        self.random_user_agent = random_user_agent
        self._ua: Optional[UserAgent] = None

    def _user_agents(self, headers: dict[str, str]) -> list[str]:
        agents = []
        if headers.get("User-Agent"):
            agents.append(headers["User-Agent"])
        agents.extend(ua for ua in self.fallback_user_agents if ua not in agents)
        if self.random_user_agent:
            try:
                if self._ua is None:
                    self._ua = UserAgent()
                agents.append(self._ua.random)
            except FakeUserAgentError as e:
                logger.debug("No random User-Agent available: %s", e)
        return agents or [""]

    async def fetch(self, url: str, headers: dict[str, str], timeout: float = 15.0) -> Page:
        """
        Fetch a page, rotating User-Agents on challenge responses.

        Args:
            url: Page URL
            headers: Platform header preset
            timeout: Total timeout per request in seconds

        Returns:
            Page with status and text (text is empty for media responses)

        Raises:
            UpstreamError: On network failure
            ExtractTimeout: If the origin did not answer in time
        """
        base = {
            "Accept": BROWSER_ACCEPT,
            "Accept-Language": "en-US,en;q=0.5",
            **headers,
        }
        client_timeout = aiohttp.ClientTimeout(total=timeout)
        page: Optional[Page] = None

        try:
            async with aiohttp.ClientSession(timeout=client_timeout) as session:
                for agent in self._user_agents(headers):
                    request_headers = dict(base)
                    if agent:
                        request_headers["User-Agent"] = agent
                    page = await self._get(session, url, request_headers)
                    if page.status not in CHALLENGE_STATUSES:
                        return page
                    logger.debug("HTTP %d from %s, rotating User-Agent", page.status, url)
        except asyncio.TimeoutError as e:
            raise ExtractTimeout(f"Timed out fetching {url}") from e
        except aiohttp.ClientError as e:
            raise UpstreamError(f"Network error: {str(e)}") from e

        if self.use_cloudscraper:
            return await self._fetch_cloudscraper(url, base, timeout)
        return page

    async def _get(self, session: aiohttp.ClientSession, url: str, headers: dict[str, str]) -> Page:
        async with session.get(url, headers=headers, allow_redirects=True) as response:
            content_type = response.content_type or ""
            page = Page(url=str(response.url), status=response.status, content_type=content_type)
            if response.status == 200 and content_type.startswith(("video/", "audio/", "image/")):
                # Already a media file; never buffer it
                return page
            raw = await response.content.read(MAX_PAGE_BYTES)
            try:
                page.text = raw.decode(response.charset or "utf-8", errors="replace")
            except LookupError:
                logger.debug("Unknown charset %r from %s, decoding as utf-8", response.charset, url)
                page.text = raw.decode("utf-8", errors="replace")
            return page

    async def _fetch_cloudscraper(self, url: str, headers: dict[str, str], timeout: float) -> Page:
        logger.info("Retrying %s through cloudscraper", url)

        def fetch_sync() -> Page:
            scraper = cloudscraper.create_scraper(browser={'browser': 'chrome', 'platform': 'windows', 'desktop': True})
            # cloudscraper picks its own browser User-Agent
            extra = {k: v for k, v in headers.items() if k.lower() != "user-agent"}
            response = scraper.get(url, headers=extra, timeout=timeout)
            content_type = response.headers.get("content-type", "").split(";")[0].strip()
            return Page(url=response.url, status=response.status_code, text=response.text, content_type=content_type)

        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, fetch_sync)
        except requests.exceptions.Timeout as e:
            raise ExtractTimeout(f"Request timed out for {url}") from e
        except requests.exceptions.RequestException as e:
            raise UpstreamError(f"Challenge fallback failed: {str(e)}") from e
        except CloudflareException as e:
            raise UpstreamError(f"Challenge not solvable: {str(e)}") from e
