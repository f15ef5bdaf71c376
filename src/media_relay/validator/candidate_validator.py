"""Candidate validator: confirm a media URL actually serves media."""

import asyncio
import logging
import os
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

import aiohttp

from ..extractor.base import MediaCandidate
from ..platforms.models import MediaClass
from .signatures import content_type_for, is_manifest, looks_like_html, sniff


logger = logging.getLogger(__name__)


class Verdict(str, Enum):
    """Outcome of probing a candidate."""

    VALID = "valid"
    INVALID = "invalid"
    UNKNOWN = "unknown"


@dataclass
class ValidationOutcome:
    """Result of validating one candidate."""

    candidate: MediaCandidate
    verdict: Verdict
    probed_content_type: Optional[str] = None
    probed_length: Optional[int] = None
    probe_status: Optional[int] = None
    reason: str = ""

    @property
    def usable(self) -> bool:
        return self.verdict != Verdict.INVALID


@dataclass
class _Head:
    status: int
    content_type: str
    length: Optional[int]


class CandidateValidator:
    """Probes candidates with HEAD, then a small ranged GET.

    Never raises: network trouble degrades to an ``unknown`` verdict and the
    request proceeds on trust.
    """

    # Statuses that mean the media is definitely not there
    INVALID_STATUSES = (400, 404, 410)

    # Statuses that usually mean HEAD is blocked rather than the media missing
    BLOCKED_STATUSES = (401, 403, 405, 429)

    def __init__(
        self,
        probe_timeout: float = 8.0,
        min_video_bytes: int = 50 * 1024,
        min_audio_bytes: int = 10 * 1024,
        probe_bytes: int = 8192,
    ):
        self.probe_timeout = probe_timeout
        self.min_video_bytes = min_video_bytes
        self.min_audio_bytes = min_audio_bytes
        self.probe_bytes = probe_bytes

    async def validate(
        self,
        candidate: MediaCandidate,
        headers: Optional[dict[str, str]] = None,
    ) -> ValidationOutcome:
        """
        Validate a single candidate.

        Args:
            candidate: Candidate produced by an extractor
            headers: Platform header preset used for the probe requests

        Returns:
            ValidationOutcome with a valid, invalid or unknown verdict
        """
        if candidate.local_asset is not None:
            return await self._validate_local(candidate)

        if not candidate.raw_url:
            return ValidationOutcome(candidate, Verdict.INVALID, reason="Candidate has no URL")

        timeout = aiohttp.ClientTimeout(total=self.probe_timeout)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                outcome = await self._probe(session, candidate, dict(headers or {}))
        except asyncio.TimeoutError:
            outcome = ValidationOutcome(candidate, Verdict.UNKNOWN, reason=f"Probe timeout after {self.probe_timeout}s")
        except (aiohttp.ClientError, ValueError) as e:
            outcome = ValidationOutcome(candidate, Verdict.UNKNOWN, reason=f"Probe failed: {str(e)}")

        if outcome.verdict == Verdict.UNKNOWN:
            logger.warning("Could not verify %s: %s", candidate.raw_url, outcome.reason)
        return outcome

    def _family(self, media_class: MediaClass) -> Optional[str]:
        return None if media_class == MediaClass.UNKNOWN else media_class.value

    def _threshold(self, media_class: MediaClass) -> int:
        if media_class == MediaClass.VIDEO:
            return self.min_video_bytes
        if media_class == MediaClass.AUDIO:
            return self.min_audio_bytes
        return 0

    def _is_media_type(self, content_type: str, family: Optional[str]) -> bool:
        if family:
            return content_type.startswith(f"{family}/")
        return content_type.startswith(("video/", "audio/", "image/"))

    async def _probe(
        self,
        session: aiohttp.ClientSession,
        candidate: MediaCandidate,
        headers: dict[str, str],
    ) -> ValidationOutcome:
        url = candidate.raw_url
        media_class = candidate.media_class
        family = self._family(media_class)
        threshold = self._threshold(media_class)

        head = await self._head(session, url, headers)

        if head is not None:
            if head.status in self.INVALID_STATUSES:
                return self._outcome(candidate, Verdict.INVALID, head, f"HEAD returned {head.status}")

            if media_class == MediaClass.IMAGE:
                if 200 <= head.status < 300 and head.content_type.startswith("image/"):
                    return self._outcome(candidate, Verdict.VALID, head, "Image content type")
                return self._outcome(candidate, Verdict.UNKNOWN, head, f"HEAD returned {head.status} {head.content_type or 'no type'}")

            if 200 <= head.status < 300:
                if is_manifest(head.content_type):
                    return self._outcome(candidate, Verdict.VALID, head, "Streaming manifest")
                if (
                    self._is_media_type(head.content_type, family)
                    and head.length is not None
                    and head.length > threshold
                ):
                    return self._outcome(candidate, Verdict.VALID, head, "Media content type and size")
        elif media_class == MediaClass.IMAGE:
            return ValidationOutcome(candidate, Verdict.UNKNOWN, reason="HEAD failed")

        # HEAD blocked, failed or inconclusive
        return await self._ranged_get(session, candidate, headers, threshold, head)

    async def _head(self, session: aiohttp.ClientSession, url: str, headers: dict[str, str]) -> Optional[_Head]:
        try:
            async with session.head(url, headers=headers, allow_redirects=True) as response:
                return _Head(
                    status=response.status,
                    content_type=(response.content_type or "").lower(),
                    length=response.content_length,
                )
        except aiohttp.ClientError as e:
            logger.debug("HEAD %s failed: %s", url, e)
            return None

    async def _ranged_get(
        self,
        session: aiohttp.ClientSession,
        candidate: MediaCandidate,
        headers: dict[str, str],
        threshold: int,
        head: Optional[_Head],
    ) -> ValidationOutcome:
        request_headers = dict(headers)
        request_headers["Range"] = f"bytes=0-{self.probe_bytes - 1}"

        async with session.get(candidate.raw_url, headers=request_headers, allow_redirects=True) as response:
            status = response.status
            content_type = (response.content_type or "").lower()

            if status in self.INVALID_STATUSES:
                return ValidationOutcome(candidate, Verdict.INVALID, content_type, None, status, f"GET returned {status}")
            if status >= 400:
                reason = f"GET returned {status}"
                if head is not None:
                    reason = f"HEAD returned {head.status}, {reason}"
                return ValidationOutcome(candidate, Verdict.UNKNOWN, content_type, None, status, reason)

            total = self._total_size(response)
            data = await response.content.read(self.probe_bytes)

        container = sniff(data)
        probed_type = content_type_for(container) or content_type or None

        if container is None and ("text/html" in content_type or looks_like_html(data)):
            return ValidationOutcome(candidate, Verdict.INVALID, probed_type, total, status, "Origin returned an HTML page")
        if container in ("hls", "dash"):
            return ValidationOutcome(candidate, Verdict.VALID, probed_type, total, status, "Streaming manifest")
        if total is not None and total <= threshold:
            return ValidationOutcome(candidate, Verdict.INVALID, probed_type, total, status, f"Too small ({total} bytes)")
        if container:
            return ValidationOutcome(candidate, Verdict.VALID, probed_type, total, status, f"{container} signature")

        return ValidationOutcome(candidate, Verdict.UNKNOWN, probed_type, total, status, "No known signature")

    def _total_size(self, response: aiohttp.ClientResponse) -> Optional[int]:
        content_range = response.headers.get("Content-Range", "")
        match = re.match(r"bytes\s+\d+-\d+/(\d+)", content_range)
        if match:
            return int(match.group(1))
        if response.status == 200:
            return response.content_length
        return None

    def _outcome(self, candidate: MediaCandidate, verdict: Verdict, head: _Head, reason: str) -> ValidationOutcome:
        return ValidationOutcome(
            candidate=candidate,
            verdict=verdict,
            probed_content_type=head.content_type or None,
            probed_length=head.length,
            probe_status=head.status,
            reason=reason,
        )

    async def _validate_local(self, candidate: MediaCandidate) -> ValidationOutcome:
        path: Path = candidate.local_asset.path

        def read_head() -> tuple[Optional[bytes], Optional[int], str]:
            try:
                with open(path, "rb") as f:
                    return f.read(self.probe_bytes), os.fstat(f.fileno()).st_size, ""
            except FileNotFoundError:
                return None, None, "Local asset is missing"
            except OSError as e:
                logger.warning("Could not read local asset %s: %s", path.name, e)
                return None, None, f"Local asset is unreadable ({type(e).__name__})"

        loop = asyncio.get_running_loop()
        data, size, problem = await loop.run_in_executor(None, read_head)
        if data is None:
            return ValidationOutcome(candidate, Verdict.INVALID, reason=problem)

        container = sniff(data)
        if container:
            return ValidationOutcome(candidate, Verdict.VALID, content_type_for(container), size, None, f"{container} signature")

        logger.warning("Could not verify local asset %s: no known signature", path.name)
        return ValidationOutcome(candidate, Verdict.UNKNOWN, None, size, None, "No known signature")


async def validate_candidate(candidate: MediaCandidate, headers: Optional[dict[str, str]] = None) -> ValidationOutcome:
    """Validate a single candidate with default settings."""
    validator = CandidateValidator()
    return await validator.validate(candidate, headers)
