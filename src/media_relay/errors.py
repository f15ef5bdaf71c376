"""Caller-facing error taxonomy for the resolution pipeline."""

from typing import Any, Optional


class MediaRelayError(Exception):
    """Base class for errors that surface to the caller."""

    status_code: int = 500
    code: str = "media_relay_error"

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        """Serialize for an error response body (no stack traces)."""
        return {
            "error": self.message,
            "code": self.code,
            "details": self.details,
        }


class UnsupportedPlatform(MediaRelayError):
    """The classifier found no rule for the URL."""

    status_code = 400
    code = "unsupported_platform"

    def __init__(self, url: str):
        super().__init__("Unsupported platform for this URL", url=url)
        self.url = url


class ExtractionExhausted(MediaRelayError):
    """Every strategy in the platform's chain failed."""

    status_code = 502
    code = "extraction_exhausted"

    def __init__(self, platform: str, attempts: list):
        last = attempts[-1] if attempts else None
        last_failure = last.failure_kind if last else None
        super().__init__(
            f"Could not resolve media from {platform}",
            platform=platform,
            strategies_tried=len(attempts),
            last_failure=last_failure,
            attempts=[attempt.to_dict() for attempt in attempts],
        )
        self.platform = platform
        self.attempts = attempts
        self.last_failure = last_failure


class UpstreamDeliveryError(MediaRelayError):
    """The origin rejected the relay request or broke mid-stream."""

    status_code = 502
    code = "upstream_delivery_error"

    def __init__(self, upstream_status: Optional[int], message: Optional[str] = None):
        super().__init__(
            message or f"Upstream responded with HTTP {upstream_status}",
            upstream_status=upstream_status,
        )
        self.upstream_status = upstream_status


class AssetGoneError(MediaRelayError):
    """A temp asset vanished before delivery. Indicates a lifecycle bug."""

    status_code = 500
    code = "asset_gone"

    def __init__(self, path: str):
        super().__init__("Local media asset is missing")
        self.path = path


class RangeNotSatisfiable(MediaRelayError):
    """The requested byte range lies outside the resource."""

    status_code = 416
    code = "range_not_satisfiable"

    def __init__(self, range_header: str, size: int):
        super().__init__("Requested range not satisfiable", range=range_header, size=size)
        self.size = size


class ValidationUnknown:
    """Non-fatal notice: the validator could not confirm a candidate.

    Never raised. The chain resolver records it and the request proceeds.
    """

    code = "validation_unknown"

    def __init__(self, url: Optional[str], reason: str):
        self.url = url
        self.reason = reason

    def __str__(self) -> str:
        return f"Could not verify media at {self.url}: {self.reason}"

    def to_dict(self) -> dict:
        return {"code": self.code, "url": self.url, "reason": self.reason}
