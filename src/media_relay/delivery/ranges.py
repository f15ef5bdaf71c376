"""HTTP byte-range parsing."""

import re
from dataclasses import dataclass
from typing import Optional

from ..errors import RangeNotSatisfiable


_RANGE_SPEC = re.compile(r"^\s*(\d*)\s*-\s*(\d*)\s*$")


@dataclass(frozen=True)
class ByteRange:
    """Inclusive byte range within a resource of known size."""

    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    def content_range(self, size: int) -> str:
        return f"bytes {self.start}-{self.end}/{size}"


def parse_range(header: Optional[str], size: int) -> Optional[ByteRange]:
    """
    Resolve a Range header against a resource size.

    Supports ``bytes=a-b``, ``bytes=a-`` and the suffix form ``bytes=-n``.
    For multi-range headers only the first range is honoured.

    Args:
        header: Raw Range header value, or None
        size: Total size of the resource in bytes

    Returns:
        ByteRange to serve, or None to serve the whole resource

    Raises:
        RangeNotSatisfiable: If the range lies outside the resource
    """
    if not header:
        return None

    unit, _, specs = header.partition("=")
    if unit.strip().lower() != "bytes" or not specs:
        # Unknown units are ignored and the full body is sent
        return None

    match = _RANGE_SPEC.match(specs.split(",")[0])
    if not match:
        return None
    first, last = match.groups()

    if not first and not last:
        return None

    if not first:
        suffix = int(last)
        if suffix == 0 or size == 0:
            raise RangeNotSatisfiable(header, size)
        return ByteRange(max(size - suffix, 0), size - 1)

    start = int(first)
    end = int(last) if last else size - 1
    if start >= size or end < start:
        raise RangeNotSatisfiable(header, size)
    return ByteRange(start, min(end, size - 1))
