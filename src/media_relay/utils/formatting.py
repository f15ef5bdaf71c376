import re
import unicodedata
from typing import Optional
from urllib.parse import quote


def human_readable_size(size_in_bytes: Optional[int]) -> str:
    """Converts bytes to a human readable string (e.g. 10.5 MB)."""
    if size_in_bytes is None:
        return "Unknown"

    size = float(size_in_bytes)
    for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
        if size < 1024.0:
            return f"{size:.2f} {unit}"
        size /= 1024.0
    return f"{size:.2f} PB"


def sanitize_filename(name: Optional[str], max_length: int = 100, default: str = "media") -> str:
    """Make a title safe for use as a download file name."""
    if not name:
        return default
    name = re.sub(r'[\\/*?:"<>|\r\n\t]', "", name)
    name = re.sub(r"\s+", " ", name).strip(" .")
    return name[:max_length].rstrip(" .") or default


def content_disposition(title: Optional[str], extension: str, disposition: str = "attachment") -> str:
    """Build a Content-Disposition header with an ASCII fallback name."""
    name = sanitize_filename(title)
    filename = f"{name}.{extension}"
    ascii_stem = unicodedata.normalize("NFKD", name).encode("ascii", "ignore").decode("ascii")
    ascii_name = f"{sanitize_filename(ascii_stem)}.{extension}"
    if ascii_name == filename:
        return f'{disposition}; filename="{filename}"'
    return f"{disposition}; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(filename)}"
