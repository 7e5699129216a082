import base64
import json
import re
import uuid

URL_PATTERN = re.compile(r"https?://[^\s]+")
DATA_URL_PATTERN = re.compile(r"^data:(image/[^;]+);base64,(.*)$", re.DOTALL)


def new_id() -> str:
    """Return a fresh identifier for a creative or asset."""
    return uuid.uuid4().hex


def has_urls(text: str) -> bool:
    """True if text contains at least one http(s) URL."""
    return bool(URL_PATTERN.search(text or ""))


def to_data_url(data: bytes, mime_type: str) -> str:
    """Encode bytes as a base64 data URL.

    Example: (b"...", "image/png") -> "data:image/png;base64,..."
    """
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def from_data_url(url: str) -> tuple[bytes, str]:
    """Decode an image data URL into (bytes, mime_type)."""
    match = DATA_URL_PATTERN.match(url or "")
    if not match:
        raise ValueError("Not an image data URL")
    return base64.b64decode(match.group(2)), match.group(1)


def format_error(error: object) -> str:
    """Render an exception or payload as diagnostic text."""
    if isinstance(error, str):
        return error
    if isinstance(error, BaseException):
        return str(error) or error.__class__.__name__
    try:
        return json.dumps(error, indent=2)
    except (TypeError, ValueError):
        return str(error)
