"""Asset loading from local files and URLs."""

import mimetypes
from pathlib import Path
from urllib.parse import urlparse

import requests

from ..models import Asset
from ..utils import new_id

HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
}


def load_asset(source: str) -> Asset:
    """
    Load an asset from a local path or an http(s) URL.

    Args:
        source: File path or URL

    Returns:
        Asset with the guessed mime type (application/octet-stream if unknown)
    """
    if source.startswith(("http://", "https://")):
        return _download(source)

    path = Path(source)
    return Asset(
        id=new_id(),
        mime_type=_guess_mime(path.name),
        data=path.read_bytes(),
        name=path.name,
    )


def load_assets(sources: list[str]) -> list[Asset]:
    return [load_asset(source) for source in sources]


def _download(url: str) -> Asset:
    try:
        response = requests.get(url, headers=HEADERS, timeout=30)
        response.raise_for_status()
    except requests.RequestException as e:
        raise RuntimeError(f"Failed to download asset from {url}: {e}")

    name = Path(urlparse(url).path).name or "asset"
    content_type = response.headers.get("Content-Type", "").split(";")[0].strip()
    return Asset(
        id=new_id(),
        mime_type=content_type or _guess_mime(name),
        data=response.content,
        name=name,
    )


def _guess_mime(name: str) -> str:
    mime_type, _ = mimetypes.guess_type(name)
    return mime_type or "application/octet-stream"
