# services/api/core/document_source.py
"""
Getting bytes for a packet: inline base64 payloads, remote documents,
the cover template and logo images.

Remote fetches share one httpx.AsyncClient per assembly. There are no
retries; callers decide what a failure turns into.
"""
from __future__ import annotations

import base64
import binascii
import io
import logging
from typing import Dict, Optional
from urllib.parse import quote, urljoin

import httpx
from PIL import Image

from core.errors import DocumentResolutionError
from schemas.packet import DocumentRequest
from settings import Settings

logger = logging.getLogger(__name__)

PDF_SIGNATURE = b"%PDF"
# Some producers put junk before the header; readers accept it within the first KB
SIGNATURE_WINDOW = 1024


def make_client(settings: Settings) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=settings.fetch_timeout_seconds,
        follow_redirects=True,
        headers={"User-Agent": settings.user_agent},
    )


def resolve_url(url: str, base_url: str) -> str:
    """Absolute URLs pass through; relative catalog paths are encoded and joined to base_url."""
    url = (url or "").strip()
    if url.lower().startswith(("http://", "https://")):
        return url
    path = quote(url.lstrip("/"), safe="/")
    if not base_url.endswith("/"):
        base_url += "/"
    return urljoin(base_url, path)


def decode_inline(file_data: str) -> bytes:
    """
    Decode a base64 document payload.
    Accepts a bare base64 string or a `data:application/pdf;base64,...` URL.
    """
    payload = file_data.strip()
    if payload.startswith("data:"):
        _, _, payload = payload.partition(",")
    # MIME-style payloads wrap lines
    payload = "".join(payload.split())
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DocumentResolutionError(f"Invalid base64 document data ({e})") from e


def looks_like_pdf(content: bytes) -> bool:
    return PDF_SIGNATURE in content[:SIGNATURE_WINDOW]


async def fetch_bytes(client: httpx.AsyncClient, url: str) -> bytes:
    """GET a URL; any transport error or non-2xx status raises DocumentResolutionError."""
    try:
        response = await client.get(url)
    except httpx.TimeoutException as e:
        logger.error(f"Timeout fetching {url}")
        raise DocumentResolutionError(f"Timed out fetching {url}") from e
    except httpx.RequestError as e:
        logger.error(f"Error fetching {url}: {str(e)}")
        raise DocumentResolutionError(f"Could not fetch {url}: {str(e)}") from e

    if response.status_code >= 400:
        logger.error(f"Failed to fetch {url}: HTTP {response.status_code}")
        raise DocumentResolutionError(f"Failed to fetch document: HTTP {response.status_code}")

    logger.info(f"Fetched {url} ({len(response.content)} bytes)")
    return response.content


async def load_document_bytes(
    doc: DocumentRequest,
    client: httpx.AsyncClient,
    settings: Settings,
) -> bytes:
    """
    Resolve a document's PDF bytes. Inline data wins over the URL.

    Raises:
        DocumentResolutionError: no source, bad base64, failed fetch, or not a PDF.
    """
    if doc.file_data:
        content = decode_inline(doc.file_data)
        logger.info(f"Decoded {len(content)} bytes of inline data for '{doc.name}'")
    elif doc.url:
        content = await fetch_bytes(client, resolve_url(doc.url, settings.document_base_url))
    else:
        raise DocumentResolutionError("Document has neither file data nor a URL", doc.name)

    if not content:
        raise DocumentResolutionError("Document is empty", doc.name)
    if not looks_like_pdf(content):
        raise DocumentResolutionError("Document is not a PDF", doc.name)
    return content


class ImageLoader:
    """
    Request-scoped image fetcher: each URL is requested at most once,
    failures are remembered as None.
    """

    def __init__(self, client: httpx.AsyncClient):
        self.client = client
        self._images: Dict[str, Optional[Image.Image]] = {}

    async def get(self, url: str) -> Optional[Image.Image]:
        if not url:
            return None
        if url in self._images:
            return self._images[url]

        image: Optional[Image.Image] = None
        try:
            content = await fetch_bytes(self.client, url)
            image = Image.open(io.BytesIO(content))
            image.load()
        except DocumentResolutionError as e:
            logger.warning(f"Logo unavailable, using text fallback: {e.message}")
        except (OSError, ValueError) as e:
            logger.warning(f"Logo at {url} is not a readable image: {str(e)}")
            image = None

        self._images[url] = image
        return image
