"""
Article text extraction for story URLs.

PDFs (decided by URL suffix) go through pypdf; everything else is treated as
HTML and flattened to word-wrapped plain text with BeautifulSoup.
"""

from __future__ import annotations

import asyncio
import io
import re
import textwrap
from abc import ABC, abstractmethod

import httpx
from bs4 import BeautifulSoup
from pypdf import PdfReader

from podcaster.core.errors import ErrorKind, PipelineError

# Browser-like headers to avoid bot detection
FETCH_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
}

_NON_CONTENT_TAGS = ["script", "style", "noscript", "template", "svg", "iframe"]


def is_pdf_url(url: str) -> bool:
    return url.lower().endswith(".pdf")


def html_to_text(html: str, wordwrap: int = 130) -> str:
    """Visible text of an HTML page, one wrapped paragraph per block."""
    soup = BeautifulSoup(html, "html.parser")
    for element in soup(_NON_CONTENT_TAGS):
        element.decompose()

    paragraphs = []
    for line in soup.get_text("\n").splitlines():
        line = re.sub(r"\s+", " ", line).strip()
        if line:
            paragraphs.append(textwrap.fill(line, width=wordwrap))
    return "\n\n".join(paragraphs)


def pdf_to_text(data: bytes) -> str:
    reader = PdfReader(io.BytesIO(data))
    pages = (page.extract_text() or "" for page in reader.pages)
    return "\n".join(p.strip() for p in pages if p.strip())


class ContentExtractor(ABC):
    """URL in, plain text out. Raises EXTRACTION errors; empty text is not an error."""

    @abstractmethod
    async def extract(self, url: str) -> str: ...


class WebContentExtractor(ContentExtractor):
    def __init__(self, client: httpx.AsyncClient, wordwrap: int = 130) -> None:
        self._client = client
        self._wordwrap = wordwrap

    async def extract(self, url: str) -> str:
        try:
            resp = await self._client.get(url, headers=FETCH_HEADERS, follow_redirects=True)
            resp.raise_for_status()
        except httpx.HTTPError as e:
            raise PipelineError(
                ErrorKind.EXTRACTION,
                f"Failed to fetch {url}: {e}",
                status_code=e.response.status_code if isinstance(e, httpx.HTTPStatusError) else None,
                cause=e,
            ) from e

        try:
            if is_pdf_url(url):
                # pypdf is synchronous and CPU-heavy on large documents
                return await asyncio.to_thread(pdf_to_text, resp.content)
            return html_to_text(resp.text, self._wordwrap)
        except Exception as e:
            raise PipelineError(
                ErrorKind.EXTRACTION, f"Failed to parse {url}: {e}", cause=e
            ) from e
