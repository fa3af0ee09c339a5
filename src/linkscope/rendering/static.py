"""Static HTML renderer: aiohttp for transport, BeautifulSoup for anchors."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from types import TracebackType
from typing import Optional

import aiohttp
from bs4 import BeautifulSoup
from bs4.element import Tag

from ..errors import AuthenticationError, NetworkError, PageTimeoutError, ParseError
from ..models.config import RenderConfig
from ..models.links import RawAnchorObservation
from .protocols import PageObservation, RedirectRecorder

logger = logging.getLogger(__name__)

HTML_CONTENT_TYPES = ("text/html", "application/xhtml")


@dataclass
class _Document:
    content: bytes
    encoding: Optional[str] = None


def _attr(anchor: Tag, name: str) -> Optional[str]:
    """Read an attribute, joining the lists bs4 returns for multi-valued ones."""
    value = anchor.get(name)
    if value is None:
        return None
    if isinstance(value, list):
        value = " ".join(value)
    return value or None


def parse_anchors(html: bytes | str, encoding: Optional[str] = None) -> list[RawAnchorObservation]:
    """
    Observe every ``<a href>`` of an HTML document, in document order.

    Args:
        html: Raw or decoded HTML
        encoding: Declared charset for raw bytes (detected when None)

    Returns:
        One observation per anchor
    """
    if isinstance(html, bytes):
        soup = BeautifulSoup(html, "html.parser", from_encoding=encoding)
    else:
        soup = BeautifulSoup(html, "html.parser")

    observations: list[RawAnchorObservation] = []
    for anchor in soup.find_all("a", href=True):
        image = anchor.find("img")
        parent = anchor.parent
        parent_tag = parent.name if isinstance(parent, Tag) and parent.name != "[document]" else None

        observations.append(
            RawAnchorObservation(
                href=_attr(anchor, "href") or "",
                anchor_text=anchor.get_text().strip(),
                title=_attr(anchor, "title"),
                aria_label=_attr(anchor, "aria-label"),
                rel=_attr(anchor, "rel"),
                target=_attr(anchor, "target"),
                image_alt=_attr(image, "alt") if isinstance(image, Tag) else None,
                parent_tag=parent_tag,
                data_attributes={
                    name: value if isinstance(value, str) else " ".join(value)
                    for name, value in anchor.attrs.items()
                    if name.startswith("data-")
                },
            )
        )
    return observations


class StaticRenderer:
    """
    Load pages over plain HTTP without executing scripts.

    Suitable for server-rendered pages and for environments without a
    browser. Redirects are followed by aiohttp and reported hop by hop.

    Example:
        async with StaticRenderer() as renderer:
            page = await renderer.load("https://example.com", RenderConfig())
            anchors = await renderer.get_anchors(page)
    """

    MAX_CONTENT_SIZE = 50 * 1024 * 1024  # 50 MB
    DEFAULT_USER_AGENT = "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (linkscope/1.0)"

    def __init__(
        self,
        on_redirect: Optional[RedirectRecorder] = None,
        max_content_size: int = MAX_CONTENT_SIZE,
    ) -> None:
        """
        Initialize the renderer.

        Args:
            on_redirect: Called for every redirect hop followed
            max_content_size: Maximum response size in bytes
        """
        self._on_redirect = on_redirect
        self._max_content_size = max_content_size
        self._session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> StaticRenderer:
        """Enter async context and create session."""
        self._ensure_session()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit async context and close session."""
        if self._session:
            await self._session.close()
            self._session = None

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            connector = aiohttp.TCPConnector(
                limit=100,  # Total connection limit
                limit_per_host=10,  # Per-host connection limit
                ttl_dns_cache=300,  # DNS cache TTL
            )
            self._session = aiohttp.ClientSession(connector=connector)
        return self._session

    def _request_headers(self, config: RenderConfig) -> dict[str, str]:
        headers = {"User-Agent": config.user_agent or self.DEFAULT_USER_AGENT}
        headers.update(config.headers)
        if config.cookies:
            headers["Cookie"] = "; ".join(f"{cookie.name}={cookie.value}" for cookie in config.cookies)
        return headers

    def _record_redirects(self, url: str, response: aiohttp.ClientResponse) -> None:
        if self._on_redirect is None or not response.history:
            return
        hops = [str(hop.url) for hop in response.history] + [str(response.url)]
        for index, hop in enumerate(response.history):
            self._on_redirect(hops[index], hops[index + 1], hop.status, origin=url)

    async def load(self, url: str, config: RenderConfig) -> PageObservation:
        """
        Fetch ``url`` and keep its HTML for anchor parsing.

        Raises:
            PageTimeoutError: The request exceeded ``config.timeout``
            NetworkError: The request failed or the body was too large
            AuthenticationError: The page answered 401 or 403
            ParseError: The response is not HTML
        """
        session = self._ensure_session()
        timeout = aiohttp.ClientTimeout(total=config.timeout / 1000)

        try:
            async with session.get(
                url,
                headers=self._request_headers(config),
                timeout=timeout,
                proxy=config.proxy,
                allow_redirects=True,
            ) as response:
                self._record_redirects(url, response)

                if response.status in (401, 403):
                    raise AuthenticationError(f"Access denied: HTTP {response.status}", url, response.status)

                content_type = response.headers.get("Content-Type", "")
                if content_type and not any(kind in content_type.lower() for kind in HTML_CONTENT_TYPES):
                    raise ParseError(f"Unsupported content type: {content_type}", url)

                content = b""
                async for chunk in response.content.iter_chunked(8192):
                    content += chunk
                    if len(content) > self._max_content_size:
                        raise NetworkError(f"Content size limit exceeded: >{self._max_content_size} bytes", url)

                return PageObservation(
                    url=url,
                    final_url=str(response.url),
                    status_code=response.status,
                    handle=_Document(content=content, encoding=response.charset),
                )
        except asyncio.TimeoutError as e:
            raise PageTimeoutError(f"Page load timeout after {config.timeout}ms", url, config.timeout) from e
        except aiohttp.ClientError as e:
            raise NetworkError(f"Failed to load page: {e}", url, cause=e) from e

    async def get_anchors(self, page: PageObservation) -> list[RawAnchorObservation]:
        document: _Document = page.handle
        loop = asyncio.get_running_loop()
        try:
            # Parsing is CPU-bound; keep it off the event loop
            return await loop.run_in_executor(None, parse_anchors, document.content, document.encoding)
        except Exception as e:
            raise ParseError(f"Failed to parse HTML: {e}", page.url) from e

    async def close(self, page: PageObservation) -> None:
        page.handle = None
