"""Playwright renderer with an isolated browser context per page load."""

from __future__ import annotations

import asyncio
import contextlib
import functools
import logging
import os
from dataclasses import dataclass
from types import TracebackType
from typing import Any, Optional
from urllib.parse import urljoin

from playwright.async_api import (
    Browser,
    BrowserContext,
    Page,
    Playwright,
    Response,
    async_playwright,
)
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from ..errors import AuthenticationError, NetworkError, PageTimeoutError, ParseError
from ..models.config import Cookie, RenderConfig
from ..models.links import RawAnchorObservation
from .protocols import PageObservation, RedirectRecorder

logger = logging.getLogger(__name__)

# Runs in the page; one entry per <a href> in document order
_ANCHOR_SCRIPT = """
() => Array.from(document.querySelectorAll('a[href]')).map((a) => {
    const img = a.querySelector('img');
    const data = {};
    for (const attr of Array.from(a.attributes)) {
        if (attr.name.startsWith('data-')) {
            data[attr.name] = attr.value;
        }
    }
    return {
        href: a.getAttribute('href') || '',
        anchor_text: (a.textContent || '').trim(),
        title: a.getAttribute('title'),
        aria_label: a.getAttribute('aria-label'),
        rel: a.getAttribute('rel'),
        target: a.getAttribute('target'),
        image_alt: img ? (img.getAttribute('alt') || null) : null,
        parent_tag: a.parentElement ? a.parentElement.tagName.toLowerCase() : null,
        data_attributes: data,
    };
})
"""

_LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--disable-blink-features=AutomationControlled",
]


def observation_from_dict(data: dict[str, Any]) -> RawAnchorObservation:
    """Build an observation from the anchor script's output."""
    return RawAnchorObservation(
        href=data.get("href") or "",
        anchor_text=data.get("anchor_text") or "",
        title=data.get("title") or None,
        aria_label=data.get("aria_label") or None,
        rel=data.get("rel") or None,
        target=data.get("target") or None,
        image_alt=data.get("image_alt") or None,
        parent_tag=data.get("parent_tag") or None,
        data_attributes=dict(data.get("data_attributes") or {}),
    )


@dataclass
class _LoadedPage:
    context: BrowserContext
    page: Page


class BrowserRenderer:
    """
    Render pages in headless Chromium.

    One browser process is shared by every load; each load gets its own
    ``BrowserContext`` carrying that request's headers, cookies, user agent
    and proxy, so nothing set for one URL leaks into another.

    Example:
        async with BrowserRenderer(on_redirect=catalog.track_redirect) as renderer:
            page = await renderer.load("https://example.com", RenderConfig())
            try:
                anchors = await renderer.get_anchors(page)
            finally:
                await renderer.close(page)
    """

    SETTLE_DELAY_MS = 500

    def __init__(
        self,
        headless: bool = True,
        on_redirect: Optional[RedirectRecorder] = None,
    ) -> None:
        """
        Initialize the renderer.

        Args:
            headless: Run the browser in headless mode
            on_redirect: Called for every 3xx response observed
        """
        self._headless = headless
        self._on_redirect = on_redirect

        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._start_lock = asyncio.Lock()

    async def __aenter__(self) -> BrowserRenderer:
        await self._ensure_browser()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Close the browser and stop Playwright."""
        if self._browser:
            with contextlib.suppress(Exception):
                await self._browser.close()
            self._browser = None

        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

        logger.info("Browser renderer shut down")

    async def _ensure_browser(self) -> Browser:
        async with self._start_lock:
            if self._browser is None:
                launch_options: dict[str, Any] = {"headless": self._headless, "args": _LAUNCH_ARGS}
                # Prefer a system Chromium when one is provided (containers)
                executable = os.environ.get("PLAYWRIGHT_CHROMIUM_EXECUTABLE_PATH")
                if executable:
                    launch_options["executable_path"] = executable

                self._playwright = await async_playwright().start()
                self._browser = await self._playwright.chromium.launch(**launch_options)
                logger.info("Browser renderer started")
            return self._browser

    async def _new_context(self, url: str, config: RenderConfig) -> BrowserContext:
        browser = await self._ensure_browser()

        context_options: dict[str, Any] = {
            "viewport": {"width": 1920, "height": 1080},
            "java_script_enabled": True,
            "ignore_https_errors": True,
            "extra_http_headers": dict(config.headers),
        }
        if config.user_agent:
            context_options["user_agent"] = config.user_agent
        if config.proxy:
            context_options["proxy"] = {"server": config.proxy}

        context = await browser.new_context(**context_options)
        context.set_default_timeout(config.timeout)

        if config.cookies:
            await context.add_cookies([self._cookie_param(cookie, url) for cookie in config.cookies])
        return context

    @staticmethod
    def _cookie_param(cookie: Cookie, url: str) -> dict[str, Any]:
        param: dict[str, Any] = {
            "name": cookie.name,
            "value": cookie.value,
            "httpOnly": cookie.http_only,
            "secure": cookie.secure,
        }
        # Playwright needs either a url or a domain/path pair
        if cookie.domain:
            param["domain"] = cookie.domain
            param["path"] = cookie.path
        else:
            param["url"] = url
        if cookie.expires is not None:
            param["expires"] = cookie.expires
        if cookie.same_site:
            param["sameSite"] = cookie.same_site
        return param

    def _handle_response(self, origin: str, response: Response) -> None:
        status = response.status
        if 300 <= status < 400 and self._on_redirect is not None:
            location = response.headers.get("location")
            # Subresource redirects do not belong to the page's chain
            if location and response.request.is_navigation_request():
                self._on_redirect(response.url, urljoin(response.url, location), status, origin=origin)
        elif status in (401, 403):
            logger.warning(f"Authentication required for {response.url} (HTTP {status})")

    async def load(self, url: str, config: RenderConfig) -> PageObservation:
        """
        Navigate to ``url`` in a fresh context and let dynamic content settle.

        Raises:
            PageTimeoutError: Navigation exceeded ``config.timeout``
            NetworkError: Navigation failed for any other reason
            AuthenticationError: The page answered 401 or 403
        """
        try:
            context = await self._new_context(url, config)
        except PlaywrightError as e:
            raise NetworkError(f"Failed to open browser context: {e}", url, cause=e) from e

        try:
            page = await context.new_page()
            page.on("response", functools.partial(self._handle_response, url))

            try:
                response = await page.goto(url, timeout=config.timeout, wait_until="networkidle")
            except PlaywrightTimeoutError as e:
                raise PageTimeoutError(f"Page load timeout after {config.timeout}ms", url, config.timeout) from e
            except PlaywrightError as e:
                raise NetworkError(f"Failed to load page: {e.message}", url, cause=e) from e

            status = response.status if response is not None else None
            if status in (401, 403):
                raise AuthenticationError(f"Access denied: HTTP {status}", url, status)

            await self._wait_for_content(page, config)
            return PageObservation(
                url=url,
                final_url=page.url,
                status_code=status,
                handle=_LoadedPage(context=context, page=page),
            )
        except BaseException:
            with contextlib.suppress(Exception):
                await context.close()
            raise

    async def _wait_for_content(self, page: Page, config: RenderConfig) -> None:
        """Best-effort wait for script-rendered content; never fails the load."""
        try:
            await page.wait_for_load_state("domcontentloaded", timeout=config.timeout)
            await page.wait_for_timeout(self.SETTLE_DELAY_MS)
            await page.wait_for_load_state("networkidle", timeout=config.timeout)
            if config.wait_for_selector:
                await page.wait_for_selector(config.wait_for_selector, timeout=config.timeout)
        except PlaywrightError as e:
            logger.warning(f"Content wait for {page.url} did not finish, continuing with partial content: {e.message}")

    async def get_anchors(self, page: PageObservation) -> list[RawAnchorObservation]:
        loaded: _LoadedPage = page.handle
        try:
            anchors = await loaded.page.evaluate(_ANCHOR_SCRIPT)
        except PlaywrightError as e:
            raise ParseError(f"Failed to read anchors from the DOM: {e.message}", page.url) from e
        return [observation_from_dict(anchor) for anchor in anchors or []]

    async def close(self, page: PageObservation) -> None:
        """Close the page and its context."""
        loaded: Optional[_LoadedPage] = page.handle
        if loaded is None:
            return
        with contextlib.suppress(Exception):
            await loaded.page.close()
        with contextlib.suppress(Exception):
            await loaded.context.close()
        page.handle = None
