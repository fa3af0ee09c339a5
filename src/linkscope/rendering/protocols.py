"""Protocol definitions for page renderers."""

from dataclasses import dataclass
from typing import Any, Optional, Protocol

from ..models.config import RenderConfig
from ..models.links import RawAnchorObservation


class RedirectRecorder(Protocol):
    """Callback for every redirect hop; ``origin`` is the URL that was requested."""

    def __call__(self, from_url: str, to_url: str, status_code: int, origin: Optional[str] = None) -> None: ...


@dataclass
class PageObservation:
    """
    A loaded page as handed back by a Renderer.

    ``handle`` is renderer-specific (a Playwright page, parsed HTML, ...) and
    only meaningful to the renderer that produced it.
    """

    url: str
    final_url: str
    status_code: Optional[int] = None
    handle: Any = None


class Renderer(Protocol):
    """
    Protocol for loading pages and observing their anchors.

    Implementations raise ``NetworkError`` for navigation and resolution
    failures, ``PageTimeoutError`` when the timeout is exceeded and
    ``AuthenticationError`` for HTTP 401/403.
    """

    async def load(self, url: str, config: RenderConfig) -> PageObservation:
        """
        Load a page.

        Args:
            url: Page to load
            config: Timeout, headers, cookies, user agent, proxy and wait condition

        Returns:
            The loaded page
        """
        ...

    async def get_anchors(self, page: PageObservation) -> list[RawAnchorObservation]:
        """Observe every anchor element of a loaded page, in document order."""
        ...

    async def close(self, page: PageObservation) -> None:
        """Release everything held for ``page``. Must not raise."""
        ...
