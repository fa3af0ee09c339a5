"""Page renderers: headless browser and static HTML."""

from typing import TYPE_CHECKING, Literal, Optional

from .protocols import PageObservation, RedirectRecorder, Renderer

if TYPE_CHECKING:
    from ..diagnostics import ErrorCatalog

RendererKind = Literal["browser", "static"]


def create_renderer(
    kind: str = "browser",
    catalog: Optional["ErrorCatalog"] = None,
    headless: bool = True,
) -> Renderer:
    """
    Create a renderer that reports redirects to ``catalog``.

    Args:
        kind: 'browser' (Playwright) or 'static' (aiohttp + BeautifulSoup)
        catalog: Receives every redirect hop observed
        headless: Run the browser headless (browser only)

    Returns:
        A renderer, not yet started

    Raises:
        ValueError: If kind is unknown
    """
    on_redirect = catalog.track_redirect if catalog is not None else None

    if kind == "browser":
        from .browser import BrowserRenderer

        return BrowserRenderer(headless=headless, on_redirect=on_redirect)
    if kind == "static":
        from .static import StaticRenderer

        return StaticRenderer(on_redirect=on_redirect)

    raise ValueError(f"Unknown renderer: {kind}. Available: browser, static")


__all__ = [
    "PageObservation",
    "RedirectRecorder",
    "Renderer",
    "RendererKind",
    "create_renderer",
]
