"""Single-URL extraction: render, normalize, describe, aggregate, classify."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from datetime import datetime, timezone
from types import TracebackType
from typing import Any, Optional

from ..diagnostics import ErrorCatalog
from ..errors import LinkscopeError, NetworkError, ParseError, ValidationError
from ..models.config import ExtractionOptions
from ..models.links import (
    ExtractionResult,
    Link,
    LinkLocality,
    LinkMetadata,
    RawAnchorObservation,
    Statistics,
)
from ..rendering.protocols import PageObservation, Renderer
from .classifier import LinkClassifier
from .descriptions import DescriptionGenerator
from .metadata import UNKNOWN_CONTEXT, MetadataAggregator
from .normalizer import UrlNormalizer

logger = logging.getLogger(__name__)


class ExtractionHooks:
    """
    Instrumentation hooks around each extraction.

    The default implementation does nothing; subclass to observe timing or
    concurrency.
    """

    def on_extract_start(self, url: str) -> None:
        pass

    def on_extract_end(self, url: str, result: ExtractionResult) -> None:
        pass


class ExtractionOrchestrator:
    """
    Turn one page's anchors into a deduplicated, filtered link inventory.

    Per-page failures are recorded in the result's ``errors`` and never
    raised; only ``extract_with_retry`` raises, once its retries on network
    failures are exhausted.

    Example:
        async with ExtractionOrchestrator() as orchestrator:
            result = await orchestrator.extract(
                "https://example.com",
                ExtractionOptions(include_metadata=True),
            )
            print(result.statistics.unique_links)
    """

    RETRY_BASE = 2  # delay before retry n is RETRY_BASE ** n seconds

    def __init__(
        self,
        renderer: Optional[Renderer] = None,
        catalog: Optional[ErrorCatalog] = None,
        hooks: Optional[ExtractionHooks] = None,
        renderer_kind: str = "browser",
        headless: bool = True,
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            renderer: Page renderer (created from ``renderer_kind`` if None)
            catalog: Diagnostics and redirect catalog (a fresh one if None)
            hooks: Instrumentation hooks
            renderer_kind: 'browser' or 'static', used when renderer is None
            headless: Run the browser headless, used when renderer is None
        """
        self.catalog = catalog or ErrorCatalog()
        # A renderer built here is shut down by close(), entered or not
        self._owns_renderer = renderer is None
        if renderer is None:
            from ..rendering import create_renderer

            renderer = create_renderer(renderer_kind, self.catalog, headless=headless)
        self.renderer = renderer
        self.hooks = hooks or ExtractionHooks()

        self.normalizer = UrlNormalizer()
        self.describer = DescriptionGenerator()
        self.aggregator = MetadataAggregator()
        self.classifier = LinkClassifier()

        self._entered = False

    async def __aenter__(self) -> ExtractionOrchestrator:
        """Start the renderer session if the renderer has one."""
        enter = getattr(self.renderer, "__aenter__", None)
        if enter is not None:
            await enter()
            self._entered = True
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def close(self) -> None:
        """
        Shut down the renderer session.

        Covers a session started by ``__aenter__`` and one a self-created
        renderer started lazily on its first ``load``. Call this when
        ``extract`` was used without ``async with``.
        """
        exit_ = getattr(self.renderer, "__aexit__", None)
        if exit_ is not None and (self._entered or self._owns_renderer):
            self._entered = False
            await exit_(None, None, None)

    async def extract(self, url: str, options: Optional[ExtractionOptions] = None) -> ExtractionResult:
        """
        Extract links from ``url``.

        Args:
            url: Page to extract from
            options: Render settings, filter criteria and metadata toggle;
                     when given, ``verbose`` sets the catalog's verbosity

        Returns:
            Result with links and statistics; failures are listed in
            ``errors`` and leave links empty
        """
        if options is not None:
            self.catalog.verbose = options.verbose
        options = options or ExtractionOptions()

        timestamp = datetime.now(timezone.utc)
        errors: list[BaseException] = []
        links: list[Link] = []

        self.hooks.on_extract_start(url)
        self.catalog.info(f"Starting link extraction for {url}", url=url)

        page: Optional[PageObservation] = None
        try:
            page = await self.renderer.load(url, options.render_config())
            observations = await self.renderer.get_anchors(page)
            links = self._build_links(observations, url, options)
            self.catalog.info(f"Extracted {len(links)} unique links from {url}", url=url, link_count=len(links))
        except LinkscopeError as e:
            errors.append(e)
            self.catalog.handle_error(e, url=url)
        except Exception as e:
            wrapped = self._wrap_unexpected(e, url, loaded=page is not None)
            errors.append(wrapped)
            self.catalog.handle_error(wrapped, url=url)
        finally:
            if page is not None:
                await self._release(page)

        result = ExtractionResult(
            source_url=url,
            timestamp=timestamp,
            links=links,
            statistics=Statistics.from_links(links),
            errors=errors,
        )
        self.hooks.on_extract_end(url, result)
        return result

    async def extract_with_retry(
        self,
        url: str,
        options: Optional[ExtractionOptions] = None,
        max_retries: int = 3,
    ) -> ExtractionResult:
        """
        Extract with exponential backoff on network failures.

        Only network-class failures are retried; any other outcome is
        returned as-is. Retry n waits ``2 ** n`` seconds first.

        Args:
            url: Page to extract from
            options: Extraction options
            max_retries: Retries after the initial attempt

        Returns:
            The first result that did not fail with a network error

        Raises:
            NetworkError: When every attempt failed with a network error;
                ``retries`` is ``max_retries`` and ``cause`` the last failure
            ValidationError: If ``max_retries`` is negative
        """
        if max_retries < 0:
            raise ValidationError(
                f"max_retries must not be negative, got {max_retries}",
                "max_retries",
                "Must be zero or greater",
            )

        last_error: Optional[NetworkError] = None
        for attempt in range(max_retries + 1):
            if attempt > 0:
                delay = self.RETRY_BASE**attempt
                self.catalog.info(
                    f"Retry {attempt}/{max_retries} for {url} after {delay}s",
                    url=url,
                    retry=attempt,
                    max_retries=max_retries,
                    delay=delay,
                )
                await asyncio.sleep(delay)

            try:
                result = await self.extract(url, options)
            except NetworkError as e:
                last_error = e
                continue

            network_error = next((e for e in result.errors if isinstance(e, NetworkError)), None)
            if network_error is None:
                return result
            last_error = network_error

        reason = last_error.message if last_error is not None else "unknown failure"
        final = NetworkError(
            f"Failed after {max_retries} retries: {reason}",
            url,
            retries=max_retries,
            cause=last_error,
        )
        self.catalog.handle_error(final, url=url, retries=max_retries)
        raise final from last_error

    def _build_links(
        self,
        observations: list[RawAnchorObservation],
        base_url: str,
        options: ExtractionOptions,
    ) -> list[Link]:
        normalized: list[RawAnchorObservation] = []
        for observation in observations:
            href = self.normalizer.normalize(observation.href, base_url)
            if href:
                normalized.append(dataclasses.replace(observation, href=href))

        metadata = self.aggregator.aggregate(normalized) if options.include_metadata else {}

        links: list[Link] = []
        seen: set[str] = set()
        for observation in normalized:
            if observation.href in seen:
                continue
            seen.add(observation.href)
            links.append(self._build_link(observation, base_url, metadata.get(observation.href)))

        if options.filter is not None and not options.filter.is_empty():
            links = self.classifier.filter(links, options.filter)
        return links

    def _build_link(
        self,
        observation: RawAnchorObservation,
        base_url: str,
        metadata: Optional[LinkMetadata],
    ) -> Link:
        protocol = self.normalizer.identify_protocol(observation.href)
        locality = self.classifier.locality(observation.href, base_url, protocol)

        if metadata is None:
            metadata = LinkMetadata(
                occurrences=1,
                has_no_follow=False,
                parent_context=observation.parent_tag or UNKNOWN_CONTEXT,
                position=0,
            )

        return Link(
            url=observation.href,
            description=self.describer.generate(observation),
            anchor_text=observation.anchor_text,
            title=observation.title,
            protocol=protocol,
            is_internal=locality is LinkLocality.INTERNAL,
            is_external=locality is LinkLocality.EXTERNAL,
            attributes=self.normalizer.extract_attributes(observation),
            metadata=metadata,
        )

    @staticmethod
    def _wrap_unexpected(error: Exception, url: str, loaded: bool) -> LinkscopeError:
        """Map a non-linkscope failure onto the taxonomy."""
        if not loaded:
            wrapped: LinkscopeError = NetworkError(f"Failed to load page: {error}", url, cause=error)
        else:
            wrapped = ParseError(f"Failed to read anchors: {error}", url)
        wrapped.__cause__ = error
        return wrapped

    async def _release(self, page: PageObservation) -> None:
        try:
            await self.renderer.close(page)
        except Exception as e:
            logger.debug(f"Error closing page for {page.url}: {e}")


def extract_blocking(url: str, **kwargs: Any) -> ExtractionResult:
    """
    Blocking single-URL extraction.

    Do not call from within a running event loop; use
    ``ExtractionOrchestrator`` directly there.

    Args:
        url: Page to extract from
        **kwargs: Fields of ``ExtractionOptions``

    Returns:
        The extraction result
    """
    options = ExtractionOptions(**kwargs)

    async def _run() -> ExtractionResult:
        async with ExtractionOrchestrator() as orchestrator:
            return await orchestrator.extract(url, options)

    return asyncio.run(_run())
