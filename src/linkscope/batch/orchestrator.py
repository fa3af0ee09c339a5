"""Bounded-concurrency extraction over many URLs."""

from __future__ import annotations

import asyncio
import logging
import os
from collections import deque
from collections.abc import Sequence
from pathlib import Path
from types import TracebackType
from typing import Optional, Union

from ..diagnostics import ErrorCatalog
from ..errors import ValidationError
from ..extraction.orchestrator import ExtractionHooks, ExtractionOrchestrator
from ..models.config import BatchOptions
from ..models.links import BatchError, BatchResult, BatchSummary, ExtractionResult
from ..rendering.protocols import Renderer

logger = logging.getLogger(__name__)

UrlSource = Union[Sequence[str], str, os.PathLike]


def read_url_file(path: Union[str, os.PathLike[str]]) -> list[str]:
    """
    Read a batch file: one URL per line, blank and '#' lines ignored.

    Args:
        path: UTF-8 text file

    Returns:
        URLs in file order

    Raises:
        ValidationError: If the file cannot be read
    """
    try:
        content = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ValidationError(
            f"Failed to read URLs from file: {e}",
            "file_path",
            "File must exist and be readable UTF-8 text",
        ) from e

    urls: list[str] = []
    for line in content.splitlines():
        stripped = line.strip()
        if stripped and not stripped.startswith("#"):
            urls.append(stripped)
    return urls


def summarize(results: list[ExtractionResult]) -> BatchSummary:
    """
    Summarize batch results.

    A URL is successful when its result has no errors, even with zero links.
    Only successful results contribute to ``total_links``.
    """
    summary = BatchSummary(total_urls=len(results))
    for result in results:
        if result.succeeded:
            summary.successful_urls += 1
            summary.total_links += len(result.links)
        else:
            summary.failed_urls += 1
            summary.errors.extend(BatchError(url=result.source_url, error=error) for error in result.errors)
    return summary


class BatchOrchestrator:
    """
    Run extractions over many URLs with at most ``concurrency`` in flight.

    URLs are admitted in FIFO order; results land in input order no matter
    which extraction finishes first, and a failing URL never affects its
    siblings. All extractions share one renderer session.

    Example:
        async with BatchOrchestrator() as batch:
            outcome = await batch.process_batch("urls.txt", BatchOptions(concurrency=5))
            print(outcome.summary.successful_urls)
    """

    def __init__(
        self,
        extractor: Optional[ExtractionOrchestrator] = None,
        catalog: Optional[ErrorCatalog] = None,
        renderer: Optional[Renderer] = None,
        hooks: Optional[ExtractionHooks] = None,
        renderer_kind: str = "browser",
        headless: bool = True,
    ) -> None:
        """
        Initialize the batch orchestrator.

        Args:
            extractor: Orchestrator to run per URL (built from the other
                       arguments if None)
            catalog: Diagnostics catalog shared with the extractor
            renderer: Renderer for the extractor built here
            hooks: Instrumentation hooks for the extractor built here
            renderer_kind: 'browser' or 'static', used when renderer is None
            headless: Run the browser headless, used when renderer is None
        """
        if extractor is None:
            extractor = ExtractionOrchestrator(
                renderer=renderer,
                catalog=catalog,
                hooks=hooks,
                renderer_kind=renderer_kind,
                headless=headless,
            )
        self.extractor = extractor
        self.catalog = extractor.catalog

    async def __aenter__(self) -> BatchOrchestrator:
        await self.extractor.__aenter__()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.extractor.__aexit__(exc_type, exc_val, exc_tb)

    async def close(self) -> None:
        """Shut down the extractor's renderer session."""
        await self.extractor.close()

    def resolve_urls(self, source: UrlSource) -> list[str]:
        """Turn a URL list or batch-file path into a list of URLs."""
        if isinstance(source, (str, os.PathLike)):
            return read_url_file(source)
        return [url.strip() for url in source if url and url.strip()]

    async def process_batch(
        self,
        urls_or_file: UrlSource,
        options: Optional[BatchOptions] = None,
        concurrency: Optional[int] = None,
    ) -> BatchResult:
        """
        Extract links from every URL of a batch.

        Args:
            urls_or_file: URLs, or the path of a batch file
            options: Extraction options plus concurrency
            concurrency: Overrides ``options.concurrency`` when given

        Returns:
            Results in input order plus a summary

        Raises:
            ValidationError: If the source yields no URLs or concurrency is
                not positive; no extraction is started in that case
        """
        options = options or BatchOptions()
        limit = options.concurrency if concurrency is None else concurrency
        if limit <= 0:
            raise ValidationError(
                f"Concurrency must be greater than 0, got {limit}",
                "concurrency",
                "Must be a positive integer",
            )

        urls = self.resolve_urls(urls_or_file)
        if not urls:
            raise ValidationError(
                "No URLs provided for batch processing",
                "urls",
                "Must provide at least one URL",
            )

        self.catalog.info(f"Processing batch of {len(urls)} URLs (concurrency {limit})", total=len(urls))
        results = await self._process_with_concurrency(urls, options, limit)
        summary = summarize(results)

        logger.info(
            f"Batch completed: {summary.successful_urls} succeeded, "
            f"{summary.failed_urls} failed, {summary.total_links} links"
        )
        return BatchResult(results=results, summary=summary)

    async def _process_with_concurrency(
        self,
        urls: list[str],
        options: BatchOptions,
        limit: int,
    ) -> list[ExtractionResult]:
        slots: list[Optional[ExtractionResult]] = [None] * len(urls)
        queue: deque[tuple[int, str]] = deque(enumerate(urls))
        in_flight: set[asyncio.Task[None]] = set()

        while queue or in_flight:
            while queue and len(in_flight) < limit:
                index, url = queue.popleft()
                task = asyncio.create_task(
                    self._process_url(index, url, options, slots),
                    name=f"linkscope-extract-{index}",
                )
                in_flight.add(task)

            _, in_flight = await asyncio.wait(in_flight, return_when=asyncio.FIRST_COMPLETED)

        return [
            slot if slot is not None else ExtractionResult.failed(url, RuntimeError("Extraction did not complete"))
            for slot, url in zip(slots, urls)
        ]

    async def _process_url(
        self,
        index: int,
        url: str,
        options: BatchOptions,
        slots: list[Optional[ExtractionResult]],
    ) -> None:
        """Extract one URL into its slot. Never raises."""
        try:
            self.catalog.debug(f"Processing: {url}", url=url)
            result = await self.extractor.extract(url, options)
            self.catalog.debug(f"Completed: {url} ({len(result.links)} links)", url=url)
        except Exception as e:
            self.catalog.error(f"Failed: {url} - {e}", error=e, url=url)
            result = ExtractionResult.failed(url, e)
        slots[index] = result
