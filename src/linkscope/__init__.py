"""
linkscope - Extract, describe and classify every link on a web page.

Usage:
    from linkscope import ExtractionOrchestrator, ExtractionOptions, FilterCriteria

    async with ExtractionOrchestrator() as orchestrator:
        result = await orchestrator.extract(
            "https://example.com",
            ExtractionOptions(filter=FilterCriteria(internal_only=True)),
        )
        for link in result.links:
            print(link.description, link.url)
"""

__version__ = "1.0.0"

from .batch import BatchOrchestrator, read_url_file
from .diagnostics import ErrorCatalog, LogEntry, RedirectChain, RedirectHop
from .errors import (
    AuthenticationError,
    ErrorKind,
    LinkscopeError,
    NetworkError,
    PageTimeoutError,
    ParseError,
    ValidationError,
)
from .extraction import (
    DescriptionGenerator,
    ExtractionHooks,
    ExtractionOrchestrator,
    LinkClassifier,
    MetadataAggregator,
    UrlNormalizer,
    extract_blocking,
)
from .models import (
    BatchOptions,
    BatchResult,
    BatchSummary,
    Cookie,
    ExtractionOptions,
    ExtractionResult,
    FilterCriteria,
    Link,
    LinkLocality,
    LinkMetadata,
    LinkscopeConfig,
    RawAnchorObservation,
    RenderConfig,
    Statistics,
)

__all__ = [
    "__version__",
    # Core
    "ExtractionOrchestrator",
    "ExtractionHooks",
    "BatchOrchestrator",
    "extract_blocking",
    "read_url_file",
    # Components
    "UrlNormalizer",
    "DescriptionGenerator",
    "MetadataAggregator",
    "LinkClassifier",
    # Diagnostics
    "ErrorCatalog",
    "LogEntry",
    "RedirectChain",
    "RedirectHop",
    # Errors
    "ErrorKind",
    "LinkscopeError",
    "NetworkError",
    "PageTimeoutError",
    "AuthenticationError",
    "ParseError",
    "ValidationError",
    # Models
    "BatchOptions",
    "BatchResult",
    "BatchSummary",
    "Cookie",
    "ExtractionOptions",
    "ExtractionResult",
    "FilterCriteria",
    "Link",
    "LinkLocality",
    "LinkMetadata",
    "LinkscopeConfig",
    "RawAnchorObservation",
    "RenderConfig",
    "Statistics",
]
