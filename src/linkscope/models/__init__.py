"""linkscope data and configuration models."""

from .config import (
    BatchOptions,
    Cookie,
    ExtractionOptions,
    FilterCriteria,
    LinkscopeConfig,
    RenderConfig,
)
from .links import (
    BatchError,
    BatchResult,
    BatchSummary,
    ExtractionResult,
    Link,
    LinkAttributes,
    LinkLocality,
    LinkMetadata,
    RawAnchorObservation,
    Statistics,
)

__all__ = [
    # Config
    "BatchOptions",
    "Cookie",
    "ExtractionOptions",
    "FilterCriteria",
    "LinkscopeConfig",
    "RenderConfig",
    # Links
    "BatchError",
    "BatchResult",
    "BatchSummary",
    "ExtractionResult",
    "Link",
    "LinkAttributes",
    "LinkLocality",
    "LinkMetadata",
    "RawAnchorObservation",
    "Statistics",
]
