"""Link, result and summary models produced by the extraction pipeline."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from ..errors import error_to_dict


class LinkLocality(str, Enum):
    """Where a link points relative to the page it was found on."""

    INTERNAL = "internal"
    EXTERNAL = "external"
    # Not same-host and not http(s), e.g. ftp:// or mailto:
    NEITHER = "neither"


@dataclass(frozen=True)
class RawAnchorObservation:
    """
    One anchor element as reported by a Renderer.

    ``href`` is the raw attribute value until the orchestrator normalizes it.
    """

    href: str
    anchor_text: str = ""
    title: Optional[str] = None
    aria_label: Optional[str] = None
    rel: Optional[str] = None
    target: Optional[str] = None
    image_alt: Optional[str] = None
    parent_tag: Optional[str] = None
    data_attributes: dict[str, str] = field(default_factory=dict)


@dataclass
class LinkAttributes:
    """HTML attributes carried over from the anchor."""

    rel: Optional[str] = None
    target: Optional[str] = None
    aria_label: Optional[str] = None
    data_attributes: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "rel": self.rel,
            "target": self.target,
            "aria_label": self.aria_label,
            "data_attributes": dict(self.data_attributes),
        }


@dataclass
class LinkMetadata:
    """Occurrence data for a URL on one page."""

    occurrences: int = 1
    has_no_follow: bool = False
    parent_context: str = "unknown"
    position: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "occurrences": self.occurrences,
            "has_no_follow": self.has_no_follow,
            "parent_context": self.parent_context,
            "position": self.position,
        }


@dataclass
class Link:
    """A deduplicated, enriched link. ``url`` is unique within a result."""

    url: str
    description: str
    anchor_text: str
    protocol: str
    is_internal: bool
    is_external: bool
    title: Optional[str] = None
    attributes: LinkAttributes = field(default_factory=LinkAttributes)
    metadata: LinkMetadata = field(default_factory=LinkMetadata)

    @property
    def locality(self) -> LinkLocality:
        if self.is_internal:
            return LinkLocality.INTERNAL
        if self.is_external:
            return LinkLocality.EXTERNAL
        return LinkLocality.NEITHER

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "description": self.description,
            "anchor_text": self.anchor_text,
            "title": self.title,
            "protocol": self.protocol,
            "is_internal": self.is_internal,
            "is_external": self.is_external,
            "attributes": self.attributes.to_dict(),
            "metadata": self.metadata.to_dict(),
        }


@dataclass
class Statistics:
    """
    Counts over a result's final link set.

    ``unique_links == len(links)``, ``internal_links + external_links <=
    unique_links`` and the protocol breakdown sums to ``unique_links``.
    """

    total_links: int = 0
    unique_links: int = 0
    internal_links: int = 0
    external_links: int = 0
    protocol_breakdown: dict[str, int] = field(default_factory=dict)

    @classmethod
    def empty(cls) -> "Statistics":
        return cls()

    @classmethod
    def from_links(cls, links: list[Link]) -> "Statistics":
        """Compute statistics for an already-deduplicated link list."""
        stats = cls(total_links=len(links), unique_links=len(links))
        for link in links:
            if link.is_internal:
                stats.internal_links += 1
            if link.is_external:
                stats.external_links += 1
            stats.protocol_breakdown[link.protocol] = stats.protocol_breakdown.get(link.protocol, 0) + 1
        return stats

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_links": self.total_links,
            "unique_links": self.unique_links,
            "internal_links": self.internal_links,
            "external_links": self.external_links,
            "protocol_breakdown": dict(self.protocol_breakdown),
        }


@dataclass
class ExtractionResult:
    """Links and statistics for one source URL, plus any recorded errors."""

    source_url: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    links: list[Link] = field(default_factory=list)
    statistics: Statistics = field(default_factory=Statistics)
    errors: list[BaseException] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return not self.errors

    @classmethod
    def failed(cls, source_url: str, error: BaseException) -> "ExtractionResult":
        """Build a result carrying only ``error``."""
        return cls(source_url=source_url, errors=[error])

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_url": self.source_url,
            "timestamp": self.timestamp.isoformat(),
            "links": [link.to_dict() for link in self.links],
            "statistics": self.statistics.to_dict(),
            "errors": [error_to_dict(error) for error in self.errors],
        }


@dataclass
class BatchError:
    """An error paired with the URL whose extraction produced it."""

    url: str
    error: BaseException

    def to_dict(self) -> dict[str, Any]:
        return {"url": self.url, "error": error_to_dict(self.error)}


@dataclass
class BatchSummary:
    """Aggregate outcome of a batch run."""

    total_urls: int = 0
    successful_urls: int = 0
    failed_urls: int = 0
    total_links: int = 0
    errors: list[BatchError] = field(default_factory=list)

    @property
    def success_rate(self) -> float:
        """Successful URLs as a percentage of all URLs."""
        if self.total_urls == 0:
            return 0.0
        return (self.successful_urls / self.total_urls) * 100

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_urls": self.total_urls,
            "successful_urls": self.successful_urls,
            "failed_urls": self.failed_urls,
            "total_links": self.total_links,
            "success_rate": round(self.success_rate, 1),
            "errors": [entry.to_dict() for entry in self.errors],
        }


@dataclass
class BatchResult:
    """Per-URL results in input order plus the batch summary."""

    results: list[ExtractionResult] = field(default_factory=list)
    summary: BatchSummary = field(default_factory=BatchSummary)

    def to_dict(self) -> dict[str, Any]:
        return {
            "results": [result.to_dict() for result in self.results],
            "summary": self.summary.to_dict(),
        }
