"""Internal/external classification and compound link filtering."""

import logging
import re
from dataclasses import dataclass, field
from typing import Optional, Protocol
from urllib.parse import urlparse

from ..models.config import FilterCriteria
from ..models.links import Link, LinkLocality

logger = logging.getLogger(__name__)

HTTP_PROTOCOLS = frozenset({"http", "https"})


def _hostname(url: str) -> Optional[str]:
    """Lower-case hostname of ``url``, or None if it has none or cannot be parsed."""
    try:
        hostname = urlparse(url).hostname
    except ValueError:
        return None
    return hostname or None


def _host_matches(hostname: str, domains: list[str]) -> bool:
    """Exact host match or subdomain match on a dot boundary."""
    return any(hostname == domain or hostname.endswith("." + domain) for domain in domains)


class LinkFilter(Protocol):
    """A single filter stage."""

    def should_include(self, link: Link) -> bool: ...


class InternalOnlyFilter:
    def should_include(self, link: Link) -> bool:
        return link.is_internal


class ExternalOnlyFilter:
    def should_include(self, link: Link) -> bool:
        return link.is_external


class DomainAllowFilter:
    """
    Keep links whose host is one of ``domains`` or a subdomain of one.

    Links without a parseable host are dropped.
    """

    def __init__(self, domains: list[str]):
        self.domains = [d.lower() for d in domains]

    def should_include(self, link: Link) -> bool:
        hostname = _hostname(link.url)
        if hostname is None:
            return False
        return _host_matches(hostname, self.domains)


class DomainDenyFilter:
    """
    Drop links whose host is one of ``domains`` or a subdomain of one.

    Links without a parseable host are kept.
    """

    def __init__(self, domains: list[str]):
        self.domains = [d.lower() for d in domains]

    def should_include(self, link: Link) -> bool:
        hostname = _hostname(link.url)
        if hostname is None:
            return True
        return not _host_matches(hostname, self.domains)


class UrlPatternFilter:
    """Keep links whose URL matches a regular expression (searched, not anchored)."""

    def __init__(self, pattern: str):
        self.pattern = pattern
        try:
            self._regex: Optional[re.Pattern[str]] = re.compile(pattern)
        except re.error as e:
            logger.warning(f"Invalid URL pattern {pattern!r}: {e}. No links will match.")
            self._regex = None

    def should_include(self, link: Link) -> bool:
        return self._regex is not None and self._regex.search(link.url) is not None


class ProtocolFilter:
    """Keep links whose protocol is in ``protocols`` (case-insensitive, ':' ignored)."""

    def __init__(self, protocols: list[str]):
        self.protocols = {p.lower().replace(":", "") for p in protocols}

    def should_include(self, link: Link) -> bool:
        return link.protocol.lower() in self.protocols


class CompositeLinkFilter:
    """
    Combine filter stages with AND logic.

    All stages must approve a link for it to be kept.
    """

    def __init__(self, filters: list[LinkFilter]):
        self.filters = filters

    def should_include(self, link: Link) -> bool:
        return all(f.should_include(link) for f in self.filters)

    def __len__(self) -> int:
        return len(self.filters)


@dataclass
class ClassifiedLinks:
    """Links partitioned by locality. Links that are neither are left out."""

    internal: list[Link] = field(default_factory=list)
    external: list[Link] = field(default_factory=list)


class LinkClassifier:
    """
    Decide link locality and apply filter criteria.

    Example:
        classifier = LinkClassifier()
        classifier.is_internal("https://example.com/a", "https://EXAMPLE.com/")  # True
        kept = classifier.filter(links, FilterCriteria(internal_only=True, url_pattern="/api/"))
    """

    def is_internal(self, url: str, base_url: str) -> bool:
        """
        Check whether ``url`` is on the same host as ``base_url``.

        Anything that fails to parse, or has no host, counts as external so
        unknown links are never trusted as same-site.
        """
        url_host = _hostname(url)
        base_host = _hostname(base_url)
        if url_host is None or base_host is None:
            return False
        return url_host == base_host

    def locality(self, url: str, base_url: str, protocol: str) -> LinkLocality:
        """
        Three-way locality of a link.

        Only http(s) links can be external; a foreign ``ftp`` or ``mailto``
        link is neither internal nor external.
        """
        if self.is_internal(url, base_url):
            return LinkLocality.INTERNAL
        if protocol.lower() in HTTP_PROTOCOLS:
            return LinkLocality.EXTERNAL
        return LinkLocality.NEITHER

    def build_filter(self, criteria: FilterCriteria) -> CompositeLinkFilter:
        """
        Build the filter stages for ``criteria`` in their fixed order.

        Order: internal-only, external-only, domain allow-list, domain
        deny-list, URL pattern, protocols.
        """
        stages: list[LinkFilter] = []
        if criteria.internal_only:
            stages.append(InternalOnlyFilter())
        if criteria.external_only:
            stages.append(ExternalOnlyFilter())
        if criteria.domains:
            stages.append(DomainAllowFilter(criteria.domains))
        if criteria.exclude_domains:
            stages.append(DomainDenyFilter(criteria.exclude_domains))
        if criteria.url_pattern:
            stages.append(UrlPatternFilter(criteria.url_pattern))
        if criteria.protocols:
            stages.append(ProtocolFilter(criteria.protocols))
        return CompositeLinkFilter(stages)

    def filter(self, links: list[Link], criteria: FilterCriteria) -> list[Link]:  # noqa: A003
        """
        Narrow ``links`` to those satisfying every criterion.

        Args:
            links: Links to filter (order is preserved)
            criteria: Filter criteria

        Returns:
            New list of the links that passed every stage
        """
        composite = self.build_filter(criteria)
        if not len(composite):
            return list(links)
        return [link for link in links if composite.should_include(link)]

    def matches_pattern(self, url: str, pattern: str) -> bool:
        """Regex search of ``pattern`` in ``url``; invalid patterns never match."""
        try:
            return re.search(pattern, url) is not None
        except re.error:
            return False

    def filter_by_domain(self, links: list[Link], domains: list[str]) -> list[Link]:
        """Keep links on any of ``domains`` or their subdomains."""
        if not domains:
            return list(links)
        allow = DomainAllowFilter(domains)
        return [link for link in links if allow.should_include(link)]

    def classify(self, links: list[Link]) -> ClassifiedLinks:
        """Partition links using their precomputed locality flags."""
        classified = ClassifiedLinks()
        for link in links:
            if link.is_internal:
                classified.internal.append(link)
            elif link.is_external:
                classified.external.append(link)
        return classified
