"""Tests for link classification and filtering."""

import pytest

from linkscope.extraction.classifier import LinkClassifier, UrlPatternFilter
from linkscope.models.config import FilterCriteria
from linkscope.models.links import Link, LinkLocality

BASE = "https://example.com/docs/"


def make_link(url: str, protocol: str = "https", is_internal: bool = False, is_external: bool = False) -> Link:
    return Link(
        url=url,
        description=url,
        anchor_text="",
        protocol=protocol,
        is_internal=is_internal,
        is_external=is_external,
    )


@pytest.fixture
def classifier():
    return LinkClassifier()


class TestLocality:
    """Tests for internal/external decisions."""

    def test_same_host_is_internal(self, classifier):
        assert classifier.is_internal("https://EXAMPLE.com/about", BASE)

    def test_other_host_is_not_internal(self, classifier):
        assert not classifier.is_internal("https://other.com/", BASE)

    def test_subdomain_is_not_internal(self, classifier):
        assert not classifier.is_internal("https://blog.example.com/", BASE)

    @pytest.mark.parametrize("url", ["mailto:a@example.com", "not a url", "http://[::1"])
    def test_unparseable_or_hostless_is_external(self, classifier, url):
        assert not classifier.is_internal(url, BASE)

    def test_three_way_locality(self, classifier):
        assert classifier.locality("https://example.com/x", BASE, "https") is LinkLocality.INTERNAL
        assert classifier.locality("https://other.com/x", BASE, "https") is LinkLocality.EXTERNAL
        assert classifier.locality("ftp://other.com/x", BASE, "ftp") is LinkLocality.NEITHER
        assert classifier.locality("mailto:a@b.com", BASE, "mailto") is LinkLocality.NEITHER


class TestFilter:
    """Tests for compound filter criteria."""

    @pytest.fixture
    def links(self):
        return [
            make_link("https://example.com/api/users", is_internal=True),
            make_link("https://example.com/blog", is_internal=True),
            make_link("https://other.com/api/v1", is_external=True),
            make_link("mailto:team@example.com", protocol="mailto"),
        ]

    def test_internal_only_with_pattern(self, classifier, links):
        """Two internal links, one matching /api/: exactly one survives."""
        kept = classifier.filter(links, FilterCriteria(internal_only=True, url_pattern="/api/"))
        assert [link.url for link in kept] == ["https://example.com/api/users"]

    def test_empty_criteria_keeps_everything(self, classifier, links):
        kept = classifier.filter(links, FilterCriteria())
        assert kept == links
        assert kept is not links

    def test_external_only(self, classifier, links):
        kept = classifier.filter(links, FilterCriteria(external_only=True))
        assert [link.url for link in kept] == ["https://other.com/api/v1"]

    def test_domain_allow_list_matches_subdomains(self, classifier):
        links = [
            make_link("https://docs.example.com/a"),
            make_link("https://example.com/b"),
            make_link("https://notexample.com/c"),
            make_link("mailto:x@example.com", protocol="mailto"),
        ]
        kept = classifier.filter(links, FilterCriteria(domains=["Example.com"]))
        assert [link.url for link in kept] == ["https://docs.example.com/a", "https://example.com/b"]

    def test_domain_deny_list_keeps_unparseable(self, classifier, links):
        kept = classifier.filter(links, FilterCriteria(exclude_domains=["example.com"]))
        assert [link.url for link in kept] == ["https://other.com/api/v1", "mailto:team@example.com"]

    def test_invalid_pattern_matches_nothing(self, classifier, links):
        assert classifier.filter(links, FilterCriteria(url_pattern="([unclosed")) == []

    def test_protocols_ignore_case_and_colon(self, classifier, links):
        kept = classifier.filter(links, FilterCriteria(protocols=["MAILTO:"]))
        assert [link.url for link in kept] == ["mailto:team@example.com"]

    def test_stages_compose_with_and(self, classifier, links):
        criteria = FilterCriteria(domains=["example.com", "other.com"], url_pattern="api", protocols=["https"])
        kept = classifier.filter(links, criteria)
        assert [link.url for link in kept] == ["https://example.com/api/users", "https://other.com/api/v1"]

    def test_build_filter_fixed_order(self, classifier):
        criteria = FilterCriteria(protocols=["https"], url_pattern="x", internal_only=True)
        stages = classifier.build_filter(criteria).filters
        assert [type(stage).__name__ for stage in stages] == [
            "InternalOnlyFilter",
            "UrlPatternFilter",
            "ProtocolFilter",
        ]


class TestHelpers:
    """Tests for pattern, domain and partition helpers."""

    def test_matches_pattern_searches(self, classifier):
        assert classifier.matches_pattern("https://example.com/api/v2", r"api/v\d")
        assert not classifier.matches_pattern("https://example.com/", "api")
        assert not classifier.matches_pattern("https://example.com/", "(")

    def test_invalid_pattern_logs_warning(self, caplog):
        url_filter = UrlPatternFilter("[")
        assert not url_filter.should_include(make_link("https://example.com/["))
        assert "Invalid URL pattern" in caplog.text

    def test_filter_by_domain(self, classifier):
        links = [make_link("https://a.example.com/"), make_link("https://b.org/")]
        assert classifier.filter_by_domain(links, ["example.com"]) == links[:1]
        assert classifier.filter_by_domain(links, []) == links

    def test_classify_uses_flags(self, classifier):
        internal = make_link("https://other.com/", is_internal=True)
        external = make_link("https://example.com/", is_external=True)
        neither = make_link("ftp://example.com/", protocol="ftp")

        classified = classifier.classify([internal, external, neither])

        assert classified.internal == [internal]
        assert classified.external == [external]
