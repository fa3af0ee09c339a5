"""Tests for link description generation."""

import pytest

from linkscope.extraction.descriptions import DescriptionGenerator
from linkscope.models.links import RawAnchorObservation


@pytest.fixture
def generator():
    return DescriptionGenerator()


class TestSourcePriority:
    """The first non-blank source wins."""

    def test_anchor_text_wins(self, generator):
        observation = RawAnchorObservation(
            href="https://example.com/a",
            anchor_text="Read the docs",
            aria_label="Documentation",
            title="Docs",
            image_alt="Logo",
        )
        assert generator.generate(observation) == "Read the docs"

    def test_aria_label_before_title(self, generator):
        observation = RawAnchorObservation(
            href="https://example.com/a",
            anchor_text="   ",
            aria_label="Close dialog",
            title="Close",
        )
        assert generator.generate(observation) == "Close dialog"

    def test_title_before_image_alt(self, generator):
        observation = RawAnchorObservation(href="https://example.com/a", title="Profile", image_alt="Avatar")
        assert generator.generate(observation) == "Profile"

    def test_image_alt(self, generator):
        observation = RawAnchorObservation(href="https://example.com/a", image_alt="Company logo")
        assert generator.generate(observation) == "Company logo"

    def test_falls_back_to_url(self, generator):
        observation = RawAnchorObservation(href="https://example.com/docs/getting-started.html")
        assert generator.generate(observation) == "Getting Started"


class TestGenerateFromUrl:
    """Tests for descriptions synthesized from URLs."""

    @pytest.mark.parametrize(
        "url,expected",
        [
            ("mailto:team@example.com", "Email: team@example.com"),
            ("tel:+15550100", "Phone: +15550100"),
            ("javascript:void(0)", "JavaScript action"),
            ("data:text/plain,hi", "Data URI"),
        ],
    )
    def test_special_protocols(self, generator, url, expected):
        assert generator.generate_from_url(url) == expected

    @pytest.mark.parametrize(
        "url,expected",
        [
            ("https://example.com/blog/my_first+post", "My First Post"),
            ("https://example.com/api/getUserProfile", "Get User Profile"),
            ("https://example.com/files/Annual%20Report.pdf", "Annual Report.pdf"),
            ("https://example.com/about.php", "About"),
            ("https://example.com/docs/", "Docs"),
        ],
    )
    def test_last_path_segment_is_humanized(self, generator, url, expected):
        assert generator.generate_from_url(url) == expected

    @pytest.mark.parametrize(
        "url,expected",
        [
            ("https://www.example.com/", "Example"),
            ("https://github.com", "Github"),
            ("http://localhost:8080/", "Localhost"),
        ],
    )
    def test_root_path_uses_domain(self, generator, url, expected):
        assert generator.generate_from_url(url) == expected

    def test_empty_url(self, generator):
        assert generator.generate_from_url("") == "Empty link"

    def test_unparseable_url_uses_fallback(self, generator):
        assert generator.generate_from_url("www.example.com/page") == "Example"

    def test_fallback_placeholder(self, generator):
        assert generator.generate_from_url("/") == "Link"


class TestCleanText:
    """Tests for whitespace cleanup and truncation."""

    def test_collapses_whitespace(self, generator):
        assert generator.clean_text("  Getting\n\tstarted   guide ") == "Getting started guide"

    def test_strips_edge_punctuation(self, generator):
        assert generator.clean_text("-> Next page! ") == "Next page"
        assert generator.clean_text("«Home»") == "Home"

    def test_keeps_inner_punctuation(self, generator):
        assert generator.clean_text("Q&A: part 2") == "Q&A: part 2"

    def test_short_text_untouched(self, generator):
        text = "a" * 200
        assert generator.clean_text(text) == text

    def test_truncates_at_word_boundary_near_the_end(self, generator):
        text = ("word " * 60).strip()  # 299 chars, spaces every 5
        cleaned = generator.clean_text(text)

        assert cleaned.endswith("...")
        assert len(cleaned) <= 203
        assert not cleaned[:-3].endswith(" ")
        assert cleaned[:-3].split()[-1] == "word"

    def test_hard_truncates_without_late_boundary(self, generator):
        text = "short " + "x" * 300
        cleaned = generator.clean_text(text)

        assert cleaned == text[:200] + "..."

    def test_empty_text(self, generator):
        assert generator.clean_text("") == ""
