"""Readable link descriptions from anchor text, attributes or the URL."""

import logging
import re
from typing import Optional
from urllib.parse import unquote, urlparse

from ..models.links import RawAnchorObservation

logger = logging.getLogger(__name__)


class DescriptionGenerator:
    """
    Derive a human-readable label for a link.

    Sources are tried in priority order, first non-blank wins:
    1. Visible anchor text
    2. aria-label
    3. title attribute
    4. Alt text of an embedded image
    5. A description synthesized from the URL

    Example:
        generator = DescriptionGenerator()
        generator.generate_from_url("https://example.com/docs/getting-started.html")
        # 'Getting Started'
    """

    MAX_LENGTH = 200
    # A word-boundary cut is used only when it keeps more than this share of MAX_LENGTH
    WORD_BOUNDARY_RATIO = 0.8
    ELLIPSIS = "..."

    PLACEHOLDER = "Link"
    EMPTY_LINK = "Empty link"

    _WHITESPACE_RE = re.compile(r"\s+")
    _EDGE_PUNCTUATION_RE = re.compile(r"^[^\w\s]+|[^\w\s]+$")
    _SEPARATOR_RE = re.compile(r"[-_+]")
    _CAMEL_CASE_RE = re.compile(r"([a-z])([A-Z])")
    _EXTENSION_RE = re.compile(r"\.(html?|php|aspx?|jsp)$", re.IGNORECASE)

    def generate(self, observation: RawAnchorObservation) -> str:
        """
        Generate a description for an anchor.

        Args:
            observation: Anchor whose ``href`` is already normalized

        Returns:
            Cleaned description text
        """
        candidates: tuple[Optional[str], ...] = (
            observation.anchor_text,
            observation.aria_label,
            observation.title,
            observation.image_alt,
        )
        for candidate in candidates:
            if candidate and candidate.strip():
                return self.clean_text(candidate)

        return self.generate_from_url(observation.href)

    def generate_from_url(self, url: str) -> str:
        """
        Synthesize a description from the URL itself.

        Special protocols get a fixed phrase, otherwise the last path segment
        is humanized; root-only URLs fall back to the domain name.
        """
        if not url or not url.strip():
            return self.EMPTY_LINK

        lowered = url.lower()
        if lowered.startswith("mailto:"):
            return f"Email: {url[len('mailto:'):]}"
        if lowered.startswith("tel:"):
            return f"Phone: {url[len('tel:'):]}"
        if lowered.startswith("javascript:"):
            return "JavaScript action"
        if lowered.startswith("data:"):
            return "Data URI"

        try:
            parsed = urlparse(url)
            if not parsed.scheme or not parsed.hostname:
                raise ValueError(f"Not an absolute URL: {url}")

            segments = [self._format_path_segment(part) for part in parsed.path.split("/") if part]
            if not segments:
                return self._format_domain(parsed.hostname)

            last = self._EXTENSION_RE.sub("", segments[-1])
            description = self._capitalize_words(last)
            return description or self._format_domain(parsed.hostname)
        except ValueError:
            return self._fallback_description(url)

    def clean_text(self, text: str) -> str:
        """
        Normalize whitespace, trim edge punctuation and truncate.

        Text longer than MAX_LENGTH is cut at the last word boundary when that
        boundary falls within the final 20% of the budget, otherwise it is
        hard-truncated. Both cuts append an ellipsis.
        """
        if not text:
            return ""

        text = self._WHITESPACE_RE.sub(" ", text).strip()
        text = self._EDGE_PUNCTUATION_RE.sub("", text).strip()

        if len(text) > self.MAX_LENGTH:
            truncated = text[: self.MAX_LENGTH]
            last_space = truncated.rfind(" ")
            if last_space > self.MAX_LENGTH * self.WORD_BOUNDARY_RATIO:
                text = truncated[:last_space] + self.ELLIPSIS
            else:
                text = truncated + self.ELLIPSIS

        return text

    def _format_path_segment(self, segment: str) -> str:
        segment = unquote(segment)
        segment = self._SEPARATOR_RE.sub(" ", segment)
        return self._CAMEL_CASE_RE.sub(r"\1 \2", segment)

    def _format_domain(self, domain: str) -> str:
        if domain.startswith("www."):
            domain = domain[len("www.") :]
        parts = domain.split(".")
        if len(parts) > 1:
            domain = parts[0]
        return self._capitalize_words(domain)

    @staticmethod
    def _capitalize_words(text: str) -> str:
        return " ".join(word[0].upper() + word[1:].lower() for word in text.split())

    def _fallback_description(self, url: str) -> str:
        cleaned = re.sub(r"^https?://", "", url.strip())
        cleaned = re.sub(r"^www\.", "", cleaned)
        cleaned = re.sub(r"[?#].*$", "", cleaned)
        cleaned = cleaned.rstrip("/")

        if not cleaned:
            return self.PLACEHOLDER

        first = cleaned.split("/")[0]
        if first:
            return self._format_domain(first) or self.PLACEHOLDER
        return self.PLACEHOLDER
