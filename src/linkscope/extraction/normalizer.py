"""URL resolution and protocol identification."""

import logging
import re
from enum import Enum
from urllib.parse import ParseResult, urlparse

from ..models.links import LinkAttributes, RawAnchorObservation

logger = logging.getLogger(__name__)

_SCHEME_RE = re.compile(r"^([a-z][a-z0-9+.-]*):", re.IGNORECASE)


class ProtocolClass(str, Enum):
    """Coarse protocol buckets."""

    HTTP = "http"
    SPECIAL = "special"
    UNKNOWN = "unknown"


def _remove_dot_segments(path: str) -> str:
    """Collapse ``.`` and ``..`` segments of an absolute path, never above root."""
    segments = path.split("/")
    output: list[str] = []
    for segment in segments:
        if segment == "..":
            if len(output) > 1:
                output.pop()
        elif segment != ".":
            output.append(segment)

    if segments[-1] in (".", ".."):
        output.append("")

    resolved = "/".join(output)
    return resolved if resolved.startswith("/") else "/" + resolved


class UrlNormalizer:
    """
    Resolve anchor references into canonical absolute URLs.

    Resolution never raises: when a reference cannot be resolved the
    trimmed original string is returned instead.

    Example:
        normalizer = UrlNormalizer()
        normalizer.normalize("../api", "https://example.com/docs/guide/intro")
        # 'https://example.com/docs/api'
    """

    # References returned untouched (never resolved against the base)
    PASSTHROUGH_PREFIXES = ("mailto:", "tel:", "javascript:", "data:")

    # Literal prefixes recognised before generic scheme parsing
    KNOWN_PREFIXES = (
        ("mailto:", "mailto"),
        ("tel:", "tel"),
        ("javascript:", "javascript"),
        ("data:", "data"),
        ("ftp://", "ftp"),
        ("ftps://", "ftps"),
    )

    HTTP_PROTOCOLS = frozenset({"http", "https"})
    SPECIAL_PROTOCOLS = frozenset({"mailto", "tel", "javascript", "data", "ftp", "ftps"})

    def normalize(self, reference: str, base_url: str) -> str:
        """
        Resolve ``reference`` against ``base_url``.

        Args:
            reference: Raw href value from the page
            base_url: URL of the page the reference was found on

        Returns:
            Absolute URL, the original reference if it cannot be resolved,
            or an empty string for blank references
        """
        if not reference or not reference.strip():
            return ""

        reference = reference.strip()
        try:
            return self._resolve(reference, base_url)
        except Exception as e:
            logger.debug(f"Could not resolve {reference!r} against {base_url!r}: {e}")
            return reference

    def _resolve(self, reference: str, base_url: str) -> str:
        lowered = reference.lower()

        if lowered.startswith(self.PASSTHROUGH_PREFIXES):
            return reference

        if reference.startswith("//"):
            return f"{self._parse_base(base_url).scheme}:{reference}"

        if lowered.startswith(("http://", "https://")):
            return reference

        # Any other explicit scheme (ftp://, ftps://, custom app links) is
        # already absolute.
        if _SCHEME_RE.match(reference):
            return reference

        if reference.startswith("#"):
            return f"{base_url}{reference}"

        base = self._parse_base(base_url)
        origin = f"{base.scheme}://{base.netloc}"

        if reference.startswith("/"):
            return f"{origin}{reference}"

        base_path = base.path or "/"
        directory = base_path[: base_path.rfind("/") + 1]

        split_at = len(reference)
        for marker in ("?", "#"):
            index = reference.find(marker)
            if index != -1:
                split_at = min(split_at, index)
        path, suffix = reference[:split_at], reference[split_at:]

        return f"{origin}{_remove_dot_segments(directory + path)}{suffix}"

    @staticmethod
    def _parse_base(base_url: str) -> ParseResult:
        base = urlparse(base_url)
        if not base.scheme or not base.netloc:
            raise ValueError(f"Base URL is not absolute: {base_url}")
        return base

    def identify_protocol(self, url: str) -> str:
        """
        Identify the protocol token of a URL.

        Args:
            url: Absolute or raw URL

        Returns:
            Lower-case protocol token (e.g. 'https', 'mailto'), or 'unknown'
        """
        if not url or not url.strip():
            return "unknown"

        url = url.strip()
        lowered = url.lower()
        for prefix, token in self.KNOWN_PREFIXES:
            if lowered.startswith(prefix):
                return token

        try:
            scheme = urlparse(url).scheme
            if scheme:
                return scheme.lower()
        except ValueError:
            pass

        match = _SCHEME_RE.match(url)
        if match:
            return match.group(1).lower()
        return "unknown"

    def classify_protocol(self, protocol: str) -> ProtocolClass:
        """Bucket a protocol token into http, special or unknown."""
        token = protocol.lower()
        if token in self.HTTP_PROTOCOLS:
            return ProtocolClass.HTTP
        if token in self.SPECIAL_PROTOCOLS:
            return ProtocolClass.SPECIAL
        return ProtocolClass.UNKNOWN

    def extract_attributes(self, observation: RawAnchorObservation) -> LinkAttributes:
        """Copy the anchor's HTML attributes into a ``LinkAttributes`` record."""
        return LinkAttributes(
            rel=observation.rel,
            target=observation.target,
            aria_label=observation.aria_label,
            data_attributes=dict(observation.data_attributes),
        )
