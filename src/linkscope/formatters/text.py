"""Plain text formatter - numbered link listing."""

from ..models.links import ExtractionResult
from .base import BaseFormatter, error_message, link_type


class TextFormatter(BaseFormatter):
    """Human-readable listing; the default output format."""

    def format_result(self, result: ExtractionResult) -> str:
        stats = result.statistics
        lines = [
            f"Links extracted from: {result.source_url}",
            f"Extraction time: {result.timestamp.isoformat()}",
            "",
            "Statistics:",
            f"  Total Links: {stats.total_links}",
            f"  Unique Links: {stats.unique_links}",
            f"  Internal Links: {stats.internal_links}",
            f"  External Links: {stats.external_links}",
            "",
            "Links:",
            "",
        ]

        for number, link in enumerate(result.links, start=1):
            lines.append(f"{number}. {link.description}")
            lines.append(f"   URL: {link.url}")
            lines.append(f"   Type: {link_type(link)}")
            lines.append(f"   Protocol: {link.protocol}")
            if link.title:
                lines.append(f"   Title: {link.title}")
            lines.append("")

        if result.errors:
            lines.append("Errors:")
            lines.extend(f"  - {error_message(error)}" for error in result.errors)
            lines.append("")

        return "\n".join(lines)

    def get_file_extension(self) -> str:
        return ".txt"
