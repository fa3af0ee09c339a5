"""Markdown formatter - link lists grouped by locality."""

from ..models.links import BatchResult, BatchSummary, ExtractionResult, Link, LinkLocality
from .base import BaseFormatter, error_message

_SECTIONS = [
    (LinkLocality.INTERNAL, "Internal Links"),
    (LinkLocality.EXTERNAL, "External Links"),
    (LinkLocality.NEITHER, "Other Links"),
]

_TEXT_ESCAPES = "\\[]"
_DESTINATION_ESCAPES = "\\()<>"
_TITLE_ESCAPES = "\\\""


def _escape(value: str, characters: str) -> str:
    """Backslash-escape ``characters`` so they stay literal inside link syntax."""
    return "".join(f"\\{char}" if char in characters else char for char in value)


class MarkdownFormatter(BaseFormatter):
    """Markdown format with a statistics block and one section per locality."""

    @staticmethod
    def _item(link: Link) -> str:
        title = f' "{_escape(link.title, _TITLE_ESCAPES)}"' if link.title else ""
        text = _escape(link.description, _TEXT_ESCAPES)
        destination = _escape(link.url, _DESTINATION_ESCAPES).replace(" ", "%20")
        return f"- [{text}]({destination}){title}"

    def format_result(self, result: ExtractionResult) -> str:
        stats = result.statistics
        lines = [
            f"# Links from {result.source_url}",
            "",
            "## Statistics",
            "",
            f"- Total Links: {stats.total_links}",
            f"- Unique Links: {stats.unique_links}",
            f"- Internal Links: {stats.internal_links}",
            f"- External Links: {stats.external_links}",
            "",
        ]

        for locality, heading in _SECTIONS:
            section = [link for link in result.links if link.locality is locality]
            if section:
                lines.extend([f"## {heading}", ""])
                lines.extend(self._item(link) for link in section)
                lines.append("")

        if result.errors:
            lines.extend(["## Errors", ""])
            lines.extend(f"- {error_message(error)}" for error in result.errors)
            lines.append("")

        return "\n".join(lines)

    def format_summary(self, summary: BatchSummary) -> str:
        lines = [
            "# Batch Summary",
            "",
            f"- Total URLs: {summary.total_urls}",
            f"- Successful: {summary.successful_urls}",
            f"- Failed: {summary.failed_urls}",
            f"- Total Links: {summary.total_links}",
            f"- Success Rate: {summary.success_rate:.1f}%",
            "",
        ]
        if summary.errors:
            lines.extend(["## Failures", ""])
            lines.extend(f"- {entry.url}: {error_message(entry.error)}" for entry in summary.errors)
            lines.append("")
        return "\n".join(lines)

    def format_batch(self, batch: BatchResult) -> str:
        parts = [self.format_result(result) for result in batch.results]
        parts.append(self.format_summary(batch.summary))
        return "\n---\n\n".join(parts)

    def get_file_extension(self) -> str:
        return ".md"
