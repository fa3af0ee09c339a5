"""Base formatter interface."""

import logging
from abc import ABC, abstractmethod
from pathlib import Path

from ..errors import LinkscopeError
from ..models.links import BatchResult, BatchSummary, ExtractionResult, Link


def link_type(link: Link) -> str:
    """Label a link as Internal, External or Other."""
    if link.is_internal:
        return "Internal"
    if link.is_external:
        return "External"
    return "Other"


def error_message(error: BaseException) -> str:
    if isinstance(error, LinkscopeError):
        return error.message
    return str(error) or type(error).__name__


class BaseFormatter(ABC):
    """Base class for output formatters.

    Formatters render extraction results as text (JSON, CSV, Markdown or a
    plain listing). Batch output defaults to every result in input order
    followed by a summary block.
    """

    def __init__(self) -> None:
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @abstractmethod
    def format_result(self, result: ExtractionResult) -> str:
        """Render one extraction result."""

    @abstractmethod
    def get_file_extension(self) -> str:
        """Get file extension for this format.

        Returns:
            File extension including dot (e.g., '.md', '.json')
        """

    def format_summary(self, summary: BatchSummary) -> str:
        lines = [
            "Batch Summary:",
            f"  Total URLs: {summary.total_urls}",
            f"  Successful: {summary.successful_urls}",
            f"  Failed: {summary.failed_urls}",
            f"  Total Links: {summary.total_links}",
            f"  Success Rate: {summary.success_rate:.1f}%",
        ]
        for entry in summary.errors:
            lines.append(f"  - {entry.url}: {error_message(entry.error)}")
        return "\n".join(lines) + "\n"

    def format_batch(self, batch: BatchResult) -> str:
        """Render every result of a batch plus its summary."""
        parts = [self.format_result(result) for result in batch.results]
        parts.append(self.format_summary(batch.summary))
        return "\n".join(parts)

    def save_formatted(self, text: str, file_path: Path) -> Path:
        """Save already formatted output to a file.

        Args:
            text: Output of ``format_result`` or ``format_batch``
            file_path: Destination file path

        Returns:
            Path to saved file
        """
        file_path = Path(file_path)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        with open(file_path, "w", encoding="utf-8", newline="") as f:
            f.write(text)

        self.logger.debug(f"Saved formatted output to {file_path}")

        return file_path
