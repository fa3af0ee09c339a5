"""CSV formatter - one row per link."""

import csv
import io

from ..models.links import BatchResult, ExtractionResult, Link
from .base import BaseFormatter, link_type

HEADER = ["URL", "Description", "Anchor Text", "Protocol", "Type", "Title"]


class CSVFormatter(BaseFormatter):
    """CSV format for spreadsheets.

    Batch output adds a leading ``Source URL`` column and a single header.
    """

    @staticmethod
    def _row(link: Link) -> list[str]:
        return [
            link.url,
            link.description,
            link.anchor_text,
            link.protocol,
            link_type(link),
            link.title or "",
        ]

    def format_result(self, result: ExtractionResult) -> str:
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(HEADER)
        for link in result.links:
            writer.writerow(self._row(link))
        return buffer.getvalue()

    def format_batch(self, batch: BatchResult) -> str:
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(["Source URL", *HEADER])
        for result in batch.results:
            for link in result.links:
                writer.writerow([result.source_url, *self._row(link)])
        return buffer.getvalue()

    def get_file_extension(self) -> str:
        return ".csv"
