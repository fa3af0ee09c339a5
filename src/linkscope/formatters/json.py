"""JSON formatter - structured JSON output."""

import json

from ..models.links import BatchResult, ExtractionResult
from .base import BaseFormatter


class JSONFormatter(BaseFormatter):
    """JSON format for structured data export."""

    def format_result(self, result: ExtractionResult) -> str:
        return json.dumps(result.to_dict(), indent=2, ensure_ascii=False)

    def format_batch(self, batch: BatchResult) -> str:
        return json.dumps(batch.to_dict(), indent=2, ensure_ascii=False)

    def get_file_extension(self) -> str:
        return ".json"
