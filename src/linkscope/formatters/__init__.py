"""Output formats for extraction results."""

from typing import Optional

from .base import BaseFormatter
from .csv import CSVFormatter
from .json import JSONFormatter
from .markdown import MarkdownFormatter
from .text import TextFormatter

FORMATTERS: dict[str, type[BaseFormatter]] = {
    "json": JSONFormatter,
    "csv": CSVFormatter,
    "markdown": MarkdownFormatter,
    "text": TextFormatter,
}

__all__ = [
    "BaseFormatter",
    "CSVFormatter",
    "FORMATTERS",
    "JSONFormatter",
    "MarkdownFormatter",
    "TextFormatter",
    "get_formatter",
]


def get_formatter(format_name: Optional[str] = None) -> BaseFormatter:
    """Get formatter instance by name.

    Args:
        format_name: 'json', 'csv', 'markdown' or 'text' (default)

    Returns:
        Formatter instance

    Raises:
        ValueError: If format name is unknown
    """
    formatter_class = FORMATTERS.get((format_name or "text").lower())
    if not formatter_class:
        raise ValueError(f"Unknown format: {format_name}. Available formats: {', '.join(FORMATTERS)}")

    return formatter_class()
