"""Batch extraction over many URLs."""

from .orchestrator import BatchOrchestrator, read_url_file, summarize

__all__ = [
    "BatchOrchestrator",
    "read_url_file",
    "summarize",
]
