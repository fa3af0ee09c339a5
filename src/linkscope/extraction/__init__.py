"""Link extraction pipeline for a single page."""

from .classifier import ClassifiedLinks, CompositeLinkFilter, LinkClassifier
from .descriptions import DescriptionGenerator
from .metadata import MetadataAggregator
from .normalizer import ProtocolClass, UrlNormalizer
from .orchestrator import ExtractionHooks, ExtractionOrchestrator, extract_blocking

__all__ = [
    "ClassifiedLinks",
    "CompositeLinkFilter",
    "DescriptionGenerator",
    "ExtractionHooks",
    "ExtractionOrchestrator",
    "LinkClassifier",
    "MetadataAggregator",
    "ProtocolClass",
    "UrlNormalizer",
    "extract_blocking",
]
