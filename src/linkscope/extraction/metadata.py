"""Per-URL occurrence metadata for one page."""

from ..models.links import LinkMetadata, RawAnchorObservation

UNKNOWN_CONTEXT = "unknown"


class MetadataAggregator:
    """
    Aggregate occurrence counts, no-follow flags and first-seen context.

    Observations must carry normalized hrefs so that different spellings of
    the same target are counted together.
    """

    def aggregate(self, observations: list[RawAnchorObservation]) -> dict[str, LinkMetadata]:
        """
        Build metadata for every URL in a single pass over the page.

        The first occurrence of a URL fixes its no-follow flag, parent context
        and position; later occurrences only increment ``occurrences``.

        Args:
            observations: Anchors in document order

        Returns:
            Mapping of URL to metadata, ordered by first appearance
        """
        metadata: dict[str, LinkMetadata] = {}

        for position, observation in enumerate(observations):
            existing = metadata.get(observation.href)
            if existing is not None:
                existing.occurrences += 1
                continue

            metadata[observation.href] = LinkMetadata(
                occurrences=1,
                has_no_follow=self.detect_no_follow(observation),
                parent_context=self.parent_context(observation),
                position=position,
            )

        return metadata

    @staticmethod
    def detect_no_follow(observation: RawAnchorObservation) -> bool:
        """Check for a ``nofollow`` token among the space-separated rel values."""
        if not observation.rel:
            return False
        return "nofollow" in observation.rel.lower().split()

    @staticmethod
    def parent_context(observation: RawAnchorObservation) -> str:
        return observation.parent_tag or UNKNOWN_CONTEXT

    @staticmethod
    def count_occurrences(url: str, observations: list[RawAnchorObservation]) -> int:
        return sum(1 for observation in observations if observation.href == url)
