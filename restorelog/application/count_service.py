import json
from typing import Final

from ..domain.constants import COUNT_QUERY_FIELDS
from ..domain.exceptions import TransportError
from ..infrastructure.shopify.client import AdminApiClient
from ..infrastructure.shopify.operations import count_by_tag
from ..logging_config import get_logger

logger: Final = get_logger(__name__)


def parse_tags(raw: str | list[str] | None) -> list[str]:
    """Accept tags as a JSON array string or a comma-separated string."""
    if raw is None:
        return []
    if isinstance(raw, list):
        return [str(t) for t in raw]

    text = raw.strip()
    if text.startswith("[") and text.endswith("]"):
        try:
            tags = json.loads(text)
        except json.JSONDecodeError:
            logger.error("Tag parsing failed", raw_tags=raw[:100])
            return []
        if not isinstance(tags, list):
            return []
        return [str(t) for t in tags]

    return [t.strip() for t in text.split(",")]


async def fetch_resource_count_for_tags(
    client: AdminApiClient, resource: str | None, tags: list[str]
) -> int:
    """Sum the per-tag counts of a resource.

    Resources without a count field (including ``shop``) count as zero
    without any Admin API call. A tag whose count query fails is logged and
    skipped.
    """
    count_field = COUNT_QUERY_FIELDS.get(resource or "")
    if not count_field:
        return 0

    total = 0
    for tag in tags:
        try:
            total += await count_by_tag(client, count_field, tag)
        except TransportError as e:
            logger.error("Error fetching count for tag", tag=tag, error=str(e))

    logger.debug("Counted tagged resources", resource=resource, total=total)
    return total
