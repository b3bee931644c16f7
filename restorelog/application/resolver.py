from collections.abc import Awaitable, Callable
from functools import partial
from typing import Final

from ..domain.entities import RestoreKind, is_canonical_id
from ..domain.exceptions import IdentifierNotFound, ResolutionError
from ..infrastructure.shopify.client import AdminApiClient
from ..infrastructure.shopify.lookups import (
    lookup_metafield_owner_id,
    lookup_tag_resource_id,
)
from ..logging_config import get_logger

logger: Final = get_logger(__name__)

IdLookup = Callable[[str, str], Awaitable[str | None]]


class IdentifierResolver:
    """Turns logged object references into canonical ids.

    Tag restores and metafield restores use different lookups; picking the
    right one and translating its failures is the resolver's whole job.
    """

    def __init__(self, tag_lookup: IdLookup, metafield_lookup: IdLookup):
        self._lookups: dict[RestoreKind, IdLookup] = {
            RestoreKind.TAGS: tag_lookup,
            RestoreKind.METAFIELD: metafield_lookup,
        }

    @classmethod
    def for_client(cls, client: AdminApiClient) -> "IdentifierResolver":
        return cls(
            tag_lookup=partial(lookup_tag_resource_id, client),
            metafield_lookup=partial(lookup_metafield_owner_id, client),
        )

    async def resolve(
        self, object_type: str, raw_reference: str, kind: RestoreKind
    ) -> str:
        """Return the canonical id for a reference.

        Raises:
            ResolutionError: If the lookup fails
            IdentifierNotFound: If the lookup finds nothing
        """
        if is_canonical_id(raw_reference):
            return raw_reference

        if not raw_reference:
            logger.warning("Missing object reference", object_type=object_type)
            raise IdentifierNotFound("Unable to resolve Shopify ID")

        lookup = self._lookups[kind]
        try:
            resolved = await lookup(object_type, raw_reference)
        except Exception as e:
            logger.warning(
                "ID resolution failed",
                object_type=object_type,
                reference=raw_reference,
                kind=kind.value,
                error=str(e),
            )
            raise ResolutionError(f"ID resolution failed: {e}") from e

        if not resolved:
            logger.warning(
                "Unable to resolve canonical ID",
                object_type=object_type,
                reference=raw_reference,
                kind=kind.value,
            )
            raise IdentifierNotFound("Unable to resolve Shopify ID")

        logger.debug(
            "Resolved canonical ID",
            object_type=object_type,
            reference=raw_reference,
            resolved_id=resolved,
        )
        return resolved
