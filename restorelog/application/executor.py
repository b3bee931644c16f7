from collections.abc import Awaitable, Callable
from functools import partial
from typing import Any, Final

from ..domain.entities import MutationOutcome, RestoreJob, RestoreKind
from ..infrastructure.shopify import operations
from ..infrastructure.shopify.client import AdminApiClient
from ..logging_config import get_logger

logger: Final = get_logger(__name__)

TagsAdd = Callable[[str, list[str]], Awaitable[list[dict[str, Any]]]]
MetafieldsSet = Callable[[dict[str, Any]], Awaitable[list[dict[str, Any]]]]


class MutationExecutor:
    """Issues the inverse mutation of a logged removal.

    The executor makes exactly one call per job and never retries. User
    errors come back as an unsuccessful outcome; transport failures
    propagate as ``TransportError``.
    """

    def __init__(self, tags_add: TagsAdd, metafields_set: MetafieldsSet):
        self._tags_add = tags_add
        self._metafields_set = metafields_set

    @classmethod
    def for_client(cls, client: AdminApiClient) -> "MutationExecutor":
        return cls(
            tags_add=partial(operations.tags_add, client),
            metafields_set=partial(operations.metafields_set, client),
        )

    async def execute(self, canonical_id: str, job: RestoreJob) -> MutationOutcome:
        if job.kind is RestoreKind.TAGS:
            raw_errors = await self._tags_add(
                canonical_id, list(job.source_item.removed_tags)
            )
        else:
            data = job.source_item.data
            if data is None or not data.is_restorable():
                raise ValueError("Metafield restore requires a namespace and a key")
            metafield = {
                "ownerId": canonical_id,
                "namespace": data.namespace,
                "key": data.key,
                "type": data.type,
                "value": data.value,
            }
            logger.debug("Metafield restore mutation prepared", metafield=metafield)
            raw_errors = await self._metafields_set(metafield)

        outcome = MutationOutcome.from_user_errors(raw_errors)
        if not outcome.success:
            logger.info(
                "Restore mutation rejected",
                kind=job.kind.value,
                canonical_id=canonical_id,
                user_errors=[e.to_dict() for e in outcome.errors],
            )
        return outcome
