"""Attempt a mutation locally, persist it, then reconcile when it settles.

The in-memory value changes first. A failed persist puts the prior value back
and raises an error alert. A settle that arrives after the record was removed
or changed again by a newer attempt does not touch local state; it is logged
and dropped.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import structlog

from talentdesk.core.errors import BackendMutationError
from talentdesk.services.store import AppStore

logger = structlog.get_logger()


@dataclass
class Attempt:
    collection: str
    entity_id: Any
    field: str
    prior: Any
    proposed: Any
    version: int


class OptimisticUpdater:
    def __init__(self, store: AppStore, collection: str):
        self.store = store
        self.collection = collection

    def apply(self, entity_id, field: str, value) -> Attempt:
        record = self.store.require(self.collection, entity_id)
        attempt = Attempt(
            collection=self.collection,
            entity_id=entity_id,
            field=field,
            prior=record.get(field),
            proposed=value,
            version=self.store.bump_version(self.collection, entity_id),
        )
        record[field] = value
        return attempt

    def is_current(self, attempt: Attempt) -> bool:
        record = self.store.get(self.collection, attempt.entity_id)
        return (
            record is not None
            and record.get(attempt.field) == attempt.proposed
            and self.store.version(self.collection, attempt.entity_id) == attempt.version
        )

    def revert(self, attempt: Attempt) -> bool:
        if not self.is_current(attempt):
            logger.info(
                "optimistic_revert_dropped",
                collection=self.collection,
                entity_id=str(attempt.entity_id),
                field=attempt.field,
            )
            return False
        self.store.patch(self.collection, attempt.entity_id, **{attempt.field: attempt.prior})
        self.store.bump_version(self.collection, attempt.entity_id)
        logger.info(
            "optimistic_reverted",
            collection=self.collection,
            entity_id=str(attempt.entity_id),
            field=attempt.field,
            value=attempt.prior,
        )
        return True

    async def settle(
        self,
        attempt: Attempt,
        persist: Callable[[], Awaitable[Any]],
        *,
        refresh: bool = True,
    ) -> bool:
        try:
            await persist()
        except BackendMutationError as e:
            logger.warning(
                "optimistic_persist_failed",
                collection=self.collection,
                entity_id=str(attempt.entity_id),
                field=attempt.field,
                error=e.message,
            )
            if not self.revert(attempt):
                # A newer attempt owns the value now; reload what is really stored.
                await self.store.refresh()
            self.store.overlay.show_error(e)
            return False

        if not self.is_current(attempt):
            logger.info(
                "optimistic_settle_stale",
                collection=self.collection,
                entity_id=str(attempt.entity_id),
                field=attempt.field,
            )
        if refresh:
            await self.store.refresh()
        return True

    async def attempt(
        self,
        entity_id,
        field: str,
        value,
        persist: Callable[[], Awaitable[Any]],
        *,
        refresh: bool = True,
    ) -> bool:
        attempt = self.apply(entity_id, field, value)
        return await self.settle(attempt, persist, refresh=refresh)
