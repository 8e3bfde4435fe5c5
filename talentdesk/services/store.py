"""Per-session application state: in-memory copies of the core collections.

Every successful mutation is followed by ``refresh()``, which re-fetches all
collections rather than reconciling from return values.
"""

import asyncio
import functools
import uuid
from collections.abc import Awaitable, Callable
from typing import Any

import structlog

from talentdesk.core.errors import BackendReadError, NotFound, TalentDeskError
from talentdesk.core.roles import Identity
from talentdesk.services.backend import Backend
from talentdesk.services.overlay import ConfirmationOverlay
from talentdesk.services.realtime import Subscription

logger = structlog.get_logger()

COLLECTIONS = ("clients", "positions", "candidates", "recruiters", "pipeline", "interviews", "outreach")


def surfaces_errors(func):
    """Show any TalentDeskError from a store-bound operation on the session overlay.

    The first argument is the store itself or an object holding it as ``.store``.
    The error is re-raised after it is shown.
    """

    @functools.wraps(func)
    async def wrapper(owner, *args, **kwargs):
        store = owner if isinstance(owner, AppStore) else owner.store
        try:
            return await func(owner, *args, **kwargs)
        except TalentDeskError as e:
            store.overlay.show_error(e)
            raise

    return wrapper


class AppStore:
    def __init__(self, backend: Backend, identity: Identity):
        self.backend = backend
        self.identity = identity
        self.overlay = ConfirmationOverlay()
        self.collections: dict[str, list[dict[str, Any]]] = {name: [] for name in COLLECTIONS}
        self.unread_comment_candidate_ids: set[uuid.UUID] = set()
        self.loaded = False
        self._versions: dict[tuple[str, Any], int] = {}
        self._comment_subscription: Subscription | None = None
        self._loaders: dict[str, Callable[[], Awaitable[list[dict]]]] = {
            "clients": lambda: backend.select("clients", order_by="company_name"),
            "positions": lambda: backend.select("positions", order_by="created_at", descending=True),
            "candidates": lambda: backend.select("candidates", order_by="name"),
            "recruiters": lambda: backend.select("recruiters", order_by="name"),
            "pipeline": lambda: backend.select("pipeline", order_by="created_at"),
            "interviews": lambda: backend.select("interviews", order_by="interview_date"),
            "outreach": lambda: backend.select(
                "recruiter_outreach", eq={"is_archived": False}, order_by="created_at", descending=True
            ),
        }

    # --- lifecycle ---

    def start(self) -> None:
        if self._comment_subscription is None:
            self._comment_subscription = self.backend.realtime.subscribe(
                "comments", self._on_comment_inserted
            )

    def close(self) -> None:
        if self._comment_subscription is not None:
            self._comment_subscription.unsubscribe()
            self._comment_subscription = None

    async def _load(self, name: str) -> None:
        try:
            rows = await self._loaders[name]()
        except BackendReadError as e:
            logger.error("store_collection_load_failed", collection=name, error=e.message)
            self.overlay.show_error(e)
            rows = []
        self.collections[name] = rows

    async def load_all(self) -> None:
        await asyncio.gather(*(self._load(name) for name in COLLECTIONS))
        self._join_names()
        self.loaded = True
        logger.info(
            "store_loaded",
            recruiter_id=str(self.identity.id),
            **{name: len(rows) for name, rows in self.collections.items()},
        )

    async def refresh(self) -> None:
        await self.load_all()

    def _join_names(self) -> None:
        clients = {c["id"]: c for c in self.collections["clients"]}
        positions = {p["id"]: p for p in self.collections["positions"]}
        candidates = {c["id"]: c for c in self.collections["candidates"]}
        recruiters = {r["id"]: r for r in self.collections["recruiters"]}

        for position in self.collections["positions"]:
            position["client_name"] = clients.get(position.get("client_id"), {}).get("company_name")
        for entry in self.collections["pipeline"]:
            recruiter = recruiters.get(entry.get("recruiter_id"), {})
            entry["candidate_name"] = candidates.get(entry["candidate_id"], {}).get("name")
            entry["position_title"] = positions.get(entry["position_id"], {}).get("title")
            entry["recruiter_name"] = recruiter.get("name")
            entry["recruiter_email"] = recruiter.get("email")
        for interview in self.collections["interviews"]:
            interview["candidate_name"] = candidates.get(interview["candidate_id"], {}).get("name")
            interview["position_title"] = positions.get(interview["position_id"], {}).get("title")

    # --- reads / local writes ---

    @property
    def user_profile(self) -> dict[str, Any] | None:
        email = self.identity.email.lower()
        for recruiter in self.collections["recruiters"]:
            if (recruiter.get("email") or "").lower() == email:
                return recruiter
        return None

    @property
    def role(self):
        return self.identity.role

    @property
    def is_director_or_manager(self) -> bool:
        return self.identity.is_director_or_manager

    def get(self, collection: str, entity_id) -> dict[str, Any] | None:
        for record in self.collections[collection]:
            if record["id"] == entity_id:
                return record
        return None

    def require(self, collection: str, entity_id) -> dict[str, Any]:
        record = self.get(collection, entity_id)
        if record is None:
            raise NotFound(f"Record not found in {collection}")
        return record

    def patch(self, collection: str, entity_id, **values) -> dict[str, Any]:
        record = self.require(collection, entity_id)
        record.update(values)
        return record

    def bump_version(self, collection: str, entity_id) -> int:
        key = (collection, entity_id)
        self._versions[key] = self._versions.get(key, 0) + 1
        return self._versions[key]

    def version(self, collection: str, entity_id) -> int:
        return self._versions.get((collection, entity_id), 0)

    # --- realtime ---

    def _on_comment_inserted(self, message: dict[str, Any]) -> None:
        candidate_id = message["record"].get("candidate_id")
        if candidate_id is not None:
            self.unread_comment_candidate_ids.add(candidate_id)
            logger.debug("comment_notification_received", candidate_id=str(candidate_id))

    def clear_comment_notifications(self, candidate_id) -> None:
        self.unread_comment_candidate_ids.discard(candidate_id)


class StoreRegistry:
    """One store per signed-in recruiter, created and loaded on first use."""

    def __init__(self, backend: Backend):
        self.backend = backend
        self._stores: dict[uuid.UUID, AppStore] = {}
        self._lock = asyncio.Lock()

    async def get(self, identity: Identity) -> AppStore:
        async with self._lock:
            store = self._stores.get(identity.id)
            if store is None or store.identity != identity:
                if store is not None:
                    store.close()
                store = AppStore(self.backend, identity)
                store.start()
                self._stores[identity.id] = store
        if not store.loaded:
            await store.load_all()
        return store

    def discard(self, identity_id: uuid.UUID) -> None:
        store = self._stores.pop(identity_id, None)
        if store is not None:
            store.close()

    def close_all(self) -> None:
        for store in self._stores.values():
            store.close()
        self._stores.clear()
