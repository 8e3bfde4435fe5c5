import pytest

from talentdesk.core.errors import BackendMutationError, BackendReadError, NotFound
from talentdesk.services.optimistic import OptimisticUpdater
from talentdesk.services.overlay import ConfirmationOverlay
from talentdesk.services.realtime import SubscriptionManager
from talentdesk.services.store import StoreRegistry


@pytest.mark.asyncio
async def test_load_joins_names(recruiter, seed, open_store):
    _, identity = recruiter
    data = await seed(identity.id)
    store = await open_store(identity)

    [position] = store.collections["positions"]
    assert position["client_name"] == "Acme Corp"
    [entry] = store.collections["pipeline"]
    assert entry["candidate_name"] == "Jane Doe"
    assert entry["position_title"] == "Backend Engineer"
    assert entry["recruiter_name"] == "Rita Recruiter"
    assert entry["recruiter_email"] == "recruiter@test.com"
    assert store.user_profile["id"] == identity.id
    assert store.get("candidates", data["candidate"]["id"])["name"] == "Jane Doe"
    with pytest.raises(NotFound):
        store.require("candidates", "missing")


@pytest.mark.asyncio
async def test_failed_collection_loads_empty_with_alert(monkeypatch, backend, recruiter, seed, open_store):
    _, identity = recruiter
    await seed(identity.id)
    original = backend.select

    async def select(table, **kwargs):
        if table == "interviews":
            raise BackendReadError("Could not load interviews")
        return await original(table, **kwargs)

    monkeypatch.setattr(backend, "select", select)
    store = await open_store(identity)

    assert store.loaded
    assert store.collections["interviews"] == []
    assert len(store.collections["candidates"]) == 1
    [alert] = store.overlay.drain_alerts()
    assert alert.title == "Load Failed"
    assert alert.message == "Could not load interviews"


@pytest.mark.asyncio
async def test_comment_notifications_deduplicate_and_clear(backend, recruiter, seed, open_store):
    _, identity = recruiter
    data = await seed(identity.id)
    store = await open_store(identity)
    candidate_id = data["candidate"]["id"]

    for body in ("first", "second"):
        await backend.insert(
            "comments", {"candidate_id": candidate_id, "user_id": identity.id, "author_name": "Rita", "comment_text": body}
        )
    assert store.unread_comment_candidate_ids == {candidate_id}

    store.clear_comment_notifications(candidate_id)
    assert store.unread_comment_candidate_ids == set()

    store.close()
    await backend.insert(
        "comments", {"candidate_id": candidate_id, "user_id": identity.id, "author_name": "Rita", "comment_text": "third"}
    )
    assert store.unread_comment_candidate_ids == set()


@pytest.mark.asyncio
async def test_realtime_callback_failure_is_isolated():
    manager = SubscriptionManager()
    received = []

    def broken(message):
        raise RuntimeError("boom")

    manager.subscribe("comments", broken)
    subscription = manager.subscribe("comments", received.append)
    manager.subscribe("comments", received.append, event="UPDATE")

    await manager.publish("comments", "INSERT", {"id": 1})
    assert received == [{"table": "comments", "event": "INSERT", "record": {"id": 1}}]

    subscription.unsubscribe()
    subscription.unsubscribe()
    assert manager.subscriber_count("comments") == 2


@pytest.mark.asyncio
async def test_registry_reuses_store_per_identity(backend, recruiter, director):
    _, rita = recruiter
    _, dana = director
    registry = StoreRegistry(backend)

    first = await registry.get(rita)
    assert first.loaded
    assert await registry.get(rita) is first
    assert await registry.get(dana) is not first

    registry.discard(rita.id)
    assert await registry.get(rita) is not first
    registry.close_all()
    assert backend.realtime.subscriber_count("comments") == 0


@pytest.mark.asyncio
async def test_stale_revert_is_dropped(recruiter, seed, open_store):
    _, identity = recruiter
    data = await seed(identity.id, stage="Screening")
    store = await open_store(identity)
    entry_id = data["entry"]["id"]
    updater = OptimisticUpdater(store, "pipeline")

    older = updater.apply(entry_id, "stage", "Interview 1")
    newer = updater.apply(entry_id, "stage", "Interview 2")

    assert updater.revert(older) is False
    assert store.get("pipeline", entry_id)["stage"] == "Interview 2"
    assert updater.revert(newer) is True
    assert store.get("pipeline", entry_id)["stage"] == "Interview 1"


@pytest.mark.asyncio
async def test_failed_settle_of_stale_attempt_refreshes(recruiter, seed, open_store):
    _, identity = recruiter
    data = await seed(identity.id, stage="Screening")
    store = await open_store(identity)
    entry_id = data["entry"]["id"]
    updater = OptimisticUpdater(store, "pipeline")

    older = updater.apply(entry_id, "stage", "Interview 1")
    updater.apply(entry_id, "stage", "Interview 2")

    async def persist():
        raise BackendMutationError("Could not update pipeline")

    assert await updater.settle(older, persist) is False
    assert store.get("pipeline", entry_id)["stage"] == "Screening"
    [alert] = store.overlay.drain_alerts()
    assert alert.title == "Save Failed"


@pytest.mark.asyncio
async def test_overlay_single_prompt():
    overlay = ConfirmationOverlay()
    events = []

    await overlay.show_confirm(title="First", message="one", on_cancel=lambda: events.append("cancel first"))

    async def confirm_second():
        events.append("confirm second")
        return "done"

    await overlay.show_confirm(type="warning", title="Second", message="two", on_confirm=confirm_second)

    assert events == ["cancel first"]
    assert overlay.prompt.title == "Second"
    assert await overlay.confirm() == "done"
    assert events == ["cancel first", "confirm second"]
    assert not overlay.is_open

    with pytest.raises(NotFound):
        await overlay.cancel()
    with pytest.raises(ValueError):
        await overlay.show_confirm(type="fancy", title="x", message="y")
