import pytest

from talentdesk.core.errors import BackendMutationError, MissingInformation, ValidationFailed
from talentdesk.services.pipeline import PipelineBoard, next_stage


def _record_updates(monkeypatch, backend, fail=False):
    calls = []
    original = backend.update

    async def update(table, values, **filters):
        calls.append((table, values, filters))
        if fail:
            raise BackendMutationError("Could not update pipeline")
        return await original(table, values, **filters)

    monkeypatch.setattr(backend, "update", update)
    return calls


def test_next_stage():
    assert next_stage("Screening") == "Submit to Client"
    assert next_stage("Interview 3") == "Offer"
    assert next_stage("Hired") == "Offer"
    assert next_stage("Reject") == "Offer"


@pytest.mark.asyncio
async def test_failed_persist_reverts_stage(monkeypatch, backend, recruiter, seed, open_store):
    _, identity = recruiter
    data = await seed(identity.id, stage="Interview 1")
    store = await open_store(identity)
    entry_id = data["entry"]["id"]
    calls = _record_updates(monkeypatch, backend, fail=True)

    change = await PipelineBoard(store).move_by_dropdown(entry_id, "Offer")

    assert len(calls) == 1
    assert change.outcome == "reverted"
    assert store.get("pipeline", entry_id)["stage"] == "Interview 1"
    alerts = store.overlay.drain_alerts()
    assert alerts[-1].type == "error"
    assert alerts[-1].title == "Save Failed"


@pytest.mark.asyncio
async def test_recruiter_move_persists(backend, recruiter, seed, open_store):
    _, identity = recruiter
    data = await seed(identity.id, stage="Interview 1")
    store = await open_store(identity)
    entry_id = data["entry"]["id"]

    change = await PipelineBoard(store).move_by_drag(entry_id, "Interview 1", "Offer")

    assert change.outcome == "persisted"
    assert store.get("pipeline", entry_id)["stage"] == "Offer"
    row = await backend.select_one("pipeline", id=entry_id)
    assert row["stage"] == "Offer"
    assert row["updated_at"] is not None


@pytest.mark.asyncio
async def test_drag_to_same_column_is_unchanged(monkeypatch, backend, recruiter, seed, open_store):
    _, identity = recruiter
    data = await seed(identity.id, stage="Offer")
    store = await open_store(identity)
    calls = _record_updates(monkeypatch, backend)

    change = await PipelineBoard(store).move_by_drag(data["entry"]["id"], "Offer", "Offer")

    assert change.outcome == "unchanged"
    assert calls == []


@pytest.mark.asyncio
async def test_director_move_waits_for_approval(monkeypatch, backend, recruiter, director, seed, open_store):
    _, owner = recruiter
    _, boss = director
    data = await seed(owner.id, stage="Interview 1")
    store = await open_store(boss)
    entry_id = data["entry"]["id"]
    calls = _record_updates(monkeypatch, backend)

    change = await PipelineBoard(store).move_by_dropdown(entry_id, "Offer")

    assert change.outcome == "pending_approval"
    assert calls == []
    assert store.get("pipeline", entry_id)["stage"] == "Offer"
    prompt = store.overlay.prompt
    assert prompt.title == "Confirm Stage Change"
    assert prompt.confirm_text == "Approve"
    assert prompt.context_info["old_stage"] == "Interview 1"
    assert prompt.context_info["recruiter_email"] == "recruiter@test.com"

    approved = await store.overlay.confirm()

    assert approved.outcome == "persisted"
    assert approved.notified
    assert len(calls) == 1
    assert (await backend.select_one("pipeline", id=entry_id))["stage"] == "Offer"
    [outbox] = await backend.select("notification_outbox")
    assert outbox["payload"] == {
        "recipient_email": "recruiter@test.com",
        "message": 'Director moved Jane Doe from "Interview 1" to "Offer" for Backend Engineer.',
        "type": "stage_change_director",
    }


@pytest.mark.asyncio
async def test_director_dismiss_reverts(monkeypatch, backend, recruiter, director, seed, open_store):
    _, owner = recruiter
    _, boss = director
    data = await seed(owner.id, stage="Interview 1")
    store = await open_store(boss)
    entry_id = data["entry"]["id"]
    calls = _record_updates(monkeypatch, backend)

    await PipelineBoard(store).move_by_dropdown(entry_id, "Hired")
    dismissed = await store.overlay.cancel()

    assert dismissed.outcome == "dismissed"
    assert calls == []
    assert not store.overlay.is_open
    assert store.get("pipeline", entry_id)["stage"] == "Interview 1"
    assert await backend.select("notification_outbox") == []


@pytest.mark.asyncio
async def test_new_prompt_dismisses_pending_one(recruiter, director, seed, open_store):
    _, owner = recruiter
    _, boss = director
    first = await seed(owner.id, stage="Screening", candidate_name="Jane Doe")
    second = await seed(owner.id, stage="Screening", candidate_name="John Roe")
    store = await open_store(boss)
    board = PipelineBoard(store)

    await board.move_by_dropdown(first["entry"]["id"], "Offer")
    await board.move_by_dropdown(second["entry"]["id"], "Offer")

    assert store.get("pipeline", first["entry"]["id"])["stage"] == "Screening"
    assert store.overlay.prompt.context_info["candidate_name"] == "John Roe"


@pytest.mark.asyncio
async def test_unknown_stage_rejected(recruiter, seed, open_store):
    _, identity = recruiter
    data = await seed(identity.id)
    store = await open_store(identity)

    with pytest.raises(ValidationFailed):
        await PipelineBoard(store).move_by_dropdown(data["entry"]["id"], "Lunch")


@pytest.mark.asyncio
async def test_status_and_archive(backend, recruiter, seed, open_store):
    _, identity = recruiter
    data = await seed(identity.id, stage="Interview 2")
    store = await open_store(identity)
    board = PipelineBoard(store)
    entry_id = data["entry"]["id"]

    assert await board.change_status(entry_id, "Hold")
    assert await board.archive(entry_id)

    row = await backend.select_one("pipeline", id=entry_id)
    assert row["status"] == "Hold"
    assert row["stage"] == "Archived"
    assert all(entry_id not in [e["id"] for e in column] for column in board.board().values())


@pytest.mark.asyncio
async def test_add_to_pipeline_requires_position_and_recruiter(backend, recruiter, seed, open_store):
    _, identity = recruiter
    data = await seed(identity.id)
    store = await open_store(identity)
    board = PipelineBoard(store)

    with pytest.raises(MissingInformation):
        await board.add_to_pipeline(data["candidate"]["id"], None, identity.id)

    entry = await board.add_to_pipeline(data["candidate"]["id"], data["position"]["id"], identity.id)
    assert entry["stage"] == "Screening"
    assert entry["status"] == "Active"
    assert len(store.collections["pipeline"]) == 2
