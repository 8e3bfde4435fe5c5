from datetime import datetime, timedelta, timezone

import pytest

from talentdesk.core.errors import MissingInformation, NotFound, ValidationFailed
from talentdesk.services.clients import create_client, delete_client, update_client
from talentdesk.services.interviews import (
    interview_history,
    record_decision,
    schedule_interview,
    split_by_date,
)
from talentdesk.services.positions import create_position, delete_position, position_stats, update_position
from talentdesk.services.recruiters import create_recruiter, delete_recruiter, update_recruiter
from talentdesk.services.role_history import role_history


def _entry(stage, status="Active", recruiter_id="r1", candidate_name="Jane", position_id="p1"):
    return {
        "position_id": position_id,
        "stage": stage,
        "status": status,
        "recruiter_id": recruiter_id,
        "recruiter_name": {"r1": "Rita", "r2": "Sam"}.get(recruiter_id),
        "candidate_name": candidate_name,
    }


def test_position_stats_health():
    position = {"id": "p1", "status": "Open"}

    stats = position_stats(position, [_entry("Screening"), _entry("Interview 2", "Hold")])
    assert stats["health_status"] == "NEEDS SOURCING"
    assert stats["priority"] == "red"
    assert stats["total_candidates"] == 2
    assert stats["active_candidates"] == 1
    assert stats["interview_counts"]["interview2"] == 1
    assert stats["total_interviews"] == 1

    submitted = [_entry("Submit to Client") for _ in range(3)]
    assert position_stats(position, submitted)["priority"] == "orange"

    submitted = [_entry("Submit to Client") for _ in range(8)] + [_entry("Offer")]
    stats = position_stats(position, submitted)
    assert (stats["health_status"], stats["priority"]) == ("PIPELINE HEALTHY", "green")

    closed = position_stats({"id": "p1", "status": "Closed"}, [])
    assert (closed["health_status"], closed["priority"]) == ("Healthy", "green")


def test_role_history_commissions():
    positions = [
        {"id": "p1", "status": "Closed", "title": "Backend Engineer", "client_name": "Acme Corp"},
        {"id": "p2", "status": "Closed", "title": "Designer", "client_name": "Acme Corp"},
        {"id": "p3", "status": "Open", "title": "PM", "client_name": None},
    ]
    pipeline = [
        _entry("Hired", recruiter_id="r1", candidate_name="Jane"),
        _entry("Interview 2", recruiter_id="r2", candidate_name="Bob"),
        _entry("Screening", recruiter_id="r2", candidate_name="Carl"),
        _entry("Interview 3", recruiter_id="r1", position_id="p2"),
    ]

    history = role_history(positions, pipeline)

    assert [h["title"] for h in history] == ["Backend Engineer", "Designer"]
    backend_role = history[0]
    assert backend_role["hired_candidate"] == "Jane"
    by_id = {r["recruiter_id"]: r for r in backend_role["recruiters"]}
    assert by_id["r1"]["commission"] == 15
    assert by_id["r1"]["commission_reason"] == "Hired Candidate (Jane)"
    assert by_id["r2"]["commission"] == 2
    assert by_id["r2"]["highest_stage"] == "Interview 2"
    assert by_id["r2"]["total_candidates"] == 2

    [designer] = history[1]["recruiters"]
    assert designer["commission"] == 0
    assert designer["commission_reason"] == "Not Eligible"


@pytest.mark.asyncio
async def test_position_lifecycle(recruiter, seed, open_store):
    _, identity = recruiter
    data = await seed(identity.id)
    store = await open_store(identity)

    with pytest.raises(MissingInformation):
        await create_position(store, {"title": ""})
    with pytest.raises(ValidationFailed):
        await update_position(store, data["position"]["id"], {"status": "Paused"})

    position = await create_position(store, {"title": "Data Analyst", "client_id": data["client"]["id"]})
    assert position["status"] == "Open"
    assert store.get("positions", position["id"])["client_name"] == "Acme Corp"

    updated = await update_position(store, position["id"], {"status": "Closed"})
    assert updated["status"] == "Closed"

    await delete_position(store, data["position"]["id"])
    assert store.collections["pipeline"] == []
    assert await store.backend.select("pipeline") == []
    with pytest.raises(NotFound):
        await delete_position(store, data["position"]["id"])


@pytest.mark.asyncio
async def test_client_lifecycle(recruiter, open_store):
    _, identity = recruiter
    store = await open_store(identity)

    with pytest.raises(MissingInformation):
        await create_client(store, {"contact_name": "Ann"})
    client = await create_client(store, {"company_name": "Globex"})
    assert [c["company_name"] for c in store.collections["clients"]] == ["Globex"]
    with pytest.raises(MissingInformation):
        await update_client(store, client["id"], {"company_name": "  "})

    await delete_client(store, client["id"])
    assert store.collections["clients"] == []
    with pytest.raises(NotFound):
        await delete_client(store, client["id"])


@pytest.mark.asyncio
async def test_single_director(director, recruiter, open_store):
    _, dana = director
    _, rita = recruiter
    store = await open_store(dana)

    with pytest.raises(ValidationFailed, match="only be one Director"):
        await create_recruiter(store, {"name": "Second", "email": "second@test.com", "role": "director"})
    with pytest.raises(ValidationFailed, match="only be one Director"):
        await update_recruiter(store, rita.id, {"role": "Director"})
    with pytest.raises(ValidationFailed):
        await create_recruiter(store, {"name": "Odd", "email": "odd@test.com", "role": "intern"})

    same = await update_recruiter(store, dana.id, {"role": "director", "name": "Dana D."})
    assert same["name"] == "Dana D."

    created = await create_recruiter(store, {"name": "New", "email": " New@Test.com ", "password": "secret123"})
    assert created["email"] == "new@test.com"
    assert created["role"] == "recruiter"
    assert await store.backend.authenticate("new@test.com", "secret123") is not None

    with pytest.raises(ValidationFailed):
        await delete_recruiter(store, dana.id)
    await delete_recruiter(store, created["id"])
    assert all(r["id"] != created["id"] for r in store.collections["recruiters"])


def test_split_by_date():
    now = datetime(2024, 5, 20, 12, tzinfo=timezone.utc)
    interviews = [
        {"id": 1, "interview_date": now - timedelta(days=3)},
        {"id": 2, "interview_date": now + timedelta(hours=1)},
        {"id": 3, "interview_date": now - timedelta(days=1)},
    ]
    split = split_by_date(interviews, now)
    assert [i["id"] for i in split["upcoming"]] == [2]
    assert [i["id"] for i in split["past"]] == [3, 1]


@pytest.mark.asyncio
async def test_interview_decisions_move_pipeline(recruiter, seed, open_store):
    _, identity = recruiter
    data = await seed(identity.id, stage="Interview 1")
    store = await open_store(identity)
    ids = {"candidate_id": data["candidate"]["id"], "position_id": data["position"]["id"]}

    with pytest.raises(MissingInformation):
        await schedule_interview(store, ids)

    when = datetime.now(timezone.utc) + timedelta(days=1)
    interview = await schedule_interview(store, {**ids, "interview_date": when, "interview_type": "Video"})
    assert store.get("interviews", interview["id"])["candidate_name"] == "Jane Doe"

    with pytest.raises(ValidationFailed):
        await record_decision(store, interview["id"], "maybe")

    result = await record_decision(store, interview["id"], "save", "Strong SQL")
    assert result["pipeline_update"] is None
    assert result["interview"]["outcome"] is None

    result = await record_decision(store, interview["id"], "advance", "Great")
    assert result["interview"]["outcome"] == "Passed"
    assert result["pipeline_update"] == {"stage": "Interview 2", "status": "Active"}
    assert store.get("pipeline", data["entry"]["id"])["stage"] == "Interview 2"

    result = await record_decision(store, interview["id"], "hold")
    assert store.get("pipeline", data["entry"]["id"])["status"] == "Hold"

    history = await interview_history(store, ids["candidate_id"], ids["position_id"])
    assert [h["id"] for h in history] == [interview["id"]]
