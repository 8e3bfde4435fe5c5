from datetime import datetime, timedelta, timezone

import pytest

from talentdesk.services.dashboard import (
    activity_timeline,
    call_metrics,
    executive_stats,
    health_label,
    intelligent_alerts,
    pipeline_metrics,
    reply_rate_color,
    role_health,
    time_ago,
)

# A Wednesday.
T = datetime(2024, 3, 6, 12, 0, tzinfo=timezone.utc)

OPEN = {"id": "p1", "title": "Backend Engineer", "client_name": "Acme Corp", "status": "Open"}
CLOSED = {"id": "p2", "title": "Designer", "client_name": "Acme Corp", "status": "Closed"}


def _entry(stage, status="Active", position_id="p1", days_ago=1, name="Jane Doe"):
    created = T - timedelta(days=days_ago)
    return {
        "position_id": position_id,
        "stage": stage,
        "status": status,
        "created_at": created,
        "updated_at": None,
        "candidate_name": name,
        "position_title": "Backend Engineer",
    }


def _outreach(days_ago, status="outreach_sent", position_id="p1"):
    return {"position_id": position_id, "activity_status": status, "created_at": T - timedelta(days=days_ago)}


@pytest.mark.parametrize(
    "recent, rate, idle, expected",
    [
        (0, 50.0, 1, "critical"),
        (8, 9.9, 1, "critical"),
        (8, 50.0, 15, "critical"),
        (4, 50.0, 1, "warning"),
        (8, 19.9, 1, "warning"),
        (8, 50.0, 8, "warning"),
        (5, 20.0, 7, "healthy"),
    ],
)
def test_health_label(recent, rate, idle, expected):
    assert health_label(recent, rate, idle) == expected


def test_reply_rate_color():
    assert reply_rate_color(25.1) == "green"
    assert reply_rate_color(25) == "yellow"
    assert reply_rate_color(15) == "yellow"
    assert reply_rate_color(14.9) == "red"


def test_metrics_cover_live_entries_of_open_positions():
    pipeline = [
        _entry("Screening"),
        _entry("Submit to Client"),
        _entry("Archived"),
        _entry("Reject", status="Reject"),
        _entry("Screening", position_id="p2"),
    ]

    metrics = pipeline_metrics(pipeline, [OPEN, CLOSED])

    assert list(metrics) == ["p1"]
    data = metrics["p1"]
    assert (data["title"], data["company"], data["count"]) == ("Backend Engineer", "Acme Corp", 3)
    assert data["stages"]["Screening"] == 1
    assert data["stages"]["Submit to Client"] == 1
    assert data["stages"]["Reject"] == 1
    assert "Archived" not in data["stages"]


def test_role_health_uses_two_week_outreach_and_last_movement():
    pipeline = [_entry("Screening", days_ago=10), _entry("Interview 1", days_ago=9)]
    pipeline[1]["updated_at"] = T - timedelta(days=2)
    outreach = [_outreach(1, "reply_received"), _outreach(2), _outreach(3), _outreach(10, "reply_received")]

    health = role_health(pipeline_metrics(pipeline, [OPEN]), pipeline, outreach, T)

    assert health["p1"] == {
        "health": "warning",
        "outreach": 3,
        "reply_rate": 50.0,
        "days_since_activity": 2,
    }


def test_executive_stats():
    pipeline = [
        _entry("Offer"),
        _entry("Interview 3", status="Hold"),
        _entry("Interview 3"),
        _entry("Submit to Client", days_ago=2),
        _entry("Submit to Client", days_ago=9),
        _entry("Screening", position_id="p2"),
    ]
    interviews = [
        {"interview_date": T + timedelta(days=1)},
        {"interview_date": T + timedelta(days=8)},
        {"interview_date": T - timedelta(hours=1)},
    ]
    outreach = [_outreach(i) for i in range(6)] + [_outreach(1, "reply_received"), _outreach(10)]
    outreach += [_outreach(1, "reply_received", position_id="p3")]

    stats = executive_stats(pipeline, [OPEN, CLOSED], interviews, outreach, T)

    assert stats["close_to_hiring"] == 2
    assert stats["interviews_this_week"] == 1
    assert stats["submissions_this_week"] == 1
    assert stats["active_candidates"] == 4
    assert stats["outreach_this_week"] == 8
    assert stats["reply_rate"] == 25.0
    # p1 has 7 recent but a 12.5% reply rate; p3 has a single recent record.
    assert stats["roles_needing_attention"] == 2


def test_alerts_put_red_first_and_cap_at_five():
    metrics = {
        f"p{i}": {"title": f"Role {i}", "stages": {"Submit to Client": 0}} for i in range(3)
    }
    health = {
        key: {"outreach": 12, "reply_rate": 5.0, "days_since_activity": 1} for key in metrics
    }
    stats = {"submissions_this_week": 0, "interviews_this_week": 2}

    alerts = intelligent_alerts(metrics, health, stats)

    assert len(alerts) == 5
    assert {a["color"] for a in alerts} == {"red"}
    assert alerts[0]["message"] == "Role 0 - No candidates submitted to the client"
    assert alerts[1]["message"] == "Role 0 - Reply rate at 5.0% (Target: 20%+)"


def test_alerts_for_quiet_and_busy_roles():
    metrics = {"p1": {"title": "Backend Engineer", "stages": {"Submit to Client": 2}}}
    health = {"p1": {"outreach": 10, "reply_rate": 30.0, "days_since_activity": 14}}
    stats = {"submissions_this_week": 3, "interviews_this_week": 0}

    alerts = intelligent_alerts(metrics, health, stats)

    assert [a["type"] for a in alerts] == ["no_activity", "success", "high_activity"]
    assert alerts[1]["message"] == "Great momentum! 3 new submissions this week"


def test_all_clear_when_nothing_to_report():
    stats = {"submissions_this_week": 0, "interviews_this_week": 0}
    [alert] = intelligent_alerts({}, {}, stats)
    assert alert["message"] == "All systems running smoothly!"


def test_activity_timeline():
    added = _entry("Screening", days_ago=0.5)
    submitted = _entry("Submit to Client", days_ago=1, name="John Roe")
    moved = _entry("Interview 2", days_ago=2.5, name="Ann Poe")
    moved["updated_at"] = T - timedelta(hours=2)
    old = _entry("Screening", days_ago=4)
    interview = {
        "created_at": T - timedelta(minutes=20),
        "candidate_name": "Jane Doe",
        "position_title": "Backend Engineer",
    }

    timeline = activity_timeline([added, submitted, moved, old], [interview], T)

    assert [e["type"] for e in timeline] == ["interview_scheduled", "stage_change", "candidate_added", "submission"]
    assert timeline[0]["time_ago"] == "Just now"
    assert timeline[1]["message"] == "Ann Poe moved to Interview 2 for Backend Engineer"
    assert timeline[1]["time_ago"] == "2 hours ago"
    assert timeline[3]["message"] == "John Roe submitted for Backend Engineer"
    assert timeline[3]["time_ago"] == "1 day ago"


def test_time_ago():
    assert time_ago(T - timedelta(minutes=59), T) == "Just now"
    assert time_ago(T - timedelta(hours=1), T) == "1 hour ago"
    assert time_ago(T - timedelta(days=3, hours=1), T) == "3 days ago"


def test_call_metrics():
    def call(when, status="call_scheduled"):
        return {"activity_status": status, "scheduled_call_date": when}

    later_today = call(T + timedelta(hours=3))
    monday = call(T - timedelta(days=2))
    next_monday = call(T + timedelta(days=5))
    not_a_call = call(T + timedelta(hours=1), status="reply_received")

    calls = call_metrics([next_monday, later_today, monday, not_a_call], T)

    assert calls["today"] == [later_today]
    assert calls["week"] == [monday, later_today]


@pytest.mark.asyncio
async def test_dashboard_endpoint(client, backend, recruiter, seed):
    headers, identity = recruiter
    data = await seed(identity.id)
    await backend.insert(
        "recruiter_outreach",
        [
            {
                "recruiter_id": identity.id,
                "position_id": data["position"]["id"],
                "linkedin_url": f"https://www.linkedin.com/in/person-{i}",
                "activity_status": "reply_received" if i == 0 else "outreach_sent",
            }
            for i in range(4)
        ],
    )

    res = await client.get("/api/v1/dashboard", headers=headers)

    assert res.status_code == 200
    body = res.json()
    assert body["stats"]["outreach_this_week"] == 4
    assert body["stats"]["reply_rate"] == 25.0
    assert body["stats"]["reply_rate_color"] == "yellow"
    assert body["stats"]["active_candidates"] == 1
    [role] = body["roles"]
    assert role["title"] == "Backend Engineer"
    assert role["company"] == "Acme Corp"
    assert role["stages"]["Screening"] == 1
    assert (role["health"], role["outreach"], role["days_since_activity"]) == ("warning", 4, 0)
    assert body["alerts"][0]["type"] == "zero_submissions"
    assert body["timeline"][0]["message"] == "Jane Doe added to pipeline for Backend Engineer"
