"""Team dashboard: per-role pipeline metrics and health, headline stats, alerts and recent activity.

Everything except the outreach window is computed from the session store's
collections, so the numbers match what the rest of the session shows.
"""

import math
from datetime import datetime, timedelta

import structlog

from talentdesk.services.dates import as_utc, utcnow
from talentdesk.services.pipeline import STAGES
from talentdesk.services.store import AppStore, surfaces_errors

logger = structlog.get_logger()

METRIC_STAGES = STAGES + ("Reject",)
CLOSE_TO_HIRING_STAGES = frozenset({"Interview 3", "Offer"})
ADVANCED_STAGES = frozenset({"Interview 1", "Interview 2", "Interview 3", "Offer", "Hired"})

OUTREACH_WINDOW_DAYS = 14
TIMELINE_DAYS = 3
TIMELINE_SOURCE_LIMIT = 5
TIMELINE_LIMIT = 10
MAX_ALERTS = 5

ALERT_PRIORITY = {"red": 0, "yellow": 1, "green": 2, "blue": 3}

ALL_CLEAR = {
    "type": "all_clear",
    "message": "All systems running smoothly!",
    "suggestion": "Great work team. Keep the momentum going.",
    "color": "green",
}


def reply_rate(records: list[dict]) -> float:
    if not records:
        return 0.0
    replies = sum(1 for r in records if r["activity_status"] == "reply_received")
    return round(replies / len(records) * 100, 1)


def reply_rate_color(rate: float) -> str:
    if rate > 25:
        return "green"
    if rate >= 15:
        return "yellow"
    return "red"


def days_since(value, now: datetime) -> int:
    return math.floor((now - as_utc(value)).total_seconds() / 86400)


def time_ago(value, now: datetime | None = None) -> str:
    now = now or utcnow()
    seconds = (now - as_utc(value)).total_seconds()
    hours, days = math.floor(seconds / 3600), math.floor(seconds / 86400)
    if hours < 1:
        return "Just now"
    if hours < 24:
        return f"{hours} hour{'s' if hours > 1 else ''} ago"
    if days == 1:
        return "1 day ago"
    return f"{days} days ago"


def pipeline_metrics(pipeline: list[dict], positions: list[dict]) -> dict:
    """Live entries of each open position, counted per stage."""
    open_positions = {p["id"]: p for p in positions if p["status"] == "Open"}
    metrics: dict = {}
    for entry in pipeline:
        position = open_positions.get(entry["position_id"])
        if position is None or entry["stage"] == "Archived":
            continue
        data = metrics.get(position["id"])
        if data is None:
            data = metrics[position["id"]] = {
                "title": position.get("title") or "Unknown",
                "company": position.get("client_name") or "N/A",
                "count": 0,
                "stages": dict.fromkeys(METRIC_STAGES, 0),
            }
        if entry["stage"] in data["stages"]:
            data["stages"][entry["stage"]] += 1
        data["count"] += 1
    return metrics


def health_label(recent_outreach: int, rate: float, days_idle: int) -> str:
    if recent_outreach == 0 or rate < 10 or days_idle > 14:
        return "critical"
    if recent_outreach < 5 or rate < 20 or days_idle > 7:
        return "warning"
    return "healthy"


def role_health(metrics: dict, pipeline: list[dict], outreach: list[dict], now: datetime | None = None) -> dict:
    """Health per position from its outreach over the last two weeks and its last pipeline movement.

    ``outreach`` is expected to cover the last ``OUTREACH_WINDOW_DAYS`` days.
    """
    now = now or utcnow()
    week_ago = now - timedelta(days=7)
    health = {}
    for position_id in metrics:
        records = [o for o in outreach if o.get("position_id") == position_id]
        recent = sum(1 for o in records if as_utc(o["created_at"]) >= week_ago)
        rate = reply_rate(records)
        touched = [
            as_utc(e.get("updated_at") or e["created_at"])
            for e in pipeline
            if e["position_id"] == position_id and e["stage"] != "Archived"
        ]
        days_idle = days_since(max(touched), now) if touched else OUTREACH_WINDOW_DAYS + 1
        health[position_id] = {
            "health": health_label(recent, rate, days_idle),
            "outreach": recent,
            "reply_rate": rate,
            "days_since_activity": days_idle,
        }
    return health


def roles_needing_attention(outreach: list[dict], now: datetime | None = None) -> int:
    now = now or utcnow()
    week_ago = now - timedelta(days=7)
    by_position: dict = {}
    for record in outreach:
        if record.get("position_id") is not None:
            by_position.setdefault(record["position_id"], []).append(record)
    count = 0
    for records in by_position.values():
        recent = sum(1 for o in records if as_utc(o["created_at"]) >= week_ago)
        if recent < 5 or reply_rate(records) < 15:
            count += 1
    return count


def executive_stats(
    pipeline: list[dict],
    positions: list[dict],
    interviews: list[dict],
    outreach: list[dict],
    now: datetime | None = None,
) -> dict:
    now = now or utcnow()
    week_ago, week_ahead = now - timedelta(days=7), now + timedelta(days=7)
    open_ids = {p["id"] for p in positions if p["status"] == "Open"}
    outreach_this_week = [o for o in outreach if as_utc(o["created_at"]) >= week_ago]
    return {
        "roles_needing_attention": roles_needing_attention(outreach, now),
        "close_to_hiring": sum(
            1 for e in pipeline if e["stage"] in CLOSE_TO_HIRING_STAGES and e["status"] == "Active"
        ),
        "interviews_this_week": sum(
            1 for i in interviews if now <= as_utc(i["interview_date"]) <= week_ahead
        ),
        "submissions_this_week": sum(
            1 for e in pipeline if e["stage"] == "Submit to Client" and as_utc(e["created_at"]) >= week_ago
        ),
        "active_candidates": sum(
            1 for e in pipeline if e["status"] == "Active" and e["position_id"] in open_ids
        ),
        "outreach_this_week": len(outreach_this_week),
        "reply_rate": reply_rate(outreach_this_week),
    }


def intelligent_alerts(metrics: dict, health: dict, stats: dict) -> list[dict]:
    """The most urgent alerts first, at most ``MAX_ALERTS``; an all-clear card when there are none."""
    alerts = []
    for position_id, data in metrics.items():
        role = health.get(position_id)
        if role is None:
            continue
        title = data["title"]
        if data["stages"]["Submit to Client"] == 0:
            alerts.append(
                {
                    "type": "zero_submissions",
                    "message": f"{title} - No candidates submitted to the client",
                    "suggestion": "Increase sourcing outreach. Consider expanding search criteria "
                    "or tapping into passive candidates.",
                    "color": "red",
                }
            )
        if role["outreach"] >= 10 and role["reply_rate"] < 15:
            alerts.append(
                {
                    "type": "low_reply_rate",
                    "message": f"{title} - Reply rate at {role['reply_rate']}% (Target: 20%+)",
                    "suggestion": "Review outreach messaging. Try personalizing LinkedIn messages "
                    "or A/B testing different approaches.",
                    "color": "red",
                }
            )
        if role["days_since_activity"] >= 14:
            alerts.append(
                {
                    "type": "no_activity",
                    "message": f"{title} - No activity in {role['days_since_activity']} days",
                    "suggestion": "Re-prioritize this role or consider if it's still active.",
                    "color": "red",
                }
            )
        if role["outreach"] >= 10:
            alerts.append(
                {
                    "type": "high_activity",
                    "message": f"{title} - {role['outreach']} outreach activities this week",
                    "suggestion": "Monitor reply rates and conversion to ensure quality over quantity.",
                    "color": "blue",
                }
            )

    if stats["submissions_this_week"] >= 3 or stats["interviews_this_week"] >= 2:
        alerts.append(
            {
                "type": "success",
                "message": f"Great momentum! {stats['submissions_this_week']} new submissions this week",
                "suggestion": "Keep it up! Strong pipeline activity.",
                "color": "green",
            }
        )

    if not alerts:
        return [dict(ALL_CLEAR)]
    alerts.sort(key=lambda a: ALERT_PRIORITY[a["color"]])
    return alerts[:MAX_ALERTS]


def activity_timeline(pipeline: list[dict], interviews: list[dict], now: datetime | None = None) -> list[dict]:
    """Pipeline additions and scheduled interviews from the last few days, newest first."""
    now = now or utcnow()
    since = now - timedelta(days=TIMELINE_DAYS)

    def recent(rows):
        rows = [r for r in rows if as_utc(r["created_at"]) >= since]
        rows.sort(key=lambda r: as_utc(r["created_at"]), reverse=True)
        return rows[:TIMELINE_SOURCE_LIMIT]

    events = []
    for entry in recent(pipeline):
        name, title = entry.get("candidate_name"), entry.get("position_title")
        if entry["stage"] == "Submit to Client":
            event = ("submission", f"{name} submitted for {title}", entry["created_at"])
        elif entry["stage"] in ADVANCED_STAGES:
            event = (
                "stage_change",
                f"{name} moved to {entry['stage']} for {title}",
                entry.get("updated_at") or entry["created_at"],
            )
        else:
            event = ("candidate_added", f"{name} added to pipeline for {title}", entry["created_at"])
        events.append(event)
    for interview in recent(interviews):
        events.append(
            (
                "interview_scheduled",
                f"Interview scheduled with {interview.get('candidate_name')} for {interview.get('position_title')}",
                interview["created_at"],
            )
        )

    events.sort(key=lambda e: as_utc(e[2]), reverse=True)
    return [
        {"type": type_, "message": message, "timestamp": as_utc(ts), "time_ago": time_ago(ts, now)}
        for type_, message, ts in events[:TIMELINE_LIMIT]
    ]


def call_metrics(outreach: list[dict], now: datetime | None = None) -> dict[str, list[dict]]:
    """Scheduled calls today and in the current Monday-to-Sunday week."""
    now = now or utcnow()
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    week_start = today - timedelta(days=today.weekday())
    calls = [
        o for o in outreach if o["activity_status"] == "call_scheduled" and o.get("scheduled_call_date")
    ]
    calls.sort(key=lambda o: as_utc(o["scheduled_call_date"]))
    return {
        "today": [o for o in calls if today <= as_utc(o["scheduled_call_date"]) < today + timedelta(days=1)],
        "week": [
            o for o in calls if week_start <= as_utc(o["scheduled_call_date"]) < week_start + timedelta(days=7)
        ],
    }


class Dashboard:
    def __init__(self, store: AppStore):
        self.store = store

    @surfaces_errors
    async def summary(self, now: datetime | None = None) -> dict:
        now = now or utcnow()
        collections = self.store.collections
        outreach = await self.store.backend.select(
            "recruiter_outreach", gte={"created_at": now - timedelta(days=OUTREACH_WINDOW_DAYS)}
        )

        metrics = pipeline_metrics(collections["pipeline"], collections["positions"])
        health = role_health(metrics, collections["pipeline"], outreach, now)
        stats = executive_stats(
            collections["pipeline"], collections["positions"], collections["interviews"], outreach, now
        )
        logger.info(
            "dashboard_built",
            recruiter_id=str(self.store.identity.id),
            positions=len(metrics),
            outreach=len(outreach),
        )
        return {
            "stats": {**stats, "reply_rate_color": reply_rate_color(stats["reply_rate"])},
            "roles": [
                {"position_id": position_id, **data, **health[position_id]}
                for position_id, data in metrics.items()
            ],
            "alerts": intelligent_alerts(metrics, health, stats),
            "timeline": activity_timeline(collections["pipeline"], collections["interviews"], now),
            "calls": call_metrics(collections["outreach"], now),
            "generated_at": now,
        }
