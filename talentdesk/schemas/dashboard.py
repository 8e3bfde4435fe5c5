from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from talentdesk.schemas.outreach import OutreachResponse


class ExecutiveStats(BaseModel):
    roles_needing_attention: int
    close_to_hiring: int
    interviews_this_week: int
    submissions_this_week: int
    active_candidates: int
    outreach_this_week: int
    reply_rate: float
    reply_rate_color: str


class RoleHealth(BaseModel):
    position_id: UUID
    title: str
    company: str
    count: int
    stages: dict[str, int]
    health: str
    outreach: int
    reply_rate: float
    days_since_activity: int


class DashboardAlert(BaseModel):
    type: str
    message: str
    suggestion: str
    color: str


class TimelineEvent(BaseModel):
    type: str
    message: str
    timestamp: datetime
    time_ago: str


class ScheduledCalls(BaseModel):
    today: list[OutreachResponse]
    week: list[OutreachResponse]


class DashboardResponse(BaseModel):
    stats: ExecutiveStats
    roles: list[RoleHealth]
    alerts: list[DashboardAlert]
    timeline: list[TimelineEvent]
    calls: ScheduledCalls
    generated_at: datetime
