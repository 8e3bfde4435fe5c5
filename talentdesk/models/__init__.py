from talentdesk.models.candidate import Candidate
from talentdesk.models.client import Client
from talentdesk.models.comment import Comment
from talentdesk.models.commission import Commission
from talentdesk.models.company_document import CompanyDocument
from talentdesk.models.interview import Interview
from talentdesk.models.notification_outbox import NotificationOutbox
from talentdesk.models.outreach import OutreachActivity
from talentdesk.models.pipeline import PipelineEntry
from talentdesk.models.position import Position
from talentdesk.models.recruiter import Recruiter

__all__ = [
    "Client",
    "Position",
    "Candidate",
    "Recruiter",
    "PipelineEntry",
    "Interview",
    "Comment",
    "OutreachActivity",
    "Commission",
    "CompanyDocument",
    "NotificationOutbox",
]
