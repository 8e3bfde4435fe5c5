import structlog
from celery import shared_task

from talentdesk.core.errors import ResumeParseError, ValidationFailed

logger = structlog.get_logger()


def get_sync_session():
    from sqlalchemy import create_engine
    from sqlalchemy.orm import Session

    from talentdesk.core.config import get_settings

    settings = get_settings()
    sync_url = settings.DATABASE_URL.replace("+asyncpg", "").replace("+aiosqlite", "")
    engine = create_engine(sync_url)
    return Session(engine)


def apply_parsed_resume(candidate, data) -> list[str]:
    """Fill only the fields a recruiter left empty. Returns the names filled."""
    from talentdesk.services.outreach import normalize_linkedin_url

    filled = []
    if not candidate.phone and data.phone:
        candidate.phone = data.phone
        filled.append("phone")
    if not candidate.linkedin_url and data.linkedin_url:
        candidate.linkedin_url = data.linkedin_url
        candidate.linkedin_key = normalize_linkedin_url(data.linkedin_url) or None
        filled.append("linkedin_url")
    if not candidate.skills and data.skills:
        candidate.skills = ", ".join(s.strip() for s in data.skills if s.strip())
        filled.append("skills")
    if not candidate.notes and data.summary:
        candidate.notes = data.summary
        filled.append("notes")
    return filled


@shared_task(name="resume.process", bind=True, max_retries=3)
def process_resume(self, candidate_id: str):
    logger.info("resume_processing_start", candidate_id=candidate_id)

    session = get_sync_session()
    try:
        from datetime import datetime, timezone
        from uuid import UUID

        from talentdesk.core.config import get_settings
        from talentdesk.models.candidate import Candidate
        from talentdesk.services import storage
        from talentdesk.services.resume_parser import parse_resume_file

        settings = get_settings()
        candidate = session.get(Candidate, UUID(candidate_id))
        if not candidate or not candidate.resume_url:
            logger.warning("resume_processing_skip", candidate_id=candidate_id, reason="no_resume")
            return

        key = storage.key_from_public_url(settings.S3_BUCKET_RESUMES, candidate.resume_url)
        if key is None:
            logger.warning("resume_processing_skip", candidate_id=candidate_id, reason="external_resume")
            return

        content = storage.download_file(settings.S3_BUCKET_RESUMES, key)
        data = parse_resume_file(content, key)
        filled = apply_parsed_resume(candidate, data)
        if filled:
            candidate.updated_at = datetime.now(timezone.utc)
        session.commit()
        logger.info("resume_processing_done", candidate_id=candidate_id, filled=filled)

    except ValidationFailed as e:
        session.rollback()
        logger.warning("resume_processing_unsupported", candidate_id=candidate_id, error=e.message)
    except ResumeParseError as e:
        session.rollback()
        logger.error("resume_processing_error", candidate_id=candidate_id, error=e.message)
        raise self.retry(exc=e, countdown=30)
    finally:
        session.close()
