import structlog

from talentdesk.core.errors import BackendMutationError
from talentdesk.services.backend import Backend

logger = structlog.get_logger()

NOTIFICATION_TYPES = ("stage_change_director", "status_change", "new_comment")


class NotificationOutbox:
    """One-way queue of recruiter-facing notifications.

    Rows are picked up by an external delivery automation. ``enqueue`` only
    reports whether the event was accepted; there is no acknowledgement path.
    """

    def __init__(self, backend: Backend):
        self.backend = backend

    async def enqueue(self, recipient: str | None, message: str | None, type: str | None) -> bool:
        if not recipient or not message or not type:
            logger.warning(
                "notification_rejected",
                reason="missing_field",
                has_recipient=bool(recipient),
                has_message=bool(message),
                type=type,
            )
            return False

        try:
            await self.backend.insert(
                "notification_outbox",
                {"payload": {"recipient_email": recipient, "message": message, "type": type}},
            )
        except BackendMutationError as e:
            logger.error("notification_enqueue_failed", recipient=recipient, type=type, error=e.message)
            return False

        logger.info("notification_enqueued", recipient=recipient, type=type)
        return True
