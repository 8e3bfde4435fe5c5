"""The single confirmation/alert overlay owned by each session store."""

import asyncio
import uuid
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import structlog

from talentdesk.core.errors import NotFound, TalentDeskError

logger = structlog.get_logger()

OVERLAY_TYPES = ("info", "error", "success", "warning", "delete")

Action = Callable[[], Awaitable[Any] | Any]


@dataclass
class Prompt:
    type: str
    title: str
    message: str
    context_info: dict[str, Any] | None = None
    confirm_text: str = "Confirm"
    cancel_text: str = "Cancel"
    on_confirm: Action | None = None
    on_cancel: Action | None = None
    id: uuid.UUID = field(default_factory=uuid.uuid4)


@dataclass
class Alert:
    type: str
    title: str
    message: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


async def _run(action: Action | None):
    if action is None:
        return None
    result = action()
    if asyncio.iscoroutine(result):
        result = await result
    return result


class ConfirmationOverlay:
    def __init__(self, max_alerts: int = 50):
        self.prompt: Prompt | None = None
        self.alerts: deque[Alert] = deque(maxlen=max_alerts)

    @property
    def is_open(self) -> bool:
        return self.prompt is not None

    async def show_confirm(
        self,
        *,
        type: str = "info",
        title: str,
        message: str,
        context_info: dict[str, Any] | None = None,
        confirm_text: str = "Confirm",
        cancel_text: str = "Cancel",
        on_confirm: Action | None = None,
        on_cancel: Action | None = None,
    ) -> Prompt:
        if type not in OVERLAY_TYPES:
            raise ValueError(f"Unknown overlay type '{type}'")
        if self.prompt is not None:
            # Only one prompt at a time; the superseded one is treated as dismissed.
            await self.cancel()
        self.prompt = Prompt(
            type=type,
            title=title,
            message=message,
            context_info=context_info,
            confirm_text=confirm_text,
            cancel_text=cancel_text,
            on_confirm=on_confirm,
            on_cancel=on_cancel,
        )
        logger.info("overlay_prompt_opened", prompt_id=str(self.prompt.id), title=title)
        return self.prompt

    def show_alert(self, type: str, title: str, message: str) -> Alert:
        alert = Alert(type=type, title=title, message=message)
        self.alerts.append(alert)
        return alert

    def show_error(self, exc: TalentDeskError) -> Alert | None:
        if exc.alerted:
            return None
        exc.alerted = True
        return self.show_alert(exc.alert_type, exc.title, exc.message)

    async def confirm_delete(
        self,
        *,
        noun: str,
        label: str,
        on_delete: Action,
        warning: str | None = None,
    ) -> Prompt:
        """Ask before deleting; confirming runs ``on_delete`` and reports how it went."""

        async def run_delete():
            try:
                await _run(on_delete)
            except TalentDeskError as e:
                logger.warning("overlay_delete_failed", noun=noun, error=e.message)
                self.show_error(e)
                raise
            self.show_alert("success", "Success!", f"{noun.capitalize()} deleted successfully!")
            return True

        message = "This action cannot be undone."
        if warning:
            message = f"{message} {warning}"
        return await self.show_confirm(
            type="delete",
            title=f"Delete {noun.capitalize()}?",
            message=message,
            context_info={"deleting": label},
            confirm_text="Delete",
            cancel_text="Keep",
            on_confirm=run_delete,
        )

    async def confirm(self):
        prompt = self._take()
        logger.info("overlay_prompt_confirmed", prompt_id=str(prompt.id))
        return await _run(prompt.on_confirm)

    async def cancel(self):
        prompt = self._take()
        logger.info("overlay_prompt_cancelled", prompt_id=str(prompt.id))
        return await _run(prompt.on_cancel)

    def _take(self) -> Prompt:
        if self.prompt is None:
            raise NotFound("No confirmation is pending")
        prompt, self.prompt = self.prompt, None
        return prompt

    def drain_alerts(self) -> list[Alert]:
        alerts = list(self.alerts)
        self.alerts.clear()
        return alerts
