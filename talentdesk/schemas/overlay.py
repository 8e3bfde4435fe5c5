from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class PromptResponse(BaseModel):
    id: UUID
    type: str
    title: str
    message: str
    context_info: dict | None
    confirm_text: str
    cancel_text: str

    model_config = {"from_attributes": True}


class AlertResponse(BaseModel):
    type: str
    title: str
    message: str
    created_at: datetime

    model_config = {"from_attributes": True}


class OverlayState(BaseModel):
    prompt: PromptResponse | None
    alerts: list[AlertResponse]
