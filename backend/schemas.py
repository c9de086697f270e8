from __future__ import annotations

from datetime import date, datetime
from typing import Optional, List, Dict, Any, Literal

from pydantic import BaseModel, Field, field_validator

from backend.notifications.times import normalize_hhmm


class SignInPayload(BaseModel):
    email: str
    password: str


class ResetPasswordPayload(BaseModel):
    email: str


class PasswordUpdatePayload(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=6)


class RecoverPasswordPayload(BaseModel):
    new_password: str = Field(..., min_length=6)


class EmailUpdatePayload(BaseModel):
    email: str


class ProfilePatch(BaseModel):
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None


class PlanCreate(BaseModel):
    client_id: str
    name: str
    description: Optional[str] = None
    start_date: date
    end_date: date


class PlanPatch(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class AssignmentCreate(BaseModel):
    type: Literal["pdf", "video", "habit"]
    title: str
    description: Optional[str] = None
    link: Optional[str] = None
    thumbnail_url: Optional[str] = None
    content_id: Optional[str] = None
    scheduled_date: date
    plan_id: Optional[str] = None


class AssignmentPatch(BaseModel):
    type: Optional[Literal["pdf", "video", "habit"]] = None
    title: Optional[str] = None
    description: Optional[str] = None
    link: Optional[str] = None
    thumbnail_url: Optional[str] = None
    content_id: Optional[str] = None
    scheduled_date: Optional[date] = None
    completed: Optional[bool] = None


class AssignmentTogglePayload(BaseModel):
    current: bool


class CompletionTogglePayload(BaseModel):
    assignment_id: str
    day: Optional[date] = None


class ClientCreate(BaseModel):
    email: str
    full_name: str


class ColleaguePayload(BaseModel):
    coach_id: str


class ContentCreate(BaseModel):
    type: Literal["pdf", "video", "habit", "post"]
    title: str
    description: Optional[str] = None
    link: Optional[str] = None
    thumbnail_url: Optional[str] = None


class ContentPatch(BaseModel):
    type: Optional[Literal["pdf", "video", "habit", "post"]] = None
    title: Optional[str] = None
    description: Optional[str] = None
    link: Optional[str] = None
    thumbnail_url: Optional[str] = None


class BoardPostCreate(BaseModel):
    title: str
    content: str = ""
    image_url: Optional[str] = None
    target_client_ids: Optional[List[str]] = None
    expires_at: Optional[datetime] = None


class BoardPostPatch(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    image_url: Optional[str] = None
    target_client_ids: Optional[List[str]] = None
    expires_at: Optional[datetime] = None


class NotificationRulePayload(BaseModel):
    scheduled_time: str
    message: str
    client_id: Optional[str] = None

    @field_validator("scheduled_time")
    @classmethod
    def _check_time(cls, value: str) -> str:
        return normalize_hhmm(value)

    @field_validator("message")
    @classmethod
    def _check_message(cls, value: str) -> str:
        value = (value or "").strip()
        if not value:
            raise ValueError("Message cannot be empty")
        return value


class AlertSettingsPayload(BaseModel):
    is_enabled: bool
    alert_times: Optional[List[str]] = None

    @field_validator("alert_times")
    @classmethod
    def _check_times(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        if value is None:
            return None
        return [normalize_hhmm(item) for item in value]


class PushSubscriptionPayload(BaseModel):
    subscription: Dict[str, Any]
    user_agent: Optional[str] = None


class CoachCreate(BaseModel):
    email: str
    full_name: str
    password: str = Field(..., min_length=6)


class DispatchRequest(BaseModel):
    type: Optional[str] = None
    user_id: Optional[str] = None
    title: Optional[str] = None
    body: Optional[str] = None
    url: Optional[str] = None
    coach_id: Optional[str] = None
    target_client_ids: Optional[List[str]] = None
    simulated_time: Optional[str] = None


class SchedulerRequest(BaseModel):
    time_override: Optional[str] = None
