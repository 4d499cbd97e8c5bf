from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from config import settings


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class MatchRequest(CamelModel):
    volunteer_id: str = Field(alias="volunteerId", min_length=1)
    event_id: str = Field(alias="eventId", min_length=1)


class MatchStatusUpdate(CamelModel):
    status: Literal["pending", "confirmed", "declined", "completed"]


class AutoMatchRequest(CamelModel):
    min_score: int = Field(default=settings.AUTO_MIN_SCORE, alias="minScore", ge=0, le=100)
    max_matches: int = Field(default=settings.AUTO_MAX_MATCHES, alias="maxMatches", ge=1)


class VolunteerPayload(CamelModel):
    name: str = ""
    email: str = ""
    skills: List[str] = Field(default_factory=list)
    # "Mon 09:00-12:00"
    availability: List[str] = Field(default_factory=list)
    city: str = ""
    state_code: str = Field(default="", alias="stateCode")
    preferences: List[str] = Field(default_factory=list)
    status: Literal["Active", "Inactive"] = "Active"


class EventPayload(CamelModel):
    name: str
    required_skills: List[str] = Field(default_factory=list, alias="requiredSkills")
    urgency: Literal["low", "medium", "high", "critical"] = "medium"
    capacity: Optional[int] = Field(default=None, gt=0)
    start_at: datetime = Field(alias="startAt")
    end_at: datetime = Field(alias="endAt")
    status: Literal["draft", "published", "cancelled"] = "draft"
    city: str = ""
    state_code: str = Field(default="", alias="stateCode")
    description: str = ""

    @field_validator("start_at", "end_at")
    @classmethod
    def to_naive_local(cls, value: datetime) -> datetime:
        if value.tzinfo is not None:
            return value.astimezone().replace(tzinfo=None)
        return value

    @model_validator(mode="after")
    def check_window(self):
        if self.start_at >= self.end_at:
            raise ValueError("startAt must be before endAt")
        return self
