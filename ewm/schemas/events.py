from typing import Optional

from pydantic import BaseModel, Field

from ewm.schemas.categories import CategoryOut
from ewm.schemas.common import FormattedDateTime
from ewm.schemas.users import UserShortOut


class Location(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)

    class Config:
        from_attributes = True


# ---------- Event input ----------
class EventCreate(BaseModel):
    title: str = Field(min_length=3, max_length=120)
    annotation: str = Field(min_length=20, max_length=2000)
    description: str = Field(min_length=20, max_length=7000)
    category: int = Field(ge=1)
    event_date: FormattedDateTime = Field(alias="eventDate")
    location: Location
    paid: bool = False
    participant_limit: int = Field(default=0, ge=0, alias="participantLimit")
    request_moderation: bool = Field(default=True, alias="requestModeration")

    class Config:
        populate_by_name = True


class EventPatch(BaseModel):
    """Fields both the initiator and an administrator may change."""

    title: Optional[str] = Field(default=None, min_length=3, max_length=120)
    annotation: Optional[str] = Field(default=None, min_length=20, max_length=2000)
    description: Optional[str] = Field(default=None, min_length=20, max_length=7000)
    category: Optional[int] = Field(default=None, ge=1)
    event_date: Optional[FormattedDateTime] = Field(default=None, alias="eventDate")
    paid: Optional[bool] = None
    participant_limit: Optional[int] = Field(default=None, ge=0, alias="participantLimit")

    class Config:
        populate_by_name = True


class OwnerEventUpdate(EventPatch):
    event_id: int = Field(ge=1, alias="eventId")


class AdminEventUpdate(EventPatch):
    location: Optional[Location] = None
    request_moderation: Optional[bool] = Field(default=None, alias="requestModeration")


# ---------- Event output ----------
class EventShortOut(BaseModel):
    id: int
    title: str
    annotation: str
    category: CategoryOut
    initiator: UserShortOut
    event_date: FormattedDateTime = Field(alias="eventDate")
    paid: bool
    confirmed_requests: int = Field(default=0, alias="confirmedRequests")
    views: int = 0

    class Config:
        from_attributes = True
        populate_by_name = True

    @classmethod
    def from_view(cls, view):
        """Build from an ``EventView`` produced by the listing aggregator."""
        out = cls.model_validate(view.event)
        return out.model_copy(
            update={"confirmed_requests": view.confirmed_requests, "views": view.views}
        )


class EventFullOut(EventShortOut):
    description: str
    location: Location
    participant_limit: int = Field(alias="participantLimit")
    request_moderation: bool = Field(alias="requestModeration")
    created_on: FormattedDateTime = Field(alias="createdOn")
    published_on: Optional[FormattedDateTime] = Field(default=None, alias="publishedOn")
    state: str
