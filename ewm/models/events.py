import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ewm.core import clock
from ewm.database.db import Base


class EventState(str, enum.Enum):
    PENDING = "PENDING"
    PUBLISHED = "PUBLISHED"
    CANCELED = "CANCELED"


class Event(Base):
    __tablename__ = "events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(120), nullable=False)
    annotation: Mapped[str] = mapped_column(String(2000), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category_id: Mapped[int] = mapped_column(ForeignKey("categories.id"), nullable=False)
    initiator_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    lat: Mapped[float] = mapped_column(Float, nullable=False)
    lon: Mapped[float] = mapped_column(Float, nullable=False)
    event_date: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    participant_limit: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    request_moderation: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_on: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=clock.utcnow)
    published_on: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    state: Mapped[str] = mapped_column(String(16), nullable=False, default=EventState.PENDING.value)
    # Slots taken by confirmed requests; only moved by a conditional UPDATE
    # under the event lock, see ewm.services.requests.
    confirmed_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    category: Mapped["Category"] = relationship()
    initiator: Mapped["User"] = relationship()
    requests: Mapped[list["ParticipationRequest"]] = relationship(back_populates="event")

    @property
    def location(self) -> dict:
        return {"lat": self.lat, "lon": self.lon}

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, state={self.state}, limit={self.participant_limit})>"
