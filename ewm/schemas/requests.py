from pydantic import BaseModel, Field

from ewm.schemas.common import FormattedDateTime


class ParticipationRequestOut(BaseModel):
    id: int
    event_id: int = Field(alias="event")
    requester_id: int = Field(alias="requester")
    status: str
    created: FormattedDateTime

    class Config:
        populate_by_name = True

    @classmethod
    def from_model(cls, request) -> "ParticipationRequestOut":
        return cls(
            id=request.id,
            event_id=request.event_id,
            requester_id=request.requester_id,
            status=request.status,
            created=request.created,
        )


class ConfirmOut(ParticipationRequestOut):
    """Confirmed request plus the requests the confirmation auto-rejected."""

    rejected_request_ids: list[int] = Field(default_factory=list, alias="rejectedRequestIds")
