from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ewm.clients.stats import StatsClient, get_stats_client
from ewm.database.db import get_db
from ewm.models.events import Event
from ewm.schemas.events import EventCreate, EventFullOut, EventShortOut, OwnerEventUpdate
from ewm.schemas.requests import ConfirmOut, ParticipationRequestOut
from ewm.services import events as event_service
from ewm.services import listing
from ewm.services import requests as request_service

router = APIRouter(prefix="/users", tags=["events: initiator"])


def full_event(db: Session, event: Event, stats: StatsClient) -> EventFullOut:
    return EventFullOut.from_view(listing.enrich(db, [event], stats)[0])


@router.post("/{user_id}/events", response_model=EventFullOut)
def create_event(
    user_id: int,
    payload: EventCreate,
    db: Session = Depends(get_db),
    stats: StatsClient = Depends(get_stats_client),
):
    event = event_service.create_event(db, user_id=user_id, draft=payload)
    return full_event(db, event, stats)


@router.patch("/{user_id}/events", response_model=EventFullOut)
def update_event(
    user_id: int,
    payload: OwnerEventUpdate,
    db: Session = Depends(get_db),
    stats: StatsClient = Depends(get_stats_client),
):
    event = event_service.update_event_by_owner(db, user_id=user_id, patch=payload)
    return full_event(db, event, stats)


@router.get("/{user_id}/events", response_model=list[EventShortOut])
def list_own_events(
    user_id: int,
    from_: int = Query(0, ge=0, alias="from"),
    size: int = Query(10, gt=0),
    db: Session = Depends(get_db),
    stats: StatsClient = Depends(get_stats_client),
):
    views = event_service.list_events_by_owner(db, user_id=user_id, stats=stats, from_=from_, size=size)
    return [EventShortOut.from_view(view) for view in views]


@router.get("/{user_id}/events/{event_id}", response_model=EventFullOut)
def get_own_event(
    user_id: int,
    event_id: int,
    db: Session = Depends(get_db),
    stats: StatsClient = Depends(get_stats_client),
):
    view = event_service.get_event_by_owner(db, user_id=user_id, event_id=event_id, stats=stats)
    return EventFullOut.from_view(view)


@router.patch("/{user_id}/events/{event_id}", response_model=EventFullOut)
def cancel_event(
    user_id: int,
    event_id: int,
    db: Session = Depends(get_db),
    stats: StatsClient = Depends(get_stats_client),
):
    event = event_service.cancel_event_by_owner(db, user_id=user_id, event_id=event_id)
    return full_event(db, event, stats)


@router.get("/{user_id}/events/{event_id}/requests", response_model=list[ParticipationRequestOut])
def list_event_requests(user_id: int, event_id: int, db: Session = Depends(get_db)):
    requests = request_service.list_requests_for_event(db, user_id=user_id, event_id=event_id)
    return [ParticipationRequestOut.from_model(r) for r in requests]


@router.patch("/{user_id}/events/{event_id}/requests/{req_id}/confirm", response_model=ConfirmOut)
def confirm_request(user_id: int, event_id: int, req_id: int, db: Session = Depends(get_db)):
    result = request_service.confirm_request(db, user_id=user_id, event_id=event_id, request_id=req_id)
    out = ParticipationRequestOut.from_model(result.request)
    return ConfirmOut(**out.model_dump(), rejected_request_ids=result.rejected_ids)


@router.patch("/{user_id}/events/{event_id}/requests/{req_id}/reject", response_model=ParticipationRequestOut)
def reject_request(user_id: int, event_id: int, req_id: int, db: Session = Depends(get_db)):
    request = request_service.reject_request(db, user_id=user_id, event_id=event_id, request_id=req_id)
    return ParticipationRequestOut.from_model(request)
