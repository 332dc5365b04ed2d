from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ewm.clients.stats import StatsClient, get_stats_client
from ewm.database.db import get_db
from ewm.models.events import EventState
from ewm.routes.events_private import full_event
from ewm.schemas.common import parse_date_param
from ewm.schemas.events import AdminEventUpdate, EventFullOut
from ewm.services import events as event_service
from ewm.services import listing

router = APIRouter(prefix="/admin/events", tags=["events: admin"])


@router.get("", response_model=list[EventFullOut])
def search_events(
    users: Optional[list[int]] = Query(None),
    states: Optional[list[EventState]] = Query(None),
    categories: Optional[list[int]] = Query(None),
    range_start: Optional[str] = Query(None, alias="rangeStart"),
    range_end: Optional[str] = Query(None, alias="rangeEnd"),
    from_: int = Query(0, ge=0, alias="from"),
    size: int = Query(10, gt=0),
    db: Session = Depends(get_db),
    stats: StatsClient = Depends(get_stats_client),
):
    filters = listing.AdminFilter(
        users=users,
        states=[state.value for state in states] if states else None,
        categories=categories,
        range_start=parse_date_param(range_start, "rangeStart"),
        range_end=parse_date_param(range_end, "rangeEnd"),
    )
    views = listing.search_admin(db, filters, stats, from_=from_, size=size)
    return [EventFullOut.from_view(view) for view in views]


@router.put("/{event_id}", response_model=EventFullOut)
def update_event(
    event_id: int,
    payload: AdminEventUpdate,
    db: Session = Depends(get_db),
    stats: StatsClient = Depends(get_stats_client),
):
    event = event_service.update_event_by_admin(db, event_id=event_id, patch=payload)
    return full_event(db, event, stats)


@router.patch("/{event_id}/publish", response_model=EventFullOut)
def publish_event(event_id: int, db: Session = Depends(get_db), stats: StatsClient = Depends(get_stats_client)):
    event = event_service.publish_event(db, event_id=event_id)
    return full_event(db, event, stats)


@router.patch("/{event_id}/reject", response_model=EventFullOut)
def reject_event(event_id: int, db: Session = Depends(get_db), stats: StatsClient = Depends(get_stats_client)):
    event = event_service.reject_event(db, event_id=event_id)
    return full_event(db, event, stats)
