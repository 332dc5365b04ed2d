import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from ewm.clients.stats import StatsClient, get_stats_client
from ewm.core import clock
from ewm.database.db import get_db
from ewm.schemas.common import format_date, parse_date_param
from ewm.schemas.events import EventFullOut, EventShortOut
from ewm.services import events as event_service
from ewm.services import listing
from ewm.tasks import record_hit_task

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/events", tags=["events: public"])


def _record_hit(request: Request) -> None:
    """Queue the hit for the statistics collector; never fails the request."""
    ip = request.client.host if request.client else ""
    try:
        record_hit_task.delay(request.url.path, ip, format_date(clock.utcnow()))
    except Exception as e:
        logger.warning("Could not queue hit for %s: %s", request.url.path, e)


@router.get("", response_model=list[EventShortOut])
def list_events(
    request: Request,
    text: Optional[str] = Query(None),
    categories: Optional[list[int]] = Query(None),
    paid: Optional[bool] = Query(None),
    range_start: Optional[str] = Query(None, alias="rangeStart"),
    range_end: Optional[str] = Query(None, alias="rangeEnd"),
    only_available: bool = Query(False, alias="onlyAvailable"),
    sort: listing.EventSort = Query(listing.EventSort.EVENT_DATE),
    from_: int = Query(0, ge=0, alias="from"),
    size: int = Query(10, gt=0),
    db: Session = Depends(get_db),
    stats: StatsClient = Depends(get_stats_client),
):
    _record_hit(request)
    filters = listing.PublicFilter(
        text=text,
        categories=categories,
        paid=paid,
        range_start=parse_date_param(range_start, "rangeStart"),
        range_end=parse_date_param(range_end, "rangeEnd"),
        only_available=only_available,
    )
    views = listing.list_public(db, filters, stats, sort=sort, from_=from_, size=size)
    return [EventShortOut.from_view(view) for view in views]


@router.get("/{event_id}", response_model=EventFullOut)
def get_event(
    event_id: int,
    request: Request,
    db: Session = Depends(get_db),
    stats: StatsClient = Depends(get_stats_client),
):
    _record_hit(request)
    view = event_service.get_public_event(db, event_id=event_id, stats=stats)
    return EventFullOut.from_view(view)
