"""Read-only event listings enriched with confirmed-request and view counts.

Confirmed counts come from the local request table, views from the
statistics collector. Views are best-effort: if the collector is down or
slow, every event simply reports zero views.
"""

import enum
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from ewm.clients.stats import StatsClient
from ewm.core import clock
from ewm.core.errors import NotFound, UpstreamUnavailable, ValidationError
from ewm.models.events import Event, EventState
from ewm.models.requests import ParticipationRequest, RequestStatus

logger = logging.getLogger(__name__)

# Lower bound of every stats query; no hit is older than this.
STATS_START = datetime(2021, 12, 31, 23, 59, 59)
# Upper bound of an open date range.
FAR_FUTURE = datetime(9998, 12, 31, 23, 59, 59)

EVENT_URI_PREFIX = "/events/"


class EventSort(str, enum.Enum):
    EVENT_DATE = "EVENT_DATE"
    VIEWS = "VIEWS"


@dataclass
class EventView:
    event: Event
    confirmed_requests: int = 0
    views: int = 0


@dataclass
class PublicFilter:
    text: Optional[str] = None
    categories: Optional[list[int]] = None
    paid: Optional[bool] = None
    range_start: Optional[datetime] = None
    range_end: Optional[datetime] = None
    only_available: bool = False


@dataclass
class AdminFilter:
    users: Optional[list[int]] = None
    states: Optional[list[str]] = None
    categories: Optional[list[int]] = None
    range_start: Optional[datetime] = None
    range_end: Optional[datetime] = None


def event_uri(event_id: int) -> str:
    return f"{EVENT_URI_PREFIX}{event_id}"


def _event_id_from_uri(uri: str) -> Optional[int]:
    if not uri.startswith(EVENT_URI_PREFIX):
        return None
    tail = uri[len(EVENT_URI_PREFIX):]
    return int(tail) if tail.isdigit() else None


def count_confirmed(db: Session, event_ids: Iterable[int]) -> dict[int, int]:
    """Number of CONFIRMED requests per event; events without any are absent."""
    ids = list(event_ids)
    if not ids:
        return {}
    rows = db.execute(
        select(ParticipationRequest.event_id, func.count(ParticipationRequest.id))
        .where(
            ParticipationRequest.event_id.in_(ids),
            ParticipationRequest.status == RequestStatus.CONFIRMED.value,
        )
        .group_by(ParticipationRequest.event_id)
    ).all()
    return {event_id: int(count) for event_id, count in rows}


def fetch_views(stats: StatsClient, event_ids: Iterable[int]) -> dict[int, int]:
    """Views per event from one batched stats query; {} if the collector fails."""
    ids = set(event_ids)
    if not ids:
        return {}
    uris = [event_uri(event_id) for event_id in sorted(ids)]
    try:
        rows = stats.get_stats(STATS_START, clock.utcnow(), uris, unique=False)
    except UpstreamUnavailable as e:
        logger.warning("Views unavailable, defaulting to 0 for %d events: %s", len(ids), e)
        return {}

    views: dict[int, int] = {}
    for row in rows:
        event_id = _event_id_from_uri(row.uri)
        if event_id in ids:
            views[event_id] = views.get(event_id, 0) + row.hits
    return views


def enrich(db: Session, events: list[Event], stats: StatsClient) -> list[EventView]:
    ids = [event.id for event in events]
    confirmed = count_confirmed(db, ids)
    views = fetch_views(stats, ids)
    return [
        EventView(
            event=event,
            confirmed_requests=confirmed.get(event.id, 0),
            views=views.get(event.id, 0),
        )
        for event in events
    ]


def _check_range(start: datetime, end: datetime) -> None:
    if start > end:
        raise ValidationError(f"rangeStart={start} is after rangeEnd={end}")


def _has_free_slots(view: EventView) -> bool:
    limit = view.event.participant_limit
    return limit == 0 or view.confirmed_requests < limit


def list_public(
    db: Session,
    filters: PublicFilter,
    stats: StatsClient,
    sort: EventSort = EventSort.EVENT_DATE,
    from_: int = 0,
    size: int = 10,
) -> list[EventView]:
    """
    Published events matching ``filters``.

    Raises NotFound when nothing matches before pagination; an empty page
    past the end of a non-empty result is returned as an empty list.
    """
    # a half-open range means "upcoming events"
    if filters.range_start is None or filters.range_end is None:
        start, end = clock.utcnow(), FAR_FUTURE
    else:
        start, end = filters.range_start, filters.range_end
        _check_range(start, end)

    stmt = select(Event).where(
        Event.state == EventState.PUBLISHED.value,
        Event.event_date.between(start, end),
    )
    if filters.text:
        needle = filters.text.lower()
        stmt = stmt.where(
            or_(
                func.lower(Event.title).contains(needle, autoescape=True),
                func.lower(Event.annotation).contains(needle, autoescape=True),
                func.lower(Event.description).contains(needle, autoescape=True),
            )
        )
    if filters.categories:
        stmt = stmt.where(Event.category_id.in_(filters.categories))
    if filters.paid is not None:
        stmt = stmt.where(Event.paid == filters.paid)

    views = enrich(db, list(db.scalars(stmt)), stats)
    if filters.only_available:
        views = [view for view in views if _has_free_slots(view)]
    if not views:
        raise NotFound("Events matching the given filter were not found")

    if sort == EventSort.VIEWS:
        views.sort(key=lambda v: (v.views, v.event.id))
    else:
        views.sort(key=lambda v: (v.event.event_date, v.event.id))
    return views[from_:from_ + size]


def search_admin(
    db: Session,
    filters: AdminFilter,
    stats: StatsClient,
    from_: int = 0,
    size: int = 10,
) -> list[EventView]:
    """Events in any state matching ``filters``, ordered by id."""
    stmt = select(Event)
    if filters.users:
        stmt = stmt.where(Event.initiator_id.in_(filters.users))
    if filters.states:
        stmt = stmt.where(Event.state.in_(filters.states))
    if filters.categories:
        stmt = stmt.where(Event.category_id.in_(filters.categories))
    if filters.range_start and filters.range_end:
        _check_range(filters.range_start, filters.range_end)
    if filters.range_start:
        stmt = stmt.where(Event.event_date >= filters.range_start)
    if filters.range_end:
        stmt = stmt.where(Event.event_date <= filters.range_end)

    events = list(db.scalars(stmt.order_by(Event.id).offset(from_).limit(size)))
    return enrich(db, events, stats)
