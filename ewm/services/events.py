"""
Event lifecycle: creation, edits, cancellation and moderation.

State machine of a single event:

    (new) --create--> PENDING --publish (admin)--> PUBLISHED
                      PENDING --cancel (owner) / reject (admin)--> CANCELED
                      CANCELED --edit (owner)--> PENDING

The initiator may edit an event only while it is PENDING or CANCELED; an
administrator may edit any event. Every guard failure raises.
"""

import logging
from datetime import datetime, timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session

from ewm.clients.stats import StatsClient
from ewm.core import clock
from ewm.core.errors import Conflict, Forbidden, NotFound, ValidationError
from ewm.core.locks import event_lock
from ewm.database.db import atomic
from ewm.models.events import Event, EventState
from ewm.schemas.events import AdminEventUpdate, EventCreate, EventPatch, OwnerEventUpdate
from ewm.services import listing
from ewm.services.directory import get_category, get_user

logger = logging.getLogger(__name__)

# Minimal gap between "now" and the event start when the initiator saves it.
MIN_LEAD_ON_SAVE = timedelta(hours=2)
# Minimal gap between publication and the event start.
MIN_LEAD_ON_PUBLISH = timedelta(hours=1)


def get_event(db: Session, event_id: int) -> Event:
    event = db.get(Event, event_id)
    if not event:
        raise NotFound(f"Event with id={event_id} was not found")
    return event


def check_initiator(event: Event, user_id: int) -> None:
    if event.initiator_id != user_id:
        raise Forbidden(f"User id={user_id} is not the initiator of event id={event.id}")


def _check_save_date(event_date: datetime) -> None:
    earliest = clock.utcnow() + MIN_LEAD_ON_SAVE
    if event_date < earliest:
        raise ValidationError(
            f"Event date {event_date} must not be earlier than two hours from now ({earliest})"
        )


def _check_state(event: Event, expected: EventState) -> None:
    if event.state != expected.value:
        raise Conflict(
            f"Event id={event.id} is {event.state}, the operation needs {expected.value}"
        )


def _apply_patch(db: Session, event: Event, patch: EventPatch) -> None:
    changes = patch.model_dump(exclude_none=True, exclude={"event_id", "category", "location"})
    for field, value in changes.items():
        setattr(event, field, value)
    if patch.category is not None:
        event.category = get_category(db, patch.category)


def create_event(db: Session, *, user_id: int, draft: EventCreate) -> Event:
    _check_save_date(draft.event_date)
    initiator = get_user(db, user_id)
    category = get_category(db, draft.category)

    event = Event(
        title=draft.title,
        annotation=draft.annotation,
        description=draft.description,
        category=category,
        initiator=initiator,
        lat=draft.location.lat,
        lon=draft.location.lon,
        event_date=draft.event_date,
        paid=draft.paid,
        participant_limit=draft.participant_limit,
        request_moderation=draft.request_moderation,
        created_on=clock.utcnow(),
        state=EventState.PENDING.value,
        confirmed_count=0,
    )
    db.add(event)
    db.commit()
    db.refresh(event)
    logger.info("User id=%s created event id=%s", user_id, event.id)
    return event


def update_event_by_owner(db: Session, *, user_id: int, patch: OwnerEventUpdate) -> Event:
    get_user(db, user_id)
    event = get_event(db, patch.event_id)
    check_initiator(event, user_id)
    if event.state == EventState.PUBLISHED.value:
        raise Conflict(f"Event id={event.id} is published and can not be changed")
    _check_save_date(patch.event_date or event.event_date)

    _apply_patch(db, event, patch)
    if event.state == EventState.CANCELED.value:
        event.state = EventState.PENDING.value
    db.commit()
    db.refresh(event)
    logger.info("User id=%s updated event id=%s", user_id, event.id)
    return event


def cancel_event_by_owner(db: Session, *, user_id: int, event_id: int) -> Event:
    get_user(db, user_id)
    event = get_event(db, event_id)
    check_initiator(event, user_id)
    _check_state(event, EventState.PENDING)

    event.state = EventState.CANCELED.value
    db.commit()
    db.refresh(event)
    logger.info("User id=%s canceled event id=%s", user_id, event.id)
    return event


def update_event_by_admin(db: Session, *, event_id: int, patch: AdminEventUpdate) -> Event:
    # the limit may change under confirmed requests, so hold the admission lock
    with event_lock(event_id):
        with atomic(db):
            event = get_event(db, event_id)
            db.refresh(event)
            new_limit = patch.participant_limit
            if new_limit and new_limit < event.confirmed_count:
                raise Conflict(
                    f"Event id={event.id} already has {event.confirmed_count} confirmed requests, "
                    f"participantLimit={new_limit} is too low"
                )
            _apply_patch(db, event, patch)
            if patch.location is not None:
                event.lat = patch.location.lat
                event.lon = patch.location.lon
    db.refresh(event)
    logger.info("Admin updated event id=%s", event.id)
    return event


def publish_event(db: Session, *, event_id: int) -> Event:
    event = get_event(db, event_id)
    _check_state(event, EventState.PENDING)

    published_on = clock.utcnow()
    if not event.event_date > published_on + MIN_LEAD_ON_PUBLISH:
        raise ValidationError(
            f"Event date {event.event_date} must be more than one hour after publication ({published_on})"
        )
    event.state = EventState.PUBLISHED.value
    event.published_on = published_on
    db.commit()
    db.refresh(event)
    logger.info("Admin published event id=%s", event.id)
    return event


def reject_event(db: Session, *, event_id: int) -> Event:
    event = get_event(db, event_id)
    _check_state(event, EventState.PENDING)

    event.state = EventState.CANCELED.value
    db.commit()
    db.refresh(event)
    logger.info("Admin rejected event id=%s", event.id)
    return event


def list_events_by_owner(
    db: Session, *, user_id: int, stats: StatsClient, from_: int = 0, size: int = 10
) -> list[listing.EventView]:
    get_user(db, user_id)
    events = list(
        db.scalars(
            select(Event).where(Event.initiator_id == user_id).order_by(Event.id).offset(from_).limit(size)
        )
    )
    return listing.enrich(db, events, stats)


def get_event_by_owner(db: Session, *, user_id: int, event_id: int, stats: StatsClient) -> listing.EventView:
    get_user(db, user_id)
    event = get_event(db, event_id)
    check_initiator(event, user_id)
    return listing.enrich(db, [event], stats)[0]


def get_public_event(db: Session, *, event_id: int, stats: StatsClient) -> listing.EventView:
    event = get_event(db, event_id)
    if event.state != EventState.PUBLISHED.value:
        raise NotFound(f"Event with id={event_id} was not found")
    return listing.enrich(db, [event], stats)[0]
