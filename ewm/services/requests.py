"""
Participation requests and admission control.

Every status change of a request runs under the Redis lock of its event
and inside one database transaction. The capacity slot itself is taken with
a conditional UPDATE on ``events.confirmed_count``, so even without the lock
two confirmations can not both take the last slot.
"""

import enum
import logging
from dataclasses import dataclass, field

from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ewm.core import clock
from ewm.core.errors import Conflict, Forbidden, NotFound
from ewm.core.locks import event_lock
from ewm.database.db import atomic
from ewm.models.events import Event, EventState
from ewm.models.requests import ParticipationRequest, RequestStatus
from ewm.services.directory import get_user
from ewm.services.events import check_initiator, get_event

logger = logging.getLogger(__name__)


class AdmissionDecision(str, enum.Enum):
    AUTO_CONFIRM = "AUTO_CONFIRM"
    REQUIRES_MODERATION = "REQUIRES_MODERATION"


@dataclass
class ConfirmResult:
    """One confirmed request plus the pending requests it pushed out."""

    request: ParticipationRequest
    rejected_ids: list[int] = field(default_factory=list)


def check_admissible(event: Event) -> AdmissionDecision:
    if event.request_moderation:
        return AdmissionDecision.REQUIRES_MODERATION
    return AdmissionDecision.AUTO_CONFIRM


def _is_full(event: Event) -> bool:
    return event.participant_limit > 0 and event.confirmed_count >= event.participant_limit


def _take_slot(db: Session, event_id: int) -> int:
    """Atomically count one more confirmed request; returns the new count."""
    stmt = (
        update(Event)
        .where(Event.id == event_id)
        .where(or_(Event.participant_limit == 0, Event.confirmed_count < Event.participant_limit))
        .values(confirmed_count=Event.confirmed_count + 1)
        .execution_options(synchronize_session=False)
    )
    res = db.execute(stmt)
    if res.rowcount != 1:  # type: ignore
        raise Conflict(f"The participant limit of event id={event_id} has been reached")
    return db.scalar(select(Event.confirmed_count).where(Event.id == event_id))


def _load_event(db: Session, event_id: int) -> Event:
    event = get_event(db, event_id)
    db.refresh(event)
    return event


def _load_request(db: Session, request_id: int) -> ParticipationRequest:
    request = db.get(ParticipationRequest, request_id, populate_existing=True)
    if not request:
        raise NotFound(f"Request with id={request_id} was not found")
    return request


def _check_pending(request: ParticipationRequest) -> None:
    if request.status != RequestStatus.PENDING.value:
        raise Conflict(f"Request id={request.id} is {request.status}, only PENDING requests can change")


def _find_active(db: Session, event_id: int, requester_id: int):
    return db.scalar(
        select(ParticipationRequest).where(
            ParticipationRequest.event_id == event_id,
            ParticipationRequest.requester_id == requester_id,
            ParticipationRequest.status != RequestStatus.CANCELED.value,
        )
    )


def create_request(db: Session, *, user_id: int, event_id: int) -> ParticipationRequest:
    """
    Apply for participation in a published event.

    Without moderation the request is confirmed right away, which takes a
    slot exactly like a confirmation by the initiator would.
    """
    with event_lock(event_id):
        with atomic(db):
            get_user(db, user_id)
            event = _load_event(db, event_id)

            if _find_active(db, event_id, user_id):
                raise Conflict(f"User id={user_id} already requested participation in event id={event_id}")
            if event.initiator_id == user_id:
                raise Forbidden(f"Initiator id={user_id} can not request participation in own event")
            if event.state != EventState.PUBLISHED.value:
                raise Conflict(f"Event id={event_id} is not published")
            if _is_full(event):
                raise Conflict(f"The participant limit of event id={event_id} has been reached")

            status = RequestStatus.PENDING
            if check_admissible(event) == AdmissionDecision.AUTO_CONFIRM:
                _take_slot(db, event_id)
                status = RequestStatus.CONFIRMED

            request = ParticipationRequest(
                event_id=event_id,
                requester_id=user_id,
                status=status.value,
                created=clock.utcnow(),
            )
            db.add(request)
            try:
                db.flush()
            except IntegrityError:
                raise Conflict(f"User id={user_id} already requested participation in event id={event_id}")

    db.refresh(request)
    logger.info("User id=%s requested event id=%s: request id=%s %s", user_id, event_id, request.id, request.status)
    return request


def confirm_request(db: Session, *, user_id: int, event_id: int, request_id: int) -> ConfirmResult:
    """
    Confirm a pending request on the initiator's event.

    If this confirmation takes the last slot, every other pending request of
    the event is rejected in the same transaction.
    """
    with event_lock(event_id):
        with atomic(db):
            get_user(db, user_id)
            event = _load_event(db, event_id)
            check_initiator(event, user_id)
            request = _load_request(db, request_id)
            if request.event_id != event_id:
                raise NotFound(f"Request with id={request_id} was not found in event id={event_id}")
            _check_pending(request)

            confirmed = _take_slot(db, event_id)
            request.status = RequestStatus.CONFIRMED.value

            rejected_ids: list[int] = []
            if event.participant_limit > 0 and confirmed >= event.participant_limit:
                rejected_ids = list(
                    db.scalars(
                        select(ParticipationRequest.id)
                        .where(
                            ParticipationRequest.event_id == event_id,
                            ParticipationRequest.status == RequestStatus.PENDING.value,
                            ParticipationRequest.id != request.id,
                        )
                        .order_by(ParticipationRequest.id)
                    )
                )
                if rejected_ids:
                    db.execute(
                        update(ParticipationRequest)
                        .where(ParticipationRequest.id.in_(rejected_ids))
                        .values(status=RequestStatus.REJECTED.value)
                        .execution_options(synchronize_session=False)
                    )

    db.refresh(request)
    logger.info(
        "User id=%s confirmed request id=%s on event id=%s, auto-rejected %s",
        user_id, request_id, event_id, rejected_ids,
    )
    return ConfirmResult(request=request, rejected_ids=rejected_ids)


def reject_request(db: Session, *, user_id: int, event_id: int, request_id: int) -> ParticipationRequest:
    with event_lock(event_id):
        with atomic(db):
            get_user(db, user_id)
            event = _load_event(db, event_id)
            check_initiator(event, user_id)
            request = _load_request(db, request_id)
            if request.event_id != event_id:
                raise NotFound(f"Request with id={request_id} was not found in event id={event_id}")
            _check_pending(request)
            request.status = RequestStatus.REJECTED.value

    db.refresh(request)
    logger.info("User id=%s rejected request id=%s on event id=%s", user_id, request_id, event_id)
    return request


def cancel_own_request(db: Session, *, user_id: int, request_id: int) -> ParticipationRequest:
    get_user(db, user_id)
    event_id = _load_request(db, request_id).event_id

    with event_lock(event_id):
        with atomic(db):
            request = _load_request(db, request_id)
            if request.requester_id != user_id:
                raise Forbidden(f"Request id={request_id} does not belong to user id={user_id}")
            _check_pending(request)
            request.status = RequestStatus.CANCELED.value

    db.refresh(request)
    logger.info("User id=%s canceled own request id=%s", user_id, request_id)
    return request


def list_requests_by_requester(db: Session, *, user_id: int) -> list[ParticipationRequest]:
    get_user(db, user_id)
    return list(
        db.scalars(
            select(ParticipationRequest)
            .where(ParticipationRequest.requester_id == user_id)
            .order_by(ParticipationRequest.id)
        )
    )


def list_requests_for_event(db: Session, *, user_id: int, event_id: int) -> list[ParticipationRequest]:
    get_user(db, user_id)
    event = get_event(db, event_id)
    check_initiator(event, user_id)
    return list(
        db.scalars(
            select(ParticipationRequest)
            .where(ParticipationRequest.event_id == event_id)
            .order_by(ParticipationRequest.id)
        )
    )
