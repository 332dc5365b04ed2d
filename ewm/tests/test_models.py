"""
Test database models (Event and ParticipationRequest).
"""
import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ewm.models.events import Event, EventState
from ewm.models.requests import ParticipationRequest, RequestStatus


class TestEventModel:
    """Test the Event model."""

    def test_create_event_defaults(self, db_session: Session, make_user, category, frozen_now):
        """Test that a bare event starts PENDING without confirmed requests."""
        user = make_user()
        event = Event(
            title="Test Event",
            annotation="Annotation long enough",
            description="Description long enough",
            category_id=category.id,
            initiator_id=user.id,
            lat=1.5,
            lon=2.5,
            event_date=frozen_now,
        )
        db_session.add(event)
        db_session.commit()
        db_session.refresh(event)

        assert event.id is not None
        assert event.state == EventState.PENDING.value
        assert event.participant_limit == 0
        assert event.request_moderation is True
        assert event.paid is False
        assert event.confirmed_count == 0
        assert event.published_on is None
        assert event.location == {"lat": 1.5, "lon": 2.5}

    def test_event_relationships(self, db_session: Session, make_user, make_event):
        """Test the relationships of Event to its initiator, category and requests."""
        owner, guest = make_user(), make_user()
        event = make_event(owner)
        db_session.add(ParticipationRequest(event_id=event.id, requester_id=guest.id))
        db_session.commit()
        db_session.refresh(event)

        assert event.initiator.id == owner.id
        assert event.category.name == "Concerts"
        assert [r.requester_id for r in event.requests] == [guest.id]

    def test_event_repr(self, make_user, make_event):
        event = make_event(make_user(), participant_limit=3)
        assert repr(event) == f"<Event(id={event.id}, state=PUBLISHED, limit=3)>"


class TestParticipationRequestModel:
    """Test the ParticipationRequest model."""

    def test_default_status_is_pending(self, db_session: Session, make_user, make_event):
        event = make_event(make_user())
        guest = make_user()
        request = ParticipationRequest(event_id=event.id, requester_id=guest.id)
        db_session.add(request)
        db_session.commit()
        db_session.refresh(request)

        assert request.status == RequestStatus.PENDING.value
        assert request.created is not None
        assert request.event.id == event.id

    def test_one_active_request_per_user_and_event(self, db_session: Session, make_user, make_event):
        """Test that the database rejects a second live request of the same user."""
        event = make_event(make_user())
        guest = make_user()
        db_session.add(ParticipationRequest(event_id=event.id, requester_id=guest.id))
        db_session.commit()

        db_session.add(
            ParticipationRequest(
                event_id=event.id, requester_id=guest.id, status=RequestStatus.CONFIRMED.value
            )
        )
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()

    def test_canceled_requests_do_not_block_new_ones(self, db_session: Session, make_user, make_event):
        event = make_event(make_user())
        guest = make_user()
        for _ in range(2):
            db_session.add(
                ParticipationRequest(
                    event_id=event.id, requester_id=guest.id, status=RequestStatus.CANCELED.value
                )
            )
        db_session.add(ParticipationRequest(event_id=event.id, requester_id=guest.id))
        db_session.commit()

        assert db_session.query(ParticipationRequest).filter_by(event_id=event.id).count() == 3
