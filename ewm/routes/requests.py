from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ewm.database.db import get_db
from ewm.schemas.requests import ParticipationRequestOut
from ewm.services import requests as request_service

router = APIRouter(prefix="/users", tags=["requests"])


@router.get("/{user_id}/requests", response_model=list[ParticipationRequestOut])
def list_own_requests(user_id: int, db: Session = Depends(get_db)):
    requests = request_service.list_requests_by_requester(db, user_id=user_id)
    return [ParticipationRequestOut.from_model(r) for r in requests]


@router.post("/{user_id}/requests", response_model=ParticipationRequestOut)
def create_request(user_id: int, event_id: int = Query(..., ge=1, alias="eventId"), db: Session = Depends(get_db)):
    request = request_service.create_request(db, user_id=user_id, event_id=event_id)
    return ParticipationRequestOut.from_model(request)


@router.patch("/{user_id}/requests/{request_id}/cancel", response_model=ParticipationRequestOut)
def cancel_request(user_id: int, request_id: int, db: Session = Depends(get_db)):
    request = request_service.cancel_own_request(db, user_id=user_id, request_id=request_id)
    return ParticipationRequestOut.from_model(request)
