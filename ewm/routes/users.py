from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ewm.database.db import get_db
from ewm.schemas.users import UserCreate, UserOut
from ewm.services import directory

router = APIRouter(prefix="/admin/users", tags=["users"])


@router.post("", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(payload: UserCreate, db: Session = Depends(get_db)):
    return directory.create_user(db, name=payload.name, email=payload.email)


@router.get("", response_model=list[UserOut])
def list_users(
    ids: Optional[list[int]] = Query(None),
    from_: int = Query(0, ge=0, alias="from"),
    size: int = Query(10, gt=0),
    db: Session = Depends(get_db),
):
    return directory.list_users(db, ids=ids, from_=from_, size=size)
