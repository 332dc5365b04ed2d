from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ewm.database.db import get_db
from ewm.schemas.categories import CategoryCreate, CategoryOut
from ewm.services import directory

router = APIRouter(tags=["categories"])


@router.post("/admin/categories", response_model=CategoryOut, status_code=status.HTTP_201_CREATED)
def create_category(payload: CategoryCreate, db: Session = Depends(get_db)):
    return directory.create_category(db, name=payload.name)


@router.get("/categories", response_model=list[CategoryOut])
def list_categories(
    from_: int = Query(0, ge=0, alias="from"),
    size: int = Query(10, gt=0),
    db: Session = Depends(get_db),
):
    return directory.list_categories(db, from_=from_, size=size)


@router.get("/categories/{category_id}", response_model=CategoryOut)
def get_category(category_id: int, db: Session = Depends(get_db)):
    return directory.get_category(db, category_id)
