"""Users and categories the event core resolves its references against."""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ewm.core.errors import Conflict, NotFound
from ewm.models.categories import Category
from ewm.models.users import User

logger = logging.getLogger(__name__)


def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if not user:
        raise NotFound(f"User with id={user_id} was not found")
    return user


def get_category(db: Session, category_id: int) -> Category:
    category = db.get(Category, category_id)
    if not category:
        raise NotFound(f"Category with id={category_id} was not found")
    return category


def create_user(db: Session, *, name: str, email: str) -> User:
    user = User(name=name, email=email)
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict(f"User with email={email} already exists")
    db.refresh(user)
    logger.info("Created user id=%s", user.id)
    return user


def list_users(db: Session, ids: Optional[list[int]] = None, from_: int = 0, size: int = 10) -> list[User]:
    stmt = select(User).order_by(User.id)
    if ids:
        stmt = stmt.where(User.id.in_(ids))
    return list(db.scalars(stmt.offset(from_).limit(size)))


def create_category(db: Session, *, name: str) -> Category:
    category = Category(name=name)
    db.add(category)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict(f"Category with name={name} already exists")
    db.refresh(category)
    logger.info("Created category id=%s name=%s", category.id, category.name)
    return category


def list_categories(db: Session, from_: int = 0, size: int = 10) -> list[Category]:
    return list(db.scalars(select(Category).order_by(Category.id).offset(from_).limit(size)))
