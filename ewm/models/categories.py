
from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from ewm.database.db import Base


class Category(Base):
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
