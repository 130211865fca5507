"""
hypercollection database models for the example resources
"""

import datetime
from typing import Optional

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from .database import Base
from .. import schemas


class User(Base):
    """
    Model representing one user, the example resource of the flexible collection API
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, nullable=False, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    age: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created: Mapped[datetime.datetime] = mapped_column(DateTime, server_default=func.now())

    @property
    def schema(self) -> schemas.User:
        """
        Pydantic schema representation of the database model that can be sent to clients
        """

        return schemas.User(
            id=self.id,
            name=self.name,
            email=self.email,
            age=self.age,
            created=int(self.created.timestamp())
        )

    def __repr__(self) -> str:
        return f"User(id={self.id}, name={self.name!r})"
