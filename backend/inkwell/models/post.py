"""
Inkwell Backend: Post SQLAlchemy Model
=======================================

What:  ORM model representing the `posts` table.
Who:   Used by PostService for CRUD operations and by
       `create_tables_if_missing()` for provisioning.

Table layout:
    id       INTEGER  primary key, assigned by the store
    title    VARCHAR(150)
    source   VARCHAR(150)
    date     DATE
    content  TEXT     newline-joined when created from a list of lines
    html     TEXT     rendered form
    meta     TEXT     JSON-encoded structured data
"""

from datetime import date as date_type
from typing import Optional

from sqlalchemy import Date, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from inkwell.database import Base


class Post(Base):
    """
    A persisted content record.

    Every column except `id` is nullable; a partial update may set any of
    them to anything the store accepts. `meta` is only ever JSON-encoded by
    PostService.create_post().
    """

    __tablename__ = "posts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    title: Mapped[Optional[str]] = mapped_column(String(150), nullable=True)
    source: Mapped[Optional[str]] = mapped_column(String(150), nullable=True)

    date: Mapped[Optional[date_type]] = mapped_column(Date, nullable=True)

    content: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    html: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    meta: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Post(id={self.id}, title={self.title!r}, date='{self.date}')>"
