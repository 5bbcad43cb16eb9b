import uuid
from datetime import date, datetime, timezone

from sqlalchemy import JSON, Date, DateTime, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class Book(Base):
    """도서 카탈로그 모델"""

    __tablename__ = "books"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    author: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    cover_url: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
    )
    genres: Mapped[list[str]] = mapped_column(
        JSON,
        default=list,
        nullable=False,
    )
    pages: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
    )
    published_date: Mapped[date | None] = mapped_column(
        Date,
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Book {self.title}>"
