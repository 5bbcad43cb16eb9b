import uuid
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base


class SuggestionStatus(str, Enum):
    """책 추천 상태"""

    ACTIVE = "active"
    REJECTED = "rejected"
    EXPIRED = "expired"
    SELECTED = "selected"


class ClubBookSuggestion(Base):
    """클럽 다음 책 추천 모델"""

    __tablename__ = "club_book_suggestions"
    __table_args__ = (
        # (club, book) 당 active 추천은 하나만
        Index(
            "uq_club_book_suggestions_active_club_book",
            "club_id",
            "book_id",
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
        Index("ix_club_book_suggestions_club_status", "club_id", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    club_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("clubs.id"),
        nullable=False,
    )
    book_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("books.id"),
        nullable=False,
    )
    suggested_by: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id"),
        nullable=False,
    )
    reason: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        default=SuggestionStatus.ACTIVE.value,
        nullable=False,
    )
    voting_ends: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        comment="추천별 투표 마감 (기본 14일)",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    # 관계
    book: Mapped["Book"] = relationship("Book")
    suggested_by_user: Mapped["User"] = relationship("User")
    votes: Mapped[list["ClubBookSuggestionVote"]] = relationship(
        "ClubBookSuggestionVote",
        back_populates="suggestion",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<ClubBookSuggestion {self.book_id} in {self.club_id} ({self.status})>"


class ClubBookSuggestionVote(Base):
    """추천 투표 모델 (사용자당 추천 하나에 한 표)"""

    __tablename__ = "club_book_suggestion_votes"
    __table_args__ = (
        UniqueConstraint(
            "suggestion_id", "user_id", name="uq_club_book_suggestion_votes_suggestion_user"
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    suggestion_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("club_book_suggestions.id"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    # 관계
    suggestion: Mapped["ClubBookSuggestion"] = relationship(
        "ClubBookSuggestion", back_populates="votes"
    )

    def __repr__(self) -> str:
        return f"<ClubBookSuggestionVote {self.user_id} for {self.suggestion_id}>"


# 순환 import 방지
from app.models.book import Book  # noqa: E402
from app.models.user import User  # noqa: E402
