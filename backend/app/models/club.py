import uuid
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base


class ClubRole(str, Enum):
    """클럽 멤버 역할"""

    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"


class ClubMembershipStatus(str, Enum):
    """클럽 멤버십 상태"""

    ACTIVE = "active"
    PENDING = "pending"
    LEFT = "left"


class ClubBookStatus(str, Enum):
    """클럽 독서 이력 상태"""

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class Club(Base):
    """북클럽 모델

    voting_* 필드는 투표 사이클 컨트롤러(VotingService)만 변경한다.
    """

    __tablename__ = "clubs"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    description: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id"),
        nullable=False,
    )
    current_book_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("books.id"),
        nullable=True,
        comment="현재 읽는 책",
    )
    voting_cycle_active: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    voting_starts_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    voting_ends_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    voting_started_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id"),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    # 관계
    memberships: Mapped[list["ClubMembership"]] = relationship(
        "ClubMembership",
        back_populates="club",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Club {self.name}>"


class ClubMembership(Base):
    """클럽 멤버십 모델"""

    __tablename__ = "club_memberships"
    __table_args__ = (
        UniqueConstraint("club_id", "user_id", name="uq_club_memberships_club_user"),
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
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id"),
        nullable=False,
    )
    role: Mapped[str] = mapped_column(
        String(20),
        default=ClubRole.MEMBER.value,
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        default=ClubMembershipStatus.ACTIVE.value,
        nullable=False,
    )
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    # 관계
    club: Mapped["Club"] = relationship("Club", back_populates="memberships")
    user: Mapped["User"] = relationship("User")

    @property
    def is_manager(self) -> bool:
        """owner 또는 admin 여부"""
        return self.role in (ClubRole.OWNER.value, ClubRole.ADMIN.value)

    def __repr__(self) -> str:
        return f"<ClubMembership {self.user_id} in {self.club_id}>"


class ClubBook(Base):
    """클럽 독서 이력 모델"""

    __tablename__ = "club_books"

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
    status: Mapped[str] = mapped_column(
        String(20),
        default=ClubBookStatus.IN_PROGRESS.value,
        nullable=False,
    )
    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    finished_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<ClubBook {self.book_id} in {self.club_id}>"


# 순환 import 방지
from app.models.user import User  # noqa: E402
