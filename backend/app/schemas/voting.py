"""투표 사이클 스키마"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from .common_brief import BookBriefResponse


class StartVotingRequest(BaseModel):
    """투표 사이클 시작 요청"""

    voting_starts_at: datetime
    voting_ends_at: datetime


class SelectWinnerRequest(BaseModel):
    """우승 도서 선정 요청"""

    book_id: UUID


class ClubVotingResponse(BaseModel):
    """클럽 투표 상태 응답"""

    id: UUID
    voting_cycle_active: bool
    voting_starts_at: datetime | None = None
    voting_ends_at: datetime | None = None
    voting_started_by: UUID | None = None
    current_book_id: UUID | None = None

    class Config:
        from_attributes = True


class WinningSuggestionResponse(BaseModel):
    """우승 추천 (동점이면 여러 개)"""

    id: UUID
    vote_count: int
    book: BookBriefResponse


class EndVotingResponse(BaseModel):
    """투표 사이클 종료 응답"""

    club: ClubVotingResponse
    winning_book_suggestions: list[WinningSuggestionResponse]
    total_suggestions: int
    max_votes: int


class SelectWinnerResponse(BaseModel):
    """우승 도서 선정 응답"""

    club: ClubVotingResponse
    selected_book: BookBriefResponse
