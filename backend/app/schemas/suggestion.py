"""책 추천 스키마"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from .common_brief import BookBriefResponse, UserBriefResponse


class CreateSuggestionRequest(BaseModel):
    """책 추천 생성 요청"""

    book_id: UUID
    reason: str | None = Field(default=None, max_length=1000)


class SuggestionResponse(BaseModel):
    """책 추천 응답 (투표 현황 포함)"""

    id: UUID
    book: BookBriefResponse
    suggested_by: UserBriefResponse
    reason: str | None
    vote_count: int = 0
    has_voted: bool = False
    voting_ends: datetime
    created_at: datetime
