"""Brief Response 스키마

추천 목록/투표 결과에서 사용되는 간략화된 응답 타입.
"""

from datetime import date
from uuid import UUID

from pydantic import BaseModel


class UserBriefResponse(BaseModel):
    """사용자 간략 정보 (추천 작성자 표시용)"""

    id: UUID
    display_name: str
    avatar_url: str | None = None

    class Config:
        from_attributes = True


class BookBriefResponse(BaseModel):
    """도서 간략 정보 (카탈로그에서 조회)"""

    id: UUID
    title: str
    author: str
    cover_url: str | None = None
    genres: list[str] = []
    pages: int | None = None
    published_date: date | None = None

    class Config:
        from_attributes = True
