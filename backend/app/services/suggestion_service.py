import logging
from datetime import timedelta
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.config import get_settings
from app.core.telemetry import get_bookcrush_metrics
from app.models.book import Book
from app.models.suggestion import ClubBookSuggestion, SuggestionStatus
from app.models.user import User
from app.schemas.common_brief import BookBriefResponse, UserBriefResponse
from app.schemas.suggestion import CreateSuggestionRequest, SuggestionResponse
from app.services.club_directory import get_active_membership, get_club
from app.services.vote_service import VoteService
from app.utils.time import utcnow

logger = logging.getLogger(__name__)


class SuggestionService:
    """책 추천 서비스"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.votes = VoteService(db)

    async def list_suggestions(self, club_id: UUID, user_id: UUID) -> list[SuggestionResponse]:
        """클럽의 ACTIVE 추천 목록 (최신순, 투표 현황 포함)"""
        club = await get_club(self.db, club_id)
        if not club:
            raise ValueError("CLUB_NOT_FOUND")

        membership = await get_active_membership(self.db, club_id, user_id)
        if not membership:
            raise ValueError("NOT_CLUB_MEMBER")

        query = (
            select(ClubBookSuggestion)
            .options(
                selectinload(ClubBookSuggestion.book),
                selectinload(ClubBookSuggestion.suggested_by_user),
            )
            .where(
                ClubBookSuggestion.club_id == club_id,
                ClubBookSuggestion.status == SuggestionStatus.ACTIVE.value,
            )
            .order_by(ClubBookSuggestion.created_at.desc())
        )
        result = await self.db.execute(query)
        suggestions = result.scalars().all()

        suggestion_ids = [s.id for s in suggestions]
        vote_counts = await self.votes.count_votes_for(suggestion_ids)
        voted_ids = await self.votes.voted_suggestion_ids(suggestion_ids, user_id)

        return [
            self._to_response(
                s,
                s.book,
                s.suggested_by_user,
                vote_count=vote_counts.get(s.id, 0),
                has_voted=s.id in voted_ids,
            )
            for s in suggestions
        ]

    async def create_suggestion(
        self, club_id: UUID, data: CreateSuggestionRequest, user_id: UUID
    ) -> SuggestionResponse:
        """책 추천 생성

        검증 순서: 멤버십 → 중복 추천 → 사용자별 개수 제한 → 도서 존재 → 현재 책 미선정 → 사이클 진행 중
        """
        settings = get_settings()

        # 사이클 종료 집계와 직렬화되도록 클럽 행 공유 잠금
        club = await get_club(self.db, club_id, lock="share")
        if not club:
            raise ValueError("CLUB_NOT_FOUND")

        membership = await get_active_membership(self.db, club_id, user_id)
        if not membership:
            raise ValueError("NOT_CLUB_MEMBER")

        # 같은 책의 ACTIVE 추천이 이미 있는지 확인
        existing = await self._get_active_suggestion_for_book(club_id, data.book_id)
        if existing:
            raise ValueError("DUPLICATE_SUGGESTION")

        # 사용자별 ACTIVE 추천 개수 제한
        active_count = await self._count_user_active_suggestions(club_id, user_id)
        if active_count >= settings.max_suggestions_per_user:
            raise ValueError("SUGGESTION_LIMIT_EXCEEDED")

        book = await self.db.get(Book, data.book_id)
        if not book:
            raise ValueError("BOOK_NOT_FOUND")

        if club.current_book_id is not None:
            raise ValueError("BOOK_ALREADY_SELECTED")

        # 추천은 진행 중인 투표 사이클에서만 접수
        if not club.voting_cycle_active:
            raise ValueError("NO_ACTIVE_VOTING_CYCLE")

        suggestion = ClubBookSuggestion(
            club_id=club_id,
            book_id=data.book_id,
            suggested_by=user_id,
            reason=data.reason or None,
            status=SuggestionStatus.ACTIVE.value,
            voting_ends=utcnow() + timedelta(days=settings.suggestion_voting_days),
        )
        self.db.add(suggestion)
        try:
            await self.db.flush()
        except IntegrityError as e:
            # 동시 요청이 active (club, book) unique 인덱스에 걸린 경우
            raise ValueError("DUPLICATE_SUGGESTION") from e

        suggester = await self.db.get(User, user_id)

        domain_metrics = get_bookcrush_metrics()
        if domain_metrics:
            domain_metrics.suggestions_created.add(1)

        logger.info(
            "Suggestion created: club=%s book=%s user=%s suggestion=%s",
            club_id,
            data.book_id,
            user_id,
            suggestion.id,
        )
        return self._to_response(suggestion, book, suggester, vote_count=0, has_voted=False)

    async def _get_active_suggestion_for_book(
        self, club_id: UUID, book_id: UUID
    ) -> ClubBookSuggestion | None:
        """(클럽, 도서)의 ACTIVE 추천 조회"""
        query = select(ClubBookSuggestion).where(
            ClubBookSuggestion.club_id == club_id,
            ClubBookSuggestion.book_id == book_id,
            ClubBookSuggestion.status == SuggestionStatus.ACTIVE.value,
        )
        result = await self.db.execute(query)
        return result.scalars().first()

    async def _count_user_active_suggestions(self, club_id: UUID, user_id: UUID) -> int:
        """사용자의 ACTIVE 추천 수"""
        query = select(func.count(ClubBookSuggestion.id)).where(
            ClubBookSuggestion.club_id == club_id,
            ClubBookSuggestion.suggested_by == user_id,
            ClubBookSuggestion.status == SuggestionStatus.ACTIVE.value,
        )
        result = await self.db.execute(query)
        return result.scalar() or 0

    @staticmethod
    def _to_response(
        suggestion: ClubBookSuggestion,
        book: Book,
        suggester: User,
        vote_count: int,
        has_voted: bool,
    ) -> SuggestionResponse:
        return SuggestionResponse(
            id=suggestion.id,
            book=BookBriefResponse.model_validate(book),
            suggested_by=UserBriefResponse.model_validate(suggester),
            reason=suggestion.reason,
            vote_count=vote_count,
            has_voted=has_voted,
            voting_ends=suggestion.voting_ends,
            created_at=suggestion.created_at,
        )
