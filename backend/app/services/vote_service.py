import logging
from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.telemetry import get_bookcrush_metrics
from app.models.suggestion import (
    ClubBookSuggestion,
    ClubBookSuggestionVote,
    SuggestionStatus,
)
from app.schemas.vote import VoteResultResponse
from app.services.club_directory import get_active_membership, get_club
from app.utils.time import ensure_utc, utcnow

logger = logging.getLogger(__name__)


class VoteService:
    """투표 집계 서비스"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def count_votes(self, suggestion_id: UUID) -> int:
        """추천 하나의 투표 수"""
        query = select(func.count(ClubBookSuggestionVote.id)).where(
            ClubBookSuggestionVote.suggestion_id == suggestion_id,
        )
        result = await self.db.execute(query)
        return result.scalar() or 0

    async def has_voted(self, suggestion_id: UUID, user_id: UUID) -> bool:
        """사용자가 해당 추천에 투표했는지 여부"""
        vote = await self._get_vote(suggestion_id, user_id)
        return vote is not None

    async def count_votes_for(self, suggestion_ids: Sequence[UUID]) -> dict[UUID, int]:
        """여러 추천의 투표 수 (투표가 없으면 0)"""
        if not suggestion_ids:
            return {}

        query = (
            select(ClubBookSuggestionVote.suggestion_id, func.count(ClubBookSuggestionVote.id))
            .where(ClubBookSuggestionVote.suggestion_id.in_(suggestion_ids))
            .group_by(ClubBookSuggestionVote.suggestion_id)
        )
        result = await self.db.execute(query)
        counts = {suggestion_id: count for suggestion_id, count in result.all()}
        return {suggestion_id: counts.get(suggestion_id, 0) for suggestion_id in suggestion_ids}

    async def voted_suggestion_ids(
        self, suggestion_ids: Sequence[UUID], user_id: UUID
    ) -> set[UUID]:
        """사용자가 투표한 추천 ID 집합"""
        if not suggestion_ids:
            return set()

        query = select(ClubBookSuggestionVote.suggestion_id).where(
            ClubBookSuggestionVote.suggestion_id.in_(suggestion_ids),
            ClubBookSuggestionVote.user_id == user_id,
        )
        result = await self.db.execute(query)
        return set(result.scalars().all())

    async def cast_vote(
        self, club_id: UUID, suggestion_id: UUID, user_id: UUID
    ) -> VoteResultResponse:
        """추천에 투표 (같은 추천에 중복 투표 불가)"""
        # 사이클 종료 집계와 직렬화되도록 클럽 행 공유 잠금
        club = await get_club(self.db, club_id, lock="share")
        if not club:
            raise ValueError("CLUB_NOT_FOUND")

        membership = await get_active_membership(self.db, club_id, user_id)
        if not membership:
            raise ValueError("NOT_CLUB_MEMBER")

        suggestion = await self._get_active_suggestion(club_id, suggestion_id)
        if not suggestion:
            raise ValueError("SUGGESTION_NOT_FOUND")

        if utcnow() > ensure_utc(suggestion.voting_ends):
            raise ValueError("VOTING_PERIOD_ENDED")

        if await self.has_voted(suggestion_id, user_id):
            raise ValueError("ALREADY_VOTED")

        vote = ClubBookSuggestionVote(
            suggestion_id=suggestion_id,
            user_id=user_id,
        )
        self.db.add(vote)
        try:
            await self.db.flush()
        except IntegrityError as e:
            # 동시 요청이 unique 제약에 걸린 경우
            raise ValueError("ALREADY_VOTED") from e

        vote_count = await self.count_votes(suggestion_id)

        domain_metrics = get_bookcrush_metrics()
        if domain_metrics:
            domain_metrics.votes_cast.add(1)

        logger.info(
            "Vote cast: club=%s suggestion=%s user=%s count=%d",
            club_id,
            suggestion_id,
            user_id,
            vote_count,
        )
        return VoteResultResponse(message="Vote recorded successfully", vote_count=vote_count)

    async def retract_vote(
        self, club_id: UUID, suggestion_id: UUID, user_id: UUID
    ) -> VoteResultResponse:
        """투표 취소 (ACTIVE 추천만, 종료된 집계는 변경 불가)"""
        club = await get_club(self.db, club_id, lock="share")
        if not club:
            raise ValueError("CLUB_NOT_FOUND")

        membership = await get_active_membership(self.db, club_id, user_id)
        if not membership:
            raise ValueError("NOT_CLUB_MEMBER")

        suggestion = await self._get_active_suggestion(club_id, suggestion_id)
        if not suggestion:
            raise ValueError("SUGGESTION_NOT_FOUND")

        vote = await self._get_vote(suggestion_id, user_id)
        if not vote:
            raise ValueError("VOTE_NOT_FOUND")

        await self.db.delete(vote)
        await self.db.flush()

        vote_count = await self.count_votes(suggestion_id)

        domain_metrics = get_bookcrush_metrics()
        if domain_metrics:
            domain_metrics.votes_retracted.add(1)

        logger.info(
            "Vote retracted: club=%s suggestion=%s user=%s count=%d",
            club_id,
            suggestion_id,
            user_id,
            vote_count,
        )
        return VoteResultResponse(message="Vote removed successfully", vote_count=vote_count)

    async def _get_vote(
        self, suggestion_id: UUID, user_id: UUID
    ) -> ClubBookSuggestionVote | None:
        """투표 조회"""
        query = select(ClubBookSuggestionVote).where(
            ClubBookSuggestionVote.suggestion_id == suggestion_id,
            ClubBookSuggestionVote.user_id == user_id,
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def _get_active_suggestion(
        self, club_id: UUID, suggestion_id: UUID
    ) -> ClubBookSuggestion | None:
        """클럽의 ACTIVE 추천 조회"""
        query = select(ClubBookSuggestion).where(
            ClubBookSuggestion.id == suggestion_id,
            ClubBookSuggestion.club_id == club_id,
            ClubBookSuggestion.status == SuggestionStatus.ACTIVE.value,
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()
