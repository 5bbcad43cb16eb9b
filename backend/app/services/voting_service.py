"""투표 사이클 서비스

클럽 단위 상태 머신:
    NO_CYCLE (voting_cycle_active = false) --start--> CYCLE_OPEN --end--> NO_CYCLE

사이클 종료 시 ACTIVE 추천을 집계하여
- 최다 득표(>0) 추천은 ACTIVE 유지 (동점이면 모두 유지)
- 나머지는 REJECTED
- 아무도 투표하지 않았으면 전부 EXPIRED
로 전이한다. 관리자가 직접 종료(end)하거나 마감 시각이 지난 뒤 결과 처리(process_results)할 수 있다.
집계와 상태 변경은 클럽 행을 FOR UPDATE로 잠근 한 트랜잭션 안에서 수행된다.
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.telemetry import get_bookcrush_metrics, timed_operation, traced_function
from app.models.club import Club, ClubBook, ClubBookStatus, ClubMembership
from app.models.suggestion import ClubBookSuggestion, SuggestionStatus
from app.schemas.common_brief import BookBriefResponse
from app.schemas.voting import (
    ClubVotingResponse,
    EndVotingResponse,
    SelectWinnerResponse,
    StartVotingRequest,
    WinningSuggestionResponse,
)
from app.services.club_directory import LockMode, get_active_membership, get_club
from app.services.vote_service import VoteService
from app.utils.time import ensure_utc, utcnow

logger = logging.getLogger(__name__)


class VotingService:
    """투표 사이클 서비스"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.votes = VoteService(db)

    async def get_voting_status(self, club_id: UUID, user_id: UUID) -> ClubVotingResponse:
        """클럽 투표 상태 조회 (멤버만 가능)"""
        club = await get_club(self.db, club_id)
        if not club:
            raise ValueError("CLUB_NOT_FOUND")

        membership = await get_active_membership(self.db, club_id, user_id)
        if not membership:
            raise ValueError("NOT_CLUB_MEMBER")

        return ClubVotingResponse.model_validate(club)

    async def start_voting_cycle(
        self, club_id: UUID, data: StartVotingRequest, user_id: UUID
    ) -> ClubVotingResponse:
        """투표 사이클 시작 (owner 또는 admin만 가능)"""
        club, _ = await self._get_managed_club(club_id, user_id, lock="update")

        starts_at = ensure_utc(data.voting_starts_at)
        ends_at = ensure_utc(data.voting_ends_at)
        if ends_at <= starts_at:
            raise ValueError("INVALID_VOTING_WINDOW")

        if club.current_book_id is not None:
            raise ValueError("BOOK_ALREADY_SELECTED")

        if club.voting_cycle_active:
            raise ValueError("VOTING_CYCLE_ALREADY_ACTIVE")

        club.voting_cycle_active = True
        club.voting_starts_at = starts_at
        club.voting_ends_at = ends_at
        club.voting_started_by = user_id

        await self.db.flush()
        await self.db.refresh(club)

        logger.info(
            "Voting cycle started: club=%s by=%s window=%s~%s",
            club_id,
            user_id,
            starts_at.isoformat(),
            ends_at.isoformat(),
        )
        return ClubVotingResponse.model_validate(club)

    @traced_function("voting.end_cycle")
    async def end_voting_cycle(self, club_id: UUID, user_id: UUID) -> EndVotingResponse:
        """투표 사이클 종료 및 결과 반영 (owner 또는 admin만 가능)"""
        club, _ = await self._get_managed_club(club_id, user_id, lock="update")

        if not club.voting_cycle_active:
            raise ValueError("NO_ACTIVE_VOTING_CYCLE")

        return await self._close_cycle(club, user_id, trigger="manual")

    @traced_function("voting.process_results")
    async def process_results(self, club_id: UUID, user_id: UUID) -> EndVotingResponse:
        """마감 시각(voting_ends_at)이 지난 사이클의 결과 처리 (owner 또는 admin만 가능)

        집계 규칙은 end_voting_cycle 과 같고, 마감 전이면 VOTING_CYCLE_NOT_EXPIRED.
        """
        club, _ = await self._get_managed_club(club_id, user_id, lock="update")

        if not club.voting_cycle_active:
            raise ValueError("NO_ACTIVE_VOTING_CYCLE")

        if club.voting_ends_at is None or ensure_utc(club.voting_ends_at) > utcnow():
            raise ValueError("VOTING_CYCLE_NOT_EXPIRED")

        return await self._close_cycle(club, user_id, trigger="deadline")

    @traced_function("voting.select_winner")
    async def select_winner(
        self, club_id: UUID, book_id: UUID, user_id: UUID
    ) -> SelectWinnerResponse:
        """우승 추천 도서를 클럽의 현재 책으로 선정 (owner 또는 admin만 가능)"""
        club, _ = await self._get_managed_club(club_id, user_id, lock="update")

        if club.voting_cycle_active:
            raise ValueError("VOTING_CYCLE_ALREADY_ACTIVE")

        suggestions = await self._list_active_suggestions(club_id)
        selected = next((s for s in suggestions if s.book_id == book_id), None)
        if not selected:
            raise ValueError("SUGGESTION_NOT_FOUND")

        if club.current_book_id is not None:
            raise ValueError("BOOK_ALREADY_SELECTED")

        club.current_book_id = book_id
        for s in suggestions:
            if s.id == selected.id:
                s.status = SuggestionStatus.SELECTED.value
            else:
                s.status = SuggestionStatus.REJECTED.value

        self.db.add(
            ClubBook(
                club_id=club_id,
                book_id=book_id,
                status=ClubBookStatus.IN_PROGRESS.value,
                started_at=utcnow(),
            )
        )

        await self.db.flush()
        await self.db.refresh(club)

        logger.info(
            "Winner selected: club=%s book=%s suggestion=%s by=%s",
            club_id,
            book_id,
            selected.id,
            user_id,
        )
        return SelectWinnerResponse(
            club=ClubVotingResponse.model_validate(club),
            selected_book=BookBriefResponse.model_validate(selected.book),
        )

    async def _get_managed_club(
        self, club_id: UUID, user_id: UUID, lock: LockMode | None = None
    ) -> tuple[Club, ClubMembership]:
        """클럽 조회 + owner/admin 권한 확인"""
        club = await get_club(self.db, club_id, lock=lock)
        if not club:
            raise ValueError("CLUB_NOT_FOUND")

        membership = await get_active_membership(self.db, club_id, user_id)
        if not membership:
            raise ValueError("NOT_CLUB_MEMBER")
        if not membership.is_manager:
            raise ValueError("PERMISSION_DENIED")

        return club, membership

    async def _close_cycle(self, club: Club, user_id: UUID, trigger: str) -> EndVotingResponse:
        """ACTIVE 추천 집계 후 상태 전이, 클럽 투표 필드 초기화

        호출자가 클럽 행을 FOR UPDATE로 잠근 상태여야 한다.
        """
        club_id = club.id
        with timed_operation() as timer:
            suggestions = await self._list_active_suggestions(club_id)
            vote_counts = await self.votes.count_votes_for([s.id for s in suggestions])

            max_votes = max(vote_counts.values(), default=0)
            winners = [
                s for s in suggestions if max_votes > 0 and vote_counts[s.id] == max_votes
            ]
            winner_ids = {s.id for s in winners}

            if winners:
                # 우승 추천은 ACTIVE 유지 (관리자가 이후 선정)
                for s in suggestions:
                    if s.id not in winner_ids:
                        s.status = SuggestionStatus.REJECTED.value
            else:
                for s in suggestions:
                    s.status = SuggestionStatus.EXPIRED.value

            club.voting_cycle_active = False
            club.voting_starts_at = None
            club.voting_ends_at = None
            club.voting_started_by = None

            await self.db.flush()
            await self.db.refresh(club)

        outcome = "winners" if winners else "expired"
        domain_metrics = get_bookcrush_metrics()
        if domain_metrics:
            domain_metrics.voting_cycles_closed.add(1, {"outcome": outcome, "trigger": trigger})
            domain_metrics.closeout_duration.record(timer.duration)

        logger.info(
            "Voting cycle ended: club=%s by=%s trigger=%s outcome=%s suggestions=%d winners=%d max_votes=%d",
            club_id,
            user_id,
            trigger,
            outcome,
            len(suggestions),
            len(winners),
            max_votes,
        )

        return EndVotingResponse(
            club=ClubVotingResponse.model_validate(club),
            winning_book_suggestions=[
                WinningSuggestionResponse(
                    id=s.id,
                    vote_count=vote_counts[s.id],
                    book=BookBriefResponse.model_validate(s.book),
                )
                for s in winners
            ],
            total_suggestions=len(suggestions),
            max_votes=max_votes,
        )

    async def _list_active_suggestions(self, club_id: UUID) -> list[ClubBookSuggestion]:
        """클럽의 ACTIVE 추천 (생성순, 도서 포함)"""
        query = (
            select(ClubBookSuggestion)
            .options(selectinload(ClubBookSuggestion.book))
            .where(
                ClubBookSuggestion.club_id == club_id,
                ClubBookSuggestion.status == SuggestionStatus.ACTIVE.value,
            )
            .order_by(ClubBookSuggestion.created_at)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())
