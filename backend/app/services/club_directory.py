"""클럽/멤버십 조회 헬퍼

추천/투표 서비스가 공유하는 읽기 의존성. 잠금 모드:
- "share": 투표/추천 생성 시 클럽 행 공유 잠금 (FOR SHARE)
- "update": 투표 사이클 변경 시 클럽 행 배타 잠금 (FOR UPDATE)

SQLite 등 행 잠금을 지원하지 않는 백엔드에서는 잠금 절이 생략된다.
"""

from typing import Literal
from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.club import Club, ClubMembership, ClubMembershipStatus

LockMode = Literal["share", "update"]


def club_query(club_id: UUID, lock: LockMode | None = None) -> Select[tuple[Club]]:
    """클럽 조회 쿼리 (잠금 절 포함)"""
    query = select(Club).where(Club.id == club_id)
    if lock == "update":
        query = query.with_for_update()
    elif lock == "share":
        query = query.with_for_update(read=True)
    return query


async def get_club(
    db: AsyncSession, club_id: UUID, lock: LockMode | None = None
) -> Club | None:
    """클럽 조회 (선택적으로 행 잠금)"""
    result = await db.execute(club_query(club_id, lock))
    return result.scalar_one_or_none()


async def get_active_membership(
    db: AsyncSession, club_id: UUID, user_id: UUID
) -> ClubMembership | None:
    """ACTIVE 상태 멤버십 조회"""
    query = select(ClubMembership).where(
        ClubMembership.club_id == club_id,
        ClubMembership.user_id == user_id,
        ClubMembership.status == ClubMembershipStatus.ACTIVE.value,
    )
    result = await db.execute(query)
    return result.scalar_one_or_none()
