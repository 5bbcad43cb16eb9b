"""투표 사이클 API 엔드포인트

owner/admin 이 클럽의 투표 사이클을 시작/종료하고 (마감된 사이클은 결과 처리) 우승 도서를 선정한다.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_current_user, handle_service_error
from app.core.database import get_db
from app.models.user import User
from app.schemas import ErrorResponse
from app.schemas.voting import (
    ClubVotingResponse,
    EndVotingResponse,
    SelectWinnerRequest,
    SelectWinnerResponse,
    StartVotingRequest,
)
from app.services.voting_service import VotingService

router = APIRouter(prefix="/clubs/{club_id}/voting", tags=["Voting"])


def get_voting_service(db: Annotated[AsyncSession, Depends(get_db)]) -> VotingService:
    """VotingService 의존성"""
    return VotingService(db)


@router.get(
    "",
    response_model=ClubVotingResponse,
    summary="투표 상태 조회",
    responses={
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
async def get_voting_status(
    club_id: UUID,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[VotingService, Depends(get_voting_service)],
) -> ClubVotingResponse:
    try:
        return await service.get_voting_status(club_id, current_user.id)
    except ValueError as e:
        handle_service_error(e)


@router.post(
    "",
    response_model=ClubVotingResponse,
    summary="투표 사이클 시작",
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
async def start_voting_cycle(
    club_id: UUID,
    data: StartVotingRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[VotingService, Depends(get_voting_service)],
) -> ClubVotingResponse:
    try:
        return await service.start_voting_cycle(club_id, data, current_user.id)
    except ValueError as e:
        handle_service_error(e)


@router.delete(
    "",
    response_model=EndVotingResponse,
    summary="투표 사이클 종료",
    description="득표를 집계해 우승 추천은 ACTIVE로 남기고 나머지는 REJECTED(득표 없으면 EXPIRED)로 변경합니다.",
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
async def end_voting_cycle(
    club_id: UUID,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[VotingService, Depends(get_voting_service)],
) -> EndVotingResponse:
    try:
        return await service.end_voting_cycle(club_id, current_user.id)
    except ValueError as e:
        handle_service_error(e)


@router.post(
    "/select-winner",
    response_model=SelectWinnerResponse,
    summary="우승 도서 선정",
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
async def select_winner(
    club_id: UUID,
    data: SelectWinnerRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[VotingService, Depends(get_voting_service)],
) -> SelectWinnerResponse:
    try:
        return await service.select_winner(club_id, data.book_id, current_user.id)
    except ValueError as e:
        handle_service_error(e)


@router.post(
    "/results",
    response_model=EndVotingResponse,
    summary="마감된 투표 사이클 결과 처리",
    description="voting_ends_at 이 지난 사이클만 종료합니다. 집계 규칙은 사이클 종료와 같습니다.",
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
async def process_results(
    club_id: UUID,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[VotingService, Depends(get_voting_service)],
) -> EndVotingResponse:
    try:
        return await service.process_results(club_id, current_user.id)
    except ValueError as e:
        handle_service_error(e)
