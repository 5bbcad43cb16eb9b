from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_current_user, handle_service_error
from app.core.database import get_db
from app.models.user import User
from app.schemas import ErrorResponse
from app.schemas.vote import VoteResultResponse
from app.services.vote_service import VoteService

router = APIRouter(prefix="/clubs/{club_id}/suggestions/{suggestion_id}/vote", tags=["Votes"])


def get_vote_service(db: Annotated[AsyncSession, Depends(get_db)]) -> VoteService:
    """VoteService 의존성"""
    return VoteService(db)


@router.post(
    "",
    response_model=VoteResultResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def cast_vote(
    club_id: UUID,
    suggestion_id: UUID,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[VoteService, Depends(get_vote_service)],
) -> VoteResultResponse:
    """추천에 투표"""
    try:
        return await service.cast_vote(club_id, suggestion_id, current_user.id)
    except ValueError as e:
        handle_service_error(e)


@router.delete(
    "",
    response_model=VoteResultResponse,
    responses={
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
async def retract_vote(
    club_id: UUID,
    suggestion_id: UUID,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[VoteService, Depends(get_vote_service)],
) -> VoteResultResponse:
    """투표 취소"""
    try:
        return await service.retract_vote(club_id, suggestion_id, current_user.id)
    except ValueError as e:
        handle_service_error(e)
