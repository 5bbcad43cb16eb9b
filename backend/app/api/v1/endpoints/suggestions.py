"""책 추천 API 엔드포인트

클럽 멤버가 다음에 읽을 책을 추천하고 추천 목록을 조회한다.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_current_user, handle_service_error
from app.core.database import get_db
from app.models.user import User
from app.schemas import ErrorResponse
from app.schemas.suggestion import CreateSuggestionRequest, SuggestionResponse
from app.services.suggestion_service import SuggestionService

router = APIRouter(prefix="/clubs/{club_id}/suggestions", tags=["Suggestions"])


def get_suggestion_service(db: Annotated[AsyncSession, Depends(get_db)]) -> SuggestionService:
    """SuggestionService 의존성"""
    return SuggestionService(db)


@router.get(
    "",
    response_model=list[SuggestionResponse],
    summary="추천 목록 조회",
    description="클럽의 ACTIVE 추천을 최신순으로 반환합니다. 투표 수와 내 투표 여부를 포함합니다.",
    responses={
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
async def list_suggestions(
    club_id: UUID,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[SuggestionService, Depends(get_suggestion_service)],
) -> list[SuggestionResponse]:
    try:
        return await service.list_suggestions(club_id, current_user.id)
    except ValueError as e:
        handle_service_error(e)


@router.post(
    "",
    response_model=SuggestionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="책 추천 생성",
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def create_suggestion(
    club_id: UUID,
    data: CreateSuggestionRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[SuggestionService, Depends(get_suggestion_service)],
) -> SuggestionResponse:
    try:
        return await service.create_suggestion(club_id, data, current_user.id)
    except ValueError as e:
        handle_service_error(e)
