"""공유 API dependencies - 엔드포인트 간 중복 제거"""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.models.user import User
from app.services.auth_service import AuthService

security = HTTPBearer()


# ===== Auth Dependencies =====


def get_auth_service(db: Annotated[AsyncSession, Depends(get_db)]) -> AuthService:
    """AuthService 의존성"""
    return AuthService(db)


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> User:
    """현재 사용자 조회"""
    try:
        return await auth_service.get_current_user(credentials.credentials)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "INVALID_TOKEN", "message": "Invalid or expired token"},
        )


# ===== Service Error Handling =====

# 서비스 레이어에서 발생하는 에러 코드와 HTTP 응답 매핑
# (status_code, error_code, message)
SERVICE_ERROR_MAPPING: dict[str, tuple[int, str, str]] = {
    # 공통
    "CLUB_NOT_FOUND": (404, "NOT_FOUND", "Club not found"),
    "NOT_CLUB_MEMBER": (403, "FORBIDDEN", "Access denied. You must be a member of this club."),
    "PERMISSION_DENIED": (
        403,
        "FORBIDDEN",
        "Only club admins and owners can manage voting cycles",
    ),
    # 추천 관련
    "BOOK_NOT_FOUND": (404, "NOT_FOUND", "Book not found"),
    "DUPLICATE_SUGGESTION": (
        409,
        "CONFLICT",
        "This book has already been suggested for this club",
    ),
    "SUGGESTION_LIMIT_EXCEEDED": (
        403,
        "FORBIDDEN",
        "You have reached the maximum number of active suggestions for this club",
    ),
    "SUGGESTION_NOT_FOUND": (404, "NOT_FOUND", "Suggestion not found or voting has ended"),
    # 투표 관련
    "ALREADY_VOTED": (409, "CONFLICT", "You have already voted for this suggestion"),
    "VOTE_NOT_FOUND": (404, "NOT_FOUND", "You haven't voted for this suggestion"),
    "VOTING_PERIOD_ENDED": (400, "BAD_REQUEST", "Voting period has ended"),
    # 투표 사이클 관련
    "INVALID_VOTING_WINDOW": (400, "BAD_REQUEST", "Voting end time must be after start time"),
    "BOOK_ALREADY_SELECTED": (400, "BAD_REQUEST", "Club already has a current book"),
    "VOTING_CYCLE_ALREADY_ACTIVE": (
        400,
        "BAD_REQUEST",
        "A voting cycle is already active for this club",
    ),
    "NO_ACTIVE_VOTING_CYCLE": (400, "BAD_REQUEST", "No active voting cycle for this club"),
    "VOTING_CYCLE_NOT_EXPIRED": (400, "BAD_REQUEST", "Voting cycle is not expired"),
}


def handle_service_error(error: ValueError, default_message: str = "Validation error") -> None:
    """서비스 레이어 에러를 HTTPException으로 변환

    Args:
        error: 서비스에서 발생한 ValueError (에러 코드가 str로 전달됨)
        default_message: 매핑되지 않은 에러의 기본 메시지

    Raises:
        HTTPException: 매핑된 HTTP 에러 응답
    """
    error_code = str(error)

    if error_code in SERVICE_ERROR_MAPPING:
        status_code, code, message = SERVICE_ERROR_MAPPING[error_code]
        raise HTTPException(
            status_code=status_code,
            detail={"error": code, "message": message, "code": error_code},
        )

    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"error": "VALIDATION_ERROR", "message": default_message},
    )
