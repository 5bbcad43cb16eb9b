from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import decode_token
from app.models.user import User


class AuthService:
    """인증 서비스 (외부 인증 제공자가 발급한 JWT 검증)"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_by_id(self, user_id: UUID) -> User | None:
        """ID로 사용자 조회"""
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_current_user(self, access_token: str) -> User:
        """현재 사용자 조회"""
        payload = decode_token(access_token)
        if not payload or payload.get("type") != "access":
            raise ValueError("INVALID_TOKEN")

        subject = payload.get("sub")
        if not subject:
            raise ValueError("INVALID_TOKEN")

        try:
            user_id = UUID(subject)
        except ValueError:
            raise ValueError("INVALID_TOKEN")

        user = await self.get_user_by_id(user_id)
        if not user:
            raise ValueError("USER_NOT_FOUND")

        return user
