"""비동기 DB 엔진 / 세션

운영 DB는 PostgreSQL(asyncpg). 클럽 행 잠금(FOR UPDATE / FOR SHARE)은
PostgreSQL에서만 적용되고, 테스트용 SQLite에서는 잠금 절이 생략된다.
"""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.core.config import Settings, get_settings


def build_engine(settings: Settings) -> AsyncEngine:
    """설정으로부터 비동기 엔진 생성"""
    options: dict[str, Any] = {"echo": settings.debug}
    if settings.database_url.startswith("postgresql"):
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=True,
        )
    return create_async_engine(settings.database_url, **options)


engine = build_engine(get_settings())

# 세션 팩토리 (commit 후에도 응답 직렬화를 위해 속성 유지)
async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """모든 모델의 기본 클래스"""


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """DB 세션 의존성

    요청 하나가 하나의 트랜잭션: 성공 시 commit, 예외 시 rollback 후 재전파
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
