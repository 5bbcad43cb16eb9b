"""인증 서비스 단위 테스트

총 7개 테스트:
- get_user_by_id: 2개 (성공, 실패)
- get_current_user: 4개 (성공, 잘못된 토큰, 토큰 종류 불일치, 사용자 없음)
- decode_token: 1개 (서명 검증)
"""

import pytest
from uuid import uuid4

from jose import jwt

from app.core.config import get_settings
from app.core.security import create_access_token, decode_token
from app.models.user import User
from app.services.auth_service import AuthService


# ===== get_user_by_id 테스트 (2개) =====


@pytest.mark.asyncio
async def test_get_user_by_id_success(db_session, test_user: User):
    """ID로 사용자 조회 성공"""
    auth_service = AuthService(db_session)

    user = await auth_service.get_user_by_id(test_user.id)

    assert user is not None
    assert user.email == test_user.email


@pytest.mark.asyncio
async def test_get_user_by_id_not_found(db_session):
    """존재하지 않는 ID"""
    auth_service = AuthService(db_session)

    assert await auth_service.get_user_by_id(uuid4()) is None


# ===== get_current_user 테스트 (4개) =====


@pytest.mark.asyncio
async def test_get_current_user_success(db_session, test_user: User):
    """access token으로 현재 사용자 조회"""
    auth_service = AuthService(db_session)
    token = create_access_token(str(test_user.id))

    user = await auth_service.get_current_user(token)

    assert user.id == test_user.id


@pytest.mark.asyncio
async def test_get_current_user_invalid_token(db_session):
    """유효하지 않은 토큰"""
    auth_service = AuthService(db_session)

    with pytest.raises(ValueError, match="INVALID_TOKEN"):
        await auth_service.get_current_user("invalid-token")


@pytest.mark.asyncio
async def test_get_current_user_wrong_token_type(db_session, test_user: User):
    """access 이외 종류의 토큰은 거부"""
    settings = get_settings()
    token = jwt.encode(
        {"sub": str(test_user.id), "type": "refresh"},
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )
    auth_service = AuthService(db_session)

    with pytest.raises(ValueError, match="INVALID_TOKEN"):
        await auth_service.get_current_user(token)


@pytest.mark.asyncio
async def test_get_current_user_unknown_user(db_session):
    """토큰은 유효하지만 사용자가 없는 경우"""
    auth_service = AuthService(db_session)
    token = create_access_token(str(uuid4()))

    with pytest.raises(ValueError, match="USER_NOT_FOUND"):
        await auth_service.get_current_user(token)


# ===== decode_token 테스트 (1개) =====


def test_decode_token_rejects_foreign_signature():
    """다른 키로 서명된 토큰은 None"""
    token = jwt.encode({"sub": "someone", "type": "access"}, "other-secret", algorithm="HS256")

    assert decode_token(token) is None
    assert decode_token(create_access_token("someone"))["sub"] == "someone"
