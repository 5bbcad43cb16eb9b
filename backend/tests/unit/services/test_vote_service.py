"""투표 서비스 단위 테스트

총 16개 테스트:
- cast_vote: 8개 (성공, 중복 투표, 비멤버, 탈퇴 멤버, 추천 없음, 비활성 추천, 기간 만료, 다른 클럽)
- retract_vote: 4개 (성공, 투표 없음, 종료된 추천, 재투표)
- 집계: 4개 (count_votes, count_votes_for, voted_suggestion_ids, has_voted)
"""

import pytest
from datetime import datetime, timedelta, timezone
from uuid import uuid4

from sqlalchemy import func, select

from app.models.club import Club, ClubMembershipStatus, ClubRole
from app.models.suggestion import ClubBookSuggestionVote, SuggestionStatus
from app.models.user import User
from app.services.vote_service import VoteService


# ===== cast_vote 테스트 (8개) =====


@pytest.mark.asyncio
async def test_cast_vote_success(
    db_session, test_club: Club, test_user: User, test_user2: User, test_book, make_suggestion
):
    """투표 성공 시 득표 수 반환"""
    suggestion = await make_suggestion(test_club, test_book, test_user)
    service = VoteService(db_session)

    result = await service.cast_vote(test_club.id, suggestion.id, test_user2.id)

    assert result.message == "Vote recorded successfully"
    assert result.vote_count == 1
    assert await service.has_voted(suggestion.id, test_user2.id) is True


@pytest.mark.asyncio
async def test_cast_vote_twice_rejected(
    db_session, test_club: Club, test_user: User, test_book, make_suggestion
):
    """같은 추천에 두 번 투표 불가 (득표 수 변화 없음)"""
    suggestion = await make_suggestion(test_club, test_book, test_user)
    service = VoteService(db_session)

    await service.cast_vote(test_club.id, suggestion.id, test_user.id)

    with pytest.raises(ValueError, match="ALREADY_VOTED"):
        await service.cast_vote(test_club.id, suggestion.id, test_user.id)

    assert await service.count_votes(suggestion.id) == 1


@pytest.mark.asyncio
async def test_cast_vote_not_club_member(
    db_session, test_club: Club, test_user: User, outsider: User, test_book, make_suggestion
):
    """클럽 멤버가 아니면 투표 불가"""
    suggestion = await make_suggestion(test_club, test_book, test_user)
    service = VoteService(db_session)

    with pytest.raises(ValueError, match="NOT_CLUB_MEMBER"):
        await service.cast_vote(test_club.id, suggestion.id, outsider.id)


@pytest.mark.asyncio
async def test_cast_vote_left_member_rejected(
    db_session, test_club: Club, test_user: User, make_user, add_member, test_book, make_suggestion
):
    """탈퇴한(LEFT) 멤버는 투표 불가"""
    former = await make_user("탈퇴 멤버")
    await add_member(test_club, former, ClubRole.MEMBER, ClubMembershipStatus.LEFT)
    suggestion = await make_suggestion(test_club, test_book, test_user)
    service = VoteService(db_session)

    with pytest.raises(ValueError, match="NOT_CLUB_MEMBER"):
        await service.cast_vote(test_club.id, suggestion.id, former.id)


@pytest.mark.asyncio
async def test_cast_vote_suggestion_not_found(db_session, test_club: Club, test_user: User):
    """존재하지 않는 추천에 투표 불가"""
    service = VoteService(db_session)

    with pytest.raises(ValueError, match="SUGGESTION_NOT_FOUND"):
        await service.cast_vote(test_club.id, uuid4(), test_user.id)


@pytest.mark.asyncio
async def test_cast_vote_on_rejected_suggestion(
    db_session, test_club: Club, test_user: User, test_book, make_suggestion
):
    """ACTIVE가 아닌 추천에는 투표 불가"""
    suggestion = await make_suggestion(
        test_club, test_book, test_user, status=SuggestionStatus.REJECTED
    )
    service = VoteService(db_session)

    with pytest.raises(ValueError, match="SUGGESTION_NOT_FOUND"):
        await service.cast_vote(test_club.id, suggestion.id, test_user.id)


@pytest.mark.asyncio
async def test_cast_vote_after_voting_ends(
    db_session, test_club: Club, test_user: User, test_book, make_suggestion
):
    """추천별 투표 마감 이후에는 투표 불가"""
    suggestion = await make_suggestion(
        test_club,
        test_book,
        test_user,
        voting_ends=datetime.now(timezone.utc) - timedelta(days=1),
    )
    service = VoteService(db_session)

    with pytest.raises(ValueError, match="VOTING_PERIOD_ENDED"):
        await service.cast_vote(test_club.id, suggestion.id, test_user.id)


@pytest.mark.asyncio
async def test_cast_vote_suggestion_from_other_club(
    db_session, test_club: Club, test_user: User, test_book, add_member, make_suggestion
):
    """다른 클럽의 추천 ID로는 투표 불가"""
    other_club = Club(id=uuid4(), name="다른 클럽", owner_id=test_user.id)
    db_session.add(other_club)
    await db_session.commit()
    await add_member(other_club, test_user, ClubRole.OWNER)
    suggestion = await make_suggestion(other_club, test_book, test_user)
    service = VoteService(db_session)

    with pytest.raises(ValueError, match="SUGGESTION_NOT_FOUND"):
        await service.cast_vote(test_club.id, suggestion.id, test_user.id)


# ===== retract_vote 테스트 (4개) =====


@pytest.mark.asyncio
async def test_retract_vote_success(
    db_session, test_club: Club, test_user: User, test_user2: User, test_book, make_suggestion
):
    """투표 취소 성공"""
    suggestion = await make_suggestion(test_club, test_book, test_user)
    service = VoteService(db_session)
    await service.cast_vote(test_club.id, suggestion.id, test_user.id)
    await service.cast_vote(test_club.id, suggestion.id, test_user2.id)

    result = await service.retract_vote(test_club.id, suggestion.id, test_user2.id)

    assert result.message == "Vote removed successfully"
    assert result.vote_count == 1
    assert await service.has_voted(suggestion.id, test_user2.id) is False


@pytest.mark.asyncio
async def test_retract_vote_not_found(
    db_session, test_club: Club, test_user: User, test_book, make_suggestion
):
    """투표하지 않은 추천은 취소 불가"""
    suggestion = await make_suggestion(test_club, test_book, test_user)
    service = VoteService(db_session)

    with pytest.raises(ValueError, match="VOTE_NOT_FOUND"):
        await service.retract_vote(test_club.id, suggestion.id, test_user.id)


@pytest.mark.asyncio
async def test_retract_vote_on_closed_suggestion(
    db_session,
    test_club: Club,
    test_user: User,
    test_user2: User,
    test_book,
    make_suggestion,
    add_votes,
):
    """종료된(REJECTED) 추천의 투표는 취소 불가, 집계 유지"""
    suggestion = await make_suggestion(
        test_club, test_book, test_user, status=SuggestionStatus.REJECTED
    )
    await add_votes(suggestion, [test_user2])
    service = VoteService(db_session)

    with pytest.raises(ValueError, match="SUGGESTION_NOT_FOUND"):
        await service.retract_vote(test_club.id, suggestion.id, test_user2.id)

    assert await service.count_votes(suggestion.id) == 1


@pytest.mark.asyncio
async def test_vote_again_after_retract(
    db_session, test_club: Club, test_user: User, test_book, make_suggestion
):
    """취소 후 다시 투표 가능 (투표 행은 하나만 유지)"""
    suggestion = await make_suggestion(test_club, test_book, test_user)
    service = VoteService(db_session)

    await service.cast_vote(test_club.id, suggestion.id, test_user.id)
    await service.retract_vote(test_club.id, suggestion.id, test_user.id)
    result = await service.cast_vote(test_club.id, suggestion.id, test_user.id)

    assert result.vote_count == 1
    rows = await db_session.execute(
        select(func.count(ClubBookSuggestionVote.id)).where(
            ClubBookSuggestionVote.suggestion_id == suggestion.id,
            ClubBookSuggestionVote.user_id == test_user.id,
        )
    )
    assert rows.scalar() == 1


# ===== 집계 테스트 (4개) =====


@pytest.mark.asyncio
async def test_count_votes(
    db_session, test_club: Club, test_user: User, make_user, test_book, make_suggestion, add_votes
):
    """추천 하나의 투표 수"""
    suggestion = await make_suggestion(test_club, test_book, test_user)
    voters = [await make_user(f"투표자{i}") for i in range(3)]
    await add_votes(suggestion, voters)
    service = VoteService(db_session)

    assert await service.count_votes(suggestion.id) == 3


@pytest.mark.asyncio
async def test_count_votes_for_fills_zero(
    db_session,
    test_club: Club,
    test_user: User,
    test_user2: User,
    test_book,
    test_book2,
    make_suggestion,
    add_votes,
):
    """투표가 없는 추천도 0으로 포함"""
    voted = await make_suggestion(test_club, test_book, test_user)
    empty = await make_suggestion(test_club, test_book2, test_user)
    await add_votes(voted, [test_user, test_user2])
    service = VoteService(db_session)

    counts = await service.count_votes_for([voted.id, empty.id])

    assert counts == {voted.id: 2, empty.id: 0}
    assert await service.count_votes_for([]) == {}


@pytest.mark.asyncio
async def test_voted_suggestion_ids(
    db_session,
    test_club: Club,
    test_user: User,
    test_user2: User,
    test_book,
    test_book2,
    make_suggestion,
    add_votes,
):
    """사용자가 투표한 추천만 반환"""
    first = await make_suggestion(test_club, test_book, test_user)
    second = await make_suggestion(test_club, test_book2, test_user)
    await add_votes(first, [test_user2])
    await add_votes(second, [test_user])
    service = VoteService(db_session)

    voted = await service.voted_suggestion_ids([first.id, second.id], test_user2.id)

    assert voted == {first.id}


@pytest.mark.asyncio
async def test_has_voted_false_for_other_user(
    db_session, test_club: Club, test_user: User, test_user2: User, test_book, make_suggestion
):
    """다른 사용자의 투표는 has_voted에 반영되지 않음"""
    suggestion = await make_suggestion(test_club, test_book, test_user)
    service = VoteService(db_session)
    await service.cast_vote(test_club.id, suggestion.id, test_user.id)

    assert await service.has_voted(suggestion.id, test_user.id) is True
    assert await service.has_voted(suggestion.id, test_user2.id) is False
