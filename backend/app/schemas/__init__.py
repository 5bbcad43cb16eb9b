from app.schemas.common import ErrorResponse
from app.schemas.common_brief import BookBriefResponse, UserBriefResponse
from app.schemas.suggestion import CreateSuggestionRequest, SuggestionResponse
from app.schemas.vote import VoteResultResponse
from app.schemas.voting import (
    ClubVotingResponse,
    EndVotingResponse,
    SelectWinnerRequest,
    SelectWinnerResponse,
    StartVotingRequest,
    WinningSuggestionResponse,
)

__all__ = [
    "BookBriefResponse",
    "ClubVotingResponse",
    "CreateSuggestionRequest",
    "EndVotingResponse",
    "ErrorResponse",
    "SelectWinnerRequest",
    "SelectWinnerResponse",
    "StartVotingRequest",
    "SuggestionResponse",
    "UserBriefResponse",
    "VoteResultResponse",
    "WinningSuggestionResponse",
]
