from app.models.book import Book
from app.models.club import (
    Club,
    ClubBook,
    ClubBookStatus,
    ClubMembership,
    ClubMembershipStatus,
    ClubRole,
)
from app.models.suggestion import (
    ClubBookSuggestion,
    ClubBookSuggestionVote,
    SuggestionStatus,
)
from app.models.user import User

__all__ = [
    "User",
    "Book",
    "Club",
    "ClubRole",
    "ClubMembership",
    "ClubMembershipStatus",
    "ClubBook",
    "ClubBookStatus",
    "ClubBookSuggestion",
    "ClubBookSuggestionVote",
    "SuggestionStatus",
]
