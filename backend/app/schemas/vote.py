from pydantic import BaseModel


class VoteResultResponse(BaseModel):
    """투표/투표 취소 결과"""

    message: str
    vote_count: int
