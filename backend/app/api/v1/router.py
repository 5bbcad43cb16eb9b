from fastapi import APIRouter

from app.api.v1.endpoints import suggestions, votes, voting

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(suggestions.router)
api_router.include_router(votes.router)
api_router.include_router(voting.router)
