"""Own profile endpoint (friend code card)."""

from typing import Annotated

from fastapi import APIRouter, Depends

from rankify.api.dependencies import (
    get_current_user_id,
    get_profile_service,
    get_ranking_query_service,
)
from rankify.api.schemas.friends import OwnProfileResponse
from rankify.application.services import ProfileService, RankingQueryService

router = APIRouter(prefix="/profile", tags=["Profile"])


@router.get("/me", response_model=OwnProfileResponse)
async def get_my_profile(
    user_id: Annotated[str, Depends(get_current_user_id)],
    service: Annotated[ProfileService, Depends(get_profile_service)],
    queries: Annotated[RankingQueryService, Depends(get_ranking_query_service)],
) -> OwnProfileResponse:
    """The caller's profile, created on first visit, with friend code and counters."""
    profile = await service.ensure_profile(user_id)
    stats = await queries.get_profile_stats(user_id)
    return OwnProfileResponse.from_domain(
        profile, friend_count=stats.friend_count, total_likes=stats.total_likes
    )
