"""Ranking endpoints.

Route order matters: the fixed paths (/public, /friends, /fixed) are declared
before /{ranking_id} so they are not swallowed as ids.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from rankify.api.dependencies import (
    get_current_user_id,
    get_ranking_query_service,
    get_ranking_service,
)
from rankify.api.schemas.rankings import (
    FullRankingResponse,
    LikeResponse,
    RankingListResponse,
    RankingResponse,
    RankingSaveRequest,
    VisibilityUpdateRequest,
)
from rankify.application.services import RankingQueryService, RankingService
from rankify.application.services.ranking_query_service import PUBLIC_RANKINGS_LIMIT
from rankify.domain.exceptions import EntityNotFoundException

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/rankings", tags=["Rankings"])


@router.post("", response_model=RankingResponse, status_code=status.HTTP_201_CREATED)
async def create_ranking(
    body: RankingSaveRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    service: Annotated[RankingService, Depends(get_ranking_service)],
) -> RankingResponse:
    ranking = await service.create(user_id, body.to_draft())
    return RankingResponse.from_domain(ranking)


@router.get("", response_model=RankingListResponse)
async def list_my_rankings(
    user_id: Annotated[str, Depends(get_current_user_id)],
    queries: Annotated[RankingQueryService, Depends(get_ranking_query_service)],
) -> RankingListResponse:
    return RankingListResponse.from_domain(await queries.get_user_rankings(user_id))


# Public listing still requires a session; browsing is a signed-in feature.
@router.get("/public", response_model=RankingListResponse)
async def list_public_rankings(
    _user_id: Annotated[str, Depends(get_current_user_id)],
    queries: Annotated[RankingQueryService, Depends(get_ranking_query_service)],
    limit: Annotated[int, Query(ge=1, le=100)] = PUBLIC_RANKINGS_LIMIT,
) -> RankingListResponse:
    return RankingListResponse.from_domain(await queries.get_public_rankings(limit=limit))


@router.get("/friends", response_model=RankingListResponse)
async def list_friends_rankings(
    user_id: Annotated[str, Depends(get_current_user_id)],
    queries: Annotated[RankingQueryService, Depends(get_ranking_query_service)],
) -> RankingListResponse:
    return RankingListResponse.from_domain(await queries.get_friends_rankings(user_id))


@router.get("/fixed", response_model=RankingListResponse)
async def list_my_fixed_rankings(
    user_id: Annotated[str, Depends(get_current_user_id)],
    queries: Annotated[RankingQueryService, Depends(get_ranking_query_service)],
) -> RankingListResponse:
    """Own fixed-pool rankings, used to pick what to compare against friends."""
    return RankingListResponse.from_domain(await queries.get_user_fixed_rankings(user_id))


@router.get("/{ranking_id}", response_model=FullRankingResponse)
async def get_ranking(
    ranking_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    queries: Annotated[RankingQueryService, Depends(get_ranking_query_service)],
) -> FullRankingResponse:
    full = await queries.get_full_ranking(ranking_id, viewer_id=user_id)
    if full is None:
        raise EntityNotFoundException("Ranking", ranking_id, "Ranking not found")
    return FullRankingResponse.from_domain(full)


@router.put("/{ranking_id}", response_model=RankingResponse)
async def update_ranking(
    ranking_id: str,
    body: RankingSaveRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    service: Annotated[RankingService, Depends(get_ranking_service)],
) -> RankingResponse:
    ranking = await service.update(user_id, ranking_id, body.to_draft())
    return RankingResponse.from_domain(ranking)


@router.delete("/{ranking_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_ranking(
    ranking_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    service: Annotated[RankingService, Depends(get_ranking_service)],
) -> None:
    await service.delete(user_id, ranking_id)


@router.patch("/{ranking_id}/visibility", response_model=RankingResponse)
async def change_visibility(
    ranking_id: str,
    body: VisibilityUpdateRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    service: Annotated[RankingService, Depends(get_ranking_service)],
) -> RankingResponse:
    ranking = await service.change_visibility(user_id, ranking_id, body.visibility)
    return RankingResponse.from_domain(ranking)


@router.post("/{ranking_id}/like", response_model=LikeResponse)
async def like_ranking(
    ranking_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    service: Annotated[RankingService, Depends(get_ranking_service)],
) -> LikeResponse:
    liked = await service.like(user_id, ranking_id)
    return LikeResponse(
        liked=liked, message="Ranking liked" if liked else "You already liked this ranking"
    )
