"""Friend system endpoints: send/answer requests, list friends, compare rankings."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from rankify.api.dependencies import get_current_user_id, get_friend_service
from rankify.api.schemas.friends import (
    FriendRequestResponse,
    FriendsPageResponse,
    ProfileResponse,
    RespondFriendRequest,
    SendFriendRequest,
)
from rankify.api.schemas.rankings import RankingListResponse
from rankify.application.services import FriendService
from rankify.domain.entities import SourceType

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/friends", tags=["Friends"])


@router.post("/send-request", response_model=FriendRequestResponse)
async def send_friend_request(
    body: SendFriendRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    service: Annotated[FriendService, Depends(get_friend_service)],
) -> FriendRequestResponse:
    """Send a friend request to whoever owns the given friend code."""
    outcome = await service.send_request(user_id, body.code)
    return FriendRequestResponse(
        message=outcome.message, request_id=outcome.request_id, status=outcome.status
    )


@router.post("/respond", response_model=FriendRequestResponse)
async def respond_to_friend_request(
    body: RespondFriendRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    service: Annotated[FriendService, Depends(get_friend_service)],
) -> FriendRequestResponse:
    """Accept or decline a pending request addressed to the caller."""
    outcome = await service.respond_to_request(user_id, body.request_id, body.action)
    return FriendRequestResponse(
        message=outcome.message, request_id=outcome.request_id, status=outcome.status
    )


@router.get("", response_model=FriendsPageResponse)
async def list_friends(
    user_id: Annotated[str, Depends(get_current_user_id)],
    service: Annotated[FriendService, Depends(get_friend_service)],
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=100)] = 20,
) -> FriendsPageResponse:
    result = await service.list_friends_page(user_id, page=page, page_size=page_size)
    return FriendsPageResponse(
        friends=[ProfileResponse.from_domain(p) for p in result.friends],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        total_pages=result.total_pages,
    )


@router.get("/rankings", response_model=RankingListResponse)
async def list_friends_rankings(
    user_id: Annotated[str, Depends(get_current_user_id)],
    service: Annotated[FriendService, Depends(get_friend_service)],
    source_type: Annotated[SourceType, Query()],
    source_id: Annotated[str, Query(min_length=1)],
) -> RankingListResponse:
    """Friends' rankings built from the same artist/album pool."""
    return RankingListResponse.from_domain(
        await service.list_friends_rankings(user_id, source_type, source_id)
    )
