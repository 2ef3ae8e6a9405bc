"""API schemas for profiles and the friend system."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from rankify.domain.entities import FriendRequestAction, FriendRequestStatus, Profile


class SendFriendRequest(BaseModel):
    """Body of POST /friends/send-request."""

    code: str = Field(default="", description="Friend code of the user to add (case-insensitive)")


class RespondFriendRequest(BaseModel):
    """Body of POST /friends/respond."""

    model_config = ConfigDict(populate_by_name=True)

    request_id: str = Field(..., alias="requestId", min_length=1)
    action: FriendRequestAction


class FriendRequestResponse(BaseModel):
    message: str
    request_id: str
    status: FriendRequestStatus


class ProfileResponse(BaseModel):
    id: str
    display_name: str | None = None
    username: str | None = None
    avatar_url: str | None = None
    created_at: datetime

    @classmethod
    def from_domain(cls, profile: Profile) -> "ProfileResponse":
        return cls(
            id=profile.id,
            display_name=profile.display_name,
            username=profile.username,
            avatar_url=profile.avatar_url,
            created_at=profile.created_at,
        )


class OwnProfileResponse(ProfileResponse):
    """The caller's own profile; only here is the friend code exposed."""

    friend_code: str
    friend_count: int = 0
    total_likes: int = Field(default=0, description="Likes received on public rankings")

    @classmethod
    def from_domain(
        cls, profile: Profile, friend_count: int = 0, total_likes: int = 0
    ) -> "OwnProfileResponse":
        return cls(
            id=profile.id,
            display_name=profile.display_name,
            username=profile.username,
            avatar_url=profile.avatar_url,
            created_at=profile.created_at,
            friend_code=profile.friend_code,
            friend_count=friend_count,
            total_likes=total_likes,
        )


class FriendsPageResponse(BaseModel):
    friends: list[ProfileResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
