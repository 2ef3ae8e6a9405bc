"""Friend graph service.

Hey future me - friendship is NOT stored anywhere! It is derived: A and B are
friends iff both follow edges A->B and B->A exist. The only way edges get
created is accepting a friend request, which writes both directions at once.

Known races (kept on purpose, no explicit locking): two users sending each
other a request at the same moment can both pass the "no pending request"
check and end up with two pending rows. Accepting either one makes them
friends, the other one just stays pending.
"""

import logging
import math
import uuid
from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession

from rankify.application.services.notification_service import NotificationService
from rankify.application.services.profile_service import ProfileService
from rankify.application.services.side_effects import run_best_effort
from rankify.domain.entities import (
    FriendRequest,
    FriendRequestAction,
    FriendRequestStatus,
    NotificationType,
    Profile,
    RankingSummary,
    SourceType,
    Visibility,
)
from rankify.domain.exceptions import (
    ConflictError,
    EntityNotFoundException,
    ValidationException,
)
from rankify.domain.ports import INotificationPublisher
from rankify.domain.value_objects import FriendCode, normalize_friend_code
from rankify.infrastructure.persistence.repositories import (
    FollowRepository,
    FriendRequestRepository,
    NotificationRepository,
    ProfileRepository,
    RankingRepository,
)

logger = logging.getLogger(__name__)


@dataclass
class FriendRequestOutcome:
    """Result of sending or answering a friend request."""

    request_id: str
    status: FriendRequestStatus
    message: str


@dataclass
class FriendsPage:
    """One page of a user's friends."""

    friends: list[Profile] = field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 20

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.total else 0


class FriendService:
    """Friend requests and the mutual-follow friend graph."""

    def __init__(
        self,
        session: AsyncSession,
        publisher: INotificationPublisher | None = None,
    ) -> None:
        self.session = session
        self.profile_repository = ProfileRepository(session)
        self.follow_repository = FollowRepository(session)
        self.request_repository = FriendRequestRepository(session)
        self.ranking_repository = RankingRepository(session)
        self.notifications = NotificationService(NotificationRepository(session), publisher)

    async def send_request(self, requester_id: str, friend_code: str) -> FriendRequestOutcome:
        """Send a friend request to the owner of friend_code.

        Raises:
            ValidationException: blank code, or the code is the requester's own
            EntityNotFoundException: no profile has this code
            ConflictError: a pending request exists (either direction) or already friends
        """
        code = normalize_friend_code(friend_code)
        target = None
        if FriendCode.is_valid(code):
            target = await self.profile_repository.get_by_friend_code(code)
        if target is None:
            raise EntityNotFoundException("Profile", code, "Invalid friend code")

        if target.id == requester_id:
            raise ValidationException("Cannot add yourself as a friend")

        for existing in await self.request_repository.find_between(requester_id, target.id):
            if existing.status is FriendRequestStatus.PENDING:
                raise ConflictError("Friend request already sent")
            if existing.status is FriendRequestStatus.ACCEPTED:
                raise ConflictError("Already friends")

        requester = await ProfileService(self.session).ensure_profile(requester_id)

        request = FriendRequest(
            id=str(uuid.uuid4()),
            requester_id=requester_id,
            target_id=target.id,
        )
        await self.request_repository.add(request)
        logger.info(
            "Friend request %s sent from %s to %s", request.id, requester_id, target.id
        )

        await run_best_effort(
            self.session,
            f"Friend request notification for {target.id}",
            lambda: self.notifications.create(
                target.id,
                NotificationType.FRIEND_REQUEST,
                {
                    "friend_request_id": request.id,
                    "requester_id": requester_id,
                    "requester_name": requester.name,
                },
            ),
        )

        return FriendRequestOutcome(
            request_id=request.id,
            status=request.status,
            message=f"Friend request sent to {target.name}",
        )

    async def respond_to_request(
        self, target_id: str, request_id: str, action: FriendRequestAction | str
    ) -> FriendRequestOutcome:
        """Accept or decline a pending friend request addressed to target_id.

        Raises:
            ValidationException: unknown action
            EntityNotFoundException: missing, not addressed to target_id, or not pending
        """
        try:
            action = FriendRequestAction(action)
        except ValueError as e:
            raise ValidationException(f"Invalid action: {action!r}") from e

        request = await self.request_repository.get_by_id(request_id)
        # Hey future me - missing, not-yours and already-answered all look the SAME to the
        # caller. Stops replaying an accept and probing other people's request ids.
        if request is None or request.target_id != target_id or not request.is_pending:
            raise EntityNotFoundException("FriendRequest", request_id, "Friend request not found")

        new_status = action.resulting_status
        await self.request_repository.update_status(request.id, new_status)
        logger.info("Friend request %s %s by %s", request.id, new_status.value, target_id)

        if new_status is FriendRequestStatus.ACCEPTED:
            await run_best_effort(
                self.session,
                f"Mutual follow between {request.requester_id} and {target_id}",
                lambda: self.follow_repository.add_mutual(request.requester_id, target_id),
            )

        await run_best_effort(
            self.session,
            f"Marking notification for friend request {request.id} read",
            lambda: self.notifications.mark_friend_request_read(target_id, request.id),
        )

        return FriendRequestOutcome(
            request_id=request.id,
            status=new_status,
            message=f"Friend request {new_status.value}",
        )

    async def get_friend_ids(self, user_id: str) -> set[str]:
        """Ids user_id follows AND that follow user_id back."""
        following = await self.follow_repository.following_ids(user_id)
        if not following:
            return set()
        return set(await self.follow_repository.followers_among(user_id, following))

    async def are_friends(self, user_a: str, user_b: str) -> bool:
        return await self.follow_repository.exists(
            user_a, user_b
        ) and await self.follow_repository.exists(user_b, user_a)

    async def list_friends(self, user_id: str) -> list[Profile]:
        """All friend profiles, sorted by name for stable paging."""
        friend_ids = await self.get_friend_ids(user_id)
        profiles = await self.profile_repository.get_many(sorted(friend_ids))
        return sorted(profiles, key=lambda p: (p.name.lower(), p.id))

    async def list_friends_page(
        self, user_id: str, page: int = 1, page_size: int = 20
    ) -> FriendsPage:
        if page < 1 or page_size < 1:
            raise ValidationException("page and page_size must be at least 1")
        friends = await self.list_friends(user_id)
        start = (page - 1) * page_size
        return FriendsPage(
            friends=friends[start : start + page_size],
            total=len(friends),
            page=page,
            page_size=page_size,
        )

    async def list_friends_rankings(
        self, user_id: str, source_type: SourceType | str, source_id: str
    ) -> list[RankingSummary]:
        """Friends' rankings over the same fixed pool, for side-by-side comparison."""
        try:
            source_type = SourceType(source_type)
        except ValueError as e:
            raise ValidationException(f"Invalid source type: {source_type!r}") from e
        if not source_id:
            raise ValidationException("source_id is required")

        friend_ids = await self.get_friend_ids(user_id)
        return await self.ranking_repository.list_summaries(
            owner_ids=sorted(friend_ids),
            visibilities=[Visibility.PUBLIC, Visibility.FRIENDS],
            source_type=source_type,
            source_id=source_id,
        )
