"""Profile service - lazy profile creation and friend code assignment."""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from rankify.domain.entities import Profile
from rankify.domain.exceptions import EntityNotFoundException
from rankify.domain.value_objects import FriendCode
from rankify.infrastructure.persistence.repositories import ProfileRepository

logger = logging.getLogger(__name__)

# 36^8 codes; collisions are rare, so a handful of attempts is plenty.
MAX_FRIEND_CODE_ATTEMPTS = 5


class ProfileService:
    """Service for user profiles."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.profile_repository = ProfileRepository(session)

    async def get_profile(self, user_id: str) -> Profile:
        """Get an existing profile.

        Raises:
            EntityNotFoundException: if the user has no profile yet
        """
        profile = await self.profile_repository.get_by_id(user_id)
        if profile is None:
            raise EntityNotFoundException("Profile", user_id)
        return profile

    # Hey future me - profiles are created LAZILY (first ranking save, first friend request,
    # first visit to /profile/me). Idempotent: an existing profile is returned untouched,
    # display fields are only used for the very first insert.
    async def ensure_profile(
        self,
        user_id: str,
        display_name: str | None = None,
        username: str | None = None,
        avatar_url: str | None = None,
    ) -> Profile:
        existing = await self.profile_repository.get_by_id(user_id)
        if existing is not None:
            return existing

        for attempt in range(1, MAX_FRIEND_CODE_ATTEMPTS + 1):
            code = FriendCode.generate()
            if await self.profile_repository.friend_code_exists(code.value):
                logger.debug("Friend code collision on attempt %d, regenerating", attempt)
                continue

            profile = Profile(
                id=user_id,
                friend_code=code.value,
                display_name=display_name,
                username=username,
                avatar_url=avatar_url,
            )
            try:
                async with self.session.begin_nested():
                    await self.profile_repository.add(profile)
            except IntegrityError:
                # Lost a race: either the same user was created concurrently or the code got
                # taken between the check and the insert.
                concurrent = await self.profile_repository.get_by_id(user_id)
                if concurrent is not None:
                    return concurrent
                logger.debug("Friend code insert conflict on attempt %d, regenerating", attempt)
                continue

            logger.info("Created profile for user %s (friend code %s)", user_id, code.value)
            return profile

        raise RuntimeError(
            f"Could not allocate a unique friend code after {MAX_FRIEND_CODE_ATTEMPTS} attempts"
        )
