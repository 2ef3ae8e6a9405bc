"""Repository implementations for domain entities."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any

from sqlalchemy import and_, delete, func, insert, or_, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from rankify.domain.entities import (
    ArtistRef,
    CatalogAlbum,
    CatalogArtist,
    CatalogTrack,
    FriendRequest,
    FriendRequestStatus,
    Notification,
    NotificationType,
    Profile,
    Ranking,
    RankingItem,
    RankingSummary,
    RankingType,
    SourceType,
    Visibility,
)
from rankify.domain.exceptions import EntityNotFoundException
from rankify.domain.ports import (
    ICatalogRepository,
    IFollowRepository,
    IFriendRequestRepository,
    INotificationRepository,
    IProfileRepository,
    IRankingRepository,
    ISessionRepository,
)

from .models import (
    AlbumModel,
    ArtistModel,
    FollowModel,
    FriendRequestModel,
    NotificationModel,
    ProfileModel,
    RankingItemModel,
    RankingLikeModel,
    RankingModel,
    TrackModel,
    UserSessionModel,
    ensure_utc_aware,
    utc_now,
)


# Hey future me - ON CONFLICT is dialect specific in SQLAlchemy. SQLite and PostgreSQL both
# support it with the same API (on_conflict_do_update / on_conflict_do_nothing / .excluded),
# we just have to pick the right insert() for the session's engine.
def _upsert_insert(session: AsyncSession, model: type[Any]) -> Any:
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(model)
    if dialect == "sqlite":
        return sqlite.insert(model)
    raise NotImplementedError(f"Upsert not supported for dialect {dialect!r}")


def _profile_from_model(model: ProfileModel) -> Profile:
    return Profile(
        id=model.id,
        friend_code=model.friend_code,
        display_name=model.display_name,
        username=model.username,
        avatar_url=model.avatar_url,
        created_at=ensure_utc_aware(model.created_at),
    )


def _ranking_from_model(model: RankingModel, include_items: bool = True) -> Ranking:
    # Hey - include_items=False for list queries! Touching model.items without selectinload
    # triggers a lazy load, which blows up under asyncio (MissingGreenlet).
    items: list[RankingItem] = []
    if include_items:
        items = [
            RankingItem(item_id=item.item_id, position=item.position, notes=item.notes)
            for item in sorted(model.items, key=lambda i: i.position)
        ]
    return Ranking(
        id=model.id,
        owner_id=model.user_id,
        title=model.title,
        description=model.description,
        ranking_type=RankingType(model.ranking_type),
        visibility=Visibility(model.visibility),
        source_type=SourceType(model.source_type) if model.source_type else None,
        source_id=model.source_id,
        source_variant=model.source_variant,
        pool_item_ids=list(model.pool_item_ids or []),
        items=items,
        created_at=ensure_utc_aware(model.created_at),
        updated_at=ensure_utc_aware(model.updated_at),
    )


def _notification_from_model(model: NotificationModel) -> Notification:
    return Notification(
        id=model.id,
        user_id=model.user_id,
        type=NotificationType(model.type),
        data=dict(model.data or {}),
        is_read=model.is_read,
        created_at=ensure_utc_aware(model.created_at),
    )


class ProfileRepository(IProfileRepository):
    """SQLAlchemy implementation of Profile repository."""

    # Hey future me, this is the Repository pattern! The session is injected and NOT committed
    # here - commit happens at the end of the request scope (Database.session_scope).
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def add(self, profile: Profile) -> None:
        self.session.add(
            ProfileModel(
                id=profile.id,
                username=profile.username,
                display_name=profile.display_name,
                avatar_url=profile.avatar_url,
                friend_code=profile.friend_code,
                created_at=profile.created_at,
            )
        )
        await self.session.flush()

    async def get_by_id(self, user_id: str) -> Profile | None:
        model = await self.session.get(ProfileModel, user_id)
        return _profile_from_model(model) if model else None

    async def get_by_friend_code(self, friend_code: str) -> Profile | None:
        stmt = select(ProfileModel).where(ProfileModel.friend_code == friend_code)
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        return _profile_from_model(model) if model else None

    async def get_many(self, user_ids: Sequence[str]) -> list[Profile]:
        if not user_ids:
            return []
        stmt = select(ProfileModel).where(ProfileModel.id.in_(list(user_ids)))
        result = await self.session.execute(stmt)
        return [_profile_from_model(m) for m in result.scalars().all()]

    async def friend_code_exists(self, friend_code: str) -> bool:
        stmt = select(func.count()).where(ProfileModel.friend_code == friend_code)
        result = await self.session.execute(stmt)
        return bool(result.scalar_one())


class FollowRepository(IFollowRepository):
    """SQLAlchemy implementation of the directed follow edge set."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def add_mutual(self, user_a: str, user_b: str) -> None:
        now = utc_now()
        stmt = _upsert_insert(self.session, FollowModel).values(
            [
                {"follower_id": user_a, "following_id": user_b, "created_at": now},
                {"follower_id": user_b, "following_id": user_a, "created_at": now},
            ]
        )
        stmt = stmt.on_conflict_do_nothing(index_elements=["follower_id", "following_id"])
        await self.session.execute(stmt)

    async def following_ids(self, user_id: str) -> list[str]:
        stmt = select(FollowModel.following_id).where(FollowModel.follower_id == user_id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def followers_among(self, user_id: str, candidate_ids: Sequence[str]) -> list[str]:
        if not candidate_ids:
            return []
        stmt = select(FollowModel.follower_id).where(
            FollowModel.following_id == user_id,
            FollowModel.follower_id.in_(list(candidate_ids)),
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def exists(self, follower_id: str, following_id: str) -> bool:
        model = await self.session.get(FollowModel, (follower_id, following_id))
        return model is not None


class FriendRequestRepository(IFriendRequestRepository):
    """SQLAlchemy implementation of FriendRequest repository."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    @staticmethod
    def _to_entity(model: FriendRequestModel) -> FriendRequest:
        return FriendRequest(
            id=model.id,
            requester_id=model.requester_id,
            target_id=model.target_id,
            status=FriendRequestStatus(model.status),
            created_at=ensure_utc_aware(model.created_at),
        )

    async def add(self, request: FriendRequest) -> None:
        self.session.add(
            FriendRequestModel(
                id=request.id,
                requester_id=request.requester_id,
                target_id=request.target_id,
                status=request.status.value,
                created_at=request.created_at,
            )
        )
        await self.session.flush()

    async def get_by_id(self, request_id: str) -> FriendRequest | None:
        model = await self.session.get(FriendRequestModel, request_id)
        return self._to_entity(model) if model else None

    async def find_between(self, user_a: str, user_b: str) -> list[FriendRequest]:
        stmt = (
            select(FriendRequestModel)
            .where(
                or_(
                    and_(
                        FriendRequestModel.requester_id == user_a,
                        FriendRequestModel.target_id == user_b,
                    ),
                    and_(
                        FriendRequestModel.requester_id == user_b,
                        FriendRequestModel.target_id == user_a,
                    ),
                )
            )
            .order_by(FriendRequestModel.created_at.desc())
        )
        result = await self.session.execute(stmt)
        return [self._to_entity(m) for m in result.scalars().all()]

    async def update_status(self, request_id: str, status: FriendRequestStatus) -> None:
        stmt = (
            update(FriendRequestModel)
            .where(FriendRequestModel.id == request_id)
            .values(status=status.value)
        )
        result = await self.session.execute(stmt)
        if result.rowcount == 0:  # type: ignore[attr-defined]
            raise EntityNotFoundException("FriendRequest", request_id)


class RankingRepository(IRankingRepository):
    """SQLAlchemy implementation of Ranking repository."""

    # Hey future me - mutations here are Core statements (insert/update/delete), not ORM unit of
    # work! The item rewrite deletes and re-inserts rows with the SAME primary keys
    # (ranking_id, position); doing that through the identity map raises identity conflicts.
    # get_by_id uses populate_existing so reads after a rewrite never see stale objects.
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def add(self, ranking: Ranking) -> None:
        await self.session.execute(
            insert(RankingModel).values(
                id=ranking.id,
                user_id=ranking.owner_id,
                title=ranking.title,
                description=ranking.description,
                ranking_type=ranking.ranking_type.value,
                visibility=ranking.visibility.value,
                source_type=ranking.source_type.value if ranking.source_type else None,
                source_id=ranking.source_id,
                source_variant=ranking.source_variant,
                pool_item_ids=list(ranking.pool_item_ids),
                created_at=ranking.created_at,
                updated_at=ranking.updated_at,
            )
        )

    async def update(self, ranking: Ranking) -> None:
        stmt = (
            update(RankingModel)
            .where(RankingModel.id == ranking.id)
            .values(
                title=ranking.title,
                description=ranking.description,
                ranking_type=ranking.ranking_type.value,
                visibility=ranking.visibility.value,
                source_type=ranking.source_type.value if ranking.source_type else None,
                source_id=ranking.source_id,
                source_variant=ranking.source_variant,
                pool_item_ids=list(ranking.pool_item_ids),
                updated_at=ranking.updated_at,
            )
        )
        result = await self.session.execute(stmt)
        if result.rowcount == 0:  # type: ignore[attr-defined]
            raise EntityNotFoundException("Ranking", ranking.id)

    async def delete(self, ranking_id: str) -> None:
        stmt = delete(RankingModel).where(RankingModel.id == ranking_id)
        result = await self.session.execute(stmt)
        if result.rowcount == 0:  # type: ignore[attr-defined]
            raise EntityNotFoundException("Ranking", ranking_id)

    async def get_by_id(self, ranking_id: str) -> Ranking | None:
        stmt = (
            select(RankingModel)
            .where(RankingModel.id == ranking_id)
            .options(selectinload(RankingModel.items))
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        return _ranking_from_model(model) if model else None

    async def replace_items(self, ranking: Ranking) -> None:
        await self.session.execute(
            delete(RankingItemModel).where(RankingItemModel.ranking_id == ranking.id)
        )
        if not ranking.items:
            return
        await self.session.execute(
            insert(RankingItemModel),
            [
                {
                    "ranking_id": ranking.id,
                    "item_id": item.item_id,
                    "position": item.position,
                    "notes": item.notes,
                }
                for item in ranking.items
            ],
        )

    async def update_visibility(self, ranking_id: str, visibility: Visibility) -> None:
        stmt = (
            update(RankingModel)
            .where(RankingModel.id == ranking_id)
            .values(visibility=visibility.value, updated_at=utc_now())
        )
        result = await self.session.execute(stmt)
        if result.rowcount == 0:  # type: ignore[attr-defined]
            raise EntityNotFoundException("Ranking", ranking_id)

    async def max_source_variant(
        self, owner_id: str, source_type: SourceType, source_id: str
    ) -> int | None:
        stmt = select(func.max(RankingModel.source_variant)).where(
            RankingModel.user_id == owner_id,
            RankingModel.source_type == source_type.value,
            RankingModel.source_id == source_id,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_summaries(
        self,
        owner_ids: Sequence[str] | None = None,
        visibilities: Sequence[Visibility] | None = None,
        source_type: SourceType | None = None,
        source_id: str | None = None,
        fixed_pool_only: bool = False,
        limit: int | None = None,
    ) -> list[RankingSummary]:
        # Hey - owner_ids=[] means "nobody", not "no filter". Friends listing for a user with
        # no friends must come back empty, not list every ranking in the DB!
        if owner_ids is not None and not owner_ids:
            return []

        item_counts = (
            select(
                RankingItemModel.ranking_id.label("ranking_id"),
                func.count().label("item_count"),
            )
            .group_by(RankingItemModel.ranking_id)
            .subquery()
        )
        like_counts = (
            select(
                RankingLikeModel.ranking_id.label("ranking_id"),
                func.count().label("like_count"),
            )
            .group_by(RankingLikeModel.ranking_id)
            .subquery()
        )
        stmt = (
            select(
                RankingModel,
                func.coalesce(item_counts.c.item_count, 0),
                func.coalesce(like_counts.c.like_count, 0),
                ProfileModel.username,
                ProfileModel.display_name,
            )
            .join(ProfileModel, ProfileModel.id == RankingModel.user_id)
            .outerjoin(item_counts, item_counts.c.ranking_id == RankingModel.id)
            .outerjoin(like_counts, like_counts.c.ranking_id == RankingModel.id)
        )
        if owner_ids is not None:
            stmt = stmt.where(RankingModel.user_id.in_(list(owner_ids)))
        if visibilities is not None:
            stmt = stmt.where(RankingModel.visibility.in_([v.value for v in visibilities]))
        if fixed_pool_only:
            stmt = stmt.where(RankingModel.source_type.is_not(None))
        if source_type is not None:
            stmt = stmt.where(RankingModel.source_type == source_type.value)
        if source_id is not None:
            stmt = stmt.where(RankingModel.source_id == source_id)
        stmt = stmt.order_by(RankingModel.updated_at.desc(), RankingModel.created_at.desc())
        if limit is not None:
            stmt = stmt.limit(limit)

        result = await self.session.execute(stmt)
        return [
            RankingSummary(
                ranking=_ranking_from_model(model, include_items=False),
                item_count=int(item_count),
                like_count=int(like_count),
                owner_username=username,
                owner_display_name=display_name,
            )
            for model, item_count, like_count, username, display_name in result.all()
        ]

    async def add_like(self, ranking_id: str, user_id: str) -> bool:
        existing = await self.session.get(RankingLikeModel, (ranking_id, user_id))
        if existing is not None:
            return False
        self.session.add(RankingLikeModel(ranking_id=ranking_id, user_id=user_id))
        await self.session.flush()
        return True

    async def count_likes_received(
        self, owner_id: str, visibilities: Sequence[Visibility] | None = None
    ) -> int:
        stmt = (
            select(func.count())
            .select_from(RankingLikeModel)
            .join(RankingModel, RankingModel.id == RankingLikeModel.ranking_id)
            .where(RankingModel.user_id == owner_id)
        )
        if visibilities is not None:
            stmt = stmt.where(RankingModel.visibility.in_([v.value for v in visibilities]))
        return int(await self.session.scalar(stmt) or 0)


class CatalogRepository(ICatalogRepository):
    """Upsert/lookup for the denormalized artists/albums/tracks cache."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def _upsert(
        self, model: type[Any], rows: list[dict[str, Any]], overwrite: bool = True
    ) -> None:
        if not rows:
            return
        stmt = _upsert_insert(self.session, model).values(rows)
        if not overwrite:
            await self.session.execute(stmt.on_conflict_do_nothing(index_elements=["id"]))
            return
        update_columns = {key: stmt.excluded[key] for key in rows[0] if key != "id"}
        stmt = stmt.on_conflict_do_update(index_elements=["id"], set_=update_columns)
        await self.session.execute(stmt)

    async def upsert_artists(
        self, artists: Sequence[CatalogArtist], overwrite: bool = True
    ) -> None:
        now = utc_now()
        await self._upsert(
            ArtistModel,
            [
                {
                    "id": a.id,
                    "name": a.name,
                    "image_url": a.image_url,
                    "genres": list(a.genres),
                    "popularity": a.popularity,
                    "spotify_url": a.spotify_url,
                    "updated_at": now,
                }
                for a in artists
            ],
            overwrite=overwrite,
        )

    async def upsert_albums(self, albums: Sequence[CatalogAlbum]) -> None:
        now = utc_now()
        await self._upsert(
            AlbumModel,
            [
                {
                    "id": a.id,
                    "name": a.name,
                    "artist_id": a.primary_artist.id if a.primary_artist else None,
                    "image_url": a.image_url,
                    "release_date": a.release_date,
                    "total_tracks": a.total_tracks,
                    "spotify_url": a.spotify_url,
                    "updated_at": now,
                }
                for a in albums
            ],
        )

    async def upsert_tracks(self, tracks: Sequence[CatalogTrack]) -> None:
        now = utc_now()
        await self._upsert(
            TrackModel,
            [
                {
                    "id": t.id,
                    "name": t.name,
                    "artist_id": t.artists[0].id if t.artists else None,
                    "album_id": t.album.id if t.album else None,
                    "image_url": t.image_url,
                    "duration_ms": t.duration_ms,
                    "track_number": t.track_number,
                    "spotify_url": t.spotify_url,
                    "updated_at": now,
                }
                for t in tracks
            ],
        )

    async def get_artists(self, ids: Sequence[str]) -> list[CatalogArtist]:
        if not ids:
            return []
        result = await self.session.execute(
            select(ArtistModel).where(ArtistModel.id.in_(list(ids)))
        )
        return [
            CatalogArtist(
                id=m.id,
                name=m.name,
                image_url=m.image_url,
                genres=list(m.genres or []),
                popularity=m.popularity,
                spotify_url=m.spotify_url,
            )
            for m in result.scalars().all()
        ]

    async def get_albums(self, ids: Sequence[str]) -> list[tuple[CatalogAlbum, str | None]]:
        if not ids:
            return []
        result = await self.session.execute(
            select(AlbumModel).where(AlbumModel.id.in_(list(ids)))
        )
        return [
            (
                CatalogAlbum(
                    id=m.id,
                    name=m.name,
                    artists=[ArtistRef(id=m.artist_id, name="")] if m.artist_id else [],
                    image_url=m.image_url,
                    release_date=m.release_date,
                    total_tracks=m.total_tracks,
                    spotify_url=m.spotify_url,
                ),
                m.artist_id,
            )
            for m in result.scalars().all()
        ]

    async def get_tracks(self, ids: Sequence[str]) -> list[CatalogTrack]:
        if not ids:
            return []
        result = await self.session.execute(
            select(TrackModel).where(TrackModel.id.in_(list(ids)))
        )
        return [
            CatalogTrack(
                id=m.id,
                name=m.name,
                duration_ms=m.duration_ms,
                track_number=m.track_number,
                image_url=m.image_url,
                spotify_url=m.spotify_url,
            )
            for m in result.scalars().all()
        ]


class NotificationRepository(INotificationRepository):
    """SQLAlchemy implementation of Notification repository."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def add(self, notification: Notification) -> None:
        self.session.add(
            NotificationModel(
                id=notification.id,
                user_id=notification.user_id,
                type=notification.type.value,
                data=notification.data,
                is_read=notification.is_read,
                created_at=notification.created_at,
            )
        )
        await self.session.flush()

    async def list_for_user(
        self, user_id: str, limit: int, unread_only: bool = False
    ) -> list[Notification]:
        stmt = select(NotificationModel).where(NotificationModel.user_id == user_id)
        if unread_only:
            stmt = stmt.where(NotificationModel.is_read.is_(False))
        stmt = stmt.order_by(NotificationModel.created_at.desc()).limit(limit)
        result = await self.session.execute(stmt)
        return [_notification_from_model(m) for m in result.scalars().all()]

    async def mark_read(self, user_id: str, notification_ids: Sequence[str]) -> int:
        if not notification_ids:
            return 0
        stmt = (
            update(NotificationModel)
            .where(
                NotificationModel.user_id == user_id,
                NotificationModel.id.in_(list(notification_ids)),
            )
            .values(is_read=True)
        )
        result = await self.session.execute(stmt)
        return int(result.rowcount or 0)  # type: ignore[attr-defined]

    async def mark_all_read(self, user_id: str) -> int:
        stmt = (
            update(NotificationModel)
            .where(NotificationModel.user_id == user_id, NotificationModel.is_read.is_(False))
            .values(is_read=True)
        )
        result = await self.session.execute(stmt)
        return int(result.rowcount or 0)  # type: ignore[attr-defined]

    # Hey future me - JSON path filters differ per dialect (->> vs json_extract), so we pull the
    # user's unread friend_request rows and match the payload in Python. That set is tiny.
    async def mark_friend_request_read(self, user_id: str, friend_request_id: str) -> int:
        stmt = select(NotificationModel.id, NotificationModel.data).where(
            NotificationModel.user_id == user_id,
            NotificationModel.type == NotificationType.FRIEND_REQUEST.value,
            NotificationModel.is_read.is_(False),
        )
        result = await self.session.execute(stmt)
        matching = [
            notification_id
            for notification_id, data in result.all()
            if (data or {}).get("friend_request_id") == friend_request_id
        ]
        return await self.mark_read(user_id, matching)


class SessionRepository(ISessionRepository):
    """Read side of the identity integration's session table."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def add(self, session_id: str, user_id: str, expires_at: datetime) -> None:
        self.session.add(
            UserSessionModel(session_id=session_id, user_id=user_id, expires_at=expires_at)
        )
        await self.session.flush()

    async def get_user_id(self, session_id: str, now: datetime) -> str | None:
        model = await self.session.get(UserSessionModel, session_id)
        if model is None:
            return None
        if ensure_utc_aware(model.expires_at) <= now:
            return None
        return model.user_id
