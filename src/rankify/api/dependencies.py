"""FastAPI dependency providers: DB session, current user, services."""

from collections.abc import AsyncGenerator

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from rankify.application.services import (
    FriendService,
    NotificationService,
    ProfileService,
    RankingQueryService,
    RankingService,
)
from rankify.config import Settings
from rankify.domain.entities import utc_now
from rankify.domain.exceptions import AuthenticationError
from rankify.infrastructure.integrations import SpotifyCatalogClient
from rankify.infrastructure.notifications import NotificationBroker
from rankify.infrastructure.persistence import (
    Database,
    NotificationRepository,
    SessionRepository,
)


def get_settings_from_app(request: Request) -> Settings:
    settings: Settings = request.app.state.settings
    return settings


# One session per request; every dependency below asking for it gets the SAME session
# (FastAPI caches dependency results per request), so all writes share one transaction.
async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session: commits on success, rolls back on error."""
    db: Database = request.app.state.db
    async with db.session_scope() as session:
        yield session


def get_broker(request: Request) -> NotificationBroker:
    broker: NotificationBroker = request.app.state.broker
    return broker


def get_catalog_client(request: Request) -> SpotifyCatalogClient:
    client: SpotifyCatalogClient = request.app.state.catalog_client
    return client


def parse_bearer_token(authorization: str) -> str:
    """Strip a case-insensitive "Bearer " prefix; a raw value is taken as-is."""
    if authorization.lower().startswith("bearer "):
        return authorization[7:].strip()
    return authorization.strip()


# Authorization header wins over the cookie. A blank header falls back to the cookie.
async def get_session_id(
    request: Request,
    authorization: str | None = Header(None),
) -> str | None:
    if authorization and authorization.strip():
        return parse_bearer_token(authorization) or None
    cookie_name = get_settings_from_app(request).api.session_cookie_name
    return request.cookies.get(cookie_name) or None


async def resolve_user_id(session: AsyncSession, session_id: str | None) -> str:
    """Map a session id to its user id.

    Raises:
        AuthenticationError: missing, unknown or expired session
    """
    if not session_id:
        raise AuthenticationError("Not authenticated")
    user_id = await SessionRepository(session).get_user_id(session_id, utc_now())
    if user_id is None:
        raise AuthenticationError("Session expired or invalid")
    return user_id


async def get_current_user_id(
    session_id: str | None = Depends(get_session_id),
    session: AsyncSession = Depends(get_db_session),
) -> str:
    return await resolve_user_id(session, session_id)


# Hey future me - the SSE stream must NOT hold a request-scoped DB session for its whole
# lifetime (that is one pooled connection per open browser tab). Authenticate with a
# short-lived session and let it go before streaming starts.
async def get_stream_user_id(
    request: Request,
    session_id: str | None = Depends(get_session_id),
) -> str:
    db: Database = request.app.state.db
    async with db.session_scope() as session:
        return await resolve_user_id(session, session_id)


def get_profile_service(session: AsyncSession = Depends(get_db_session)) -> ProfileService:
    return ProfileService(session)


def get_friend_service(
    session: AsyncSession = Depends(get_db_session),
    broker: NotificationBroker = Depends(get_broker),
) -> FriendService:
    return FriendService(session, broker)


def get_ranking_service(
    session: AsyncSession = Depends(get_db_session),
    broker: NotificationBroker = Depends(get_broker),
) -> RankingService:
    return RankingService(session, broker)


def get_ranking_query_service(
    session: AsyncSession = Depends(get_db_session),
) -> RankingQueryService:
    return RankingQueryService(session)


def get_notification_service(
    request: Request,
    session: AsyncSession = Depends(get_db_session),
    broker: NotificationBroker = Depends(get_broker),
) -> NotificationService:
    settings = get_settings_from_app(request).notifications
    return NotificationService(
        NotificationRepository(session),
        broker,
        default_limit=settings.default_limit,
        max_limit=settings.max_limit,
    )
