"""
Wiring helpers.

Builds the store, API client, auth provider and sync service from settings.
"""

from functools import lru_cache
from typing import Optional

import httpx

from blogcomments.core.config import Settings, get_settings
from blogcomments.interfaces.auth_provider import IAuthProvider
from blogcomments.interfaces.comment_api import ICommentApi
from blogcomments.interfaces.comment_store import ICommentStore
from blogcomments.models.user import Viewer
from blogcomments.services.comment_sync_service import CommentSyncService


@lru_cache()
def get_auth_provider() -> IAuthProvider:
    """Get auth provider instance."""
    settings = get_settings()
    if settings.AUTH_PROVIDER == "jwt":
        from blogcomments.infrastructure.auth.jwt_auth import JwtAuthProvider

        return JwtAuthProvider(settings)

    if settings.is_production:
        raise ValueError("Mock auth must not be used in production; set AUTH_PROVIDER=jwt")

    from blogcomments.infrastructure.local.mock_auth import MockAuthProvider
    return MockAuthProvider(enabled=True)


def create_comment_store(settings: Optional[Settings] = None) -> ICommentStore:
    """Create a fresh store for one client session."""
    from blogcomments.infrastructure.local.comment_store import InMemoryCommentStore

    return InMemoryCommentStore(settings=settings or get_settings())


def create_comment_api(
    token: Optional[str] = None,
    viewer_id: Optional[str] = None,
    settings: Optional[Settings] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> ICommentApi:
    """Create the HTTP comment API client."""
    from blogcomments.infrastructure.http.comment_api import HttpCommentApi

    return HttpCommentApi(
        settings=settings or get_settings(),
        token=token,
        viewer_id=viewer_id,
        client=client,
    )


def create_sync_service(
    viewer: Optional[Viewer] = None,
    token: Optional[str] = None,
    settings: Optional[Settings] = None,
    store: Optional[ICommentStore] = None,
    api: Optional[ICommentApi] = None,
) -> CommentSyncService:
    """Create a sync service wired to a store and the HTTP API."""
    settings = settings or get_settings()
    return CommentSyncService(
        store=store or create_comment_store(settings),
        api=api or create_comment_api(token, viewer.id if viewer else None, settings),
        viewer=viewer,
        settings=settings,
    )


async def create_session(
    token: str, settings: Optional[Settings] = None
) -> CommentSyncService:
    """Authenticate a bearer token and build the viewer's sync service."""
    viewer = await get_auth_provider().verify_token(token)
    return create_sync_service(viewer=viewer, token=token, settings=settings)
