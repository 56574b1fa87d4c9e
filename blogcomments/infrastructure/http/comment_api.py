"""
HTTP implementation of the comment persistence API (httpx).
"""

from __future__ import annotations

from typing import Any, Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from blogcomments.core.config import Settings, get_settings
from blogcomments.core.exceptions import (
    AlreadyLikedError,
    AuthenticationError,
    ConflictError,
    NetworkFailureError,
    NotFoundError,
    NotLikedError,
    PayloadError,
    UnauthorizedError,
    ValidationError,
)
from blogcomments.core.logger import setup_logger
from blogcomments.interfaces.comment_api import ICommentApi
from blogcomments.models.comment import Comment, CommentCreate, CommentPage, CommentUpdate
from blogcomments.services.payload_normalizer import (
    normalize_comment_list,
    normalize_comment_page,
    normalize_single_comment,
)

logger = setup_logger(__name__)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("message", "error", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return response.reason_phrase or f"HTTP {response.status_code}"


class HttpCommentApi(ICommentApi):
    """Comment API client over the blog backend's REST endpoints."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        token: Optional[str] = None,
        viewer_id: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._settings = settings or get_settings()
        self._token = token
        # User the server evaluates `isLiked` for
        self._viewer_id = viewer_id
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._settings.API_BASE_URL,
                timeout=self._settings.API_TIMEOUT_SECONDS,
            )
        return self._client

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "HttpCommentApi":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    def _raise_for_status(
        self, response: httpx.Response, comment_id: Optional[str] = None, like_action: Optional[bool] = None
    ) -> None:
        status = response.status_code
        if status < 400:
            return
        message = _error_message(response)
        logger.error("Comment API %s %s failed: %s %s", response.request.method, response.request.url, status, message)
        if status == 400:
            lowered = message.lower()
            if like_action is True and "already" in lowered:
                raise AlreadyLikedError(message, comment_id=comment_id or "", user_id=self._viewer_id or "")
            if like_action is False and "not liked" in lowered:
                raise NotLikedError(message, comment_id=comment_id or "", user_id=self._viewer_id or "")
            raise ValidationError(message)
        if status == 401:
            raise AuthenticationError(message)
        if status == 403:
            raise UnauthorizedError(message)
        if status == 404:
            raise NotFoundError(message)
        if status == 409:
            raise ConflictError(message)
        raise NetworkFailureError(message, status_code=status)

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[dict[str, Any]] = None,
        comment_id: Optional[str] = None,
        like_action: Optional[bool] = None,
    ) -> Any:
        try:
            response = await self._get_client().request(method, path, json=json, headers=self._headers())
        except httpx.HTTPError as exc:
            logger.error("Comment API %s %s transport error: %s", method, path, exc)
            raise NetworkFailureError(f"Request to {path} failed: {exc}") from exc

        self._raise_for_status(response, comment_id=comment_id, like_action=like_action)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise PayloadError(f"Response from {path} is not JSON") from exc

    async def list_comments(self, post_id: str) -> CommentPage:
        payload = await self._request("GET", f"/comments/{post_id}")
        return normalize_comment_page(payload, post_id, self._viewer_id)

    async def list_user_comments(self, user_id: str) -> list[Comment]:
        payload = await self._request("GET", f"/comments/user/{user_id}")
        return normalize_comment_list(payload, viewer_id=self._viewer_id)

    async def create_comment(
        self, comment: CommentCreate, correlation_token: Optional[str] = None
    ) -> Comment:
        body: dict[str, Any] = {
            "postId": comment.post_id,
            "content": comment.body,
            "parentId": comment.parent_id,
        }
        if correlation_token:
            body["clientToken"] = correlation_token
        payload = await self._request("POST", "/comments", json=body)
        created = normalize_single_comment(payload, comment.post_id, self._viewer_id)
        if correlation_token and created.correlation_token is None:
            # Answer to this request: the token is implied even if not echoed
            created = created.model_copy(update={"correlation_token": correlation_token})
        return created

    async def update_comment(self, post_id: str, comment_id: str, body: str) -> Comment:
        try:
            update = CommentUpdate(body=body)
        except PydanticValidationError as exc:
            raise ValidationError("Comment must be between 1 and 1000 characters") from exc
        payload = await self._request(
            "PUT", f"/comments/{post_id}/{comment_id}", json={"text": update.body}, comment_id=comment_id
        )
        return normalize_single_comment(payload, post_id, self._viewer_id)

    async def delete_comment(self, post_id: str, comment_id: str) -> None:
        await self._request("DELETE", f"/comments/{post_id}/{comment_id}", comment_id=comment_id)

    async def like_comment(self, post_id: str, comment_id: str) -> Comment:
        payload = await self._request(
            "POST", f"/comments/{post_id}/{comment_id}/like", comment_id=comment_id, like_action=True
        )
        return normalize_single_comment(payload, post_id, self._viewer_id)

    async def unlike_comment(self, post_id: str, comment_id: str) -> Comment:
        payload = await self._request(
            "DELETE", f"/comments/{post_id}/{comment_id}/like", comment_id=comment_id, like_action=False
        )
        return normalize_single_comment(payload, post_id, self._viewer_id)
