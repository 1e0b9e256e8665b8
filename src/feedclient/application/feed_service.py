"""Service for reading and publishing posts on the feed service"""

import logging
from typing import Any, Dict, List, Optional

from feedclient.application.api_service import ApiService
from feedclient.domain.models.outcome import Success
from feedclient.domain.models.page import Page
from feedclient.infrastructure.http.cancellation import CancellationToken

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 280


class FeedService(ApiService):
    """Global and per-user feeds, and publishing posts.

    Obtaining and refreshing the bearer token is the caller's concern; pass
    the current token in at construction.
    """

    service_name = "feed"

    def __init__(self, *args, access_token: Optional[str] = None, **kwargs):
        super().__init__(*args, **kwargs)
        if access_token:
            self.headers["Authorization"] = f"Bearer {access_token}"

    def get_all_feeds(
        self, page: int = 0, size: int = 20, cancel_token: Optional[CancellationToken] = None
    ) -> Page:
        """Get a page of the global feed"""
        feeds = self._get_page("/api/feed/all", {"page": page, "size": size}, cancel_token)
        logger.debug(f"Fetched {len(feeds)} posts from the global feed")
        return feeds

    def get_user_feeds(
        self,
        user_id: str,
        page: int = 0,
        size: int = 20,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Page:
        """Get a page of posts by ``user_id``"""
        feeds = self._get_page(f"/api/feed/user/{user_id}", {"page": page, "size": size}, cancel_token)
        logger.debug(f"Fetched {len(feeds)} posts for user {user_id}")
        return feeds

    def create_post(
        self,
        message: str,
        image_ids: Optional[List[str]] = None,
        user_id: Optional[str] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Dict[str, Any]:
        """Publish a post

        Args:
            message: Post text, at most MAX_MESSAGE_LENGTH characters
            image_ids: IDs of images uploaded beforehand
            user_id: Author ID, sent as ``userId`` when given

        Returns:
            The created post

        Raises:
            ValueError: If the message is empty or too long
            FetchError: If the request fails
        """
        text = (message or "").strip()
        if not text:
            raise ValueError("Message cannot be empty")
        if len(text) > MAX_MESSAGE_LENGTH:
            raise ValueError(f"Message cannot exceed {MAX_MESSAGE_LENGTH} characters")

        payload: Dict[str, Any] = {"message": text, "imageIds": list(image_ids or [])}
        if user_id:
            payload["userId"] = user_id
        post = self._post("/api/feed/create", payload, cancel_token)
        logger.info(f"Created post {post.get('id') if isinstance(post, dict) else post!r}")
        return post

    def check_health(self) -> bool:
        """Check the feed service health endpoint

        Returns:
            True only if the service reports status UP; never raises
        """
        outcome = self.orchestrator.fetch_with_retry(self.build_request("/api/feed/health"))
        if not isinstance(outcome, Success):
            logger.warning(f"Feed service health check failed: {outcome.classification.describe()}")
            return False
        payload = outcome.payload
        healthy = isinstance(payload, dict) and payload.get("status") == "UP"
        if not healthy:
            logger.warning(f"Feed service health check returned {payload!r}")
        return healthy
