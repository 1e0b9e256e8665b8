"""Service for reading news articles from the news service"""

import logging
from typing import Any, Dict, Optional

from feedclient.application.api_service import ApiService
from feedclient.domain.models.page import Page
from feedclient.infrastructure.http.cancellation import CancellationToken

logger = logging.getLogger(__name__)


class NewsService(ApiService):
    """News article listings, single articles and AI summaries"""

    service_name = "news"

    def get_all_news(
        self,
        page: int = 0,
        size: int = 20,
        category: Optional[str] = None,
        source: Optional[str] = None,
        search: Optional[str] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Page:
        """Get a page of news articles, optionally filtered

        Args:
            page: Zero-based page number
            size: Page size
            category: Only articles in this category
            source: Only articles from this source
            search: Free-text search

        Returns:
            Page of articles
        """
        params = {"page": page, "size": size, "category": category, "source": source, "search": search}
        return self._get_page("/api/news", params, cancel_token)

    def get_news_by_id(self, news_id: int, cancel_token: Optional[CancellationToken] = None) -> Dict[str, Any]:
        """Get a single news article"""
        return self._get(f"/api/news/{news_id}", cancel_token=cancel_token)

    def get_recent_news(
        self,
        page: int = 0,
        size: int = 20,
        hours: int = 24,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Page:
        """Get articles published within the last ``hours`` hours"""
        params = {"page": page, "size": size, "hours": hours}
        return self._get_page("/api/news/recent", params, cancel_token)

    def get_trending_news(
        self,
        page: int = 0,
        size: int = 20,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Page:
        """Get trending articles"""
        return self._get_page("/api/news/trending", {"page": page, "size": size}, cancel_token)

    def get_news_with_summary(
        self, news_id: int, cancel_token: Optional[CancellationToken] = None
    ) -> Dict[str, Any]:
        """Get an article together with its AI-generated detailed summary"""
        logger.debug(f"Fetching news with AI summary for ID: {news_id}")
        return self._get(f"/api/news/{news_id}/summary", cancel_token=cancel_token)
