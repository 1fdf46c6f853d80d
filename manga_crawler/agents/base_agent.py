"""
Base agent class for crawler system.

Provides the standardized capability set every site adapter implements, and
owns the shared browser session the adapter's operations run on.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Iterable, List, Mapping, Optional

import lxml.html

from manga_crawler.catalog import (
    Chapter,
    Manga,
    Page,
    PagedResult,
    PagedResultBuilder,
    PaginationOptions,
)
from manga_crawler.config import AgentOptions
from manga_crawler.navigation import navigate
from manga_crawler.session import BrowserSession, Launcher
from manga_crawler.utils import parse_html


class CrawlerAgent(ABC):
    """
    Base class for all crawler agents.

    Each site implements this interface with site-specific URLs and
    extraction. Every operation except get_favicon() opens exactly one tab,
    performs one navigation and closes the tab, whatever the outcome.

    Agents must be closed explicitly, either with `await agent.aclose()` or
    by using the agent as an async context manager.
    """

    site_id: str = ''
    display_name: str = ''
    base_url: str = ''
    favicon_url: str = ''

    def __init__(self, options: Optional[Mapping[str, Any]] = None,
                 launcher: Optional[Launcher] = None):
        """
        Initialize crawler agent.

        Args:
            options: Loose options mapping ('timeout_ms', 'user_agent');
                     unknown keys are ignored
            launcher: Optional browser launcher, see BrowserSession
        """
        self.options = AgentOptions.from_mapping(options)
        self.session = BrowserSession(self.base_url, self.options, launcher=launcher)
        self.logger = logging.getLogger(f'manga_crawler.agents.{self.site_id}')

    @property
    def timeout_ms(self) -> int:
        return self.options.timeout_ms

    @property
    def user_agent(self) -> str:
        return self.options.user_agent

    async def render(self, url: str,
                     cancel_event: Optional[asyncio.Event] = None) -> lxml.html.HtmlElement:
        """Navigate to url in a new tab and parse the rendered markup."""
        browser = await self.session.acquire_browser()
        markup = await navigate(
            browser, url, self.timeout_ms, self.user_agent, cancel_event=cancel_event
        )
        return parse_html(markup)

    @staticmethod
    def paged(items: Iterable) -> PagedResult:
        """Single-page result sized to the extracted set."""
        return PagedResultBuilder.create().with_data(items).build()

    @abstractmethod
    async def get_by_id(self, manga_id: str,
                        cancel_event: Optional[asyncio.Event] = None) -> Manga:
        """
        Fetch one manga from its detail page.

        Raises:
            MissingStructuralAnchor: unknown id or changed layout
        """

    @abstractmethod
    async def get_chapters(self, manga: Manga,
                           pagination: Optional[PaginationOptions] = None,
                           cancel_event: Optional[asyncio.Event] = None) -> PagedResult[Chapter]:
        """Chapters of manga, in the order the site lists them."""

    @abstractmethod
    async def get_chapter_pages(self, chapter: Chapter,
                                cancel_event: Optional[asyncio.Event] = None) -> List[Page]:
        """Pages of chapter in document order (not re-sorted by number)."""

    @abstractmethod
    async def search(self, query: str,
                     pagination: Optional[PaginationOptions] = None,
                     cancel_event: Optional[asyncio.Event] = None) -> PagedResult[Manga]:
        """Search the site by title. An empty result is not an error."""

    async def get_favicon(self) -> str:
        return self.favicon_url

    async def fetch_image(self, url: str) -> bytes:
        """Raw bytes of a cover or page image through the shared HTTP client."""
        return await self.session.fetch_bytes(url)

    async def aclose(self) -> None:
        await self.session.aclose()
        self.logger.debug(f"{self.display_name} agent closed")

    async def __aenter__(self) -> 'CrawlerAgent':
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
