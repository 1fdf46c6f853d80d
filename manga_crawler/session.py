"""
Browser and HTTP client ownership for one agent.

The browser is launched on first use and shared by every operation of the
agent; each operation opens its own tab. Concurrent first calls share a
single in-flight launch. aclose() releases only what was created and never
raises on browser shutdown failures.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional
from urllib.parse import urljoin

import aiohttp
from playwright.async_api import Browser, Playwright, async_playwright

from manga_crawler.config import AgentOptions
from manga_crawler.errors import FetchError

logger = logging.getLogger('manga_crawler.session')

BROWSER_ARGS = ['--no-sandbox', '--disable-setuid-sandbox']

Launcher = Callable[[], Awaitable[Browser]]


class BrowserSession:
    """Lazily created, shared Playwright browser + aiohttp client."""

    def __init__(self, base_url: str, options: AgentOptions,
                 launcher: Optional[Launcher] = None):
        """
        Args:
            base_url: Site origin, e.g. 'https://mangakatana.com'
            options: Timeout and user agent
            launcher: Coroutine function returning a Browser.
                      Defaults to headless Chromium through Playwright.
        """
        self.base_url = base_url.rstrip('/')
        self.options = options
        self._launcher = launcher or self._launch_chromium
        self._playwright: Optional[Playwright] = None
        self._browser_task: Optional[asyncio.Future] = None
        self._http_client: Optional[aiohttp.ClientSession] = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def browser_created(self) -> bool:
        return self._browser_task is not None

    @property
    def http_client_created(self) -> bool:
        return self._http_client is not None

    async def _launch_chromium(self) -> Browser:
        playwright = await async_playwright().start()
        try:
            browser = await playwright.chromium.launch(
                headless=True,
                args=BROWSER_ARGS,
                timeout=self.options.timeout_ms,
            )
        except Exception:
            await playwright.stop()
            raise
        self._playwright = playwright
        logger.debug("Chromium launched (headless)")
        return browser

    def _forget_failed_launch(self, task: asyncio.Future) -> None:
        if task.cancelled() or task.exception() is not None:
            if self._browser_task is task:
                self._browser_task = None

    async def acquire_browser(self) -> Browser:
        """
        Shared browser, launched on the first call.

        The launch runs as one task that every concurrent caller awaits.
        A failed launch is reported to all of them and forgotten, so a
        later call launches again.
        """
        if self._browser_task is None:
            self._browser_task = asyncio.ensure_future(self._launcher())
            self._browser_task.add_done_callback(self._forget_failed_launch)
        # a cancelled caller must not cancel the launch the others wait on
        return await asyncio.shield(self._browser_task)

    def acquire_http_client(self) -> aiohttp.ClientSession:
        """Shared HTTP client. Must be called from a running event loop."""
        if self._http_client is None:
            self._http_client = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.options.timeout_ms / 1000),
                headers={'User-Agent': self.options.user_agent},
            )
        return self._http_client

    async def fetch_bytes(self, url: str) -> bytes:
        """Single GET through the shared client; relative URLs use the site origin."""
        target = urljoin(self.base_url + '/', url)
        client = self.acquire_http_client()
        async with client.get(target, headers={'Referer': self.base_url + '/'}) as resp:
            if not 200 <= resp.status < 300:
                raise FetchError(target, resp.status)
            return await resp.read()

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True

        if self._http_client is not None:
            client, self._http_client = self._http_client, None
            await client.close()

        if self._browser_task is not None:
            task, self._browser_task = self._browser_task, None
            try:
                browser = await task
                await browser.close()
            except Exception as e:
                logger.error(f"Error disposing browser: {e}")

        if self._playwright is not None:
            playwright, self._playwright = self._playwright, None
            try:
                await playwright.stop()
            except Exception as e:
                logger.error(f"Error stopping Playwright: {e}")

    async def __aenter__(self) -> 'BrowserSession':
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
