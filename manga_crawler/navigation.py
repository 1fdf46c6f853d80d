"""
Navigation protocol used by every agent operation.

One call = one new tab, one goto() waiting for network idle, one read of the
rendered markup. The tab is closed on every exit path. No retries.
"""

import asyncio
import logging
from typing import Optional

from playwright.async_api import Browser
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from manga_crawler.errors import NavigationCancelled, NavigationTimeout

logger = logging.getLogger('manga_crawler.navigation')

WAIT_UNTIL = 'networkidle'


async def _abandon(goto: asyncio.Future):
    """Cancel a pending load and collect its outcome."""
    goto.cancel()
    try:
        await goto
    except (asyncio.CancelledError, Exception):
        # outcome of the abandoned load is irrelevant once cancelled
        pass


async def _goto_unless_cancelled(page, url: str, timeout_ms: int,
                                 cancel_event: asyncio.Event):
    goto = asyncio.ensure_future(
        page.goto(url, wait_until=WAIT_UNTIL, timeout=timeout_ms)
    )
    cancelled = asyncio.ensure_future(cancel_event.wait())
    try:
        await asyncio.wait({goto, cancelled}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        await _abandon(goto)
        raise
    finally:
        cancelled.cancel()

    if not goto.done():
        await _abandon(goto)
        raise NavigationCancelled(url)

    return goto.result()


async def navigate(browser: Browser, url: str, timeout_ms: int, user_agent: str,
                   cancel_event: Optional[asyncio.Event] = None) -> str:
    """
    Load url in a fresh tab and return the rendered markup.

    Args:
        browser: Shared browser of the agent
        url: Absolute URL to load
        timeout_ms: Hard bound for reaching network idle
        user_agent: User-Agent of the tab
        cancel_event: Set by the caller to abandon the load

    Returns:
        page.content() after the network went idle

    Raises:
        NavigationTimeout: network idle not reached within timeout_ms
        NavigationCancelled: cancel_event was set before the load finished
    """
    if cancel_event is not None and cancel_event.is_set():
        raise NavigationCancelled(url)

    page = await browser.new_page(user_agent=user_agent)
    try:
        logger.debug(f"goto {url} (timeout {timeout_ms} ms)")
        if cancel_event is None:
            await page.goto(url, wait_until=WAIT_UNTIL, timeout=timeout_ms)
        else:
            await _goto_unless_cancelled(page, url, timeout_ms, cancel_event)
        content = await page.content()
        logger.debug(f"loaded {url} ({len(content)} chars)")
        return content
    except PlaywrightTimeoutError as e:
        raise NavigationTimeout(url, timeout_ms) from e
    finally:
        await page.close()
