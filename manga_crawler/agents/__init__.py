"""
Agent-based crawler system for manga catalog sites.

Each site is implemented as an independent agent with:
- Its own lazily launched, shared headless browser
- A standardized interface (get_by_id, get_chapters, get_chapter_pages, search, get_favicon)
- Explicit async teardown (aclose / async with)
"""

from typing import Any, Dict, Mapping, Optional, Type

from .base_agent import CrawlerAgent
from .mangakatana_agent import MangaKatanaAgent

AGENTS: Dict[str, Type[CrawlerAgent]] = {
    MangaKatanaAgent.site_id: MangaKatanaAgent,
}


def get_agent(site_id: str, options: Optional[Mapping[str, Any]] = None) -> CrawlerAgent:
    """Instantiate the agent registered for site_id."""
    try:
        agent_cls = AGENTS[site_id]
    except KeyError:
        raise KeyError(f"Unknown site '{site_id}'. Known sites: {', '.join(sorted(AGENTS))}") from None
    return agent_cls(options)


__all__ = ['AGENTS', 'CrawlerAgent', 'MangaKatanaAgent', 'get_agent']
