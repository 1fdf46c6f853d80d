"""
Command-line runner for a single crawler agent.

Usage:
    python -m manga_crawler.main search "one piece"
    python -m manga_crawler.main manga one-piece.2
    python -m manga_crawler.main chapters one-piece.2
    python -m manga_crawler.main pages https://mangakatana.com/manga/one-piece.2/c1000
    python -m manga_crawler.main --site mangakatana favicon

Results are printed to stdout as JSON; logs go to stderr.
"""

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import fields, is_dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, List, Optional

from playwright.async_api import Error as PlaywrightError

from manga_crawler.agents import AGENTS, CrawlerAgent, get_agent
from manga_crawler.catalog import UNTITLED_CHAPTER, UNTITLED_MANGA, Chapter, ChapterBuilder, MangaBuilder
from manga_crawler.errors import CrawlerError
from manga_crawler.utils import last_path_segment

logger = logging.getLogger('manga_crawler.main')


def to_jsonable(value: Any) -> Any:
    """Entities -> plain JSON types. Parent back-references are left out."""
    if is_dataclass(value):
        return {
            f.name: to_jsonable(getattr(value, f.name))
            for f in fields(value)
            if f.name != 'parent'
        }
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    return value


def chapter_from_url(url: str) -> Chapter:
    """Minimal Chapter for a reader URL: .../manga/<manga-id>/<chapter-id>"""
    chapter_id = last_path_segment(url)
    manga_id = last_path_segment(url.rstrip('/').rsplit('/', 1)[0]) or chapter_id
    manga = MangaBuilder.create().with_id(manga_id).with_title(UNTITLED_MANGA).build()
    return (
        ChapterBuilder.create()
        .with_id(chapter_id)
        .with_title(UNTITLED_CHAPTER)
        .with_parent_manga(manga)
        .with_uri(url)
        .build()
    )


async def run(agent: CrawlerAgent, command: str, argument: Optional[str]) -> Any:
    async with agent:
        if command == 'favicon':
            return await agent.get_favicon()
        if command == 'search':
            return await agent.search(argument)
        if command == 'manga':
            return await agent.get_by_id(argument)
        if command == 'chapters':
            manga = await agent.get_by_id(argument)
            return await agent.get_chapters(manga)
        if command == 'pages':
            return await agent.get_chapter_pages(chapter_from_url(argument))
        raise ValueError(f"Unknown command: {command}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Manga site crawler agent')
    parser.add_argument(
        '--site', '-s',
        choices=sorted(AGENTS),
        default='mangakatana',
        help='site agent to use (default: mangakatana)'
    )
    parser.add_argument('--timeout-ms', type=int, help='navigation timeout in milliseconds')
    parser.add_argument('--user-agent', help='User-Agent for the browser and HTTP client')
    parser.add_argument('--verbose', '-v', action='store_true', help='debug logging')
    parser.add_argument(
        'command',
        choices=['search', 'manga', 'chapters', 'pages', 'favicon'],
    )
    parser.add_argument('argument', nargs='?', help='query, manga id or chapter URL')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command != 'favicon' and not args.argument:
        parser.error(f"'{args.command}' needs an argument")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr,
    )

    options = {'timeout_ms': args.timeout_ms, 'user_agent': args.user_agent}
    agent = get_agent(args.site, options)

    try:
        result = asyncio.run(run(agent, args.command, args.argument))
    except KeyboardInterrupt:
        logger.info("⚠️ Interrupted by user")
        return 130
    except (CrawlerError, PlaywrightError) as e:
        logger.error(f"❌ {args.site} {args.command} failed: {e}")
        return 1

    print(json.dumps(to_jsonable(result), ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
