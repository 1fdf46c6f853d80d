"""
MangaKatana (mangakatana.com) crawler agent

Site notes:
- Pages are finished by client-side scripts, so everything goes through the
  browser and waits for network idle
- Detail page: #single_book (info list, genres, summary, chapter table)
- Search: /?search=<q>&search_by=book_name -> #book_list > div.item
  A single exact hit redirects straight to that manga's detail page
- Chapter reader: #imgs > div.wrap_img[id="page<n>"] > img[data-src]
"""

import asyncio
import logging
import re
from typing import List, Optional
from urllib.parse import quote, urlencode

from manga_crawler.agents.base_agent import CrawlerAgent
from manga_crawler.catalog import (
    UNTITLED_CHAPTER,
    UNTITLED_MANGA,
    Chapter,
    ChapterBuilder,
    Manga,
    MangaBuilder,
    Page,
    PageBuilder,
    PagedResult,
    PaginationOptions,
)
from manga_crawler.errors import MissingStructuralAnchor
from manga_crawler.utils import (
    absolute_url,
    attr,
    file_name_from_url,
    first_number,
    lazy_image_source,
    last_path_segment,
    node_text,
    parse_chapter_number,
    parse_release_status,
    parse_volume,
    parse_year,
    select_all,
    select_one,
    text_or_default,
)

logger = logging.getLogger('manga_crawler.agents.mangakatana')

BASE_URL = 'https://mangakatana.com'
FAVICON_URL = 'https://mangakatana.com/static/img/fav.png'

# structural anchors
DETAIL_ROOT = "//*[@id='single_book']"
BOOK_LIST_ROOT = "//*[@id='book_list']"
READER_ROOT = "//div[@id='imgs']"

BOOK_LIST_ITEMS = "./div[contains(@class, 'item')]"
CHAPTER_ROWS = ".//div[@class='chapters']//tr"
PAGE_CONTAINERS = ".//div[contains(@class, 'wrap_img')]"

PAGE_ID_PATTERN = re.compile(r'^page(\d+(?:\.\d+)?)$')


def detail_url(manga_id: str, base_url: str = BASE_URL) -> str:
    return f"{base_url}/manga/{quote(manga_id)}"


def search_url(query: str, base_url: str = BASE_URL) -> str:
    return f"{base_url}/?{urlencode({'search': query, 'search_by': 'book_name'})}"


def convert_manga_from_list(item, base_url: str = BASE_URL) -> Optional[Manga]:
    """
    One search grid card -> Manga.

    A card without its title link still yields a record (sentinel title, id
    from the cover link). A card with no link at all cannot be identified
    and is dropped.
    """
    title_node = select_one(item, ".//h3[@class='title']/a")
    href = attr(title_node, 'href') or attr(
        select_one(item, ".//div[contains(@class, 'wrap_img')]//a"), 'href'
    )
    url = absolute_url(base_url, href)
    manga_id = last_path_segment(url)
    if not manga_id:
        logger.debug("Search card without any manga link skipped")
        return None

    cover_url = absolute_url(
        base_url, lazy_image_source(select_one(item, ".//div[contains(@class, 'wrap_img')]//img"))
    )
    status = node_text(select_one(item, ".//div[contains(@class, 'status')]"))
    release_date = node_text(
        select_one(item, ".//div[@class='uk-width-1-2']/div[contains(@class, 'date')]")
    )
    genres = [node_text(a) for a in select_all(item, ".//div[contains(@class, 'genres')]//a")]
    summary = node_text(select_one(item, ".//div[contains(@class, 'summary')]"))

    return (
        MangaBuilder.create()
        .with_id(manga_id)
        .with_title(text_or_default(title_node, UNTITLED_MANGA))
        .with_description(summary)
        .with_website_url(url)
        .with_cover_url(cover_url)
        .with_cover_file_name(file_name_from_url(cover_url))
        .with_tags(genres)
        .with_release_status(parse_release_status(status))
        .with_year(parse_year(release_date))
        .with_is_family_safe(True)
        .build()
    )


def convert_manga_from_detail(root, manga_id: str, base_url: str = BASE_URL) -> Manga:
    """#single_book -> Manga. The id is the one the page was requested with."""
    cover_url = absolute_url(base_url, lazy_image_source(select_one(root, ".//div[@class='cover']//img")))
    status = node_text(select_one(root, ".//div[contains(@class, 'status')]"))
    release_date = node_text(select_one(root, ".//div[contains(@class, 'updateAt')]"))
    genres = [node_text(a) for a in select_all(root, ".//div[@class='genres']//a")]

    summary_node = select_one(root, ".//div[@class='summary']/p")
    if summary_node is None:
        summary_node = select_one(root, ".//div[@class='summary']")

    latest_chapter = node_text(select_one(
        root,
        ".//li[div[@class='d-cell-small label' and contains(text(), 'Latest chapter')]]"
        "//div[@class='new_chap']",
    ))

    return (
        MangaBuilder.create()
        .with_id(manga_id)
        .with_title(text_or_default(select_one(root, ".//h1[@class='heading']"), UNTITLED_MANGA))
        .with_description(node_text(summary_node))
        .with_website_url(detail_url(manga_id, base_url))
        .with_cover_url(cover_url)
        .with_cover_file_name(file_name_from_url(cover_url))
        .with_tags(genres)
        .with_latest_chapter_available(first_number(latest_chapter))
        .with_release_status(parse_release_status(status))
        .with_year(parse_year(release_date))
        .with_is_family_safe(True)
        .build()
    )


def convert_chapters_from_detail(manga: Manga, root, base_url: str = BASE_URL) -> List[Chapter]:
    """Chapter table rows -> Chapters, in table order. Rows without a link are skipped."""
    chapters = []

    for row in select_all(root, CHAPTER_ROWS):
        link = select_one(row, ".//div[@class='chapter']/a")
        if link is None:
            continue

        uri = absolute_url(base_url, attr(link, 'href'))
        chapter_id = last_path_segment(uri)
        if not chapter_id:
            logger.debug("Chapter row without href skipped")
            continue

        title = text_or_default(link, UNTITLED_CHAPTER)
        chapters.append(
            ChapterBuilder.create()
            .with_id(chapter_id)
            .with_title(title)
            .with_parent_manga(manga)
            .with_volume(parse_volume(title))
            .with_number(parse_chapter_number(title))
            .with_uri(uri)
            .with_updated_at(node_text(select_one(row, ".//div[@class='update_time']")))
            .build()
        )

    return chapters


def convert_chapter_pages(chapter: Chapter, containers) -> List[Page]:
    """
    Reader image containers -> Pages, in document order.

    A container is kept only when its id is 'page<number>' and its image has
    a data-src or src.
    """
    pages = []

    for node in containers:
        page_id = attr(node, 'id')
        match = PAGE_ID_PATTERN.match(page_id)
        if not match:
            continue

        image_url = absolute_url(chapter.uri, lazy_image_source(select_one(node, './/img')))
        if not image_url:
            logger.debug(f"{page_id}: no usable image source, dropped")
            continue

        pages.append(
            PageBuilder.create()
            .with_chapter_id(chapter.id)
            .with_id(page_id)
            .with_page_number(first_number(match.group(1)))
            .with_image_url(image_url)
            .with_parent_chapter(chapter)
            .build()
        )

    return pages


def convert_search_results(document, base_url: str = BASE_URL) -> List[Manga]:
    book_list = select_one(document, BOOK_LIST_ROOT)

    if book_list is None:
        # exact match: the site answers with the detail page itself
        root = select_one(document, DETAIL_ROOT)
        if root is None:
            return []
        canonical = attr(select_one(document, "//link[@rel='canonical']"), 'href') or attr(
            select_one(document, "//meta[@property='og:url']"), 'content'
        )
        manga_id = last_path_segment(canonical)
        if not manga_id:
            return []
        return [convert_manga_from_detail(root, manga_id, base_url)]

    results = []
    for item in select_all(book_list, BOOK_LIST_ITEMS):
        manga = convert_manga_from_list(item, base_url)
        if manga is not None:
            results.append(manga)
    return results


class MangaKatanaAgent(CrawlerAgent):
    """mangakatana.com agent"""

    site_id = 'mangakatana'
    display_name = 'MangaKatana (mangakatana.com)'
    base_url = BASE_URL
    favicon_url = FAVICON_URL

    async def _render_detail(self, manga_id: str, cancel_event: Optional[asyncio.Event]):
        url = detail_url(manga_id, self.base_url)
        document = await self.render(url, cancel_event=cancel_event)
        root = select_one(document, DETAIL_ROOT)
        if root is None:
            raise MissingStructuralAnchor(url, DETAIL_ROOT)
        return root

    async def get_by_id(self, manga_id: str,
                        cancel_event: Optional[asyncio.Event] = None) -> Manga:
        root = await self._render_detail(manga_id, cancel_event)
        manga = convert_manga_from_detail(root, manga_id, self.base_url)
        self.logger.info(f"✅ {manga_id}: '{manga.title}'")
        return manga

    async def get_chapters(self, manga: Manga,
                           pagination: Optional[PaginationOptions] = None,
                           cancel_event: Optional[asyncio.Event] = None) -> PagedResult[Chapter]:
        root = await self._render_detail(manga.id, cancel_event)
        chapters = convert_chapters_from_detail(manga, root, self.base_url)
        self.logger.info(f"✅ {manga.id}: {len(chapters)} chapters")
        return self.paged(chapters)

    async def get_chapter_pages(self, chapter: Chapter,
                                cancel_event: Optional[asyncio.Event] = None) -> List[Page]:
        document = await self.render(chapter.uri, cancel_event=cancel_event)
        reader = select_one(document, READER_ROOT)
        if reader is None:
            raise MissingStructuralAnchor(chapter.uri, READER_ROOT)

        pages = convert_chapter_pages(chapter, select_all(reader, PAGE_CONTAINERS))
        self.logger.info(f"✅ {chapter.parent.id}/{chapter.id}: {len(pages)} pages")
        return pages

    async def search(self, query: str,
                     pagination: Optional[PaginationOptions] = None,
                     cancel_event: Optional[asyncio.Event] = None) -> PagedResult[Manga]:
        document = await self.render(search_url(query, self.base_url), cancel_event=cancel_event)
        results = convert_search_results(document, self.base_url)
        self.logger.info(f"✅ search '{query}': {len(results)} results")
        return self.paged(results)
