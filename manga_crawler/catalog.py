"""
Canonical catalog model shared by every crawler agent.

Manga -> Chapter -> Page, plus PagedResult for list operations.
Entities are frozen once built; builders check required fields.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Generic, Iterable, Optional, Tuple, TypeVar

from manga_crawler.errors import IncompleteEntityError

T = TypeVar('T')

UNTITLED_MANGA = 'Untitled Manga'
UNTITLED_CHAPTER = 'Untitled Chapter'


class ReleaseStatus(Enum):
    COMPLETED = 'completed'
    CONTINUING = 'continuing'
    UNRELEASED = 'unreleased'


@dataclass(frozen=True)
class Manga:
    id: str
    title: str
    description: str = ''
    website_url: str = ''
    cover_url: Optional[str] = None
    cover_file_name: str = ''
    tags: Tuple[str, ...] = ()
    release_status: ReleaseStatus = ReleaseStatus.UNRELEASED
    year: int = 0
    latest_chapter_available: Decimal = Decimal(0)
    is_family_safe: bool = True


@dataclass(frozen=True)
class Chapter:
    id: str
    title: str
    uri: str
    # back-reference only, never part of equality
    parent: Manga = field(compare=False, repr=False)
    volume: int = 0
    number: Decimal = Decimal(0)
    updated_at: str = ''


@dataclass(frozen=True)
class Page:
    id: str
    chapter_id: str
    page_number: Decimal
    image_url: str
    parent: Chapter = field(compare=False, repr=False)


@dataclass(frozen=True)
class PaginationOptions:
    """Paging requested by the caller. Sites without server paging ignore it."""
    offset: int = 0
    limit: int = 30


@dataclass(frozen=True)
class PagedResult(Generic[T]):
    data: Tuple[T, ...]
    total_count: int
    page_size: int
    page_index: int = 0
    page_count: int = 1

    def __len__(self) -> int:
        return len(self.data)

    def __iter__(self):
        return iter(self.data)


def _require(entity: str, name: str, value) -> None:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise IncompleteEntityError(entity, name)


class MangaBuilder:
    """Fluent builder for Manga."""

    def __init__(self):
        self._id = None
        self._title = None
        self._description = ''
        self._website_url = ''
        self._cover_url = None
        self._cover_file_name = ''
        self._tags = []
        self._release_status = ReleaseStatus.UNRELEASED
        self._year = 0
        self._latest_chapter_available = Decimal(0)
        self._is_family_safe = True

    @classmethod
    def create(cls) -> 'MangaBuilder':
        return cls()

    def with_id(self, manga_id: str) -> 'MangaBuilder':
        self._id = manga_id
        return self

    def with_title(self, title: str) -> 'MangaBuilder':
        self._title = title
        return self

    def with_description(self, description: Optional[str]) -> 'MangaBuilder':
        self._description = description or ''
        return self

    def with_website_url(self, url: Optional[str]) -> 'MangaBuilder':
        self._website_url = url or ''
        return self

    def with_cover_url(self, url: Optional[str]) -> 'MangaBuilder':
        self._cover_url = url or None
        return self

    def with_cover_file_name(self, name: Optional[str]) -> 'MangaBuilder':
        self._cover_file_name = name or ''
        return self

    def with_tags(self, tags: Iterable[str]) -> 'MangaBuilder':
        # set semantics, first-seen order
        self._tags = list(dict.fromkeys(t for t in tags if t))
        return self

    def with_release_status(self, status: ReleaseStatus) -> 'MangaBuilder':
        self._release_status = status
        return self

    def with_year(self, year: int) -> 'MangaBuilder':
        self._year = year
        return self

    def with_latest_chapter_available(self, number: Decimal) -> 'MangaBuilder':
        self._latest_chapter_available = number
        return self

    def with_is_family_safe(self, family_safe: bool) -> 'MangaBuilder':
        self._is_family_safe = family_safe
        return self

    def build(self) -> Manga:
        _require('Manga', 'id', self._id)
        _require('Manga', 'title', self._title)
        return Manga(
            id=self._id,
            title=self._title,
            description=self._description,
            website_url=self._website_url,
            cover_url=self._cover_url,
            cover_file_name=self._cover_file_name,
            tags=tuple(self._tags),
            release_status=self._release_status,
            year=self._year,
            latest_chapter_available=self._latest_chapter_available,
            is_family_safe=self._is_family_safe,
        )


class ChapterBuilder:
    """Fluent builder for Chapter. The parent Manga must already exist."""

    def __init__(self):
        self._id = None
        self._title = None
        self._uri = None
        self._parent = None
        self._volume = 0
        self._number = Decimal(0)
        self._updated_at = ''

    @classmethod
    def create(cls) -> 'ChapterBuilder':
        return cls()

    def with_id(self, chapter_id: str) -> 'ChapterBuilder':
        self._id = chapter_id
        return self

    def with_title(self, title: str) -> 'ChapterBuilder':
        self._title = title
        return self

    def with_uri(self, uri: str) -> 'ChapterBuilder':
        self._uri = uri
        return self

    def with_parent_manga(self, manga: Manga) -> 'ChapterBuilder':
        self._parent = manga
        return self

    def with_volume(self, volume: int) -> 'ChapterBuilder':
        self._volume = volume
        return self

    def with_number(self, number: Decimal) -> 'ChapterBuilder':
        self._number = number
        return self

    def with_updated_at(self, updated_at: Optional[str]) -> 'ChapterBuilder':
        self._updated_at = updated_at or ''
        return self

    def build(self) -> Chapter:
        _require('Chapter', 'id', self._id)
        _require('Chapter', 'title', self._title)
        _require('Chapter', 'uri', self._uri)
        _require('Chapter', 'parent', self._parent)
        return Chapter(
            id=self._id,
            title=self._title,
            uri=self._uri,
            parent=self._parent,
            volume=self._volume,
            number=self._number,
            updated_at=self._updated_at,
        )


class PageBuilder:
    """Fluent builder for Page."""

    def __init__(self):
        self._id = None
        self._chapter_id = None
        self._page_number = None
        self._image_url = None
        self._parent = None

    @classmethod
    def create(cls) -> 'PageBuilder':
        return cls()

    def with_id(self, page_id: str) -> 'PageBuilder':
        self._id = page_id
        return self

    def with_chapter_id(self, chapter_id: str) -> 'PageBuilder':
        self._chapter_id = chapter_id
        return self

    def with_page_number(self, number: Decimal) -> 'PageBuilder':
        self._page_number = number
        return self

    def with_image_url(self, url: str) -> 'PageBuilder':
        self._image_url = url
        return self

    def with_parent_chapter(self, chapter: Chapter) -> 'PageBuilder':
        self._parent = chapter
        return self

    def build(self) -> Page:
        _require('Page', 'id', self._id)
        _require('Page', 'chapter_id', self._chapter_id)
        _require('Page', 'page_number', self._page_number)
        _require('Page', 'image_url', self._image_url)
        _require('Page', 'parent', self._parent)
        return Page(
            id=self._id,
            chapter_id=self._chapter_id,
            page_number=self._page_number,
            image_url=self._image_url,
            parent=self._parent,
        )


class PagedResultBuilder(Generic[T]):
    """
    Wraps an extracted list into a PagedResult.

    Without explicit paging the result is a single page holding every item,
    which is what agents for sites without modelled pagination return.
    """

    def __init__(self):
        self._data = []
        self._total_count = None
        self._page_size = None
        self._page_index = 0

    @classmethod
    def create(cls) -> 'PagedResultBuilder[T]':
        return cls()

    def with_data(self, data: Iterable[T]) -> 'PagedResultBuilder[T]':
        self._data = list(data)
        return self

    def with_paging(self, total_count: int, page_size: int,
                    page_index: int = 0) -> 'PagedResultBuilder[T]':
        self._total_count = total_count
        self._page_size = page_size
        self._page_index = page_index
        return self

    def build(self) -> PagedResult[T]:
        count = len(self._data)
        total = count if self._total_count is None else self._total_count
        size = count if self._page_size is None else self._page_size
        if size > 0:
            page_count = -(-total // size)
        else:
            page_count = 0
        return PagedResult(
            data=tuple(self._data),
            total_count=total,
            page_size=size,
            page_index=self._page_index,
            page_count=page_count,
        )
