"""
Shared extraction helpers
- lxml parsing and XPath lookups that never raise on missing nodes
- field recovery: ids from URLs, release status, year, chapter numbers
- lazy-load image sources

Every helper is pure and total: malformed input degrades to a default.
"""

import posixpath
import re
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import List, Optional
from urllib.parse import urljoin, urlsplit

import lxml.html
from lxml.etree import ParserError

from manga_crawler.catalog import ReleaseStatus

NUMBER_PATTERN = re.compile(r'\d+(?:\.\d+)?')
CHAPTER_NUMBER_PATTERN = re.compile(r'Chapter\s+(\d+(?:\.\d+)?)')
VOLUME_PATTERN = re.compile(r'^\s*Vol(?:ume)?\.?\s*(\d+)', re.IGNORECASE)

RELEASE_DATE_FORMAT = '%b-%d-%Y'  # e.g. Jan-05-2020

RELEASE_STATUS_MAP = {
    'completed': ReleaseStatus.COMPLETED,
    'ongoing': ReleaseStatus.CONTINUING,
}


def _empty_document() -> lxml.html.HtmlElement:
    return lxml.html.document_fromstring('<html><body></body></html>')


def parse_html(markup: Optional[str]) -> lxml.html.HtmlElement:
    """Parse rendered markup; empty or unparsable input gives an empty document."""
    if not markup or not markup.strip():
        return _empty_document()
    try:
        return lxml.html.document_fromstring(markup)
    except ValueError:
        # lxml refuses str input that carries an XML encoding declaration
        pass
    except ParserError:
        return _empty_document()
    try:
        return lxml.html.document_fromstring(markup.encode('utf-8'))
    except (ParserError, ValueError):
        return _empty_document()


def select_one(node, xpath: str):
    """First XPath match, or None (also None when node itself is None)."""
    if node is None:
        return None
    results = node.xpath(xpath)
    return results[0] if results else None


def select_all(node, xpath: str) -> List:
    if node is None:
        return []
    return list(node.xpath(xpath))


def node_text(node) -> str:
    """Trimmed text content of an element; '' when the node is missing."""
    if node is None:
        return ''
    if isinstance(node, str):
        return node.strip()
    return node.text_content().strip()


def text_or_default(node, default: str) -> str:
    return node_text(node) or default


def attr(node, name: str) -> str:
    if node is None:
        return ''
    return (node.get(name) or '').strip()


def absolute_url(base: str, href: str) -> str:
    """Resolve href against base; '' stays ''."""
    if not href:
        return ''
    try:
        return urljoin(base, href)
    except ValueError:
        # e.g. an unterminated IPv6 host: "http://[broken/..."
        return ''


def last_path_segment(url: Optional[str]) -> str:
    """
    Id derivation: last '/'-separated segment of the URL path.

    'https://mangakatana.com/manga/one-piece.2/' -> 'one-piece.2'
    Query string and fragment are not part of the id. Unparsable URLs give ''.
    """
    if not url:
        return ''
    try:
        path = urlsplit(url.strip()).path.rstrip('/')
    except ValueError:
        return ''
    return path.split('/')[-1]


def file_name_from_url(url: Optional[str]) -> str:
    if not url:
        return ''
    try:
        return posixpath.basename(urlsplit(url.strip()).path)
    except ValueError:
        return ''


def parse_release_status(text: Optional[str]) -> ReleaseStatus:
    if not text:
        return ReleaseStatus.UNRELEASED
    return RELEASE_STATUS_MAP.get(text.strip().lower(), ReleaseStatus.UNRELEASED)


def parse_year(text: Optional[str]) -> int:
    """Year of a 'Mon-dd-yyyy' date, 0 for anything else."""
    if not text:
        return 0
    try:
        return datetime.strptime(text.strip(), RELEASE_DATE_FORMAT).year
    except ValueError:
        return 0


def _to_decimal(value: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation:
        return Decimal(0)


def first_number(text: Optional[str]) -> Decimal:
    """First numeric run (digits, at most one decimal point) in text, else 0."""
    match = NUMBER_PATTERN.search(text or '')
    if not match:
        return Decimal(0)
    return _to_decimal(match.group(0))


def parse_chapter_number(title: Optional[str]) -> Decimal:
    """'Chapter 12.5: The Return' -> Decimal('12.5'); no match -> 0."""
    match = CHAPTER_NUMBER_PATTERN.search(title or '')
    if not match:
        return Decimal(0)
    return _to_decimal(match.group(1))


def parse_volume(title: Optional[str]) -> int:
    match = VOLUME_PATTERN.search(title or '')
    return int(match.group(1)) if match else 0


def lazy_image_source(img) -> str:
    # data-src holds the real URL on lazy-loaded images
    return attr(img, 'data-src') or attr(img, 'src')
