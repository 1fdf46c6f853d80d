"""
Pluggable crawler agents that map manga sites onto one catalog model.
"""

from .catalog import (
    Chapter,
    Manga,
    Page,
    PagedResult,
    PaginationOptions,
    ReleaseStatus,
)
from .errors import (
    CrawlerError,
    FetchError,
    MissingStructuralAnchor,
    NavigationCancelled,
    NavigationTimeout,
)

__version__ = '0.1.0'

__all__ = [
    'Chapter',
    'CrawlerError',
    'FetchError',
    'Manga',
    'MissingStructuralAnchor',
    'NavigationCancelled',
    'NavigationTimeout',
    'Page',
    'PagedResult',
    'PaginationOptions',
    'ReleaseStatus',
]
