"""
Exception hierarchy for crawler agents.

Navigation and layout failures propagate to the caller as typed errors.
Field-level problems are never raised; extraction resolves them with defaults.
"""

from typing import Optional


class CrawlerError(Exception):
    """Base class for every error raised by manga_crawler."""


class NavigationTimeout(CrawlerError):
    """Page did not reach network idle within the configured bound."""

    def __init__(self, url: str, timeout_ms: int):
        self.url = url
        self.timeout_ms = timeout_ms
        super().__init__(f"Navigation to {url} timed out after {timeout_ms} ms")


class NavigationCancelled(CrawlerError):
    """Caller cancelled the navigation while the page was loading."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"Navigation to {url} was cancelled")


class MissingStructuralAnchor(CrawlerError):
    """Expected root container is absent: wrong id or the site layout changed."""

    def __init__(self, url: str, xpath: str):
        self.url = url
        self.xpath = xpath
        super().__init__(
            f"Not found or layout mismatch at {url}: no node matches {xpath}"
        )


class FetchError(CrawlerError):
    """HTTP client request answered with a non-success status."""

    def __init__(self, url: str, status: Optional[int]):
        self.url = url
        self.status = status
        super().__init__(f"GET {url} failed with status {status}")


class IncompleteEntityError(ValueError):
    """A builder was asked to build without one of its required fields."""

    def __init__(self, entity: str, field_name: str):
        self.entity = entity
        self.field_name = field_name
        super().__init__(f"{entity} requires a non-empty '{field_name}'")
