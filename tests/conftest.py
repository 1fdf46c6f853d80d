"""
Pytest fixtures for manga_crawler tests.

No test launches a real browser or touches the network: Playwright is
replaced by FakeBrowser / FakePage, and agents receive a CountingLauncher.
"""

import asyncio
from decimal import Decimal
from typing import Dict, List, Optional

import pytest

from manga_crawler.agents.mangakatana_agent import MangaKatanaAgent
from manga_crawler.catalog import ChapterBuilder, MangaBuilder


# ============================================================================
# Playwright doubles
# ============================================================================


class FakePage:
    """Tab double: goto() records the call, content() serves the routed markup."""

    def __init__(self, browser: 'FakeBrowser', user_agent: Optional[str]):
        self.browser = browser
        self.user_agent = user_agent
        self.url: Optional[str] = None
        self.goto_calls: List[tuple] = []
        self.closed = False

    async def goto(self, url, wait_until=None, timeout=None):
        self.goto_calls.append((url, wait_until, timeout))
        self.url = url
        if self.browser.goto_delay:
            await asyncio.sleep(self.browser.goto_delay)
        if self.browser.goto_error is not None:
            raise self.browser.goto_error
        return None

    async def content(self) -> str:
        return self.browser.routes.get(self.url, '')

    async def close(self):
        self.closed = True


class FakeBrowser:
    def __init__(self, routes: Optional[Dict[str, str]] = None,
                 goto_error: Optional[BaseException] = None,
                 goto_delay: float = 0,
                 close_error: Optional[Exception] = None):
        self.routes = routes or {}
        self.goto_error = goto_error
        self.goto_delay = goto_delay
        self.close_error = close_error
        self.pages: List[FakePage] = []
        self.close_calls = 0

    async def new_page(self, user_agent=None):
        page = FakePage(self, user_agent)
        self.pages.append(page)
        return page

    async def close(self):
        self.close_calls += 1
        if self.close_error is not None:
            raise self.close_error


class CountingLauncher:
    """Launcher double returning the same FakeBrowser and counting launches."""

    def __init__(self, browser: FakeBrowser, delay: float = 0,
                 error: Optional[Exception] = None):
        self.browser = browser
        self.delay = delay
        self.error = error
        self.count = 0

    async def __call__(self):
        self.count += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.browser


# ============================================================================
# Markup
# ============================================================================

MANGA_ID = 'solo-leveling.21708'
MANGA_URL = f'https://mangakatana.com/manga/{MANGA_ID}'


def build_detail_html(title: str = 'Solo Leveling',
                      status: str = 'Completed',
                      updated: str = 'Jan-05-2020',
                      latest: str = 'Chapter 179.5',
                      canonical: Optional[str] = MANGA_URL) -> str:
    head = f'<link rel="canonical" href="{canonical}">' if canonical else ''
    return f"""
<html><head>{head}</head><body>
<div id="single_book">
  <div class="cover"><img alt="cover" src="https://i3.mangakatana.com/token/cover/solo-leveling.jpg"></div>
  <div class="info">
    <h1 class="heading">  {title}  </h1>
    <ul class="meta d-table">
      <li class="d-row-small">
        <div class="d-cell-small label">Latest chapter(s):</div>
        <div class="d-cell-small value"><div class="new_chap"><a href="{MANGA_URL}/c179.5">{latest}</a></div></div>
      </li>
      <li class="d-row-small">
        <div class="d-cell-small label">Status:</div>
        <div class="d-cell-small value status">{status}</div>
      </li>
      <li class="d-row-small">
        <div class="d-cell-small label">Update:</div>
        <div class="d-cell-small value updateAt">{updated}</div>
      </li>
    </ul>
    <div class="genres"><a href="/genre/action">Action</a><a href="/genre/adventure">Adventure</a><a href="/genre/action">Action</a></div>
  </div>
  <div class="summary"><p>  Ten years ago, the Gate appeared.  </p></div>
  <div class="chapters">
    <table class="uk-table uk-table-striped"><tbody>
      <tr><td><div class="chapter"><a href="{MANGA_URL}/c179.5">Chapter 179.5: Side Story</a></div></td>
          <td><div class="update_time">Jan-05-2020</div></td></tr>
      <tr><td><div class="chapter"><a href="{MANGA_URL}/c2">Vol.1 Chapter 2</a></div></td></tr>
      <tr><td><div class="chapter"><a href="{MANGA_URL}/prologue">Prologue</a></div></td></tr>
      <tr><td><div class="chapter"><a href="/manga/{MANGA_ID}/c0">   </a></div></td></tr>
      <tr><td>announcement row without a link</td></tr>
    </tbody></table>
  </div>
</div>
</body></html>
"""


SEARCH_HTML = """
<html><body>
<div id="book_list">
  <div class="item" data-genre="">
    <div class="media"><div class="wrap_img">
      <a href="https://mangakatana.com/manga/one-piece.2"><img src="https://i1.mangakatana.com/cover/one-piece.jpg"></a>
    </div></div>
    <div class="text">
      <h3 class="title"><a href="https://mangakatana.com/manga/one-piece.2">One Piece</a></h3>
      <div class="uk-grid">
        <div class="uk-width-1-2"><div class="date">Jul-22-1997</div></div>
        <div class="uk-width-1-2 uk-text-right"><a href="https://mangakatana.com/manga/one-piece.2/c1">Chapter 1</a></div>
      </div>
      <div class="status ongoing">Ongoing</div>
      <div class="genres"><a>Adventure</a><a>Comedy</a></div>
      <div class="summary">Gol D. Roger was known as the Pirate King.</div>
    </div>
  </div>
  <div class="item">
    <div class="media"><div class="wrap_img">
      <a href="/manga/one-piece-party.3"><img data-src="/cover/party.png"></a>
    </div></div>
    <div class="text">
      <div class="status">HIATUS</div>
      <div class="uk-width-1-2"><div class="date">22 Jul 1997</div></div>
    </div>
  </div>
  <div class="item">
    <div class="text"><span>advertisement</span></div>
  </div>
</div>
</body></html>
"""

CHAPTER_URL = f'{MANGA_URL}/c2'

READER_HTML = """
<html><body>
<div id="imgs">
  <div id="page2" class="wrap_img uk-width-1-1"><img src="https://i1.mangakatana.com/t/2.jpg"></div>
  <div id="page1" class="wrap_img uk-width-1-1"><img data-src="https://i1.mangakatana.com/t/1.jpg" src="/static/img/loading.gif"></div>
  <div id="pageX" class="wrap_img"><img data-src="https://i1.mangakatana.com/t/x.jpg"></div>
  <div id="page4" class="wrap_img"><img data-src="" src=""></div>
  <div id="page5" class="wrap_img"></div>
  <div id="page3" class="wrap_img"><img data-src="http://x/3.png"></div>
  <div id="ad-1" class="wrap_img"><img src="ad.png"></div>
</div>
</body></html>
"""


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def detail_html():
    return build_detail_html


@pytest.fixture
def manga():
    return MangaBuilder.create().with_id(MANGA_ID).with_title('Solo Leveling').build()


@pytest.fixture
def chapter(manga):
    return (
        ChapterBuilder.create()
        .with_id('c2')
        .with_title('Vol.1 Chapter 2')
        .with_parent_manga(manga)
        .with_number(Decimal(2))
        .with_uri(CHAPTER_URL)
        .build()
    )


@pytest.fixture
def fake_browser():
    return FakeBrowser(routes={
        MANGA_URL: build_detail_html(),
        CHAPTER_URL: READER_HTML,
        'https://mangakatana.com/?search=one+piece&search_by=book_name': SEARCH_HTML,
    })


@pytest.fixture
def launcher(fake_browser):
    return CountingLauncher(fake_browser)


@pytest.fixture
def agent(launcher):
    return MangaKatanaAgent({'timeout_ms': 5000, 'user_agent': 'test-agent/1.0'}, launcher=launcher)
