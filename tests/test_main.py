"""
Tests for the command-line runner.
"""

import json
from decimal import Decimal

import pytest
from playwright.async_api import Error as PlaywrightError

from manga_crawler import main as cli
from manga_crawler.catalog import ReleaseStatus
from manga_crawler.errors import MissingStructuralAnchor
from tests.conftest import MANGA_ID

pytestmark = pytest.mark.unit


class TestToJsonable:
    def test_chapter_without_parent(self, chapter):
        data = cli.to_jsonable(chapter)

        assert 'parent' not in data
        assert data['number'] == '2'
        assert data['uri'].endswith('/c2')

    def test_manga_enum_and_tags(self, manga):
        data = cli.to_jsonable(manga)

        assert data['release_status'] == ReleaseStatus.UNRELEASED.value
        assert data['tags'] == []
        assert data['latest_chapter_available'] == '0'


class TestChapterFromUrl:
    def test_ids_from_reader_url(self):
        chapter = cli.chapter_from_url(f'https://mangakatana.com/manga/{MANGA_ID}/c1000')

        assert chapter.id == 'c1000'
        assert chapter.parent.id == MANGA_ID
        assert chapter.number == Decimal(0)


class TestMain:
    def test_favicon(self, capsys):
        exit_code = cli.main(['favicon'])

        assert exit_code == 0
        assert json.loads(capsys.readouterr().out) == 'https://mangakatana.com/static/img/fav.png'

    def test_crawler_error_exit_code(self, monkeypatch):
        async def failing_run(agent, command, argument):
            raise MissingStructuralAnchor('https://mangakatana.com/manga/x', "//*[@id='single_book']")

        monkeypatch.setattr(cli, 'run', failing_run)

        assert cli.main(['manga', 'x']) == 1

    def test_browser_error_exit_code(self, monkeypatch, caplog):
        async def failing_run(agent, command, argument):
            raise PlaywrightError('net::ERR_NAME_NOT_RESOLVED at https://mangakatana.com/')

        monkeypatch.setattr(cli, 'run', failing_run)

        assert cli.main(['search', 'one piece']) == 1
        assert 'ERR_NAME_NOT_RESOLVED' in caplog.text

    def test_argument_required(self):
        with pytest.raises(SystemExit):
            cli.main(['search'])
