"""
Shared fixtures.

Unit tests drive the automation layer with mocked Playwright objects; only
tests marked ``e2e`` launch a real browser, and only with --run-e2e.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from storefront_e2e.config import Settings
from storefront_e2e.core.pages import build_page_registry
from storefront_e2e.core.session import SessionCache


def pytest_addoption(parser):
    parser.addoption(
        "--run-e2e",
        action="store_true",
        default=False,
        help="run scenarios against the live storefront",
    )


def pytest_collection_modifyitems(config, items):
    if config.getoption("--run-e2e"):
        return
    skip_e2e = pytest.mark.skip(reason="needs --run-e2e")
    for item in items:
        if "e2e" in item.keywords:
            item.add_marker(skip_e2e)


def make_locator(count: int = 0, texts: list[str] | None = None) -> MagicMock:
    """A Locator stand-in whose chained lookups return itself."""
    locator = MagicMock(name="locator")
    locator.first = locator
    locator.nth.return_value = locator
    locator.locator.return_value = locator
    for name in ("click", "clear", "fill", "press_sequentially", "select_option"):
        setattr(locator, name, AsyncMock())
    locator.count = AsyncMock(return_value=count)
    locator.all_inner_texts = AsyncMock(return_value=texts or [])
    locator.inner_text = AsyncMock(return_value="")
    locator.input_value = AsyncMock(return_value="")
    locator.get_attribute = AsyncMock(return_value="/static/media/item.jpg")
    return locator


@pytest.fixture
def config() -> Settings:
    return Settings(
        base_url="https://www.saucedemo.com",
        command_timeout=5000,
        navigation_timeout=10000,
        auth_timeout=15000,
        probe_timeout=8000,
        type_delay=0,
    )


@pytest.fixture
def pages(config):
    return build_page_registry(config.base_url)


@pytest.fixture
def locator() -> MagicMock:
    return make_locator()


@pytest.fixture
def page(locator) -> MagicMock:
    page = MagicMock(name="page")
    page.url = "https://www.saucedemo.com/inventory.html"
    page.locator.return_value = locator
    page.get_by_text.return_value = locator
    page.goto = AsyncMock()
    page.evaluate = AsyncMock()
    page.route = AsyncMock()
    page.unroute = AsyncMock()
    page.screenshot = AsyncMock(return_value=b"png")

    context = page.context
    context.clear_cookies = AsyncMock()
    context.add_cookies = AsyncMock()
    context.add_init_script = AsyncMock()
    context.storage_state = AsyncMock(
        return_value={
            "cookies": [
                {"name": "session-username", "value": "standard_user", "domain": "www.saucedemo.com", "path": "/"}
            ],
            "origins": [],
        }
    )
    return page


@pytest.fixture
def session_cache() -> SessionCache:
    return SessionCache()


@pytest.fixture
def patch_expect(monkeypatch):
    """
    Replace ``expect`` in a module; returns the assertion mock every
    ``expect(target)`` call hands back.
    """

    def patch(module) -> AsyncMock:
        assertion = AsyncMock(name="assertion")
        stub = MagicMock(name="expect", return_value=assertion)
        monkeypatch.setattr(module, "expect", stub)
        assertion.expect = stub
        return assertion

    return patch
