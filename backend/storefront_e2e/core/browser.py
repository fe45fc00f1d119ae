"""
Playwright Browser Lifecycle

High-level wrapper around Playwright providing:
- One browser per run, one isolated context per scenario
- Context defaults (timeouts, viewport, locale) applied uniformly
- Screenshot capture for failure reports
"""

import base64
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from typing import AsyncGenerator

import structlog
from playwright.async_api import (
    async_playwright,
    Browser,
    BrowserContext,
    Page,
    Playwright,
)

from storefront_e2e.config import Settings, settings as default_settings

logger = structlog.get_logger()


class BrowserType(str, Enum):
    """Supported browser types."""

    CHROMIUM = "chromium"
    FIREFOX = "firefox"
    WEBKIT = "webkit"


@dataclass
class BrowserOptions:
    """Browser configuration options."""

    browser_type: BrowserType = BrowserType.CHROMIUM
    headless: bool = True
    slow_mo: int = 0
    timeout: int = 5000
    viewport_width: int = 1280
    viewport_height: int = 720
    user_agent: str | None = None
    locale: str = "en-US"
    timezone: str = "America/New_York"
    record_video: bool = False
    video_dir: str = "./videos"

    @classmethod
    def from_settings(cls, config: Settings) -> "BrowserOptions":
        return cls(
            browser_type=BrowserType(config.playwright_browser),
            headless=config.playwright_headless,
            slow_mo=config.playwright_slow_mo,
            timeout=config.command_timeout,
        )


class BrowserSession:
    """
    Owns the Playwright driver and browser for a run.

    Usage:
        async with BrowserSession() as session:
            async with session.scenario_page() as page:
                await page.goto("https://www.saucedemo.com")
    """

    def __init__(self, options: BrowserOptions | None = None):
        self.options = options or BrowserOptions.from_settings(default_settings)
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None

    @property
    def browser(self) -> Browser:
        """Get the running browser, raise if not initialized."""
        if self._browser is None:
            raise RuntimeError("Browser not initialized. Use 'async with' context.")
        return self._browser

    async def __aenter__(self) -> "BrowserSession":
        await self._initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self._cleanup()

    async def _initialize(self) -> None:
        """Start Playwright and launch the browser."""
        log = logger.bind(browser=self.options.browser_type.value)
        log.info("initializing_browser")

        self._playwright = await async_playwright().start()

        browser_launcher = getattr(self._playwright, self.options.browser_type.value)
        self._browser = await browser_launcher.launch(
            headless=self.options.headless,
            slow_mo=self.options.slow_mo,
        )

        log.info("browser_initialized")

    async def _cleanup(self) -> None:
        """Clean up browser resources."""
        logger.info("cleaning_up_browser")

        if self._browser:
            await self._browser.close()
        if self._playwright:
            await self._playwright.stop()

        self._browser = None
        self._playwright = None

    async def new_context(self) -> BrowserContext:
        """Create an isolated context with the configured defaults."""
        context_options = {
            "viewport": {
                "width": self.options.viewport_width,
                "height": self.options.viewport_height,
            },
            "locale": self.options.locale,
            "timezone_id": self.options.timezone,
        }

        if self.options.user_agent:
            context_options["user_agent"] = self.options.user_agent

        if self.options.record_video:
            context_options["record_video_dir"] = self.options.video_dir

        context = await self.browser.new_context(**context_options)
        context.set_default_timeout(self.options.timeout)
        return context

    @asynccontextmanager
    async def scenario_page(self) -> AsyncGenerator[Page, None]:
        """Yield a page in a fresh context that is closed afterwards."""
        context = await self.new_context()
        try:
            yield await context.new_page()
        finally:
            await context.close()


async def take_screenshot(page: Page) -> str | None:
    """Take a screenshot and return base64 encoded string."""
    try:
        screenshot_bytes = await page.screenshot()
    except Exception as e:
        logger.warning("screenshot_failed", error=str(e))
        return None
    return base64.b64encode(screenshot_bytes).decode("utf-8")
