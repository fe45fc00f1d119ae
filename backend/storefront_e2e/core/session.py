"""
Session-Cached Authenticator

Logs in once per credential key and caches the browser storage state.
Before a cached state is reused it is restored into the scenario's context
and revalidated with a probe (open the inventory page, look for its
container). A failed probe discards the entry and runs the login once more.

The cache is owned by the scenario runner, one per worker process, and is
never shared across processes.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime

import structlog
from playwright.async_api import Page, TimeoutError as PlaywrightTimeout, expect

from storefront_e2e.config import Settings
from storefront_e2e.core.errors import AuthenticationFailed
from storefront_e2e.core.pages import PageRegistry

logger = structlog.get_logger()

FAST_AUTH = "fast-auth"

# Predefined SauceDemo accounts by short alias.
USERS: dict[str, str] = {
    "standard": "standard_user",
    "locked": "locked_out_user",
    "problem": "problem_user",
    "performance": "performance_glitch_user",
    "error": "error_user",
    "visual": "visual_user",
}


def resolve_user(user: str) -> str:
    """Map an alias such as 'standard' to its username; other names pass through."""
    return USERS.get(user, user)


@dataclass(frozen=True)
class CredentialKey:
    username: str
    password: str
    strategy: str = FAST_AUTH


@dataclass
class SessionEntry:
    """Serialized browser state captured after a successful authentication."""

    key: CredentialKey
    storage_state: dict
    session_storage: dict[str, dict[str, str]] = field(default_factory=dict)
    created_at: datetime = field(default_factory=datetime.utcnow)
    hits: int = 0

    @property
    def cookies(self) -> list[dict]:
        return list(self.storage_state.get("cookies", []))

    def storage_by_origin(self) -> dict[str, dict[str, dict[str, str]]]:
        """Merge local and session storage into {origin: {kind: {name: value}}}."""
        merged: dict[str, dict[str, dict[str, str]]] = {}
        for origin in self.storage_state.get("origins", []):
            items = {item["name"]: item["value"] for item in origin.get("localStorage", [])}
            merged.setdefault(origin["origin"], {})["localStorage"] = items
        for origin, items in self.session_storage.items():
            merged.setdefault(origin, {})["sessionStorage"] = dict(items)
        return merged


class SessionCache:
    """At most one entry per credential key, with a lock per key for rebuilds."""

    def __init__(self):
        self._entries: dict[CredentialKey, SessionEntry] = {}
        self._locks: dict[CredentialKey, asyncio.Lock] = {}

    def lock(self, key: CredentialKey) -> asyncio.Lock:
        if key not in self._locks:
            self._locks[key] = asyncio.Lock()
        return self._locks[key]

    def get(self, key: CredentialKey) -> SessionEntry | None:
        return self._entries.get(key)

    def put(self, entry: SessionEntry) -> None:
        self._entries[entry.key] = entry

    def invalidate(self, key: CredentialKey) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


_RESTORE_SCRIPT = """
(entry) => {
  for (const [k, v] of Object.entries(entry.localStorage || {})) window.localStorage.setItem(k, v);
  for (const [k, v] of Object.entries(entry.sessionStorage || {})) window.sessionStorage.setItem(k, v);
}
"""

_CLEAR_STORAGE_SCRIPT = "() => { window.localStorage.clear(); window.sessionStorage.clear(); }"


class SessionAuthenticator:
    """
    Authenticates a scenario page, reusing cached sessions when still valid.

    Usage:
        authenticator = SessionAuthenticator(cache, pages, settings)
        await authenticator.authenticate(page, "standard_user")
    """

    def __init__(self, cache: SessionCache, pages: PageRegistry, config: Settings):
        self.cache = cache
        self.pages = pages
        self.config = config

    def key_for(self, username: str, password: str | None = None, strategy: str = FAST_AUTH) -> CredentialKey:
        return CredentialKey(username, password or self.config.default_password, strategy)

    async def authenticate(
        self,
        page: Page,
        username: str,
        password: str | None = None,
        strategy: str = FAST_AUTH,
    ) -> SessionEntry:
        """
        Leave ``page`` authenticated as ``username``.

        Raises:
            AuthenticationFailed: the login sequence did not reach the inventory
        """
        key = self.key_for(username, password, strategy)
        log = logger.bind(username=username, strategy=strategy)

        async with self.cache.lock(key):
            entry = self.cache.get(key)
            if entry is not None:
                await self.apply(page, entry)
                if await self.probe(page):
                    entry.hits += 1
                    log.info("session_cache_hit", hits=entry.hits)
                    return entry

                log.warning("session_probe_failed")
                self.cache.invalidate(key)
                await self.discard(page, entry)

            entry = await self._login(page, key)
            self.cache.put(entry)
            log.info("session_cached")
            return entry

    async def _login(self, page: Page, key: CredentialKey) -> SessionEntry:
        login = self.pages.login
        inventory = self.pages.inventory
        timeout = self.config.auth_timeout
        log = logger.bind(username=key.username, strategy=key.strategy)
        log.info("login_started")

        try:
            await page.goto(login.url, timeout=self.config.navigation_timeout)
            await page.locator(login["username"]).fill(key.username, timeout=timeout)
            await page.locator(login["password"]).fill(key.password, timeout=timeout)
            await page.locator(login["submit"]).click(timeout=timeout)
            await expect(page.locator(inventory.container)).to_be_visible(timeout=timeout)
        except (AssertionError, PlaywrightTimeout) as e:
            log.error("login_failed", timeout=timeout, error=str(e))
            raise AuthenticationFailed(
                key.username,
                key.strategy,
                timeout,
                f"'{inventory.container}' not visible",
            ) from None

        state = await page.context.storage_state()
        log.info("login_completed")
        return SessionEntry(key=key, storage_state=state)

    async def apply(self, page: Page, entry: SessionEntry) -> None:
        """
        Write a cached state into the page's browser context.

        Storage is written once per origin, on a document of that origin, so
        later navigations keep whatever the scenario changes afterwards.
        """
        context = page.context
        await context.clear_cookies()
        if entry.cookies:
            await context.add_cookies(entry.cookies)

        for origin, storage in entry.storage_by_origin().items():
            await page.goto(origin, timeout=self.config.navigation_timeout, wait_until="domcontentloaded")
            await page.evaluate(_RESTORE_SCRIPT, storage)

    async def discard(self, page: Page, entry: SessionEntry) -> None:
        """Remove a stale entry's cookies and storage from the page's context."""
        await page.context.clear_cookies()
        for origin in entry.storage_by_origin():
            await page.goto(origin, timeout=self.config.navigation_timeout, wait_until="domcontentloaded")
            await page.evaluate(_CLEAR_STORAGE_SCRIPT)

    async def probe(self, page: Page) -> bool:
        """Cheap check that the restored session still reaches a protected page."""
        inventory = self.pages.inventory
        timeout = self.config.probe_timeout
        try:
            await page.goto(inventory.url, timeout=timeout)
            await expect(page.locator(inventory.container)).to_be_visible(timeout=timeout)
        except (AssertionError, PlaywrightTimeout):
            return False
        return True
