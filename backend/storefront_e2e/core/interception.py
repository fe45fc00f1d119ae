"""
Interception Virtualizer

Serves fixture templates in place of real storefront pages so a scenario can
run against a synthetic "already authenticated" session. Rules are armed
first, then the triggering navigation happens, then the expected markers are
asserted:

    virtualizer = InterceptionVirtualizer(page, settings)
    await virtualizer.arm("inventory", "**/inventory.html", "sql-inventory-page.html", username)
    await virtualizer.navigate("https://www.saucedemo.com/inventory.html")
    await virtualizer.wait_for("inventory")
    await virtualizer.assert_markers(["SQL Authentication Success!"])

Each rule answers one matching request. Later matches are aborted and
recorded until the rule is re-armed, so a virtualized URL never reaches the
network. Rules belong to one scenario; clear() removes them.
"""

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

import structlog
from playwright.async_api import Page, Route, expect

from storefront_e2e.config import Settings
from storefront_e2e.core.errors import InterceptionAssertionFailed, InterceptionOrderError

logger = structlog.get_logger()

USERNAME_PLACEHOLDER = "{{username}}"

# alias -> (url glob, fixture file); the pages of the SQL-authenticated flow
SQL_FLOW_RULES: dict[str, tuple[str, str]] = {
    "sqlInventoryPage": ("**/inventory.html", "sql-inventory-page.html"),
    "sqlCartPage": ("**/cart.html", "sql-cart-page.html"),
    "sqlCheckoutStepOne": ("**/checkout-step-one.html", "sql-checkout-step-one.html"),
    "sqlCheckoutStepTwo": ("**/checkout-step-two.html", "sql-checkout-step-two.html"),
    "sqlCheckoutComplete": ("**/checkout-complete.html", "sql-checkout-complete.html"),
}


@dataclass
class InterceptionRule:
    """A fixture response bound to a method and URL glob."""

    alias: str
    method: str
    url_pattern: str
    body: str
    status: int = 200
    headers: dict[str, str] = field(default_factory=dict)
    hits: int = 0
    consumed: bool = False
    url: str | None = None
    blocked: list[str] = field(default_factory=list)
    handler: Callable[[Route], Any] | None = field(default=None, repr=False)

    def __post_init__(self):
        self.method = self.method.upper()


class InterceptionVirtualizer:
    """Arms, fires and clears fixture-backed route rules for one scenario page."""

    def __init__(self, page: Page, config: Settings, fixtures_dir: Path | None = None):
        self.page = page
        self.config = config
        self.fixtures_dir = Path(fixtures_dir or config.fixtures_dir)
        self._rules: dict[str, InterceptionRule] = {}
        self._fired: dict[str, asyncio.Event] = {}
        self._navigated = False

    @property
    def rules(self) -> dict[str, InterceptionRule]:
        return dict(self._rules)

    def pending(self) -> list[str]:
        """Aliases armed but not yet consumed."""
        return [alias for alias, rule in self._rules.items() if not rule.consumed]

    def fired(self) -> list[str]:
        return [alias for alias, rule in self._rules.items() if rule.hits]

    def blocked(self) -> dict[str, list[str]]:
        """URLs aborted because their rule was already consumed, per alias."""
        return {alias: list(rule.blocked) for alias, rule in self._rules.items() if rule.blocked}

    def render_fixture(self, fixture: str, username: str) -> str:
        """
        Load a fixture template and substitute the username.

        A missing fixture or a template without the placeholder is logged and
        still returned (possibly empty); the marker assertions downstream
        report the mismatch.
        """
        path = self.fixtures_dir / fixture
        log = logger.bind(fixture=str(path))
        try:
            template = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            log.warning("fixture_missing")
            return ""

        if USERNAME_PLACEHOLDER not in template:
            log.warning("fixture_placeholder_missing", placeholder=USERNAME_PLACEHOLDER)
        return template.replace(USERNAME_PLACEHOLDER, username)

    async def arm(
        self,
        alias: str,
        url_pattern: str,
        fixture: str,
        username: str,
        method: str = "GET",
        status: int = 200,
        headers: dict[str, str] | None = None,
    ) -> InterceptionRule:
        """
        Route requests matching ``url_pattern`` to the rendered fixture.

        Raises:
            InterceptionOrderError: the triggering navigation already happened
        """
        if self._navigated:
            raise InterceptionOrderError(
                f"Rule '{alias}' armed after navigation; arm every rule before navigating"
            )
        if alias in self._rules:
            await self._unroute(self._rules.pop(alias))

        rule = InterceptionRule(
            alias=alias,
            method=method,
            url_pattern=url_pattern,
            body=self.render_fixture(fixture, username),
            status=status,
            headers={
                "content-type": "text/html",
                "x-sql-authenticated": "true",
                "x-user": username,
                **(headers or {}),
            },
        )
        rule.handler = self._make_handler(rule)
        self._rules[alias] = rule
        self._fired[alias] = asyncio.Event()

        await self.page.route(rule.url_pattern, rule.handler)
        logger.info("interception_armed", alias=alias, pattern=url_pattern, method=rule.method)
        return rule

    def _make_handler(self, rule: InterceptionRule) -> Callable[[Route], Any]:
        async def handle(route: Route) -> None:
            request = route.request
            if request.method.upper() != rule.method:
                await route.fallback()
                return
            if rule.consumed:
                rule.blocked.append(request.url)
                await route.abort("blockedbyclient")
                logger.warning("interception_blocked", alias=rule.alias, url=request.url)
                return

            rule.consumed = True
            rule.url = request.url
            rule.hits += 1
            await route.fulfill(status=rule.status, headers=rule.headers, body=rule.body)
            self._fired[rule.alias].set()
            logger.info("interception_fired", alias=rule.alias, url=request.url)

        return handle

    def rearm(self, alias: str) -> InterceptionRule:
        """Let a consumed rule answer its next matching request."""
        rule = self._rules[alias]
        rule.consumed = False
        self._fired[alias].clear()
        return rule

    async def navigate(self, url: str, timeout: int | None = None) -> None:
        """Perform the triggering navigation; no rule may be armed after this."""
        self._navigated = True
        await self.page.goto(url, timeout=timeout or self.config.navigation_timeout)

    async def wait_for(self, alias: str, timeout: int | None = None) -> InterceptionRule:
        """Wait until the rule named ``alias`` has answered a request."""
        timeout = timeout or self.config.command_timeout
        if alias not in self._rules:
            raise InterceptionAssertionFailed(f"No interception rule armed as '{alias}'", alias)
        try:
            await asyncio.wait_for(self._fired[alias].wait(), timeout / 1000)
        except asyncio.TimeoutError:
            raise InterceptionAssertionFailed(
                f"Interception '{alias}' ({self._rules[alias].url_pattern}) did not fire "
                f"within {timeout}ms; fired: {self.fired() or 'none'}; "
                f"blocked: {self.blocked() or 'none'}",
                alias,
                timeout,
            ) from None
        return self._rules[alias]

    async def assert_markers(self, markers: list[str], timeout: int | None = None) -> None:
        """Assert each literal marker text is visible on the virtualized page."""
        timeout = timeout or self.config.command_timeout
        for marker in markers:
            try:
                await expect(self.page.get_by_text(marker).first).to_be_visible(timeout=timeout)
            except AssertionError:
                raise InterceptionAssertionFailed(
                    f"Marker '{marker}' not found on {self.page.url} within {timeout}ms; "
                    f"fired rules: {self.fired() or 'none'}; blocked: {self.blocked() or 'none'}",
                    timeout=timeout,
                ) from None

    async def _unroute(self, rule: InterceptionRule) -> None:
        if rule.handler is not None:
            await self.page.unroute(rule.url_pattern, rule.handler)

    async def clear(self) -> None:
        """Remove every rule so nothing leaks into the next scenario."""
        for rule in self._rules.values():
            await self._unroute(rule)
        if self._rules:
            logger.info("interception_cleared", aliases=list(self._rules))
        self._rules.clear()
        self._fired.clear()
        self._navigated = False
