"""
Storefront Action Library

Reusable multi-step browser operations built on the page objects. Each
operation finishes with an assertion so the UI is in a known state when it
returns; e.g. proceed_to_checkout() only returns once the checkout form is
visible.

Playwright timeouts and `expect` assertion failures are translated here into
the storefront error taxonomy so reports name the selector and the timeout.
"""

import re
from collections.abc import Sequence

import structlog
from playwright.async_api import (
    Locator,
    Page,
    TimeoutError as PlaywrightTimeout,
    expect,
)

from storefront_e2e.config import Settings
from storefront_e2e.core.errors import (
    ElementNotFound,
    FieldMismatch,
    IndexOutOfRange,
    NavigationTimeout,
    PageAssertionFailed,
)
from storefront_e2e.core.pages import PageObject, PageRegistry

logger = structlog.get_logger()

# Marker that clears a login field instead of typing into it.
EMPTY_MARKER = "<EMPTY>"

# option label -> (inventory selector key, value kind, descending)
SORT_OPTIONS: dict[str, tuple[str, str, bool]] = {
    "Price (low to high)": ("item_price", "price", False),
    "Price (high to low)": ("item_price", "price", True),
    "Name (A to Z)": ("item_name", "text", False),
    "Name (Z to A)": ("item_name", "text", True),
}


def parse_price(text: str) -> float:
    """Convert a displayed price such as '$29.99' to a float."""
    return float(text.strip().replace("$", ""))


def expected_order(values: Sequence, option: str) -> list:
    """Return ``values`` in the order the sort option should display them."""
    try:
        _, _, descending = SORT_OPTIONS[option]
    except KeyError:
        raise ValueError(f"Unknown sort option '{option}'") from None
    return sorted(values, reverse=descending)


class StorefrontActions:
    """
    Browser operations for one scenario page.

    Usage:
        actions = StorefrontActions(page, pages, settings)
        await actions.navigate_to("inventory")
        await actions.add_items(3)
        await actions.check_badge(3)
    """

    def __init__(self, page: Page, pages: PageRegistry, config: Settings):
        self.page = page
        self.pages = pages
        self.config = config

    # ------------------------------------------------------------------
    # primitives
    # ------------------------------------------------------------------

    async def wait_visible(self, selector: str, timeout: int | None = None) -> Locator:
        timeout = timeout or self.config.command_timeout
        locator = self.page.locator(selector).first
        try:
            await expect(locator).to_be_visible(timeout=timeout)
        except AssertionError:
            raise ElementNotFound(selector, timeout) from None
        return locator

    async def _click(self, selector: str) -> None:
        timeout = self.config.command_timeout
        try:
            await self.page.locator(selector).first.click(timeout=timeout)
        except PlaywrightTimeout:
            raise ElementNotFound(selector, timeout) from None

    async def expect_url(self, fragment: str, timeout: int | None = None) -> None:
        timeout = timeout or self.config.navigation_timeout
        try:
            await expect(self.page).to_have_url(
                re.compile(re.escape(fragment)), timeout=timeout
            )
        except AssertionError:
            raise NavigationTimeout(fragment, f"url*={fragment}", timeout) from None

    async def _activate_nth(self, selector: str, count: int) -> None:
        """Click the i-th matching control for i in [0, count), in DOM order."""
        timeout = self.config.command_timeout
        controls = self.page.locator(selector)
        for index in range(count):
            try:
                await expect(controls.nth(index)).to_be_attached(timeout=timeout)
            except AssertionError:
                raise IndexOutOfRange(selector, index, await controls.count()) from None
            await controls.nth(index).click(timeout=timeout)

    # ------------------------------------------------------------------
    # navigation
    # ------------------------------------------------------------------

    async def navigate_to(self, page_name: str, timeout: int | None = None) -> PageObject:
        """Visit a page and wait for its primary container."""
        target = self.pages.get(page_name)
        timeout = timeout or self.config.navigation_timeout
        log = logger.bind(url=target.url)

        try:
            await self.page.goto(target.url, timeout=timeout)
            await expect(self.page.locator(target.container).first).to_be_visible(
                timeout=timeout
            )
        except (AssertionError, PlaywrightTimeout):
            log.error("navigation_timeout", selector=target.container, timeout=timeout)
            raise NavigationTimeout(target.url, target.container, timeout) from None

        log.info("navigation_complete", page=page_name)
        return target

    async def go_to_cart(self) -> None:
        await self._click(self.pages.inventory["cart_link"])
        await self.expect_url("cart.html")

    async def open_cart(self) -> None:
        """Follow the cart link and wait for the cart list."""
        await self._click(self.pages.inventory["cart_link"])
        await self.wait_visible(self.pages.cart.container, self.config.navigation_timeout)

    async def try_go_to_cart(self) -> None:
        """Click the cart link without asserting where it lands."""
        await self._click(self.pages.inventory["cart_link"])

    async def assert_on_login_page(self) -> None:
        url = self.page.url
        if "cart.html" in url:
            raise PageAssertionFailed(f"Expected redirect away from cart, still at {url}")
        if self.config.base_url.split("://")[-1] not in url:
            raise PageAssertionFailed(f"Expected storefront login page, got {url}")
        await self.wait_visible(self.pages.login["username"])

    # ------------------------------------------------------------------
    # login
    # ------------------------------------------------------------------

    async def _enter_credential(self, selector: str, value: str) -> None:
        field = self.page.locator(selector)
        if value and value != EMPTY_MARKER:
            await field.press_sequentially(value)
        else:
            await field.clear()

    async def enter_credentials(self, username: str, password: str) -> None:
        """Type credentials; empty values or <EMPTY> clear the field instead."""
        login = self.pages.login
        await self._enter_credential(login["username"], username)
        await self._enter_credential(login["password"], password)

    async def submit_login(self) -> None:
        await self._click(self.pages.login["submit"])

    async def login(self, username: str, password: str) -> None:
        """Open the login page, enter credentials and submit."""
        await self.navigate_to("login")
        await self.enter_credentials(username, password)
        await self.submit_login()
        logger.info("login_submitted", username=username)

    async def assert_on_inventory(self) -> None:
        await self.expect_url("inventory.html")
        await self.wait_visible(self.pages.inventory["item"], self.config.navigation_timeout)

    async def assert_left_login_page(self) -> None:
        timeout = self.config.navigation_timeout
        try:
            await expect(self.page).not_to_have_url(self.pages.login.url, timeout=timeout)
        except AssertionError:
            raise NavigationTimeout(
                self.pages.login.url, "url!=login", timeout
            ) from None

    # ------------------------------------------------------------------
    # inventory
    # ------------------------------------------------------------------

    async def add_items(self, count: int) -> None:
        await self._activate_nth(self.pages.inventory["add_button"], count)

    async def remove_items(self, count: int, on: str = "inventory") -> None:
        await self._activate_nth(self.pages.get(on)["remove_button"], count)

    async def add_product(self, product_id: str) -> None:
        await self._click(f'[data-test="add-to-cart-{product_id}"]')
        await self.wait_visible(self.pages.inventory["cart_badge"])

    async def remove_product(self, product_id: str) -> None:
        await self._click(f'[data-test="remove-{product_id}"]')

    async def select_sort(self, option: str) -> None:
        inventory = self.pages.inventory
        await self.wait_visible(inventory["item"])
        await self.page.locator(inventory["sort_dropdown"]).select_option(label=option)

    async def read_prices(self) -> list[float]:
        texts = await self.page.locator(self.pages.inventory["item_price"]).all_inner_texts()
        return [parse_price(text) for text in texts]

    async def read_names(self) -> list[str]:
        return await self.page.locator(self.pages.inventory["item_name"]).all_inner_texts()

    async def assert_sorted(self, option: str) -> None:
        """Assert the displayed products follow the given sort option."""
        _, kind, _ = SORT_OPTIONS[option]
        values = await (self.read_prices() if kind == "price" else self.read_names())
        expected = expected_order(values, option)
        if values != expected:
            raise PageAssertionFailed(
                f"Products not sorted by '{option}': displayed {values}, expected {expected}"
            )

    async def assert_all_products_loaded(self) -> None:
        inventory = self.pages.inventory
        timeout = self.config.command_timeout
        items = self.page.locator(inventory["item"])
        expected = inventory.constants["product_count"]
        try:
            await expect(items).to_have_count(expected, timeout=timeout)
        except AssertionError:
            raise PageAssertionFailed(
                f"Expected {expected} products, found {await items.count()}",
                selector=inventory["item"],
                timeout=timeout,
            ) from None

        for index in range(expected):
            item = items.nth(index)
            for key in ("item_name", "add_button", "item_price"):
                try:
                    await expect(item.locator(inventory[key])).to_be_visible(timeout=timeout)
                except AssertionError:
                    raise ElementNotFound(
                        f"{inventory['item']} >> nth={index} >> {inventory[key]}", timeout
                    ) from None

    async def assert_products_displayed(self, minimum: int = 6, timeout: int | None = None) -> None:
        """Assert at least ``minimum`` products and their images are visible."""
        inventory = self.pages.inventory
        timeout = timeout or self.config.navigation_timeout
        await self.wait_visible(inventory.container, timeout)
        items = self.page.locator(inventory["item"])
        try:
            await expect(items.nth(minimum - 1)).to_be_visible(timeout=timeout)
        except AssertionError:
            raise PageAssertionFailed(
                f"Expected at least {minimum} products, found {await items.count()}",
                selector=inventory["item"],
                timeout=timeout,
            ) from None
        image = await self.wait_visible(inventory["item_image"], timeout)
        if not await image.get_attribute("src"):
            raise PageAssertionFailed(
                "Product image has no src", selector=inventory["item_image"]
            )

    # ------------------------------------------------------------------
    # cart badge
    # ------------------------------------------------------------------

    async def check_badge(self, expected: int) -> None:
        """
        Assert the cart badge shows ``expected`` items.

        Zero means the badge element is absent; a badge that literally
        reads "0" does not satisfy it.
        """
        selector = self.pages.inventory["cart_badge"]
        timeout = self.config.command_timeout
        badge = self.page.locator(selector)

        if expected == 0:
            try:
                await expect(badge).to_have_count(0, timeout=timeout)
            except AssertionError:
                raise PageAssertionFailed(
                    f"Cart badge should be absent but shows '{await badge.first.inner_text()}'",
                    selector=selector,
                    timeout=timeout,
                ) from None
            return

        try:
            await expect(badge).to_contain_text(str(expected), timeout=timeout)
        except AssertionError:
            if await badge.count() == 0:
                raise ElementNotFound(selector, timeout) from None
            raise PageAssertionFailed(
                f"Cart badge expected '{expected}', shows '{await badge.first.inner_text()}'",
                selector=selector,
                timeout=timeout,
            ) from None

    async def assert_cart_items(self, expected: int) -> None:
        """Assert the cart page lists ``expected`` rows and the badge agrees."""
        cart = self.pages.cart
        timeout = self.config.navigation_timeout
        if expected > 0:
            rows = self.page.locator(cart["item"])
            try:
                await expect(rows).to_have_count(expected, timeout=timeout)
            except AssertionError:
                raise PageAssertionFailed(
                    f"Expected {expected} cart rows, found {await rows.count()}",
                    selector=cart["item"],
                    timeout=timeout,
                ) from None
        await self.check_badge(expected)

    # ------------------------------------------------------------------
    # checkout
    # ------------------------------------------------------------------

    async def proceed_to_checkout(self) -> None:
        checkout = self.pages.checkout
        await self._click(self.pages.cart["checkout_button"])
        await self.expect_url("checkout-step-one.html")
        await self.wait_visible(checkout.container, self.config.navigation_timeout)

    async def fill_checkout_form(self, first_name: str, last_name: str, postal_code: str) -> None:
        """
        Fill the checkout information form.

        Empty values are left untouched so required-field validation can be
        exercised. Each typed value is read back and must match exactly.
        """
        checkout = self.pages.checkout
        timeout = self.config.command_timeout
        await self.wait_visible(checkout.container)

        for key, value in (
            ("first_name", first_name),
            ("last_name", last_name),
            ("postal_code", postal_code),
        ):
            if not value:
                continue
            selector = checkout[key]
            field = await self.wait_visible(selector)
            await field.clear()
            await field.press_sequentially(value, delay=self.config.type_delay)
            try:
                await expect(field).to_have_value(value, timeout=timeout)
            except AssertionError:
                raise FieldMismatch(selector, value, await field.input_value(), timeout) from None
            logger.debug("checkout_field_filled", field=key, value=value)

    async def continue_checkout(self) -> None:
        await self._click(self.pages.checkout["continue"])

    async def assert_checkout_overview(self) -> None:
        overview = self.pages.checkout_overview
        await self.wait_visible(overview.container, self.config.navigation_timeout)

    async def finish_checkout(self) -> None:
        await self._click(self.pages.checkout_overview["finish"])

    async def complete_order(self) -> None:
        """Finish the order and wait for the confirmation header."""
        complete = self.pages.checkout_complete
        await self.finish_checkout()
        await self.assert_text(
            complete["complete_header"],
            complete.constants["confirmation_text"],
            self.config.navigation_timeout,
        )

    async def assert_order_confirmation(self) -> None:
        complete = self.pages.checkout_complete
        await self.expect_url("checkout-complete.html")
        await self.assert_text(
            complete["complete_header"], complete.constants["confirmation_text"]
        )

    async def assert_order_dispatched(self) -> None:
        complete = self.pages.checkout_complete
        await self.assert_text(
            complete["complete_text"],
            complete.constants["dispatch_text"],
            self.config.navigation_timeout,
        )

    # ------------------------------------------------------------------
    # messages
    # ------------------------------------------------------------------

    async def assert_text(
        self, selector: str, text: str, timeout: int | None = None, exact: bool = False
    ) -> None:
        timeout = timeout or self.config.command_timeout
        locator = await self.wait_visible(selector, timeout)
        try:
            if exact:
                await expect(locator).to_have_text(text, timeout=timeout)
            else:
                await expect(locator).to_contain_text(text, timeout=timeout)
        except AssertionError:
            raise PageAssertionFailed(
                f"'{selector}' expected text '{text}', got '{await locator.inner_text()}'",
                selector=selector,
                timeout=timeout,
            ) from None

    async def assert_error(self, text: str, exact: bool = False) -> None:
        await self.assert_text(self.pages.login["error"], text, exact=exact)

    # ------------------------------------------------------------------
    # browser storage
    # ------------------------------------------------------------------

    async def clear_cookies_and_storage(self) -> None:
        await self.page.context.clear_cookies()
        await self.page.evaluate("() => window.localStorage.clear()")

    async def manipulate_session_token(self, username: str = "manipulated_user") -> None:
        await self.page.evaluate(
            "(name) => window.sessionStorage.setItem('session-username', name)",
            username,
        )
