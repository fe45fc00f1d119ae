"""
Page Objects - Selector Registry

Static, per-page tables mapping semantic element names to locator strings.
Nothing here touches the browser; a bad selector only shows up later as an
ElementNotFound raised by the action library.

Usage:
    pages = build_page_registry(settings.base_url)
    pages.inventory["cart_badge"]      # '[data-test="shopping-cart-badge"]'
    pages.inventory.url                # 'https://www.saucedemo.com/inventory.html'
"""

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any


@dataclass(frozen=True)
class PageObject:
    """Selectors and constants for one logical page."""

    name: str
    path: str
    container: str
    base_url: str = ""
    selectors: Mapping[str, str] = field(default_factory=dict)
    constants: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "selectors", MappingProxyType(dict(self.selectors)))
        object.__setattr__(self, "constants", MappingProxyType(dict(self.constants)))

    @classmethod
    def define(
        cls,
        name: str,
        path: str,
        container: str,
        selectors: Iterable[tuple[str, str]],
        base_url: str = "",
        **constants: Any,
    ) -> "PageObject":
        """
        Build a page from (semantic name, locator) pairs.

        Raises:
            ValueError: if a semantic name is defined twice for the page
        """
        table: dict[str, str] = {}
        for key, locator in selectors:
            if key in table:
                raise ValueError(f"Duplicate selector '{key}' on page '{name}'")
            table[key] = locator
        return cls(
            name=name,
            path=path,
            container=container,
            base_url=base_url,
            selectors=table,
            constants=constants,
        )

    @property
    def url(self) -> str:
        return f"{self.base_url.rstrip('/')}{self.path}"

    def __getitem__(self, key: str) -> str:
        try:
            return self.selectors[key]
        except KeyError:
            raise KeyError(f"Page '{self.name}' has no selector '{key}'") from None

    def __contains__(self, key: object) -> bool:
        return key in self.selectors


@dataclass(frozen=True)
class PageRegistry:
    """Read-only collection of page objects, built once per run."""

    login: PageObject
    inventory: PageObject
    cart: PageObject
    checkout: PageObject
    checkout_overview: PageObject
    checkout_complete: PageObject

    def get(self, name: str) -> PageObject:
        page = getattr(self, name, None)
        if not isinstance(page, PageObject):
            raise KeyError(f"Unknown page '{name}'")
        return page

    def __iter__(self) -> Iterator[PageObject]:
        return iter(
            (
                self.login,
                self.inventory,
                self.cart,
                self.checkout,
                self.checkout_overview,
                self.checkout_complete,
            )
        )


def _data_test(value: str) -> str:
    return f'[data-test="{value}"]'


def build_page_registry(base_url: str) -> PageRegistry:
    """Create the SauceDemo page objects rooted at ``base_url``."""
    cart_badge = _data_test("shopping-cart-badge")
    cart_link = _data_test("shopping-cart-link")
    error = _data_test("error")

    login = PageObject.define(
        "login",
        "/",
        _data_test("login-container"),
        [
            ("username", '[id="user-name"]'),
            ("password", '[id="password"]'),
            ("submit", '[id="login-button"]'),
            ("error", error),
        ],
        base_url=base_url,
    )

    inventory = PageObject.define(
        "inventory",
        "/inventory.html",
        _data_test("inventory-container"),
        [
            ("item", _data_test("inventory-item")),
            ("item_name", _data_test("inventory-item-name")),
            ("item_price", _data_test("inventory-item-price")),
            ("item_image", f'{_data_test("inventory-item")} img'),
            ("add_button", '[class="btn btn_primary btn_small btn_inventory "]'),
            ("remove_button", '[class*="btn_secondary btn_small btn_inventory"]'),
            ("sort_dropdown", ".product_sort_container"),
            ("cart_badge", cart_badge),
            ("cart_link", cart_link),
        ],
        base_url=base_url,
        product_count=6,
    )

    cart = PageObject.define(
        "cart",
        "/cart.html",
        _data_test("cart-list"),
        [
            ("item", ".cart_item"),
            ("remove_button", '[data-test^="remove-"]'),
            ("checkout_button", _data_test("checkout")),
            ("continue_shopping", _data_test("continue-shopping")),
            ("cart_badge", cart_badge),
            ("cart_link", cart_link),
            ("error", error),
        ],
        base_url=base_url,
    )

    checkout = PageObject.define(
        "checkout",
        "/checkout-step-one.html",
        _data_test("checkout-info-container"),
        [
            ("first_name", _data_test("firstName")),
            ("last_name", _data_test("lastName")),
            ("postal_code", _data_test("postalCode")),
            ("continue", _data_test("continue")),
            ("cancel", _data_test("cancel")),
            ("error", error),
        ],
        base_url=base_url,
    )

    checkout_overview = PageObject.define(
        "checkout_overview",
        "/checkout-step-two.html",
        _data_test("checkout-summary-container"),
        [
            ("finish", _data_test("finish")),
            ("cancel", _data_test("cancel")),
        ],
        base_url=base_url,
    )

    checkout_complete = PageObject.define(
        "checkout_complete",
        "/checkout-complete.html",
        _data_test("checkout-complete-container"),
        [
            ("complete_header", _data_test("complete-header")),
            ("complete_text", _data_test("complete-text")),
        ],
        base_url=base_url,
        confirmation_text="Thank you for your order!",
        dispatch_text="Your order has been dispatched",
    )

    return PageRegistry(
        login=login,
        inventory=inventory,
        cart=cart,
        checkout=checkout,
        checkout_overview=checkout_overview,
        checkout_complete=checkout_complete,
    )
