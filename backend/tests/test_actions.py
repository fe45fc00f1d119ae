"""Action library behavior against a mocked page."""

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeout

from storefront_e2e.core import actions as actions_module
from storefront_e2e.core.actions import StorefrontActions, expected_order, parse_price
from storefront_e2e.core.errors import (
    ElementNotFound,
    FieldMismatch,
    IndexOutOfRange,
    NavigationTimeout,
    PageAssertionFailed,
)


@pytest.fixture
def assertion(patch_expect):
    return patch_expect(actions_module)


@pytest.fixture
def actions(page, pages, config):
    return StorefrontActions(page, pages, config)


def test_parse_price():
    assert parse_price("$29.99") == 29.99
    assert parse_price(" $7.99 ") == 7.99


def test_expected_order():
    prices = [29.99, 9.99, 15.99]
    assert expected_order(prices, "Price (low to high)") == [9.99, 15.99, 29.99]
    assert expected_order(prices, "Price (high to low)") == [29.99, 15.99, 9.99]
    assert expected_order(["b", "a"], "Name (A to Z)") == ["a", "b"]
    with pytest.raises(ValueError, match="Unknown sort option"):
        expected_order(prices, "Popularity")


class TestCartBadge:
    async def test_zero_means_badge_absent(self, actions, assertion, page, pages):
        await actions.check_badge(0)

        page.locator.assert_any_call(pages.inventory["cart_badge"])
        assertion.to_have_count.assert_awaited_once_with(0, timeout=5000)
        assertion.to_contain_text.assert_not_awaited()

    async def test_zero_with_visible_badge_fails(self, actions, assertion, locator):
        assertion.to_have_count.side_effect = AssertionError("count 1")
        locator.inner_text.return_value = "1"

        with pytest.raises(PageAssertionFailed, match="absent but shows '1'"):
            await actions.check_badge(0)

    async def test_count_compares_badge_text(self, actions, assertion):
        await actions.check_badge(3)
        assertion.to_contain_text.assert_awaited_once_with("3", timeout=5000)

    async def test_missing_badge(self, actions, assertion, locator):
        assertion.to_contain_text.side_effect = AssertionError("no element")
        locator.count.return_value = 0

        with pytest.raises(ElementNotFound, match="shopping-cart-badge"):
            await actions.check_badge(2)

    async def test_wrong_count(self, actions, assertion, locator):
        assertion.to_contain_text.side_effect = AssertionError("text")
        locator.count.return_value = 1
        locator.inner_text.return_value = "1"

        with pytest.raises(PageAssertionFailed, match="expected '2', shows '1'"):
            await actions.check_badge(2)


class TestItemControls:
    async def test_add_items_clicks_in_dom_order(self, actions, assertion, locator, pages):
        await actions.add_items(3)

        assert [c.args for c in locator.nth.call_args_list if c.args] == [(0,), (0,), (1,), (1,), (2,), (2,)]
        assert locator.click.await_count == 3

    async def test_index_out_of_range(self, actions, assertion, locator):
        assertion.to_be_attached.side_effect = [None, AssertionError("detached")]
        locator.count.return_value = 1

        with pytest.raises(IndexOutOfRange) as exc_info:
            await actions.add_items(2)

        assert exc_info.value.index == 1
        assert exc_info.value.available == 1
        assert locator.click.await_count == 1

    async def test_remove_on_cart_uses_cart_selector(self, actions, assertion, page, pages):
        await actions.remove_items(1, on="cart")
        page.locator.assert_any_call(pages.cart["remove_button"])

    async def test_click_timeout_becomes_element_not_found(self, actions, locator, pages):
        locator.click.side_effect = PlaywrightTimeout("Timeout 5000ms exceeded")

        with pytest.raises(ElementNotFound, match="shopping-cart-link"):
            await actions.try_go_to_cart()


class TestCheckoutForm:
    async def test_empty_values_are_skipped(self, actions, assertion, locator):
        await actions.fill_checkout_form("", "Doe", "12345")

        typed = [c.args[0] for c in locator.press_sequentially.call_args_list]
        assert typed == ["Doe", "12345"]
        assert locator.clear.await_count == 2

    async def test_value_read_back_mismatch(self, actions, assertion, locator, pages):
        assertion.to_have_value.side_effect = AssertionError("value")
        locator.input_value.return_value = "Jo"

        with pytest.raises(FieldMismatch) as exc_info:
            await actions.fill_checkout_form("John", "Doe", "12345")

        assert exc_info.value.selector == pages.checkout["first_name"]
        assert exc_info.value.actual == "Jo"


class TestLogin:
    async def test_empty_marker_clears_field(self, actions, locator):
        await actions.enter_credentials("<EMPTY>", "secret_sauce")

        locator.clear.assert_awaited_once()
        locator.press_sequentially.assert_awaited_once_with("secret_sauce")

    async def test_navigation_timeout(self, actions, assertion, page, pages):
        assertion.to_be_visible.side_effect = AssertionError("hidden")

        with pytest.raises(NavigationTimeout) as exc_info:
            await actions.navigate_to("login")

        page.goto.assert_awaited_once_with(pages.login.url, timeout=10000)
        assert exc_info.value.selector == pages.login.container


class TestSorting:
    async def test_sorted_prices_pass(self, actions, locator):
        locator.all_inner_texts.return_value = ["$7.99", "$9.99", "$29.99"]
        await actions.assert_sorted("Price (low to high)")

    async def test_unsorted_names_fail(self, actions, locator):
        locator.all_inner_texts.return_value = ["Sauce Labs Onesie", "Sauce Labs Backpack"]

        with pytest.raises(PageAssertionFailed, match="Name \\(A to Z\\)"):
            await actions.assert_sorted("Name (A to Z)")

    @pytest.mark.parametrize("option", ["Price (low to high)", "Price (high to low)"])
    async def test_unsorted_prices_fail(self, actions, locator, option):
        locator.all_inner_texts.return_value = ["$29.99", "$9.99", "$15.99"]

        with pytest.raises(PageAssertionFailed, match="Price"):
            await actions.assert_sorted(option)


async def test_cart_rows_use_cart_item_selector(actions, assertion, page, pages):
    await actions.assert_cart_items(2)

    page.locator.assert_any_call(pages.cart["item"])
    page.locator.assert_any_call(".cart_item")
    assertion.to_have_count.assert_any_await(2, timeout=10000)


async def test_all_products_loaded_reports_count(actions, assertion, locator):
    assertion.to_have_count.side_effect = AssertionError("count")
    locator.count.return_value = 4

    with pytest.raises(PageAssertionFailed, match="Expected 6 products, found 4"):
        await actions.assert_all_products_loaded()


async def test_assert_error_exact(actions, assertion, pages):
    await actions.assert_error("Epic sadface: Username is required", exact=True)

    assertion.expect.assert_any_call(actions.page.locator.return_value)
    assertion.to_have_text.assert_awaited_once_with(
        "Epic sadface: Username is required", timeout=5000
    )
