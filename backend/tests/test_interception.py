"""Interception virtualizer with a mocked page and route objects."""

import asyncio
from unittest.mock import ANY, AsyncMock, MagicMock

import pytest

from storefront_e2e.core import interception as interception_module
from storefront_e2e.core.errors import InterceptionAssertionFailed, InterceptionOrderError
from storefront_e2e.core.interception import (
    SQL_FLOW_RULES,
    InterceptionVirtualizer,
)


@pytest.fixture
def virtualizer(page, config):
    return InterceptionVirtualizer(page, config)


def make_route(url: str, method: str = "GET") -> MagicMock:
    route = MagicMock(name="route")
    route.request.url = url
    route.request.method = method
    route.fulfill = AsyncMock()
    route.fallback = AsyncMock()
    route.abort = AsyncMock()
    return route


async def arm_sql_flow(virtualizer, username="standard_user"):
    for alias, (pattern, fixture) in SQL_FLOW_RULES.items():
        await virtualizer.arm(alias, pattern, fixture, username)


def test_render_fixture_substitutes_username(virtualizer):
    body = virtualizer.render_fixture("sql-inventory-page.html", "problem_user")

    assert "User: problem_user authenticated via SQL database" in body
    assert "{{username}}" not in body


def test_missing_fixture_renders_empty(page, config, tmp_path):
    virtualizer = InterceptionVirtualizer(page, config, fixtures_dir=tmp_path)
    assert virtualizer.render_fixture("sql-cart-page.html", "standard_user") == ""


def test_every_sql_fixture_exists(config):
    for _, fixture in SQL_FLOW_RULES.values():
        assert (config.fixtures_dir / fixture).is_file()


async def test_arm_registers_route(virtualizer, page):
    rule = await virtualizer.arm("sqlCartPage", "**/cart.html", "sql-cart-page.html", "standard_user")

    page.route.assert_awaited_once_with("**/cart.html", rule.handler)
    assert rule.headers["x-user"] == "standard_user"
    assert virtualizer.pending() == ["sqlCartPage"]


async def test_arm_after_navigation_is_rejected(virtualizer):
    await virtualizer.navigate("https://www.saucedemo.com/inventory.html")

    with pytest.raises(InterceptionOrderError):
        await virtualizer.arm("late", "**/cart.html", "sql-cart-page.html", "standard_user")


async def test_only_the_requested_page_fires(virtualizer):
    await arm_sql_flow(virtualizer)
    rules = virtualizer.rules

    route = make_route("https://www.saucedemo.com/inventory.html")
    await rules["sqlInventoryPage"].handler(route)

    route.fulfill.assert_awaited_once()
    assert "standard_user" in route.fulfill.call_args.kwargs["body"]
    assert virtualizer.fired() == ["sqlInventoryPage"]
    assert "sqlInventoryPage" not in virtualizer.pending()
    assert "sqlCartPage" in virtualizer.pending()
    assert "sqlCheckoutStepOne" in virtualizer.pending()
    await virtualizer.wait_for("sqlInventoryPage", timeout=100)


async def test_rule_answers_once_until_rearmed(virtualizer):
    rule = await virtualizer.arm("sqlCartPage", "**/cart.html", "sql-cart-page.html", "standard_user")

    first = make_route("https://www.saucedemo.com/cart.html")
    second = make_route("https://www.saucedemo.com/cart.html")
    await rule.handler(first)
    await rule.handler(second)

    first.fulfill.assert_awaited_once()
    second.fulfill.assert_not_awaited()
    second.fallback.assert_not_awaited()
    second.abort.assert_awaited_once()
    assert virtualizer.blocked() == {"sqlCartPage": ["https://www.saucedemo.com/cart.html"]}

    virtualizer.rearm("sqlCartPage")
    third = make_route("https://www.saucedemo.com/cart.html")
    await rule.handler(third)
    third.fulfill.assert_awaited_once()
    assert rule.hits == 2


async def test_method_mismatch_falls_through(virtualizer):
    rule = await virtualizer.arm("sqlCartPage", "**/cart.html", "sql-cart-page.html", "standard_user")

    route = make_route("https://www.saucedemo.com/cart.html", method="POST")
    await rule.handler(route)

    route.fallback.assert_awaited_once()
    assert not rule.consumed


async def test_wait_for_unfired_rule_times_out(virtualizer):
    await virtualizer.arm("sqlCartPage", "**/cart.html", "sql-cart-page.html", "standard_user")

    with pytest.raises(InterceptionAssertionFailed, match="did not fire") as exc_info:
        await virtualizer.wait_for("sqlCartPage", timeout=10)
    assert exc_info.value.alias == "sqlCartPage"


async def test_wait_for_unknown_alias(virtualizer):
    with pytest.raises(InterceptionAssertionFailed, match="No interception rule"):
        await virtualizer.wait_for("sqlNothing")


async def test_missing_marker(virtualizer, patch_expect):
    assertion = patch_expect(interception_module)
    assertion.to_be_visible.side_effect = [None, AssertionError("hidden")]

    with pytest.raises(InterceptionAssertionFailed, match="User: bob"):
        await virtualizer.assert_markers(
            ["SQL Authentication Success!", "User: bob authenticated via SQL database"]
        )


async def test_clear_removes_every_rule(virtualizer, page):
    await arm_sql_flow(virtualizer)
    await virtualizer.navigate("https://www.saucedemo.com/inventory.html")

    await virtualizer.clear()

    assert page.unroute.await_count == len(SQL_FLOW_RULES)
    page.unroute.assert_any_await("**/inventory.html", ANY)
    assert virtualizer.rules == {}
    # a cleared virtualizer can be armed again for the next scenario
    await virtualizer.arm("sqlCartPage", "**/cart.html", "sql-cart-page.html", "standard_user")


async def test_fired_event_wakes_waiter(virtualizer):
    rule = await virtualizer.arm("sqlCartPage", "**/cart.html", "sql-cart-page.html", "standard_user")

    waiter = asyncio.create_task(virtualizer.wait_for("sqlCartPage", timeout=1000))
    await asyncio.sleep(0)
    await rule.handler(make_route("https://www.saucedemo.com/cart.html"))

    assert await waiter is rule


async def test_blocked_requests_reported_when_waiting(virtualizer):
    rule = await virtualizer.arm("sqlCartPage", "**/cart.html", "sql-cart-page.html", "standard_user")
    await rule.handler(make_route("https://www.saucedemo.com/cart.html"))
    await rule.handler(make_route("https://www.saucedemo.com/cart.html?again=1"))
    virtualizer.rearm("sqlCartPage")

    with pytest.raises(InterceptionAssertionFailed, match="again=1"):
        await virtualizer.wait_for("sqlCartPage", timeout=10)
