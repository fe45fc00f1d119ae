"""Step handlers wired to their collaborators."""

from types import SimpleNamespace
from unittest.mock import ANY, AsyncMock, MagicMock

import pytest
from tenacity import wait_none

from storefront_e2e.core import actions as actions_module
from storefront_e2e.core import interception as interception_module
from storefront_e2e.core.errors import AuthenticationFailed, PageAssertionFailed
from storefront_e2e.core.steps import StepKeyword, StepRegistry
from storefront_e2e.runner import ScenarioRunner
from storefront_e2e.steps import cart, get_libraries, inventory, login
from storefront_e2e.steps.api_auth import check_reachable
from storefront_e2e.steps.sql_auth import open_sql_authenticated


@pytest.fixture
def ctx(config, pages):
    return SimpleNamespace(
        actions=AsyncMock(unsafe=True),
        authenticator=AsyncMock(),
        config=config,
        pages=pages,
        page=MagicMock(),
        data={},
    )


async def run_phrase(ctx, libraries, keyword, phrase):
    registry = StepRegistry.build(get_libraries(libraries))
    return await registry.resolve(keyword, phrase).run(ctx)


async def test_products_page_logs_in_with_default_password(ctx):
    await run_phrase(ctx, ["inventory"], StepKeyword.GIVEN, 'I am on the products page as "problem_user"')

    ctx.actions.login.assert_awaited_once_with("problem_user", "secret_sauce")
    ctx.actions.assert_on_inventory.assert_awaited_once()


async def test_login_error_is_exact(ctx):
    await login.see_login_error(ctx, "Epic sadface: Username is required")
    ctx.actions.assert_error.assert_awaited_once_with("Epic sadface: Username is required", exact=True)


@pytest.mark.parametrize(
    "field, message",
    [
        ("firstname", "First Name is required"),
        ("lastname", "Last Name is required"),
        ("postcode", "Postal Code is required"),
    ],
)
async def test_missing_checkout_field_messages(ctx, field, message):
    await run_phrase(ctx, ["cart"], StepKeyword.THEN, f"I should see an error message for missing {field}")
    ctx.actions.assert_error.assert_awaited_once_with(message)


async def test_cart_access_error(ctx):
    await cart.cart_access_error(ctx)
    ctx.actions.assert_error.assert_awaited_once_with(
        "Epic sadface: You can only access '/cart.html' when you are logged in."
    )


async def test_remove_from_cart_targets_cart_page(ctx):
    await cart.remove_from_cart(ctx, 1)
    ctx.actions.remove_items.assert_awaited_once_with(1, on="cart")


async def test_sort_steps(ctx):
    await inventory.sort_products(ctx, "Price (high to low)")
    await inventory.products_sorted(ctx, "Price (high to low)")

    ctx.actions.select_sort.assert_awaited_once_with("Price (high to low)")
    ctx.actions.assert_sorted.assert_awaited_once_with("Price (high to low)")


async def test_predefined_user_alias(ctx):
    await run_phrase(ctx, ["api_auth"], StepKeyword.WHEN, 'I authenticate as "performance" using predefined user')
    ctx.authenticator.authenticate.assert_awaited_once_with(ctx.page, "performance_glitch_user")


async def test_reachability_retries_then_fails():
    page = MagicMock()
    page.request.get = AsyncMock(return_value=SimpleNamespace(status=503))
    check = check_reachable.retry_with(wait=wait_none())

    with pytest.raises(PageAssertionFailed, match="HTTP 503"):
        await check(page, "https://www.saucedemo.com")
    assert page.request.get.await_count == 3


async def test_reachability_recovers():
    page = MagicMock()
    page.request.get = AsyncMock(
        side_effect=[SimpleNamespace(status=502), SimpleNamespace(status=200)]
    )
    check = check_reachable.retry_with(wait=wait_none())

    assert await check(page, "https://www.saucedemo.com") == 200


class TestSqlFlow:
    @pytest.fixture
    def sql_ctx(self, config, page, session_cache, patch_expect):
        patch_expect(actions_module)
        patch_expect(interception_module)
        context = ScenarioRunner(config=config, session_cache=session_cache).make_context(page)

        async def goto(url, **kwargs):
            for rule in context.virtualizer.rules.values():
                if url.endswith(rule.url_pattern.removeprefix("**")):
                    route = MagicMock()
                    route.request.url = url
                    route.request.method = "GET"
                    route.fulfill = AsyncMock()
                    route.fallback = AsyncMock()
                    route.abort = AsyncMock()
                    await rule.handler(route)

        page.goto.side_effect = goto
        return context

    async def test_open_inventory_as_sql_user(self, sql_ctx, page, session_cache):
        await open_sql_authenticated(sql_ctx, "/inventory.html", "standard_user")

        virtualizer = sql_ctx.virtualizer
        assert virtualizer.fired() == ["sqlInventoryPage"]
        assert set(virtualizer.pending()) == {
            "sqlCartPage",
            "sqlCheckoutStepOne",
            "sqlCheckoutStepTwo",
            "sqlCheckoutComplete",
        }
        assert sql_ctx.data["sql_username"] == "standard_user"
        assert len(session_cache) == 1
        page.context.add_init_script.assert_not_awaited()
        page.evaluate.assert_any_await(ANY, {"localStorage": ANY, "sessionStorage": ANY})
        page.get_by_text.assert_any_call("User: standard_user authenticated via SQL database")

    async def test_inactive_sql_user_never_navigates(self, sql_ctx, page):
        with pytest.raises(AuthenticationFailed):
            await open_sql_authenticated(sql_ctx, "/inventory.html", "locked_out_user")
        page.goto.assert_not_awaited()

    async def test_session_check_reads_session_storage(self, sql_ctx, page):
        sql_ctx.data["sql_username"] = "standard_user"
        page.evaluate.return_value = {"authenticated": "modified", "username": "standard_user", "token": "t"}

        with pytest.raises(PageAssertionFailed, match="sql_authenticated"):
            await run_phrase(sql_ctx, ["sql_auth"], StepKeyword.WHEN, "I verify SQL authentication is maintained")
