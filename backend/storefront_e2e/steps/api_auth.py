"""
Fast-authentication strategy steps.

SauceDemo has no login API, so "API" authentication is a quick form login
whose resulting session is cached per credential key and revalidated before
reuse (see SessionAuthenticator).
"""

import structlog
from playwright.async_api import Page
from tenacity import retry, stop_after_attempt, wait_exponential

from storefront_e2e.core.context import ScenarioContext
from storefront_e2e.core.errors import PageAssertionFailed
from storefront_e2e.core.session import resolve_user
from storefront_e2e.core.steps import StepLibrary

logger = structlog.get_logger()

steps = StepLibrary("api_auth")

STANDARD_CHECKOUT_INFO = ("John", "Doe", "12345")


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=4),
    reraise=True,
)
async def check_reachable(page: Page, url: str) -> int:
    """Request the storefront root and require HTTP 200."""
    response = await page.request.get(url)
    if response.status != 200:
        logger.warning("storefront_unreachable", url=url, status=response.status)
        raise PageAssertionFailed(f"{url} answered HTTP {response.status}, expected 200")
    return response.status


@steps.given("SauceDemo is accessible")
async def storefront_accessible(ctx: ScenarioContext):
    await check_reachable(ctx.page, ctx.config.base_url)


@steps.given("I authenticate using fast API strategy as {string}")
async def fast_auth(ctx: ScenarioContext, username: str):
    await ctx.authenticator.authenticate(ctx.page, username)


@steps.when("I authenticate as {string} using predefined user")
async def auth_as(ctx: ScenarioContext, user_type: str):
    await ctx.authenticator.authenticate(ctx.page, resolve_user(user_type))


@steps.when("I navigate directly to inventory page")
async def go_to_inventory(ctx: ScenarioContext):
    await ctx.actions.navigate_to("inventory")


@steps.when("I navigate to cart page")
async def go_to_cart(ctx: ScenarioContext):
    await ctx.actions.open_cart()


@steps.when("I add {string} to cart using optimized action")
async def add_named_product(ctx: ScenarioContext, product_id: str):
    await ctx.actions.add_product(product_id)


@steps.when("I remove {string} from cart")
async def remove_named_product(ctx: ScenarioContext, product_id: str):
    await ctx.actions.remove_product(product_id)


@steps.when("I proceed to checkout with standard user information")
async def checkout_standard(ctx: ScenarioContext):
    await ctx.actions.proceed_to_checkout()
    await ctx.actions.fill_checkout_form(*STANDARD_CHECKOUT_INFO)
    await ctx.actions.continue_checkout()
    await ctx.actions.assert_checkout_overview()


@steps.when("I complete the order")
async def complete_order(ctx: ScenarioContext):
    await ctx.actions.complete_order()


@steps.then("I should see all products displayed correctly")
async def products_displayed(ctx: ScenarioContext):
    await ctx.actions.assert_products_displayed(minimum=6)


@steps.then("the page should load within acceptable time")
async def page_loaded(ctx: ScenarioContext):
    # the bounded waits of the earlier steps already enforce the time limit
    await ctx.actions.wait_visible(ctx.pages.inventory.container)


@steps.then("I should see {int} items in cart")
async def items_in_cart(ctx: ScenarioContext, count: int):
    await ctx.actions.assert_cart_items(count)


@steps.then("I should see {int} item in cart")
async def item_in_cart(ctx: ScenarioContext, count: int):
    await ctx.actions.assert_cart_items(count)


@steps.then("I should see order confirmation")
async def order_confirmation(ctx: ScenarioContext):
    complete = ctx.pages.checkout_complete
    await ctx.actions.assert_text(
        complete["complete_header"],
        complete.constants["confirmation_text"],
        ctx.config.navigation_timeout,
    )


@steps.then("the order should be processed successfully")
async def order_processed(ctx: ScenarioContext):
    await ctx.actions.assert_order_dispatched()


@steps.then("I should see appropriate user experience for {string}")
async def user_experience(ctx: ScenarioContext, user_type: str):
    container = ctx.pages.inventory.container
    if user_type == "performance":
        await ctx.actions.wait_visible(container, ctx.config.slow_user_timeout)
    elif user_type == "standard":
        await ctx.actions.wait_visible(container)
        await ctx.actions.wait_visible(ctx.pages.inventory["item"])
    else:
        # problem user has broken images but the page still renders
        await ctx.actions.wait_visible(container)


@steps.then("the page should handle performance user appropriately")
async def performance_user(ctx: ScenarioContext):
    await ctx.actions.wait_visible(ctx.pages.inventory.container, ctx.config.slow_user_timeout)


@steps.then("all products should eventually load")
async def products_eventually_load(ctx: ScenarioContext):
    await ctx.actions.assert_products_displayed(minimum=6, timeout=ctx.config.slow_user_timeout)
