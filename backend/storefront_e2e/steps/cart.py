"""Cart and checkout steps."""

from storefront_e2e.core.context import ScenarioContext
from storefront_e2e.core.steps import StepLibrary

steps = StepLibrary("cart")

CART_ACCESS_ERROR = "Epic sadface: You can only access '/cart.html' when you are logged in."


@steps.when("I add {int} products to my cart")
async def add_products(ctx: ScenarioContext, count: int):
    await ctx.actions.add_items(count)


@steps.when("I go to the cart page")
async def go_to_cart(ctx: ScenarioContext):
    await ctx.actions.go_to_cart()


@steps.when("I try to go to the cart page")
async def try_go_to_cart(ctx: ScenarioContext):
    await ctx.actions.try_go_to_cart()


@steps.when("I proceed to checkout")
async def proceed_to_checkout(ctx: ScenarioContext):
    await ctx.actions.proceed_to_checkout()


@steps.when("I fill in checkout information with {string} {string} {string}")
async def fill_checkout(ctx: ScenarioContext, first_name: str, last_name: str, postal_code: str):
    await ctx.actions.fill_checkout_form(first_name, last_name, postal_code)


@steps.when("I continue with the checkout")
async def continue_checkout(ctx: ScenarioContext):
    await ctx.actions.continue_checkout()


@steps.when("I try to complete the checkout")
async def try_complete_checkout(ctx: ScenarioContext):
    # the form is still on step one, so this is the continue button
    await ctx.actions.continue_checkout()


@steps.when("I complete the checkout")
async def complete_checkout(ctx: ScenarioContext):
    await ctx.actions.finish_checkout()


@steps.when("I remove {int} product from the cart")
async def remove_from_cart(ctx: ScenarioContext, count: int):
    await ctx.actions.remove_items(count, on="cart")


@steps.when("I manipulate the session token")
async def manipulate_session_token(ctx: ScenarioContext):
    await ctx.actions.manipulate_session_token()


@steps.when("I clear cookies and local storage")
async def clear_storage(ctx: ScenarioContext):
    await ctx.actions.clear_cookies_and_storage()


@steps.then("I should see the order confirmation")
async def see_order_confirmation(ctx: ScenarioContext):
    await ctx.actions.assert_order_confirmation()


@steps.then("I should be redirected to the login page")
async def redirected_to_login(ctx: ScenarioContext):
    await ctx.actions.assert_on_login_page()


@steps.then("I should see the cart access error message")
async def cart_access_error(ctx: ScenarioContext):
    await ctx.actions.assert_error(CART_ACCESS_ERROR)


@steps.then("I should see an error message for missing firstname")
async def missing_first_name(ctx: ScenarioContext):
    await ctx.actions.assert_error("First Name is required")


@steps.then("I should see an error message for missing lastname")
async def missing_last_name(ctx: ScenarioContext):
    await ctx.actions.assert_error("Last Name is required")


@steps.then("I should see an error message for missing postcode")
async def missing_postcode(ctx: ScenarioContext):
    await ctx.actions.assert_error("Postal Code is required")


@steps.then("I should have {int} products in my cart")
async def should_have_products(ctx: ScenarioContext, count: int):
    await ctx.actions.check_badge(count)


@steps.then("I have {int} products in my cart")
async def have_products(ctx: ScenarioContext, count: int):
    await ctx.actions.check_badge(count)
