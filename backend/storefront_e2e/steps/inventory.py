"""Inventory (products page) steps, driven through the login form."""

from storefront_e2e.core.context import ScenarioContext
from storefront_e2e.core.steps import StepLibrary

steps = StepLibrary("inventory")


@steps.given("I am on the products page as {string}")
async def on_products_page(ctx: ScenarioContext, username: str):
    await ctx.actions.login(username, ctx.config.default_password)
    await ctx.actions.assert_on_inventory()


@steps.when("I sort products by {string}")
async def sort_products(ctx: ScenarioContext, option: str):
    await ctx.actions.select_sort(option)


@steps.when("I add {int} product to my cart")
async def add_product(ctx: ScenarioContext, count: int):
    await ctx.actions.add_items(count)


@steps.when("I can remove {int} product from my cart")
async def remove_product(ctx: ScenarioContext, count: int):
    await ctx.actions.remove_items(count, on="inventory")


@steps.then("All products are loaded correctly")
async def products_loaded(ctx: ScenarioContext):
    await ctx.actions.assert_all_products_loaded()


@steps.then("The products are sorted by {string}")
async def products_sorted(ctx: ScenarioContext, option: str):
    await ctx.actions.assert_sorted(option)


@steps.then("I have {int} product in my cart")
async def product_count(ctx: ScenarioContext, count: int):
    await ctx.actions.check_badge(count)
