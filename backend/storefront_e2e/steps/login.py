"""Login page steps."""

from storefront_e2e.core.context import ScenarioContext
from storefront_e2e.core.steps import StepLibrary

steps = StepLibrary("login")


@steps.given("I open the login page")
async def open_login_page(ctx: ScenarioContext):
    await ctx.actions.navigate_to("login")


@steps.when("I enter username {string} and password {string}")
async def enter_credentials(ctx: ScenarioContext, username: str, password: str):
    await ctx.actions.enter_credentials(username, password)


@steps.when("I click the login button")
async def click_login(ctx: ScenarioContext):
    await ctx.actions.submit_login()


@steps.then("I should see the homepage")
async def see_homepage(ctx: ScenarioContext):
    await ctx.actions.assert_left_login_page()


@steps.then("I should see a login error with {string}")
async def see_login_error(ctx: ScenarioContext, message: str):
    await ctx.actions.assert_error(message, exact=True)
