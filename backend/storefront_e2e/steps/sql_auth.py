"""
SQL-stub authentication steps.

The session is written straight into the browser (no UI login) and the
storefront pages are served from fixtures by the interception virtualizer.
"""

from storefront_e2e.core.context import ScenarioContext
from storefront_e2e.core.errors import PageAssertionFailed
from storefront_e2e.core.interception import SQL_FLOW_RULES
from storefront_e2e.core.steps import StepLibrary

steps = StepLibrary("sql_auth")

SQL_SESSION_KEYS = ("sql_authenticated", "sql_username", "sql_session_token")
SQL_LOCAL_KEYS = ("sql_user_session",)

_READ_SQL_STATE = """
() => ({
  authenticated: window.sessionStorage.getItem('sql_authenticated'),
  username: window.sessionStorage.getItem('sql_username'),
  token: window.sessionStorage.getItem('sql_session_token'),
})
"""

_CLEAR_PRESERVING_SQL = """
([sessionKeys, localKeys]) => {
  const keep = (store, keys) => keys
    .map((k) => [k, store.getItem(k)])
    .filter(([, v]) => v !== null);
  const session = keep(window.sessionStorage, sessionKeys);
  const local = keep(window.localStorage, localKeys);
  window.localStorage.clear();
  window.sessionStorage.clear();
  session.forEach(([k, v]) => window.sessionStorage.setItem(k, v));
  local.forEach(([k, v]) => window.localStorage.setItem(k, v));
}
"""

_MANIPULATE_SQL_TOKENS = """
() => {
  window.localStorage.setItem('sql_session_token', 'manipulated_sql_token_12345');
  window.localStorage.setItem('sql_username', 'manipulated_user');
  window.sessionStorage.setItem('sql_authenticated', 'modified');
}
"""


async def sql_authenticate(ctx: ScenarioContext, username: str):
    """Establish a stubbed SQL session and write it into the browser context."""
    entry = ctx.sql.establish(username, ctx.config.default_password)
    ctx.authenticator.cache.put(entry)
    await ctx.authenticator.apply(ctx.page, entry)
    ctx.data["sql_username"] = username
    return entry


async def open_sql_authenticated(ctx: ScenarioContext, path: str, username: str):
    """Authenticate via the SQL stub, virtualize the shop pages and open ``path``."""
    await sql_authenticate(ctx, username)

    virtualizer = ctx.virtualizer
    for alias, (pattern, fixture) in SQL_FLOW_RULES.items():
        await virtualizer.arm(alias, pattern, fixture, username)

    url = f"{ctx.config.base_url.rstrip('/')}{path}"
    await virtualizer.navigate(url)

    # the rule whose glob matched the navigation has answered it by now
    fired = virtualizer.fired()
    await virtualizer.wait_for(fired[0] if fired else "sqlInventoryPage")
    await virtualizer.assert_markers(
        [
            "SQL Authentication Success!",
            f"User: {username} authenticated via SQL database",
        ]
    )

    inventory = ctx.pages.inventory
    await ctx.actions.wait_visible(inventory["sort_dropdown"])
    await ctx.actions.assert_all_products_loaded()


@steps.given("I am authenticated via SQL as {string}")
async def authenticated_via_sql(ctx: ScenarioContext, username: str):
    await sql_authenticate(ctx, username)


@steps.given("I open {string} as SQL user {string}")
async def open_as_sql_user(ctx: ScenarioContext, path: str, username: str):
    await open_sql_authenticated(ctx, path, username)


@steps.when("I manipulate the SQL session token")
async def manipulate_sql_token(ctx: ScenarioContext):
    await ctx.page.evaluate(_MANIPULATE_SQL_TOKENS)


@steps.when("I clear browser cookies and local storage")
async def clear_preserving_sql(ctx: ScenarioContext):
    await ctx.page.context.clear_cookies()
    await ctx.page.evaluate(_CLEAR_PRESERVING_SQL, [list(SQL_SESSION_KEYS), list(SQL_LOCAL_KEYS)])


async def _assert_sql_session(ctx: ScenarioContext):
    state = await ctx.page.evaluate(_READ_SQL_STATE)
    expected_user = ctx.data.get("sql_username", "standard_user")
    if state["authenticated"] != "true":
        raise PageAssertionFailed(
            f"sessionStorage sql_authenticated is {state['authenticated']!r}, expected 'true'"
        )
    if state["username"] != expected_user:
        raise PageAssertionFailed(
            f"sessionStorage sql_username is {state['username']!r}, expected {expected_user!r}"
        )
    if not state["token"]:
        raise PageAssertionFailed("sessionStorage sql_session_token is missing")


@steps.when("I verify SQL authentication is maintained")
async def sql_auth_maintained(ctx: ScenarioContext):
    await _assert_sql_session(ctx)


@steps.then("I should still be on the cart page with SQL authentication")
async def still_on_cart(ctx: ScenarioContext):
    await ctx.actions.expect_url("cart.html")
    await _assert_sql_session(ctx)
