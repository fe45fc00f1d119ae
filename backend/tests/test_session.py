"""Session cache and the cache-aware authenticator."""

import asyncio
from unittest.mock import ANY

import pytest

from storefront_e2e.core import session as session_module
from storefront_e2e.core.errors import AuthenticationFailed
from storefront_e2e.core.session import (
    FAST_AUTH,
    CredentialKey,
    SessionAuthenticator,
    SessionCache,
    SessionEntry,
    resolve_user,
)


@pytest.fixture
def assertion(patch_expect):
    return patch_expect(session_module)


@pytest.fixture
def authenticator(session_cache, pages, config):
    return SessionAuthenticator(session_cache, pages, config)


def _entry(username="standard_user", strategy=FAST_AUTH) -> SessionEntry:
    return SessionEntry(
        key=CredentialKey(username, "secret_sauce", strategy),
        storage_state={
            "cookies": [{"name": "session-username", "value": username, "domain": "www.saucedemo.com", "path": "/"}],
            "origins": [
                {
                    "origin": "https://www.saucedemo.com",
                    "localStorage": [{"name": "cart-contents", "value": "[]"}],
                }
            ],
        },
    )


def test_resolve_user():
    assert resolve_user("performance") == "performance_glitch_user"
    assert resolve_user("visual_user") == "visual_user"


def test_cache_is_keyed_by_strategy(session_cache):
    fast = _entry()
    sql = _entry(strategy="sql-stub")
    session_cache.put(fast)
    session_cache.put(sql)

    assert len(session_cache) == 2
    assert session_cache.get(fast.key) is fast
    session_cache.invalidate(fast.key)
    assert fast.key not in session_cache
    assert sql.key in session_cache


def test_lock_is_per_key(session_cache):
    key = CredentialKey("standard_user", "secret_sauce")
    assert session_cache.lock(key) is session_cache.lock(CredentialKey("standard_user", "secret_sauce"))
    assert session_cache.lock(key) is not session_cache.lock(CredentialKey("problem_user", "secret_sauce"))


def test_storage_by_origin_merges_session_storage():
    entry = _entry()
    entry.session_storage["https://www.saucedemo.com"] = {"sql_authenticated": "true"}

    assert entry.storage_by_origin() == {
        "https://www.saucedemo.com": {
            "localStorage": {"cart-contents": "[]"},
            "sessionStorage": {"sql_authenticated": "true"},
        }
    }


class TestAuthenticate:
    async def test_miss_logs_in_and_caches(self, authenticator, assertion, page, locator, pages, session_cache):
        entry = await authenticator.authenticate(page, "standard_user")

        page.goto.assert_awaited_once_with(pages.login.url, timeout=10000)
        fills = [c.args for c in locator.fill.call_args_list]
        assert fills == [("standard_user",), ("secret_sauce",)]
        assert entry.key == CredentialKey("standard_user", "secret_sauce", FAST_AUTH)
        assert session_cache.get(entry.key) is entry
        assert entry.hits == 0

    async def test_hit_restores_and_probes(self, authenticator, assertion, page, locator, pages, session_cache):
        cached = _entry()
        session_cache.put(cached)

        entry = await authenticator.authenticate(page, "standard_user")

        assert entry is cached
        assert entry.hits == 1
        page.context.add_cookies.assert_awaited_once_with(cached.cookies)
        page.evaluate.assert_awaited_once_with(ANY, {"localStorage": {"cart-contents": "[]"}})
        assert [c.args[0] for c in page.goto.await_args_list] == [
            "https://www.saucedemo.com",
            pages.inventory.url,
        ]
        locator.fill.assert_not_awaited()

    async def test_restored_storage_is_written_once(self, authenticator, assertion, page, session_cache):
        session_cache.put(_entry())
        await authenticator.authenticate(page, "standard_user")
        page.evaluate.reset_mock()

        # a scenario edits storage, then navigates; nothing writes the cached values back
        await page.evaluate("() => window.sessionStorage.setItem('sql_authenticated', 'modified')")
        await authenticator.probe(page)

        page.context.add_init_script.assert_not_awaited()
        assert page.evaluate.await_count == 1

    async def test_failed_probe_rebuilds_once(self, authenticator, assertion, page, locator, session_cache):
        cached = _entry()
        session_cache.put(cached)
        # probe fails, the fresh login then succeeds
        assertion.to_be_visible.side_effect = [AssertionError("logged out"), None]

        entry = await authenticator.authenticate(page, "standard_user")

        assert entry is not cached
        assert session_cache.get(entry.key) is entry
        assert locator.fill.await_count == 2
        assert page.context.clear_cookies.await_count == 2
        # the stale entry's storage is wiped before the fresh login
        assert page.evaluate.await_args_list[-1].args == (session_module._CLEAR_STORAGE_SCRIPT,)

    async def test_login_failure(self, authenticator, assertion, page, session_cache):
        assertion.to_be_visible.side_effect = AssertionError("still on login")

        with pytest.raises(AuthenticationFailed) as exc_info:
            await authenticator.authenticate(page, "locked_out_user")

        assert exc_info.value.timeout == 15000
        assert "locked_out_user" in str(exc_info.value)
        assert len(session_cache) == 0

    async def test_concurrent_callers_share_one_login(self, authenticator, assertion, page, locator):
        first, second = await asyncio.gather(
            authenticator.authenticate(page, "standard_user"),
            authenticator.authenticate(page, "standard_user"),
        )

        assert first is second
        assert locator.fill.await_count == 2
        assert first.hits == 1

    async def test_default_password_applies(self, authenticator, config):
        assert authenticator.key_for("problem_user").password == config.default_password
