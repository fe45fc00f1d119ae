"""
SQL session stub.

SauceDemo has no backend we can talk to, so this module plays the part of a
user database: it "runs" the queries an enterprise login would run, logs
them, and writes the resulting session fields (cookies, session storage,
local storage) straight into a session cache entry. No UI login happens.
"""

import itertools
import json
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any
from urllib.parse import urlparse

import structlog

from storefront_e2e.core.errors import AuthenticationFailed
from storefront_e2e.core.session import CredentialKey, SessionEntry

logger = structlog.get_logger()

SQL_STUB = "sql-stub"
SESSION_TTL = timedelta(hours=1)

DEFAULT_PERMISSIONS = ("view_products", "add_to_cart", "checkout")


@dataclass
class SqlStubResult:
    """What the stubbed query would have returned."""

    query: str
    params: list[Any]
    rows: list[dict[str, Any]] = field(default_factory=list)
    rows_affected: int = 0
    insert_id: int | None = None


class SqlSessionStub:
    """
    In-memory stand-in for the user and session tables.

    Usage:
        stub = SqlSessionStub("https://www.saucedemo.com")
        entry = stub.establish("standard_user")
        await authenticator.apply(page, entry)
    """

    def __init__(self, base_url: str, inactive_users: set[str] | None = None):
        self.base_url = base_url.rstrip("/")
        self.inactive_users = inactive_users or {"locked_out_user"}
        self._ids = itertools.count(1)
        self.queries: list[SqlStubResult] = []

    @property
    def origin(self) -> str:
        parsed = urlparse(self.base_url)
        return f"{parsed.scheme}://{parsed.netloc}"

    def _record(self, result: SqlStubResult) -> SqlStubResult:
        self.queries.append(result)
        logger.info(
            "sql_stub_query",
            query=result.query,
            params=result.params,
            rows=len(result.rows),
            rows_affected=result.rows_affected,
        )
        return result

    def validate_user(self, username: str, password: str) -> dict[str, Any]:
        result = self._record(
            SqlStubResult(
                query=(
                    "SELECT user_id, username, email, status, last_login FROM users "
                    "WHERE username = ? AND password_hash = SHA256(?)"
                ),
                params=[username, password],
                rows=[
                    {
                        "user_id": next(self._ids),
                        "username": username,
                        "email": f"{username}@saucedemo.com",
                        "status": "locked" if username in self.inactive_users else "active",
                        "last_login": datetime.utcnow().isoformat(),
                    }
                ],
            )
        )
        return result.rows[0]

    def update_last_login(self, username: str) -> SqlStubResult:
        return self._record(
            SqlStubResult(
                query="UPDATE users SET last_login = NOW() WHERE username = ?",
                params=[username],
                rows_affected=1,
            )
        )

    def create_session(self, username: str) -> SqlStubResult:
        token = f"sql_session_{username}_{int(time.time() * 1000)}"
        expires_at = (datetime.utcnow() + SESSION_TTL).isoformat()
        return self._record(
            SqlStubResult(
                query=(
                    "INSERT INTO user_sessions (username, session_token, created_at, expires_at) "
                    "VALUES (?, ?, NOW(), ?)"
                ),
                params=[username, token, expires_at],
                rows_affected=1,
                insert_id=next(self._ids),
            )
        )

    def check_permissions(self, username: str) -> list[dict[str, Any]]:
        result = self._record(
            SqlStubResult(
                query=(
                    "SELECT r.role_name, p.permission_name FROM user_roles ur "
                    "JOIN roles r ON ur.role_id = r.role_id "
                    "JOIN role_permissions rp ON r.role_id = rp.role_id "
                    "JOIN permissions p ON rp.permission_id = p.permission_id "
                    "WHERE ur.username = ?"
                ),
                params=[username],
                rows=[
                    {"role_name": "customer", "permission_name": name}
                    for name in DEFAULT_PERMISSIONS
                ],
            )
        )
        return result.rows

    def establish(self, username: str, password: str = "secret_sauce") -> SessionEntry:
        """
        Run the stubbed login workflow and return the session it creates.

        Raises:
            AuthenticationFailed: the user is not active or has no permissions
        """
        user = self.validate_user(username, password)
        if user["status"] != "active":
            raise AuthenticationFailed(username, SQL_STUB, 0, f"user status is '{user['status']}'")

        self.update_last_login(username)
        session = self.create_session(username)
        _, token, expires_at = session.params

        if not self.check_permissions(username):
            raise AuthenticationFailed(username, SQL_STUB, 0, "no permissions granted")

        domain = urlparse(self.base_url).hostname or ""
        user_session = {
            "username": username,
            "sessionId": session.insert_id,
            "token": token,
            "authenticatedAt": datetime.utcnow().isoformat(),
            "expiresAt": expires_at,
            "method": "sql_stub",
        }
        state = {
            "cookies": [
                {"name": "sql_session", "value": token, "domain": domain, "path": "/"},
                {"name": "sql_user", "value": username, "domain": domain, "path": "/"},
            ],
            "origins": [
                {
                    "origin": self.origin,
                    "localStorage": [
                        {"name": "sql_user_session", "value": json.dumps(user_session)}
                    ],
                }
            ],
        }
        session_storage = {
            self.origin: {
                "sql_authenticated": "true",
                "sql_username": username,
                "sql_session_token": token,
            }
        }

        logger.info("sql_session_established", username=username)
        return SessionEntry(
            key=CredentialKey(username, password, SQL_STUB),
            storage_state=state,
            session_storage=session_storage,
        )
