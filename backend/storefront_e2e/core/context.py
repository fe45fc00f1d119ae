"""
Per-scenario context handed to every step handler.
"""

from dataclasses import dataclass, field
from typing import Any

from playwright.async_api import Page

from storefront_e2e.config import Settings
from storefront_e2e.core.actions import StorefrontActions
from storefront_e2e.core.interception import InterceptionVirtualizer
from storefront_e2e.core.pages import PageRegistry
from storefront_e2e.core.session import SessionAuthenticator
from storefront_e2e.core.sql_stub import SqlSessionStub


@dataclass
class ScenarioContext:
    """Collaborators and scratch data for one running scenario."""

    page: Page
    pages: PageRegistry
    config: Settings
    actions: StorefrontActions
    authenticator: SessionAuthenticator
    virtualizer: InterceptionVirtualizer
    sql: SqlSessionStub
    data: dict[str, Any] = field(default_factory=dict)
