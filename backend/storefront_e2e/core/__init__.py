"""
Core automation components.
"""

from storefront_e2e.core.actions import StorefrontActions
from storefront_e2e.core.browser import BrowserOptions, BrowserSession, BrowserType
from storefront_e2e.core.context import ScenarioContext
from storefront_e2e.core.interception import InterceptionRule, InterceptionVirtualizer
from storefront_e2e.core.pages import PageObject, PageRegistry, build_page_registry
from storefront_e2e.core.scenario import Scenario
from storefront_e2e.core.session import SessionAuthenticator, SessionCache
from storefront_e2e.core.sql_stub import SqlSessionStub
from storefront_e2e.core.steps import StepKeyword, StepLibrary, StepRegistry

__all__ = [
    "StorefrontActions",
    "BrowserOptions",
    "BrowserSession",
    "BrowserType",
    "ScenarioContext",
    "InterceptionRule",
    "InterceptionVirtualizer",
    "PageObject",
    "PageRegistry",
    "build_page_registry",
    "Scenario",
    "SessionAuthenticator",
    "SessionCache",
    "SqlSessionStub",
    "StepKeyword",
    "StepLibrary",
    "StepRegistry",
]
