"""
Failure taxonomy for storefront scenarios.

Every error aborts the running scenario. Messages carry the selector or
phrase involved and the timeout that was exceeded so flaky UI timing can be
diagnosed from the report alone.
"""


class StorefrontTestError(Exception):
    """Base class for all scenario failures."""


class NavigationTimeout(StorefrontTestError):
    """Raised when a page's primary container does not become visible."""

    def __init__(self, url: str, selector: str, timeout: int):
        super().__init__(
            f"Page '{url}' did not show '{selector}' within {timeout}ms"
        )
        self.url = url
        self.selector = selector
        self.timeout = timeout


class ElementNotFound(StorefrontTestError):
    """Raised when a selector matches nothing within the timeout."""

    def __init__(self, selector: str, timeout: int | None = None, message: str | None = None):
        if message is None:
            message = f"Element '{selector}' not found"
            if timeout is not None:
                message += f" within {timeout}ms"
        super().__init__(message)
        self.selector = selector
        self.timeout = timeout


class IndexOutOfRange(ElementNotFound):
    """Raised when fewer matching controls exist than an operation needs."""

    def __init__(self, selector: str, index: int, available: int):
        super().__init__(
            selector,
            message=(
                f"Cannot activate control #{index} of '{selector}': "
                f"only {available} present"
            ),
        )
        self.index = index
        self.available = available


class FieldMismatch(StorefrontTestError):
    """Raised when an input does not hold the value that was typed."""

    def __init__(self, selector: str, expected: str, actual: str | None, timeout: int):
        super().__init__(
            f"Field '{selector}' expected value '{expected}', got '{actual}' "
            f"after {timeout}ms"
        )
        self.selector = selector
        self.expected = expected
        self.actual = actual
        self.timeout = timeout


class AuthenticationFailed(StorefrontTestError):
    """Raised when the login sequence does not reach the landing page."""

    def __init__(self, username: str, strategy: str, timeout: int, reason: str = ""):
        message = (
            f"Authentication as '{username}' ({strategy}) did not complete "
            f"within {timeout}ms"
        )
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.username = username
        self.strategy = strategy
        self.timeout = timeout


class AmbiguousStepDefinition(StorefrontTestError):
    """Raised at load time when two step patterns overlap for one keyword."""

    def __init__(self, keyword: str, pattern: str, existing: str, sources: tuple[str, str]):
        super().__init__(
            f"Ambiguous {keyword} step '{pattern}' ({sources[0]}) "
            f"overlaps '{existing}' ({sources[1]})"
        )
        self.keyword = keyword
        self.pattern = pattern
        self.existing = existing
        self.sources = sources


class UnresolvedStepPhrase(StorefrontTestError):
    """Raised at run time when no definition matches a scenario phrase."""

    def __init__(self, keyword: str, phrase: str):
        super().__init__(f"No {keyword} step matches phrase '{phrase}'")
        self.keyword = keyword
        self.phrase = phrase


class InterceptionAssertionFailed(StorefrontTestError):
    """Raised when a virtualized page does not show its expected markers."""

    def __init__(self, message: str, alias: str | None = None, timeout: int | None = None):
        super().__init__(message)
        self.alias = alias
        self.timeout = timeout


class InterceptionOrderError(StorefrontTestError):
    """Raised when a rule is armed after the navigation it should intercept."""


class PageAssertionFailed(StorefrontTestError):
    """Raised when the page is reachable but not in the expected state."""

    def __init__(self, message: str, selector: str | None = None, timeout: int | None = None):
        if timeout is not None:
            message = f"{message} (waited {timeout}ms)"
        super().__init__(message)
        self.selector = selector
        self.timeout = timeout
