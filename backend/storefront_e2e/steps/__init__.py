"""
Step libraries.

Each module defines one StepLibrary; a scenario names the libraries it loads
and the runner builds a StepRegistry from exactly those.
"""

from storefront_e2e.steps import api_auth, cart, inventory, login, sql_auth
from storefront_e2e.core.steps import StepLibrary

LIBRARIES: dict[str, StepLibrary] = {
    library.name: library
    for library in (
        login.steps,
        inventory.steps,
        cart.steps,
        api_auth.steps,
        sql_auth.steps,
    )
}

DEFAULT_LIBRARIES = ("login", "inventory", "cart")


def get_libraries(names: list[str] | tuple[str, ...] | None = None) -> list[StepLibrary]:
    """Look up step libraries by name; no names means the UI defaults."""
    names = names or DEFAULT_LIBRARIES
    unknown = [name for name in names if name not in LIBRARIES]
    if unknown:
        raise ValueError(f"Unknown step libraries: {', '.join(unknown)}")
    return [LIBRARIES[name] for name in names]


__all__ = ["LIBRARIES", "DEFAULT_LIBRARIES", "get_libraries"]
