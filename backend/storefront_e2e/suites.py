"""
Built-in scenario suites for the SauceDemo storefront.
"""

from storefront_e2e.core.scenario import Scenario

STANDARD_USER = '"standard_user"'


def _login_suite() -> list[Scenario]:
    def login(name: str, username: str, password: str, *outcome: str) -> Scenario:
        return Scenario(
            name=name,
            tags=["login"],
            libraries=["login"],
            steps=[
                "Given I open the login page",
                f'When I enter username "{username}" and password "{password}"',
                "And I click the login button",
                *outcome,
            ],
        )

    return [
        login(
            "Standard user logs in",
            "standard_user",
            "secret_sauce",
            "Then I should see the homepage",
        ),
        login(
            "Locked out user is rejected",
            "locked_out_user",
            "secret_sauce",
            'Then I should see a login error with "Epic sadface: Sorry, this user has been locked out."',
        ),
        login(
            "Username is required",
            "<EMPTY>",
            "secret_sauce",
            'Then I should see a login error with "Epic sadface: Username is required"',
        ),
        login(
            "Password is required",
            "standard_user",
            "<EMPTY>",
            'Then I should see a login error with "Epic sadface: Password is required"',
        ),
        login(
            "Wrong password is rejected",
            "standard_user",
            "wrong_password",
            "Then I should see a login error with "
            '"Epic sadface: Username and password do not match any user in this service"',
        ),
    ]


def _inventory_suite() -> list[Scenario]:
    on_products = f"Given I am on the products page as {STANDARD_USER}"
    scenarios = [
        Scenario(
            name="All products are listed",
            tags=["inventory"],
            libraries=["inventory"],
            steps=[on_products, "Then All products are loaded correctly"],
        ),
        Scenario(
            name="Add and remove products from the products page",
            tags=["inventory", "cart"],
            libraries=["inventory"],
            steps=[
                on_products,
                "When I add 2 product to my cart",
                "Then I have 2 product in my cart",
                "When I can remove 1 product from my cart",
                "Then I have 1 product in my cart",
            ],
        ),
    ]
    for option in ("Price (low to high)", "Price (high to low)", "Name (A to Z)", "Name (Z to A)"):
        scenarios.append(
            Scenario(
                name=f"Sort products by {option}",
                tags=["inventory", "sorting"],
                libraries=["inventory"],
                steps=[
                    on_products,
                    f'When I sort products by "{option}"',
                    f'Then The products are sorted by "{option}"',
                ],
            )
        )
    return scenarios


def _cart_suite() -> list[Scenario]:
    to_checkout = [
        f"Given I am on the products page as {STANDARD_USER}",
        "When I add 2 products to my cart",
        "And I go to the cart page",
        "And I proceed to checkout",
    ]

    def missing(field: str, first: str, last: str, postal: str) -> Scenario:
        return Scenario(
            name=f"Checkout requires {field}",
            tags=["cart", "checkout", "validation"],
            libraries=["inventory", "cart"],
            steps=[
                *to_checkout,
                f'And I fill in checkout information with "{first}" "{last}" "{postal}"',
                "And I try to complete the checkout",
                f"Then I should see an error message for missing {field}",
            ],
        )

    return [
        Scenario(
            name="Complete checkout",
            tags=["cart", "checkout"],
            libraries=["inventory", "cart"],
            steps=[
                *to_checkout,
                'And I fill in checkout information with "John" "Doe" "12345"',
                "And I continue with the checkout",
                "And I complete the checkout",
                "Then I should see the order confirmation",
            ],
        ),
        missing("firstname", "", "Doe", "12345"),
        missing("lastname", "John", "", "12345"),
        missing("postcode", "John", "Doe", ""),
        Scenario(
            name="Remove a product from the cart",
            tags=["cart"],
            libraries=["inventory", "cart"],
            steps=[
                f"Given I am on the products page as {STANDARD_USER}",
                "When I add 2 products to my cart",
                "And I go to the cart page",
                "And I remove 1 product from the cart",
                "Then I should have 1 products in my cart",
            ],
        ),
        Scenario(
            name="Cart requires a session",
            tags=["cart", "security"],
            libraries=["inventory", "cart"],
            steps=[
                f"Given I am on the products page as {STANDARD_USER}",
                "When I add 1 products to my cart",
                "And I clear cookies and local storage",
                "And I try to go to the cart page",
                "Then I should be redirected to the login page",
                "And I should see the cart access error message",
            ],
        ),
    ]


def _api_auth_suite() -> list[Scenario]:
    background = ["Given SauceDemo is accessible"]
    fast_auth = f"And I authenticate using fast API strategy as {STANDARD_USER}"
    return [
        Scenario(
            name="Fast authentication opens the inventory",
            tags=["api-auth"],
            libraries=["api_auth"],
            steps=[
                *background,
                fast_auth,
                "When I navigate directly to inventory page",
                "Then I should see all products displayed correctly",
                "And the page should load within acceptable time",
            ],
        ),
        Scenario(
            name="Fast authentication cart round trip",
            tags=["api-auth", "cart"],
            libraries=["api_auth"],
            steps=[
                *background,
                fast_auth,
                "When I navigate directly to inventory page",
                'And I add "sauce-labs-backpack" to cart using optimized action',
                'And I add "sauce-labs-bike-light" to cart using optimized action',
                'And I remove "sauce-labs-bike-light" from cart',
                "And I navigate to cart page",
                "Then I should see 1 item in cart",
            ],
        ),
        Scenario(
            name="Fast authentication checkout",
            tags=["api-auth", "checkout"],
            libraries=["api_auth"],
            steps=[
                *background,
                fast_auth,
                "When I navigate directly to inventory page",
                'And I add "sauce-labs-backpack" to cart using optimized action',
                "And I navigate to cart page",
                "And I proceed to checkout with standard user information",
                "And I complete the order",
                "Then I should see order confirmation",
                "And the order should be processed successfully",
            ],
        ),
        Scenario(
            name="Performance user eventually sees products",
            tags=["api-auth", "performance"],
            libraries=["api_auth"],
            steps=[
                *background,
                'When I authenticate as "performance" using predefined user',
                "And I navigate directly to inventory page",
                'Then I should see appropriate user experience for "performance"',
                "And the page should handle performance user appropriately",
                "And all products should eventually load",
            ],
        ),
    ]


def _sql_auth_suite() -> list[Scenario]:
    open_inventory = f'Given I open "/inventory.html" as SQL user {STANDARD_USER}'
    libraries = ["sql_auth", "cart"]
    return [
        Scenario(
            name="SQL session opens the inventory without a UI login",
            tags=["sql-auth"],
            libraries=libraries,
            steps=[open_inventory, "Then I have 0 products in my cart"],
        ),
        Scenario(
            name="SQL session survives clearing browser storage",
            tags=["sql-auth", "security"],
            libraries=libraries,
            steps=[
                open_inventory,
                "When I add 1 products to my cart",
                "And I go to the cart page",
                "And I clear browser cookies and local storage",
                "And I verify SQL authentication is maintained",
                "Then I should still be on the cart page with SQL authentication",
            ],
        ),
        Scenario(
            name="SQL session checkout",
            tags=["sql-auth", "checkout"],
            libraries=libraries,
            steps=[
                open_inventory,
                "When I add 1 products to my cart",
                "And I go to the cart page",
                "And I proceed to checkout",
                'And I fill in checkout information with "John" "Doe" "12345"',
                "And I continue with the checkout",
                "And I complete the checkout",
                "Then I should see the order confirmation",
            ],
        ),
        Scenario(
            name="SQL checkout requires firstname",
            tags=["sql-auth", "checkout", "validation"],
            libraries=libraries,
            steps=[
                open_inventory,
                "When I add 1 products to my cart",
                "And I go to the cart page",
                "And I proceed to checkout",
                'And I fill in checkout information with "" "Doe" "12345"',
                "And I try to complete the checkout",
                "Then I should see an error message for missing firstname",
            ],
        ),
    ]


SUITES = {
    "login": _login_suite,
    "inventory": _inventory_suite,
    "cart": _cart_suite,
    "api_auth": _api_auth_suite,
    "sql_auth": _sql_auth_suite,
}


def get_suite(name: str) -> list[Scenario]:
    try:
        return SUITES[name]()
    except KeyError:
        raise KeyError(f"Unknown suite '{name}'") from None
