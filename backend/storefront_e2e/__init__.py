"""
Storefront E2E - step-driven browser tests for the SauceDemo storefront.
"""

__version__ = "0.1.0"
