"""
Storefront Back-Office

Admin API for catalog, orders, banners and sales reporting.
"""

__version__ = "1.0.0"
