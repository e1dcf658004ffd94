"""Marketplace bounded context: carts, stock, orders and payment reconciliation.

Sellers list products, buyers check out their carts into orders, and orders
are optionally settled through a hosted payment provider whose outcome is
reconciled back into order state.
"""

from protean.domain import Domain

from marketplace.utils.logging import configure_logging, get_logger

# Configure logging for the application
configure_logging()

# Get logger for this module
logger = get_logger(__name__)

# Domain Composition Root
marketplace = Domain(name="marketplace")
