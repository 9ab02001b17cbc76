"""HTTP surface for the participation lifecycle."""

from product_orders.api.errors import register_error_handlers
from product_orders.api.routes import router

__all__ = ["register_error_handlers", "router"]
