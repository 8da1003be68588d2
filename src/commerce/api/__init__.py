"""Commerce domain API package."""

from commerce.api.errors import install_error_handlers
from commerce.api.routes import cart_router, customization_router, order_router, product_router

__all__ = ["cart_router", "order_router", "customization_router", "product_router", "install_error_handlers"]
