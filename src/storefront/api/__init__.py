"""Storefront API package."""

from storefront.api.admin import admin_router
from storefront.api.editor import editor_router
from storefront.api.errors import register_error_handlers
from storefront.api.routes import (
    cart_router,
    catalogue_router,
    file_router,
    order_router,
    payment_router,
    webhook_router,
    wishlist_router,
)

ROUTERS = [
    catalogue_router,
    cart_router,
    wishlist_router,
    order_router,
    payment_router,
    webhook_router,
    file_router,
    editor_router,
    admin_router,
]

__all__ = [
    "ROUTERS",
    "admin_router",
    "cart_router",
    "catalogue_router",
    "editor_router",
    "file_router",
    "order_router",
    "payment_router",
    "register_error_handlers",
    "webhook_router",
    "wishlist_router",
]
