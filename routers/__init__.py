# Marketplace Routers Module
# Exports all modular API routers for the marketplace

from routers.auth import router as auth_router
from routers.gigs import router as gigs_router
from routers.orders import router as orders_router
from routers.payments import router as payments_router
from routers.reviews import router as reviews_router

__all__ = [
    'auth_router',
    'gigs_router',
    'orders_router',
    'payments_router',
    'reviews_router',
]
