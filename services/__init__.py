# Services Module for the Gig Marketplace
# Contains business logic services

from services.gig_service import GigService
from services.order_service import OrderService
from services.payment_service import PaymentService
from services.review_service import ReviewService
from services.ledger import WithdrawalService

__all__ = [
    'GigService',
    'OrderService',
    'PaymentService',
    'ReviewService',
    'WithdrawalService',
]
