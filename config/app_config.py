import os
from dotenv import load_dotenv

load_dotenv()

# Platform Fees
PLATFORM_FEE_PERCENT = int(os.getenv("PLATFORM_FEE_PERCENT", 10))

# Withdrawal Settings
WITHDRAWAL_FEE_PERCENT = int(os.getenv("WITHDRAWAL_FEE_PERCENT", 2))
MIN_WITHDRAWAL_AMOUNT = int(os.getenv("MIN_WITHDRAWAL_AMOUNT", 500))  # INR 500
WITHDRAWAL_DELIVERY_DAYS = int(os.getenv("WITHDRAWAL_DELIVERY_DAYS", 3))

# Payments
DEFAULT_PAYMENT_GATEWAY = os.getenv("DEFAULT_PAYMENT_GATEWAY", "razorpay")
DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "INR")
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

# Listing
DEFAULT_PAGE_LIMIT = int(os.getenv("DEFAULT_PAGE_LIMIT", 10))
MAX_PAGE_LIMIT = int(os.getenv("MAX_PAGE_LIMIT", 100))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
