"""Runtime settings for the ordering service, read from the environment."""

import os

from dotenv import load_dotenv

load_dotenv()

PROTEAN_ENV = os.getenv("PROTEAN_ENV", "development")

# Checkout pricing
ORDERING_TAX_RATE = float(os.getenv("ORDERING_TAX_RATE", "0.08"))
ORDERING_CURRENCY = os.getenv("ORDERING_CURRENCY", "usd")

# Per-owner cart operation rate limit (fixed window)
CART_RATE_LIMIT = int(os.getenv("CART_RATE_LIMIT", "30"))
CART_RATE_WINDOW_SECONDS = int(os.getenv("CART_RATE_WINDOW_SECONDS", "60"))
RATE_LIMIT_BACKEND = os.getenv("RATE_LIMIT_BACKEND", "memory")
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

REQUEST_TIMEOUT_SECONDS = float(os.getenv("REQUEST_TIMEOUT_SECONDS", "30"))

# Payment gateway
PAYMENT_GATEWAY = os.getenv("PAYMENT_GATEWAY", "fake")
STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY", "")
STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET", "")

# Catalogue lookup
CATALOG_BACKEND = os.getenv("CATALOG_BACKEND", "memory")
CATALOG_SERVICE_URL = os.getenv("CATALOG_SERVICE_URL", "http://localhost:8001")
