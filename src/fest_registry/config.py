"""Configuration loader for Fest Registry with environment-specific support"""

import os
from pathlib import Path

from dotenv import load_dotenv

project_dir = Path(__file__).parent.parent.parent
env_path = project_dir / ".env"

# Load .env file if it exists. For local development only.
if env_path.exists():
    load_dotenv(env_path)


def _split_csv(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip().lower() for item in value.split(",") if item.strip()]


# Configuration dictionary - set once at initialization
config = {
    "database_url": os.getenv("DATABASE_URL"),
    "port": int(os.getenv("PORT", "8000")),
    "log_level": os.getenv("LOG_LEVEL", "INFO"),
    "environment": os.getenv("ENVIRONMENT", "development"),
    # Identity provider issuing the bearer ID tokens (Firebase, Auth0, ...)
    "identity_issuer": os.getenv("IDENTITY_ISSUER"),
    "identity_audience": os.getenv("IDENTITY_AUDIENCE"),
    "identity_jwks_url": os.getenv("IDENTITY_JWKS_URL"),
    # Users whose email matches one of these are created as admins
    "admin_emails": _split_csv(os.getenv("ADMIN_EMAILS")),
    "admin_email_domains": _split_csv(os.getenv("ADMIN_EMAIL_DOMAINS")),
    "razorpay_key_id": os.getenv("RAZORPAY_KEY_ID"),
    "razorpay_key_secret": os.getenv("RAZORPAY_KEY_SECRET"),
    "razorpay_api_base": os.getenv("RAZORPAY_API_BASE", "https://api.razorpay.com/v1"),
    "payment_currency": os.getenv("PAYMENT_CURRENCY", "INR"),
    "gateway_timeout_seconds": float(os.getenv("GATEWAY_TIMEOUT_SECONDS", "10")),
    "transaction_max_attempts": int(os.getenv("TRANSACTION_MAX_ATTEMPTS", "5")),
}
