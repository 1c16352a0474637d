from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, text

from fest_registry.config import config
from fest_registry.models.database import engine

health = APIRouter(tags=["Health"])


@health.get("/health")
async def health_check():
    """Basic health check endpoint"""
    return {
        "status": "healthy",
        "service": "fest-registry",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": config["environment"],
    }


@health.get("/health/detailed")
def detailed_health_check():
    """Detailed health check with database and configuration checks"""
    health_status = {
        "status": "healthy",
        "service": "fest-registry",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": config["environment"],
        "checks": {},
    }

    # Database connectivity check
    try:
        with Session(engine) as session:
            result = session.exec(text("SELECT 1")).first()
            health_status["checks"]["database"] = "healthy" if result else "unhealthy"
    except SQLAlchemyError as e:
        health_status["checks"]["database"] = f"unhealthy: {str(e)}"
        health_status["status"] = "unhealthy"

    # Payment gateway credentials check
    required_keys = ["razorpay_key_id", "razorpay_key_secret"]
    missing_keys = [key.upper() for key in required_keys if not config.get(key)]
    if missing_keys:
        health_status["checks"]["payment_gateway"] = f"missing: {', '.join(missing_keys)}"
        health_status["status"] = "unhealthy"
    else:
        health_status["checks"]["payment_gateway"] = "healthy"

    if health_status["status"] == "unhealthy":
        raise HTTPException(status_code=503, detail=health_status)

    return health_status
