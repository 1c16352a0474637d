"""Payment endpoints: gateway orders, checkout and callback verification"""

import logging
from decimal import Decimal
from typing import Dict, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from sqlmodel import Session

from fest_registry.auth.dependencies import get_current_user
from fest_registry.backends.payment_gateway import RazorpayClient, get_payment_gateway
from fest_registry.config import config
from fest_registry.errors import DomainError, NotRegistrationOwner, PaymentNotFound
from fest_registry.models.database import get_db
from fest_registry.models.user import User
from fest_registry.services.payment_service import PaymentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["Payments"])


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class CreateOrderRequest(CamelModel):
    amount: Decimal = Field(..., gt=0, description="Amount in rupees")
    payment_id: str = Field(..., min_length=1, alias="paymentId")


class CreateOrderResponse(CamelModel):
    order_id: str = Field(..., alias="orderId")


class VerifyPaymentRequest(CamelModel):
    payment_id: str = Field(..., min_length=1, alias="paymentId")
    gateway_payment_id: str = Field(..., min_length=1, alias="gatewayPaymentId")
    gateway_order_id: str = Field(..., min_length=1, alias="gatewayOrderId")
    gateway_signature: str = Field(..., min_length=1, alias="gatewaySignature")


class VerifyPaymentResponse(BaseModel):
    success: bool


class CheckoutRequest(CamelModel):
    registration_id: str = Field(..., min_length=1, alias="registrationId")


class CheckoutResponse(CamelModel):
    payment_id: str = Field(..., alias="paymentId")
    order_id: str = Field(..., alias="orderId")
    amount: int = Field(..., description="Amount in paise")
    currency: str
    key_id: str = Field(..., alias="keyId")
    prefill: Dict[str, str] = {}


class FailPaymentRequest(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=500)


class FailPaymentResponse(BaseModel):
    success: bool
    status: str


def get_payment_service(
    db: Session = Depends(get_db),
    gateway: RazorpayClient = Depends(get_payment_gateway),
) -> PaymentService:
    return PaymentService(db, gateway, currency=config["payment_currency"])


def _internal_error(detail: str) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "INTERNAL_ERROR", "detail": detail},
    )


def _require_own_payment(
    payment_service: PaymentService, payment_id: str, user: User
) -> None:
    payment = payment_service.get_payment(payment_id)
    if payment is None:
        raise PaymentNotFound(payment_id)
    if payment.user_id != user.id:
        raise NotRegistrationOwner(payment.registration_id)


@router.post("/create-order", response_model=CreateOrderResponse)
async def create_order(
    request: CreateOrderRequest,
    user: User = Depends(get_current_user),
    payment_service: PaymentService = Depends(get_payment_service),
):
    """Create a gateway order for an existing pending payment"""
    _require_own_payment(payment_service, request.payment_id, user)
    try:
        order_id = await payment_service.create_order(
            request.payment_id, request.amount
        )
    except DomainError:
        raise
    except Exception:
        logger.exception(f"Unexpected error creating order for {request.payment_id}")
        return _internal_error("Failed to create payment order")

    return CreateOrderResponse(order_id=order_id)


@router.post("/verify", response_model=VerifyPaymentResponse)
def verify_payment(
    request: VerifyPaymentRequest,
    user: User = Depends(get_current_user),
    payment_service: PaymentService = Depends(get_payment_service),
):
    """Verify the checkout callback and apply it to the payment and registration"""
    # Unknown ids reach verification, which reports them as integrity errors
    payment = payment_service.get_payment(request.payment_id)
    if payment is not None and payment.user_id != user.id:
        raise NotRegistrationOwner(payment.registration_id)

    try:
        success = payment_service.verify_and_apply(
            request.payment_id,
            request.gateway_payment_id,
            request.gateway_order_id,
            request.gateway_signature,
        )
    except DomainError:
        raise
    except Exception:
        logger.exception(f"Unexpected error verifying payment {request.payment_id}")
        return _internal_error("Payment verification failed")

    return VerifyPaymentResponse(success=success)


@router.post("/checkout", response_model=CheckoutResponse)
async def start_checkout(
    request: CheckoutRequest,
    user: User = Depends(get_current_user),
    payment_service: PaymentService = Depends(get_payment_service),
):
    """Open a payment for the user's registration and return checkout options"""
    session = await payment_service.start_checkout(request.registration_id, user.id)
    return CheckoutResponse(
        payment_id=session.payment_id,
        order_id=session.order_id,
        amount=session.amount_minor,
        currency=session.currency,
        key_id=session.key_id,
        prefill=session.prefill,
    )


@router.post("/{payment_id}/fail", response_model=FailPaymentResponse)
def fail_payment(
    payment_id: str,
    request: FailPaymentRequest,
    user: User = Depends(get_current_user),
    payment_service: PaymentService = Depends(get_payment_service),
):
    """Record a dismissed or declined checkout"""
    _require_own_payment(payment_service, payment_id, user)
    payment = payment_service.mark_failed(payment_id, reason=request.reason)
    return FailPaymentResponse(success=True, status=payment.status.value)
