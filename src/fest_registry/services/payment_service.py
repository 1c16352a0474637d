"""Payment Service - gateway orders and signature-verified reconciliation"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional, Union

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from fest_registry.backends.payment_gateway import PaymentGatewayError, RazorpayClient
from fest_registry.errors import (
    AlreadyPaid,
    AmountMismatch,
    EventNotFound,
    InvalidSignature,
    NotRegistrationOwner,
    OrderCreationFailed,
    OrderMismatch,
    PaymentAlreadyFinalized,
    PaymentNotFound,
    PaymentNotRequired,
    RegistrationNotFound,
)
from fest_registry.models.event import Event
from fest_registry.models.payment import Payment, PaymentRecordStatus
from fest_registry.models.registration import PaymentStatus, Registration
from fest_registry.services.transactions import run_in_transaction

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


@dataclass
class CheckoutSession:
    """Everything the client needs to open the gateway checkout"""

    payment_id: str
    order_id: str
    amount_minor: int
    currency: str
    key_id: str
    prefill: Dict[str, str] = field(default_factory=dict)


def _to_amount(value: Union[Decimal, float, int, str]) -> Optional[Decimal]:
    try:
        return Decimal(str(value)).quantize(CENTS)
    except (InvalidOperation, ValueError):
        return None


class PaymentService:
    """Service for paying for registrations through the gateway"""

    def __init__(
        self,
        db_session: Session,
        gateway: RazorpayClient,
        currency: str = "INR",
    ):
        self.db = db_session
        self.gateway = gateway
        self.currency = currency

    def create_payment(self, registration_id: str, user_id: str) -> Payment:
        """
        Open a pending payment for the event price of a registration.

        Raises:
            RegistrationNotFound, NotRegistrationOwner, PaymentNotRequired,
            AlreadyPaid
        """

        def _create(db: Session) -> Payment:
            registration = db.get(
                Registration,
                registration_id,
                with_for_update=True,
                populate_existing=True,
            )
            if registration is None:
                raise RegistrationNotFound(registration_id)
            if registration.user_id != user_id:
                raise NotRegistrationOwner(registration_id)
            if registration.payment_status == PaymentStatus.NOT_REQUIRED:
                raise PaymentNotRequired(registration_id)
            if registration.payment_status == PaymentStatus.COMPLETED:
                raise AlreadyPaid(registration_id)

            event = db.get(Event, registration.event_id)
            if event is None:
                raise EventNotFound(registration.event_id)
            if not event.is_paid or event.price is None:
                raise PaymentNotRequired(registration_id)

            payment = Payment(
                registration_id=registration.id,
                user_id=user_id,
                event_id=event.id,
                amount=Decimal(event.price).quantize(CENTS),
                currency=self.currency,
            )
            db.add(payment)
            db.flush()
            return payment

        payment = run_in_transaction(self.db, _create)
        logger.info(
            f"Created payment {payment.id} for registration {registration_id} "
            f"({payment.amount} {payment.currency})"
        )
        return payment

    async def create_order(
        self, payment_id: str, amount: Union[Decimal, float, int, str]
    ) -> str:
        """
        Request a gateway order for a pending payment and record its id.

        Args:
            payment_id: Our payment record id (sent as the order receipt)
            amount: Amount in major units; must equal the recorded amount

        Returns:
            The gateway order id

        Raises:
            PaymentNotFound, PaymentAlreadyFinalized, AmountMismatch,
            OrderCreationFailed
        """
        payment = self.db.get(Payment, payment_id, populate_existing=True)
        if payment is None:
            raise PaymentNotFound(payment_id)
        if payment.status != PaymentRecordStatus.PENDING:
            raise PaymentAlreadyFinalized(payment_id, payment.status.value)
        if _to_amount(amount) != Decimal(payment.amount).quantize(CENTS):
            logger.warning(
                f"Amount {amount} does not match payment {payment_id} "
                f"({payment.amount})"
            )
            raise AmountMismatch(payment_id)

        amount_minor = payment.amount_minor_units
        currency = payment.currency
        notes = {
            "registration_id": payment.registration_id,
            "event_id": payment.event_id,
        }

        # No transaction or row lock may stay open across the gateway call
        if self.db.in_transaction():
            self.db.commit()

        try:
            order_id = await self.gateway.create_order(
                amount_minor, currency, receipt=payment_id, notes=notes
            )
        except PaymentGatewayError as e:
            logger.warning(f"Order creation failed for payment {payment_id}: {e}")
            raise OrderCreationFailed(payment_id) from e

        def _record(db: Session) -> None:
            db.exec(
                update(Payment)
                .where(Payment.id == payment_id)
                .values(
                    gateway_order_id=order_id,
                    updated_at=datetime.now(timezone.utc),
                )
                .execution_options(synchronize_session=False)
            )

        # run_in_transaction sleeps between retries
        await asyncio.to_thread(run_in_transaction, self.db, _record)
        logger.info(f"Recorded order {order_id} on payment {payment_id}")
        return order_id

    async def start_checkout(
        self, registration_id: str, user_id: str
    ) -> CheckoutSession:
        """Create a payment and its gateway order in one step"""
        payment = await asyncio.to_thread(
            self.create_payment, registration_id, user_id
        )
        payment_id = payment.id
        amount = payment.amount
        amount_minor = payment.amount_minor_units
        currency = payment.currency

        order_id = await self.create_order(payment_id, amount)

        registration = self.db.get(Registration, registration_id)
        prefill = {}
        if registration is not None:
            prefill = {"name": registration.name, "email": registration.email}

        return CheckoutSession(
            payment_id=payment_id,
            order_id=order_id,
            amount_minor=amount_minor,
            currency=currency,
            key_id=self.gateway.key_id,
            prefill=prefill,
        )

    def verify_and_apply(
        self,
        payment_id: str,
        gateway_payment_id: str,
        gateway_order_id: str,
        gateway_signature: str,
    ) -> bool:
        """
        Verify the checkout signature and mark the payment and its
        registration completed in one transaction.

        A repeated call for an already completed payment with the same
        gateway payment id succeeds without writing anything.

        Raises:
            InvalidSignature: Signature does not match; nothing is changed
            PaymentNotFound, RegistrationNotFound: Integrity failures
            OrderMismatch, PaymentAlreadyFinalized
        """
        if not self.gateway.verify_payment_signature(
            gateway_order_id, gateway_payment_id, gateway_signature
        ):
            logger.warning(f"Invalid payment signature for payment {payment_id}")
            raise InvalidSignature()

        def _apply(db: Session) -> bool:
            payment = db.get(
                Payment, payment_id, with_for_update=True, populate_existing=True
            )
            if payment is None:
                logger.critical(
                    f"Verified gateway payment {gateway_payment_id} references "
                    f"missing payment {payment_id}"
                )
                raise PaymentNotFound(payment_id, integrity=True)

            registration = db.get(
                Registration,
                payment.registration_id,
                with_for_update=True,
                populate_existing=True,
            )
            if registration is None:
                logger.critical(
                    f"Payment {payment_id} references missing registration "
                    f"{payment.registration_id}"
                )
                raise RegistrationNotFound(payment.registration_id, integrity=True)

            # A payment that never got an order cannot have been checked out
            if payment.gateway_order_id != gateway_order_id:
                logger.warning(
                    f"Order {gateway_order_id} does not belong to payment "
                    f"{payment_id} (recorded {payment.gateway_order_id})"
                )
                raise OrderMismatch(payment_id)

            if payment.status == PaymentRecordStatus.COMPLETED:
                if payment.gateway_payment_id == gateway_payment_id:
                    return False
                raise PaymentAlreadyFinalized(payment_id, payment.status.value)
            if payment.status == PaymentRecordStatus.FAILED:
                raise PaymentAlreadyFinalized(payment_id, payment.status.value)

            now = datetime.now(timezone.utc)
            try:
                result = db.exec(
                    update(Payment)
                    .where(
                        Payment.id == payment_id,
                        Payment.status == PaymentRecordStatus.PENDING,
                    )
                    .values(
                        status=PaymentRecordStatus.COMPLETED,
                        gateway_payment_id=gateway_payment_id,
                        updated_at=now,
                    )
                    .execution_options(synchronize_session=False)
                )
            except IntegrityError as e:
                logger.critical(
                    f"Gateway payment {gateway_payment_id} already completed "
                    f"another payment; refusing to apply it to {payment_id}"
                )
                raise OrderMismatch(payment_id) from e
            if result.rowcount != 1:
                raise PaymentAlreadyFinalized(payment_id, "finalized")

            registration.payment_status = PaymentStatus.COMPLETED
            registration.payment_id = gateway_payment_id
            registration.updated_at = now
            db.add(registration)
            return True

        applied = run_in_transaction(self.db, _apply)
        if applied:
            logger.info(
                f"Payment {payment_id} completed with gateway payment "
                f"{gateway_payment_id}"
            )
        else:
            logger.info(f"Payment {payment_id} already completed; nothing to apply")
        return True

    def mark_failed(self, payment_id: str, reason: Optional[str] = None) -> Payment:
        """
        Mark a pending payment failed (checkout dismissed or declined).

        The registration keeps payment_status pending so a new payment can be
        started.

        Raises:
            PaymentNotFound, PaymentAlreadyFinalized
        """

        def _fail(db: Session) -> Payment:
            payment = db.get(Payment, payment_id, populate_existing=True)
            if payment is None:
                raise PaymentNotFound(payment_id)

            result = db.exec(
                update(Payment)
                .where(
                    Payment.id == payment_id,
                    Payment.status == PaymentRecordStatus.PENDING,
                )
                .values(
                    status=PaymentRecordStatus.FAILED,
                    failure_reason=reason,
                    updated_at=datetime.now(timezone.utc),
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise PaymentAlreadyFinalized(payment_id, payment.status.value)
            return payment

        payment = run_in_transaction(self.db, _fail)
        # The UPDATE bypassed the identity map
        self.db.refresh(payment)
        logger.info(f"Payment {payment_id} marked failed: {reason or 'no reason'}")
        return payment

    def get_payment(self, payment_id: str) -> Optional[Payment]:
        """Get a payment by ID"""
        return self.db.get(Payment, payment_id, populate_existing=True)

    def list_payments_for_registration(self, registration_id: str) -> List[Payment]:
        stmt = (
            select(Payment)
            .where(Payment.registration_id == registration_id)
            .order_by(Payment.created_at.asc())
        )
        return list(self.db.exec(stmt).all())
