"""Domain error codes for registrations, teams, payments and check-in.

Every failure a service can report is a DomainError subclass carrying a
stable code, a user-safe message and a kind:

- rejection: a valid request that cannot proceed (event full, team full, ...)
- integrity: state that should be impossible (payment without registration)
- transient: the store or the payment gateway is unavailable; callers may retry
"""

from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    NOT_AUTHENTICATED = "NOT_AUTHENTICATED"
    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    EVENT_CANCELLED = "EVENT_CANCELLED"
    EVENT_FULL = "EVENT_FULL"
    EVENT_HAS_REGISTRATIONS = "EVENT_HAS_REGISTRATIONS"
    INVALID_CAPACITY = "INVALID_CAPACITY"
    INVALID_EVENT_SETTINGS = "INVALID_EVENT_SETTINGS"
    ALREADY_REGISTERED = "ALREADY_REGISTERED"
    NOT_A_TEAM_EVENT = "NOT_A_TEAM_EVENT"
    TEAM_NOT_FOUND = "TEAM_NOT_FOUND"
    INVALID_INVITE_CODE = "INVALID_INVITE_CODE"
    TEAM_FULL = "TEAM_FULL"
    REGISTRATION_NOT_FOUND = "REGISTRATION_NOT_FOUND"
    NOT_REGISTRATION_OWNER = "NOT_REGISTRATION_OWNER"
    PAYMENT_NOT_FOUND = "PAYMENT_NOT_FOUND"
    PAYMENT_NOT_REQUIRED = "PAYMENT_NOT_REQUIRED"
    ALREADY_PAID = "ALREADY_PAID"
    AMOUNT_MISMATCH = "AMOUNT_MISMATCH"
    ORDER_MISMATCH = "ORDER_MISMATCH"
    PAYMENT_ALREADY_FINALIZED = "PAYMENT_ALREADY_FINALIZED"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"
    ORDER_CREATION_FAILED = "ORDER_CREATION_FAILED"
    EVENT_MISMATCH = "EVENT_MISMATCH"
    NOT_APPROVED = "NOT_APPROVED"
    PAYMENT_PENDING = "PAYMENT_PENDING"
    ALREADY_CHECKED_IN = "ALREADY_CHECKED_IN"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"


class ErrorKind(str, Enum):
    REJECTION = "rejection"
    INTEGRITY = "integrity"
    TRANSIENT = "transient"


class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    kind = ErrorKind.REJECTION

    def __init__(self, code: ErrorCode, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    @property
    def retryable(self) -> bool:
        return self.kind == ErrorKind.TRANSIENT

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class NotFoundError(DomainError):
    """Rejection for a referenced record that does not exist."""


class NotAuthenticated(DomainError):
    def __init__(self) -> None:
        super().__init__(ErrorCode.NOT_AUTHENTICATED, "Sign in to continue")


# Events


class EventNotFound(NotFoundError):
    def __init__(self, event_id: str) -> None:
        super().__init__(ErrorCode.EVENT_NOT_FOUND, "Event not found")
        self.event_id = event_id


class EventCancelled(DomainError):
    def __init__(self, event_id: str) -> None:
        super().__init__(ErrorCode.EVENT_CANCELLED, "Event has been cancelled")
        self.event_id = event_id


class EventFull(DomainError):
    def __init__(self, event_id: str) -> None:
        super().__init__(ErrorCode.EVENT_FULL, "Event is already full")
        self.event_id = event_id


class EventHasRegistrations(DomainError):
    def __init__(self, event_id: str) -> None:
        super().__init__(
            ErrorCode.EVENT_HAS_REGISTRATIONS,
            "Event with registrations cannot be deleted",
        )
        self.event_id = event_id


class InvalidCapacity(DomainError):
    def __init__(self, message: str) -> None:
        super().__init__(ErrorCode.INVALID_CAPACITY, message)


class InvalidEventSettings(DomainError):
    def __init__(self, message: str) -> None:
        super().__init__(ErrorCode.INVALID_EVENT_SETTINGS, message)


# Registrations and teams


class AlreadyRegistered(DomainError):
    def __init__(self, event_id: str, user_id: str) -> None:
        super().__init__(
            ErrorCode.ALREADY_REGISTERED, "You are already registered for this event"
        )
        self.event_id = event_id
        self.user_id = user_id


class NotATeamEvent(DomainError):
    def __init__(self, event_id: str) -> None:
        super().__init__(ErrorCode.NOT_A_TEAM_EVENT, "Event does not accept teams")
        self.event_id = event_id


class TeamNotFound(NotFoundError):
    def __init__(self, team_id: str) -> None:
        super().__init__(ErrorCode.TEAM_NOT_FOUND, "Team not found")
        self.team_id = team_id


class InvalidInviteCode(DomainError):
    def __init__(self) -> None:
        super().__init__(ErrorCode.INVALID_INVITE_CODE, "Invalid team invite code")


class TeamFull(DomainError):
    def __init__(self, team_id: str) -> None:
        super().__init__(ErrorCode.TEAM_FULL, "Team is full")
        self.team_id = team_id


class RegistrationNotFound(NotFoundError):
    def __init__(self, registration_id: str, integrity: bool = False) -> None:
        super().__init__(ErrorCode.REGISTRATION_NOT_FOUND, "Registration not found")
        self.registration_id = registration_id
        if integrity:
            self.kind = ErrorKind.INTEGRITY


class NotRegistrationOwner(DomainError):
    def __init__(self, registration_id: str) -> None:
        super().__init__(
            ErrorCode.NOT_REGISTRATION_OWNER, "Registration belongs to another user"
        )
        self.registration_id = registration_id


# Payments


class PaymentNotFound(NotFoundError):
    def __init__(self, payment_id: str, integrity: bool = False) -> None:
        super().__init__(ErrorCode.PAYMENT_NOT_FOUND, "Payment not found")
        self.payment_id = payment_id
        if integrity:
            self.kind = ErrorKind.INTEGRITY


class PaymentNotRequired(DomainError):
    def __init__(self, registration_id: str) -> None:
        super().__init__(
            ErrorCode.PAYMENT_NOT_REQUIRED, "This registration does not need payment"
        )
        self.registration_id = registration_id


class AlreadyPaid(DomainError):
    def __init__(self, registration_id: str) -> None:
        super().__init__(ErrorCode.ALREADY_PAID, "Registration is already paid")
        self.registration_id = registration_id


class AmountMismatch(DomainError):
    def __init__(self, payment_id: str) -> None:
        super().__init__(
            ErrorCode.AMOUNT_MISMATCH, "Amount does not match the payment record"
        )
        self.payment_id = payment_id


class OrderMismatch(DomainError):
    def __init__(self, payment_id: str) -> None:
        super().__init__(
            ErrorCode.ORDER_MISMATCH, "Order does not belong to this payment"
        )
        self.payment_id = payment_id


class PaymentAlreadyFinalized(DomainError):
    def __init__(self, payment_id: str, status: str) -> None:
        super().__init__(
            ErrorCode.PAYMENT_ALREADY_FINALIZED,
            f"Payment is already {status}; start a new payment to retry",
        )
        self.payment_id = payment_id
        self.status = status


class InvalidSignature(DomainError):
    def __init__(self) -> None:
        super().__init__(ErrorCode.INVALID_SIGNATURE, "Invalid payment signature")


class OrderCreationFailed(DomainError):
    kind = ErrorKind.TRANSIENT

    def __init__(self, payment_id: str) -> None:
        super().__init__(
            ErrorCode.ORDER_CREATION_FAILED, "Failed to create payment order"
        )
        self.payment_id = payment_id


# Check-in


class EventMismatch(DomainError):
    def __init__(self, registration_id: str, event_id: str) -> None:
        super().__init__(
            ErrorCode.EVENT_MISMATCH, "Invalid registration ID for this event"
        )
        self.registration_id = registration_id
        self.event_id = event_id


class NotApproved(DomainError):
    def __init__(self, registration_id: str) -> None:
        super().__init__(ErrorCode.NOT_APPROVED, "Registration is not approved")
        self.registration_id = registration_id


class PaymentPending(DomainError):
    def __init__(self, registration_id: str) -> None:
        super().__init__(ErrorCode.PAYMENT_PENDING, "Payment is pending")
        self.registration_id = registration_id


class AlreadyCheckedIn(DomainError):
    def __init__(self, registration_id: str) -> None:
        super().__init__(ErrorCode.ALREADY_CHECKED_IN, "Already checked in")
        self.registration_id = registration_id


# Infrastructure


class StoreUnavailable(DomainError):
    kind = ErrorKind.TRANSIENT

    def __init__(self, message: str = "Database is temporarily unavailable") -> None:
        super().__init__(ErrorCode.STORE_UNAVAILABLE, message)
