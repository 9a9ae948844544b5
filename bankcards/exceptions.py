"""
Domain exceptions and FastAPI exception handlers.

The service layer raises these errors without importing any HTTP concepts.
Every error carries an ErrorKind, and the transport layer maps the kind to a
status code. Adding a new concrete error only means choosing its kind.

Exception hierarchy:
    BankCardsError (base)
    ├── NotFoundError            — 404
    │   ├── UserNotFoundError
    │   └── CardNotFoundError
    ├── InvalidRequestError      — 400
    │   ├── InvalidPasswordError
    │   ├── InvalidCardNumberError
    │   └── InsufficientFundsError
    ├── ConflictError            — 409
    │   ├── DuplicateEmailError
    │   ├── DuplicateCardError
    │   └── CardExpiredError
    ├── UnauthorizedError        — 401
    │   ├── InvalidCredentialsError
    │   ├── TokenMalformedError
    │   └── TokenExpiredError
    └── ForbiddenError           — 403 (role gate in the adapter layer)
"""

import enum
from decimal import Decimal

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


class ErrorKind(str, enum.Enum):
    NOT_FOUND = "not_found"
    INVALID_REQUEST = "invalid_request"
    CONFLICT = "conflict"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"


# ---------------------------------------------------------------------------
# Base exception and kinds
# ---------------------------------------------------------------------------

class BankCardsError(Exception):
    """Base exception for all Bank Cards domain errors."""

    kind: ErrorKind = ErrorKind.INVALID_REQUEST

    def __init__(self, detail: str = "An error occurred"):
        self.detail = detail
        super().__init__(self.detail)

    def to_dict(self) -> dict:
        """The JSON body the transport layer returns for this error."""
        return {"detail": self.detail, "error_type": self.kind.value}


class NotFoundError(BankCardsError):
    kind = ErrorKind.NOT_FOUND


class InvalidRequestError(BankCardsError):
    kind = ErrorKind.INVALID_REQUEST


class ConflictError(BankCardsError):
    kind = ErrorKind.CONFLICT


class UnauthorizedError(BankCardsError):
    kind = ErrorKind.UNAUTHORIZED

    def __init__(self, detail: str = "Could not validate credentials"):
        super().__init__(detail)


class ForbiddenError(BankCardsError):
    kind = ErrorKind.FORBIDDEN

    def __init__(self, detail: str = "You do not have access to this resource"):
        super().__init__(detail)


# ---------------------------------------------------------------------------
# Concrete errors
# ---------------------------------------------------------------------------

class UserNotFoundError(NotFoundError):
    def __init__(self, email: str):
        self.email = email
        super().__init__(f"User with email {email} not found")


class CardNotFoundError(NotFoundError):
    """Raised for missing cards, and for cards the caller does not own on owner reads."""

    def __init__(self, number: str):
        self.number = number
        super().__init__(f"Card ending in {number[-4:]} not found")


class InvalidPasswordError(InvalidRequestError):
    def __init__(self):
        super().__init__("Password must be 5-16 latin letters or digits")


class InvalidCardNumberError(InvalidRequestError):
    def __init__(self):
        super().__init__("Card number must consist of exactly 16 digits")


class InsufficientFundsError(InvalidRequestError):
    """
    Raised when a transfer exceeds the source card balance.

    Attributes:
        card_number: The source card.
        requested: The amount the user tried to move.
        available: The balance at the time of the check.
    """

    def __init__(self, card_number: str, requested: Decimal, available: Decimal):
        self.card_number = card_number
        self.requested = requested
        self.available = available
        super().__init__(
            "There are not enough funds on the card from which "
            "the transfer is being made"
        )

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["requested"] = str(self.requested)
        body["available"] = str(self.available)
        return body


class DuplicateEmailError(ConflictError):
    def __init__(self, email: str):
        self.email = email
        super().__init__(f"User with email {email} already exists")


class DuplicateCardError(ConflictError):
    def __init__(self, number: str):
        self.number = number
        super().__init__(f"Card ending in {number[-4:]} already exists")


class CardExpiredError(ConflictError):
    def __init__(self, number: str):
        self.number = number
        super().__init__(f"Card ending in {number[-4:]} has expired")


class InvalidCredentialsError(UnauthorizedError):
    def __init__(self):
        super().__init__("Invalid email or password")


class TokenMalformedError(UnauthorizedError):
    def __init__(self, detail: str = "Token is malformed or its signature is invalid"):
        super().__init__(detail)


class TokenExpiredError(UnauthorizedError):
    def __init__(self):
        super().__init__("Token has expired")


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.INVALID_REQUEST: 400,
    ErrorKind.CONFLICT: 409,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.FORBIDDEN: 403,
}


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register exception handlers with the FastAPI application.

    Every domain error becomes its to_dict() body ({"detail", "error_type"}
    plus any error-specific fields) with the status code of its kind.
    Called once during app construction.
    """

    @app.exception_handler(BankCardsError)
    async def bank_cards_error_handler(
        request: Request, exc: BankCardsError
    ) -> JSONResponse:
        headers = None
        if exc.kind is ErrorKind.UNAUTHORIZED:
            headers = {"WWW-Authenticate": "Bearer"}
        return JSONResponse(
            status_code=STATUS_BY_KIND[exc.kind],
            content=exc.to_dict(),
            headers=headers,
        )

