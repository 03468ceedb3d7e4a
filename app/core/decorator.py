from enum import Enum
from functools import wraps

from sqlalchemy.exc import IntegrityError, SQLAlchemyError


class DBException(Exception):
    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class ErrorCode(str, Enum):
    NOT_AUTHENTICATED = "NOT_AUTHENTICATED"
    UNAUTHORIZED = "UNAUTHORIZED"
    NOT_FOUND = "NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    EMPTY_CART = "EMPTY_CART"
    ALREADY_IN_CART = "ALREADY_IN_CART"
    ALREADY_OWNED = "ALREADY_OWNED"
    ORDER_NOT_PENDING = "ORDER_NOT_PENDING"
    PERSISTENCE_ERROR = "PERSISTENCE_ERROR"
    CUSTOMER_CREATE_FAILED = "CUSTOMER_CREATE_FAILED"
    INTENT_CREATE_FAILED = "INTENT_CREATE_FAILED"
    CONFIRM_FAILED = "CONFIRM_FAILED"
    ORDER_UPDATE_FAILED = "ORDER_UPDATE_FAILED"


class ServiceError(Exception):
    """
    Typed failure raised by the service layer.

    Rendered by the application as ``{"success": false, "error": message, "code": code}``.
    """

    def __init__(self, code: ErrorCode, message: str, status_code: int = 400):
        self.code = code
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    def __repr__(self):
        return f"ServiceError(code={self.code.value}, message={self.message!r})"


def db_exception(func):
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except IntegrityError:
            raise DBException("Duplicate entry: already exists", 409)
        except SQLAlchemyError:
            raise DBException("Database error occurred", 500)

    return wrapper
