"""
Inventory Service Errors

Every error carries a stable machine-readable code. The category is looked
up from the code, so an error rebuilt on the other side of a wire
(``from_dict``) classifies exactly like the one that was raised.
"""

from enum import Enum
from typing import Any, Dict, Optional, Type


class ErrorCategory(str, Enum):
    """Broad error kinds used by callers to decide how to react"""
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    BUSINESS_RULE = "business_rule"
    EXPIRED = "expired"


class ErrorCode(str, Enum):
    """Stable error codes"""
    # Validation
    INVALID_QUANTITY = "INVALID_QUANTITY"
    INVALID_DURATION = "INVALID_DURATION"
    INVALID_INPUT = "INVALID_INPUT"
    NEGATIVE_QUANTITY = "NEGATIVE_QUANTITY"

    # Not found
    PRODUCT_NOT_FOUND = "PRODUCT_NOT_FOUND"
    INVENTORY_ITEM_NOT_FOUND = "INVENTORY_ITEM_NOT_FOUND"
    RESERVATION_NOT_FOUND = "RESERVATION_NOT_FOUND"
    NOT_FOUND = "NOT_FOUND"

    # Conflict
    INVENTORY_ITEM_ALREADY_EXISTS = "INVENTORY_ITEM_ALREADY_EXISTS"
    RESERVATION_ALREADY_EXISTS = "RESERVATION_ALREADY_EXISTS"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    OPTIMISTIC_LOCK_FAILURE = "OPTIMISTIC_LOCK_FAILURE"
    CONCURRENT_MODIFICATION = "CONCURRENT_MODIFICATION"

    # Business rule
    INSUFFICIENT_STOCK = "INSUFFICIENT_STOCK"
    INVALID_RESERVATION_RELEASE = "INVALID_RESERVATION_RELEASE"
    INVALID_RESERVATION_CONFIRM = "INVALID_RESERVATION_CONFIRM"
    RESERVATION_NOT_PENDING = "RESERVATION_NOT_PENDING"

    # Expired
    RESERVATION_EXPIRED = "RESERVATION_EXPIRED"
    RESERVATION_NOT_EXPIRED = "RESERVATION_NOT_EXPIRED"


ERROR_CATEGORIES: Dict[ErrorCode, ErrorCategory] = {
    ErrorCode.INVALID_QUANTITY: ErrorCategory.VALIDATION,
    ErrorCode.INVALID_DURATION: ErrorCategory.VALIDATION,
    ErrorCode.INVALID_INPUT: ErrorCategory.VALIDATION,
    ErrorCode.NEGATIVE_QUANTITY: ErrorCategory.VALIDATION,
    ErrorCode.PRODUCT_NOT_FOUND: ErrorCategory.NOT_FOUND,
    ErrorCode.INVENTORY_ITEM_NOT_FOUND: ErrorCategory.NOT_FOUND,
    ErrorCode.RESERVATION_NOT_FOUND: ErrorCategory.NOT_FOUND,
    ErrorCode.NOT_FOUND: ErrorCategory.NOT_FOUND,
    ErrorCode.INVENTORY_ITEM_ALREADY_EXISTS: ErrorCategory.CONFLICT,
    ErrorCode.RESERVATION_ALREADY_EXISTS: ErrorCategory.CONFLICT,
    ErrorCode.ALREADY_EXISTS: ErrorCategory.CONFLICT,
    ErrorCode.OPTIMISTIC_LOCK_FAILURE: ErrorCategory.CONFLICT,
    ErrorCode.CONCURRENT_MODIFICATION: ErrorCategory.CONFLICT,
    ErrorCode.INSUFFICIENT_STOCK: ErrorCategory.BUSINESS_RULE,
    ErrorCode.INVALID_RESERVATION_RELEASE: ErrorCategory.BUSINESS_RULE,
    ErrorCode.INVALID_RESERVATION_CONFIRM: ErrorCategory.BUSINESS_RULE,
    ErrorCode.RESERVATION_NOT_PENDING: ErrorCategory.BUSINESS_RULE,
    ErrorCode.RESERVATION_EXPIRED: ErrorCategory.EXPIRED,
    ErrorCode.RESERVATION_NOT_EXPIRED: ErrorCategory.EXPIRED,
}


# =============================================================================
# Base Error
# =============================================================================

class InventoryServiceError(Exception):
    """Base exception for inventory service errors"""

    code: ErrorCode = ErrorCode.INVALID_INPUT
    default_message: str = "inventory service error"

    def __init__(self, message: Optional[str] = None, details: Optional[str] = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.details:
            return f"{self.code.value}: {self.message} ({self.details})"
        return f"{self.code.value}: {self.message}"

    @property
    def category(self) -> ErrorCategory:
        return ERROR_CATEGORIES[self.code]

    def with_details(self, details: str) -> "InventoryServiceError":
        """Return a copy of this error carrying contextual details"""
        return type(self)(self.message, details)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code.value,
            "category": self.category.value,
            "message": self.message,
            "details": self.details,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InventoryServiceError":
        """Rebuild an error from its wire form, picking the class by code"""
        code = ErrorCode(data["code"])
        error_cls = _ERRORS_BY_CODE.get(code, InventoryServiceError)
        return error_cls(data.get("message"), data.get("details"))


# =============================================================================
# Validation
# =============================================================================

class InvalidQuantityError(InventoryServiceError):
    code = ErrorCode.INVALID_QUANTITY
    default_message = "quantity must be positive"


class InvalidDurationError(InventoryServiceError):
    code = ErrorCode.INVALID_DURATION
    default_message = "duration must be positive"


class InvalidInputError(InventoryServiceError):
    code = ErrorCode.INVALID_INPUT
    default_message = "invalid input provided"


class NegativeQuantityError(InventoryServiceError):
    code = ErrorCode.NEGATIVE_QUANTITY
    default_message = "quantity cannot be negative"


# =============================================================================
# Not Found
# =============================================================================

class ProductNotFoundError(InventoryServiceError):
    code = ErrorCode.PRODUCT_NOT_FOUND
    default_message = "product not found"


class StockItemNotFoundError(InventoryServiceError):
    code = ErrorCode.INVENTORY_ITEM_NOT_FOUND
    default_message = "inventory item not found"


class ReservationNotFoundError(InventoryServiceError):
    code = ErrorCode.RESERVATION_NOT_FOUND
    default_message = "reservation not found"


class NotFoundError(InventoryServiceError):
    code = ErrorCode.NOT_FOUND
    default_message = "resource not found"


# =============================================================================
# Conflict
# =============================================================================

class StockItemAlreadyExistsError(InventoryServiceError):
    code = ErrorCode.INVENTORY_ITEM_ALREADY_EXISTS
    default_message = "inventory item already exists for this product"


class ReservationAlreadyExistsError(InventoryServiceError):
    code = ErrorCode.RESERVATION_ALREADY_EXISTS
    default_message = "reservation already exists for this order"


class AlreadyExistsError(InventoryServiceError):
    code = ErrorCode.ALREADY_EXISTS
    default_message = "resource already exists"


class OptimisticLockError(InventoryServiceError):
    code = ErrorCode.OPTIMISTIC_LOCK_FAILURE
    default_message = "the item has been modified by another transaction, please retry"


class ConcurrentModificationError(InventoryServiceError):
    code = ErrorCode.CONCURRENT_MODIFICATION
    default_message = "concurrent modification detected"


# =============================================================================
# Business Rule
# =============================================================================

class InsufficientStockError(InventoryServiceError):
    code = ErrorCode.INSUFFICIENT_STOCK
    default_message = "not enough stock available"


class InvalidReleaseError(InventoryServiceError):
    code = ErrorCode.INVALID_RESERVATION_RELEASE
    default_message = "cannot release more than reserved quantity"


class InvalidConfirmError(InventoryServiceError):
    code = ErrorCode.INVALID_RESERVATION_CONFIRM
    default_message = "cannot confirm more than reserved quantity"


class ReservationNotPendingError(InventoryServiceError):
    code = ErrorCode.RESERVATION_NOT_PENDING
    default_message = "reservation is not in pending status"


# =============================================================================
# Expired
# =============================================================================

class ReservationExpiredError(InventoryServiceError):
    code = ErrorCode.RESERVATION_EXPIRED
    default_message = "reservation has expired"


class ReservationNotExpiredError(InventoryServiceError):
    code = ErrorCode.RESERVATION_NOT_EXPIRED
    default_message = "reservation has not expired yet"


_ERRORS_BY_CODE: Dict[ErrorCode, Type[InventoryServiceError]] = {
    error_cls.code: error_cls
    for error_cls in InventoryServiceError.__subclasses__()
}


# =============================================================================
# Category predicates
# =============================================================================

def get_error_category(error: BaseException) -> Optional[ErrorCategory]:
    """Category of an inventory error, None for anything else"""
    if isinstance(error, InventoryServiceError):
        return error.category
    return None


def is_validation_error(error: BaseException) -> bool:
    return get_error_category(error) == ErrorCategory.VALIDATION


def is_not_found_error(error: BaseException) -> bool:
    return get_error_category(error) == ErrorCategory.NOT_FOUND


def is_conflict_error(error: BaseException) -> bool:
    return get_error_category(error) == ErrorCategory.CONFLICT


def is_business_rule_error(error: BaseException) -> bool:
    return get_error_category(error) == ErrorCategory.BUSINESS_RULE


def is_expired_error(error: BaseException) -> bool:
    return get_error_category(error) == ErrorCategory.EXPIRED
