"""Pricing engine error handling.

Custom exceptions and error codes for the pricing and commission pipeline.

Calculation errors (``EngineError`` subclasses) are raised by the individual
components and returned as typed results by ``compute_breakdown``. Store
errors are raised; they indicate infrastructure trouble, not bad pricing
input.
"""

from typing import Optional, Dict, Any


# Error Codes
class ErrorCode:
    """Error code constants."""

    # Pricing Errors
    MARGIN_CONFIGURATION = "MARGIN_CONFIGURATION"
    SPLIT_CONFIGURATION = "SPLIT_CONFIGURATION"
    INELIGIBLE_SPLIT = "INELIGIBLE_SPLIT"
    MISSING_RATE_CONFIG = "MISSING_RATE_CONFIG"

    # Firestore Errors
    FIRESTORE_ERROR = "FIRESTORE_ERROR"
    ESTIMATE_NOT_FOUND = "ESTIMATE_NOT_FOUND"
    FIRESTORE_WRITE_FAILED = "FIRESTORE_WRITE_FAILED"


class PricingError(Exception):
    """Base exception for pricing engine errors.

    Provides structured error information for API responses.

    Attributes:
        code: Error code from ErrorCode constants
        message: Human-readable error message
        details: Additional error context
    """

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        """Initialize PricingError.

        Args:
            code: Error code from ErrorCode constants
            message: Human-readable error message
            details: Additional error context
        """
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for API response.

        Returns:
            Dictionary with code, message, and details.
        """
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PricingError):
            return NotImplemented
        return type(self) is type(other) and self.to_dict() == other.to_dict()

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.code, self.message))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class EngineError(PricingError):
    """Error produced by the calculation pipeline.

    The caller must block estimate finalization when one of these is
    returned instead of a breakdown.
    """


class MarginConfigurationError(EngineError):
    """Percentages of selling price add up to 100% or more."""

    def __init__(self, message: str, total_percent: float, details: Optional[Dict] = None):
        super().__init__(
            code=ErrorCode.MARGIN_CONFIGURATION,
            message=message,
            details={**(details or {}), "total_percent": total_percent}
        )
        self.total_percent = total_percent


class SplitConfigurationError(EngineError):
    """Primary and secondary split percentages do not add up to 100."""

    def __init__(self, primary_split_percent: float, secondary_split_percent: float):
        total = primary_split_percent + secondary_split_percent
        super().__init__(
            code=ErrorCode.SPLIT_CONFIGURATION,
            message=f"Split percentages must sum to 100, got {total:g}",
            details={
                "primary_split_percent": primary_split_percent,
                "secondary_split_percent": secondary_split_percent,
            }
        )


class IneligibleSplitError(EngineError):
    """Profit split requested between reps whose effective overhead differs."""

    def __init__(
        self,
        message: str,
        primary_rep_id: Optional[str],
        secondary_rep_id: Optional[str],
        details: Optional[Dict] = None
    ):
        super().__init__(
            code=ErrorCode.INELIGIBLE_SPLIT,
            message=message,
            details={
                **(details or {}),
                "primary_rep_id": primary_rep_id,
                "secondary_rep_id": secondary_rep_id,
            }
        )


class MissingRateConfigError(EngineError):
    """No resolvable rate for a required representative."""

    def __init__(self, message: str, rep_id: Optional[str], field: Optional[str] = None):
        details: Dict[str, Any] = {"rep_id": rep_id}
        if field:
            details["field"] = field
        super().__init__(
            code=ErrorCode.MISSING_RATE_CONFIG,
            message=message,
            details=details
        )
        self.rep_id = rep_id
        self.field = field


class StoreError(PricingError):
    """Estimate store (Firestore) failure."""

    def __init__(
        self,
        code: str,
        message: str,
        estimate_id: Optional[str] = None,
        details: Optional[Dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            details={**(details or {}), "estimate_id": estimate_id} if estimate_id else details
        )
        self.estimate_id = estimate_id
