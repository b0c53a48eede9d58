from typing import Any, Dict, List, Optional


class AppException(Exception):
    def __init__(
        self,
        message: str,
        status_code: int = 400,
        error_code: str = "BUSINESS_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details
        super().__init__(self.message)


class ValidationError(AppException):
    """Business-rule validation failure. Not to be confused with pydantic's schema errors."""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=400,
            error_code="VALIDATION_ERROR",
            details=details
        )


class InvalidRangeError(ValidationError):
    def __init__(self, start, end):
        super().__init__(
            message=f"End date {end} is before start date {start}",
            details={"start_date": str(start), "end_date": str(end)}
        )
        self.error_code = "INVALID_RANGE"


class InsufficientBalanceError(ValidationError):
    def __init__(self, bucket: str, requested: float, remaining: float):
        super().__init__(
            message=f"Insufficient {bucket} balance. Requested: {requested}, Remaining: {remaining}",
            details={"bucket": bucket, "requested": requested, "remaining": remaining}
        )
        self.error_code = "INSUFFICIENT_BALANCE"


class NotFoundError(AppException):
    def __init__(self, message: str = "Resource not found"):
        super().__init__(
            message=message,
            status_code=404,
            error_code="NOT_FOUND"
        )


class InvalidTransitionError(AppException):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=409,
            error_code="INVALID_TRANSITION",
            details=details
        )


class UnauthorizedActionError(AppException):
    def __init__(self, message: str = "Role is not allowed to perform this action"):
        super().__init__(
            message=message,
            status_code=403,
            error_code="UNAUTHORIZED_ACTION"
        )


class OverlapDetectedError(AppException):
    def __init__(self, overlapping_ids: List[str]):
        super().__init__(
            message=f"Leave period overlaps with {len(overlapping_ids)} existing request(s)",
            status_code=409,
            error_code="OVERLAP_DETECTED",
            details={"overlapping_request_ids": overlapping_ids}
        )


class ConcurrentModificationError(AppException):
    def __init__(self, message: str = "Leave request was modified by another caller. Re-fetch and retry."):
        super().__init__(
            message=message,
            status_code=409,
            error_code="CONCURRENT_MODIFICATION"
        )
