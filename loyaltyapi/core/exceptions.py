from fastapi import HTTPException, status
from typing import Optional, Dict, Any


class BaseAPIException(HTTPException):
    """Base exception for API errors"""
    def __init__(
        self,
        status_code: int,
        error_code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        self.error_code = error_code
        self.message = message
        self.details = details or {}

        super().__init__(
            status_code=status_code,
            detail={
                "success": False,
                "error": {
                    "code": error_code,
                    "message": message,
                    "details": self.details
                }
            }
        )

    def __str__(self) -> str:  # Ensure str(e) returns the human message
        return self.message


class AuthenticationError(BaseAPIException):
    """Authentication related errors"""
    def __init__(self, message: str = "Authentication failed", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            error_code="AUTH_001",
            message=message,
            details=details
        )


class AuthorizationError(BaseAPIException):
    """Authorization related errors"""
    def __init__(self, message: str = "Access forbidden", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            error_code="AUTH_002",
            message=message,
            details=details
        )


# ============================================================================
# Core taxonomy
# ============================================================================


class ValidationError(BaseAPIException):
    """Malformed or out-of-range input"""
    def __init__(
        self,
        message: str = "Validation failed",
        details: Optional[Dict] = None,
        error_code: str = "VALIDATION_001",
    ):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            error_code=error_code,
            message=message,
            details=details
        )


class NotFoundError(BaseAPIException):
    """Resource not found errors"""
    def __init__(
        self,
        message: str = "Resource not found",
        details: Optional[Dict] = None,
        error_code: str = "NOT_FOUND_001",
    ):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            error_code=error_code,
            message=message,
            details=details
        )


class StateConflictError(BaseAPIException):
    """Wrong status for the requested transition, or a duplicate request"""
    def __init__(
        self,
        message: str = "Resource conflict",
        details: Optional[Dict] = None,
        error_code: str = "CONFLICT_001",
    ):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            error_code=error_code,
            message=message,
            details=details
        )


class InsufficientBalanceError(BaseAPIException):
    """Insufficient balance errors"""
    def __init__(
        self,
        message: str = "Not enough points",
        details: Optional[Dict] = None,
        error_code: str = "INSUFFICIENT_POINTS",
    ):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code=error_code,
            message=message,
            details=details
        )


class ConfigurationError(BaseAPIException):
    """Stored configuration is in an invalid state"""
    def __init__(
        self,
        message: str = "Invalid configuration",
        details: Optional[Dict] = None,
        error_code: str = "CONFIG_001",
    ):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_code=error_code,
            message=message,
            details=details
        )


class InternalServerError(BaseAPIException):
    """Internal server errors"""
    def __init__(self, message: str = "Internal server error", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_code="INTERNAL_001",
            message=message,
            details=details
        )


# ============================================================================
# Concrete business outcomes
# ============================================================================


class InvalidAmountError(ValidationError):
    def __init__(self, amount: Any, message: str = "Amount must be a positive number"):
        super().__init__(
            message=message,
            details={"amount": str(amount)},
            error_code="INVALID_AMOUNT",
        )


class InvalidRateError(ValidationError):
    def __init__(self, rate: Any, max_rate: int):
        super().__init__(
            message=f"Rate must be an integer between 0 and {max_rate}",
            details={"rate": str(rate), "max_rate": max_rate},
            error_code="INVALID_RATE",
        )


class UserNotFoundError(NotFoundError):
    def __init__(self, user_id: Any):
        super().__init__(
            message="User not found",
            details={"user_id": user_id},
            error_code="USER_NOT_FOUND",
        )


class RewardNotFoundError(NotFoundError):
    def __init__(self, reward_id: Any):
        super().__init__(
            message="Reward not found",
            details={"reward_id": reward_id},
            error_code="REWARD_NOT_FOUND",
        )


class CodeNotFoundError(NotFoundError):
    def __init__(self, code: str):
        super().__init__(
            message="Invalid redemption code",
            details={"code": code},
            error_code="CODE_NOT_FOUND",
        )


class RequestNotFoundError(NotFoundError):
    def __init__(self, message: str = "Redemption not found", details: Optional[Dict] = None):
        super().__init__(
            message=message,
            details=details,
            error_code="REQUEST_NOT_FOUND",
        )


class RewardInactiveError(StateConflictError):
    def __init__(self, reward_id: Any):
        super().__init__(
            message="Reward is not available",
            details={"reward_id": reward_id},
            error_code="REWARD_INACTIVE",
        )


class CodeGenerationFailedError(StateConflictError):
    def __init__(self, attempts: int):
        super().__init__(
            message="Could not allocate a redemption code, please retry",
            details={"attempts": attempts},
            error_code="CODE_GENERATION_FAILED",
        )


class DuplicatePendingRequestError(StateConflictError):
    def __init__(self, existing_code: str):
        super().__init__(
            message="A pending redemption for this reward already exists",
            details={"existing_code": existing_code},
            error_code="DUPLICATE_PENDING_REQUEST",
        )


class AlreadyProcessedError(StateConflictError):
    def __init__(self, current_status: str):
        super().__init__(
            message="Redemption has already been processed",
            details={"current_status": current_status},
            error_code="ALREADY_PROCESSED",
        )


class NotVerifiedError(StateConflictError):
    def __init__(self, current_status: str):
        super().__init__(
            message="Redemption must be verified before completing",
            details={"current_status": current_status},
            error_code="NOT_VERIFIED",
        )


class AlreadyTerminalError(StateConflictError):
    def __init__(self, current_status: str):
        super().__init__(
            message=f"Cannot cancel a {current_status.lower()} redemption",
            details={"current_status": current_status},
            error_code="ALREADY_TERMINAL",
        )


class InsufficientPointsError(InsufficientBalanceError):
    def __init__(self, user_points: int, required_points: int):
        super().__init__(
            message="Not enough points",
            details={"user_points": user_points, "required_points": required_points},
        )


class RateConfigInvalidError(ConfigurationError):
    def __init__(self, message: str = "Points rate configuration is invalid", details: Optional[Dict] = None):
        super().__init__(
            message=message,
            details=details,
            error_code="RATE_CONFIG_INVALID",
        )
