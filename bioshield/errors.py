"""
Exceptions for BioShield.

Every failure in the core is a typed, recoverable error returned to the
host. Nothing here is fatal to the process: the host decides whether to
reject a reading, reject a claim, or retry with fresh data.
"""

from enum import StrEnum
from typing import Any, Optional


class ErrorCode(StrEnum):
    """Standard error codes for BioShield."""
    # General errors (1xxx)
    UNKNOWN_ERROR = "E1000"
    VALIDATION_ERROR = "E1001"

    # Oracle / feed errors (2xxx)
    STALE_DATA = "E2000"
    LOW_CONFIDENCE = "E2001"
    INSUFFICIENT_RESPONSES = "E2002"
    HIGH_VARIANCE = "E2003"
    VERIFICATION_FAILED = "E2004"
    INSUFFICIENT_ORACLE_CONSENSUS = "E2005"
    INVALID_ORACLE_DATA = "E2006"

    # Trigger errors (3xxx)
    INVALID_TRIGGER_CONDITIONS = "E3000"

    # Arithmetic errors (4xxx)
    CALCULATION_OVERFLOW = "E4000"
    PREMIUM_CALCULATION_OVERFLOW = "E4001"
    PAYOUT_CALCULATION_ERROR = "E4002"

    # Coverage / claim / pool errors (5xxx)
    INVALID_COVERAGE_AMOUNT = "E5000"
    INVALID_COVERAGE_PERIOD = "E5001"
    CLAIM_AMOUNT_EXCEEDS_COVERAGE = "E5002"
    COVERAGE_NOT_ACTIVE = "E5003"
    INVALID_LIQUIDITY_AMOUNT = "E5004"
    INSUFFICIENT_LIQUIDITY = "E5005"
    INVALID_POOL_PARAMETERS = "E5006"
    POOL_PAUSED = "E5007"


class RejectionReason(StrEnum):
    """Why a single feed reading was refused."""
    STALE_DATA = "StaleData"
    LOW_CONFIDENCE = "LowConfidence"
    INSUFFICIENT_RESPONSES = "InsufficientResponses"
    HIGH_VARIANCE = "HighVariance"
    VERIFICATION_FAILED = "VerificationFailed"


class BioShieldError(Exception):
    """
    Base exception for BioShield.

    All custom exceptions inherit from this class.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging and decision records."""
        result: dict[str, Any] = {
            "error_code": self.error_code.value,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        return f"[{self.error_code.value}] {self.message}"


# ── Feed rejections ───────────────────────────────────────────────────────


_REASON_CODES: dict[RejectionReason, ErrorCode] = {
    RejectionReason.STALE_DATA: ErrorCode.STALE_DATA,
    RejectionReason.LOW_CONFIDENCE: ErrorCode.LOW_CONFIDENCE,
    RejectionReason.INSUFFICIENT_RESPONSES: ErrorCode.INSUFFICIENT_RESPONSES,
    RejectionReason.HIGH_VARIANCE: ErrorCode.HIGH_VARIANCE,
    RejectionReason.VERIFICATION_FAILED: ErrorCode.VERIFICATION_FAILED,
}


class FeedRejectedError(BioShieldError):
    """A feed reading failed freshness, confidence or integrity checks."""

    reason: RejectionReason = RejectionReason.VERIFICATION_FAILED

    def __init__(
        self,
        source_id: str,
        message: str,
        details: Optional[dict[str, Any]] = None,
    ):
        self.source_id = source_id
        super().__init__(
            message=f"{self.reason.value} ({source_id}): {message}",
            error_code=_REASON_CODES[self.reason],
            details={"source_id": source_id, "reason": self.reason.value, **(details or {})},
        )


class StaleDataError(FeedRejectedError):
    reason = RejectionReason.STALE_DATA


class LowConfidenceError(FeedRejectedError):
    reason = RejectionReason.LOW_CONFIDENCE


class InsufficientResponsesError(FeedRejectedError):
    reason = RejectionReason.INSUFFICIENT_RESPONSES


class HighVarianceError(FeedRejectedError):
    reason = RejectionReason.HIGH_VARIANCE


class VerificationFailedError(FeedRejectedError):
    reason = RejectionReason.VERIFICATION_FAILED


class InvalidOracleDataError(BioShieldError):
    """A raw report could not be normalized into a typed reading."""

    def __init__(self, message: str, errors: Optional[list[dict[str, Any]]] = None):
        super().__init__(
            message=message,
            error_code=ErrorCode.INVALID_ORACLE_DATA,
            details={"errors": errors or []},
        )


class InsufficientOracleConsensusError(BioShieldError):
    """Too few independent feed kinds to drive a payout decision."""

    def __init__(self, source_count: int, min_sources: int):
        super().__init__(
            message=f"Insufficient oracle consensus: {source_count} of {min_sources} required sources",
            error_code=ErrorCode.INSUFFICIENT_ORACLE_CONSENSUS,
            details={"source_count": source_count, "min_sources": min_sources},
        )
        self.source_count = source_count
        self.min_sources = min_sources


# ── Trigger conditions ────────────────────────────────────────────────────


class InvalidTriggerConditionsError(BioShieldError):
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(
            message=f"Invalid trigger conditions: {message}",
            error_code=ErrorCode.INVALID_TRIGGER_CONDITIONS,
            details=details,
        )


# ── Arithmetic ────────────────────────────────────────────────────────────


class CalculationOverflowError(BioShieldError):
    """Checked arithmetic left the ledger's unsigned 64-bit range."""

    error_code_default = ErrorCode.CALCULATION_OVERFLOW

    def __init__(self, operation: str, details: Optional[dict[str, Any]] = None):
        super().__init__(
            message=f"Arithmetic overflow in {operation}",
            error_code=self.error_code_default,
            details={"operation": operation, **(details or {})},
        )
        self.operation = operation


class PremiumCalculationOverflowError(CalculationOverflowError):
    error_code_default = ErrorCode.PREMIUM_CALCULATION_OVERFLOW


class PayoutCalculationError(CalculationOverflowError):
    error_code_default = ErrorCode.PAYOUT_CALCULATION_ERROR


# ── Coverage, claims and pools ────────────────────────────────────────────


class ClaimAmountExceedsCoverageError(BioShieldError):
    def __init__(self, claim_amount: int, remaining: int):
        super().__init__(
            message=f"Claim amount {claim_amount} exceeds remaining coverage {remaining}",
            error_code=ErrorCode.CLAIM_AMOUNT_EXCEEDS_COVERAGE,
            details={"claim_amount": claim_amount, "remaining": remaining},
        )


class InvalidCoverageAmountError(BioShieldError):
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message, ErrorCode.INVALID_COVERAGE_AMOUNT, details)


class InvalidCoveragePeriodError(BioShieldError):
    def __init__(self, period_seconds: int, max_seconds: int):
        super().__init__(
            message=f"Coverage period {period_seconds}s outside (0, {max_seconds}]",
            error_code=ErrorCode.INVALID_COVERAGE_PERIOD,
            details={"period_seconds": period_seconds, "max_seconds": max_seconds},
        )


class CoverageNotActiveError(BioShieldError):
    def __init__(self, coverage_id: str, status: str):
        super().__init__(
            message=f"Coverage {coverage_id} is not active ({status})",
            error_code=ErrorCode.COVERAGE_NOT_ACTIVE,
            details={"coverage_id": coverage_id, "status": status},
        )


class InvalidLiquidityAmountError(BioShieldError):
    def __init__(self, amount: int):
        super().__init__(
            message=f"Invalid liquidity amount: {amount}",
            error_code=ErrorCode.INVALID_LIQUIDITY_AMOUNT,
            details={"amount": amount},
        )


class InsufficientLiquidityError(BioShieldError):
    def __init__(self, required: int, available: int):
        super().__init__(
            message=f"Insufficient liquidity: {required} required, {available} available",
            error_code=ErrorCode.INSUFFICIENT_LIQUIDITY,
            details={"required": required, "available": available},
        )


class InvalidPoolParametersError(BioShieldError):
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message, ErrorCode.INVALID_POOL_PARAMETERS, details)


class PoolPausedError(BioShieldError):
    def __init__(self, pool_id: str):
        super().__init__(
            message=f"Pool {pool_id} is paused",
            error_code=ErrorCode.POOL_PAUSED,
            details={"pool_id": pool_id},
        )
