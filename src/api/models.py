"""
API response models.

Pydantic models for OpenAPI schema generation and success responses.
The request body is deliberately untyped at this layer: the domain
validator reports every field error in one response instead of FastAPI's
first-failure 422.
"""

from typing import Literal

from pydantic import BaseModel


class SignupResponse(BaseModel):
    """Response model for a committed registration."""

    status: Literal["success"] = "success"
    userId: str
    message: str


class FieldError(BaseModel):
    field: str
    message: str


class ValidationErrorResponse(BaseModel):
    """Field-level validation failure."""

    status: Literal["error"] = "error"
    message: str
    errors: list[FieldError]


class ReferralSuggestion(BaseModel):
    code: str
    owner: str


class InvalidReferralCodeDetail(BaseModel):
    code: str
    suggestions: list[ReferralSuggestion]


class InvalidReferralCodesResponse(BaseModel):
    """One or more referral codes were not recognized."""

    status: Literal["invalid_referral_codes"] = "invalid_referral_codes"
    message: str
    suggestions: list[InvalidReferralCodeDetail]


class ErrorResponse(BaseModel):
    """Standard error response model."""

    status: Literal["error"] = "error"
    message: str


class ReferralCheckResponse(BaseModel):
    """Result of checking a single referral code while the form is filled in."""

    code: str
    valid: bool
    owner: str | None = None
    suggestions: list[ReferralSuggestion] = []
    autocorrect: ReferralSuggestion | None = None
