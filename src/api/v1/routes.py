"""
API v1 routes.

Defines REST endpoints for conference registration. The signup handler
is the single place where domain errors become HTTP responses.
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, status
from fastapi.responses import JSONResponse

from src.api.dependencies import get_referral_resolver, get_registration_committer
from src.api.models import (
    ErrorResponse,
    InvalidReferralCodeDetail,
    InvalidReferralCodesResponse,
    ReferralCheckResponse,
    ReferralSuggestion,
    SignupResponse,
    ValidationErrorResponse,
)
from src.domain.exceptions import (
    EmailAlreadyRegistered,
    InvalidReferralCodes,
    StorageContainerMissing,
    SubmissionRejected,
)
from src.domain.referrals import ReferralResolver, normalize_referral_code
from src.domain.registration import RegistrationCommitter

logger = logging.getLogger(__name__)

router = APIRouter(tags=["v1"])

INTERNAL_ERROR_MESSAGE = "Internal server error. Please try again."
DUPLICATE_EMAIL_MESSAGE = "An account with this email already exists"


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(message=message).model_dump())


def _rejected(errors: list[dict[str, str]]) -> JSONResponse:
    body = ValidationErrorResponse(message="Validation error", errors=errors)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body.model_dump())


@router.post(
    "/signup",
    response_model=SignupResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {
            "model": ValidationErrorResponse,
            "description": "Invalid fields or payment proof. Unrecognized referral codes "
            "use the InvalidReferralCodesResponse shape instead.",
        },
        409: {"model": ErrorResponse, "description": "Email already registered"},
        500: {"model": ErrorResponse, "description": "Storage misconfiguration or internal error"},
    },
    summary="Submit a conference registration",
    description="Submit a delegate, chair or admin application, optionally with proof of payment. "
    "A confirmation or payment reminder email is sent after the registration is stored.",
)
def signup(
    envelope: Any = Body(...),
    committer: RegistrationCommitter = Depends(get_registration_committer),
) -> SignupResponse | JSONResponse:
    """
    Register an applicant.

    Declared sync so FastAPI runs the blocking storage and database calls
    in its threadpool.
    """
    if not isinstance(envelope, dict):
        return _rejected([{"field": "body", "message": "Request body must be a JSON object"}])

    try:
        registration = committer.commit(envelope)
    except SubmissionRejected as e:
        return _rejected(e.errors)
    except InvalidReferralCodes as e:
        body = InvalidReferralCodesResponse(
            message=e.message,
            suggestions=[
                InvalidReferralCodeDetail(
                    code=entry.code,
                    suggestions=[ReferralSuggestion(code=s.code, owner=s.owner) for s in entry.suggestions],
                )
                for entry in e.invalid_codes
            ],
        )
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body.model_dump())
    except EmailAlreadyRegistered:
        logger.warning("Duplicate registration rejected")
        return _error(status.HTTP_409_CONFLICT, DUPLICATE_EMAIL_MESSAGE)
    except StorageContainerMissing as e:
        logger.error("Payment proof bucket misconfiguration: %s", e.operator_message)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, e.user_message)
    except Exception:
        logger.exception("Registration failed")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE)

    return SignupResponse(userId=registration.id, message="Registration submitted successfully!")


@router.get(
    "/referral-codes/{code}",
    response_model=ReferralCheckResponse,
    summary="Check a referral code",
    description="Look up a referral code as it is typed. Unknown codes come back with "
    "ranked suggestions and, when exactly one is close enough, an autocorrect candidate.",
)
async def check_referral_code(
    code: str,
    resolver: ReferralResolver = Depends(get_referral_resolver),
) -> ReferralCheckResponse:
    normalized = normalize_referral_code(code)
    owner = resolver.lookup(normalized)
    if owner is not None:
        return ReferralCheckResponse(code=normalized, valid=True, owner=owner)

    suggestions = resolver.suggest(normalized) if normalized else ()
    corrected = resolver.autocorrect(normalized)
    return ReferralCheckResponse(
        code=normalized,
        valid=False,
        suggestions=[ReferralSuggestion(code=s.code, owner=s.owner) for s in suggestions],
        autocorrect=ReferralSuggestion(code=corrected.code, owner=corrected.owner) if corrected else None,
    )
