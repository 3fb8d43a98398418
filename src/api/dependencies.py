"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain services and infrastructure adapters into routes, plus the
builders that pick adapters from settings at startup.
"""

from fastapi import BackgroundTasks, Request
from psycopg_pool import ConnectionPool

from src.adapters.repository.postgres import PostgresRegistrationRepository
from src.adapters.smtp.console import ConsoleEmailSender
from src.adapters.smtp.resend import ResendEmailSender
from src.adapters.storage.local import LocalObjectStorage
from src.adapters.storage.supabase import SupabaseObjectStorage
from src.config.settings import Settings, get_settings
from src.domain.payment_proof import PaymentProofHandler
from src.domain.ports import EmailSender, ObjectStorage
from src.domain.referrals import ReferralResolver
from src.domain.registration import RegistrationCommitter
from src.domain.validation import PayloadValidator

# Module-level singleton - PayloadValidator is stateless
_validator = PayloadValidator()


def build_object_storage(settings: Settings) -> ObjectStorage:
    """Create the payment proof storage adapter selected by STORAGE_BACKEND."""
    if settings.storage_backend == "supabase":
        return SupabaseObjectStorage.from_credentials(
            settings.supabase_url,
            settings.supabase_service_role_key,
            settings.payment_proof_bucket,
            timeout=settings.http_timeout_seconds,
        )
    return LocalObjectStorage(
        settings.local_storage_dir,
        settings.payment_proof_bucket,
        settings.local_storage_base_url,
    )


def build_email_sender(settings: Settings) -> EmailSender:
    """Create the email adapter selected by EMAIL_BACKEND."""
    if settings.email_backend == "resend":
        return ResendEmailSender.from_api_key(
            settings.resend_api_key,
            settings.email_from,
            timeout=settings.http_timeout_seconds,
        )
    return ConsoleEmailSender()


def get_pool(request: Request) -> ConnectionPool:
    """
    Get connection pool from app state.

    The pool is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.pool


def get_repository(request: Request) -> PostgresRegistrationRepository:
    """Create repository with connection pool from app state."""
    pool = get_pool(request)
    return PostgresRegistrationRepository(pool)


def get_referral_resolver(request: Request) -> ReferralResolver:
    """Get the resolver built around the registry loaded at startup."""
    return request.app.state.referral_resolver


def get_registration_committer(
    request: Request, background_tasks: BackgroundTasks
) -> RegistrationCommitter:
    """
    Create the registration committer with injected dependencies.

    Notifications are handed to BackgroundTasks so they run after the
    response has been sent.
    """
    settings = get_settings()
    return RegistrationCommitter(
        repository=get_repository(request),
        email_sender=request.app.state.email_sender,
        validator=_validator,
        resolver=get_referral_resolver(request),
        proof_handler=PaymentProofHandler(
            storage=request.app.state.object_storage,
            max_bytes=settings.payment_proof_max_bytes,
        ),
        schedule=background_tasks.add_task,
    )
