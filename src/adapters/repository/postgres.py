"""
PostgreSQL repository adapter - Implements RegistrationRepository protocol.

This module provides the PostgreSQL implementation of the domain's
repository port using psycopg3 with raw SQL.

Concurrency Design - Email Uniqueness:
--------------------------------------
The registrations table carries UNIQUE (email). insert_registration is a
plain INSERT, so of two concurrent submissions for the same address the
database lets exactly one through and the other fails with a
unique_violation, which is translated to EmailAlreadyRegistered. No
application-level locking or pre-check SELECT is involved.

Role payload exclusivity is enforced twice: by the domain draft and by a
CHECK constraint that requires exactly the slot matching role to be set.
"""

import logging
from pathlib import Path

from psycopg import errors
from psycopg.types.json import Jsonb
from psycopg_pool import ConnectionPool

from src.domain.exceptions import EmailAlreadyRegistered
from src.domain.models import PaymentStatus, Registration, RegistrationDraft, Role

logger = logging.getLogger(__name__)

_EMAIL_CONSTRAINT = "registrations_email_key"


def _jsonb(value: dict | None) -> Jsonb | None:
    return Jsonb(value) if value is not None else None


class PostgresRegistrationRepository:
    """
    Implements RegistrationRepository protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """
        Initialize repository with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
        """
        self._pool = pool

    def insert_registration(self, draft: RegistrationDraft) -> Registration:
        """
        Insert a registration as a single row.

        Args:
            draft: Validated registration with payment and referral fields set

        Returns:
            Registration carrying the database-generated id

        Raises:
            EmailAlreadyRegistered: If the UNIQUE (email) constraint fires
        """
        sql = """
            INSERT INTO registrations (
                email, first_name, last_name, phone, nationality,
                school, grade, dietary_type, dietary_other,
                has_allergies, allergies_details,
                emergency_contact_name, emergency_contact_phone,
                agree_terms, agree_photos, role,
                delegate_data, chair_data, admin_data,
                referral_codes, payment_status,
                payment_proof_url, payment_proof_storage_path, payment_proof_file_name,
                payment_proof_payer_name, payment_proof_role, payment_proof_uploaded_at
            )
            VALUES (
                %s, %s, %s, %s, %s,
                %s, %s, %s, %s,
                %s, %s,
                %s, %s,
                %s, %s, %s,
                %s, %s, %s,
                %s, %s,
                %s, %s, %s,
                %s, %s, %s
            )
            RETURNING id, email, role, payment_status, referral_codes, payment_proof_storage_path
        """
        proof = draft.payment_proof
        params = (
            draft.email,
            draft.first_name,
            draft.last_name,
            draft.phone,
            draft.nationality,
            draft.school,
            draft.grade,
            draft.dietary_type,
            draft.dietary_other,
            draft.has_allergies,
            draft.allergies_details,
            draft.emergency_contact_name,
            draft.emergency_contact_phone,
            draft.agree_terms,
            draft.agree_photos,
            draft.role.value,
            _jsonb(draft.delegate_data),
            _jsonb(draft.chair_data),
            _jsonb(draft.admin_data),
            draft.referral_codes,
            draft.payment_status.value,
            proof.url if proof else None,
            proof.storage_path if proof else None,
            proof.file_name if proof else None,
            proof.payer_name if proof else None,
            proof.role.value if proof else None,
            proof.uploaded_at if proof else None,
        )

        try:
            with self._pool.connection() as conn, conn.cursor() as cursor:
                cursor.execute(sql, params)
                row = cursor.fetchone()
                conn.commit()
        except errors.UniqueViolation as e:
            if e.diag.constraint_name not in (None, _EMAIL_CONSTRAINT):
                raise
            raise EmailAlreadyRegistered(draft.email) from e

        return Registration(
            id=str(row[0]),
            email=row[1],
            role=Role(row[2]),
            payment_status=PaymentStatus(row[3]),
            referral_codes=tuple(row[4] or ()),
            payment_proof_path=row[5],
        )


def run_migrations(pool: ConnectionPool) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 ConnectionPool instance
    """
    # Structure: src/adapters/repository/postgres.py -> migrations/
    migrations_dir = Path(__file__).parent.parent.parent.parent / "migrations"

    if not migrations_dir.exists():
        logger.warning(f"Migrations directory not found: {migrations_dir}")
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info(f"Running {len(sql_files)} migration(s)")

    for sql_file in sql_files:
        logger.info(f"Executing migration: {sql_file.name}")
        try:
            sql_content = sql_file.read_text()

            with pool.connection() as conn:
                conn.execute(sql_content)

            logger.info(f"Migration complete: {sql_file.name}")
        except Exception as e:
            logger.error(f"Migration failed: {sql_file.name} - {e}")
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
