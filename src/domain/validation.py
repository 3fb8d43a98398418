"""
Payload validation - Turns an untrusted submission envelope into a draft.

Schema checks are expressed as pydantic models, one per role variant.
Business rules that span fields (dietary/allergy details, committee
choices, chair crisis answers) run on the raw envelope afterwards so that
every violation is reported in one pass, even when the schema itself
already failed.
"""

import logging
from collections.abc import Mapping
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, StringConstraints, ValidationError, field_validator

from .exceptions import PayloadInvalid
from .models import RegistrationDraft, Role

logger = logging.getLogger(__name__)

ALLOWED_COMMITTEES = ("ga1", "unodc", "ecosoc", "who", "icj", "icrcc", "uncstd")

# Minimum length for the chair application essays
ESSAY_MIN_LENGTH = 50

NonBlank = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
Essay = Annotated[str, StringConstraints(strip_whitespace=True, min_length=ESSAY_MIN_LENGTH)]
YesNo = Literal["yes", "no"]


class _Schema(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)


class CoreFields(_Schema):
    """Personal, academic, dietary and consent fields shared by every role."""

    email: EmailStr
    first_name: NonBlank = Field(alias="firstName")
    last_name: NonBlank = Field(alias="lastName")
    phone: NonBlank
    nationality: str | None = None
    school: NonBlank
    grade: Literal["6", "7", "8", "9", "10", "11", "12", "university"]
    dietary_type: Literal["vegetarian", "non-vegetarian", "other"] = Field(alias="dietaryType")
    dietary_other: str | None = Field(default=None, alias="dietaryOther")
    has_allergies: YesNo = Field(alias="hasAllergies")
    allergies_details: str | None = Field(default=None, alias="allergiesDetails")
    emergency_contact_name: NonBlank = Field(alias="emergencyContact")
    emergency_contact_phone: NonBlank = Field(alias="emergencyPhone")
    agree_terms: bool = Field(alias="agreeTerms")
    agree_photos: bool = Field(default=False, alias="agreePhotos")

    @field_validator("nationality")
    @classmethod
    def _uppercase_nationality(cls, value: str | None) -> str | None:
        return value.upper() if value else None

    @field_validator("agree_terms")
    @classmethod
    def _terms_accepted(cls, value: bool) -> bool:
        if not value:
            raise ValueError("You must agree to the terms and conditions")
        return value


class DelegateData(_Schema):
    experience: Literal["none", "beginner", "intermediate", "advanced"]
    committee1: NonBlank
    committee2: str | None = None
    committee3: str | None = None


class ChairExperience(_Schema):
    conference: str = ""
    position: str = ""
    year: str = ""
    description: str = ""


class ChairData(_Schema):
    experiences: list[ChairExperience] = Field(default_factory=list)
    committee1: NonBlank
    committee2: str | None = None
    committee3: str | None = None
    crisis_backroom_interest: YesNo = Field(alias="crisisBackroomInterest")
    why_best_fit: Essay = Field(alias="whyBestFit")
    successful_committee: Essay = Field(alias="successfulCommittee")
    strength_weakness: Essay = Field(alias="strengthWeakness")
    crisis_response: str = Field(default="", alias="crisisResponse")
    availability: str = ""


class AdminExperience(_Schema):
    role: str = ""
    organization: str = ""
    year: str = ""
    description: str = ""


class AdminData(_Schema):
    experiences: list[AdminExperience] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    why_admin: str = Field(default="", alias="whyAdmin")
    relevant_experience: NonBlank = Field(alias="relevantExperience")
    previous_admin: YesNo = Field(alias="previousAdmin")
    understands_role: YesNo = Field(alias="understandsRole")


# Every Role must have an entry: envelope key and schema for its payload.
ROLE_SCHEMAS: dict[Role, tuple[str, type[_Schema]]] = {
    Role.DELEGATE: ("delegateData", DelegateData),
    Role.CHAIR: ("chairData", ChairData),
    Role.ADMIN: ("adminData", AdminData),
}


def _field_error(field: str, message: str) -> dict[str, str]:
    return {"field": field, "message": message}


def _pydantic_errors(prefix: str, exc: ValidationError) -> list[dict[str, str]]:
    """Flatten a pydantic ValidationError into field/message dicts."""
    errors = []
    for err in exc.errors():
        field = ".".join([prefix, *(str(part) for part in err["loc"])])
        # Custom validators carry their ValueError in ctx; built-in types (EmailStr) only a reason
        ctx = err.get("ctx") or {}
        message = str(ctx["error"]) if "error" in ctx else err["msg"]
        errors.append(_field_error(field, message))
    return errors


def _text(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    return value.strip() if isinstance(value, str) else ""


class PayloadValidator:
    """
    Validates core fields and the role-specific sub-object.

    Stateless apart from the committee whitelist; safe to share between
    requests.
    """

    def __init__(self, allowed_committees: tuple[str, ...] = ALLOWED_COMMITTEES) -> None:
        self.allowed_committees = allowed_committees

    def validate(self, envelope: Mapping[str, Any]) -> RegistrationDraft:
        """
        Validate an envelope and build a RegistrationDraft.

        Referral codes and payment fields are left at their defaults; the
        committer fills them in.

        Raises:
            PayloadInvalid: With every field-level violation found
        """
        errors: list[dict[str, str]] = []

        form = envelope.get("formData")
        if not isinstance(form, Mapping):
            form = {}

        core: CoreFields | None = None
        try:
            core = CoreFields.model_validate(form)
        except ValidationError as exc:
            errors.extend(_pydantic_errors("formData", exc))
        errors.extend(self._check_dietary_rules(form))

        role: Role | None = None
        try:
            role = Role(envelope.get("selectedRole"))
        except ValueError:
            errors.append(_field_error("selectedRole", "Please select a role to apply for"))

        role_payload: dict[str, Any] | None = None
        if role is not None:
            key, schema = ROLE_SCHEMAS[role]
            raw = envelope.get(key)
            if not isinstance(raw, Mapping):
                errors.append(_field_error(key, f"Missing application details for the {role.value} role"))
            else:
                try:
                    role_payload = schema.model_validate(raw).model_dump(by_alias=True)
                except ValidationError as exc:
                    errors.extend(_pydantic_errors(key, exc))
                if role is Role.DELEGATE:
                    errors.extend(self._check_committees(key, raw))
                elif role is Role.CHAIR:
                    errors.extend(self._check_crisis_answers(key, raw))

        if errors or core is None or role is None or role_payload is None:
            logger.warning("Submission rejected with %d field error(s)", len(errors))
            raise PayloadInvalid(errors)

        slots: dict[str, dict[str, Any] | None] = {
            "delegate_data": None,
            "chair_data": None,
            "admin_data": None,
        }
        slots[f"{role.value}_data"] = role_payload

        return RegistrationDraft(
            email=core.email.strip().lower(),
            first_name=core.first_name,
            last_name=core.last_name,
            phone=core.phone,
            nationality=core.nationality,
            school=core.school,
            grade=core.grade,
            dietary_type=core.dietary_type,
            dietary_other=core.dietary_other or None,
            has_allergies=core.has_allergies,
            allergies_details=core.allergies_details or None,
            emergency_contact_name=core.emergency_contact_name,
            emergency_contact_phone=core.emergency_contact_phone,
            agree_terms=core.agree_terms,
            agree_photos=core.agree_photos,
            role=role,
            **slots,
        )

    def _check_dietary_rules(self, form: Mapping[str, Any]) -> list[dict[str, str]]:
        errors = []
        if form.get("dietaryType") == "other" and not _text(form, "dietaryOther"):
            errors.append(_field_error("formData.dietaryOther", "Please specify your dietary requirement"))
        if form.get("hasAllergies") == "yes" and not _text(form, "allergiesDetails"):
            errors.append(
                _field_error("formData.allergiesDetails", "Please provide details about your allergies")
            )
        return errors

    def _check_committees(self, key: str, data: Mapping[str, Any]) -> list[dict[str, str]]:
        """Non-empty committee choices must be unique and whitelisted."""
        errors = []
        seen: set[str] = set()
        for field in ("committee1", "committee2", "committee3"):
            choice = _text(data, field)
            if not choice:
                continue
            if choice in seen:
                errors.append(
                    _field_error(f"{key}.{field}", "Cannot select the same committee multiple times")
                )
            elif choice not in self.allowed_committees:
                errors.append(_field_error(f"{key}.{field}", "Invalid committee selection"))
            seen.add(choice)
        return errors

    def _check_crisis_answers(self, key: str, data: Mapping[str, Any]) -> list[dict[str, str]]:
        if data.get("crisisBackroomInterest") != "yes":
            return []
        errors = []
        for field, label in (("crisisResponse", "the crisis response scenario"),
                             ("availability", "your availability and communication")):
            if len(_text(data, field)) < ESSAY_MIN_LENGTH:
                errors.append(
                    _field_error(
                        f"{key}.{field}",
                        f"Please provide at least {ESSAY_MIN_LENGTH} characters for {label}",
                    )
                )
        return errors
