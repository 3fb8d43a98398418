"""
Unit tests for PayloadValidator.

Tests verify:
- A valid envelope becomes a typed RegistrationDraft
- Role payload exclusivity
- Cross-field business rules (dietary, allergies, committees, chair crisis answers)
- Every violation is reported in one PayloadInvalid
"""

import pytest

from src.domain.exceptions import PayloadInvalid
from src.domain.models import Role
from src.domain.validation import ROLE_SCHEMAS, PayloadValidator
from tests.factories import make_envelope


@pytest.fixture
def validator() -> PayloadValidator:
    return PayloadValidator()


def error_fields(exc_info: pytest.ExceptionInfo[PayloadInvalid]) -> list[str]:
    return [error["field"] for error in exc_info.value.errors]


class TestValidEnvelope:
    """Tests for envelopes that pass validation."""

    def test_delegate_draft_fields(self, validator: PayloadValidator) -> None:
        draft = validator.validate(make_envelope())

        assert draft.role is Role.DELEGATE
        assert draft.email == "maya.haddad@example.com"
        assert draft.first_name == "Maya"
        assert draft.nationality == "AE"
        assert draft.grade == "11"
        assert draft.emergency_contact_name == "Rami Haddad"
        assert draft.agree_photos is True
        assert draft.dietary_other is None
        assert draft.allergies_details is None

    def test_delegate_payload_excludes_referral_codes(self, validator: PayloadValidator) -> None:
        envelope = make_envelope()
        envelope["delegateData"]["referralCodes"] = ["VOFMUN1"]

        draft = validator.validate(envelope)

        assert draft.delegate_data == {
            "experience": "beginner",
            "committee1": "ga1",
            "committee2": "who",
            "committee3": "",
        }

    @pytest.mark.parametrize("role", ["delegate", "chair", "admin"])
    def test_only_matching_role_slot_is_populated(self, validator: PayloadValidator, role: str) -> None:
        draft = validator.validate(make_envelope(role))

        slots = {
            "delegate": draft.delegate_data,
            "chair": draft.chair_data,
            "admin": draft.admin_data,
        }
        assert slots.pop(role) is not None
        assert all(value is None for value in slots.values())
        assert draft.role_payload() is not None

    def test_blank_nationality_becomes_none(self, validator: PayloadValidator) -> None:
        envelope = make_envelope()
        envelope["formData"]["nationality"] = ""
        assert validator.validate(envelope).nationality is None

    def test_empty_optional_committees_allowed(self, validator: PayloadValidator) -> None:
        envelope = make_envelope()
        envelope["delegateData"].update(committee2="", committee3="")
        draft = validator.validate(envelope)
        assert draft.delegate_data["committee1"] == "ga1"

    def test_chair_crisis_answers_accepted(self, validator: PayloadValidator) -> None:
        envelope = make_envelope("chair")
        answer = "I would split the room and brief each bloc separately before the update."
        envelope["chairData"].update(crisisBackroomInterest="yes", crisisResponse=answer, availability=answer)
        draft = validator.validate(envelope)
        assert draft.chair_data["crisisBackroomInterest"] == "yes"

    def test_every_role_has_a_schema(self) -> None:
        assert set(ROLE_SCHEMAS) == set(Role)


class TestCoreFieldErrors:
    """Tests for schema-level failures on shared fields."""

    def test_invalid_email(self, validator: PayloadValidator) -> None:
        envelope = make_envelope()
        envelope["formData"]["email"] = "not-an-email"
        with pytest.raises(PayloadInvalid) as exc_info:
            validator.validate(envelope)
        assert error_fields(exc_info) == ["formData.email"]
        message = exc_info.value.errors[0]["message"]
        assert "email" in message.lower()

    def test_blank_required_field(self, validator: PayloadValidator) -> None:
        envelope = make_envelope()
        envelope["formData"]["firstName"] = "   "
        with pytest.raises(PayloadInvalid) as exc_info:
            validator.validate(envelope)
        assert error_fields(exc_info) == ["formData.firstName"]

    def test_unknown_grade(self, validator: PayloadValidator) -> None:
        envelope = make_envelope()
        envelope["formData"]["grade"] = "13"
        with pytest.raises(PayloadInvalid) as exc_info:
            validator.validate(envelope)
        assert error_fields(exc_info) == ["formData.grade"]

    def test_terms_must_be_accepted(self, validator: PayloadValidator) -> None:
        envelope = make_envelope()
        envelope["formData"]["agreeTerms"] = False
        with pytest.raises(PayloadInvalid) as exc_info:
            validator.validate(envelope)
        assert exc_info.value.errors == [
            {"field": "formData.agreeTerms", "message": "You must agree to the terms and conditions"}
        ]

    def test_missing_form_data_reports_each_required_field(self, validator: PayloadValidator) -> None:
        envelope = make_envelope(formData=None)
        with pytest.raises(PayloadInvalid) as exc_info:
            validator.validate(envelope)
        fields = error_fields(exc_info)
        for name in ("email", "firstName", "lastName", "phone", "school", "grade", "agreeTerms"):
            assert f"formData.{name}" in fields


class TestBusinessRules:
    """Tests for cross-field rules."""

    def test_dietary_other_requires_details(self, validator: PayloadValidator) -> None:
        envelope = make_envelope()
        envelope["formData"].update(dietaryType="other", dietaryOther=" ")
        with pytest.raises(PayloadInvalid) as exc_info:
            validator.validate(envelope)
        assert exc_info.value.errors == [
            {"field": "formData.dietaryOther", "message": "Please specify your dietary requirement"}
        ]

    def test_dietary_other_with_details(self, validator: PayloadValidator) -> None:
        envelope = make_envelope()
        envelope["formData"].update(dietaryType="other", dietaryOther="Halal")
        assert validator.validate(envelope).dietary_other == "Halal"

    def test_allergies_require_details(self, validator: PayloadValidator) -> None:
        envelope = make_envelope()
        envelope["formData"].update(hasAllergies="yes", allergiesDetails="")
        with pytest.raises(PayloadInvalid) as exc_info:
            validator.validate(envelope)
        assert error_fields(exc_info) == ["formData.allergiesDetails"]

    def test_duplicate_committee_rejected(self, validator: PayloadValidator) -> None:
        envelope = make_envelope()
        envelope["delegateData"].update(committee1="ga1", committee2="ga1")
        with pytest.raises(PayloadInvalid) as exc_info:
            validator.validate(envelope)
        assert exc_info.value.errors == [
            {"field": "delegateData.committee2", "message": "Cannot select the same committee multiple times"}
        ]

    def test_duplicate_in_third_choice_rejected(self, validator: PayloadValidator) -> None:
        envelope = make_envelope()
        envelope["delegateData"].update(committee1="who", committee2="", committee3="who")
        with pytest.raises(PayloadInvalid) as exc_info:
            validator.validate(envelope)
        assert error_fields(exc_info) == ["delegateData.committee3"]

    def test_unknown_committee_rejected(self, validator: PayloadValidator) -> None:
        envelope = make_envelope()
        envelope["delegateData"]["committee2"] = "unsc"
        with pytest.raises(PayloadInvalid) as exc_info:
            validator.validate(envelope)
        assert exc_info.value.errors == [
            {"field": "delegateData.committee2", "message": "Invalid committee selection"}
        ]

    def test_chair_short_essay_rejected(self, validator: PayloadValidator) -> None:
        envelope = make_envelope("chair")
        envelope["chairData"]["whyBestFit"] = "Because."
        with pytest.raises(PayloadInvalid) as exc_info:
            validator.validate(envelope)
        assert error_fields(exc_info) == ["chairData.whyBestFit"]

    def test_chair_crisis_interest_requires_answers(self, validator: PayloadValidator) -> None:
        envelope = make_envelope("chair")
        envelope["chairData"]["crisisBackroomInterest"] = "yes"
        with pytest.raises(PayloadInvalid) as exc_info:
            validator.validate(envelope)
        assert error_fields(exc_info) == ["chairData.crisisResponse", "chairData.availability"]

    def test_admin_yes_no_fields(self, validator: PayloadValidator) -> None:
        envelope = make_envelope("admin")
        envelope["adminData"]["previousAdmin"] = "maybe"
        with pytest.raises(PayloadInvalid) as exc_info:
            validator.validate(envelope)
        assert error_fields(exc_info) == ["adminData.previousAdmin"]


class TestRoleSelection:
    """Tests for the role discriminator."""

    def test_unknown_role(self, validator: PayloadValidator) -> None:
        envelope = make_envelope(selectedRole="observer")
        with pytest.raises(PayloadInvalid) as exc_info:
            validator.validate(envelope)
        assert error_fields(exc_info) == ["selectedRole"]

    def test_missing_role_payload(self, validator: PayloadValidator) -> None:
        envelope = make_envelope(delegateData=None)
        with pytest.raises(PayloadInvalid) as exc_info:
            validator.validate(envelope)
        assert error_fields(exc_info) == ["delegateData"]

    def test_payload_for_other_role_is_ignored(self, validator: PayloadValidator) -> None:
        envelope = make_envelope("admin", delegateData={"committee1": "ga1"})
        draft = validator.validate(envelope)
        assert draft.delegate_data is None


class TestAllErrorsReported:
    """Tests that violations are enumerated, not short-circuited."""

    def test_errors_from_every_section(self, validator: PayloadValidator) -> None:
        envelope = make_envelope()
        envelope["formData"].update(lastName="", dietaryType="other", dietaryOther="")
        envelope["delegateData"].update(experience="expert", committee1="icj", committee2="icj")

        with pytest.raises(PayloadInvalid) as exc_info:
            validator.validate(envelope)

        assert set(error_fields(exc_info)) == {
            "formData.lastName",
            "formData.dietaryOther",
            "delegateData.experience",
            "delegateData.committee2",
        }
