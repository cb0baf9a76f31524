"""Unit tests for document requirement resolution, validation and checklists."""

from typing import Any

import pytest

from visa_eval.errors import ConfigurationError, UnsupportedVisaTypeError
from visa_eval.models import ApplicationType
from visa_eval.models.documents import ValidationRule
from visa_eval.services.document_service import DocumentService
from tests.conftest import E1_NEW_REQUIRED, REFERENCE_DATE


# ---------------------------------------------------------------------------
# Requirement resolution
# ---------------------------------------------------------------------------
class TestRequirements:
    def test_e1_new_requirements(self, document_service: DocumentService) -> None:
        requirements = document_service.get_document_requirements("E-1", ApplicationType.NEW)

        assert requirements.all_required() == E1_NEW_REQUIRED
        assert requirements.optional == ["recommendation_letter", "portfolio", "transcript"]
        assert "education_proof" in requirements.alternatives

    def test_visa_type_is_normalized(self, document_service: DocumentService) -> None:
        requirements = document_service.get_document_requirements(" e-1 ", "NEW")
        assert requirements.visa_type == "E-1"

    def test_non_native_applicant_gets_extra_documents(self, document_service: DocumentService) -> None:
        native = document_service.get_document_requirements("E-2", "NEW", {"nationality": "CA"})
        non_native = document_service.get_document_requirements("E-2", "NEW", {"nationality": "PH"})

        assert "english_proficiency_certificate" not in native.required
        assert "english_proficiency_certificate" in non_native.required
        assert "native_speaker_verification" in non_native.required

    def test_missing_nationality_counts_as_non_native(self, document_service: DocumentService) -> None:
        requirements = document_service.get_document_requirements("E-2", "NEW", {})
        assert "english_proficiency_certificate" in requirements.required

    def test_field_specific_documents(self, document_service: DocumentService) -> None:
        requirements = document_service.get_document_requirements("E-7", "NEW", {"field": "IT"})
        assert "technical_certification" in requirements.required
        assert "project_portfolio" in requirements.required

    def test_unsupported_visa_type(self, document_service: DocumentService) -> None:
        with pytest.raises(UnsupportedVisaTypeError):
            document_service.get_document_requirements("Z-9", "NEW")

    def test_supports(self, document_service: DocumentService) -> None:
        assert document_service.supports("E-1")
        assert document_service.supports("e-1", ApplicationType.CHANGE)
        assert not document_service.supports("Z-9")


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------
class TestValidation:
    def test_complete_submission(self, document_service: DocumentService, e1_new_documents: dict[str, Any]) -> None:
        result = document_service.validate_documents(
            "E-1", ApplicationType.NEW, e1_new_documents, {"nationality": "US"}, now=REFERENCE_DATE
        )

        assert result.is_valid
        assert result.missing == []
        assert result.invalid == []
        assert result.score == 100
        assert result.completeness == 100.0
        assert result.optional_submitted == ["recommendation_letter", "portfolio", "transcript"]

    def test_nothing_submitted(self, document_service: DocumentService) -> None:
        result = document_service.validate_documents("E-1", ApplicationType.NEW, {}, now=REFERENCE_DATE)

        assert not result.is_valid
        assert result.missing == E1_NEW_REQUIRED
        assert result.score == 0
        assert result.completeness == 0.0
        assert result.recommendations[0].type == "MISSING_DOCUMENTS"

    def test_missing_and_invalid_penalties(
        self,
        document_service: DocumentService,
        e1_new_documents: dict[str, Any]
    ) -> None:
        documents = {k: v for k, v in e1_new_documents.items() if k not in ("portfolio", "transcript", "recommendation_letter")}
        del documents["business_registration"]
        documents["diploma"] = {"apostilled": False, "translated": True}

        result = document_service.validate_documents("E-1", "NEW", documents, now=REFERENCE_DATE)

        assert result.missing == ["business_registration"]
        assert [d.document for d in result.invalid] == ["diploma"]
        assert result.invalid[0].issues == ["Apostille required"]
        assert result.score == 100 - 15 - 10

    def test_adding_required_document_never_lowers_score(self, document_service: DocumentService) -> None:
        submitted: dict[str, Any] = {}
        previous = document_service.validate_documents("E-1", "NEW", submitted, now=REFERENCE_DATE).score
        for document_type in E1_NEW_REQUIRED:
            submitted[document_type] = {}
            score = document_service.validate_documents("E-1", "NEW", submitted, now=REFERENCE_DATE).score
            assert score >= previous
            previous = score

    def test_document_age_is_checked(self, document_service: DocumentService, e1_new_documents: dict[str, Any]) -> None:
        e1_new_documents["criminal_record"]["issued_date"] = "2024-10-01"

        result = document_service.validate_documents("E-1", "NEW", e1_new_documents, now=REFERENCE_DATE)

        assert [d.document for d in result.invalid] == ["criminal_record"]
        assert "must be within 180 days" in result.invalid[0].issues[0]

    def test_future_issue_date_is_invalid(self, document_service: DocumentService, e1_new_documents: dict[str, Any]) -> None:
        e1_new_documents["criminal_record"]["issued_date"] = "2030-01-01"

        result = document_service.validate_documents("E-1", "NEW", e1_new_documents, now=REFERENCE_DATE)

        assert [d.document for d in result.invalid] == ["criminal_record"]
        assert result.invalid[0].issues == ["Issue date 2030-01-01 is in the future"]
        assert not result.is_valid

    def test_special_checks(self, document_service: DocumentService, e1_new_documents: dict[str, Any]) -> None:
        e1_new_documents["employment_contract"]["salary"] = 2000000
        e1_new_documents["health_certificate"]["tests"] = ["tuberculosis"]

        result = document_service.validate_documents("E-1", "NEW", e1_new_documents, now=REFERENCE_DATE)
        issues = {d.document: d.issues for d in result.invalid}

        assert issues["employment_contract"] == ["Salary below the minimum of 2,500,000 KRW"]
        assert issues["health_certificate"] == ["Missing medical tests: infectious_diseases"]

    def test_medical_tests_as_string_are_not_substring_matched(
        self, document_service: DocumentService, e1_new_documents: dict[str, Any]
    ) -> None:
        e1_new_documents["health_certificate"]["tests"] = "tuberculosis infectious_diseases"

        result = document_service.validate_documents("E-1", "NEW", e1_new_documents, now=REFERENCE_DATE)
        issues = {d.document: d.issues for d in result.invalid}

        assert issues["health_certificate"] == ["Missing medical tests: tuberculosis, infectious_diseases"]

    def test_undeclared_metadata_skips_special_checks(self, document_service: DocumentService) -> None:
        documents = {
            "employment_contract": {"translated": True},
            "attendance_certificate": {},
            "tax_payment_certificate": {},
            "residence_certificate": {}
        }
        result = document_service.validate_documents(
            "E-1", "EXTENSION", documents, {"nationality": "US"}, now=REFERENCE_DATE
        )
        assert result.invalid == []

    def test_conditional_documents(self, document_service: DocumentService) -> None:
        documents = {
            "passport": {},
            "photo": {},
            "application_form": {},
            "employment_contract": {"translated": True},
            "attendance_certificate": {"hours_per_week": 9},
            "tax_payment_certificate": {},
            "residence_certificate": {}
        }

        unchanged = document_service.validate_documents("E-1", "EXTENSION", documents, {}, now=REFERENCE_DATE)
        changed = document_service.validate_documents(
            "E-1", "EXTENSION", documents, {"contract_changed": True}, now=REFERENCE_DATE
        )

        assert unchanged.is_valid
        assert unchanged.score == 100
        assert not changed.is_valid
        assert changed.missing == ["business_registration (conditional)"]
        assert changed.score == 90

    def test_alternative_hint_for_missing_document(self, document_service: DocumentService) -> None:
        result = document_service.validate_documents("E-1", "NEW", {"diploma": {}}, now=REFERENCE_DATE)

        assert result.alternative_hints["diploma_apostille"] == ["education_verification + transcript"]
        assert "diploma_apostille" in result.missing


# ---------------------------------------------------------------------------
# Checklist and catalog checks
# ---------------------------------------------------------------------------
class TestChecklist:
    def test_extension_checklist(self, document_service: DocumentService) -> None:
        checklist = document_service.generate_document_checklist("E-1", "EXTENSION")

        assert len(checklist.essential) == 7
        assert [i.type for i in checklist.optional] == ["activity_report", "recommendation_letter"]
        assert {i.type for i in checklist.conditional} == {"business_registration", "financial_statement"}
        assert checklist.conditional[0].condition == "When the employment contract has changed"

    def test_checklist_carries_validation_rules(self, document_service: DocumentService) -> None:
        checklist = document_service.generate_document_checklist("E-1", "NEW")
        items = {i.type: i for i in checklist.essential}

        assert items["criminal_record"].name == "Criminal record certificate"
        assert items["criminal_record"].validation_rules.issued_within_days == 180
        assert items["passport"].validation_rules is None

    def test_unknown_check_tag_is_rejected(self, catalog) -> None:
        broken = catalog.model_copy(deep=True)
        broken.validation_rules["diploma"] = ValidationRule(checks={"shoe_size": 42})

        with pytest.raises(ConfigurationError):
            DocumentService(broken)
