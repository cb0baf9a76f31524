"""Unit tests for the type-specific evaluators and the evaluator factory."""

from typing import Any

import pytest

from visa_eval.errors import UnsupportedVisaTypeError, ValidationInputError
from visa_eval.models import ApplicationType, EvaluationStatus
from visa_eval.services.evaluators import (
    E1ChangeEvaluator,
    E1ExtensionEvaluator,
    E1NewEvaluator,
    EvaluatorFactory,
    GenericEvaluator,
    stay_compliance_score
)
from tests.conftest import E1_NEW_REQUIRED, make_context


@pytest.fixture()
def factory(document_service, e1_config, profiles) -> EvaluatorFactory:
    return EvaluatorFactory(document_service, e1_config, profiles)


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------
class TestEvaluatorFactory:
    def test_e1_gets_dedicated_evaluators(self, factory: EvaluatorFactory) -> None:
        assert isinstance(factory.create("E-1", ApplicationType.NEW), E1NewEvaluator)
        assert isinstance(factory.create("e-1", "EXTENSION"), E1ExtensionEvaluator)
        assert isinstance(factory.create("E-1", ApplicationType.CHANGE), E1ChangeEvaluator)

    def test_other_types_use_profile(self, factory: EvaluatorFactory) -> None:
        evaluator = factory.create("D-2", ApplicationType.EXTENSION)

        assert isinstance(evaluator, GenericEvaluator)
        assert evaluator.name == "D-2/EXTENSION"
        assert evaluator.weights.requirements == 0.35

    def test_e1_reentry_falls_back_to_profile(self, factory: EvaluatorFactory) -> None:
        assert isinstance(factory.create("E-1", ApplicationType.REENTRY), GenericEvaluator)

    def test_unsupported_visa_type(self, factory: EvaluatorFactory) -> None:
        with pytest.raises(UnsupportedVisaTypeError):
            factory.create("Z-9", ApplicationType.NEW)


# ---------------------------------------------------------------------------
# E-1 new applications
# ---------------------------------------------------------------------------
class TestE1New:
    def test_qualified_applicant(self, factory: EvaluatorFactory, e1_new_applicant: dict[str, Any]) -> None:
        evaluator = factory.create("E-1", ApplicationType.NEW)
        result = evaluator.evaluate(make_context(documents=E1_NEW_REQUIRED, **e1_new_applicant))

        assert result.score == 100
        assert result.status == EvaluationStatus.APPROVED
        assert result.details["qualification"]["matrix_entry"] is True
        assert result.details["teaching_plan"]["online_ratio"] == 0.222

    def test_ineligible_institution(self, factory: EvaluatorFactory, e1_new_applicant: dict[str, Any]) -> None:
        e1_new_applicant["institution_type"] = "academy"
        result = factory.create("E-1", ApplicationType.NEW).evaluate(make_context(**e1_new_applicant))

        assert result.disqualified
        assert result.score == 0
        assert result.status == EvaluationStatus.REJECTED
        assert result.alternative == "E-2"

    def test_missing_institution_type(self, factory: EvaluatorFactory) -> None:
        with pytest.raises(ValidationInputError) as exc_info:
            factory.create("E-1", ApplicationType.NEW).evaluate(make_context(education_level="phd"))
        assert exc_info.value.missing_fields == ["institution_type"]

    def test_weak_teaching_plan(self, factory: EvaluatorFactory, e1_new_applicant: dict[str, Any]) -> None:
        e1_new_applicant.update({"weekly_teaching_hours": 4, "teaching_types": ["seminar_only"]})
        evaluator = factory.create("E-1", ApplicationType.NEW)

        plan = evaluator.validate_teaching_plan(make_context(**e1_new_applicant))

        assert plan == {
            "score": 40,
            "hours_check": False,
            "online_check": True,
            "type_check": False,
            "online_ratio": 0.222
        }

    def test_qualification_without_matrix_entry(self, factory: EvaluatorFactory) -> None:
        evaluator = factory.create("E-1", ApplicationType.NEW)
        qualification = evaluator.position_qualification(
            make_context(position="guest_speaker", education_level="master", institution_type="university")
        )
        assert qualification["score"] == 85
        assert qualification["matrix_entry"] is False

    def test_degree_below_matrix_requirement(self, factory: EvaluatorFactory) -> None:
        evaluator = factory.create("E-1", ApplicationType.NEW)
        qualification = evaluator.position_qualification(make_context(
            position="full_professor",
            institution_type="university",
            education_level="bachelor",
            teaching_experience_years=3
        ))
        assert qualification["degree_met"] is False
        assert qualification["score"] == 20


# ---------------------------------------------------------------------------
# E-1 extensions
# ---------------------------------------------------------------------------
class TestE1Extension:
    def test_online_ratio_at_limit_disqualifies(self, factory: EvaluatorFactory) -> None:
        context = make_context(
            application_type=ApplicationType.EXTENSION,
            weekly_teaching_hours=8,
            online_hours=4,
            total_hours=8
        )
        result = factory.create("E-1", ApplicationType.EXTENSION).evaluate(context)

        assert result.disqualified
        assert result.score == 0

    def test_full_activity(self, factory: EvaluatorFactory) -> None:
        context = make_context(
            application_type=ApplicationType.EXTENSION,
            weekly_teaching_hours=9,
            online_hours=0,
            total_hours=9,
            attendance_rate=95,
            teaching_evaluation=4.5
        )
        result = factory.create("E-1", ApplicationType.EXTENSION).evaluate(context)

        assert result.score == 100
        assert result.details["activity"]["continuity"] == "CONTINUOUS"

    def test_overstay_lowers_compliance(self, factory: EvaluatorFactory) -> None:
        context = make_context(
            application_type=ApplicationType.EXTENSION,
            weekly_teaching_hours=9,
            total_hours=9,
            attendance_rate=95,
            teaching_evaluation=4.5,
            has_overstayed=True
        )
        result = factory.create("E-1", ApplicationType.EXTENSION).evaluate(context)

        assert result.score == 97
        assert result.details["stay_compliance"]["score"] == 70

    def test_missing_teaching_hours(self, factory: EvaluatorFactory) -> None:
        with pytest.raises(ValidationInputError):
            factory.create("E-1", ApplicationType.EXTENSION).evaluate(
                make_context(application_type=ApplicationType.EXTENSION)
            )


# ---------------------------------------------------------------------------
# E-1 change of status
# ---------------------------------------------------------------------------
class TestE1Change:
    @staticmethod
    def _context(**overrides: Any):
        data = {
            "current_visa": "D-2",
            "education_level": "phd",
            "position": "associate_professor",
            "institution_type": "university",
            "teaching_experience_years": 6,
            "has_graduated": True
        }
        data.update(overrides)
        return make_context(application_type=ApplicationType.CHANGE, **data)

    def test_prohibited_source_visa(self, factory: EvaluatorFactory) -> None:
        result = factory.create("E-1", ApplicationType.CHANGE).evaluate(self._context(current_visa="B-2"))

        assert result.disqualified
        assert "prohibited" in result.reason

    def test_unknown_source_visa(self, factory: EvaluatorFactory) -> None:
        result = factory.create("E-1", ApplicationType.CHANGE).evaluate(self._context(current_visa="Z-1"))

        assert result.disqualified
        assert "not supported" in result.reason

    def test_student_visa_is_direct_path(self, factory: EvaluatorFactory) -> None:
        result = factory.create("E-1", ApplicationType.CHANGE).evaluate(self._context())
        eligibility = result.details["change_eligibility"]

        assert eligibility["type"] == "direct"
        assert eligibility["score"] == 100
        assert result.details["conditions"]["score"] == 100
        assert result.score == 100

    def test_student_visa_without_graduation(self, factory: EvaluatorFactory) -> None:
        result = factory.create("E-1", ApplicationType.CHANGE).evaluate(self._context(has_graduated=False))

        assert result.details["change_eligibility"]["score"] == 100
        assert result.details["conditions"]["score"] == 0
        assert result.score == 75
        assert result.status == EvaluationStatus.APPROVED

    def test_language_teacher_visa_is_direct_path(self, factory: EvaluatorFactory) -> None:
        evaluator = factory.create("E-1", ApplicationType.CHANGE)
        result = evaluator.evaluate(self._context(current_visa="E-2", education_level="bachelor"))

        assert result.details["change_eligibility"] == {"eligible": True, "type": "direct", "score": 100}
        assert result.details["conditions"]["score"] == 100

    def test_direct_path_close_to_expiry(self, factory: EvaluatorFactory) -> None:
        result = factory.create("E-1", ApplicationType.CHANGE).evaluate(
            self._context(current_visa="F-2", days_until_expiry=10)
        )

        assert result.details["current_status"]["score"] == 90
        assert result.score == 98


# ---------------------------------------------------------------------------
# Profile driven evaluator
# ---------------------------------------------------------------------------
class TestGenericEvaluator:
    def test_native_speaker_check(self, factory: EvaluatorFactory) -> None:
        evaluator = factory.create("E-2", ApplicationType.NEW)

        native = evaluator.evaluate(make_context("E-2", nationality="CA", education_level="bachelor"))
        other = evaluator.evaluate(make_context("E-2", nationality="PH", education_level="bachelor"))
        certified = evaluator.evaluate(make_context(
            "E-2",
            documents=["english_proficiency_certificate"],
            nationality="PH",
            education_level="bachelor"
        ))

        assert native.score == 80
        assert other.score == 70
        assert certified.details["requirements"]["checks"]["native_speaker"] == 100

    def test_education_minimum(self, factory: EvaluatorFactory) -> None:
        result = factory.create("E-2", ApplicationType.NEW).evaluate(
            make_context("E-2", nationality="CA", education_level="high_school")
        )
        assert result.disqualified
        assert "bachelor" in result.reason

    def test_criminal_record_disqualifies(self, factory: EvaluatorFactory) -> None:
        result = factory.create("F-2", ApplicationType.NEW).evaluate(
            make_context("F-2", has_criminal_record=True)
        )
        assert result.disqualified

    def test_change_paths(self, factory: EvaluatorFactory) -> None:
        evaluator = factory.create("E-7", ApplicationType.CHANGE)
        base = {"education_level": "master", "experience_years": 3, "point_score": 90}

        prohibited = evaluator.evaluate(make_context("E-7", ApplicationType.CHANGE, current_visa="B-2", **base))
        allowed = evaluator.check_eligibility(make_context("E-7", ApplicationType.CHANGE, current_visa="E-2", **base))
        conditional = evaluator.check_eligibility(make_context("E-7", ApplicationType.CHANGE, current_visa="D-2", **base))
        unlisted = evaluator.check_eligibility(make_context("E-7", ApplicationType.CHANGE, current_visa="D-4", **base))

        assert prohibited.disqualified
        assert allowed["score"] == 100
        assert conditional["score"] == 70
        assert unlisted["score"] == 70

    def test_change_requires_current_visa(self, factory: EvaluatorFactory) -> None:
        with pytest.raises(ValidationInputError):
            factory.create("E-7", ApplicationType.CHANGE).evaluate(
                make_context("E-7", ApplicationType.CHANGE, education_level="master")
            )

    def test_expired_stay_blocks_extension(self, factory: EvaluatorFactory) -> None:
        result = factory.create("D-2", ApplicationType.EXTENSION).evaluate(
            make_context("D-2", ApplicationType.EXTENSION, days_until_expiry=0)
        )
        assert result.disqualified

    def test_extension_minimum_compliance(self, factory: EvaluatorFactory) -> None:
        result = factory.create("D-2", ApplicationType.EXTENSION).evaluate(
            make_context("D-2", ApplicationType.EXTENSION, tax_arrears=True, violations=["MINOR"])
        )
        assert result.details["compliance"]["score"] == 75
        assert result.details["extension_minimums"]["compliance"]["met"] is False
        assert result.status != EvaluationStatus.APPROVED
        assert "compliance" in result.reason

    def test_extension_minimums(self, factory: EvaluatorFactory) -> None:
        evaluator = factory.create("D-2", ApplicationType.EXTENSION)

        minimums = evaluator.extension_minimums(59, 80)

        assert minimums["activity"] == {"score": 59, "minimum": 60, "met": False}
        assert minimums["compliance"] == {"score": 80, "minimum": 80, "met": True}

    def test_computed_points(self, factory: EvaluatorFactory, profiles) -> None:
        context = make_context("E-7", education_level="master", experience_years=5, korean_level=3, age=33)
        assert GenericEvaluator.points(context, profiles.profiles["E-7"].point_system) == 85

    def test_declared_points_take_precedence(self, factory: EvaluatorFactory, profiles) -> None:
        context = make_context("E-7", education_level="master", point_score=40)
        assert GenericEvaluator.points(context, profiles.profiles["E-7"].point_system) == 40


class TestStayCompliance:
    def test_deductions(self) -> None:
        context = make_context(
            violations=[{"severity": "severe"}, "major"],
            has_overstayed=True,
            address_change_unreported=True
        )
        score, deductions = stay_compliance_score(context)

        assert score == 100 - 25 - 15 - 30 - 5
        assert len(deductions) == 4

    def test_floor_at_zero(self) -> None:
        score, _ = stay_compliance_score(make_context(violations=["SEVERE"] * 5))
        assert score == 0
