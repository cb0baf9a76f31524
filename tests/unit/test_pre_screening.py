"""Unit tests for the pre-screening service."""

from typing import Any

import pytest

from visa_eval.models import ApplicationType
from visa_eval.services.pre_screening_service import PreScreeningService


@pytest.fixture()
def screening(e1_config, catalog) -> PreScreeningService:
    return PreScreeningService(e1_config, native_countries=catalog.native_english_countries)


def _types(result) -> list[str]:
    return [issue.type for issue in result.issues]


# ---------------------------------------------------------------------------
# Immediate rejection
# ---------------------------------------------------------------------------
class TestRejection:
    def test_qualified_applicant_can_apply(self, screening: PreScreeningService, e1_new_applicant: dict[str, Any]) -> None:
        result = screening.screen("E-1", ApplicationType.NEW, e1_new_applicant)

        assert result.can_apply
        assert result.rejection_reasons == []
        assert result.alternatives == []

    def test_ineligible_institution(self, screening: PreScreeningService, e1_new_applicant: dict[str, Any]) -> None:
        e1_new_applicant["institution_type"] = "academy"
        result = screening.screen("E-1", ApplicationType.NEW, e1_new_applicant)

        assert not result.can_apply
        assert "consider E-2" in result.rejection_reasons[0]
        assert result.success_probability == 0
        assert result.probability_level == "VERY_LOW"
        assert [a.visa_type for a in result.alternatives] == ["E-2", "E-7", "D-10"]

    def test_degree_below_position_requirement(
        self,
        screening: PreScreeningService,
        e1_new_applicant: dict[str, Any]
    ) -> None:
        e1_new_applicant["education_level"] = "bachelor"
        result = screening.screen("E-1", ApplicationType.NEW, e1_new_applicant)

        assert result.rejection_reasons == ["Position associate_professor requires at least a master degree"]

    def test_change_paths(self, screening: PreScreeningService, e1_new_applicant: dict[str, Any]) -> None:
        blocked = screening.screen("E-1", ApplicationType.CHANGE, {**e1_new_applicant, "current_visa": "B-2"})
        conditional = screening.screen("E-1", ApplicationType.CHANGE, {**e1_new_applicant, "current_visa": "D-2"})

        assert blocked.rejection_reasons == ["Change from B-2 to E-1 is not allowed"]
        assert conditional.can_apply

    def test_criminal_record_country(self, screening: PreScreeningService) -> None:
        listed = screening.screen("D-2", "NEW", {"nationality": "US", "has_criminal_record": True})
        other = screening.screen("D-2", "NEW", {"nationality": "PH", "has_criminal_record": True})

        assert listed.rejection_reasons == ["Criminal record bars entry"]
        assert other.can_apply

    def test_unfit_health_status(self, screening: PreScreeningService) -> None:
        result = screening.screen("F-2", "NEW", {"health_status": "unfit"})
        assert result.rejection_reasons == ["Health examination result is unfit"]


# ---------------------------------------------------------------------------
# Remediable issues and the action plan
# ---------------------------------------------------------------------------
class TestIssues:
    def test_default_issues(self, screening: PreScreeningService, e1_new_applicant: dict[str, Any]) -> None:
        result = screening.screen("E-1", ApplicationType.NEW, e1_new_applicant)

        assert _types(result) == ["INSUFFICIENT_RESEARCH", "LOW_KOREAN_PROFICIENCY", "NO_RECOMMENDATIONS"]
        assert result.success_probability == 65
        assert result.probability_level == "MEDIUM"
        assert result.processing_days == 25

    def test_action_plan_buckets(self, screening: PreScreeningService, e1_new_applicant: dict[str, Any]) -> None:
        e1_new_applicant.update({
            "weekly_teaching_hours": 4,
            "online_hours": 5,
            "total_hours": 9,
            "contract_period_months": 6
        })
        result = screening.screen("E-1", ApplicationType.NEW, e1_new_applicant)
        plan = {bucket: [item.category for item in items] for bucket, items in result.action_plan.items()}

        assert plan["immediate"] == ["INSUFFICIENT_TEACHING_HOURS"]
        assert plan["short_term"] == ["EXCESSIVE_ONLINE_TEACHING", "SHORT_CONTRACT_DURATION", "NO_RECOMMENDATIONS"]
        assert plan["medium_term"] == ["LOW_KOREAN_PROFICIENCY"]
        assert plan["long_term"] == ["INSUFFICIENT_RESEARCH"]
        assert [step.days for step in result.timeline] == [14, 21, 7, 14, 75, 120]

    def test_e1_checks_skipped_for_other_visas(self, screening: PreScreeningService) -> None:
        result = screening.screen("E-7", "NEW", {"weekly_teaching_hours": 1, "korean_level": 4, "recommendations": ["dean"]})
        assert result.issues == []

    def test_probability_is_capped(self, screening: PreScreeningService) -> None:
        data = {
            "experience_years": 12,
            "publications": ["a", "b", "c", "d", "e", "f"],
            "institution_prestige": "high",
            "korean_level": 4,
            "recommendations": ["dean"]
        }
        result = screening.screen("E-1", ApplicationType.EXTENSION, data)

        assert result.issues == []
        assert result.success_probability == 100
        assert result.probability_level == "HIGH"


# ---------------------------------------------------------------------------
# Processing time and risk factors
# ---------------------------------------------------------------------------
class TestProcessing:
    def test_special_institution_and_poor_documents(self, screening: PreScreeningService) -> None:
        data = {"nationality": "PH", "institution_type": "cyber_university", "document_quality": "poor"}
        assert screening.processing_days(ApplicationType.CHANGE, data) == 42

    def test_minimum_processing_days(self, screening: PreScreeningService) -> None:
        assert screening.processing_days(ApplicationType.REENTRY, {"document_quality": "excellent"}) == 5

    def test_risk_factors(self, screening: PreScreeningService) -> None:
        data = {"experience_years": 1, "employment_type": "part_time", "previous_violations": ["overstay"]}
        assert screening.risk_factors(data) == ["LIMITED_EXPERIENCE", "PART_TIME_CONTRACT", "PREVIOUS_VIOLATIONS"]
