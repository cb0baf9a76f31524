"""Unit tests for application type classification."""

from visa_eval.models import ApplicantData, ApplicationType, Confidence
from visa_eval.services.application_type_service import ApplicationTypeService


def _applicant(**evaluation) -> ApplicantData:
    return ApplicantData(evaluation=evaluation)


class TestClassify:
    def setup_method(self) -> None:
        self.service = ApplicationTypeService()

    def test_requested_type_wins(self) -> None:
        result = self.service.classify("E-1", _applicant(current_visa="E-1"), ApplicationType.CHANGE)

        assert result.application_type == ApplicationType.CHANGE
        assert result.confidence == Confidence.HIGH
        assert result.signals["requested_type"] == "CHANGE"

    def test_requested_type_as_string(self) -> None:
        result = self.service.classify("E-1", _applicant(), "reentry")
        assert result.application_type == ApplicationType.REENTRY

    def test_explicit_flag(self) -> None:
        result = self.service.classify("E-1", _applicant(is_status_change=True, current_visa="E-1"))

        assert result.application_type == ApplicationType.CHANGE
        assert result.confidence == Confidence.HIGH

    def test_same_current_visa_is_extension(self) -> None:
        result = self.service.classify("e-1", _applicant(current_visa=" e-1"))

        assert result.application_type == ApplicationType.EXTENSION
        assert result.confidence == Confidence.MEDIUM

    def test_different_current_visa_is_change(self) -> None:
        result = self.service.classify("E-1", _applicant(current_visa="D-2"))

        assert result.application_type == ApplicationType.CHANGE
        assert result.confidence == Confidence.MEDIUM
        assert "D-2" in result.reason

    def test_unknown_visa_is_low_confidence_change(self) -> None:
        result = self.service.classify("E-1", _applicant(has_visa=True))

        assert result.application_type == ApplicationType.CHANGE
        assert result.confidence == Confidence.LOW

    def test_no_signals_is_new(self) -> None:
        result = self.service.classify("E-1", _applicant())

        assert result.application_type == ApplicationType.NEW
        assert result.confidence == Confidence.HIGH

    def test_administrative_signal_is_used(self) -> None:
        applicant = ApplicantData(administrative={"current_visa": "E-2"})
        result = self.service.classify("E-1", applicant)
        assert result.application_type == ApplicationType.CHANGE


class TestGuidance:
    def setup_method(self) -> None:
        self.service = ApplicationTypeService()

    def test_processing_time(self) -> None:
        times = self.service.get_estimated_processing_time(ApplicationType.CHANGE)
        assert times["average"] == 21
        assert times["unit"] == "days"

    def test_progress_tracking(self) -> None:
        progress = self.service.track_progress(ApplicationType.NEW, "application", 50)

        assert progress["total_progress"] == 60
        assert progress["completed_stages"] == 2
        assert progress["remaining_stages"] == 2

    def test_next_steps(self) -> None:
        steps = self.service.generate_next_steps(False, ["passport"], 75)
        assert [s["action"] for s in steps] == [
            "Address eligibility requirements",
            "Prepare required documents",
            "Start the application form"
        ]

    def test_type_names_and_weights(self) -> None:
        assert self.service.get_type_name(ApplicationType.EXTENSION) == "Extension of stay"
        assert self.service.get_evaluation_weight(ApplicationType.REENTRY) == 0.6
        assert self.service.get_evaluation_weight(ApplicationType.CHANGE) == 0.9

    def test_guide_and_roadmap(self) -> None:
        guide = self.service.get_guide(ApplicationType.NEW)
        assert guide["title"] == "New visa application guide"

        roadmap = self.service.generate_roadmap(ApplicationType.NEW, timeline_weeks=10)
        assert roadmap["timeline"] == "10 weeks"
        assert roadmap["phases"][-1]["milestone"] == "Visa issued"
