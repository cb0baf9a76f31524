"""
Configuration driven evaluator for visa types without a dedicated evaluator
"""
import logging
from typing import Any, Dict, List, Optional

from ...models.applicant import ApplicationType, EvaluationContext
from ...models.eligibility import EvaluationWeights, PointSystem, VisaProfile
from ...models.evaluation import EvaluationStatus, TypeEvaluationResult
from ...utils.validators import normalize_code, normalize_key, to_number
from .base import BaseEvaluator, degree_meets, ratio_score, stay_compliance_score

logger = logging.getLogger(__name__)

UNLISTED_CHANGE_PENALTY = 30
CONDITIONAL_CHANGE_PENALTY = 30


class GenericEvaluator(BaseEvaluator):
    """
    Documents, eligibility, requirements and compliance checks driven by a visa profile

    Weights come from the profile configuration per application type.
    """

    name = "generic"

    def __init__(
        self,
        visa_type: str,
        application_type: ApplicationType,
        document_service: Any,
        profile: VisaProfile,
        weights: EvaluationWeights,
        degree_ranks: Dict[str, int],
        native_countries: Optional[List[str]] = None,
        **kwargs
    ):
        super().__init__(visa_type, application_type, document_service, **kwargs)
        self.profile = profile
        self.weights = weights
        self.degree_ranks = degree_ranks
        self.native_countries = native_countries or []
        self.name = f"{visa_type}/{application_type.value}"
        if application_type == ApplicationType.CHANGE:
            self.required_fields = ('current_visa',)

    def _evaluate(self, context: EvaluationContext) -> TypeEvaluationResult:
        if context.get('has_criminal_record') is True:
            return self.disqualify("Criminal record reported", {"criminal_record": True})

        eligibility = self.check_eligibility(context)
        details: Dict[str, Any] = {"eligibility": eligibility}
        if not eligibility["eligible"]:
            return self.disqualify(eligibility["reason"], details)

        documents = self.document_completeness(context)
        requirements = self.check_requirements(context)
        compliance, deductions = stay_compliance_score(context)
        details.update({
            "documents": documents,
            "requirements": requirements,
            "compliance": {"score": compliance, "deductions": deductions}
        })

        weights = self.weights.model_dump()
        result = self.combine(
            {
                "documents": documents["completeness"],
                "eligibility": eligibility["score"],
                "requirements": requirements["score"],
                "compliance": compliance
            },
            weights,
            details
        )

        if self.application_type == ApplicationType.EXTENSION:
            minimums = self.extension_minimums(requirements["score"], compliance)
            result.details["extension_minimums"] = minimums
            unmet = [name for name, check in minimums.items() if not check["met"]]
            if unmet:
                # an extension below a minimum is never approved outright
                if result.status == EvaluationStatus.APPROVED:
                    result.status = EvaluationStatus.CONDITIONAL
                result.reason = f"Below the extension minimum for: {', '.join(unmet)}"
        return result

    def extension_minimums(self, activity: float, compliance: float) -> Dict[str, Any]:
        """Activity and stay compliance scores against the profile's extension minimums"""
        extension = self.profile.extension
        return {
            "activity": {
                "score": activity,
                "minimum": extension.min_activity_score,
                "met": activity >= extension.min_activity_score
            },
            "compliance": {
                "score": compliance,
                "minimum": extension.min_stay_compliance,
                "met": compliance >= extension.min_stay_compliance
            }
        }

    def check_eligibility(self, context: EvaluationContext) -> Dict[str, Any]:
        """Education minimum and, for changes, the change path"""
        score = 100
        notes = []

        if self.application_type in (ApplicationType.NEW, ApplicationType.CHANGE):
            minimum = self.profile.education_minimum
            if minimum and not degree_meets(context.get('education_level'), minimum, self.degree_ranks):
                return {
                    "eligible": False,
                    "score": 0,
                    "reason": f"{self.visa_type} requires at least a {minimum} degree"
                }

        if self.application_type == ApplicationType.CHANGE:
            current_visa = normalize_code(context.get('current_visa'))
            changeability = self.profile.changeability
            if current_visa in changeability.prohibited:
                return {
                    "eligible": False,
                    "score": 0,
                    "reason": f"Change from {current_visa} to {self.visa_type} is prohibited"
                }
            if current_visa in changeability.conditional:
                score -= CONDITIONAL_CHANGE_PENALTY
                notes.append(changeability.conditional[current_visa])
            elif current_visa not in changeability.allowed:
                score -= UNLISTED_CHANGE_PENALTY
                notes.append(f"Change from {current_visa} is not a listed path")

        if self.application_type in (ApplicationType.EXTENSION, ApplicationType.REENTRY):
            days = context.get('days_until_expiry')
            if days is not None and to_number(days) <= 0:
                return {"eligible": False, "score": 0, "reason": "Period of stay has expired"}

        return {"eligible": True, "score": score, "notes": notes}

    def check_requirements(self, context: EvaluationContext) -> Dict[str, Any]:
        """Average of every applicable profile requirement"""
        checks: Dict[str, float] = {}

        if self.profile.experience_minimum and self.application_type != ApplicationType.REENTRY:
            checks["experience"] = ratio_score(context.get('experience_years'), self.profile.experience_minimum)

        if self.profile.point_system:
            points = self.points(context, self.profile.point_system)
            checks["points"] = ratio_score(points, self.profile.point_system.minimum_points)

        if self.profile.native_speaker_required:
            native = normalize_code(context.get('nationality')) in self.native_countries
            checks["native_speaker"] = 100 if native or context.has_document('english_proficiency_certificate') else 50

        minimum_hours = self.profile.minimum_weekly_hours
        if minimum_hours and self.application_type != ApplicationType.NEW:
            checks["weekly_hours"] = ratio_score(context.get('weekly_teaching_hours'), minimum_hours)

        score = sum(checks.values()) / len(checks) if checks else 100.0
        return {"score": score, "checks": {k: round(v, 1) for k, v in checks.items()}}

    @staticmethod
    def points(context: EvaluationContext, system: PointSystem) -> float:
        """Declared point score, or points computed from the profile tables"""
        declared = context.get('point_score')
        if declared is not None:
            return to_number(declared)

        points = system.education.get(normalize_key(context.get('education_level')), 0)
        experience = to_number(context.get('experience_years')) * system.experience_per_year
        points += min(experience, system.experience_cap) if system.experience_cap else experience
        points += to_number(context.get('korean_level')) * system.korean_per_level

        age = context.get('age')
        if age is not None:
            for max_age, band_points in sorted(system.age_bands.items(), key=lambda item: int(item[0])):
                if to_number(age) <= int(max_age):
                    points += band_points
                    break
        return points
